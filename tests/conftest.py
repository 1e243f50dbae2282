# tests/conftest.py
import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from auth import create_token, hash_password
from main import app


@pytest.fixture()
def db():
    """A fresh in-memory MongoDB with the production indexes."""
    client = mongomock.MongoClient(tz_aware=True)
    test_db = client["blog_test"]
    database.ensure_indexes(test_db)
    return test_db


@pytest.fixture()
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(database.get_db, None)


def _make_user(db, name, email, role):
    return database.create_document(
        db,
        "user",
        {"name": name, "email": email, "password": hash_password("secret123"), "role": role},
    )


@pytest.fixture()
def author(db):
    return _make_user(db, "Ada", "ada@example.com", "user")


@pytest.fixture()
def other_user(db):
    return _make_user(db, "Bob", "bob@example.com", "user")


@pytest.fixture()
def admin(db):
    return _make_user(db, "Root", "root@example.com", "admin")


def headers_for(user):
    return {"x-auth-token": create_token(str(user["_id"]), user["role"])}


@pytest.fixture()
def author_headers(author):
    return headers_for(author)


@pytest.fixture()
def other_headers(other_user):
    return headers_for(other_user)


@pytest.fixture()
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture()
def make_post(client, author_headers):
    """Create a post through the API and return its JSON representation."""

    def _make(headers=None, **fields):
        body = {"title": "Hello, World!", "content": "Some **markdown** body"}
        body.update(fields)
        resp = client.post("/api/posts", json=body, headers=headers or author_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _make
