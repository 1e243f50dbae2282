from bson.objectid import ObjectId


def test_any_author_can_create_tag(client, author_headers):
    resp = client.post("/api/tags", json={"name": "Machine Learning"}, headers=author_headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["slug"] == "machine-learning"


def test_duplicate_and_invalid_tags(client, author_headers):
    client.post("/api/tags", json={"name": "python"}, headers=author_headers)
    resp = client.post("/api/tags", json={"name": "python"}, headers=author_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Tag already exists"

    resp = client.post("/api/tags", json={"name": "t" * 31}, headers=author_headers)
    assert resp.json()["errors"] == [{"field": "name", "message": "Name cannot be more than 30 characters"}]


def test_renaming_to_existing_name_conflicts(client, admin_headers):
    client.post("/api/tags", json={"name": "python"}, headers=admin_headers)
    other = client.post("/api/tags", json={"name": "rust"}, headers=admin_headers).json()["data"]
    resp = client.put(f"/api/tags/{other['_id']}", json={"name": "python"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_update_and_delete_are_admin_only(client, db, author_headers, admin_headers):
    tag = client.post("/api/tags", json={"name": "python"}, headers=author_headers).json()["data"]
    url = f"/api/tags/{tag['_id']}"

    assert client.put(url, json={"name": "py"}, headers=author_headers).status_code == 403
    assert client.delete(url, headers=author_headers).status_code == 403

    data = client.put(url, json={"name": "Python 3"}, headers=admin_headers).json()["data"]
    assert data["slug"] == "python-3"
    assert client.get("/api/tags/python-3").json()["data"]["_id"] == tag["_id"]

    assert client.delete(url, headers=admin_headers).json()["message"] == "Tag removed"
    assert db["tag"].count_documents({}) == 0
    assert client.delete(url, headers=admin_headers).status_code == 404


def test_delete_tag_pulls_reference_from_every_post(client, db, make_post, admin_headers):
    tag = client.post("/api/tags", json={"name": "python"}, headers=admin_headers).json()["data"]
    other = client.post("/api/tags", json={"name": "rust"}, headers=admin_headers).json()["data"]
    first = make_post(title="First", tags=[tag["_id"], other["_id"]])
    second = make_post(title="Second", tags=[tag["_id"]])

    client.delete(f"/api/tags/{tag['_id']}", headers=admin_headers)

    assert db["post"].find_one({"_id": ObjectId(first["_id"])})["tags"] == [ObjectId(other["_id"])]
    assert db["post"].find_one({"_id": ObjectId(second["_id"])})["tags"] == []
    assert db["post"].count_documents({}) == 2


def test_list_tags_and_tag_posts(client, make_post, author_headers):
    client.post("/api/tags", json={"name": "zig"}, headers=author_headers)
    tag = client.post("/api/tags", json={"name": "go"}, headers=author_headers).json()["data"]
    make_post(title="Older", tags=[tag["_id"]], status="published")
    make_post(title="Newer", tags=[tag["_id"]], status="published")

    listing = client.get("/api/tags").json()
    assert [t["name"] for t in listing["data"]] == ["go", "zig"]

    body = client.get("/api/tags/go/posts").json()
    assert [p["title"] for p in body["data"]] == ["Newer", "Older"]
    assert body["data"][0]["tags"] == [{"_id": tag["_id"], "name": "go"}]
    assert client.get(f"/api/tags/{ObjectId()}/posts").status_code == 404


def test_names_without_slug_characters_conflict(client, author_headers):
    first = client.post("/api/tags", json={"name": "!!!"}, headers=author_headers)
    assert first.status_code == 201
    resp = client.post("/api/tags", json={"name": "???"}, headers=author_headers)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_tag_deleted_during_update_is_not_found(client, admin_headers, monkeypatch):
    import routes.tags as tag_routes

    tag = client.post("/api/tags", json={"name": "python"}, headers=admin_headers).json()["data"]
    real_update = tag_routes.update_document

    def delete_then_update(database, collection_name, object_id, changes):
        database[collection_name].delete_one({"_id": object_id})
        return real_update(database, collection_name, object_id, changes)

    monkeypatch.setattr(tag_routes, "update_document", delete_then_update)
    resp = client.put(f"/api/tags/{tag['_id']}", json={"name": "py"}, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Tag not found"
