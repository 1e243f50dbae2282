"""
Database helpers

Connection to MongoDB plus the small set of document operations the routes
share. Collections are named after the lowercase schema name: "user",
"post", "category", "tag".
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson.objectid import ObjectId
from fastapi import HTTPException
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import get_settings

logger = logging.getLogger(__name__)

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

_settings = get_settings()
client: Optional[MongoClient] = None
db: Optional[Database] = None

if _settings.database_url and _settings.database_name:
    # MongoClient connects lazily, so import never blocks on the server
    client = MongoClient(_settings.database_url, tz_aware=True)
    db = client[_settings.database_name]


def get_db() -> Database:
    """FastAPI dependency returning the configured database."""
    if db is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return db


def ensure_indexes(database: Database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["post"].create_index([("slug", ASCENDING)], unique=True)
    database["post"].create_index([("author", ASCENDING)])
    for name in ("category", "tag"):
        database[name].create_index([("name", ASCENDING)], unique=True)
        database[name].create_index([("slug", ASCENDING)], unique=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_object_id(value: str) -> bool:
    return bool(OBJECT_ID_RE.match(value or ""))


def parse_object_id(value: str, not_found: str = "Not found") -> ObjectId:
    """Convert a path id into an ObjectId, answering 404 for anything else."""
    if not is_object_id(value):
        raise HTTPException(status_code=404, detail=not_found)
    return ObjectId(value)


def create_document(database: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert ``data`` with timestamps and return the stored document."""
    now = utcnow()
    doc = dict(data)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = database[collection_name].insert_one(doc)
    return database[collection_name].find_one({"_id": result.inserted_id})


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    skip: int = 0,
    limit: int = 0,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def update_document(
    database: Database,
    collection_name: str,
    object_id: ObjectId,
    changes: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    update = dict(changes)
    update["updated_at"] = utcnow()
    database[collection_name].update_one({"_id": object_id}, {"$set": update})
    return database[collection_name].find_one({"_id": object_id})


def find_by_id_or_slug(database: Database, collection_name: str, identifier: str) -> Optional[Dict[str, Any]]:
    """
    Resolve ``identifier`` to a document: a 24-character hex string is looked up
    by ``_id``, anything else by ``slug``.
    """
    if is_object_id(identifier):
        return database[collection_name].find_one({"_id": ObjectId(identifier)})
    return database[collection_name].find_one({"slug": identifier})


def pull_reference(database: Database, field: str, object_id: ObjectId) -> int:
    """Remove ``object_id`` from the ``field`` list of every post holding it."""
    result = database["post"].update_many({field: object_id}, {"$pull": {field: object_id}})
    return result.modified_count


def populate_posts(
    database: Database,
    posts: Iterable[Dict[str, Any]],
    author_fields: Iterable[str] = ("name", "email"),
    populate_author: bool = True,
) -> List[Dict[str, Any]]:
    """
    Replace author/category/tag ids in ``posts`` with small summaries of the
    referenced documents. Missing references are dropped from the lists and
    leave ``author`` as the bare id.
    """
    posts = list(posts)
    author_ids = {p["author"] for p in posts if p.get("author")} if populate_author else set()
    category_ids = {c for p in posts for c in p.get("categories") or []}
    tag_ids = {t for p in posts for t in p.get("tags") or []}

    projection = {f: 1 for f in author_fields}
    authors = {u["_id"]: u for u in database["user"].find({"_id": {"$in": list(author_ids)}}, projection)} if author_ids else {}
    categories = {c["_id"]: c for c in database["category"].find({"_id": {"$in": list(category_ids)}}, {"name": 1})} if category_ids else {}
    tags = {t["_id"]: t for t in database["tag"].find({"_id": {"$in": list(tag_ids)}}, {"name": 1})} if tag_ids else {}

    populated = []
    for post in posts:
        item = dict(post)
        if populate_author and item.get("author") in authors:
            item["author"] = authors[item["author"]]
        item["categories"] = [categories[c] for c in item.get("categories") or [] if c in categories]
        item["tags"] = [tags[t] for t in item.get("tags") or [] if t in tags]
        populated.append(item)
    return populated


def serialize(value: Any) -> Any:
    """Make a document JSON friendly: ObjectIds become strings, passwords are dropped."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items() if k != "password"}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value
