import logging
import math
from typing import Optional

from bson.objectid import ObjectId
from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import ensure_owner_or_admin, get_current_user
from config import PostStatus, get_settings
from database import (
    create_document,
    find_by_id_or_slug,
    get_db,
    get_documents,
    parse_object_id,
    populate_posts,
    serialize,
    update_document,
    utcnow,
)
from lifecycle import apply_slug, make_excerpt, render_content, stamp_publication
from schemas import PostCreate, PostUpdate, StatusChange

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def published_posts(database: Database, field: str, object_id: ObjectId):
    """Published posts referencing ``object_id`` in ``field``, newest first."""
    posts = get_documents(
        database,
        "post",
        {field: object_id, "status": PostStatus.PUBLISHED.value},
        sort=NEWEST_FIRST,
    )
    return populate_posts(database, posts, author_fields=("name",))


def _load_post(database: Database, post_id: str):
    post = database["post"].find_one({"_id": parse_object_id(post_id, "Post not found")})
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _save(database: Database, post_id: ObjectId, changes: dict):
    try:
        post = update_document(database, "post", post_id, changes)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="A post with this title already exists")
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("")
def list_posts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    db: Database = Depends(get_db),
):
    settings = get_settings()
    limit = min(limit or settings.default_limit, settings.max_limit)

    query = {"status": PostStatus.PUBLISHED.value}
    if category:
        query["categories"] = parse_object_id(category, "Category not found")
    if tag:
        query["tags"] = parse_object_id(tag, "Tag not found")

    posts = get_documents(db, "post", query, sort=NEWEST_FIRST, skip=(page - 1) * limit, limit=limit)
    total = db["post"].count_documents(query)
    return {
        "success": True,
        "count": len(posts),
        "total": total,
        "pagination": {"current": page, "total_pages": math.ceil(total / limit)},
        "data": serialize(populate_posts(db, posts)),
    }


@router.get("/user/{user_id}")
def list_user_posts(user_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    ensure_owner_or_admin(user, user_id)
    author = parse_object_id(user_id, "User not found")
    posts = get_documents(db, "post", {"author": author}, sort=NEWEST_FIRST)
    data = populate_posts(db, posts, populate_author=False)
    return {"success": True, "count": len(data), "data": serialize(data)}


@router.get("/{id_or_slug}")
def get_post(id_or_slug: str, db: Database = Depends(get_db)):
    post = find_by_id_or_slug(db, "post", id_or_slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    post = db["post"].find_one_and_update(
        {"_id": post["_id"]},
        {"$inc": {"view_count": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"success": True, "data": serialize(populate_posts(db, [post])[0])}


@router.post("", status_code=201)
def create_post(payload: PostCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    data = payload.model_dump()
    raw_content = data["content"]
    doc = {
        "title": data["title"],
        "content": render_content(raw_content),
        "excerpt": data.get("excerpt") or make_excerpt(raw_content),
        "author": ObjectId(user["id"]),
        "status": data["status"],
        "categories": [ObjectId(c) for c in data["categories"]],
        "tags": [ObjectId(t) for t in data["tags"]],
        "featured_image": data.get("featured_image"),
        "view_count": 0,
        "is_published": False,
        "published_at": None,
    }
    apply_slug(doc, None, "title")
    stamp_publication(doc, None, utcnow())
    try:
        post = create_document(db, "post", doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="A post with this title already exists")
    logger.info("Post %s created by %s", post["_id"], user["id"])
    return {"success": True, "data": serialize(post)}


@router.put("/{post_id}/status")
def change_post_status(
    post_id: str,
    payload: StatusChange,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if payload.status not in {s.value for s in PostStatus}:
        raise HTTPException(status_code=400, detail="Invalid status value")
    post = _load_post(db, post_id)
    ensure_owner_or_admin(user, post["author"], "Not authorized to update this post")

    changes = stamp_publication({"status": payload.status}, post, utcnow())
    post = _save(db, post["_id"], changes)
    logger.info("Post %s moved to %s", post["_id"], payload.status)
    return {"success": True, "data": serialize(post)}


@router.put("/{post_id}")
def update_post(
    post_id: str,
    payload: PostUpdate,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    post = _load_post(db, post_id)
    ensure_owner_or_admin(user, post["author"], "Not authorized to update this post")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "content" in changes:
        changes["content"] = render_content(changes["content"])
    for field in ("categories", "tags"):
        if field in changes:
            changes[field] = [ObjectId(v) for v in changes[field]]
    apply_slug(changes, post, "title")
    stamp_publication(changes, post, utcnow())

    post = _save(db, post["_id"], changes)
    logger.info("Post %s updated by %s", post["_id"], user["id"])
    return {"success": True, "data": serialize(post)}


@router.delete("/{post_id}")
def delete_post(post_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    post = _load_post(db, post_id)
    ensure_owner_or_admin(user, post["author"], "Not authorized to delete this post")
    db["post"].delete_one({"_id": post["_id"]})
    logger.info("Post %s deleted by %s", post["_id"], user["id"])
    return {"success": True, "message": "Post removed"}
