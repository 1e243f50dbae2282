import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import get_current_user, require_admin
from database import (
    create_document,
    find_by_id_or_slug,
    get_db,
    get_documents,
    parse_object_id,
    pull_reference,
    serialize,
    update_document,
)
from lifecycle import apply_slug
from routes.posts import published_posts
from schemas import Tag, TagCreate, TagUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tags", tags=["tags"])


def _load_tag(database: Database, tag_id: str):
    tag = database["tag"].find_one({"_id": parse_object_id(tag_id, "Tag not found")})
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("")
def list_tags(db: Database = Depends(get_db)):
    items = get_documents(db, "tag", sort=[("name", 1)])
    return {"success": True, "count": len(items), "data": serialize(items)}


@router.get("/{id_or_slug}")
def get_tag(id_or_slug: str, db: Database = Depends(get_db)):
    tag = find_by_id_or_slug(db, "tag", id_or_slug)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return {"success": True, "data": serialize(tag)}


# Any signed-in author may add tags; renaming and deleting are admin-only.
@router.post("", status_code=201)
def create_tag(payload: TagCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    data = apply_slug(payload.model_dump(), None, "name")
    if db["tag"].find_one({"name": data["name"]}):
        raise HTTPException(status_code=400, detail="Tag already exists")
    try:
        tag = create_document(db, "tag", Tag(**data).model_dump())
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Tag already exists")
    logger.info("Tag %s created by %s", tag["_id"], user["id"])
    return {"success": True, "data": serialize(tag)}


@router.put("/{tag_id}")
def update_tag(tag_id: str, payload: TagUpdate, user=Depends(require_admin), db: Database = Depends(get_db)):
    tag = _load_tag(db, tag_id)
    changes = apply_slug(payload.model_dump(exclude_unset=True, exclude_none=True), tag, "name")
    try:
        tag = update_document(db, "tag", tag["_id"], changes)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Tag already exists")
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return {"success": True, "data": serialize(tag)}


@router.delete("/{tag_id}")
def delete_tag(tag_id: str, user=Depends(require_admin), db: Database = Depends(get_db)):
    tag = _load_tag(db, tag_id)
    modified = pull_reference(db, "tags", tag["_id"])
    db["tag"].delete_one({"_id": tag["_id"]})
    logger.info("Tag %s deleted, removed from %d posts", tag["_id"], modified)
    return {"success": True, "message": "Tag removed"}


@router.get("/{id_or_slug}/posts")
def get_tag_posts(id_or_slug: str, db: Database = Depends(get_db)):
    tag = find_by_id_or_slug(db, "tag", id_or_slug)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    posts = published_posts(db, "tags", tag["_id"])
    return {"success": True, "count": len(posts), "data": serialize(posts)}
