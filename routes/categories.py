import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import require_admin
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
from schemas import Category, CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


def _load_category(database: Database, category_id: str):
    category = database["category"].find_one({"_id": parse_object_id(category_id, "Category not found")})
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("")
def list_categories(db: Database = Depends(get_db)):
    items = get_documents(db, "category", sort=[("name", 1)])
    return {"success": True, "count": len(items), "data": serialize(items)}


@router.get("/{id_or_slug}")
def get_category(id_or_slug: str, db: Database = Depends(get_db)):
    category = find_by_id_or_slug(db, "category", id_or_slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": serialize(category)}


@router.post("", status_code=201)
def create_category(payload: CategoryCreate, user=Depends(require_admin), db: Database = Depends(get_db)):
    data = apply_slug(payload.model_dump(), None, "name")
    if db["category"].find_one({"name": data["name"]}):
        raise HTTPException(status_code=400, detail="Category already exists")
    try:
        category = create_document(db, "category", Category(**data).model_dump())
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Category already exists")
    logger.info("Category %s created by %s", category["_id"], user["id"])
    return {"success": True, "data": serialize(category)}


@router.put("/{category_id}")
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    user=Depends(require_admin),
    db: Database = Depends(get_db),
):
    category = _load_category(db, category_id)
    changes = apply_slug(payload.model_dump(exclude_unset=True, exclude_none=True), category, "name")
    try:
        category = update_document(db, "category", category["_id"], changes)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Category already exists")
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": serialize(category)}


@router.delete("/{category_id}")
def delete_category(category_id: str, user=Depends(require_admin), db: Database = Depends(get_db)):
    category = _load_category(db, category_id)
    modified = pull_reference(db, "categories", category["_id"])
    db["category"].delete_one({"_id": category["_id"]})
    logger.info("Category %s deleted, removed from %d posts", category["_id"], modified)
    return {"success": True, "message": "Category removed"}


@router.get("/{id_or_slug}/posts")
def get_category_posts(id_or_slug: str, db: Database = Depends(get_db)):
    category = find_by_id_or_slug(db, "category", id_or_slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    posts = published_posts(db, "categories", category["_id"])
    return {"success": True, "count": len(posts), "data": serialize(posts)}
