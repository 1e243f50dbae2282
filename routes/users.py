import logging

from bson.objectid import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import create_token, get_current_user, hash_password, verify_password
from config import Role
from database import create_document, get_db, serialize
from schemas import Login, User, UserCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(payload: UserCreate, db: Database = Depends(get_db)):
    data = payload.model_dump()
    if db["user"].find_one({"email": data["email"]}):
        raise HTTPException(status_code=400, detail="User already exists")
    data["password"] = hash_password(data["password"])
    doc = User(**data, role=Role.USER).model_dump(mode="json")
    try:
        user = create_document(db, "user", doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("User %s registered", user["_id"])
    return {"success": True, "token": create_token(str(user["_id"]), user["role"]), "data": serialize(user)}


@router.post("/login")
def login(payload: Login, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password", "")):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    return {"success": True, "token": create_token(str(user["_id"]), user["role"])}


@router.get("/me")
def me(user=Depends(get_current_user), db: Database = Depends(get_db)):
    doc = db["user"].find_one({"_id": ObjectId(user["id"])})
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": serialize(doc)}
