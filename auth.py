"""
Authentication and access checks.

Callers authenticate with a signed token in the ``x-auth-token`` header.
The token payload carries ``{"user": {"id": ..., "role": ...}}``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header, HTTPException
from passlib.context import CryptContext

from config import Role, get_settings
from database import is_object_id

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))
    payload = {"user": {"id": str(user_id), "role": role}, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """Return the ``user`` claim of ``token`` or raise 401."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Token is not valid")
    user = payload.get("user")
    if not isinstance(user, dict) or not is_object_id(str(user.get("id", ""))) or not user.get("role"):
        raise HTTPException(status_code=401, detail="Token is not valid")
    return {"id": str(user["id"]), "role": user["role"]}


def get_current_user(x_auth_token: Optional[str] = Header(None)) -> Dict[str, Any]:
    if not x_auth_token:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    return decode_token(x_auth_token)


def is_admin(user: Dict[str, Any]) -> bool:
    return user.get("role") == Role.ADMIN.value


def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not is_admin(user):
        logger.info("Admin-only request refused for user %s", user.get("id"))
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    return user


def ensure_owner_or_admin(user: Dict[str, Any], owner_id: Any, detail: str = "Not authorized") -> None:
    if str(owner_id) != user.get("id") and not is_admin(user):
        raise HTTPException(status_code=403, detail=detail)
