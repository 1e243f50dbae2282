"""
Database Schemas

MongoDB collection schemas and request bodies, defined with Pydantic.
Collections are named after the entity in lowercase:
- User -> "user" collection
- Post -> "post" collection
- Category -> "category" collection
- Tag -> "tag" collection

Validation errors raised here are reported to clients as a list of
``{field, message}`` entries, so messages are written for end users.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

from config import PostStatus, Role
from database import is_object_id


class InputModel(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True, use_enum_values=True, validate_default=True, extra="ignore"
    )


def _required(value: Optional[str], label: str, max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return value
    if not value:
        raise PydanticCustomError("required", "{label} is required", {"label": label})
    return _max(value, label, max_length)


def _max(value: Optional[str], label: str, max_length: Optional[int]) -> Optional[str]:
    if value is not None and max_length is not None and len(value) > max_length:
        raise PydanticCustomError(
            "too_long",
            "{label} cannot be more than {max_length} characters",
            {"label": label, "max_length": max_length},
        )
    return value


def _object_ids(values: Optional[List[str]], label: str) -> Optional[List[str]]:
    if values is None:
        return values
    for value in values:
        if not is_object_id(value):
            raise PydanticCustomError("object_id", "{label} must contain valid ids", {"label": label})
    return values


# ===== Users =====

class User(BaseModel):
    """
    Blog users
    Collection: "user"
    """
    name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Unique, lowercased login email")
    password: str = Field(..., description="Password hash, never returned")
    role: Role = Field(Role.USER, description="user or admin")
    avatar: Optional[str] = Field(None, description="Avatar URL")
    bio: Optional[str] = Field(None, max_length=500, description="Short biography")


class UserCreate(InputModel):
    name: str
    email: EmailStr
    password: str
    avatar: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _required(v, "Name")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if len(v) < 6:
            raise PydanticCustomError("too_short", "Password must be at least 6 characters")
        return v

    @field_validator("bio")
    @classmethod
    def check_bio(cls, v):
        return _max(v, "Bio", 500)


class Login(InputModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


# ===== Posts =====

class PostUpdate(InputModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    status: Optional[PostStatus] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    featured_image: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _required(v, "Title", 200)

    @field_validator("content")
    @classmethod
    def check_content(cls, v):
        return _required(v, "Content")

    @field_validator("excerpt")
    @classmethod
    def check_excerpt(cls, v):
        return _max(v, "Excerpt", 500)

    @field_validator("categories")
    @classmethod
    def check_categories(cls, v):
        return _object_ids(v, "Categories")

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v):
        return _object_ids(v, "Tags")


class PostCreate(PostUpdate):
    title: str
    content: str
    status: PostStatus = PostStatus.DRAFT
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class StatusChange(InputModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _required(v, "Status")


# ===== Categories =====

class Category(BaseModel):
    """
    Post categories
    Collection: "category"
    """
    name: str = Field(..., max_length=50, description="Category name, e.g. Travel")
    slug: str = Field(..., description="URL-friendly identifier derived from name")
    description: Optional[str] = Field(None, max_length=200, description="Optional category description")


class CategoryUpdate(InputModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _required(v, "Name", 50)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return _max(v, "Description", 200)


class CategoryCreate(CategoryUpdate):
    name: str


# ===== Tags =====

class Tag(BaseModel):
    """
    Post tags
    Collection: "tag"
    """
    name: str = Field(..., max_length=30, description="Tag name")
    slug: str = Field(..., description="URL-friendly identifier derived from name")


class TagUpdate(InputModel):
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return _required(v, "Name", 30)


class TagCreate(TagUpdate):
    name: str
