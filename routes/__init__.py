"""
API routers, mounted under ``/api`` by ``main``.
"""

from routes import categories, posts, tags, users

__all__ = ["categories", "posts", "tags", "users"]
