import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

import database
from config import configure_logging, get_settings
from errors import register_exception_handlers
from routes import categories, posts, tags, users

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        logger.info("Using MongoDB database %s", settings.database_name)
        try:
            database.ensure_indexes(database.db)
        except PyMongoError:
            logger.exception("Could not create indexes on %s", settings.database_name)
    else:
        logger.warning("DATABASE_URL/DATABASE_NAME not set; database routes will fail")
    yield
    if database.client is not None:
        database.client.close()


DESCRIPTION = (
    "Posts, categories and tags for a blog, stored in MongoDB. "
    "Fields are snake_case on the wire: view_count, is_published, published_at, "
    "featured_image, created_at, updated_at and pagination.total_pages "
    "(viewCount, isPublished, publishedAt, featuredImage, createdAt, updatedAt "
    "and pagination.totalPages in the earlier API)."
)

app = FastAPI(title="Blog Content API", description=DESCRIPTION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
def read_root():
    return {"message": "Post Management API is running"}


@app.get("/health")
def health():
    response = {"backend": "running", "database": "not configured"}
    if database.db is not None:
        try:
            database.db.command("ping")
            response["database"] = "connected"
        except PyMongoError as e:
            logger.warning("Database ping failed: %s", e)
            response["database"] = "unreachable"
    return response


# ===== API =====
app.include_router(posts.router, prefix="/api")
app.include_router(categories.router, prefix="/api")
app.include_router(tags.router, prefix="/api")
app.include_router(users.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
