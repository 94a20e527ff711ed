"""
API v1 Router
Main router for all API v1 endpoints
"""

from fastapi import APIRouter
from forum_api.api.v1.endpoints import categories, health, posts, roles, threads, users

api_router = APIRouter()

# Forum content
api_router.include_router(
    categories.router,
    prefix="/categories",
    tags=["categories"]
)

api_router.include_router(
    threads.router,
    prefix="/threads",
    tags=["threads"]
)

api_router.include_router(
    posts.router,
    prefix="/posts",
    tags=["posts"]
)

# Administration
api_router.include_router(
    roles.router,
    prefix="/roles",
    tags=["roles"]
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

# Health and monitoring endpoints
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"]
)
