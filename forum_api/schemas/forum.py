"""
Forum Schemas
Request/response models for categories, threads and posts
"""

from typing import List, Optional
from pydantic import Field

from forum_api.schemas.base import BaseSchema, BaseResponseSchema


class CategoryCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9-]+$")
    description: Optional[str] = None
    sort_order: int = 0


class CategoryRead(BaseResponseSchema):
    name: str
    slug: str
    description: Optional[str] = None
    sort_order: int = 0


class CategoryList(BaseSchema):
    items: List[CategoryRead]
    total: int


class ThreadCreate(BaseSchema):
    category_id: int = Field(..., gt=0, description="Category the thread is posted into")
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, description="Body of the opening post")


class ThreadRead(BaseResponseSchema):
    category_id: int
    author_id: str
    title: str
    is_locked: bool = False


class PostCreate(BaseSchema):
    content: str = Field(..., min_length=1)


class PostRead(BaseResponseSchema):
    thread_id: int
    author_id: str
    content: str


class ThreadUpdate(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)


class PostUpdate(BaseSchema):
    content: str = Field(..., min_length=1)
