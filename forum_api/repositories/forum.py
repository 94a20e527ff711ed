"""
Forum Repositories
Database operations for categories, threads and posts.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.models.forum import Category, Post, Thread
from forum_api.repositories.base import CRUDBase
from forum_api.schemas.forum import PostCreate, ThreadCreate, CategoryCreate

logger = structlog.get_logger()


class CategoryRepository(CRUDBase[Category, CategoryCreate]):
    async def list_ids(self, db: AsyncSession) -> list[int]:
        result = await db.execute(select(Category.id).order_by(Category.sort_order, Category.id))
        return list(result.scalars().all())

    async def exists(self, db: AsyncSession, category_id: int) -> bool:
        result = await db.execute(select(Category.id).where(Category.id == category_id))
        return result.first() is not None


class ThreadRepository(CRUDBase[Thread, ThreadCreate]):
    async def get_category_id(self, db: AsyncSession, thread_id: int) -> Optional[int]:
        result = await db.execute(select(Thread.category_id).where(Thread.id == thread_id))
        return result.scalar_one_or_none()

    async def get_author_id(self, db: AsyncSession, thread_id: int) -> Optional[str]:
        result = await db.execute(select(Thread.author_id).where(Thread.id == thread_id))
        return result.scalar_one_or_none()


class PostRepository(CRUDBase[Post, PostCreate]):
    async def get_thread_id(self, db: AsyncSession, post_id: int) -> Optional[int]:
        result = await db.execute(select(Post.thread_id).where(Post.id == post_id))
        return result.scalar_one_or_none()

    async def get_author_id(self, db: AsyncSession, post_id: int) -> Optional[str]:
        result = await db.execute(select(Post.author_id).where(Post.id == post_id))
        return result.scalar_one_or_none()


category_repository = CategoryRepository(Category)
thread_repository = ThreadRepository(Thread)
post_repository = PostRepository(Post)
