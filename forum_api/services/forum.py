"""
Forum Service
Business logic for reading and writing categories, threads and posts.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.exceptions import EntityNotFound, ForumError
from forum_api.models.forum import Category, Post, Thread
from forum_api.repositories.forum import category_repository, post_repository, thread_repository
from forum_api.schemas.forum import PostCreate, PostUpdate, ThreadCreate, ThreadUpdate

logger = structlog.get_logger()


class ThreadLockedError(ForumError):
    def __init__(self, thread_id: int):
        super().__init__(
            message="Thread is locked",
            code="THREAD_LOCKED",
            status_code=409,
            details={"thread_id": thread_id},
        )


class ForumService:
    async def list_categories(self, db: AsyncSession, category_ids: list[int]) -> list[Category]:
        if not category_ids:
            return []
        return await category_repository.get_multi(
            db, filters={"id": category_ids}, order_by="sort_order", limit=len(category_ids)
        )

    async def get_category(self, db: AsyncSession, category_id: int) -> Category:
        category = await category_repository.get(db, id=category_id)
        if not category:
            raise EntityNotFound("Category", category_id)
        return category

    async def get_thread(self, db: AsyncSession, thread_id: int) -> Thread:
        thread = await thread_repository.get(db, id=thread_id)
        if not thread:
            raise EntityNotFound("Thread", thread_id)
        return thread

    async def get_post(self, db: AsyncSession, post_id: int) -> Post:
        post = await post_repository.get(db, id=post_id)
        if not post:
            raise EntityNotFound("Post", post_id)
        return post

    async def create_thread(self, db: AsyncSession, author_id: str, data: ThreadCreate) -> Thread:
        await self.get_category(db, data.category_id)

        thread = await thread_repository.create(
            db,
            obj_in={"category_id": data.category_id, "author_id": author_id, "title": data.title},
            commit=False,
        )
        await post_repository.create(
            db,
            obj_in={"thread_id": thread.id, "author_id": author_id, "content": data.content},
            commit=False,
        )
        await db.commit()
        await db.refresh(thread)

        logger.info("Thread created", thread_id=thread.id, category_id=thread.category_id, author_id=author_id)
        return thread

    async def create_reply(self, db: AsyncSession, thread_id: int, author_id: str, data: PostCreate) -> Post:
        thread = await self.get_thread(db, thread_id)
        if thread.is_locked:
            raise ThreadLockedError(thread_id)

        post = await post_repository.create(
            db,
            obj_in={"thread_id": thread_id, "author_id": author_id, "content": data.content},
        )
        logger.info("Reply posted", post_id=post.id, thread_id=thread_id, author_id=author_id)
        return post

    async def update_thread(self, db: AsyncSession, thread_id: int, editor_id: str, data: ThreadUpdate) -> Thread:
        thread = await self.get_thread(db, thread_id)
        thread.title = data.title
        await db.commit()
        await db.refresh(thread)
        logger.info("Thread edited", thread_id=thread_id, editor_id=editor_id)
        return thread

    async def update_post(self, db: AsyncSession, post_id: int, editor_id: str, data: PostUpdate) -> Post:
        post = await self.get_post(db, post_id)
        post.content = data.content
        await db.commit()
        await db.refresh(post)
        logger.info("Post edited", post_id=post_id, thread_id=post.thread_id, editor_id=editor_id)
        return post


forum_service = ForumService()
