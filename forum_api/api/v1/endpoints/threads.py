"""Thread endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.database import get_db
from forum_api.core.deps import FORBIDDEN_DETAIL, Caller, require_permission
from forum_api.core.rbac import requires
from forum_api.schemas.forum import PostCreate, PostRead, ThreadCreate, ThreadRead, ThreadUpdate
from forum_api.services.forum import forum_service
from forum_api.services.permission import permission_service

logger = structlog.get_logger()
router = APIRouter()


@router.get("/{thread_id}", response_model=ThreadRead)
async def get_thread(
    thread_id: int,
    caller: Caller = Depends(
        require_permission(requires("canView", resource_type="category", resource_id_from_thread="thread_id"))
    ),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await forum_service.get_thread(db, thread_id)


@router.post("", response_model=ThreadRead, status_code=status.HTTP_201_CREATED)
async def create_thread(
    data: ThreadCreate,
    caller: Caller = Depends(
        require_permission(
            requires("canView", resource_type="category", resource_id_body="category_id"),
            requires("canPost", resource_type="category", resource_id_body="category_id"),
        )
    ),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Open a thread with its first post."""
    return await forum_service.create_thread(db, caller.user_id, data)


@router.post("/{thread_id}/posts", response_model=PostRead, status_code=status.HTTP_201_CREATED)
async def create_reply(
    thread_id: int,
    data: PostCreate,
    caller: Caller = Depends(
        require_permission(
            requires("canView", resource_type="category", resource_id_from_thread="thread_id"),
            requires("canReply", resource_type="category", resource_id_from_thread="thread_id"),
        )
    ),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await forum_service.create_reply(db, thread_id, caller.user_id, data)


@router.put("/{thread_id}", response_model=ThreadRead)
async def update_thread(
    thread_id: int,
    data: ThreadUpdate,
    caller: Caller = Depends(
        require_permission(requires("canView", resource_type="category", resource_id_from_thread="thread_id"))
    ),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Retitle a thread. Allowed for its author, or for callers who may moderate its category."""
    if not await permission_service.can_edit_thread(db, caller.user_id, caller.roles, thread_id):
        logger.info("Thread edit denied", user_id=caller.user_id, thread_id=thread_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)
    return await forum_service.update_thread(db, thread_id, caller.user_id, data)
