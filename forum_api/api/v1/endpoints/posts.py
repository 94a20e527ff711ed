"""Post endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.database import get_db
from forum_api.core.deps import FORBIDDEN_DETAIL, Caller, require_permission
from forum_api.core.rbac import requires
from forum_api.schemas.forum import PostRead, PostUpdate
from forum_api.services.forum import forum_service
from forum_api.services.permission import permission_service

logger = structlog.get_logger()
router = APIRouter()

VIEW_POST = requires("canView", resource_type="category", resource_id_from_post="post_id")


@router.get("/{post_id}", response_model=PostRead)
async def get_post(
    post_id: int,
    caller: Caller = Depends(require_permission(VIEW_POST)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await forum_service.get_post(db, post_id)


@router.put("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: int,
    data: PostUpdate,
    caller: Caller = Depends(require_permission(VIEW_POST)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Edit a post. Allowed for its author, or for callers who may moderate its category."""
    if not await permission_service.can_edit_post(db, caller.user_id, caller.roles, post_id):
        logger.info("Post edit denied", user_id=caller.user_id, post_id=post_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)
    return await forum_service.update_post(db, post_id, caller.user_id, data)
