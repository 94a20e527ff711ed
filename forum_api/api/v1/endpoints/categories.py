"""Category endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.database import get_db
from forum_api.core.deps import Caller, require_permission
from forum_api.core.rbac import requires
from forum_api.schemas.forum import CategoryList, CategoryRead
from forum_api.services.forum import forum_service
from forum_api.services.permission import permission_service

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=CategoryList)
async def list_categories(
    caller: Caller = Depends(require_permission()),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Categories the caller may view."""
    category_ids = await permission_service.get_accessible_categories(db, caller.user_id)
    items = await forum_service.list_categories(db, category_ids)
    return CategoryList(items=items, total=len(items))


@router.get("/{category_id}", response_model=CategoryRead)
async def get_category(
    category_id: int,
    caller: Caller = Depends(
        require_permission(requires("canView", resource_type="category", resource_id_param="category_id"))
    ),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await forum_service.get_category(db, category_id)
