"""User role assignment endpoints (role administrators only)."""

from __future__ import annotations

from typing import Any, List

import structlog
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.database import get_db
from forum_api.core.deps import Caller, require_permission
from forum_api.core.rbac import requires
from forum_api.repositories.role import role_repository
from forum_api.schemas.base import SuccessResponse
from forum_api.schemas.role import RoleRead, UserCleanupResult, UserRoleAssign, UserRoleRead
from forum_api.services.role import role_service
from forum_api.services.user_cleanup import remove_user_roles

logger = structlog.get_logger()
router = APIRouter()

ADMIN_TOOLS = requires("canAccessAdminTools")
EDIT_ROLES = requires("canEditRoles")
UserId = Path(..., min_length=1, max_length=64)


@router.get("/{user_id}/roles", response_model=List[RoleRead])
async def list_user_roles(
    user_id: str = UserId,
    caller: Caller = Depends(require_permission(ADMIN_TOOLS)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await role_repository.find_by_user_id(db, user_id)


@router.post("/{user_id}/roles", response_model=UserRoleRead, status_code=status.HTTP_201_CREATED)
async def assign_user_role(
    data: UserRoleAssign,
    user_id: str = UserId,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await role_service.get_role(db, data.role_id)
    return await role_repository.assign_role(db, user_id, data.role_id)


@router.delete("/{user_id}/roles/{role_id}", response_model=SuccessResponse)
async def unassign_user_role(
    role_id: int,
    user_id: str = UserId,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Remove one role from a user. The guest role cannot be removed."""
    await role_service.unassign_role(db, user_id, role_id)
    return SuccessResponse(message="Role removed from user", data={"user_id": user_id, "role_id": role_id})


@router.delete("/{user_id}/roles", response_model=UserCleanupResult)
async def delete_user_roles(
    user_id: str = UserId,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Remove every role assignment of an account deleted on the host platform.
    Unknown users succeed with result "absent".
    """
    result = await remove_user_roles(db, user_id)
    return UserCleanupResult(user_id=user_id, result=result.status.value, removed=result.removed)
