"""Role administration endpoints."""

from __future__ import annotations

from typing import Any, List

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.database import get_db
from forum_api.core.deps import Caller, require_permission
from forum_api.core.rbac import OverrideEffect, ResourceType, requires
from forum_api.repositories.role import role_repository
from forum_api.schemas.base import SuccessResponse
from forum_api.schemas.role import (
    OverrideRead,
    OverrideUpsert,
    RoleCreate,
    RolePermissionsRead,
    RolePermissionsUpdate,
    RoleRead,
    RoleUpdate,
    UserRoleRead,
)
from forum_api.services.role import role_service

logger = structlog.get_logger()
router = APIRouter()

ADMIN_TOOLS = requires("canAccessAdminTools")
EDIT_ROLES = requires("canEditRoles")


@router.get("", response_model=List[RoleRead])
async def list_roles(
    caller: Caller = Depends(require_permission(ADMIN_TOOLS)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await role_repository.get_multi(db, order_by="id", limit=1000)


@router.post("", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
async def create_role(
    data: RoleCreate,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Create a custom role with its global permissions."""
    return await role_service.create_role(db, data)


@router.get("/{role_id}", response_model=RoleRead)
async def get_role(
    role_id: int,
    caller: Caller = Depends(require_permission(ADMIN_TOOLS)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await role_service.get_role(db, role_id)


@router.put("/{role_id}", response_model=RoleRead)
async def update_role(
    role_id: int,
    data: RoleUpdate,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await role_service.update_role(db, role_id, data)


@router.delete("/{role_id}", response_model=SuccessResponse)
async def delete_role(
    role_id: int,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Delete a custom role together with its grants, overrides and assignments.
    System roles are refused.
    """
    await role_service.delete_role(db, role_id)
    logger.info("Role deleted by administrator", actor_id=caller.user_id, role_id=role_id)
    return SuccessResponse(message="Role deleted", data={"role_id": role_id})


@router.get("/{role_id}/permissions", response_model=RolePermissionsRead)
async def get_role_permissions(
    role_id: int,
    caller: Caller = Depends(require_permission(ADMIN_TOOLS)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await role_service.get_permissions(db, role_id)


@router.put("/{role_id}/permissions", response_model=RolePermissionsRead)
async def update_role_permissions(
    role_id: int,
    data: RolePermissionsUpdate,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Replace the global permissions held by a role."""
    return await role_service.set_permissions(db, role_id, data.permissions)


@router.get("/{role_id}/users", response_model=List[UserRoleRead])
async def list_role_users(
    role_id: int,
    caller: Caller = Depends(require_permission(ADMIN_TOOLS)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await role_service.get_role(db, role_id)
    return await role_repository.list_assignments(db, role_id)


@router.get("/{role_id}/overrides", response_model=List[OverrideRead])
async def list_role_overrides(
    role_id: int,
    caller: Caller = Depends(require_permission(ADMIN_TOOLS)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await role_service.get_role(db, role_id)
    return await role_repository.list_overrides(db, role_id)


@router.put("/{role_id}/overrides", response_model=OverrideRead)
async def upsert_role_override(
    role_id: int,
    data: OverrideUpsert,
    caller: Caller = Depends(require_permission(EDIT_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Set the allow/deny override of a role on one resource."""
    await role_service.get_role(db, role_id)

    override = await role_repository.upsert_override(
        db,
        role_id=role_id,
        resource_type=ResourceType(data.resource_type),
        resource_id=data.resource_id,
        permission=data.permission,
        effect=OverrideEffect(data.effect),
    )
    logger.info("Override updated by administrator", actor_id=caller.user_id, override_id=override.id)
    return override
