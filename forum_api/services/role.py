"""
Role Service
Role lifecycle, global grants and user assignments.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.exceptions import EntityNotFound, ForumError
from forum_api.core.rbac import ALL_PERMISSIONS, RoleType
from forum_api.models.role import Role, RolePermission, UserRole
from forum_api.repositories.role import role_repository
from forum_api.schemas.role import RoleCreate, RolePermissionsRead, RoleUpdate

logger = structlog.get_logger()


class RoleNameTaken(ForumError):
    def __init__(self, name: str):
        super().__init__(
            message="Role name already in use",
            code="ROLE_NAME_TAKEN",
            status_code=409,
            details={"name": name},
        )


class ProtectedRoleError(ForumError):
    """System roles cannot be deleted, admin grants cannot be edited and the guest role stays assigned."""

    def __init__(self, message: str, role_id: int):
        super().__init__(
            message=message,
            code="PROTECTED_ROLE",
            status_code=409,
            details={"role_id": role_id},
        )


class RoleService:
    async def get_role(self, db: AsyncSession, role_id: int) -> Role:
        role = await role_repository.get(db, id=role_id)
        if not role:
            raise EntityNotFound("Role", role_id)
        return role

    async def create_role(self, db: AsyncSession, data: RoleCreate) -> Role:
        if await role_repository.find_by_name(db, data.name):
            raise RoleNameTaken(data.name)

        role = Role(
            name=data.name,
            description=data.description,
            role_type=RoleType.CUSTOM.value,
            is_system_role=False,
            permissions=[RolePermission(permission=p) for p in data.permissions],
        )
        db.add(role)
        await db.commit()
        await db.refresh(role)

        logger.info("Role created", role_id=role.id, name=role.name, permissions=data.permissions)
        return role

    async def update_role(self, db: AsyncSession, role_id: int, data: RoleUpdate) -> Role:
        role = await self.get_role(db, role_id)

        if data.name is not None and data.name != role.name:
            if await role_repository.find_by_name(db, data.name):
                raise RoleNameTaken(data.name)
            role.name = data.name
        if data.description is not None:
            role.description = data.description

        await db.commit()
        await db.refresh(role)
        logger.info("Role updated", role_id=role_id)
        return role

    async def delete_role(self, db: AsyncSession, role_id: int) -> None:
        role = await self.get_role(db, role_id)
        if role.is_system_role:
            raise ProtectedRoleError("System roles cannot be deleted", role_id)
        await role_repository.delete_role(db, role)

    async def get_permissions(self, db: AsyncSession, role_id: int) -> RolePermissionsRead:
        role = await self.get_role(db, role_id)
        if role.role_type == RoleType.ADMIN.value:
            return RolePermissionsRead(role_id=role_id, permissions=list(ALL_PERMISSIONS), implicit_all=True)
        return RolePermissionsRead(role_id=role_id, permissions=role.granted_permissions)

    async def set_permissions(self, db: AsyncSession, role_id: int, permissions: list[str]) -> RolePermissionsRead:
        role = await self.get_role(db, role_id)
        if role.role_type == RoleType.ADMIN.value:
            raise ProtectedRoleError("Admin roles always hold every permission", role_id)
        await role_repository.replace_permissions(db, role, permissions)
        return RolePermissionsRead(role_id=role_id, permissions=role.granted_permissions)

    async def unassign_role(self, db: AsyncSession, user_id: str, role_id: int) -> None:
        role = await self.get_role(db, role_id)
        if role.role_type == RoleType.GUEST.value:
            raise ProtectedRoleError("The guest role cannot be removed from users", role_id)

        assignment: Optional[UserRole] = await role_repository.get_assignment(db, user_id, role_id)
        if assignment is None:
            raise EntityNotFound("Role assignment", f"{user_id}:{role_id}")
        await role_repository.delete_assignment(db, assignment)


role_service = RoleService()
