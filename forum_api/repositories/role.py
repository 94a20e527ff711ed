"""
Role Repository
Database operations for roles, grants, overrides and user assignments.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.rbac import OverrideEffect, ResourceType, RoleType
from forum_api.models.role import PermissionOverride, Role, RolePermission, UserRole
from forum_api.repositories.base import CRUDBase
from forum_api.schemas.role import RoleCreate

logger = structlog.get_logger()


class RoleRepository(CRUDBase[Role, RoleCreate]):
    async def find_by_user_id(self, db: AsyncSession, user_id: str) -> list[Role]:
        query = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.id)
        )
        result = await db.execute(query)
        return list(result.scalars().unique().all())

    async def find_by_role_type(self, db: AsyncSession, role_type: RoleType) -> Optional[Role]:
        query = select(Role).where(Role.role_type == role_type.value).order_by(Role.id).limit(1)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_role_type(self, db: AsyncSession, role_id: int) -> Optional[str]:
        result = await db.execute(select(Role.role_type).where(Role.id == role_id))
        return result.scalar_one_or_none()

    async def has_permission_row(self, db: AsyncSession, role_id: int, permission: str) -> bool:
        query = select(RolePermission.id).where(
            RolePermission.role_id == role_id,
            RolePermission.permission == permission,
        )
        result = await db.execute(query)
        return result.first() is not None

    async def get_override(
        self,
        db: AsyncSession,
        role_id: int,
        resource_type: ResourceType,
        resource_id: int,
        permission: str,
    ) -> Optional[PermissionOverride]:
        query = select(PermissionOverride).where(
            PermissionOverride.role_id == role_id,
            PermissionOverride.resource_type == resource_type.value,
            PermissionOverride.resource_id == resource_id,
            PermissionOverride.permission == permission,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_overrides(self, db: AsyncSession, role_id: int) -> list[PermissionOverride]:
        query = (
            select(PermissionOverride)
            .where(PermissionOverride.role_id == role_id)
            .order_by(PermissionOverride.resource_type, PermissionOverride.resource_id, PermissionOverride.permission)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def upsert_override(
        self,
        db: AsyncSession,
        *,
        role_id: int,
        resource_type: ResourceType,
        resource_id: int,
        permission: str,
        effect: OverrideEffect,
    ) -> PermissionOverride:
        override = await self.get_override(db, role_id, resource_type, resource_id, permission)
        if override is None:
            override = PermissionOverride(
                role_id=role_id,
                resource_type=resource_type.value,
                resource_id=resource_id,
                permission=permission,
                effect=effect.value,
            )
            db.add(override)
        else:
            override.effect = effect.value

        await db.commit()
        await db.refresh(override)
        logger.info(
            "Permission override saved",
            role_id=role_id,
            resource_type=resource_type.value,
            resource_id=resource_id,
            permission=permission,
            effect=effect.value,
        )
        return override

    async def find_by_name(self, db: AsyncSession, name: str) -> Optional[Role]:
        result = await db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def replace_permissions(self, db: AsyncSession, role: Role, permissions: list[str]) -> Role:
        """Make the role's global grants exactly ``permissions``; unchanged rows are kept"""
        wanted = set(permissions)
        current = {p.permission for p in role.permissions}

        for row in list(role.permissions):
            if row.permission not in wanted:
                role.permissions.remove(row)
        for permission in sorted(wanted - current):
            role.permissions.append(RolePermission(permission=permission))

        await db.commit()
        logger.info("Role permissions replaced", role_id=role.id, permissions=sorted(wanted))
        return role

    async def delete_role(self, db: AsyncSession, role: Role) -> None:
        await db.execute(delete(PermissionOverride).where(PermissionOverride.role_id == role.id))
        await db.execute(delete(UserRole).where(UserRole.role_id == role.id))
        await db.delete(role)
        await db.commit()
        logger.info("Role deleted", role_id=role.id, name=role.name)

    async def get_assignment(self, db: AsyncSession, user_id: str, role_id: int) -> Optional[UserRole]:
        query = select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        return (await db.execute(query)).scalar_one_or_none()

    async def list_assignments(self, db: AsyncSession, role_id: int) -> list[UserRole]:
        query = select(UserRole).where(UserRole.role_id == role_id).order_by(UserRole.user_id)
        result = await db.execute(query)
        return list(result.scalars().unique().all())

    async def delete_assignment(self, db: AsyncSession, assignment: UserRole) -> None:
        await db.delete(assignment)
        await db.commit()
        logger.info("Role unassigned", user_id=assignment.user_id, role_id=assignment.role_id)

    async def assign_role(self, db: AsyncSession, user_id: str, role_id: int) -> UserRole:
        existing = await self.get_assignment(db, user_id, role_id)
        if existing:
            return existing

        assignment = UserRole(user_id=user_id, role_id=role_id)
        db.add(assignment)
        await db.commit()
        await db.refresh(assignment)
        logger.info("Role assigned", user_id=user_id, role_id=role_id)
        return assignment

    async def delete_user_roles(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
        await db.commit()
        return result.rowcount or 0


role_repository = RoleRepository(Role)
