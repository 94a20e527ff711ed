"""
Database-backed collaborators for the permission resolver.

Both adapters are bound to the request's session and only ever read.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.rbac import OverrideEffect, ResourceType, RoleType
from forum_api.repositories.forum import category_repository, post_repository, thread_repository
from forum_api.repositories.role import role_repository

logger = structlog.get_logger()


class SQLRoleStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_global_grant(self, role_id: int, permission: str) -> bool:
        role_type = await role_repository.get_role_type(self.db, role_id)
        if role_type is None:
            return False
        if role_type == RoleType.ADMIN.value:
            logger.debug("Admin role holds every global permission", role_id=role_id, permission=permission)
            return True
        return await role_repository.has_permission_row(self.db, role_id, permission)

    async def get_resource_override(
        self,
        role_id: int,
        resource_type: ResourceType,
        resource_id: int,
        permission: str,
    ) -> Optional[OverrideEffect]:
        override = await role_repository.get_override(self.db, role_id, resource_type, resource_id, permission)
        if override is None:
            return None
        return OverrideEffect(override.effect)


class SQLEntityLookup:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def category_exists(self, category_id: int) -> bool:
        return await category_repository.exists(self.db, category_id)

    async def get_thread_category_id(self, thread_id: int) -> Optional[int]:
        return await thread_repository.get_category_id(self.db, thread_id)

    async def get_post_thread_id(self, post_id: int) -> Optional[int]:
        return await post_repository.get_thread_id(self.db, post_id)
