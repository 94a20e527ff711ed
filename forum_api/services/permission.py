"""
Permission Service
Caller role lookup and permission queries built on the resolver.
"""

from __future__ import annotations

from typing import AbstractSet, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.core.permission_resolver import PermissionResolver
from forum_api.core.rbac import RoleType, requires
from forum_api.core.resource_resolution import RequestContext
from forum_api.repositories.forum import category_repository, post_repository, thread_repository
from forum_api.repositories.role import role_repository
from forum_api.services.permission_store import SQLEntityLookup, SQLRoleStore

logger = structlog.get_logger()

CATEGORY_VIEW = requires("canView", resource_type="category", resource_id_param="category_id")
THREAD_MODERATE = requires("canModerate", resource_type="category", resource_id_from_thread="thread_id")
POST_MODERATE = requires("canModerate", resource_type="category", resource_id_from_post="post_id")


def build_resolver(db: AsyncSession) -> PermissionResolver:
    return PermissionResolver(SQLRoleStore(db), SQLEntityLookup(db))


class PermissionService:
    async def get_caller_roles(self, db: AsyncSession, user_id: Optional[str]) -> set[int]:
        """
        Role ids held by the caller.

        Guests (no user id) are evaluated with the guest role; without one
        they hold no roles and every check denies.
        """
        if user_id is None:
            guest_role = await role_repository.find_by_role_type(db, RoleType.GUEST)
            if guest_role is None:
                logger.warning("Guest role not found - denying guest access")
                return set()
            return {guest_role.id}

        roles = await role_repository.find_by_user_id(db, user_id)
        if not roles:
            logger.warning("User has no role assignments", user_id=user_id)
        return {role.id for role in roles}

    async def get_accessible_categories(self, db: AsyncSession, user_id: Optional[str]) -> list[int]:
        """Category ids on which the caller's canView evaluates to allowed"""
        caller_roles = await self.get_caller_roles(db, user_id)
        if not caller_roles:
            return []

        resolver = build_resolver(db)
        accessible = []
        for category_id in await category_repository.list_ids(db):
            context = RequestContext(route_params={"category_id": category_id})
            decision = await resolver.evaluate(caller_roles, CATEGORY_VIEW, context)
            if decision.allowed:
                accessible.append(category_id)

        logger.debug("Accessible categories resolved", user_id=user_id or "guest", count=len(accessible))
        return accessible

    async def is_thread_author(self, db: AsyncSession, user_id: str, thread_id: int) -> bool:
        author_id = await thread_repository.get_author_id(db, thread_id)
        return author_id is not None and author_id == user_id

    async def is_post_author(self, db: AsyncSession, user_id: str, post_id: int) -> bool:
        author_id = await post_repository.get_author_id(db, post_id)
        return author_id is not None and author_id == user_id

    async def can_edit_thread(
        self, db: AsyncSession, user_id: str, caller_roles: AbstractSet[int], thread_id: int
    ) -> bool:
        """Authors edit their own threads; otherwise canModerate on the thread's category is needed"""
        if await self.is_thread_author(db, user_id, thread_id):
            return True
        context = RequestContext(route_params={"thread_id": thread_id})
        decision = await build_resolver(db).evaluate(caller_roles, THREAD_MODERATE, context)
        return decision.allowed

    async def can_edit_post(
        self, db: AsyncSession, user_id: str, caller_roles: AbstractSet[int], post_id: int
    ) -> bool:
        if await self.is_post_author(db, user_id, post_id):
            return True
        context = RequestContext(route_params={"post_id": post_id})
        decision = await build_resolver(db).evaluate(caller_roles, POST_MODERATE, context)
        return decision.allowed


permission_service = PermissionService()
