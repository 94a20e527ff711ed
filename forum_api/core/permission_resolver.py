"""
Permission resolver.

Evaluates permission declarations against a caller's roles. Roles compose by
OR on global grants; per-resource overrides refine that, with an explicit
deny on any held role winning over everything. Every failure, including a
misbehaving store or lookup, ends in a denial: callers only ever see an
AuthorizationDecision.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterable, Optional, Protocol

import structlog

from forum_api.core.exceptions import ResourceResolutionError
from forum_api.core.rbac import OverrideEffect, PermissionDeclaration, ResourceType
from forum_api.core.resource_resolution import (
    EntityLookup,
    RequestContext,
    ResolvedResource,
    resolve_resource,
)

logger = structlog.get_logger()


class RoleStore(Protocol):
    async def get_global_grant(self, role_id: int, permission: str) -> bool:
        ...

    async def get_resource_override(
        self,
        role_id: int,
        resource_type: ResourceType,
        resource_id: int,
        permission: str,
    ) -> Optional[OverrideEffect]:
        ...


class DecisionReason(str, Enum):
    GLOBAL_GRANT = "global_grant"
    OVERRIDE_ALLOW = "override_allow"
    OVERRIDE_DENY = "override_deny"
    NO_GRANT = "no_grant"
    NO_ROLES = "no_roles"
    NO_DECLARATIONS = "no_declarations"
    MISSING_RESOURCE = "missing_resource"
    RESOURCE_NOT_FOUND = "resource_not_found"
    LOOKUP_FAILED = "lookup_failed"
    STORE_FAILED = "store_failed"


_RESOLUTION_REASONS = {
    "missing_resource": DecisionReason.MISSING_RESOURCE,
    "resource_not_found": DecisionReason.RESOURCE_NOT_FOUND,
}


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    permission: str
    reason: DecisionReason
    resource: Optional[ResolvedResource] = None

    def to_log(self) -> dict:
        return {
            "allowed": self.allowed,
            "permission": self.permission,
            "reason": self.reason.value,
            "resource": self.resource.to_dict() if self.resource else None,
        }


class PermissionResolver:
    def __init__(self, store: RoleStore, lookup: EntityLookup) -> None:
        self.store = store
        self.lookup = lookup

    async def evaluate(
        self,
        caller_roles: AbstractSet[int],
        declaration: PermissionDeclaration,
        context: RequestContext,
    ) -> AuthorizationDecision:
        permission = declaration.permission

        try:
            resource = await resolve_resource(declaration, context, self.lookup)
        except ResourceResolutionError as exc:
            logger.info(
                "Permission resource could not be resolved",
                permission=permission,
                reason=exc.reason,
                error=exc.message,
                **exc.details,
            )
            return AuthorizationDecision(False, permission, _RESOLUTION_REASONS.get(exc.reason, DecisionReason.MISSING_RESOURCE))
        except Exception as exc:
            logger.error("Resource lookup failed", permission=permission, error=str(exc))
            return AuthorizationDecision(False, permission, DecisionReason.LOOKUP_FAILED)

        if not caller_roles:
            return AuthorizationDecision(False, permission, DecisionReason.NO_ROLES, resource)

        try:
            return await self._check(caller_roles, permission, resource)
        except Exception as exc:
            logger.error(
                "Role store failed during permission check",
                permission=permission,
                resource=resource.to_dict(),
                error=str(exc),
            )
            return AuthorizationDecision(False, permission, DecisionReason.STORE_FAILED, resource)

    async def _check(
        self,
        caller_roles: AbstractSet[int],
        permission: str,
        resource: ResolvedResource,
    ) -> AuthorizationDecision:
        roles = sorted(caller_roles)

        if not resource.is_global:
            allowed_by_override = False
            for role_id in roles:
                effect = await self.store.get_resource_override(
                    role_id, resource.resource_type, resource.resource_id, permission
                )
                if effect is OverrideEffect.DENY:
                    return AuthorizationDecision(False, permission, DecisionReason.OVERRIDE_DENY, resource)
                if effect is OverrideEffect.ALLOW:
                    allowed_by_override = True
            if allowed_by_override:
                return AuthorizationDecision(True, permission, DecisionReason.OVERRIDE_ALLOW, resource)

        for role_id in roles:
            if await self.store.get_global_grant(role_id, permission):
                return AuthorizationDecision(True, permission, DecisionReason.GLOBAL_GRANT, resource)

        return AuthorizationDecision(False, permission, DecisionReason.NO_GRANT, resource)

    async def authorize_request(
        self,
        caller_roles: AbstractSet[int],
        declarations: Iterable[PermissionDeclaration],
        context: RequestContext,
    ) -> AuthorizationDecision:
        """
        AND over all declarations.

        Returns the first denial, or the last allowing decision when every
        declaration passes.
        """
        decision = None
        for declaration in declarations:
            decision = await self.evaluate(caller_roles, declaration, context)
            if not decision.allowed:
                return decision
        if decision is None:
            return AuthorizationDecision(True, "", DecisionReason.NO_DECLARATIONS)
        return decision

    async def authorize(
        self,
        caller_roles: AbstractSet[int],
        declarations: Iterable[PermissionDeclaration],
        context: RequestContext,
    ) -> bool:
        decision = await self.authorize_request(caller_roles, declarations, context)
        return decision.allowed
