"""
Resource id resolution for permission declarations.

Turns a declaration plus the current request into the concrete resource the
permission check is scoped to. Lookups are read-only and idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from forum_api.core.exceptions import MissingResource, ResourceNotFound
from forum_api.core.rbac import (
    FromParentPost,
    FromParentThread,
    FromRequestBody,
    FromRouteParam,
    PermissionDeclaration,
    ResourceType,
)


class EntityLookup(Protocol):
    """Existence and parent lookups. ``None`` means the entity does not exist."""

    async def category_exists(self, category_id: int) -> bool:
        ...

    async def get_thread_category_id(self, thread_id: int) -> Optional[int]:
        ...

    async def get_post_thread_id(self, post_id: int) -> Optional[int]:
        ...


@dataclass(frozen=True)
class RequestContext:
    route_params: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedResource:
    resource_type: ResourceType
    resource_id: Optional[int] = None

    @property
    def is_global(self) -> bool:
        return self.resource_id is None

    def to_dict(self) -> dict[str, Any]:
        return {"resource_type": self.resource_type.value, "resource_id": self.resource_id}


GLOBAL_RESOURCE = ResolvedResource(ResourceType.NONE)


def parse_identifier(value: Any) -> Optional[int]:
    """Positive integer ids only; ASCII digit strings from paths and query strings are accepted."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        value = value.strip()
        if value.isascii() and value.isdigit():
            parsed = int(value)
            return parsed if parsed > 0 else None
    return None


def _read_identifier(source: Mapping[str, Any], key: str, origin: str) -> int:
    if key not in source or source[key] is None:
        raise MissingResource(f"{origin} '{key}' not found", parameter=key, origin=origin)
    identifier = parse_identifier(source[key])
    if identifier is None:
        raise MissingResource(
            f"{origin} '{key}' is not a valid identifier",
            parameter=key,
            origin=origin,
        )
    return identifier


async def _existing(resource_type: ResourceType, resource_id: int, lookup: EntityLookup) -> ResolvedResource:
    if resource_type is ResourceType.CATEGORY and not await lookup.category_exists(resource_id):
        raise ResourceNotFound(f"Category {resource_id} does not exist", category_id=resource_id)
    return ResolvedResource(resource_type, resource_id)


async def resolve_resource(
    declaration: PermissionDeclaration,
    context: RequestContext,
    lookup: EntityLookup,
) -> ResolvedResource:
    """
    Resolve the resource a declaration is scoped to.

    Raises:
        MissingResource: the request carries no usable identifier
        ResourceNotFound: the category, or a parent entity on the derivation path, does not exist
    """
    strategy = declaration.strategy

    if isinstance(strategy, FromRouteParam):
        resource_id = _read_identifier(context.route_params, strategy.name, "Route parameter")
        return await _existing(declaration.resource_type, resource_id, lookup)

    if isinstance(strategy, FromRequestBody):
        resource_id = _read_identifier(context.body, strategy.field, "Request body field")
        return await _existing(declaration.resource_type, resource_id, lookup)

    if isinstance(strategy, FromParentThread):
        thread_id = _read_identifier(context.route_params, strategy.route_param, "Thread id parameter")
        category_id = await lookup.get_thread_category_id(thread_id)
        if category_id is None:
            raise ResourceNotFound(f"Thread {thread_id} does not exist", thread_id=thread_id)
        return ResolvedResource(ResourceType.CATEGORY, category_id)

    if isinstance(strategy, FromParentPost):
        post_id = _read_identifier(context.route_params, strategy.route_param, "Post id parameter")
        thread_id = await lookup.get_post_thread_id(post_id)
        if thread_id is None:
            raise ResourceNotFound(f"Post {post_id} does not exist", post_id=post_id)
        category_id = await lookup.get_thread_category_id(thread_id)
        if category_id is None:
            raise ResourceNotFound(
                f"Thread {thread_id} of post {post_id} does not exist",
                post_id=post_id,
                thread_id=thread_id,
            )
        return ResolvedResource(ResourceType.CATEGORY, category_id)

    return GLOBAL_RESOURCE
