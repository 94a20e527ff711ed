"""
RBAC definitions and permission declarations for the forum.

A permission declaration is attached to an API action and names the
permission the caller needs, plus (optionally) which resource the permission
is scoped to and where in the request the resource id comes from.

    requires("canEditRoles")
    requires("canView", resource_type="category", resource_id_param="category_id")
    requires("canPost", resource_type="category", resource_id_body="category_id")
    requires("canReply", resource_type="category", resource_id_from_thread="thread_id")
    requires("canModerate", resource_type="category", resource_id_from_post="post_id")
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from forum_api.core.exceptions import InvalidDeclaration


class RoleType(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    DEFAULT = "default"
    GUEST = "guest"
    CUSTOM = "custom"


class ResourceType(str, Enum):
    CATEGORY = "category"
    THREAD = "thread"
    POST = "post"
    NONE = "none"


class OverrideEffect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


GLOBAL_PERMISSIONS: tuple[str, ...] = (
    "canAccessAdminTools",
    "canEditRoles",
    "canEditCategories",
)

CATEGORY_PERMISSIONS: tuple[str, ...] = (
    "canView",
    "canPost",
    "canReply",
    "canModerate",
)

ALL_PERMISSIONS: tuple[str, ...] = GLOBAL_PERMISSIONS + CATEGORY_PERMISSIONS


@dataclass(frozen=True)
class FromRouteParam:
    name: str


@dataclass(frozen=True)
class FromRequestBody:
    field: str


@dataclass(frozen=True)
class FromParentThread:
    """Category id derived from the thread id found in a route parameter."""
    route_param: str


@dataclass(frozen=True)
class FromParentPost:
    """Category id derived from post -> thread -> category."""
    route_param: str


@dataclass(frozen=True)
class NoResource:
    pass


ResolutionStrategy = Union[FromRouteParam, FromRequestBody, FromParentThread, FromParentPost, NoResource]

NO_RESOURCE = NoResource()

_STRATEGY_TYPES = (FromRouteParam, FromRequestBody, FromParentThread, FromParentPost, NoResource)
_PARENT_STRATEGIES = (FromParentThread, FromParentPost)


def _strategy_key(strategy: ResolutionStrategy) -> Optional[str]:
    if isinstance(strategy, FromRouteParam):
        return strategy.name
    if isinstance(strategy, FromRequestBody):
        return strategy.field
    if isinstance(strategy, _PARENT_STRATEGIES):
        return strategy.route_param
    return None


@dataclass(frozen=True)
class PermissionDeclaration:
    permission: str
    resource_type: ResourceType = ResourceType.NONE
    strategy: ResolutionStrategy = NO_RESOURCE

    def __post_init__(self) -> None:
        if not isinstance(self.permission, str) or not self.permission.strip():
            raise InvalidDeclaration("Permission name must be a non-empty string")

        resource_type = self.resource_type
        if resource_type is None:
            resource_type = ResourceType.NONE
        if not isinstance(resource_type, ResourceType):
            try:
                resource_type = ResourceType(resource_type)
            except ValueError:
                raise InvalidDeclaration(
                    f"Unknown resource type: {resource_type!r}",
                    permission=self.permission,
                ) from None
        object.__setattr__(self, "resource_type", resource_type)

        if not isinstance(self.strategy, _STRATEGY_TYPES):
            raise InvalidDeclaration(
                f"Unsupported resolution strategy: {self.strategy!r}",
                permission=self.permission,
            )

        scoped = resource_type is not ResourceType.NONE
        has_strategy = not isinstance(self.strategy, NoResource)
        if scoped and not has_strategy:
            raise InvalidDeclaration(
                "Resource type given without a resolution strategy",
                permission=self.permission,
                resource_type=resource_type.value,
            )
        if has_strategy and not scoped:
            raise InvalidDeclaration(
                "Resolution strategy given without a resource type",
                permission=self.permission,
            )
        if isinstance(self.strategy, _PARENT_STRATEGIES) and resource_type is not ResourceType.CATEGORY:
            raise InvalidDeclaration(
                "Parent derivation always yields a category id",
                permission=self.permission,
                resource_type=resource_type.value,
            )
        if has_strategy and not _strategy_key(self.strategy):
            raise InvalidDeclaration(
                "Resolution strategy needs a parameter name",
                permission=self.permission,
            )

    @property
    def is_global(self) -> bool:
        return self.resource_type is ResourceType.NONE

    def describe(self) -> str:
        if self.is_global:
            return self.permission
        return f"{self.permission} on {self.resource_type.value} via {type(self.strategy).__name__}({_strategy_key(self.strategy)})"


def requires(
    permission: str,
    *,
    resource_type: Union[ResourceType, str, None] = None,
    resource_id_param: Optional[str] = None,
    resource_id_body: Optional[str] = None,
    resource_id_from_thread: Optional[str] = None,
    resource_id_from_post: Optional[str] = None,
) -> PermissionDeclaration:
    """
    Build a declaration from keyword options.

    At most one of the resource id options may be given; the chosen one
    becomes the declaration's resolution strategy.
    """
    options = (
        (resource_id_param, FromRouteParam),
        (resource_id_body, FromRequestBody),
        (resource_id_from_thread, FromParentThread),
        (resource_id_from_post, FromParentPost),
    )
    supplied = [factory(value) for value, factory in options if value is not None]

    if len(supplied) > 1:
        raise InvalidDeclaration(
            "Only one resource id source may be declared",
            permission=permission,
            strategies=[type(s).__name__ for s in supplied],
        )

    strategy = supplied[0] if supplied else NO_RESOURCE
    return PermissionDeclaration(
        permission=permission,
        resource_type=resource_type if resource_type is not None else ResourceType.NONE,
        strategy=strategy,
    )
