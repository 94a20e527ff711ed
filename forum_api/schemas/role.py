"""
Role Schemas
Roles, permission overrides and user role assignments
"""

from typing import List, Optional
from pydantic import Field, field_validator

from forum_api.core.rbac import ALL_PERMISSIONS, OverrideEffect, ResourceType
from forum_api.schemas.base import BaseSchema, BaseResponseSchema


def _known_permissions(permissions: List[str]) -> List[str]:
    unknown = [p for p in permissions if p not in ALL_PERMISSIONS]
    if unknown:
        raise ValueError(f"Unknown permissions: {unknown}")
    return sorted(set(permissions))


class RoleCreate(BaseSchema):
    """Custom role; system roles are seeded, never created through the API"""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list, description="Global permissions granted to the role")

    @field_validator("permissions")
    @classmethod
    def known_permissions(cls, v):
        return _known_permissions(v)


class RoleUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class RolePermissionsUpdate(BaseSchema):
    permissions: List[str]

    @field_validator("permissions")
    @classmethod
    def known_permissions(cls, v):
        return _known_permissions(v)


class RolePermissionsRead(BaseSchema):
    role_id: int
    permissions: List[str]
    implicit_all: bool = Field(False, description="Admin roles hold every global permission")


class RoleRead(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    role_type: str
    is_system_role: bool = False
    granted_permissions: List[str] = Field(default_factory=list)


class OverrideUpsert(BaseSchema):
    resource_type: ResourceType
    resource_id: int = Field(..., gt=0)
    permission: str
    effect: OverrideEffect

    @field_validator("permission")
    @classmethod
    def known_permission(cls, v):
        if v not in ALL_PERMISSIONS:
            raise ValueError(f"Unknown permission: {v}")
        return v

    @field_validator("resource_type")
    @classmethod
    def scoped_resource_only(cls, v):
        if v == ResourceType.NONE or v == ResourceType.NONE.value:
            raise ValueError("Overrides must target a concrete resource type")
        return v


class OverrideRead(BaseResponseSchema):
    role_id: int
    resource_type: str
    resource_id: int
    permission: str
    effect: str


class UserRoleAssign(BaseSchema):
    role_id: int = Field(..., gt=0)


class UserRoleRead(BaseResponseSchema):
    user_id: str
    role_id: int


class UserCleanupResult(BaseSchema):
    user_id: str
    result: str
    removed: int = 0
