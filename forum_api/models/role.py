"""
Role Models
Roles, their global permission grants, per-resource overrides and user assignments
"""

from sqlalchemy import Column, String, Text, Boolean, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from forum_api.core.rbac import RoleType
from forum_api.models.base import BaseModel


class Role(BaseModel):
    """Forum role. Admin roles implicitly hold every global permission (see SQLRoleStore)."""
    __tablename__ = "roles"

    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    role_type = Column(String(20), default=RoleType.CUSTOM.value, nullable=False, index=True)
    is_system_role = Column(Boolean, default=False, nullable=False)

    permissions = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Role(name='{self.name}', role_type='{self.role_type}')>"

    @property
    def granted_permissions(self) -> list[str]:
        return sorted(p.permission for p in self.permissions or [])


class RolePermission(BaseModel):
    """Global (resource-independent) permission held by a role"""
    __tablename__ = "role_permissions"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission = Column(String(64), nullable=False)

    role = relationship("Role", back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("role_id", "permission", name="uq_role_permission"),
    )

    def __repr__(self):
        return f"<RolePermission(role_id={self.role_id}, permission='{self.permission}')>"


class PermissionOverride(BaseModel):
    """Explicit allow/deny of a permission for one role on one resource"""
    __tablename__ = "permission_overrides"

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    resource_type = Column(String(20), nullable=False)
    resource_id = Column(Integer, nullable=False)
    permission = Column(String(64), nullable=False)
    effect = Column(String(10), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "role_id", "resource_type", "resource_id", "permission",
            name="uq_permission_override",
        ),
        Index("ix_override_resource", "resource_type", "resource_id"),
    )

    def __repr__(self):
        return (
            f"<PermissionOverride(role_id={self.role_id}, {self.resource_type}:{self.resource_id}, "
            f"{self.permission}={self.effect})>"
        )


class UserRole(BaseModel):
    """Role assignment for a host-platform user id"""
    __tablename__ = "user_roles"

    user_id = Column(String(64), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)

    role = relationship("Role", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )

    def __repr__(self):
        return f"<UserRole(user_id='{self.user_id}', role_id={self.role_id})>"
