"""
SQLAlchemy Models Package
Forum Database Models
"""

from forum_api.models.forum import Category, Thread, Post
from forum_api.models.role import Role, RolePermission, PermissionOverride, UserRole

__all__ = [
    "Category",
    "Thread",
    "Post",
    "Role",
    "RolePermission",
    "PermissionOverride",
    "UserRole",
]
