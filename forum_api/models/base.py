"""
Base Model Classes
Common fields and functionality for all models
"""

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.sql import func
from forum_api.core.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class IntegerIdMixin:
    """Mixin for autoincrement integer primary key"""
    id = Column(Integer, primary_key=True, autoincrement=True)


class BaseModel(Base, IntegerIdMixin, TimestampMixin):
    """Base model with common fields"""
    __abstract__ = True
