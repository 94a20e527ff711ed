"""
Account cleanup for users removed from the host platform.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.repositories.role import role_repository

logger = structlog.get_logger()


class CleanupStatus(str, Enum):
    REMOVED = "removed"
    ABSENT = "absent"


@dataclass(frozen=True)
class CleanupResult:
    status: CleanupStatus
    removed: int = 0


async def remove_user_roles(db: AsyncSession, user_id: str) -> CleanupResult:
    """
    Drop every role assignment of a deleted account.

    A user with no assignments is a successful no-op. Store errors propagate.
    """
    removed = await role_repository.delete_user_roles(db, user_id)
    if removed == 0:
        logger.debug("No role assignments to remove", user_id=user_id)
        return CleanupResult(CleanupStatus.ABSENT)

    logger.info("Removed role assignments for deleted user", user_id=user_id, removed=removed)
    return CleanupResult(CleanupStatus.REMOVED, removed)
