"""
Tests for account cleanup
"""

from unittest.mock import AsyncMock, patch

import pytest

from forum_api.repositories.role import role_repository
from forum_api.services.user_cleanup import CleanupResult, CleanupStatus, remove_user_roles


class TestRemoveUserRoles:
    @pytest.mark.asyncio
    async def test_removes_assignments(self, db, seeded):
        result = await remove_user_roles(db, "alice")

        assert result == CleanupResult(CleanupStatus.REMOVED, 1)
        assert await role_repository.find_by_user_id(db, "alice") == []

    @pytest.mark.asyncio
    async def test_other_users_untouched(self, db, seeded):
        await remove_user_roles(db, "alice")

        roles = await role_repository.find_by_user_id(db, "bob")
        assert [role.id for role in roles] == [seeded["member"]]

    @pytest.mark.asyncio
    async def test_unknown_user_is_a_no_op(self, db, seeded):
        result = await remove_user_roles(db, "ghost")

        assert result.status is CleanupStatus.ABSENT
        assert result.removed == 0

    @pytest.mark.asyncio
    async def test_second_cleanup_reports_absent(self, db, seeded):
        await remove_user_roles(db, "mod")
        result = await remove_user_roles(db, "mod")
        assert result.status is CleanupStatus.ABSENT

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        with patch.object(role_repository, "delete_user_roles", AsyncMock(side_effect=ConnectionError("down"))):
            with pytest.raises(ConnectionError):
                await remove_user_roles(AsyncMock(), "alice")
