"""
Role administration and content editing through the HTTP API
"""

import pytest

from forum_api.core.rbac import ALL_PERMISSIONS

API = "/api/v1"
FORBIDDEN = {"detail": "Insufficient permissions"}


async def create_role(client, headers, **payload):
    body = {"name": "Helper", "permissions": ["canView"], **payload}
    return await client.post(f"{API}/roles", json=body, headers=headers)


# ==================== Role lifecycle ====================

class TestRoleLifecycle:
    @pytest.mark.asyncio
    async def test_create_custom_role(self, client, auth_headers):
        response = await create_role(
            client,
            auth_headers("root"),
            description="Trusted members",
            permissions=["canView", "canModerate", "canView"],
        )

        assert response.status_code == 201
        role = response.json()
        assert role["name"] == "Helper"
        assert role["role_type"] == "custom"
        assert role["is_system_role"] is False
        assert role["granted_permissions"] == ["canModerate", "canView"]

    @pytest.mark.asyncio
    async def test_create_validation(self, client, auth_headers):
        duplicate = await create_role(client, auth_headers("root"), name="Member")
        unknown_permission = await create_role(client, auth_headers("root"), permissions=["canFly"])

        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "ROLE_NAME_TAKEN"
        assert unknown_permission.status_code == 422

    @pytest.mark.asyncio
    async def test_only_role_editors_create_roles(self, client, auth_headers):
        assert (await create_role(client, auth_headers("alice"))).status_code == 403
        assert (await create_role(client, auth_headers("mod"))).json() == FORBIDDEN

    @pytest.mark.asyncio
    async def test_new_role_grants_take_effect(self, client, auth_headers):
        role_id = (await create_role(client, auth_headers("root"))).json()["id"]
        await client.post(f"{API}/users/carol/roles", json={"role_id": role_id}, headers=auth_headers("root"))

        listing = await client.get(f"{API}/categories", headers=auth_headers("carol"))

        assert [c["id"] for c in listing.json()["items"]] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_rename_role(self, client, auth_headers):
        renamed = await client.put(f"{API}/roles/3", json={"name": "Regular"}, headers=auth_headers("root"))
        taken = await client.put(f"{API}/roles/3", json={"name": "Moderator"}, headers=auth_headers("root"))
        missing = await client.put(f"{API}/roles/999", json={"name": "Nobody"}, headers=auth_headers("root"))

        assert renamed.status_code == 200
        assert renamed.json()["name"] == "Regular"
        assert renamed.json()["granted_permissions"] == ["canReply", "canView"]
        assert taken.status_code == 409
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_custom_role(self, client, auth_headers):
        root = auth_headers("root")
        role_id = (await create_role(client, root)).json()["id"]
        await client.post(f"{API}/users/carol/roles", json={"role_id": role_id}, headers=root)
        await client.put(
            f"{API}/roles/{role_id}/overrides",
            json={"resource_type": "category", "resource_id": 1, "permission": "canPost", "effect": "allow"},
            headers=root,
        )

        deleted = await client.delete(f"{API}/roles/{role_id}", headers=root)

        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"role_id": role_id}
        assert (await client.get(f"{API}/roles/{role_id}", headers=root)).status_code == 404
        assert (await client.get(f"{API}/users/carol/roles", headers=root)).json() == []
        assert (await client.get(f"{API}/categories", headers=auth_headers("carol"))).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_system_roles_cannot_be_deleted(self, client, auth_headers):
        response = await client.delete(f"{API}/roles/3", headers=auth_headers("root"))
        missing = await client.delete(f"{API}/roles/999", headers=auth_headers("root"))

        assert response.status_code == 409
        assert response.json()["error"] == "PROTECTED_ROLE"
        assert missing.status_code == 404
        assert (await client.get(f"{API}/categories", headers=auth_headers("alice"))).json()["total"] == 4


# ==================== Global permissions ====================

class TestRolePermissions:
    @pytest.mark.asyncio
    async def test_read_permissions(self, client, auth_headers):
        member = await client.get(f"{API}/roles/3/permissions", headers=auth_headers("mod"))
        admin = await client.get(f"{API}/roles/1/permissions", headers=auth_headers("mod"))

        assert member.json() == {"role_id": 3, "permissions": ["canReply", "canView"], "implicit_all": False}
        assert admin.json()["implicit_all"] is True
        assert set(admin.json()["permissions"]) == set(ALL_PERMISSIONS)

    @pytest.mark.asyncio
    async def test_replacing_permissions_changes_decisions(self, client, auth_headers):
        thread = {"category_id": 1, "title": "Hello", "content": "First"}
        assert (await client.post(f"{API}/threads", json=thread, headers=auth_headers("alice"))).status_code == 403

        response = await client.put(
            f"{API}/roles/3/permissions",
            json={"permissions": ["canView", "canReply", "canPost"]},
            headers=auth_headers("root"),
        )

        assert response.status_code == 200
        assert response.json()["permissions"] == ["canPost", "canReply", "canView"]
        assert (await client.post(f"{API}/threads", json=thread, headers=auth_headers("alice"))).status_code == 201

    @pytest.mark.asyncio
    async def test_revoking_permissions(self, client, auth_headers):
        response = await client.put(
            f"{API}/roles/3/permissions", json={"permissions": ["canReply"]}, headers=auth_headers("root")
        )

        assert response.json()["permissions"] == ["canReply"]
        assert (await client.get(f"{API}/categories", headers=auth_headers("alice"))).json()["items"] == []

    @pytest.mark.asyncio
    async def test_admin_permissions_are_fixed(self, client, auth_headers):
        response = await client.put(
            f"{API}/roles/1/permissions", json={"permissions": ["canView"]}, headers=auth_headers("root")
        )

        assert response.status_code == 409
        assert response.json()["error"] == "PROTECTED_ROLE"
        assert (await client.get(f"{API}/roles", headers=auth_headers("root"))).status_code == 200

    @pytest.mark.asyncio
    async def test_permission_validation(self, client, auth_headers):
        unknown = await client.put(
            f"{API}/roles/3/permissions", json={"permissions": ["canFly"]}, headers=auth_headers("root")
        )
        as_moderator = await client.put(
            f"{API}/roles/3/permissions", json={"permissions": ["canView"]}, headers=auth_headers("mod")
        )

        assert unknown.status_code == 422
        assert as_moderator.status_code == 403


# ==================== Assignments ====================

class TestAssignments:
    @pytest.mark.asyncio
    async def test_users_holding_a_role(self, client, auth_headers):
        response = await client.get(f"{API}/roles/3/users", headers=auth_headers("mod"))
        missing = await client.get(f"{API}/roles/999/users", headers=auth_headers("mod"))

        assert [a["user_id"] for a in response.json()] == ["alice", "bob"]
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_roles_held_by_a_user(self, client, auth_headers):
        response = await client.get(f"{API}/users/alice/roles", headers=auth_headers("mod"))
        unknown = await client.get(f"{API}/users/nobody/roles", headers=auth_headers("mod"))
        as_member = await client.get(f"{API}/users/alice/roles", headers=auth_headers("alice"))

        assert [r["name"] for r in response.json()] == ["Member"]
        assert unknown.json() == []
        assert as_member.status_code == 403

    @pytest.mark.asyncio
    async def test_unassign_role(self, client, auth_headers):
        removed = await client.delete(f"{API}/users/alice/roles/3", headers=auth_headers("root"))
        again = await client.delete(f"{API}/users/alice/roles/3", headers=auth_headers("root"))

        assert removed.status_code == 200
        assert removed.json()["data"] == {"user_id": "alice", "role_id": 3}
        assert again.status_code == 404
        assert (await client.get(f"{API}/categories", headers=auth_headers("alice"))).json()["total"] == 0
        assert (await client.get(f"{API}/roles/3/users", headers=auth_headers("root"))).json()[0]["user_id"] == "bob"

    @pytest.mark.asyncio
    async def test_guest_role_stays_assigned(self, client, auth_headers):
        await client.post(f"{API}/users/carol/roles", json={"role_id": 4}, headers=auth_headers("root"))

        response = await client.delete(f"{API}/users/carol/roles/4", headers=auth_headers("root"))

        assert response.status_code == 409
        assert response.json()["error"] == "PROTECTED_ROLE"

    @pytest.mark.asyncio
    async def test_unassign_requires_edit_roles(self, client, auth_headers):
        response = await client.delete(f"{API}/users/bob/roles/3", headers=auth_headers("mod"))
        assert response.status_code == 403


# ==================== Editing content ====================

class TestContentEditing:
    @pytest.mark.asyncio
    async def test_author_edits_own_post(self, client, auth_headers):
        response = await client.put(f"{API}/posts/100", json={"content": "Edited"}, headers=auth_headers("alice"))

        assert response.status_code == 200
        assert response.json()["content"] == "Edited"
        assert response.json()["author_id"] == "alice"

    @pytest.mark.asyncio
    async def test_other_members_cannot_edit(self, client, auth_headers):
        post = await client.put(f"{API}/posts/100", json={"content": "Hijacked"}, headers=auth_headers("bob"))
        thread = await client.put(f"{API}/threads/10", json={"title": "Hijacked"}, headers=auth_headers("bob"))

        assert post.status_code == 403
        assert post.json() == FORBIDDEN
        assert thread.status_code == 403
        assert (await client.get(f"{API}/posts/100", headers=auth_headers("bob"))).json()["content"] == "Hi all"

    @pytest.mark.asyncio
    async def test_moderator_edits_in_moderated_category(self, client, auth_headers):
        post = await client.put(f"{API}/posts/100", json={"content": "Tidied"}, headers=auth_headers("mod"))
        thread = await client.put(f"{API}/threads/10", json={"title": "Welcome"}, headers=auth_headers("mod"))

        assert post.status_code == 200
        assert thread.status_code == 200
        assert thread.json()["title"] == "Welcome"

    @pytest.mark.asyncio
    async def test_moderation_deny_override_blocks_edits(self, client, auth_headers):
        post = await client.put(f"{API}/posts/500", json={"content": "Tidied"}, headers=auth_headers("mod"))
        thread = await client.put(f"{API}/threads/50", json={"title": "Closed"}, headers=auth_headers("mod"))
        own = await client.put(f"{API}/threads/50", json={"title": "Appeal again"}, headers=auth_headers("bob"))

        assert post.json() == FORBIDDEN
        assert thread.status_code == 403
        assert own.status_code == 200

    @pytest.mark.asyncio
    async def test_editing_missing_or_hidden_content_looks_forbidden(self, client, auth_headers):
        missing = await client.put(f"{API}/posts/12345", json={"content": "x"}, headers=auth_headers("root"))
        hidden = await client.put(f"{API}/threads/20", json={"title": "x"}, headers=auth_headers("alice"))

        assert missing.status_code == 403
        assert hidden.status_code == 403
        assert missing.json() == hidden.json() == FORBIDDEN

    @pytest.mark.asyncio
    async def test_guests_cannot_edit(self, client, guest_access):
        response = await client.put(f"{API}/posts/100", json={"content": "Anonymous"})
        assert response.status_code == 401
