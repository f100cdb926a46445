"""
Tests for the admin console endpoints.
"""
import pytest

from justchiro.models import AuditLog, User

from tests.factories import bearer

pytestmark = pytest.mark.asyncio


class TestAccess:

    async def test_requires_credential(self, client):
        resp = await client.get("/api/admin/dashboard")
        assert resp.status_code == 401
        assert resp.json()["error"]["kind"] == "MissingCredential"

    async def test_requires_admin_role(self, client, make_user):
        editor = await make_user(email="editor@justchiro.com", role="editor")
        resp = await client.get("/api/admin/dashboard", headers=bearer(editor))
        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["kind"] == "InsufficientPrivilege"
        assert error["message"] == "Access denied. Admin privileges required."

    async def test_write_requires_admin_role(self, client, make_user, make_listing, count_rows):
        editor = await make_user(email="editor@justchiro.com", role="editor")
        listing = await make_listing()
        resp = await client.delete(f"/api/chiropractors/{listing.id}", headers=bearer(editor))
        assert resp.status_code == 403
        assert await count_rows(AuditLog) == 0


class TestDashboard:

    async def test_stats(self, client, auth_headers, make_listing, make_post):
        await make_listing(state="Texas")
        await make_listing(state="Texas")
        await make_listing(state="Ohio", is_active=False)
        await make_post(title="Popular Post Title", views=40)
        await make_post(title="Quiet Post Title", views=2)
        await make_post(title="Draft Post Title", is_published=False, views=100)

        resp = await client.get("/api/admin/dashboard", headers=auth_headers)
        data = resp.json()["data"]
        assert data["totalChiropractors"] == 2
        assert data["totalBlogPosts"] == 2
        assert data["totalUsers"] == 1
        assert data["totalBlogViews"] == 142
        assert data["topStates"] == [{"state": "Texas", "count": 2}]
        assert [p["title"] for p in data["popularPosts"]] == ["Popular Post Title", "Quiet Post Title"]
        assert data["recentActivity"] == []

    async def test_lists_include_hidden_rows(self, client, auth_headers, make_listing, make_post):
        await make_listing(is_active=False)
        await make_post(title="Draft Post Title", is_published=False)

        listings = (await client.get("/api/admin/chiropractors", headers=auth_headers)).json()["data"]
        posts = (await client.get("/api/admin/blog-posts", headers=auth_headers)).json()["data"]
        assert listings["pagination"]["total"] == 1
        assert posts["posts"][0]["is_published"] is False
        assert posts["pagination"]["limit"] == 20


class TestTogglePublish:

    async def test_round_trip(self, client, auth_headers, make_post, audit_entries):
        post = await make_post(title="Toggle Me Please")

        resp = await client.post(f"/api/admin/blog-posts/{post.id}/toggle-publish", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Blog post unpublished successfully"
        unpublished = resp.json()["data"]["post"]
        assert unpublished["is_published"] is False
        assert unpublished["published_at"] is None
        assert (await client.get(f"/api/blog/{post.id}")).status_code == 404

        resp = await client.post(f"/api/admin/blog-posts/{post.id}/toggle-publish", headers=auth_headers)
        published = resp.json()["data"]["post"]
        assert published["is_published"] is True
        assert published["published_at"] is not None

        entries = await audit_entries()
        assert [e.action for e in entries] == ["unpublish", "publish"]
        assert entries[0].old_values == {"is_published": True}
        assert entries[0].new_values == {"is_published": False}

    async def test_missing_post(self, client, auth_headers, count_rows):
        resp = await client.post("/api/admin/blog-posts/9999/toggle-publish", headers=auth_headers)
        assert resp.status_code == 404
        assert await count_rows(AuditLog) == 0


class TestUsers:

    async def test_list_has_no_password_hash(self, client, auth_headers):
        resp = await client.get("/api/admin/users", headers=auth_headers)
        users = resp.json()["data"]["users"]
        assert len(users) == 1
        assert "hashed_password" not in users[0]

    async def test_create_user(self, client, auth_headers, audit_entries):
        payload = {"email": "New.Admin@JustChiro.com", "password": "Welcome123", "name": "New Admin"}
        resp = await client.post("/api/admin/users", json=payload, headers=auth_headers)
        assert resp.status_code == 201
        user = resp.json()["data"]["user"]
        assert user["email"] == "new.admin@justchiro.com"
        assert user["role"] == "admin"

        entry = (await audit_entries("create_user"))[0]
        assert entry.entity_id == user["id"]
        assert entry.old_values is None
        assert "hashed_password" not in entry.new_values

        login = await client.post("/api/auth/login", json={"email": "new.admin@justchiro.com", "password": "Welcome123"})
        assert login.status_code == 200

    async def test_create_duplicate_email(self, client, auth_headers, admin_user):
        payload = {"email": admin_user.email, "password": "Welcome123", "name": "Copy"}
        resp = await client.post("/api/admin/users", json=payload, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["message"] == "Email already exists"

    async def test_create_validation(self, client, auth_headers, count_rows):
        resp = await client.post("/api/admin/users", json={"email": "bad", "password": "short"}, headers=auth_headers)
        assert resp.status_code == 400
        fields = [v["field"] for v in resp.json()["error"]["details"]["violations"]]
        assert fields == ["email", "password", "name"]
        assert await count_rows(User) == 1

    async def test_cannot_deactivate_self(self, client, auth_headers, admin_user, count_rows):
        resp = await client.post(f"/api/admin/users/{admin_user.id}/toggle-active", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Cannot deactivate your own account"
        assert await count_rows(AuditLog) == 0

    async def test_toggle_other_user(self, client, auth_headers, make_user, audit_entries):
        other = await make_user(email="other@justchiro.com")

        resp = await client.post(f"/api/admin/users/{other.id}/toggle-active", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "User deactivated successfully"
        assert resp.json()["data"]["user"]["is_active"] is False

        entry = (await audit_entries())[0]
        assert entry.action == "deactivate_user"
        assert entry.entity_id == other.id
        assert entry.old_values == {"is_active": True}
        assert entry.new_values == {"is_active": False}

        # The deactivated account's existing token stops working
        resp = await client.get("/api/auth/me", headers=bearer(other))
        assert resp.status_code == 401
        assert resp.json()["error"]["kind"] == "DeactivatedAccount"

        resp = await client.post(f"/api/admin/users/{other.id}/toggle-active", headers=auth_headers)
        assert resp.json()["data"]["user"]["is_active"] is True
        assert (await audit_entries())[-1].action == "activate_user"

    async def test_toggle_missing_user(self, client, auth_headers):
        resp = await client.post("/api/admin/users/9999/toggle-active", headers=auth_headers)
        assert resp.status_code == 404


class TestAuditLog:

    async def test_entries_include_actor(self, client, auth_headers, admin_user, make_listing):
        listing = await make_listing()
        await client.delete(f"/api/chiropractors/{listing.id}", headers=auth_headers)

        resp = await client.get("/api/admin/audit-log", headers=auth_headers)
        data = resp.json()["data"]
        assert data["pagination"]["total"] == 1
        log = data["logs"][0]
        assert log["action"] == "delete"
        assert log["user_email"] == admin_user.email
        assert log["user_name"] == admin_user.name


class TestExport:

    async def test_export_chiropractors(self, client, auth_headers, make_listing):
        await make_listing(is_active=False)
        resp = await client.get("/api/admin/export/chiropractors", headers=auth_headers)
        assert resp.status_code == 200
        disposition = resp.headers["content-disposition"]
        assert disposition.startswith("attachment; filename=chiropractors-export-")
        assert disposition.endswith(".json")
        assert len(resp.json()) == 1

    async def test_export_blog_posts(self, client, auth_headers, make_post):
        await make_post(title="Exported Post Title")
        resp = await client.get("/api/admin/export/blog-posts", headers=auth_headers)
        assert [p["title"] for p in resp.json()] == ["Exported Post Title"]

    async def test_invalid_type(self, client, auth_headers):
        resp = await client.get("/api/admin/export/users", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid export type"
