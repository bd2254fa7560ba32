"""HTTP tests for the signed-in user's routes."""

import pytest

from conftest import admin_headers, bearer, login_user, register_user


@pytest.fixture
def approved_user(client):
    """Registers, approves and logs in a user; returns ``(user_id, token)``."""
    user_id = register_user(client).json()["data"]["id"]
    client.post(f"/api/admin/users/{user_id}/approve", headers=admin_headers(client))
    token = login_user(client).json()["data"]["token"]
    return user_id, token


class TestProfile:
    def test_profile_hides_password(self, client, approved_user):
        user_id, token = approved_user

        response = client.get("/api/user/profile", headers=bearer(token))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == user_id
        assert data["loginCount"] == 1
        assert data["subscriptionEndDate"] is not None
        assert data["accountAge"] == 0
        assert not any("password" in key.lower() for key in data)

    def test_update_name(self, client, approved_user):
        _, token = approved_user

        response = client.put("/api/user/profile", json={"name": "Alice Smith"}, headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Alice Smith"
        assert client.get("/api/user/profile", headers=bearer(token)).json()["data"]["name"] == "Alice Smith"

    def test_update_ignores_other_fields(self, client, approved_user):
        _, token = approved_user

        response = client.put(
            "/api/user/profile",
            json={"email": "mallory@x.com", "status": "approved"},
            headers=bearer(token),
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "alice@x.com"

    def test_profile_requires_token(self, client):
        response = client.get("/api/user/profile")

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_garbage_token(self, client):
        response = client.get("/api/user/profile", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


class TestDesignAccess:
    def test_approved_user_can_access(self, client, approved_user):
        _, token = approved_user

        response = client.get("/api/user/design-access", headers=bearer(token))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["canAccess"] is True
        assert data["subscriptionEndDate"] is not None

    def test_rejection_revokes_existing_token(self, client, approved_user):
        user_id, token = approved_user
        client.post(f"/api/admin/users/{user_id}/reject", json={"reason": "refund"}, headers=admin_headers(client))

        response = client.get("/api/user/design-access", headers=bearer(token))

        assert response.status_code == 403
        assert response.json()["data"] == {"status": "rejected", "isApproved": False}

    def test_deleted_user_token_is_unauthenticated(self, client, approved_user):
        user_id, token = approved_user
        client.delete(f"/api/admin/users/{user_id}", headers=admin_headers(client))

        response = client.get("/api/user/design-access", headers=bearer(token))

        assert response.status_code == 401

    def test_admin_token_is_not_a_user_token(self, client):
        headers = admin_headers(client)

        response = client.get("/api/user/profile", headers=headers)

        assert response.status_code == 401
