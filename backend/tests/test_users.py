"""Tests for user management endpoints."""

from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.models.session import UserSession
from backend.app.models.user import User
from backend.tests.conftest import auth


class TestListUsers:
    def test_admin_can_list_users(
        self, client: TestClient, admin_token: str, admin_user: User
    ) -> None:
        resp = client.get("/api/users", headers=auth(admin_token))
        assert resp.status_code == 200
        users = resp.json()["users"]
        assert any(u["id"] == str(admin_user.id) for u in users)
        assert all("hashed_password" not in u for u in users)

    def test_salesperson_cannot_list_users(
        self, client: TestClient, salesperson_token: str
    ) -> None:
        resp = client.get("/api/users", headers=auth(salesperson_token))
        assert resp.status_code == 403
        assert resp.json() == {"error": "Insufficient permissions"}

    def test_get_unknown_user_returns_404(
        self, client: TestClient, admin_token: str
    ) -> None:
        resp = client.get(f"/api/users/{uuid4()}", headers=auth(admin_token))
        assert resp.status_code == 404


class TestCreateUser:
    def test_admin_creates_storekeeper(self, client: TestClient, admin_token: str) -> None:
        resp = client.post(
            "/api/users",
            json={
                "name": "Store Keeper",
                "username": "Keeper1",
                "password": "Shelves123",
                "role": "storekeeper",
                "branch": "Bo",
            },
            headers=auth(admin_token),
        )
        assert resp.status_code == 201
        user = resp.json()["user"]
        assert user["username"] == "keeper1"
        assert user["role"] == "storekeeper"
        assert user["status"] == "Active"

    def test_duplicate_username_returns_409(
        self, client: TestClient, admin_token: str
    ) -> None:
        resp = client.post(
            "/api/users",
            json={"name": "Dup", "username": "TEST_ADMIN", "password": "Shelves123"},
            headers=auth(admin_token),
        )
        assert resp.status_code == 409


class TestUpdateUser:
    def test_self_update_via_profile(
        self, client: TestClient, salesperson_token: str
    ) -> None:
        resp = client.patch(
            "/api/users/profile/me",
            json={"name": "Renamed", "phone": "0711111111"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "Renamed"
        assert resp.json()["user"]["phone"] == "0711111111"

    def test_self_update_ignores_role(
        self, client: TestClient, salesperson_token: str, salesperson_user: User
    ) -> None:
        resp = client.put(
            f"/api/users/{salesperson_user.id}",
            json={"name": "Still Sales", "role": "admin"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "salesperson"

    def test_only_role_from_non_admin_is_400(
        self, client: TestClient, salesperson_token: str, salesperson_user: User
    ) -> None:
        resp = client.patch(
            f"/api/users/{salesperson_user.id}",
            json={"role": "admin"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 400

    def test_non_admin_cannot_edit_others(
        self, client: TestClient, salesperson_token: str, admin_user: User
    ) -> None:
        resp = client.patch(
            f"/api/users/{admin_user.id}",
            json={"name": "Hijacked"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 403

    def test_admin_changes_role(
        self, client: TestClient, admin_token: str, salesperson_user: User
    ) -> None:
        resp = client.patch(
            f"/api/users/{salesperson_user.id}",
            json={"role": "storekeeper"},
            headers=auth(admin_token),
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["role"] == "storekeeper"

    def test_deactivation_ends_sessions(
        self,
        client: TestClient,
        admin_token: str,
        salesperson_user: User,
        salesperson_token: str,
    ) -> None:
        resp = client.patch(
            f"/api/users/{salesperson_user.id}",
            json={"status": "Inactive"},
            headers=auth(admin_token),
        )
        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=auth(salesperson_token)).status_code == 401

    def test_username_clash_returns_409(
        self, client: TestClient, admin_token: str, salesperson_user: User
    ) -> None:
        resp = client.patch(
            f"/api/users/{salesperson_user.id}",
            json={"username": "test_admin"},
            headers=auth(admin_token),
        )
        assert resp.status_code == 409

    def test_password_change_allows_new_login(
        self, client: TestClient, salesperson_token: str
    ) -> None:
        resp = client.patch(
            "/api/users/profile/me",
            json={"password": "Fresh1234"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 200
        login = client.post(
            "/api/auth/login", json={"username": "test_sales", "password": "Fresh1234"}
        )
        assert login.status_code == 200


class TestDeleteUser:
    def test_admin_deletes_user(
        self,
        client: TestClient,
        db: Session,
        admin_token: str,
        salesperson_user: User,
        salesperson_token: str,
    ) -> None:
        user_id = salesperson_user.id
        resp = client.delete(f"/api/users/{user_id}", headers=auth(admin_token))
        assert resp.status_code == 204
        assert db.query(User).filter(User.id == user_id).first() is None
        assert db.query(UserSession).filter(UserSession.user_id == user_id).count() == 0

    def test_admin_cannot_delete_self(
        self, client: TestClient, admin_token: str, admin_user: User
    ) -> None:
        resp = client.delete(f"/api/users/{admin_user.id}", headers=auth(admin_token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cannot delete your own account"}
