"""
ユーザー設定APIのテスト
"""

from app.auth import PASSWORD_NO_DIGIT
from app.models.notification import Notification
from app.models.user import User
from tests.conftest import TEST_PASSWORD


class TestProfile:
    def test_get_profile(self, client, auth_headers):
        response = client.get("/api/user/profile", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "test@example.com"
        assert data["name"] == "テストユーザー"
        assert data["provider"] == "credentials"
        assert data["email_verified"] is False

    def test_update_profile(self, client, auth_headers):
        response = client.put("/api/user/profile", headers=auth_headers, json={"name": "新しい名前"})
        assert response.status_code == 200
        assert response.json()["name"] == "新しい名前"

    def test_unauthorized(self, client):
        assert client.get("/api/user/profile").status_code == 401


class TestChangePassword:
    def test_change_password(self, client, auth_headers):
        response = client.put(
            "/api/user/password",
            headers=auth_headers,
            json={"current_password": TEST_PASSWORD, "new_password": "Changed789abc"},
        )
        assert response.status_code == 200

        assert client.post(
            "/auth/login", json={"email": "test@example.com", "password": "Changed789abc"}
        ).status_code == 200

    def test_wrong_current_password(self, client, auth_headers):
        response = client.put(
            "/api/user/password",
            headers=auth_headers,
            json={"current_password": "WrongPassword1", "new_password": "Changed789abc"},
        )
        assert response.status_code == 400

    def test_policy_applies(self, client, auth_headers):
        response = client.put(
            "/api/user/password",
            headers=auth_headers,
            json={"current_password": TEST_PASSWORD, "new_password": "NoDigitsHere"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == PASSWORD_NO_DIGIT


class TestDeleteAccount:
    def test_delete_account_cascades(self, client, db_session, auth_headers):
        client.post("/api/notifications", headers=auth_headers, json={"message": "通知", "type": "info"})

        response = client.delete("/api/user/account", headers=auth_headers)
        assert response.status_code == 200

        db_session.expire_all()
        assert db_session.query(User).count() == 0
        assert db_session.query(Notification).count() == 0

        # 削除後のトークンは無効
        assert client.get("/auth/me", headers=auth_headers).status_code == 401
