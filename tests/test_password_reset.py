"""
パスワードリセットのテスト
"""

from datetime import datetime, timedelta

from app.auth import FORGOT_PASSWORD_MESSAGE, PASSWORD_TOO_SHORT
from app.models.auth_token import AuthToken, PURPOSE_PASSWORD_RESET
from app.models.user import User
from tests.conftest import TEST_PASSWORD, extract_token

NEW_PASSWORD = "NewPassword456"


def request_reset(client, sent_emails, email="test@example.com") -> str:
    response = client.post("/auth/forgot-password", json={"email": email})
    assert response.status_code == 200
    return extract_token(sent_emails[-1])


class TestForgotPassword:
    """パスワードリセット要求のテスト"""

    def test_sends_reset_email(self, client, test_user, sent_emails):
        response = client.post("/auth/forgot-password", json={"email": "test@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
        assert "/auth/reset-password?token=" in sent_emails[-1]["html"]

    def test_unknown_email_returns_same_response(self, client, sent_emails):
        """未登録でも同じレスポンス（メールは送らない）"""
        response = client.post("/auth/forgot-password", json={"email": "unknown@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
        assert sent_emails == []

    def test_oauth_account_is_rejected(self, client, db_session, sent_emails):
        db_session.add(User(id="oauth-user", email="oauth@example.com", provider="google"))
        db_session.commit()

        response = client.post("/auth/forgot-password", json={"email": "oauth@example.com"})
        assert response.status_code == 400
        assert sent_emails == []

        db_session.expire_all()
        assert db_session.query(AuthToken).count() == 0

    def test_delivery_failure_revokes_token(self, client, db_session, test_user, monkeypatch):
        import resend

        def fail(params):
            raise RuntimeError("Resend is unavailable")

        monkeypatch.setattr(resend.Emails, "send", fail)

        response = client.post("/auth/forgot-password", json={"email": "test@example.com"})
        assert response.status_code == 500

        db_session.expire_all()
        assert (
            db_session.query(AuthToken)
            .filter(AuthToken.purpose == PURPOSE_PASSWORD_RESET)
            .count()
            == 0
        )

    def test_second_request_invalidates_first_link(self, client, test_user, sent_emails):
        first = request_reset(client, sent_emails)
        second = request_reset(client, sent_emails)

        assert client.get("/auth/reset-password/validate", params={"token": first}).status_code == 400
        assert client.get("/auth/reset-password/validate", params={"token": second}).status_code == 200


class TestResetPassword:
    """パスワードリセット実行のテスト"""

    def test_validate_does_not_consume(self, client, test_user, sent_emails):
        token = request_reset(client, sent_emails)

        for _ in range(2):
            response = client.get("/auth/reset-password/validate", params={"token": token})
            assert response.status_code == 200
            assert response.json()["user"]["email"] == "test@example.com"

    def test_reset_password(self, client, db_session, test_user, sent_emails):
        token = request_reset(client, sent_emails)

        response = client.post("/auth/reset-password", json={"token": token, "password": NEW_PASSWORD})
        assert response.status_code == 200

        # 新しいパスワードでログインでき、古いパスワードでは失敗する
        assert client.post(
            "/auth/login", json={"email": "test@example.com", "password": NEW_PASSWORD}
        ).status_code == 200
        assert client.post(
            "/auth/login", json={"email": "test@example.com", "password": TEST_PASSWORD}
        ).status_code == 401

        # 確認メールと通知
        assert sent_emails[-1]["subject"] == "【BlissLearn】パスワードが変更されました"
        db_session.expire_all()
        user = db_session.query(User).filter(User.email == "test@example.com").first()
        assert any(n.title == "パスワード変更" for n in user.notifications)

    def test_reset_token_is_single_use(self, client, test_user, sent_emails):
        token = request_reset(client, sent_emails)
        assert client.post(
            "/auth/reset-password", json={"token": token, "password": NEW_PASSWORD}
        ).status_code == 200

        response = client.post("/auth/reset-password", json={"token": token, "password": "Another789x"})
        assert response.status_code == 400
        assert response.json()["detail"] == "リセットリンクが無効です"

    def test_weak_password_keeps_token(self, client, test_user, sent_emails):
        """ポリシー違反ならトークンは消費しない"""
        token = request_reset(client, sent_emails)

        response = client.post("/auth/reset-password", json={"token": token, "password": "Ab1"})
        assert response.status_code == 400
        assert response.json()["detail"] == PASSWORD_TOO_SHORT

        assert client.get("/auth/reset-password/validate", params={"token": token}).status_code == 200

    def test_expired_token(self, client, db_session, test_user, sent_emails):
        token = request_reset(client, sent_emails)
        db_session.query(AuthToken).filter(AuthToken.purpose == PURPOSE_PASSWORD_RESET).update(
            {AuthToken.expires_at: datetime.utcnow() - timedelta(minutes=1)}
        )
        db_session.commit()

        response = client.post("/auth/reset-password", json={"token": token, "password": NEW_PASSWORD})
        assert response.status_code == 400
        assert response.json()["detail"] == "リセットリンクの有効期限が切れています"

        # 2回目は削除済みなので無効扱い
        response = client.get("/auth/reset-password/validate", params={"token": token})
        assert response.json()["detail"] == "リセットリンクが無効です"

    def test_confirmation_email_failure_does_not_roll_back(self, client, test_user, sent_emails, monkeypatch):
        import resend

        token = request_reset(client, sent_emails)

        def fail(params):
            raise RuntimeError("Resend is unavailable")

        monkeypatch.setattr(resend.Emails, "send", fail)

        response = client.post("/auth/reset-password", json={"token": token, "password": NEW_PASSWORD})
        assert response.status_code == 200
        assert client.post(
            "/auth/login", json={"email": "test@example.com", "password": NEW_PASSWORD}
        ).status_code == 200
