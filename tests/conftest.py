"""
テスト用の共通設定・フィクスチャ
"""

import os
import re
import pytest
import resend
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# テスト用の環境変数を設定（app.mainをインポートする前に設定）
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("RESEND_API_KEY", "test-resend-api-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.setdefault("CLEANUP_SECRET", "test-cleanup-secret")
os.environ.setdefault("CLEANUP_API_KEY", "test-cleanup-api-key")

from app.main import app
from app.database import DatabaseClient, get_db, get_db_client, Base
from app.services.cache_service import catalog_cache


# テスト用のインメモリSQLiteデータベース
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
test_db_client = DatabaseClient(engine=engine)

TEST_PASSWORD = "TestPassword123"
TOKEN_PATTERN = re.compile(r"token=([A-Za-z0-9_\-]+)")


def override_get_db():
    """テスト用のDBセッションを提供"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


def override_get_db_client():
    return test_db_client


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Resendへの送信を差し替え、送信内容を記録する"""
    sent = []

    def fake_send(params):
        sent.append(params)
        return {"id": f"test-email-{len(sent)}"}

    monkeypatch.setattr(resend.Emails, "send", fake_send)
    return sent


@pytest.fixture
def failing_email(monkeypatch):
    """Resendへの送信を常に失敗させる"""

    def fake_send(params):
        raise RuntimeError("Resend is unavailable")

    monkeypatch.setattr(resend.Emails, "send", fake_send)


def extract_token(email_params: dict) -> str:
    """メール本文のリンクからトークンを取り出す"""
    match = TOKEN_PATTERN.search(email_params["html"])
    assert match, "メール本文にトークン付きリンクがありません"
    return match.group(1)


@pytest.fixture(scope="function")
def db_session():
    """各テスト用のDBセッション"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """テスト用のAPIクライアント"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_client] = override_get_db_client
    catalog_cache.clear()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def test_user(client):
    """テスト用ユーザーを作成"""
    response = client.post(
        "/auth/register",
        json={
            "name": "テストユーザー",
            "email": "test@example.com",
            "password": TEST_PASSWORD,
        }
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(test_user):
    """認証ヘッダーを取得"""
    return {"Authorization": f"Bearer {test_user['token']}"}
