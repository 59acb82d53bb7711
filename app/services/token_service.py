"""
ワンタイムトークンサービス
パスワードリセット・メール認証トークンの発行、検証、消費を担当

- 発行時に同じ (ユーザー, 用途) の既存トークンを削除してから作成する（同一トランザクション）
- 期限切れトークンは検証時に削除する（バックグラウンド削除はしない）
- 平文トークンは返却のみで、DBにはSHA-256ハッシュを保存する
"""
import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import ExpiredTokenError, InvalidTokenError
from app.models.auth_token import (
    AuthToken,
    PURPOSE_EMAIL_VERIFICATION,
    PURPOSE_PASSWORD_RESET,
)
from app.models.user import User

logger = logging.getLogger(__name__)

# 32バイト = 256bitのエントロピー
TOKEN_BYTES = 32


def token_lifetime(purpose: str) -> timedelta:
    """用途ごとの有効期間"""
    if purpose == PURPOSE_PASSWORD_RESET:
        return timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    if purpose == PURPOSE_EMAIL_VERIFICATION:
        return timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
    raise ValueError(f"未対応のトークン用途です: {purpose}")


def hash_token(plain_token: str) -> str:
    return hashlib.sha256(plain_token.encode()).hexdigest()


class TokenService:
    """ワンタイムトークンサービスクラス"""

    def __init__(self, db: Session):
        self.db = db

    def issue(self, user: User, purpose: str, now: Optional[datetime] = None) -> str:
        """
        トークンを発行する

        Parameters:
            user: 所有ユーザー
            purpose: 用途（password_reset / email_verification）
            now: 発行時刻（テスト用）

        Returns:
            平文トークン（メールのリンクに埋め込む）
        """
        now = now or datetime.utcnow()
        expires_at = now + token_lifetime(purpose)
        plain_token = secrets.token_urlsafe(TOKEN_BYTES)

        # 同時発行でユニーク制約に負けた場合は1回だけやり直す
        for attempt in range(2):
            try:
                self._delete_for_owner(user.id, purpose)
                self.db.add(
                    AuthToken(
                        id=str(uuid.uuid4()),
                        user_id=user.id,
                        purpose=purpose,
                        token_hash=hash_token(plain_token),
                        expires_at=expires_at,
                        created_at=now,
                    )
                )
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                if attempt == 1:
                    raise
                logger.warning(f"トークン発行の競合を検出、再試行します: user_id={user.id}, purpose={purpose}")

        logger.info(f"トークン発行: user_id={user.id}, purpose={purpose}, expires_at={expires_at.isoformat()}")
        return plain_token

    def validate(self, plain_token: str, purpose: str, now: Optional[datetime] = None) -> AuthToken:
        """
        トークンを検証する（消費はしない）

        期限切れの場合はレコードを削除して ExpiredTokenError を送出する。
        """
        record = (
            self.db.query(AuthToken)
            .filter(
                AuthToken.token_hash == hash_token(plain_token),
                AuthToken.purpose == purpose,
            )
            .first()
        )
        if record is None:
            raise InvalidTokenError()

        now = now or datetime.utcnow()
        if record.expires_at <= now:
            user_id = record.user_id
            self.db.delete(record)
            self.db.commit()
            logger.info(f"期限切れトークンを削除: user_id={user_id}, purpose={purpose}")
            raise ExpiredTokenError()

        return record

    def consume(
        self,
        plain_token: str,
        purpose: str,
        effect: Optional[Callable[[User], None]] = None,
        now: Optional[datetime] = None,
    ) -> User:
        """
        トークンを消費する

        検証に成功したら effect(user) を適用し、同じユーザー・用途の
        トークンをすべて削除して1トランザクションでコミットする。
        """
        record = self.validate(plain_token, purpose, now=now)
        user = record.user

        if effect is not None:
            effect(user)

        self._delete_for_owner(user.id, purpose)
        self.db.commit()

        logger.info(f"トークン消費: user_id={user.id}, purpose={purpose}")
        return user

    def revoke(self, plain_token: str) -> None:
        """発行直後のトークンを取り消す（メール送信失敗時など）"""
        self.db.query(AuthToken).filter(
            AuthToken.token_hash == hash_token(plain_token)
        ).delete(synchronize_session=False)
        self.db.commit()

    def _delete_for_owner(self, user_id: str, purpose: str) -> int:
        return (
            self.db.query(AuthToken)
            .filter(AuthToken.user_id == user_id, AuthToken.purpose == purpose)
            .delete(synchronize_session=False)
        )
