"""
AuthToken Model - 期限付きワンタイムトークンテーブル
パスワードリセット・メール認証で共用する
"""

from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .user import User

# トークン用途
PURPOSE_PASSWORD_RESET = "password_reset"
PURPOSE_EMAIL_VERIFICATION = "email_verification"


class AuthToken(Base):
    """期限付きワンタイムトークンテーブル"""

    __tablename__ = "auth_tokens"
    # 1ユーザー・1用途につき有効なトークンは1つだけ
    __table_args__ = (
        UniqueConstraint("user_id", "purpose", name="uq_auth_token_user_purpose"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    purpose: Mapped[str] = mapped_column(String(50), nullable=False)
    # 平文トークンのSHA-256（平文は保存しない）
    token_hash: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )

    # Relationship
    user: Mapped["User"] = relationship("User", back_populates="auth_tokens")
