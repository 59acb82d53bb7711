"""
ユーザー管理サービス
メール未確認アカウントの定期削除などを担当
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)


def cleanup_unverified_users(db: Session, now: Optional[datetime] = None) -> int:
    """
    保持期間（デフォルト7日）を過ぎてもメール未確認のアカウントを削除

    関連データもORMのカスケードで削除するため1件ずつ削除する。

    Returns:
        削除件数
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=settings.UNVERIFIED_ACCOUNT_RETENTION_DAYS)

    users = (
        db.query(User)
        .filter(User.email_verified.is_(None), User.created_at < cutoff)
        .all()
    )
    for user in users:
        db.delete(user)
    db.commit()

    logger.info(f"🧹 メール未確認アカウントを削除: {len(users)}件（{cutoff.isoformat()} より前に登録）")
    return len(users)


def run_unverified_cleanup() -> int:
    """
    専用セッションでメール未確認アカウントの削除を実行

    一時的な接続エラーはリトライし、それ以外の例外は呼び出し元に送出する。
    """
    from app.database import SessionLocal, get_db_client
    from app.resilience import with_retry

    db = SessionLocal()
    try:
        def sweep():
            try:
                return cleanup_unverified_users(db)
            except Exception:
                db.rollback()
                raise

        return with_retry(sweep, client=get_db_client())
    finally:
        db.close()
