"""
通知サービス
アプリ内通知の作成・取得・既読管理と、保持期間を過ぎた通知の削除を担当
"""
import json
import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.config import settings
from app.models.notification import Notification

logger = logging.getLogger(__name__)


def retention_cutoff(now: Optional[datetime] = None) -> datetime:
    """この日時より古い通知は削除対象"""
    now = now or datetime.utcnow()
    return now - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)


class NotificationService:
    """通知サービスクラス"""

    def __init__(self, db: Session):
        self.db = db

    def create_notification(
        self,
        user_id: str,
        message: str,
        type: str = "info",
        title: Optional[str] = None,
        duration: Optional[int] = None,
        action_url: Optional[str] = None,
        action_text: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> Notification:
        """通知を作成"""
        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            is_read=False,
            duration=duration,
            action_url=action_url,
            action_text=action_text,
            metadata_json=json.dumps(metadata, ensure_ascii=False) if metadata else None,
        )
        self.db.add(notification)
        if commit:
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def notify_safely(self, user_id: str, message: str, type: str = "info", title: Optional[str] = None) -> Optional[Notification]:
        """
        付随的な通知を作成する

        失敗しても呼び出し元の処理は巻き戻さない（ログのみ）。
        """
        try:
            return self.create_notification(user_id=user_id, message=message, type=type, title=title)
        except Exception as e:
            self.db.rollback()
            logger.error(f"通知作成エラー: user_id={user_id}, error={e}")
            return None

    def get_notifications(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> Tuple[List[Notification], Dict[str, Any]]:
        """ユーザーの通知を新しい順に取得（ページネーション付き）"""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))

        total = query.count()
        notifications = (
            query.order_by(Notification.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        total_pages = math.ceil(total / limit) if limit else 0
        pagination = {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        }
        return notifications, pagination

    def get_user_notification(self, user_id: str, notification_id: str) -> Optional[Notification]:
        """ユーザー所有の通知を1件取得"""
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    def mark_as_read(self, notification: Notification, read: bool = True) -> Notification:
        """既読・未読を切り替え"""
        notification.is_read = read
        notification.read_at = datetime.utcnow() if read else None
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def delete_notification(self, notification: Notification) -> None:
        self.db.delete(notification)
        self.db.commit()

    def delete_all(self, user_id: str, read_only: bool = False) -> int:
        """ユーザーの通知を一括削除（read_only=Trueなら既読のみ）"""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if read_only:
            query = query.filter(Notification.is_read.is_(True))
        deleted = query.delete(synchronize_session=False)
        self.db.commit()
        return deleted

    def cleanup_old_notifications(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        保持期間（デフォルト15日）を過ぎた通知を削除

        カットオフより厳密に古いレコードだけを削除するため、
        何度実行しても結果は変わらない。
        """
        cutoff = retention_cutoff(now)
        deleted = (
            self.db.query(Notification)
            .filter(Notification.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()

        if deleted:
            logger.info(f"🧹 古い通知を削除: {deleted}件（{cutoff.isoformat()} より前）")

        return {
            "success": True,
            "deleted_count": deleted,
            "deleted_before": cutoff.isoformat(),
        }

    def get_cleanup_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """削除予定件数と全体の既読・未読件数"""
        cutoff = retention_cutoff(now)
        to_delete = (
            self.db.query(Notification)
            .filter(Notification.created_at < cutoff)
            .count()
        )
        total = self.db.query(Notification).count()
        unread = self.db.query(Notification).filter(Notification.is_read.is_(False)).count()

        return {
            "cleanup_info": {
                "cutoff_date": cutoff.isoformat(),
                "notifications_to_delete": to_delete,
                "days_old": settings.NOTIFICATION_RETENTION_DAYS,
            },
            "stats": {
                "total": total,
                "unread": unread,
                "read": total - unread,
            },
        }


def cleanup_old_notifications(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """古い通知を削除するヘルパー関数"""
    service = NotificationService(db)
    return service.cleanup_old_notifications(now=now)
