"""
通知関連のAPIエンドポイント
アプリ内通知の取得・作成・既読管理、古い通知の削除、テストメール送信
"""
import secrets
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.notification import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    NotificationUpdate,
)
from app.services.email_service import email_service
from app.services.notification_service import NotificationService, cleanup_old_notifications

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


# ============================================
# Pydantic スキーマ
# ============================================

class TestEmailRequest(BaseModel):
    """テストメール送信リクエスト"""
    email: EmailStr = Field(..., description="送信先メールアドレス")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "test@example.com"
            }
        }
    )


class TestEmailResponse(BaseModel):
    """テストメール送信レスポンス"""
    success: bool = Field(..., description="送信成功フラグ")
    message: str = Field(..., description="結果メッセージ")
    email_id: Optional[str] = Field(None, description="送信されたメールのID")
    error: Optional[str] = Field(None, description="エラーメッセージ（失敗時）")


class CleanupRequest(BaseModel):
    """古い通知削除リクエスト"""
    secret: str = Field(..., description="削除用シークレット")


def _ensure_cleanup_secret(provided: str) -> None:
    expected = settings.CLEANUP_SECRET
    # シークレット未設定なら常に拒否
    if not expected or not secrets.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="認証されていません"
        )


# ============================================
# エンドポイント
# ============================================

@router.get(
    "",
    response_model=NotificationListResponse,
    summary="通知一覧取得",
    description="""
ログインユーザーの通知を新しい順に取得します。

## クエリパラメータ
- **page**: ページ番号（1始まり）
- **limit**: 1ページあたりの件数
- **unread**: trueなら未読のみ
""",
)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """通知一覧取得"""
    cleanup_old_notifications(db)

    notifications, pagination = NotificationService(db).get_notifications(
        current_user.id, page=page, limit=limit, unread_only=unread
    )
    return {"notifications": notifications, "pagination": pagination}


@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="通知作成",
)
def create_notification(
    request: NotificationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """通知作成"""
    cleanup_old_notifications(db)

    return NotificationService(db).create_notification(
        user_id=current_user.id,
        message=request.message,
        type=request.type,
        title=request.title,
        duration=request.duration,
        action_url=request.action_url,
        action_text=request.action_text,
        metadata=request.metadata,
    )


@router.delete("", summary="通知一括削除")
def delete_notifications(
    read: bool = Query(False, description="trueなら既読の通知のみ削除"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """通知一括削除"""
    deleted = NotificationService(db).delete_all(current_user.id, read_only=read)
    return {"success": True, "deleted_count": deleted}


@router.post(
    "/cleanup",
    summary="古い通知の削除",
    description="""
保持期間（15日）を過ぎた通知を全ユーザー分削除します。

## 認証
リクエストボディの `secret` がサーバー側の `CLEANUP_SECRET` と一致する必要があります。
""",
)
def cleanup_notifications(request: CleanupRequest, db: Session = Depends(get_db)):
    """古い通知の削除（管理用）"""
    _ensure_cleanup_secret(request.secret)
    return cleanup_old_notifications(db)


@router.get("/cleanup", summary="削除予定の通知の統計")
def cleanup_stats(db: Session = Depends(get_db)):
    """削除予定件数と既読・未読の統計"""
    return NotificationService(db).get_cleanup_stats()


@router.post(
    "/test-email",
    response_model=TestEmailResponse,
    summary="テストメール送信",
    description="""
テストメールを送信して、メール通知機能の動作確認を行います。

## 注意
- 実際にメールが送信されます
- 送信に失敗してもエラーにはならず、結果をレスポンスで返します
""",
)
def send_test_email(request: TestEmailRequest):
    """テストメールを送信"""
    result = email_service.send_test_email(to=request.email)

    if result.get("success"):
        return TestEmailResponse(
            success=True,
            message=f"テストメールを {request.email} に送信しました",
            email_id=result.get("id")
        )
    else:
        return TestEmailResponse(
            success=False,
            message="テストメールの送信に失敗しました",
            error=result.get("error")
        )


@router.patch("/{notification_id}", response_model=NotificationResponse, summary="既読・未読の切り替え")
def update_notification(
    notification_id: str,
    request: NotificationUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """既読・未読の切り替え"""
    service = NotificationService(db)
    notification = service.get_user_notification(current_user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="通知が見つかりません")

    return service.mark_as_read(notification, read=request.read)


@router.delete("/{notification_id}", summary="通知削除")
def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """通知を1件削除"""
    service = NotificationService(db)
    notification = service.get_user_notification(current_user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="通知が見つかりません")

    service.delete_notification(notification)
    return {"success": True, "message": "通知を削除しました"}
