"""
User Settings API - ユーザー設定管理
プロフィール・パスワード・アカウントの管理
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Optional

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.auth import check_password_strength, hash_password, verify_password
from app.services.notification_service import NotificationService


# ============================================
# Pydantic スキーマ
# ============================================

class ProfileResponse(BaseModel):
    """プロフィール取得レスポンス"""
    id: str = Field(..., description="ユーザーID")
    email: str = Field(..., description="メールアドレス")
    name: Optional[str] = Field(None, description="表示名")
    image: Optional[str] = Field(None, description="プロフィール画像URL")
    provider: str = Field(..., description="ログイン方法（credentials/google）")
    email_verified: bool = Field(..., description="メールアドレス確認済みか")
    total_certifications: int = Field(..., description="取得した修了証の数")
    created_at: str = Field(..., description="登録日時")


class ProfileUpdateRequest(BaseModel):
    """プロフィール更新リクエスト"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="表示名")
    image: Optional[str] = Field(None, max_length=1000, description="プロフィール画像URL")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "新しい表示名"
            }
        }


class PasswordChangeRequest(BaseModel):
    """パスワード変更リクエスト"""
    current_password: str = Field(..., min_length=1, description="現在のパスワード")
    new_password: str = Field(..., max_length=100, description="新しいパスワード")

    class Config:
        json_schema_extra = {
            "example": {
                "current_password": "CurrentPass123",
                "new_password": "NewSecurePass456"
            }
        }


class MessageResponse(BaseModel):
    """汎用メッセージレスポンス"""
    success: bool = Field(..., description="処理成功フラグ")
    message: str = Field(..., description="メッセージ")


# ============================================
# ルーター設定
# ============================================

router = APIRouter(prefix="/api/user", tags=["user"])


def _profile(user: User) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        provider=user.provider,
        email_verified=user.email_verified is not None,
        total_certifications=user.total_certifications,
        created_at=user.created_at.isoformat(),
    )


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="プロフィール取得",
    description="""
ログインユーザーのプロフィール情報を取得します。

## 認証
`Authorization: Bearer {token}` ヘッダーが必要です。
""",
    responses={
        401: {
            "description": "認証エラー",
            "content": {
                "application/json": {
                    "example": {"detail": "認証トークンが必要です"}
                }
            }
        }
    }
)
def get_profile(current_user: User = Depends(get_current_user)):
    """プロフィール取得エンドポイント"""
    return _profile(current_user)


@router.put(
    "/profile",
    response_model=ProfileResponse,
    summary="プロフィール更新",
)
def update_profile(
    request: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """プロフィール更新エンドポイント"""
    if request.name is not None:
        current_user.name = request.name
    if request.image is not None:
        current_user.image = request.image

    db.commit()
    db.refresh(current_user)
    return _profile(current_user)


@router.put(
    "/password",
    response_model=MessageResponse,
    summary="パスワード変更",
    description="""
ログインユーザーのパスワードを変更します。

## パスワード要件
- 8文字以上
- 小文字・大文字・数字をそれぞれ1文字以上
- 現在のパスワードの検証が必要
""",
    responses={
        400: {
            "description": "現在のパスワードが不正、または新しいパスワードが要件を満たさない",
            "content": {
                "application/json": {
                    "example": {"detail": "現在のパスワードが正しくありません"}
                }
            }
        }
    }
)
def change_password(
    request: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """パスワード変更エンドポイント"""
    if not current_user.has_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="パスワードが設定されていません。パスワード設定をご利用ください"
        )

    if not verify_password(request.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="現在のパスワードが正しくありません"
        )

    error = check_password_strength(request.new_password)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    current_user.password_hash = hash_password(request.new_password)
    db.commit()

    NotificationService(db).notify_safely(
        current_user.id,
        message="パスワードが変更されました",
        type="success",
        title="パスワード変更",
    )

    return MessageResponse(
        success=True,
        message="パスワードを変更しました"
    )


@router.delete(
    "/account",
    response_model=MessageResponse,
    summary="アカウント削除",
    description="""
ログインユーザーのアカウントを削除します。

## 注意
- この操作は取り消せません
- 通知・受講進捗・修了証などの関連データも削除されます
""",
)
def delete_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """アカウント削除エンドポイント"""
    db.delete(current_user)
    db.commit()

    return MessageResponse(
        success=True,
        message="アカウントを削除しました"
    )
