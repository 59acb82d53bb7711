from fastapi import APIRouter, Depends, HTTPException, status, Header, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime, timedelta
from typing import Optional
import jwt
import bcrypt
import re
import secrets
import uuid
import logging

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_user
from app.exceptions import DeliveryError, ExpiredTokenError, InvalidTokenError
from app.models.auth_token import PURPOSE_EMAIL_VERIFICATION, PURPOSE_PASSWORD_RESET
from app.models.user import User, PROVIDER_CREDENTIALS
from app.rate_limiter import limiter
from app.services.email_service import email_service
from app.services.notification_service import NotificationService
from app.services.token_service import TokenService
from app.services.user_service import cleanup_unverified_users

logger = logging.getLogger(__name__)

# パスワードポリシーのメッセージ（違反したルールごとに異なる）
PASSWORD_TOO_SHORT = "パスワードは8文字以上で入力してください"
PASSWORD_NO_LOWERCASE = "パスワードには小文字を1文字以上含めてください"
PASSWORD_NO_UPPERCASE = "パスワードには大文字を1文字以上含めてください"
PASSWORD_NO_DIGIT = "パスワードには数字を1文字以上含めてください"
PASSWORD_MIN_LENGTH = 8

# パスワードリセット要求への共通レスポンス（アカウント列挙防止）
FORGOT_PASSWORD_MESSAGE = (
    "ご登録のメールアドレス宛にパスワードリセット用のメールを送信しました。"
    "受信トレイと迷惑メールフォルダをご確認ください。"
)
OAUTH_ACCOUNT_MESSAGE = (
    "このアカウントはGoogleログインを使用しています。"
    "「Googleでログイン」ボタンからログインしてください。"
)


# Pydanticモデル
class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    email_verified: bool
    onboarding_completed: bool


class AuthResponse(BaseModel):
    success: bool
    message: str
    token: Optional[str] = None
    user: Optional[UserResponse] = None
    verification_required: bool = False


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class SetPasswordRequest(BaseModel):
    password: str


class MessageResponse(BaseModel):
    success: bool
    message: str


router = APIRouter(prefix="/auth", tags=["auth"])


# パスワードハッシュ化
def hash_password(password: str) -> str:
    """パスワードをハッシュ化"""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """パスワード検証（パスワード未設定のアカウントは常にFalse）"""
    if not hashed_password:
        return False
    return bcrypt.checkpw(password.encode(), hashed_password.encode())


def check_password_strength(password: str) -> Optional[str]:
    """
    パスワードポリシーを検証

    Returns:
        最初に違反したルールのメッセージ。問題なければNone
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return PASSWORD_TOO_SHORT
    if not re.search(r"[a-z]", password):
        return PASSWORD_NO_LOWERCASE
    if not re.search(r"[A-Z]", password):
        return PASSWORD_NO_UPPERCASE
    if not re.search(r"[0-9]", password):
        return PASSWORD_NO_DIGIT
    return None


def _ensure_password_strength(password: str) -> None:
    error = check_password_strength(password)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


# JWTトークン生成
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """アクセストークン生成"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        email_verified=user.email_verified is not None,
        onboarding_completed=user.onboarding_completed,
    )


def _access_token_for(user: User) -> str:
    return create_access_token(
        data={"sub": user.email, "email_verified": user.email_verified is not None},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def send_token_email(db: Session, user: User, purpose: str) -> None:
    """
    トークンを発行してリンク付きメールを送信

    送信に失敗したらトークンを取り消して DeliveryError を送出する
    （リンクが届かないトークンは使い道がないため）。
    """
    token_service = TokenService(db)
    plain_token = token_service.issue(user, purpose)
    name = user.name or "ユーザー"

    if purpose == PURPOSE_PASSWORD_RESET:
        url = f"{settings.FRONTEND_URL}/auth/reset-password?token={plain_token}"
        result = email_service.send_password_reset_email(user.email, name, url)
    else:
        url = f"{settings.FRONTEND_URL}/auth/verify-email?token={plain_token}"
        result = email_service.send_verification_email(user.email, name, url)

    if not result.get("success"):
        token_service.revoke(plain_token)
        logger.error(f"トークンメール送信失敗のためトークンを取り消し: user_id={user.id}, purpose={purpose}")
        raise DeliveryError(reason=result.get("error"))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """ユーザー登録"""
    _ensure_password_strength(request.password)

    email = request.email.lower()

    # メール重複チェック
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="このメールアドレスは既に登録されています",
        )

    # 新規ユーザー作成
    new_user = User(
        id=str(uuid.uuid4()),
        email=email,
        name=request.name,
        password_hash=hash_password(request.password),
        provider=PROVIDER_CREDENTIALS,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    # 確認メール送信
    try:
        send_token_email(db, new_user, PURPOSE_EMAIL_VERIFICATION)
    except DeliveryError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="アカウントは作成されましたが、確認メールの送信に失敗しました。確認メールの再送をお試しください。",
        )

    logger.info(f"ユーザー登録: user_id={new_user.id}")

    return AuthResponse(
        success=True,
        message="登録に成功しました。確認メールをご確認ください。",
        token=_access_token_for(new_user),
        user=_user_response(new_user),
        verification_required=True,
    )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """ユーザーログイン"""
    user = db.query(User).filter(User.email == request.email.lower()).first()

    # パスワード未設定（OAuthのみ）のアカウントも同じエラーにする
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="メールアドレスまたはパスワードが正しくありません",
        )

    return AuthResponse(
        success=True,
        message="ログインに成功しました",
        token=_access_token_for(user),
        user=_user_response(user),
        verification_required=user.email_verified is None,
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """現在のログインユーザー情報を取得"""
    return _user_response(current_user)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(settings.FORGOT_PASSWORD_RATE_LIMIT)
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
):
    """
    パスワードリセットリクエスト

    メールアドレスに対してパスワードリセット用のメールを送信します。
    セキュリティ上、メールアドレスが存在しない場合も同じレスポンスを返します。
    """
    success_response = MessageResponse(success=True, message=FORGOT_PASSWORD_MESSAGE)

    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user:
        logger.info("パスワードリセット: 未登録のメールアドレスへのリクエスト")
        return success_response

    # パスワードを持たないOAuthアカウントはプロバイダでログインしてもらう
    if not user.has_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=OAUTH_ACCOUNT_MESSAGE,
        )

    try:
        send_token_email(db, user, PURPOSE_PASSWORD_RESET)
    except DeliveryError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message,
        )

    return success_response


@router.get("/reset-password/validate")
def validate_reset_token(token: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """リセットリンクの有効性確認（トークンは消費しない）"""
    try:
        record = TokenService(db).validate(token, PURPOSE_PASSWORD_RESET)
    except InvalidTokenError:
        raise HTTPException(status_code=400, detail="リセットリンクが無効です")
    except ExpiredTokenError:
        raise HTTPException(status_code=400, detail="リセットリンクの有効期限が切れています")

    return {
        "valid": True,
        "user": {"email": record.user.email, "name": record.user.name},
    }


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    request: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    """
    パスワードリセット実行

    トークンを検証し、新しいパスワードを設定します。
    """
    _ensure_password_strength(request.password)

    new_hash = hash_password(request.password)

    def apply_new_password(user: User) -> None:
        user.password_hash = new_hash

    try:
        user = TokenService(db).consume(
            request.token, PURPOSE_PASSWORD_RESET, effect=apply_new_password
        )
    except InvalidTokenError:
        raise HTTPException(status_code=400, detail="リセットリンクが無効です")
    except ExpiredTokenError:
        raise HTTPException(status_code=400, detail="リセットリンクの有効期限が切れています")

    logger.info(f"パスワードリセット完了: user_id={user.id}")

    # 確認メール・通知は失敗してもパスワード変更は巻き戻さない
    result = email_service.send_password_changed_email(user.email, user.name or "ユーザー")
    if not result.get("success"):
        logger.warning(f"パスワード変更確認メール送信失敗: user_id={user.id}")
    NotificationService(db).notify_safely(
        user.id,
        message="パスワードが変更されました",
        type="success",
        title="パスワード変更",
    )

    return MessageResponse(
        success=True,
        message="パスワードを変更しました。新しいパスワードでログインしてください。",
    )


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(request: VerifyEmailRequest, db: Session = Depends(get_db)):
    """メールアドレス確認"""

    def mark_verified(user: User) -> None:
        user.email_verified = datetime.utcnow()

    try:
        user = TokenService(db).consume(
            request.token, PURPOSE_EMAIL_VERIFICATION, effect=mark_verified
        )
    except InvalidTokenError:
        raise HTTPException(status_code=400, detail="確認リンクが無効です")
    except ExpiredTokenError:
        raise HTTPException(status_code=400, detail="確認リンクの有効期限が切れています")

    NotificationService(db).notify_safely(
        user.id,
        message="メールアドレスの確認が完了しました。BlissLearnへようこそ！",
        type="success",
        title="メールアドレス確認",
    )

    return MessageResponse(success=True, message="メールアドレスの確認が完了しました")


@router.post("/resend-verification")
@limiter.limit(settings.RESEND_VERIFICATION_RATE_LIMIT)
def resend_verification(
    request: Request,
    body: ResendVerificationRequest,
    db: Session = Depends(get_db),
):
    """確認メールの再送"""
    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="このメールアドレスのアカウントは見つかりません")

    if user.email_verified is not None:
        raise HTTPException(status_code=400, detail="このメールアドレスは既に確認済みです")

    try:
        send_token_email(db, user, PURPOSE_EMAIL_VERIFICATION)
    except DeliveryError as e:
        raise HTTPException(status_code=500, detail=e.message)

    logger.info(f"確認メール再送: user_id={user.id}")
    return {
        "success": True,
        "message": "確認メールを再送しました",
        "sent_at": datetime.utcnow().isoformat(),
    }


@router.post("/set-password", response_model=MessageResponse)
def set_password(
    request: SetPasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """OAuthアカウントにパスワードを設定"""
    _ensure_password_strength(request.password)

    if not current_user.is_oauth_user:
        raise HTTPException(
            status_code=400,
            detail="この機能はGoogleアカウントでログインしたユーザーのみ利用できます",
        )

    if current_user.has_password:
        raise HTTPException(status_code=400, detail="このアカウントには既にパスワードが設定されています")

    current_user.password_hash = hash_password(request.password)
    db.commit()

    return MessageResponse(success=True, message="パスワードを設定しました")


@router.get("/check-password")
def check_password(current_user: User = Depends(get_current_user)):
    """パスワード設定状況の確認"""
    is_oauth_user = current_user.is_oauth_user
    has_password = current_user.has_password
    return {
        "has_password": has_password,
        "is_oauth_user": is_oauth_user,
        "needs_password_setup": is_oauth_user and not has_password,
        "provider": current_user.provider,
    }


@router.post("/cleanup-unverified")
def cleanup_unverified(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """メール未確認アカウントの削除（管理用）"""
    expected = settings.CLEANUP_API_KEY
    if not expected or not authorization or not secrets.compare_digest(
        authorization, f"Bearer {expected}"
    ):
        raise HTTPException(status_code=401, detail="認証されていません")

    deleted = cleanup_unverified_users(db)
    return {
        "message": "未確認アカウントの削除が完了しました",
        "deleted_count": deleted,
        "cleaned_at": datetime.utcnow().isoformat(),
    }
