"""依存注入モジュール"""
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.user import User


def _extract_bearer(authorization: str) -> str:
    # Bearer トークンの場合は "Bearer " プレフィックスを削除
    if authorization.startswith("Bearer "):
        return authorization[7:]
    return authorization


def _user_from_token(token: str, db: Session) -> Optional[User]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.InvalidTokenError:
        return None

    email: Optional[str] = payload.get("sub")
    if email is None:
        return None
    return db.query(User).filter(User.email == email).first()


def get_current_user(
    authorization: Optional[str] = Header(None), db: Session = Depends(get_db)
) -> User:
    """
    現在のユーザーを取得
    Authorizationヘッダーからトークンを抽出してユーザーを取得します
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="認証トークンが必要です",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _user_from_token(_extract_bearer(authorization), db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="認証情報が無効です",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    authorization: Optional[str] = Header(None), db: Session = Depends(get_db)
) -> Optional[User]:
    """ログインしていれば現在のユーザー、していなければNone"""
    if not authorization:
        return None
    return _user_from_token(_extract_bearer(authorization), db)
