"""
User Model - ユーザーテーブル
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .auth_token import AuthToken
    from .notification import Notification
    from .course_progress import CourseProgress
    from .milestone import Milestone
    from .certification import Certification
    from .onboarding import OnboardingResponse

# 認証プロバイダ
PROVIDER_CREDENTIALS = "credentials"
PROVIDER_GOOGLE = "google"


class User(Base):
    """ユーザーテーブル"""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # OAuthのみのアカウントはパスワードを持たない
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    provider: Mapped[str] = mapped_column(
        String(50), default=PROVIDER_CREDENTIALS, nullable=False
    )
    image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    email_verified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    onboarding_completed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    onboarding_step: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    total_certifications: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    auth_tokens: Mapped[list["AuthToken"]] = relationship(
        "AuthToken", back_populates="user", cascade="all, delete-orphan"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )
    course_progress: Mapped[list["CourseProgress"]] = relationship(
        "CourseProgress", back_populates="user", cascade="all, delete-orphan"
    )
    milestones: Mapped[list["Milestone"]] = relationship(
        "Milestone", back_populates="user", cascade="all, delete-orphan"
    )
    certifications: Mapped[list["Certification"]] = relationship(
        "Certification", back_populates="user", cascade="all, delete-orphan"
    )
    onboarding_response: Mapped[Optional["OnboardingResponse"]] = relationship(
        "OnboardingResponse",
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def is_oauth_user(self) -> bool:
        """OAuthプロバイダ経由のアカウントか"""
        if self.provider and self.provider != PROVIDER_CREDENTIALS:
            return True
        return bool(self.image and "googleusercontent.com" in self.image)
