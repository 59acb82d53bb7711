"""
OnboardingResponse Model - オンボーディング回答テーブル
"""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .user import User


class OnboardingResponse(Base):
    """オンボーディング回答テーブル（1ユーザー1レコード）"""
    __tablename__ = "onboarding_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    learning_objectives: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    domains_of_interest: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    skill_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    weekly_hours: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    preferred_platforms: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    course_format: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    course_duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    course_language: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="onboarding_response")
