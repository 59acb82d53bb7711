"""
Milestone Model - 進捗の節目（25/50/75/100%）テーブル
"""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .user import User
    from .course_progress import CourseProgress

REQUIRED_MILESTONES = (25, 50, 75, 100)


class Milestone(Base):
    """進捗の節目テーブル"""
    __tablename__ = "milestones"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", "percentage", name="uq_milestone_user_course_percentage"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    progress_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_course_progress.id", ondelete="CASCADE"), nullable=False, index=True)
    percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    time_spent_at_milestone: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    position_at_milestone: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes_at_milestone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    learning_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_concepts: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    challenges: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    next_steps: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="milestones")
    progress: Mapped["CourseProgress"] = relationship("CourseProgress", back_populates="milestones")
