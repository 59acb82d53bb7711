"""
Course Model - コースカタログテーブル
"""
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Float, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .base import Base

if TYPE_CHECKING:
    from .course_progress import CourseProgress


class Course(Base):
    """コースカタログテーブル"""
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    platform: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    institution: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    instructor: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    skills: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    language: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    format: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # 表示用（例: "6 weeks"）
    duration_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price_numeric: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    rating_numeric: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    reviews_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    enrolled_students: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    progress_records: Mapped[list["CourseProgress"]] = relationship(
        "CourseProgress",
        back_populates="course",
        cascade="all, delete-orphan"
    )
