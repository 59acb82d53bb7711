"""Course schemas"""
from datetime import datetime
from typing import Optional

from .base import BaseSchema


class CourseResponse(BaseSchema):
    """Schema for course response"""
    id: int
    title: str
    description: Optional[str] = None
    link: Optional[str] = None
    platform: Optional[str] = None
    institution: Optional[str] = None
    instructor: Optional[str] = None
    category: Optional[str] = None
    skills: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    format: Optional[str] = None
    duration: Optional[str] = None
    duration_hours: Optional[float] = None
    price_numeric: float = 0.0
    rating_numeric: Optional[float] = None
    reviews_count: Optional[int] = None
    enrolled_students: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CourseWithProgress(CourseResponse):
    """ユーザー進捗をマージしたコース"""
    status: str = "not_started"
    progress_percentage: float = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    favorite: bool = False


class CourseFiltersResponse(BaseSchema):
    """フィルタ候補"""
    platforms: list[str]
    institutions: list[str]
    levels: list[str]
    languages: list[str]
    formats: list[str]
