"""Progress / milestone schemas"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import BaseSchema
from .course import CourseResponse

ProgressStatus = Literal["not_started", "in_progress", "paused", "completed"]


class ProgressUpsertRequest(BaseSchema):
    """進捗の作成・更新リクエスト"""
    course_id: int
    status: ProgressStatus
    progress_percentage: Optional[float] = Field(None, ge=0, le=100)
    current_position: Optional[str] = Field(None, max_length=255)
    time_spent: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    difficulty: Optional[str] = Field(None, max_length=20)
    review: Optional[str] = None


class ProgressPatchRequest(BaseSchema):
    """お気に入り・進捗の部分更新リクエスト"""
    course_id: int
    favorite: Optional[bool] = None
    status: Optional[ProgressStatus] = None
    progress_percentage: Optional[float] = Field(None, ge=0, le=100)
    current_position: Optional[str] = Field(None, max_length=255)
    time_spent: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    difficulty: Optional[str] = Field(None, max_length=20)
    review: Optional[str] = None


class ProgressResponse(BaseSchema):
    """進捗レスポンス"""
    id: str
    course_id: int
    status: str
    progress_percentage: float
    current_position: Optional[str] = None
    time_spent: int
    notes: Optional[str] = None
    rating: Optional[int] = None
    difficulty: Optional[str] = None
    review: Optional[str] = None
    favorite: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    course: CourseResponse


class MilestoneFormData(BaseSchema):
    """節目の振り返りフォーム"""
    learning_summary: str = Field(..., min_length=50, max_length=1000)
    key_concepts: list[str] = Field(..., min_length=2, max_length=10)
    challenges: str = Field(..., min_length=20, max_length=500)
    next_steps: str = Field(..., min_length=20, max_length=500)
    time_spent_at_milestone: int = Field(..., ge=1)
    position_at_milestone: str = Field(..., min_length=3)
    notes_at_milestone: Optional[str] = Field(None, max_length=1000)


class MilestoneValidateRequest(BaseSchema):
    """節目の達成リクエスト"""
    course_id: int
    percentage: Literal[25, 50, 75, 100]
    form_data: MilestoneFormData


class MilestoneResponse(BaseSchema):
    """節目レスポンス"""
    id: str
    course_id: int
    percentage: int
    is_completed: bool
    completed_at: Optional[datetime] = None
    learning_summary: Optional[str] = None
    key_concepts: Optional[list[str]] = None
    challenges: Optional[str] = None
    next_steps: Optional[str] = None
