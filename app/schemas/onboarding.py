"""Onboarding schemas"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import BaseSchema


class CoursePreferences(BaseSchema):
    """希望するコース形式"""
    format: list[str] = Field(default_factory=list)
    duration: Optional[str] = None
    language: Optional[str] = None


class OnboardingRequest(BaseSchema):
    """オンボーディング回答"""
    learning_objectives: list[str] = Field(default_factory=list)
    domains_of_interest: list[str] = Field(default_factory=list)
    skill_level: Optional[str] = None
    weekly_hours: int = Field(0, ge=0, le=168)
    preferred_platforms: list[str] = Field(default_factory=list)
    course_preferences: CoursePreferences = Field(default_factory=CoursePreferences)


class OnboardingResponseSchema(BaseSchema):
    """保存済みのオンボーディング回答"""
    learning_objectives: list[str]
    domains_of_interest: list[str]
    skill_level: Optional[str] = None
    weekly_hours: int
    preferred_platforms: list[str]
    course_preferences: CoursePreferences
    is_completed: bool
    completed_at: Optional[datetime] = None
