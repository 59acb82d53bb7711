"""Certification schemas"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import BaseSchema


class CertificationCreate(BaseSchema):
    """Schema for creating a certification"""
    course_id: int
    progress_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    certificate_number: str = Field(..., min_length=1, max_length=50)
    course_title: str = Field(..., min_length=1, max_length=500)
    institution: Optional[str] = None
    level: Optional[str] = None
    duration: Optional[str] = None
    time_spent: Optional[int] = None
    completion_date: datetime
    expires_at: Optional[datetime] = None


class CertificationResponse(BaseSchema):
    """Schema for certification response"""
    id: str
    course_id: int
    progress_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    certificate_number: str
    course_title: str
    institution: Optional[str] = None
    level: Optional[str] = None
    duration: Optional[str] = None
    time_spent: Optional[int] = None
    completion_date: datetime
    issued_at: datetime
    expires_at: Optional[datetime] = None
    status: str
    is_verified: bool
