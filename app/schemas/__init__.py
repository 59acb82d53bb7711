"""
Pydantic Schemas for BlissLearn
Based on app/models
"""

from .base import BaseSchema
from .notification import (
    NotificationCreate,
    NotificationUpdate,
    NotificationResponse,
    NotificationListResponse,
    Pagination,
)
from .course import CourseResponse, CourseWithProgress, CourseFiltersResponse
from .progress import (
    ProgressUpsertRequest,
    ProgressPatchRequest,
    ProgressResponse,
    MilestoneFormData,
    MilestoneValidateRequest,
    MilestoneResponse,
)
from .certification import CertificationCreate, CertificationResponse
from .onboarding import CoursePreferences, OnboardingRequest, OnboardingResponseSchema

__all__ = [
    "BaseSchema",
    "NotificationCreate",
    "NotificationUpdate",
    "NotificationResponse",
    "NotificationListResponse",
    "Pagination",
    "CourseResponse",
    "CourseWithProgress",
    "CourseFiltersResponse",
    "ProgressUpsertRequest",
    "ProgressPatchRequest",
    "ProgressResponse",
    "MilestoneFormData",
    "MilestoneValidateRequest",
    "MilestoneResponse",
    "CertificationCreate",
    "CertificationResponse",
    "CoursePreferences",
    "OnboardingRequest",
    "OnboardingResponseSchema",
]
