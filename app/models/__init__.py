"""
SQLAlchemy Models for BlissLearn

Usage:
    from app.models import User, Course, Notification, etc.
    # または
    from app.models import Base
"""

from .base import Base
from .user import User
from .auth_token import AuthToken
from .notification import Notification
from .course import Course
from .course_progress import CourseProgress
from .milestone import Milestone
from .certification import Certification
from .onboarding import OnboardingResponse

__all__ = [
    "Base",
    "User",
    "AuthToken",
    "Notification",
    "Course",
    "CourseProgress",
    "Milestone",
    "Certification",
    "OnboardingResponse",
]
