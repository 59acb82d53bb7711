"""
オンボーディングAPI
初回ログイン時の学習目標・興味分野などの回答を保存
"""
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.onboarding import OnboardingResponse
from app.models.user import User
from app.schemas.onboarding import CoursePreferences, OnboardingRequest, OnboardingResponseSchema

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


def _to_schema(record: OnboardingResponse) -> OnboardingResponseSchema:
    return OnboardingResponseSchema(
        learning_objectives=record.learning_objectives or [],
        domains_of_interest=record.domains_of_interest or [],
        skill_level=record.skill_level,
        weekly_hours=record.weekly_hours,
        preferred_platforms=record.preferred_platforms or [],
        course_preferences=CoursePreferences(
            format=record.course_format or [],
            duration=record.course_duration,
            language=record.course_language,
        ),
        is_completed=record.is_completed,
        completed_at=record.completed_at,
    )


@router.get("", summary="オンボーディング回答取得")
def get_onboarding(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """保存済みの回答（未回答ならnull）"""
    record: Optional[OnboardingResponse] = (
        db.query(OnboardingResponse)
        .filter(OnboardingResponse.user_id == current_user.id)
        .first()
    )
    return {"onboarding": _to_schema(record) if record else None}


@router.post("", summary="オンボーディング回答保存")
def save_onboarding(
    request: OnboardingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """回答を作成、既にあれば上書きし、ユーザーをオンボーディング完了にする"""
    record = (
        db.query(OnboardingResponse)
        .filter(OnboardingResponse.user_id == current_user.id)
        .first()
    )
    if record is None:
        record = OnboardingResponse(id=str(uuid.uuid4()), user_id=current_user.id)
        db.add(record)

    now = datetime.utcnow()
    record.learning_objectives = request.learning_objectives
    record.domains_of_interest = request.domains_of_interest
    record.skill_level = request.skill_level
    record.weekly_hours = request.weekly_hours
    record.preferred_platforms = request.preferred_platforms
    record.course_format = request.course_preferences.format
    record.course_duration = request.course_preferences.duration
    record.course_language = request.course_preferences.language
    record.is_completed = True
    record.completed_at = now

    current_user.onboarding_completed = True
    db.commit()
    db.refresh(record)

    return {
        "success": True,
        "message": "オンボーディングが完了しました",
        "onboarding": _to_schema(record),
    }


@router.post("/reset", summary="オンボーディングのリセット")
def reset_onboarding(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """回答を削除し、オンボーディングを最初からやり直せるようにする"""
    db.query(OnboardingResponse).filter(
        OnboardingResponse.user_id == current_user.id
    ).delete(synchronize_session=False)

    current_user.onboarding_completed = False
    current_user.onboarding_step = 1
    db.commit()

    return {"success": True, "message": "オンボーディングをリセットしました"}
