"""
ダッシュボードAPI
学習全体の統計と、最近学習した受講中コース
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.course_progress import CourseProgress, STATUS_IN_PROGRESS
from app.models.user import User
from app.routers.progress import summarize_progress

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

# ダッシュボードに表示する受講中コースの件数
CURRENT_COURSES_LIMIT = 3


@router.get("", summary="ダッシュボード取得")
def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """全体統計（合計学習時間・平均進捗率を含む）と、更新が新しい受講中コース3件"""
    rows = db.query(CourseProgress).filter(CourseProgress.user_id == current_user.id).all()

    current = (
        db.query(CourseProgress)
        .filter(
            CourseProgress.user_id == current_user.id,
            CourseProgress.status == STATUS_IN_PROGRESS,
        )
        .order_by(CourseProgress.updated_at.desc(), CourseProgress.id)
        .limit(CURRENT_COURSES_LIMIT)
        .all()
    )

    return {
        "global_stats": summarize_progress(rows),
        "current_courses": [
            {
                "id": p.course.id,
                "title": p.course.title,
                "platform": p.course.platform,
                "rating": p.course.rating_numeric,
                "progress_percentage": p.progress_percentage or 0,
                "duration": p.course.duration,
                "time_spent": p.time_spent,
                "favorite": p.favorite,
            }
            for p in current
        ],
    }
