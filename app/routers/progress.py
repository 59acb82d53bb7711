"""
受講進捗API
進捗の取得・作成・更新・削除、統計、節目（25/50/75/100%）の達成
"""
import logging
import math
import uuid
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.course import Course
from app.models.course_progress import (
    CourseProgress,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
)
from app.models.milestone import Milestone, REQUIRED_MILESTONES
from app.models.user import User
from app.routers.course import apply_course_filters
from app.schemas.progress import (
    MilestoneResponse,
    MilestoneValidateRequest,
    ProgressPatchRequest,
    ProgressResponse,
    ProgressUpsertRequest,
)
from app.services.certification_service import issue_course_certification

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["progress"])

# 進捗レコードに直接書き込むフィールド
PROGRESS_FIELDS = (
    "progress_percentage",
    "current_position",
    "time_spent",
    "notes",
    "rating",
    "difficulty",
    "review",
)


def _get_progress(db: Session, user_id: str, course_id: int) -> CourseProgress | None:
    return (
        db.query(CourseProgress)
        .filter(CourseProgress.user_id == user_id, CourseProgress.course_id == course_id)
        .first()
    )


def completed_milestone_percentages(db: Session, user_id: str, course_id: int) -> List[int]:
    rows = (
        db.query(Milestone.percentage)
        .filter(
            Milestone.user_id == user_id,
            Milestone.course_id == course_id,
            Milestone.is_completed.is_(True),
        )
        .all()
    )
    return sorted(row[0] for row in rows)


def _check_status_change(db: Session, user_id: str, course_id: int, new_status: str | None) -> None:
    """not_started への変更と、節目未達での completed を拒否"""
    if new_status == STATUS_NOT_STARTED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ステータスを未着手に戻すことはできません。進捗を削除してください",
        )

    if new_status == STATUS_COMPLETED:
        completed = completed_milestone_percentages(db, user_id, course_id)
        missing = [p for p in REQUIRED_MILESTONES if p not in completed]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "すべての節目を達成するまでコースを修了にできません",
                    "missing_milestones": missing,
                    "required_milestones": list(REQUIRED_MILESTONES),
                    "completed_milestones": completed,
                },
            )


# ============================================
# 進捗
# ============================================

@router.get("/progress", summary="進捗取得")
def get_progress(
    course_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """進捗を取得（レコードが無ければ未着手）"""
    progress = _get_progress(db, current_user.id, course_id)
    if not progress:
        return {"status": STATUS_NOT_STARTED}
    return ProgressResponse.model_validate(progress)


@router.post("/progress", response_model=ProgressResponse, summary="進捗の作成・更新")
def upsert_progress(
    request: ProgressUpsertRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """進捗を作成、既にあれば更新"""
    _check_status_change(db, current_user.id, request.course_id, request.status)

    course = db.get(Course, request.course_id)
    if not course:
        raise HTTPException(status_code=404, detail="コースが見つかりません")

    now = datetime.utcnow()
    progress = _get_progress(db, current_user.id, request.course_id)
    if progress is None:
        progress = CourseProgress(
            id=str(uuid.uuid4()),
            user_id=current_user.id,
            course_id=request.course_id,
            status=request.status,
            progress_percentage=0,
            time_spent=0,
            favorite=False,
            started_at=now if request.status == STATUS_IN_PROGRESS else None,
        )
        db.add(progress)

    progress.status = request.status
    progress.last_activity_at = now
    for field in PROGRESS_FIELDS:
        value = getattr(request, field)
        if value is not None:
            setattr(progress, field, value)

    if request.status == STATUS_IN_PROGRESS and progress.started_at is None:
        progress.started_at = now
    elif request.status == STATUS_COMPLETED:
        progress.completed_at = now

    db.commit()
    db.refresh(progress)
    return progress


@router.patch("/progress", response_model=ProgressResponse, summary="お気に入り・進捗の部分更新")
def patch_progress(
    request: ProgressPatchRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """既存の進捗を部分更新"""
    _check_status_change(db, current_user.id, request.course_id, request.status)

    progress = _get_progress(db, current_user.id, request.course_id)
    if not progress:
        raise HTTPException(status_code=404, detail="進捗が見つかりません")

    now = datetime.utcnow()
    if request.favorite is not None:
        progress.favorite = request.favorite

    if request.status is not None:
        progress.status = request.status
        progress.last_activity_at = now
        if request.status == STATUS_IN_PROGRESS and progress.started_at is None:
            progress.started_at = now
        elif request.status == STATUS_COMPLETED:
            progress.completed_at = now

    for field in PROGRESS_FIELDS:
        value = getattr(request, field)
        if value is not None:
            setattr(progress, field, value)

    db.commit()
    db.refresh(progress)
    return progress


@router.delete("/progress", summary="進捗削除")
def delete_progress(
    course_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """進捗を削除（未着手に戻す）"""
    progress = _get_progress(db, current_user.id, course_id)
    if not progress:
        raise HTTPException(status_code=404, detail="進捗が見つかりません")

    db.delete(progress)
    db.commit()
    return {"success": True, "message": "進捗を削除しました"}


def summarize_progress(rows: List[CourseProgress]) -> Dict[str, Any]:
    """
    進捗レコードから全体統計を集計

    未着手のレコードは集計から除外する。
    global_progress は平均進捗率を整数に丸めたもの。
    """
    rows = [r for r in rows if r.status != STATUS_NOT_STARTED]
    total = len(rows)
    average = sum(r.progress_percentage or 0 for r in rows) / total if total else 0

    return {
        "total_courses": total,
        "completed_courses": sum(1 for r in rows if r.status == STATUS_COMPLETED),
        "in_progress_courses": sum(1 for r in rows if r.status == STATUS_IN_PROGRESS),
        "favorite_courses": sum(1 for r in rows if r.favorite),
        "global_progress": round(average),
        "average_progress": average,
        "total_time_spent": sum(r.time_spent or 0 for r in rows),
    }


@router.get("/progress/stats", summary="進捗統計")
def progress_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """受講中コース全体の統計"""
    rows = db.query(CourseProgress).filter(CourseProgress.user_id == current_user.id).all()

    return {
        "global_stats": summarize_progress(rows),
        "courses_with_progress": [
            {
                "id": r.course.id,
                "title": r.course.title,
                "status": r.status,
                "favorite": r.favorite,
                "progress_percentage": r.progress_percentage,
                "started_at": r.started_at,
                "completed_at": r.completed_at,
                "platform": r.course.platform,
                "time_spent": r.time_spent,
                "current_position": r.current_position,
            }
            for r in rows
        ],
    }


# ============================================
# マイコース
# ============================================

# マイコースで並び替え可能なカラム
MY_COURSES_SORT_FIELDS = {
    "updated_at": CourseProgress.updated_at,
    "started_at": CourseProgress.started_at,
    "progress_percentage": CourseProgress.progress_percentage,
    "rating_numeric": Course.rating_numeric,
}
DEFAULT_MY_COURSES_SORT_FIELD = "updated_at"


def _my_course_item(progress: CourseProgress) -> Dict[str, Any]:
    course = progress.course
    return {
        "id": course.id,
        "title": course.title,
        "description": course.description,
        "status": progress.status,
        "favorite": progress.favorite,
        "progress_percentage": progress.progress_percentage or 0,
        "notes": progress.notes,
        "time_spent": progress.time_spent,
        "current_position": progress.current_position,
        "started_at": progress.started_at,
        "completed_at": progress.completed_at,
        "platform": course.platform,
        "institution": course.institution,
        "level": course.level,
        "language": course.language,
        "format": course.format,
        "duration": course.duration,
        "rating": course.rating_numeric,
        "price": course.price_numeric,
        "link": course.link,
        "skills": course.skills,
    }


@router.get("/my-courses", summary="マイコース一覧")
def list_my_courses(
    search: str = Query(""),
    status_filter: str = Query("", alias="status"),
    platform: str = Query(""),
    level: str = Query(""),
    language: str = Query(""),
    favorite: str = Query("", description="true / false"),
    sort_by: str = Query(DEFAULT_MY_COURSES_SORT_FIELD),
    sort_order: str = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    進捗のあるコースの一覧

    status を指定しなければ未着手以外のすべてを返す。
    検索・プラットフォーム・レベル・言語はコースカタログと同じ条件で絞り込む。
    """
    final_sort_by = sort_by if sort_by in MY_COURSES_SORT_FIELDS else DEFAULT_MY_COURSES_SORT_FIELD
    final_sort_order = sort_order if sort_order in ("asc", "desc") else "desc"
    order = desc if final_sort_order == "desc" else asc

    query = (
        db.query(CourseProgress)
        .join(Course, CourseProgress.course_id == Course.id)
        .filter(CourseProgress.user_id == current_user.id)
    )
    if status_filter and status_filter != "all":
        query = query.filter(CourseProgress.status == status_filter)
    else:
        query = query.filter(CourseProgress.status != STATUS_NOT_STARTED)

    query = apply_course_filters(
        query, search=search, platform=platform, level=level, language=language
    )
    if favorite == "true":
        query = query.filter(CourseProgress.favorite.is_(True))
    elif favorite == "false":
        query = query.filter(CourseProgress.favorite.is_(False))

    total = query.count()
    rows = (
        query.order_by(order(MY_COURSES_SORT_FIELDS[final_sort_by]), CourseProgress.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    all_rows = db.query(CourseProgress).filter(CourseProgress.user_id == current_user.id).all()

    total_pages = math.ceil(total / limit)
    has_next = page < total_pages
    has_prev = page > 1

    return {
        "courses": [_my_course_item(r) for r in rows],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": has_next,
            "has_prev_page": has_prev,
            "next_page": page + 1 if has_next else None,
            "prev_page": page - 1 if has_prev else None,
        },
        "global_stats": summarize_progress(all_rows),
        "filters": {
            "search": search,
            "status": status_filter,
            "platform": platform,
            "level": level,
            "language": language,
            "favorite": favorite,
            "sort_by": final_sort_by,
            "sort_order": final_sort_order,
        },
    }


# ============================================
# 節目
# ============================================

def ensure_milestones(db: Session, progress: CourseProgress) -> List[Milestone]:
    """足りない節目を未達成で作成し、全節目を返す"""
    existing = {m.percentage for m in progress.milestones}
    missing = [p for p in REQUIRED_MILESTONES if p not in existing]
    for percentage in missing:
        db.add(
            Milestone(
                id=str(uuid.uuid4()),
                user_id=progress.user_id,
                course_id=progress.course_id,
                progress_id=progress.id,
                percentage=percentage,
                is_completed=False,
            )
        )
    if missing:
        db.commit()
        db.refresh(progress)
    return list(progress.milestones)


@router.get("/milestones", summary="節目一覧取得")
def list_milestones(
    course_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """節目一覧（進捗が無ければ空）"""
    progress = _get_progress(db, current_user.id, course_id)
    if not progress:
        return {
            "milestones": [],
            "current_progress": 0,
            "course_not_started": True,
        }

    milestones = ensure_milestones(db, progress)
    return {
        "milestones": [MilestoneResponse.model_validate(m) for m in milestones],
        "current_progress": progress.progress_percentage,
        "course_not_started": False,
    }


@router.post("/milestones", summary="節目の達成")
def validate_milestone(
    request: MilestoneValidateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    節目を達成済みにする

    下位の節目がすべて達成済みである必要がある。
    100%の節目でコースを修了にし、修了証を発行する。
    """
    progress = _get_progress(db, current_user.id, request.course_id)
    if not progress:
        raise HTTPException(status_code=404, detail="進捗が見つかりません")

    completed = completed_milestone_percentages(db, current_user.id, request.course_id)
    for lower in REQUIRED_MILESTONES:
        if lower >= request.percentage:
            break
        if lower not in completed:
            raise HTTPException(
                status_code=400,
                detail=f"先に{lower}%の節目を達成してください",
            )

    milestones = {m.percentage: m for m in ensure_milestones(db, progress)}
    milestone = milestones[request.percentage]

    now = datetime.utcnow()
    form = request.form_data
    milestone.is_completed = True
    milestone.completed_at = now
    milestone.time_spent_at_milestone = form.time_spent_at_milestone
    milestone.position_at_milestone = form.position_at_milestone
    milestone.notes_at_milestone = form.notes_at_milestone
    milestone.learning_summary = form.learning_summary
    milestone.key_concepts = form.key_concepts
    milestone.challenges = form.challenges
    milestone.next_steps = form.next_steps

    # 下位の節目を再提出しても進捗率は下げない
    progress.progress_percentage = max(progress.progress_percentage, request.percentage)
    progress.time_spent = form.time_spent_at_milestone
    progress.current_position = form.position_at_milestone
    progress.last_activity_at = now

    if request.percentage == 100:
        progress.status = STATUS_COMPLETED
        progress.completed_at = now

    db.commit()
    db.refresh(milestone)

    certification = None
    if request.percentage == 100:
        certification = issue_course_certification(db, current_user, progress.course, progress)

    logger.info(
        f"節目達成: user_id={current_user.id}, course_id={request.course_id}, "
        f"percentage={request.percentage}"
    )

    return {
        "milestone": MilestoneResponse.model_validate(milestone),
        "certificate_number": certification.certificate_number if certification else None,
        "message": f"{request.percentage}%の節目を達成しました！",
    }
