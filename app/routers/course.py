"""
コースカタログAPI
一覧（検索・フィルタ・並び替え・ページネーション）、フィルタ候補、詳細
"""
import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Query as SAQuery, Session

from app.database import DatabaseClient, get_db, get_db_client
from app.dependencies import get_optional_user
from app.models.course import Course
from app.models.course_progress import CourseProgress
from app.models.user import User
from app.resilience import with_retry
from app.schemas.course import CourseFiltersResponse, CourseResponse, CourseWithProgress
from app.services.cache_service import catalog_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])

# 並び替え可能なカラム
SORT_FIELDS = {
    "title": Course.title,
    "rating_numeric": Course.rating_numeric,
    "duration_hours": Course.duration_hours,
    "price_numeric": Course.price_numeric,
    "created_at": Course.created_at,
    "updated_at": Course.updated_at,
    "platform": Course.platform,
    "institution": Course.institution,
}
DEFAULT_SORT_FIELD = "title"

FILTERS_CACHE_KEY = "course_filters"


def _is_active(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def parse_duration_range(duration: str) -> Optional[tuple[float, Optional[float]]]:
    """
    "0-2h" → (0, 2)、"10h+" → (10, None)
    解釈できなければNone
    """
    value = duration.strip().lower()
    try:
        if value.endswith("+"):
            return float(value.rstrip("+").rstrip("h")), None
        low, high = value.split("-", 1)
        return float(low.rstrip("h")), float(high.rstrip("h"))
    except ValueError:
        return None


def parse_min_rating(rating: str) -> Optional[float]:
    """"4.5+" → 4.5"""
    try:
        return float(rating.replace("+", ""))
    except ValueError:
        return None


def apply_course_filters(
    query: SAQuery,
    search: str = "",
    platform: str = "",
    institution: str = "",
    level: str = "",
    language: str = "",
    format: str = "",
    price: str = "",
    rating: str = "",
    duration: str = "",
) -> SAQuery:
    """一覧クエリに検索・フィルタ条件を追加"""
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Course.title.ilike(pattern),
                Course.description.ilike(pattern),
                Course.platform.ilike(pattern),
                Course.institution.ilike(pattern),
            )
        )

    # 大文字小文字を区別しない完全一致
    for column, value in (
        (Course.platform, platform),
        (Course.institution, institution),
        (Course.level, level),
        (Course.language, language),
        (Course.format, format),
    ):
        if _is_active(value):
            query = query.filter(func.lower(column) == value.lower())

    if price == "free":
        query = query.filter(Course.price_numeric == 0)
    elif price == "paid":
        query = query.filter(Course.price_numeric > 0)

    if _is_active(rating):
        min_rating = parse_min_rating(rating)
        if min_rating is not None:
            query = query.filter(Course.rating_numeric >= min_rating)

    if _is_active(duration):
        hours = parse_duration_range(duration)
        if hours is not None:
            low, high = hours
            query = query.filter(Course.duration_hours >= low)
            if high is not None:
                query = query.filter(Course.duration_hours < high)

    return query


def _merge_progress(courses: List[Course], progress_map: Dict[int, CourseProgress]) -> List[CourseWithProgress]:
    merged = []
    for course in courses:
        item = CourseWithProgress.model_validate(course)
        progress = progress_map.get(course.id)
        if progress:
            item.status = progress.status
            item.progress_percentage = progress.progress_percentage
            item.started_at = progress.started_at
            item.completed_at = progress.completed_at
            item.favorite = progress.favorite
        merged.append(item)
    return merged


@router.get("", summary="コース一覧取得")
def list_courses(
    search: str = Query(""),
    platform: str = Query(""),
    institution: str = Query(""),
    level: str = Query(""),
    language: str = Query(""),
    format: str = Query(""),
    price: str = Query("", description="free / paid"),
    rating: str = Query("", description="例: 4.5+"),
    duration: str = Query("", description="例: 0-2h, 2-5h, 10h+"),
    sort_by: str = Query(DEFAULT_SORT_FIELD),
    sort_order: str = Query("asc"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    client: DatabaseClient = Depends(get_db_client),
) -> Dict[str, Any]:
    """
    コース一覧を取得

    ログイン中なら各コースにユーザーの進捗（status・progress_percentage・favorite など）を付与し、
    未ログインなら未着手のデフォルト値を返す。
    """
    final_sort_by = sort_by if sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
    final_sort_order = sort_order if sort_order in ("asc", "desc") else "asc"
    order = desc if final_sort_order == "desc" else asc

    def fetch():
        try:
            query = apply_course_filters(
                db.query(Course),
                search=search,
                platform=platform,
                institution=institution,
                level=level,
                language=language,
                format=format,
                price=price,
                rating=rating,
                duration=duration,
            )
            total = query.count()
            courses = (
                query.order_by(order(SORT_FIELDS[final_sort_by]), Course.id)
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )

            progress_map: Dict[int, CourseProgress] = {}
            if current_user and courses:
                rows = (
                    db.query(CourseProgress)
                    .filter(
                        CourseProgress.user_id == current_user.id,
                        CourseProgress.course_id.in_([c.id for c in courses]),
                    )
                    .all()
                )
                progress_map = {row.course_id: row for row in rows}
            return total, courses, progress_map
        except Exception:
            # 失敗したトランザクションを捨ててから再試行させる
            db.rollback()
            raise

    total, courses, progress_map = with_retry(fetch, client=client)

    total_pages = math.ceil(total / limit)
    has_next = page < total_pages
    has_prev = page > 1

    return {
        "courses": [c.model_dump() for c in _merge_progress(courses, progress_map)],
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
        "filters": {
            "search": search,
            "platform": platform,
            "institution": institution,
            "level": level,
            "language": language,
            "format": format,
            "price": price,
            "rating": rating,
            "duration": duration,
            "sort_by": final_sort_by,
            "sort_order": final_sort_order,
        },
    }


def load_course_filters(db: Session) -> Dict[str, List[str]]:
    """空でない値の一覧をカラムごとに取得"""

    def distinct_values(column) -> List[str]:
        rows = (
            db.query(column)
            .filter(column.isnot(None), column != "")
            .distinct()
            .order_by(column)
            .all()
        )
        return [row[0] for row in rows]

    filters = {
        "platforms": distinct_values(Course.platform),
        "institutions": distinct_values(Course.institution),
        "levels": distinct_values(Course.level),
        "languages": distinct_values(Course.language),
        "formats": distinct_values(Course.format),
    }
    logger.info(f"🔎 フィルタ候補を読み込み: platforms={len(filters['platforms'])}件")
    return filters


@router.get("/filters", response_model=CourseFiltersResponse, summary="フィルタ候補取得")
def get_course_filters(db: Session = Depends(get_db)):
    """フィルタ候補（キャッシュ付き）"""
    return catalog_cache.get_or_load(FILTERS_CACHE_KEY, lambda: load_course_filters(db))


@router.get("/{course_id}", response_model=CourseResponse, summary="コース詳細取得")
def get_course(course_id: int, db: Session = Depends(get_db)):
    course = db.get(Course, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="コースが見つかりません")
    return course
