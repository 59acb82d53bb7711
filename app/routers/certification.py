"""
修了証API
一覧・作成・詳細・ダウンロードと、公開の真正性確認
"""
import math
import uuid
from datetime import datetime
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.certification import Certification, CERTIFICATION_STATUSES
from app.models.course import Course
from app.models.user import User
from app.schemas.certification import CertificationCreate, CertificationResponse
from app.services.certification_service import render_certificate_html

router = APIRouter(prefix="/api/certifications", tags=["certifications"])


@router.get("", summary="修了証一覧取得")
def list_certifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: str = Query("all", alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """修了証一覧（発行日の新しい順）とステータス別件数"""
    query = db.query(Certification).filter(Certification.user_id == current_user.id)
    if status_filter and status_filter != "all":
        query = query.filter(Certification.status == status_filter)

    total = query.count()
    certifications = (
        query.order_by(Certification.issued_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    counts = dict(
        db.query(Certification.status, func.count(Certification.id))
        .filter(Certification.user_id == current_user.id)
        .group_by(Certification.status)
        .all()
    )

    total_pages = math.ceil(total / limit)
    return {
        "certifications": [CertificationResponse.model_validate(c) for c in certifications],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
        "stats": {
            "total": total,
            **{s: counts.get(s, 0) for s in CERTIFICATION_STATUSES},
        },
    }


@router.post(
    "",
    response_model=CertificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="修了証作成",
)
def create_certification(
    request: CertificationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """修了証を手動で作成（管理・テスト用）"""
    if not db.get(Course, request.course_id):
        raise HTTPException(status_code=404, detail="コースが見つかりません")

    duplicate = (
        db.query(Certification)
        .filter(Certification.certificate_number == request.certificate_number)
        .first()
    )
    if duplicate:
        raise HTTPException(status_code=409, detail="この修了証番号は既に使われています")

    certification = Certification(
        id=str(uuid.uuid4()),
        user_id=current_user.id,
        status="active",
        is_verified=True,
        **request.model_dump(),
    )
    db.add(certification)
    db.commit()
    db.refresh(certification)
    return certification


@router.get("/{certification_id}", response_model=CertificationResponse, summary="修了証詳細取得")
def get_certification(
    certification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    certification = (
        db.query(Certification)
        .filter(Certification.id == certification_id, Certification.user_id == current_user.id)
        .first()
    )
    if not certification:
        raise HTTPException(status_code=404, detail="修了証が見つかりません")
    return certification


@router.post("/{certification_id}/download", response_class=HTMLResponse, summary="修了証のダウンロード")
def download_certification(
    certification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """本人の修了証をHTMLファイルとして返す"""
    certification = (
        db.query(Certification)
        .filter(Certification.id == certification_id, Certification.user_id == current_user.id)
        .first()
    )
    if not certification:
        raise HTTPException(status_code=404, detail="修了証が見つかりません")

    filename = quote(f"certification-{certification.certificate_number}.html")
    return HTMLResponse(
        content=render_certificate_html(certification, current_user),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{certification_id}/verify", summary="修了証の真正性確認")
def verify_certification(certification_id: str, db: Session = Depends(get_db)):
    """
    修了証の真正性を確認（認証不要）

    有効期限切れでも失効済みでもなければ valid=True。
    受講者の情報は氏名のみ返す。
    """
    certification = db.get(Certification, certification_id)
    if not certification:
        raise HTTPException(status_code=404, detail="修了証が見つかりません")

    now = datetime.utcnow()
    is_expired = certification.is_expired(now)
    is_revoked = certification.status == "revoked"

    return {
        "valid": not is_expired and not is_revoked,
        "certification": {
            "id": certification.id,
            "title": certification.title,
            "certificate_number": certification.certificate_number,
            "course_title": certification.course_title,
            "issued_at": certification.issued_at,
            "expires_at": certification.expires_at,
            "status": certification.status,
            "is_verified": certification.is_verified,
            "institution": certification.institution,
            "level": certification.level,
            "duration": certification.duration,
            "recipient": {"name": certification.user.name},
        },
        "verification": {
            "is_expired": is_expired,
            "is_revoked": is_revoked,
            "verified_at": now.isoformat(),
        },
    }
