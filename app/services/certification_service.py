"""
修了証サービス
コース修了時の修了証発行と、修了証番号の生成を担当
"""
import logging
import secrets
import uuid
from datetime import datetime
from html import escape
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.certification import Certification
from app.models.course import Course
from app.models.course_progress import CourseProgress
from app.models.user import User
from app.services.email_service import email_service
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

CERTIFICATE_PREFIX = "BL"


def generate_certificate_number(now: Optional[datetime] = None) -> str:
    """
    修了証番号を生成

    形式: BL-YYYYMMDD-XXXXXXXX（末尾は16進の乱数）
    """
    now = now or datetime.utcnow()
    return f"{CERTIFICATE_PREFIX}-{now.strftime('%Y%m%d')}-{secrets.token_hex(4).upper()}"


def find_course_certification(db: Session, user_id: str, course_id: int) -> Optional[Certification]:
    return (
        db.query(Certification)
        .filter(Certification.user_id == user_id, Certification.course_id == course_id)
        .first()
    )


def issue_course_certification(
    db: Session,
    user: User,
    course: Course,
    progress: CourseProgress,
) -> Optional[Certification]:
    """
    修了したコースの修了証を発行

    既に同じコースの修了証があれば何もしない（Noneを返す）。
    発行時はユーザーの修了証カウンタを加算し、成功通知を作成する。
    修了メールの送信失敗は発行を巻き戻さない。
    """
    if find_course_certification(db, user.id, course.id):
        return None

    completion_date = progress.completed_at or datetime.utcnow()
    certification = Certification(
        id=str(uuid.uuid4()),
        user_id=user.id,
        course_id=course.id,
        progress_id=progress.id,
        title=f"修了証 - {course.title}",
        description=f"「{course.title}」の全課程を修了したことを証明します",
        certificate_number=generate_certificate_number(),
        course_title=course.title,
        institution=course.institution,
        level=course.level,
        duration=course.duration,
        time_spent=progress.time_spent,
        completion_date=completion_date,
        status="active",
        is_verified=True,
    )
    db.add(certification)
    user.total_certifications = (user.total_certifications or 0) + 1

    NotificationService(db).create_notification(
        user_id=user.id,
        message=f"「{course.title}」を修了しました。修了証が発行されました！",
        type="success",
        title="コース修了",
        action_url="/dashboard/certifications",
        action_text="修了証を見る",
        commit=False,
    )
    db.commit()
    db.refresh(certification)

    logger.info(
        f"🎓 修了証発行: user_id={user.id}, course_id={course.id}, "
        f"number={certification.certificate_number}"
    )

    certificate_url = f"{settings.FRONTEND_URL}/dashboard/certifications/{certification.id}"
    result = email_service.send_certification_email(
        user.email, user.name or "ユーザー", course.title, certificate_url
    )
    if not result.get("success"):
        logger.warning(f"修了メール送信失敗: user_id={user.id}, error={result.get('error')}")

    return certification


def render_certificate_html(certification: Certification, user: User) -> str:
    """
    ダウンロード用の修了証HTMLを生成

    差し込む値はすべてエスケープする。
    """
    issued = certification.issued_at.strftime("%Y年%m月%d日")

    details = [
        ("修了証番号", certification.certificate_number),
        ("発行日", issued),
    ]
    if certification.expires_at:
        details.append(("有効期限", certification.expires_at.strftime("%Y年%m月%d日")))
    if certification.institution:
        details.append(("提供機関", certification.institution))
    if certification.level:
        details.append(("レベル", certification.level))
    if certification.duration:
        details.append(("コース期間", certification.duration))

    detail_items = "".join(
        f"""
                <div class="detail-item">
                    <div class="detail-label">{label}</div>
                    <div class="detail-value">{escape(value)}</div>
                </div>"""
        for label, value in details
    )

    return f"""<!DOCTYPE html>
<html lang="ja">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>修了証 - {escape(certification.title)}</title>
    <style>
        body {{ font-family: 'Hiragino Sans', 'Noto Sans JP', sans-serif; background: #eef2ff; padding: 20px; }}
        .certificate {{ background: white; max-width: 900px; margin: 0 auto; border-radius: 20px; overflow: hidden; }}
        .header {{ background: linear-gradient(135deg, #3b82f6 0%, #8b5cf6 100%); color: white; padding: 40px; text-align: center; }}
        .content {{ padding: 50px 40px 40px; text-align: center; }}
        .recipient {{ font-size: 2rem; font-weight: 600; color: #1f2937; margin-bottom: 20px; }}
        .course-title {{ font-size: 1.6rem; font-weight: 600; color: #3b82f6; margin: 30px 0; padding: 20px; background: #f0f9ff; border-radius: 15px; }}
        .details {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(250px, 1fr)); gap: 20px; }}
        .detail-item {{ text-align: left; padding: 16px; background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 12px; }}
        .detail-label {{ font-size: 0.9rem; color: #6b7280; }}
        .detail-value {{ font-size: 1.1rem; font-weight: 600; color: #1f2937; }}
        .verification {{ margin-top: 20px; padding: 15px; background: #f0fdf4; color: #166534; border-radius: 8px; }}
        @media print {{ body {{ background: white; }} }}
    </style>
</head>
<body>
    <div class="certificate">
        <div class="header">
            <h1>修了証</h1>
            <p>BlissLearn 公式認定</p>
        </div>
        <div class="content">
            <div class="recipient">{escape(user.name or user.email)} 殿</div>
            <p>以下のコースを修了したことを証明します。</p>
            <div class="course-title">{escape(certification.course_title)}</div>
            <div class="details">{detail_items}
            </div>
            <div class="verification">
                この修了証は {escape(settings.FRONTEND_URL)}/certifications/{escape(certification.id)}/verify で確認できます
            </div>
        </div>
    </div>
</body>
</html>
"""
