"""
受講進捗・節目・修了のテスト
"""

import pytest

from app.models.certification import Certification
from app.models.course import Course
from app.models.user import User

FORM_DATA = {
    "learning_summary": "この区間ではデータ構造の基本と計算量の考え方を学び、実際に手を動かして確認しました。" * 2,
    "key_concepts": ["リスト", "辞書"],
    "challenges": "計算量の見積もりが最初は難しく感じました。",
    "next_steps": "次の章では探索アルゴリズムに取り組む予定です。",
    "time_spent_at_milestone": 90,
    "position_at_milestone": "第3章",
}


@pytest.fixture
def course(db_session):
    course = Course(id=10, title="アルゴリズム入門", institution="BlissLearn大学", level="Beginner")
    db_session.add(course)
    db_session.commit()
    return course


def start_course(client, auth_headers, course_id=10):
    response = client.post(
        "/api/courses/progress",
        headers=auth_headers,
        json={"course_id": course_id, "status": "in_progress"},
    )
    assert response.status_code == 200
    return response.json()


def validate(client, auth_headers, percentage, course_id=10):
    return client.post(
        "/api/courses/milestones",
        headers=auth_headers,
        json={"course_id": course_id, "percentage": percentage, "form_data": FORM_DATA},
    )


class TestProgress:
    """進捗APIのテスト"""

    def test_not_started_without_record(self, client, auth_headers, course):
        response = client.get("/api/courses/progress", headers=auth_headers, params={"course_id": 10})
        assert response.status_code == 200
        assert response.json() == {"status": "not_started"}

    def test_start_course(self, client, auth_headers, course):
        data = start_course(client, auth_headers)
        assert data["status"] == "in_progress"
        assert data["started_at"] is not None
        assert data["course"]["title"] == "アルゴリズム入門"

        response = client.get("/api/courses/progress", headers=auth_headers, params={"course_id": 10})
        assert response.json()["status"] == "in_progress"

    def test_not_started_is_rejected(self, client, auth_headers, course):
        response = client.post(
            "/api/courses/progress",
            headers=auth_headers,
            json={"course_id": 10, "status": "not_started"},
        )
        assert response.status_code == 400

    def test_unknown_course(self, client, auth_headers):
        response = client.post(
            "/api/courses/progress",
            headers=auth_headers,
            json={"course_id": 999, "status": "in_progress"},
        )
        assert response.status_code == 404

    def test_completed_requires_all_milestones(self, client, auth_headers, course):
        start_course(client, auth_headers)
        assert validate(client, auth_headers, 25).status_code == 200

        response = client.post(
            "/api/courses/progress",
            headers=auth_headers,
            json={"course_id": 10, "status": "completed"},
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["missing_milestones"] == [50, 75, 100]
        assert detail["completed_milestones"] == [25]

    def test_patch_favorite(self, client, auth_headers, course):
        start_course(client, auth_headers)

        response = client.patch(
            "/api/courses/progress",
            headers=auth_headers,
            json={"course_id": 10, "favorite": True, "notes": "復習する"},
        )
        assert response.status_code == 200
        assert response.json()["favorite"] is True
        assert response.json()["notes"] == "復習する"

    def test_patch_without_progress(self, client, auth_headers, course):
        response = client.patch(
            "/api/courses/progress", headers=auth_headers, json={"course_id": 10, "favorite": True}
        )
        assert response.status_code == 404

    def test_delete_progress(self, client, auth_headers, course):
        start_course(client, auth_headers)

        response = client.delete("/api/courses/progress", headers=auth_headers, params={"course_id": 10})
        assert response.status_code == 200

        response = client.delete("/api/courses/progress", headers=auth_headers, params={"course_id": 10})
        assert response.status_code == 404

    def test_stats(self, client, db_session, auth_headers, course):
        db_session.add(Course(id=11, title="統計学"))
        db_session.commit()
        start_course(client, auth_headers, course_id=10)
        start_course(client, auth_headers, course_id=11)
        client.patch(
            "/api/courses/progress",
            headers=auth_headers,
            json={"course_id": 11, "favorite": True, "progress_percentage": 25},
        )

        data = client.get("/api/courses/progress/stats", headers=auth_headers).json()
        stats = data["global_stats"]
        assert stats["total_courses"] == 2
        assert stats["in_progress_courses"] == 2
        assert stats["completed_courses"] == 0
        assert stats["favorite_courses"] == 1
        assert stats["global_progress"] == 12
        assert stats["average_progress"] == 12.5
        assert stats["total_time_spent"] == 0
        assert len(data["courses_with_progress"]) == 2


class TestMilestones:
    """節目のテスト"""

    def test_list_creates_missing_milestones(self, client, auth_headers, course):
        start_course(client, auth_headers)

        data = client.get("/api/courses/milestones", headers=auth_headers, params={"course_id": 10}).json()
        assert [m["percentage"] for m in data["milestones"]] == [25, 50, 75, 100]
        assert all(m["is_completed"] is False for m in data["milestones"])

    def test_list_without_progress(self, client, auth_headers, course):
        data = client.get("/api/courses/milestones", headers=auth_headers, params={"course_id": 10}).json()
        assert data["milestones"] == []
        assert data["course_not_started"] is True

    def test_must_complete_lower_milestone_first(self, client, auth_headers, course):
        start_course(client, auth_headers)

        response = validate(client, auth_headers, 50)
        assert response.status_code == 400
        assert "25%" in response.json()["detail"]

    def test_validate_updates_progress(self, client, auth_headers, course):
        start_course(client, auth_headers)

        response = validate(client, auth_headers, 25)
        assert response.status_code == 200
        assert response.json()["milestone"]["is_completed"] is True

        progress = client.get("/api/courses/progress", headers=auth_headers, params={"course_id": 10}).json()
        assert progress["progress_percentage"] == 25
        assert progress["time_spent"] == 90
        assert progress["current_position"] == "第3章"

    def test_form_validation(self, client, auth_headers, course):
        start_course(client, auth_headers)

        response = client.post(
            "/api/courses/milestones",
            headers=auth_headers,
            json={
                "course_id": 10,
                "percentage": 25,
                "form_data": {**FORM_DATA, "key_concepts": ["ひとつだけ"]},
            },
        )
        assert response.status_code == 422

    def test_invalid_percentage(self, client, auth_headers, course):
        start_course(client, auth_headers)
        assert validate(client, auth_headers, 30).status_code == 422

    def test_completion_issues_certification_once(self, client, db_session, auth_headers, course, sent_emails):
        start_course(client, auth_headers)
        for percentage in (25, 50, 75):
            assert validate(client, auth_headers, percentage).status_code == 200

        response = validate(client, auth_headers, 100)
        assert response.status_code == 200
        assert response.json()["certificate_number"].startswith("BL-")

        progress = client.get("/api/courses/progress", headers=auth_headers, params={"course_id": 10}).json()
        assert progress["status"] == "completed"
        assert progress["completed_at"] is not None

        # 100%をもう一度達成しても修了証は増えない
        response = validate(client, auth_headers, 100)
        assert response.status_code == 200
        assert response.json()["certificate_number"] is None

        db_session.expire_all()
        user = db_session.query(User).filter(User.email == "test@example.com").first()
        assert db_session.query(Certification).filter(Certification.user_id == user.id).count() == 1
        assert user.total_certifications == 1
        assert any(n.title == "コース修了" for n in user.notifications)
        assert "修了証発行" in sent_emails[-1]["subject"]

        # 全節目達成後なら completed に変更できる
        response = client.patch(
            "/api/courses/progress",
            headers=auth_headers,
            json={"course_id": 10, "status": "completed"},
        )
        assert response.status_code == 200

    def test_revalidating_lower_milestone_keeps_progress(self, client, auth_headers, course):
        start_course(client, auth_headers)
        for percentage in (25, 50, 75, 100):
            assert validate(client, auth_headers, percentage).status_code == 200

        assert validate(client, auth_headers, 25).status_code == 200

        progress = client.get("/api/courses/progress", headers=auth_headers, params={"course_id": 10}).json()
        assert progress["status"] == "completed"
        assert progress["progress_percentage"] == 100
