"""
ダッシュボードとマイコース一覧のテスト
"""

import pytest

from app.models.course import Course
from tests.test_progress import start_course


@pytest.fixture
def courses(db_session):
    db_session.add_all([
        Course(id=1, title="Python入門", platform="Coursera", level="Beginner", language="Japanese", rating_numeric=4.5),
        Course(id=2, title="機械学習の基礎", platform="edX", level="Intermediate", language="English", rating_numeric=4.8),
        Course(id=3, title="データ分析実践", platform="Coursera", level="Advanced", language="Japanese", rating_numeric=4.1),
        Course(id=4, title="Web開発入門", platform="Udemy", level="Beginner", language="Japanese", rating_numeric=3.9),
        Course(id=5, title="未着手のコース", platform="Udemy"),
    ])
    db_session.commit()


def update(client, auth_headers, course_id, **fields):
    response = client.patch(
        "/api/courses/progress",
        headers=auth_headers,
        json={"course_id": course_id, **fields},
    )
    assert response.status_code == 200


@pytest.fixture
def learning(client, auth_headers, courses):
    """4コースを受講し、進捗・学習時間・お気に入りを設定"""
    for course_id in (1, 2, 3, 4):
        start_course(client, auth_headers, course_id=course_id)
    update(client, auth_headers, 1, progress_percentage=50, time_spent=120, favorite=True)
    update(client, auth_headers, 2, progress_percentage=25, time_spent=60)
    update(client, auth_headers, 3, progress_percentage=75, time_spent=30, favorite=True)
    update(client, auth_headers, 4, time_spent=15)


class TestDashboard:
    """ダッシュボードAPIのテスト"""

    def test_requires_login(self, client):
        assert client.get("/api/dashboard").status_code == 401

    def test_empty(self, client, auth_headers):
        data = client.get("/api/dashboard", headers=auth_headers).json()
        assert data["current_courses"] == []
        assert data["global_stats"]["total_time_spent"] == 0
        assert data["global_stats"]["average_progress"] == 0

    def test_stats_and_current_courses(self, client, auth_headers, learning):
        response = client.get("/api/dashboard", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()

        stats = data["global_stats"]
        assert stats["total_courses"] == 4
        assert stats["total_time_spent"] == 225
        assert stats["average_progress"] == 37.5
        assert stats["global_progress"] == 38
        assert stats["favorite_courses"] == 2

        current = data["current_courses"]
        assert len(current) == 3
        assert {c["id"] for c in current} <= {1, 2, 3, 4}
        assert set(current[0]) == {
            "id", "title", "platform", "rating", "progress_percentage",
            "duration", "time_spent", "favorite",
        }

    def test_completed_courses_are_not_current(self, client, db_session, auth_headers, learning):
        from app.models.course_progress import CourseProgress

        db_session.query(CourseProgress).filter(CourseProgress.course_id.in_([1, 2])).update(
            {CourseProgress.status: "completed"}, synchronize_session=False
        )
        db_session.commit()

        data = client.get("/api/dashboard", headers=auth_headers).json()
        assert sorted(c["id"] for c in data["current_courses"]) == [3, 4]
        assert data["global_stats"]["completed_courses"] == 2


class TestMyCourses:
    """マイコース一覧APIのテスト"""

    def _ids(self, client, auth_headers, **params):
        response = client.get("/api/courses/my-courses", headers=auth_headers, params=params)
        assert response.status_code == 200
        return [c["id"] for c in response.json()["courses"]]

    def test_requires_login(self, client):
        assert client.get("/api/courses/my-courses").status_code == 401

    def test_lists_started_courses_only(self, client, auth_headers, learning):
        ids = self._ids(client, auth_headers, sort_by="progress_percentage", sort_order="desc")
        assert ids == [3, 1, 2, 4]

    def test_favorite_filter(self, client, auth_headers, learning):
        assert sorted(self._ids(client, auth_headers, favorite="true")) == [1, 3]
        assert sorted(self._ids(client, auth_headers, favorite="false")) == [2, 4]

    def test_status_filter(self, client, auth_headers, learning):
        assert self._ids(client, auth_headers, status="completed") == []
        assert len(self._ids(client, auth_headers, status="all")) == 4

    def test_catalog_filters(self, client, auth_headers, learning):
        assert sorted(self._ids(client, auth_headers, platform="coursera")) == [1, 3]
        assert self._ids(client, auth_headers, search="機械学習") == [2]
        assert sorted(self._ids(client, auth_headers, level="Beginner", language="Japanese")) == [1, 4]

    def test_unknown_sort_falls_back(self, client, auth_headers, learning):
        response = client.get(
            "/api/courses/my-courses",
            headers=auth_headers,
            params={"sort_by": "password_hash", "sort_order": "sideways"},
        )
        filters = response.json()["filters"]
        assert filters["sort_by"] == "updated_at"
        assert filters["sort_order"] == "desc"

    def test_sort_by_rating(self, client, auth_headers, learning):
        ids = self._ids(client, auth_headers, sort_by="rating_numeric", sort_order="asc")
        assert ids == [4, 3, 1, 2]

    def test_pagination(self, client, auth_headers, learning):
        response = client.get(
            "/api/courses/my-courses",
            headers=auth_headers,
            params={"sort_by": "progress_percentage", "page": 2, "limit": 3},
        )
        data = response.json()
        assert [c["id"] for c in data["courses"]] == [4]
        assert data["pagination"]["total_items"] == 4
        assert data["pagination"]["total_pages"] == 2
        assert data["pagination"]["prev_page"] == 1
        assert data["pagination"]["next_page"] is None
        # 全体統計は絞り込みに関係なく全件で集計する
        assert data["global_stats"]["total_courses"] == 4

    def test_not_captured_by_course_detail(self, client, auth_headers, courses):
        response = client.get("/api/courses/my-courses", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["courses"] == []
