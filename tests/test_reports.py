import time
from datetime import date, datetime, timedelta

import pytest

from stores import format_time_ago


def add_grade(client, headers, student_id, marks, subject="Mathematics"):
    res = client.post(
        "/api/grades",
        json={
            "student_id": student_id,
            "subject": subject,
            "marks": marks,
            "term": "First Term",
            "academic_year": "2024-2025",
        },
        headers=headers,
    )
    assert res.status_code == 201
    return res.json()["grade"]


def test_dashboard_counts(client, auth_headers, create_student):
    alice = create_student("1A001")
    bob = create_student("1B001", name="Bob Smith", **{"class": "Class 1B"})
    create_student("1B002", name="Carol Jones", status="inactive", **{"class": "Class 1B"})

    today = date.today().isoformat()
    client.post(
        "/api/attendance",
        json={"student_id": alice["id"], "date": today, "status": "present"},
        headers=auth_headers,
    )
    client.post(
        "/api/attendance",
        json={"student_id": bob["id"], "date": today, "status": "absent"},
        headers=auth_headers,
    )
    for status in ("pending", "pending", "paid"):
        client.post(
            "/api/fees",
            json={
                "student_id": alice["id"],
                "amount": 1000,
                "term": "First Term",
                "academic_year": "2024-2025",
                "status": status,
            },
            headers=auth_headers,
        )

    res = client.get("/api/stats/dashboard", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {
        "total_students": 3,
        "active_students": 2,
        "total_classes": 2,
        "present_today": 1,
        "pending_fees": 2,
    }


def test_dashboard_when_empty(client, auth_headers):
    res = client.get("/api/stats/dashboard", headers=auth_headers)
    assert res.json() == {
        "total_students": 0,
        "active_students": 0,
        "total_classes": 0,
        "present_today": 0,
        "pending_fees": 0,
    }


def test_class_distribution_counts_active_students(client, auth_headers, create_student):
    create_student("1A001")
    create_student("1A002", name="Bob Smith")
    create_student("1B001", name="Carol Jones", **{"class": "Class 1B"})
    create_student("1B002", name="Dan Brown", status="graduated", **{"class": "Class 1B"})

    res = client.get("/api/reports/class-distribution", headers=auth_headers)
    assert res.json() == [
        {"class": "Class 1A", "count": 2},
        {"class": "Class 1B", "count": 1},
    ]


def test_top_performers_ranked_by_average(client, auth_headers, create_student):
    alice = create_student("1A001")
    bob = create_student("1A002", name="Bob Smith")
    create_student("1A003", name="No Grades")
    add_grade(client, auth_headers, alice["id"], 70)
    add_grade(client, auth_headers, alice["id"], 75, "English")
    add_grade(client, auth_headers, bob["id"], 90)
    add_grade(client, auth_headers, bob["id"], 85.5, "English")
    add_grade(client, auth_headers, bob["id"], 80, "Science")

    res = client.get("/api/reports/top-performers", headers=auth_headers)
    performers = res.json()
    assert [p["name"] for p in performers] == ["Bob Smith", "Alice Johnson"]
    assert performers[0]["averageMarks"] == 85.17
    assert performers[0]["totalSubjects"] == 3
    assert performers[0]["rollNumber"] == "1A002"
    assert performers[0]["class"] == "Class 1A"
    assert performers[1]["averageMarks"] == 72.5


def test_top_performers_capped_at_ten(client, auth_headers, create_student):
    for i in range(12):
        student = create_student(f"9Z{i:03d}", name=f"Student {i}")
        add_grade(client, auth_headers, student["id"], 50 + i)
    res = client.get("/api/reports/top-performers", headers=auth_headers)
    performers = res.json()
    assert len(performers) == 10
    assert performers[0]["name"] == "Student 11"


def test_recent_activities(client, auth_headers, create_student):
    alice = create_student("1A001")
    create_student("1A002", name="Bob Smith")
    create_student("1A003", name="Carol Jones")
    add_grade(client, auth_headers, alice["id"], 88)
    client.post(
        "/api/fees",
        json={
            "student_id": alice["id"],
            "amount": 50000,
            "term": "First Term",
            "academic_year": "2024-2025",
        },
        headers=auth_headers,
    )
    client.post(
        "/api/attendance",
        json={"student_id": alice["id"], "date": "2024-09-02", "status": "present"},
        headers=auth_headers,
    )

    res = client.get("/api/activities/recent", headers=auth_headers)
    activities = res.json()
    assert len(activities) == 5
    types = [a["type"] for a in activities]
    assert types.count("student") == 2
    assert {"grade", "fee", "attendance"} <= set(types)
    # an old attendance day sorts last
    assert activities[-1]["type"] == "attendance"
    assert activities[-1]["description"] == "1 students present"
    assert activities[0]["timeAgo"] == "Just now"

    grade = next(a for a in activities if a["type"] == "grade")
    assert grade["description"] == "Alice Johnson scored 88% in Mathematics"
    fee = next(a for a in activities if a["type"] == "fee")
    assert fee["description"] == "₦50,000 from Alice Johnson"


def test_recent_activities_when_empty(client, auth_headers):
    assert client.get("/api/activities/recent", headers=auth_headers).json() == []


def test_format_time_ago():
    now = datetime(2024, 9, 2, 12, 0, 0)
    assert format_time_ago(now - timedelta(seconds=30), now) == "Just now"
    assert format_time_ago(now - timedelta(minutes=5), now) == "5m ago"
    assert format_time_ago(now - timedelta(hours=3, minutes=59), now) == "3h ago"
    assert format_time_ago(now - timedelta(days=2, hours=1), now) == "2d ago"


def test_home_and_health(client, create_student):
    create_student()
    res = client.get("/")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "Running"
    assert body["stats"] == {"total_students": 1, "total_users": 1}

    res = client.get("/health")
    assert res.json()["status"] == "healthy"
    assert "timestamp" in res.json()


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
def test_attendance_activity_is_never_in_the_future(
    client, auth_headers, create_student, monkeypatch
):
    # fourteen hours ahead of UTC, so the local day starts before UTC's does
    monkeypatch.setenv("TZ", "Etc/GMT-14")
    time.tzset()
    try:
        student = create_student()
        client.post(
            "/api/attendance",
            json={
                "student_id": student["id"],
                "date": date.today().isoformat(),
                "status": "present",
            },
            headers=auth_headers,
        )
        activities = client.get("/api/activities/recent", headers=auth_headers).json()
    finally:
        monkeypatch.undo()
        time.tzset()

    marked = next(a for a in activities if a["type"] == "attendance")
    created_at = datetime.fromisoformat(marked["created_at"])
    now = datetime.utcnow()
    assert created_at <= now
    assert now - created_at < timedelta(days=1)
