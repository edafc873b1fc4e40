import pytest

from stores import calculate_grade_letter


def grade_payload(student_id, marks=85, subject="Mathematics", **overrides):
    payload = {
        "student_id": student_id,
        "subject": subject,
        "marks": marks,
        "term": "First Term",
        "academic_year": "2024-2025",
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    "marks,letter",
    [(100, "A+"), (90, "A+"), (89.5, "A"), (80, "A"), (70, "B"), (60, "C"), (50, "D"), (49.9, "F"), (0, "F")],
)
def test_calculate_grade_letter_boundaries(marks, letter):
    assert calculate_grade_letter(marks) == letter


def test_add_grade_derives_letter(client, auth_headers, create_student):
    student = create_student()
    res = client.post("/api/grades", json=grade_payload(student["id"], 85), headers=auth_headers)
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Grade added successfully"
    assert body["grade"]["grade"] == "A"
    assert body["grade"]["student"]["rollNumber"] == "1A001"

    res = client.post(
        "/api/grades", json=grade_payload(student["id"], 95, "English"), headers=auth_headers
    )
    assert res.json()["grade"]["grade"] == "A+"

    res = client.post(
        "/api/grades", json=grade_payload(student["id"], 40, "Science"), headers=auth_headers
    )
    assert res.json()["grade"]["grade"] == "F"


def test_client_supplied_letter_is_ignored(client, auth_headers, create_student):
    student = create_student()
    res = client.post(
        "/api/grades",
        json=grade_payload(student["id"], 55, grade="A+"),
        headers=auth_headers,
    )
    assert res.status_code == 201
    assert res.json()["grade"]["grade"] == "D"


@pytest.mark.parametrize("marks", [-1, 100.5, 150])
def test_marks_out_of_range_are_rejected(client, auth_headers, create_student, marks):
    student = create_student()
    res = client.post(
        "/api/grades", json=grade_payload(student["id"], marks), headers=auth_headers
    )
    assert res.status_code == 400
    assert res.json()["error"].startswith("marks")


def test_grade_for_unknown_student_is_not_found(client, auth_headers):
    res = client.post("/api/grades", json=grade_payload("missing"), headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Student not found"}


def test_update_marks_recomputes_letter(client, auth_headers, create_student):
    student = create_student()
    grade = client.post(
        "/api/grades", json=grade_payload(student["id"], 85), headers=auth_headers
    ).json()["grade"]

    res = client.put(f"/api/grades/{grade['id']}", json={"marks": 65}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["grade"]["marks"] == 65
    assert res.json()["grade"]["grade"] == "C"

    res = client.put(
        f"/api/grades/{grade['id']}", json={"remarks": "Improving"}, headers=auth_headers
    )
    assert res.json()["grade"]["grade"] == "C"
    assert res.json()["grade"]["remarks"] == "Improving"


def test_update_rejects_invalid_marks(client, auth_headers, create_student):
    student = create_student()
    grade = client.post(
        "/api/grades", json=grade_payload(student["id"], 85), headers=auth_headers
    ).json()["grade"]
    res = client.put(f"/api/grades/{grade['id']}", json={"marks": 101}, headers=auth_headers)
    assert res.status_code == 400
    res = client.put(f"/api/grades/{grade['id']}", json={"marks": None}, headers=auth_headers)
    assert res.status_code == 400


def test_list_grades_filters(client, auth_headers, create_student):
    alice = create_student("1A001")
    bob = create_student("1A002", name="Bob Smith")
    client.post("/api/grades", json=grade_payload(alice["id"], 80), headers=auth_headers)
    client.post(
        "/api/grades",
        json=grade_payload(alice["id"], 70, "English", term="Second Term"),
        headers=auth_headers,
    )
    client.post("/api/grades", json=grade_payload(bob["id"], 60), headers=auth_headers)

    assert len(client.get("/api/grades/all", headers=auth_headers).json()) == 3
    assert len(client.get("/api/grades", headers=auth_headers).json()) == 3

    res = client.get(
        "/api/grades", params={"subject": "Mathematics"}, headers=auth_headers
    )
    assert {g["student_id"] for g in res.json()} == {alice["id"], bob["id"]}

    res = client.get("/api/grades", params={"term": "Second Term"}, headers=auth_headers)
    assert [g["subject"] for g in res.json()] == ["English"]

    res = client.get(f"/api/grades/student/{alice['id']}", headers=auth_headers)
    assert len(res.json()) == 2
    assert all(g["student"]["name"] == "Alice Johnson" for g in res.json())


def test_get_and_delete_grade(client, auth_headers, create_student):
    student = create_student()
    grade = client.post(
        "/api/grades", json=grade_payload(student["id"]), headers=auth_headers
    ).json()["grade"]

    res = client.get(f"/api/grades/{grade['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["subject"] == "Mathematics"

    res = client.delete(f"/api/grades/{grade['id']}", headers=auth_headers)
    assert res.json() == {"message": "Grade deleted successfully"}
    res = client.get(f"/api/grades/{grade['id']}", headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Grade not found"}


def test_adding_grade_creates_notification(client, auth_headers, create_student):
    student = create_student()
    client.post("/api/grades", json=grade_payload(student["id"]), headers=auth_headers)
    titles = [n["title"] for n in client.get("/api/notifications", headers=auth_headers).json()]
    assert "Grade Added" in titles
