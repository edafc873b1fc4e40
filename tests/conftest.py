import os
import pathlib
import sys
import uuid
from datetime import datetime

import pytest

# Ensure project root is on sys.path so tests can import top-level modules (e.g. main)
PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Environment must be in place before the app modules read their settings.
os.environ["DATABASE_URL"] = "sqlite:///./test_temp.db"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ALGORITHM", "HS256")

from fastapi.testclient import TestClient  # noqa: E402

import database  # noqa: E402
import models as db_models  # noqa: E402
from auth import create_access_token, get_password_hash  # noqa: E402
from database import Base, SessionLocal  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    """Drop and recreate every table so each test starts empty."""
    Base.metadata.drop_all(bind=database.engine)
    Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email="teacher@example.com", role="teacher", password="secret123"):
    user = db_models.User(
        id=str(uuid.uuid4()),
        full_name="Test User",
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        created_at=datetime.utcnow(),
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def student_payload(roll_number="1A001", **overrides):
    payload = {
        "name": "Alice Johnson",
        "rollNumber": roll_number,
        "class": "Class 1A",
        "age": 6,
        "gender": "Female",
        "email": "alice.johnson@example.com",
        "phone": "+1234567890",
        "guardianName": "John Johnson",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_student(client, auth_headers):
    def _create(roll_number="1A001", **overrides):
        res = client.post(
            "/api/students",
            json=student_payload(roll_number, **overrides),
            headers=auth_headers,
        )
        assert res.status_code == 201, res.text
        return res.json()["student"]

    return _create
