"""FastAPI dependencies that hand request handlers their stores.

Every store built during one request shares that request's session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from stores import (
    AttendanceStore,
    FeeStore,
    GradeStore,
    NotificationStore,
    ReportStore,
    StudentStore,
    UserStore,
)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_student_store(db: Session = Depends(get_db)) -> StudentStore:
    return StudentStore(db)


def get_grade_store(db: Session = Depends(get_db)) -> GradeStore:
    return GradeStore(db)


def get_attendance_store(db: Session = Depends(get_db)) -> AttendanceStore:
    return AttendanceStore(db)


def get_fee_store(db: Session = Depends(get_db)) -> FeeStore:
    return FeeStore(db)


def get_notification_store(db: Session = Depends(get_db)) -> NotificationStore:
    return NotificationStore(db)


def get_report_store(db: Session = Depends(get_db)) -> ReportStore:
    return ReportStore(db)
