"""Store objects wrapping one SQLAlchemy session each.

Handlers receive stores through FastAPI dependencies instead of touching
models directly. Store methods commit their own work and raise
:class:`StoreError` subclasses that the application maps to JSON errors.
"""

import enum
import uuid
from calendar import monthrange
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import distinct, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app_logging import get_logger
import models as db_models
import schemas


logger = get_logger(__name__)


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    status_code = 400


class InvalidDataError(StoreError):
    status_code = 400


def calculate_grade_letter(marks: float) -> str:
    if marks >= 90:
        return "A+"
    elif marks >= 80:
        return "A"
    elif marks >= 70:
        return "B"
    elif marks >= 60:
        return "C"
    elif marks >= 50:
        return "D"
    else:
        return "F"


def current_month_range(today: Optional[date] = None) -> Tuple[date, date]:
    today = today or date.today()
    last_day = monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def _new_id() -> str:
    return str(uuid.uuid4())


def _plain(values: Dict[str, Any]) -> Dict[str, Any]:
    """Replace enum members with their stored string values."""
    return {
        k: (v.value if isinstance(v, enum.Enum) else v) for k, v in values.items()
    }


def _changes(payload, required: Iterable[str]) -> Dict[str, Any]:
    """Fields explicitly sent in an update payload.

    ``None`` is accepted only for nullable columns.
    """
    changes = _plain(payload.model_dump(exclude_unset=True))
    for field in required:
        if field in changes and changes[field] is None:
            raise InvalidDataError(f"{field} cannot be null")
    return changes


class _Store:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise


# =============================================================================
# Users
# =============================================================================


class UserStore(_Store):
    def get(self, user_id: str) -> Optional[db_models.User]:
        return self.db.query(db_models.User).filter(db_models.User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        return (
            self.db.query(db_models.User)
            .filter(func.lower(db_models.User.email) == email.lower())
            .first()
        )

    def create(
        self, full_name: str, email: str, hashed_password: str, role: str
    ) -> db_models.User:
        if self.get_by_email(email):
            raise ConflictError("User already exists")
        user = db_models.User(
            id=_new_id(),
            full_name=full_name,
            email=email,
            hashed_password=hashed_password,
            role=role,
            created_at=datetime.utcnow(),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User already exists")
        return user

    def count(self) -> int:
        return self.db.query(func.count(db_models.User.id)).scalar() or 0


# =============================================================================
# Students
# =============================================================================


class StudentStore(_Store):
    _REQUIRED = (
        "name", "roll_number", "class_name", "age", "gender", "email", "status",
    )

    def list(
        self,
        class_name: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[db_models.Student]:
        q = self.db.query(db_models.Student)
        if class_name:
            q = q.filter(db_models.Student.class_name == class_name)
        if status:
            q = q.filter(db_models.Student.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            q = q.filter(
                or_(
                    func.lower(db_models.Student.name).like(pattern),
                    func.lower(db_models.Student.roll_number).like(pattern),
                    func.lower(db_models.Student.email).like(pattern),
                )
            )
        return q.order_by(db_models.Student.created_at.desc()).all()

    def get(self, student_id: str) -> db_models.Student:
        student = (
            self.db.query(db_models.Student)
            .filter(db_models.Student.id == student_id)
            .first()
        )
        if not student:
            raise NotFoundError("Student not found")
        return student

    def exists(self, student_id: str) -> bool:
        return (
            self.db.query(db_models.Student.id)
            .filter(db_models.Student.id == student_id)
            .first()
            is not None
        )

    def _roll_number_taken(self, roll_number: str, exclude_id: str = None) -> bool:
        q = self.db.query(db_models.Student.id).filter(
            db_models.Student.roll_number == roll_number
        )
        if exclude_id:
            q = q.filter(db_models.Student.id != exclude_id)
        return q.first() is not None

    def _build(self, payload: schemas.StudentCreate) -> db_models.Student:
        values = _plain(payload.model_dump())
        now = datetime.utcnow()
        if values.get("admission_date") is None:
            values["admission_date"] = now
        return db_models.Student(id=_new_id(), created_at=now, **values)

    def create(self, payload: schemas.StudentCreate) -> db_models.Student:
        if self._roll_number_taken(payload.roll_number):
            raise ConflictError("Roll number already exists")
        student = self._build(payload)
        self.db.add(student)
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race against a concurrent insert of the same roll number
            self.db.rollback()
            raise ConflictError("Roll number already exists")
        return student

    def bulk_create(
        self, payloads: List[schemas.StudentCreate]
    ) -> Tuple[List[db_models.Student], List[str]]:
        """Insert every row with an unused roll number.

        Returns the created students and the roll numbers that were skipped.
        """
        created: List[db_models.Student] = []
        skipped: List[str] = []
        seen = set()
        for payload in payloads:
            if payload.roll_number in seen or self._roll_number_taken(
                payload.roll_number
            ):
                skipped.append(payload.roll_number)
                continue
            seen.add(payload.roll_number)
            student = self._build(payload)
            self.db.add(student)
            created.append(student)
        self._commit()
        return created, skipped

    def update(
        self, student_id: str, payload: schemas.StudentUpdate
    ) -> db_models.Student:
        student = self.get(student_id)
        changes = _changes(payload, self._REQUIRED)
        roll_number = changes.get("roll_number")
        if roll_number and self._roll_number_taken(roll_number, exclude_id=student_id):
            raise ConflictError("Roll number already exists")
        for k, v in changes.items():
            setattr(student, k, v)
        self._commit()
        return student

    def delete(self, student_id: str) -> None:
        """Delete a student together with its grades, attendance and fees.

        All deletes share one transaction.
        """
        student = self.get(student_id)
        try:
            for model in (db_models.Grade, db_models.Attendance, db_models.Fee):
                removed = (
                    self.db.query(model)
                    .filter(model.student_id == student_id)
                    .delete(synchronize_session=False)
                )
                logger.debug(
                    "removed %s %s rows for student %s",
                    removed,
                    model.__tablename__,
                    student_id,
                )
            self.db.delete(student)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def count(self, status: Optional[str] = None) -> int:
        q = self.db.query(func.count(db_models.Student.id))
        if status:
            q = q.filter(db_models.Student.status == status)
        return q.scalar() or 0

    def class_count(self) -> int:
        return (
            self.db.query(func.count(distinct(db_models.Student.class_name))).scalar()
            or 0
        )

    def recent(self, limit: int) -> List[db_models.Student]:
        return (
            self.db.query(db_models.Student)
            .order_by(db_models.Student.created_at.desc())
            .limit(limit)
            .all()
        )


# =============================================================================
# Grades
# =============================================================================


class GradeStore(_Store):
    _REQUIRED = ("subject", "marks", "term", "academic_year")

    def _query(self):
        return self.db.query(db_models.Grade).options(
            joinedload(db_models.Grade.student)
        )

    def list(
        self,
        student_id: Optional[str] = None,
        subject: Optional[str] = None,
        term: Optional[str] = None,
        academic_year: Optional[str] = None,
    ) -> List[db_models.Grade]:
        q = self._query()
        if student_id:
            q = q.filter(db_models.Grade.student_id == student_id)
        if subject:
            q = q.filter(db_models.Grade.subject == subject)
        if term:
            q = q.filter(db_models.Grade.term == term)
        if academic_year:
            q = q.filter(db_models.Grade.academic_year == academic_year)
        return q.order_by(db_models.Grade.created_at.desc()).all()

    def get(self, grade_id: str) -> db_models.Grade:
        grade = self._query().filter(db_models.Grade.id == grade_id).first()
        if not grade:
            raise NotFoundError("Grade not found")
        return grade

    def create(self, payload: schemas.GradeCreate) -> db_models.Grade:
        if not StudentStore(self.db).exists(payload.student_id):
            raise NotFoundError("Student not found")
        values = _plain(payload.model_dump())
        grade = db_models.Grade(
            id=_new_id(),
            grade=calculate_grade_letter(payload.marks),
            created_at=datetime.utcnow(),
            **values,
        )
        self.db.add(grade)
        self._commit()
        return grade

    def update(self, grade_id: str, payload: schemas.GradeUpdate) -> db_models.Grade:
        grade = self.get(grade_id)
        changes = _changes(payload, self._REQUIRED)
        for k, v in changes.items():
            setattr(grade, k, v)
        if "marks" in changes:
            grade.grade = calculate_grade_letter(grade.marks)
        self._commit()
        return grade

    def delete(self, grade_id: str) -> None:
        grade = self.get(grade_id)
        self.db.delete(grade)
        self._commit()

    def latest(self) -> Optional[db_models.Grade]:
        return self._query().order_by(db_models.Grade.created_at.desc()).first()


# =============================================================================
# Attendance
# =============================================================================


class AttendanceStore(_Store):
    _REQUIRED = ("date", "status")

    def _query(self):
        return self.db.query(db_models.Attendance).options(
            joinedload(db_models.Attendance.student)
        )

    def list(self, on_day: Optional[date] = None) -> List[db_models.Attendance]:
        q = self._query()
        if on_day:
            q = q.filter(db_models.Attendance.date == on_day)
        return q.order_by(
            db_models.Attendance.date.desc(), db_models.Attendance.created_at.desc()
        ).all()

    def list_for_student(
        self,
        student_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[db_models.Attendance]:
        q = self._query().filter(db_models.Attendance.student_id == student_id)
        if start:
            q = q.filter(db_models.Attendance.date >= start)
        if end:
            q = q.filter(db_models.Attendance.date <= end)
        return q.order_by(db_models.Attendance.date.desc()).all()

    def get(self, attendance_id: str) -> db_models.Attendance:
        record = (
            self._query().filter(db_models.Attendance.id == attendance_id).first()
        )
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _find(self, student_id: str, on_day: date) -> Optional[db_models.Attendance]:
        return (
            self.db.query(db_models.Attendance)
            .filter(
                db_models.Attendance.student_id == student_id,
                db_models.Attendance.date == on_day,
            )
            .first()
        )

    def mark(
        self, payload: schemas.AttendanceCreate
    ) -> Tuple[db_models.Attendance, bool]:
        """Record attendance for a student on a day.

        An existing record for the same (student, day) is updated in place.
        Returns the record and whether it was newly inserted.
        """
        if not StudentStore(self.db).exists(payload.student_id):
            raise NotFoundError("Student not found")
        status = payload.status.value

        existing = self._find(payload.student_id, payload.date)
        if existing:
            existing.status = status
            existing.remarks = payload.remarks
            self._commit()
            return existing, False

        record = db_models.Attendance(
            id=_new_id(),
            student_id=payload.student_id,
            date=payload.date,
            status=status,
            remarks=payload.remarks,
            created_at=datetime.utcnow(),
        )
        self.db.add(record)
        try:
            self.db.commit()
            return record, True
        except IntegrityError:
            # another request inserted the same (student, day) first
            self.db.rollback()
            existing = self._find(payload.student_id, payload.date)
            if existing is None:
                raise
            logger.info(
                "attendance insert raced for student %s on %s; updating instead",
                payload.student_id,
                payload.date,
            )
            existing.status = status
            existing.remarks = payload.remarks
            self._commit()
            return existing, False

    def update(
        self, attendance_id: str, payload: schemas.AttendanceUpdate
    ) -> db_models.Attendance:
        record = self.get(attendance_id)
        changes = _changes(payload, self._REQUIRED)
        new_day = changes.get("date")
        if new_day and new_day != record.date:
            clash = self._find(record.student_id, new_day)
            if clash is not None:
                raise ConflictError("Attendance already recorded for that date")
        for k, v in changes.items():
            setattr(record, k, v)
        self._commit()
        return record

    def delete(self, attendance_id: str) -> None:
        record = self.get(attendance_id)
        self.db.delete(record)
        self._commit()

    def stats(self, start: date, end: date) -> Dict[str, int]:
        rows = (
            self.db.query(db_models.Attendance.status, func.count(db_models.Attendance.id))
            .filter(
                db_models.Attendance.date >= start,
                db_models.Attendance.date <= end,
            )
            .group_by(db_models.Attendance.status)
            .all()
        )
        counts = {s.value: 0 for s in db_models.AttendanceStatus}
        for status, count in rows:
            counts[status] = count
        return counts

    def count_present(self, on_day: date) -> int:
        return (
            self.db.query(func.count(db_models.Attendance.id))
            .filter(
                db_models.Attendance.date == on_day,
                db_models.Attendance.status == db_models.AttendanceStatus.PRESENT.value,
            )
            .scalar()
            or 0
        )

    def latest_day(self) -> Optional[date]:
        return self.db.query(func.max(db_models.Attendance.date)).scalar()


# =============================================================================
# Fees
# =============================================================================


class FeeStore(_Store):
    _REQUIRED = ("amount", "term", "academic_year", "status")

    def _query(self):
        return self.db.query(db_models.Fee).options(joinedload(db_models.Fee.student))

    def _ordered(self, q):
        # unpaid fees have no payment_date; keep them after dated ones
        return q.order_by(
            db_models.Fee.payment_date.is_(None),
            db_models.Fee.payment_date.desc(),
            db_models.Fee.created_at.desc(),
        )

    def list(
        self,
        status: Optional[str] = None,
        term: Optional[str] = None,
        academic_year: Optional[str] = None,
    ) -> List[db_models.Fee]:
        q = self._query()
        if status:
            q = q.filter(db_models.Fee.status == status)
        if term:
            q = q.filter(db_models.Fee.term == term)
        if academic_year:
            q = q.filter(db_models.Fee.academic_year == academic_year)
        return self._ordered(q).all()

    def list_for_student(self, student_id: str) -> List[db_models.Fee]:
        q = self._query().filter(db_models.Fee.student_id == student_id)
        return self._ordered(q).all()

    def get(self, fee_id: str) -> db_models.Fee:
        fee = self._query().filter(db_models.Fee.id == fee_id).first()
        if not fee:
            raise NotFoundError("Fee record not found")
        return fee

    def create(self, payload: schemas.FeeCreate) -> db_models.Fee:
        if not StudentStore(self.db).exists(payload.student_id):
            raise NotFoundError("Student not found")
        values = _plain(payload.model_dump())
        now = datetime.utcnow()
        fee = db_models.Fee(
            id=_new_id(),
            payment_date=now if values["status"] == db_models.FeeStatus.PAID.value else None,
            created_at=now,
            **values,
        )
        self.db.add(fee)
        self._commit()
        return fee

    def update(self, fee_id: str, payload: schemas.FeeUpdate) -> db_models.Fee:
        fee = self.get(fee_id)
        changes = _changes(payload, self._REQUIRED)
        was_paid = fee.status == db_models.FeeStatus.PAID.value
        for k, v in changes.items():
            setattr(fee, k, v)
        if fee.status != db_models.FeeStatus.PAID.value:
            fee.payment_date = None
        elif not was_paid:
            fee.payment_date = datetime.utcnow()
        self._commit()
        return fee

    def delete(self, fee_id: str) -> None:
        fee = self.get(fee_id)
        self.db.delete(fee)
        self._commit()

    def count(self, status: Optional[str] = None) -> int:
        q = self.db.query(func.count(db_models.Fee.id))
        if status:
            q = q.filter(db_models.Fee.status == status)
        return q.scalar() or 0

    def latest_paid(self) -> Optional[db_models.Fee]:
        return (
            self._query()
            .filter(db_models.Fee.status == db_models.FeeStatus.PAID.value)
            .order_by(db_models.Fee.created_at.desc())
            .first()
        )


# =============================================================================
# Notifications
# =============================================================================


class NotificationStore(_Store):
    def list_for(self, user_id: str, limit: int = 0) -> List[db_models.Notification]:
        q = (
            self.db.query(db_models.Notification)
            .filter(db_models.Notification.recipient == user_id)
            .order_by(db_models.Notification.created_at.desc())
        )
        if limit > 0:
            q = q.limit(limit)
        return q.all()

    def get_for(self, notification_id: str, user_id: str) -> db_models.Notification:
        notification = (
            self.db.query(db_models.Notification)
            .filter(
                db_models.Notification.id == notification_id,
                db_models.Notification.recipient == user_id,
            )
            .first()
        )
        if not notification:
            raise NotFoundError("Notification not found")
        return notification

    def unread_count(self, user_id: str) -> int:
        return (
            self.db.query(func.count(db_models.Notification.id))
            .filter(
                db_models.Notification.recipient == user_id,
                db_models.Notification.read.is_(False),
            )
            .scalar()
            or 0
        )

    def create(
        self,
        recipient: str,
        title: str,
        message: str,
        type: str = db_models.NotificationType.INFO.value,
        category: str = db_models.NotificationCategory.SYSTEM.value,
    ) -> db_models.Notification:
        notification = db_models.Notification(
            id=_new_id(),
            title=title,
            message=message,
            type=type,
            category=category,
            recipient=recipient,
            read=False,
            created_at=datetime.utcnow(),
        )
        self.db.add(notification)
        self._commit()
        return notification

    def mark_read(self, notification_id: str, user_id: str) -> db_models.Notification:
        notification = self.get_for(notification_id, user_id)
        notification.read = True
        self._commit()
        return notification

    def mark_all_read(self, user_id: str) -> int:
        updated = (
            self.db.query(db_models.Notification)
            .filter(
                db_models.Notification.recipient == user_id,
                db_models.Notification.read.is_(False),
            )
            .update({db_models.Notification.read: True}, synchronize_session=False)
        )
        self._commit()
        return updated

    def delete(self, notification_id: str, user_id: str) -> None:
        notification = self.get_for(notification_id, user_id)
        self.db.delete(notification)
        self._commit()


# =============================================================================
# Reports
# =============================================================================


def format_time_ago(when: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    seconds = int((now - when).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def _local_midnight_utc(day: date) -> datetime:
    """Start of ``day`` in server local time, as a naive UTC datetime.

    Attendance days are local calendar days while row timestamps use
    ``utcnow()``.
    """
    local = datetime.combine(day, datetime.min.time()).astimezone()
    return local.astimezone(timezone.utc).replace(tzinfo=None)


class ReportStore(_Store):
    """Aggregates computed fresh on every call."""

    def dashboard(self, today: Optional[date] = None) -> Dict[str, int]:
        today = today or date.today()
        students = StudentStore(self.db)
        return {
            "total_students": students.count(),
            "active_students": students.count(db_models.StudentStatus.ACTIVE.value),
            "total_classes": students.class_count(),
            "present_today": AttendanceStore(self.db).count_present(today),
            "pending_fees": FeeStore(self.db).count(db_models.FeeStatus.PENDING.value),
        }

    def class_distribution(self) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(db_models.Student.class_name, func.count(db_models.Student.id))
            .filter(db_models.Student.status == db_models.StudentStatus.ACTIVE.value)
            .group_by(db_models.Student.class_name)
            .order_by(db_models.Student.class_name)
            .all()
        )
        return [{"class_name": name, "count": count} for name, count in rows]

    def top_performers(self, limit: int = 10) -> List[Dict[str, Any]]:
        average = func.avg(db_models.Grade.marks).label("average_marks")
        total = func.count(db_models.Grade.id).label("total_subjects")
        rows = (
            self.db.query(db_models.Student, average, total)
            .join(db_models.Grade, db_models.Grade.student_id == db_models.Student.id)
            .group_by(db_models.Student.id)
            .order_by(average.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "student_id": student.id,
                "name": student.name,
                "roll_number": student.roll_number,
                "class_name": student.class_name,
                "average_marks": round(float(avg), 2),
                "total_subjects": int(count),
            }
            for student, avg, count in rows
        ]

    def recent_activities(self, limit: int = 5) -> List[Dict[str, Any]]:
        now = datetime.utcnow()
        activities: List[Dict[str, Any]] = []

        for student in StudentStore(self.db).recent(2):
            activities.append(
                {
                    "type": "student",
                    "title": "New student enrolled",
                    "description": f"{student.name} joined the school",
                    "created_at": student.created_at,
                }
            )

        attendance = AttendanceStore(self.db)
        last_day = attendance.latest_day()
        if last_day is not None:
            activities.append(
                {
                    "type": "attendance",
                    "title": "Attendance marked",
                    "description": f"{attendance.count_present(last_day)} students present",
                    "created_at": _local_midnight_utc(last_day),
                }
            )

        grade = GradeStore(self.db).latest()
        if grade is not None:
            who = grade.student.name if grade.student else "A student"
            activities.append(
                {
                    "type": "grade",
                    "title": "Grade added",
                    "description": f"{who} scored {grade.marks:g}% in {grade.subject}",
                    "created_at": grade.created_at,
                }
            )

        fee = FeeStore(self.db).latest_paid()
        if fee is not None:
            who = fee.student.name if fee.student else "N/A"
            activities.append(
                {
                    "type": "fee",
                    "title": "Fee payment received",
                    "description": f"₦{fee.amount:,.0f} from {who}",
                    "created_at": fee.created_at,
                }
            )

        activities.sort(key=lambda a: a["created_at"], reverse=True)
        for item in activities:
            item["time_ago"] = format_time_ago(item["created_at"], now)
        return activities[:limit]


__all__ = [
    "AttendanceStore",
    "ConflictError",
    "FeeStore",
    "GradeStore",
    "InvalidDataError",
    "NotFoundError",
    "NotificationStore",
    "ReportStore",
    "StoreError",
    "StudentStore",
    "UserStore",
    "calculate_grade_letter",
    "current_month_range",
    "format_time_ago",
]
