"""Seed the database with sample data.

Creates the admin account, fifteen students spread over six classes, a
"present" attendance record for each of them today and pending fees for the
first eight.

Usage:
    python seed.py [--keep]
"""

import uuid
from datetime import date, datetime
from typing import Dict, List

import click

from app_logging import configure_logging, get_logger
from auth import get_password_hash
from config import settings
from database import SessionLocal, engine, init_db
import models as db_models

logger = get_logger("seed")

ADMIN_EMAIL = "admin@school.com"
ADMIN_PASSWORD = "admin123"

SAMPLE_STUDENTS: List[Dict] = [
    # Class 1A
    {"name": "Alice Johnson", "roll_number": "1A001", "class_name": "Class 1A", "age": 6, "gender": "Female", "email": "alice.johnson@email.com", "phone": "+1234567890", "address": "123 Main St", "guardian_name": "John Johnson", "guardian_phone": "+1234567891"},
    {"name": "Bob Smith", "roll_number": "1A002", "class_name": "Class 1A", "age": 7, "gender": "Male", "email": "bob.smith@email.com", "phone": "+1234567892", "address": "456 Oak Ave", "guardian_name": "Mary Smith", "guardian_phone": "+1234567893"},
    {"name": "Charlie Brown", "roll_number": "1A003", "class_name": "Class 1A", "age": 6, "gender": "Male", "email": "charlie.brown@email.com", "phone": "+1234567894", "address": "789 Pine Rd", "guardian_name": "Linda Brown", "guardian_phone": "+1234567895"},
    # Class 1B
    {"name": "Diana Wilson", "roll_number": "1B001", "class_name": "Class 1B", "age": 7, "gender": "Female", "email": "diana.wilson@email.com", "phone": "+1234567896", "address": "321 Elm St", "guardian_name": "Robert Wilson", "guardian_phone": "+1234567897"},
    {"name": "Edward Davis", "roll_number": "1B002", "class_name": "Class 1B", "age": 6, "gender": "Male", "email": "edward.davis@email.com", "phone": "+1234567898", "address": "654 Maple Ave", "guardian_name": "Sarah Davis", "guardian_phone": "+1234567899"},
    # Class 2A
    {"name": "Fiona Garcia", "roll_number": "2A001", "class_name": "Class 2A", "age": 8, "gender": "Female", "email": "fiona.garcia@email.com", "phone": "+1234567800", "address": "987 Cedar St", "guardian_name": "Miguel Garcia", "guardian_phone": "+1234567801"},
    {"name": "George Miller", "roll_number": "2A002", "class_name": "Class 2A", "age": 9, "gender": "Male", "email": "george.miller@email.com", "phone": "+1234567802", "address": "147 Birch Rd", "guardian_name": "Anna Miller", "guardian_phone": "+1234567803"},
    {"name": "Helen Taylor", "roll_number": "2A003", "class_name": "Class 2A", "age": 8, "gender": "Female", "email": "helen.taylor@email.com", "phone": "+1234567804", "address": "258 Spruce Ave", "guardian_name": "David Taylor", "guardian_phone": "+1234567805"},
    # Class 2B
    {"name": "Ian Anderson", "roll_number": "2B001", "class_name": "Class 2B", "age": 9, "gender": "Male", "email": "ian.anderson@email.com", "phone": "+1234567806", "address": "369 Willow St", "guardian_name": "Karen Anderson", "guardian_phone": "+1234567807"},
    {"name": "Julia Martinez", "roll_number": "2B002", "class_name": "Class 2B", "age": 8, "gender": "Female", "email": "julia.martinez@email.com", "phone": "+1234567808", "address": "741 Poplar Rd", "guardian_name": "Carlos Martinez", "guardian_phone": "+1234567809"},
    # Class 3A
    {"name": "Kevin Lee", "roll_number": "3A001", "class_name": "Class 3A", "age": 10, "gender": "Male", "email": "kevin.lee@email.com", "phone": "+1234567810", "address": "852 Ash St", "guardian_name": "Michelle Lee", "guardian_phone": "+1234567811"},
    {"name": "Laura Thompson", "roll_number": "3A002", "class_name": "Class 3A", "age": 11, "gender": "Female", "email": "laura.thompson@email.com", "phone": "+1234567812", "address": "963 Hickory Ave", "guardian_name": "James Thompson", "guardian_phone": "+1234567813"},
    {"name": "Michael White", "roll_number": "3A003", "class_name": "Class 3A", "age": 10, "gender": "Male", "email": "michael.white@email.com", "phone": "+1234567814", "address": "159 Dogwood Rd", "guardian_name": "Patricia White", "guardian_phone": "+1234567815"},
    # Class 3B
    {"name": "Nancy Harris", "roll_number": "3B001", "class_name": "Class 3B", "age": 11, "gender": "Female", "email": "nancy.harris@email.com", "phone": "+1234567816", "address": "357 Sycamore St", "guardian_name": "Richard Harris", "guardian_phone": "+1234567817"},
    {"name": "Oliver Clark", "roll_number": "3B002", "class_name": "Class 3B", "age": 10, "gender": "Male", "email": "oliver.clark@email.com", "phone": "+1234567818", "address": "468 Chestnut Ave", "guardian_name": "Barbara Clark", "guardian_phone": "+1234567819"},
]

PENDING_FEES: List[Dict] = [
    {"amount": 50000, "term": "First Term", "academic_year": "2024-2025", "receipt_number": "REC001"},
    {"amount": 45000, "term": "Second Term", "academic_year": "2024-2025", "receipt_number": "REC002"},
    {"amount": 55000, "term": "Third Term", "academic_year": "2024-2025", "receipt_number": "REC003"},
    {"amount": 48000, "term": "First Term", "academic_year": "2024-2025", "receipt_number": "REC004"},
    {"amount": 52000, "term": "Second Term", "academic_year": "2024-2025", "receipt_number": "REC005"},
]

STUDENTS_WITH_FEES = 8


def _id() -> str:
    return str(uuid.uuid4())


def clear_data(db) -> None:
    # children first so foreign keys never point at removed students
    for model in (
        db_models.Notification,
        db_models.Grade,
        db_models.Attendance,
        db_models.Fee,
        db_models.Student,
    ):
        db.query(model).delete(synchronize_session=False)
    db.commit()


def ensure_admin(db) -> db_models.User:
    admin = (
        db.query(db_models.User).filter(db_models.User.email == ADMIN_EMAIL).first()
    )
    if admin is None:
        admin = db_models.User(
            id=_id(),
            full_name="School Admin",
            email=ADMIN_EMAIL,
            hashed_password=get_password_hash(ADMIN_PASSWORD),
            role=db_models.UserRole.ADMIN.value,
            created_at=datetime.utcnow(),
        )
        db.add(admin)
        db.commit()
        logger.info("created admin user %s / %s", ADMIN_EMAIL, ADMIN_PASSWORD)
    return admin


def seed_data(db, keep: bool = False) -> Dict[str, int]:
    """Insert the sample records and return how many of each were created."""
    if not keep:
        logger.info("clearing existing data")
        clear_data(db)

    ensure_admin(db)

    now = datetime.utcnow()
    students: List[db_models.Student] = []
    for data in SAMPLE_STUDENTS:
        exists = (
            db.query(db_models.Student.id)
            .filter(db_models.Student.roll_number == data["roll_number"])
            .first()
        )
        if exists:
            logger.info("roll number %s already present, skipping", data["roll_number"])
            continue
        student = db_models.Student(
            id=_id(),
            admission_date=now,
            status=db_models.StudentStatus.ACTIVE.value,
            created_at=now,
            **data,
        )
        db.add(student)
        students.append(student)
    db.commit()
    logger.info("created %d students", len(students))

    today = date.today()
    attendance = 0
    for student in students:
        db.add(
            db_models.Attendance(
                id=_id(),
                student_id=student.id,
                date=today,
                status=db_models.AttendanceStatus.PRESENT.value,
                remarks="Present for the day",
                created_at=now,
            )
        )
        attendance += 1
    db.commit()
    logger.info("created %d attendance records for %s", attendance, today)

    fees = 0
    for i, student in enumerate(students[:STUDENTS_WITH_FEES]):
        fee = PENDING_FEES[i % len(PENDING_FEES)]
        db.add(
            db_models.Fee(
                id=_id(),
                student_id=student.id,
                payment_method=db_models.PaymentMethod.CASH.value,
                status=db_models.FeeStatus.PENDING.value,
                payment_date=None,
                created_at=now,
                **fee,
            )
        )
        fees += 1
    db.commit()
    logger.info("created %d pending fee records", fees)

    return {"students": len(students), "attendance": attendance, "fees": fees}


@click.command()
@click.option(
    "--keep",
    is_flag=True,
    default=False,
    help="Do not clear existing students, attendance, fees and notifications.",
)
def main(keep: bool) -> None:
    """Populate the configured database with sample school data."""
    configure_logging(settings.LOG_LEVEL)
    init_db(engine)
    db = SessionLocal()
    try:
        summary = seed_data(db, keep=keep)
    except Exception:
        db.rollback()
        logger.exception("seeding failed")
        raise SystemExit(1)
    finally:
        db.close()
    logger.info("database seeded: %s", summary)
    click.echo(f"Seeded {summary}. Admin login: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")


if __name__ == "__main__":
    main()
