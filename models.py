import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    DateTime,
    Date,
    Float,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class StudentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class FeeStatus(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    CHEQUE = "cheque"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(str, enum.Enum):
    STUDENT = "student"
    GRADE = "grade"
    ATTENDANCE = "attendance"
    FEE = "fee"
    SYSTEM = "system"


# ---------- Models ----------
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.TEACHER.value)
    created_at = Column(DateTime, default=datetime.utcnow)


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    roll_number = Column(String(100), unique=True, nullable=False, index=True)
    class_name = Column(String(100), nullable=False, index=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    guardian_name = Column(String(255), nullable=True)
    guardian_phone = Column(String(50), nullable=True)
    admission_date = Column(DateTime, default=datetime.utcnow)
    status = Column(
        String(20), nullable=False, default=StudentStatus.ACTIVE.value, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)


class Grade(Base):
    __tablename__ = "grades"

    id = Column(String(36), primary_key=True, index=True)
    student_id = Column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    subject = Column(String(200), nullable=False)
    marks = Column(Float, nullable=False)
    grade = Column(String(5), nullable=False)
    term = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)  # e.g. "2024-2025"
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    student = relationship("Student")


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uix_attendance_student_date"),
    )

    id = Column(String(36), primary_key=True, index=True)
    student_id = Column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    student = relationship("Student")


class Fee(Base):
    __tablename__ = "fees"

    id = Column(String(36), primary_key=True, index=True)
    student_id = Column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    amount = Column(Float, nullable=False)
    payment_method = Column(String(50), nullable=True)
    term = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)
    status = Column(
        String(20), nullable=False, default=FeeStatus.PAID.value, index=True
    )
    receipt_number = Column(String(100), nullable=True)
    # only set once the fee is paid
    payment_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    student = relationship("Student")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default=NotificationType.INFO.value)
    category = Column(
        String(20), nullable=False, default=NotificationCategory.SYSTEM.value
    )
    recipient = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
