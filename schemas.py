from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from models import (
    AttendanceStatus,
    FeeStatus,
    Gender,
    NotificationCategory,
    NotificationType,
    PaymentMethod,
    StudentStatus,
    UserRole,
)


def to_day(v):
    """Truncate datetimes (or ISO date/datetime strings) to the calendar day.

    Raises ``ValueError`` for strings that are not ISO dates.
    """
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str):
        v = v.strip()
        if len(v) > 10:
            # "Z" suffix is not understood by fromisoformat on older interpreters
            if v.endswith("Z"):
                v = v[:-1] + "+00:00"
            return datetime.fromisoformat(v).date()
        return date_type.fromisoformat(v)
    return v


# =============================================================================
# Auth
# =============================================================================


class UserCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    role: Optional[UserRole] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be less than 72 bytes")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: str
    full_name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class TokenData(BaseModel):
    id: str
    role: Optional[str] = None


# =============================================================================
# Students
# =============================================================================


class StudentSummary(BaseModel):
    id: str
    name: str
    roll_number: str = Field(..., alias="rollNumber")
    class_name: str = Field(..., alias="class")

    class Config:
        from_attributes = True
        populate_by_name = True


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    roll_number: str = Field(..., min_length=1, alias="rollNumber")
    class_name: str = Field(..., min_length=1, alias="class")
    age: int = Field(..., ge=0)
    gender: Gender
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = Field(None, alias="guardianName")
    guardian_phone: Optional[str] = Field(None, alias="guardianPhone")
    admission_date: Optional[datetime] = Field(None, alias="admissionDate")
    status: StudentStatus = StudentStatus.ACTIVE

    class Config:
        populate_by_name = True

    @field_validator(
        "phone", "address", "guardian_name", "guardian_phone", "admission_date",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v):
        if v == "":
            return None
        return v


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    roll_number: Optional[str] = Field(None, min_length=1, alias="rollNumber")
    class_name: Optional[str] = Field(None, min_length=1, alias="class")
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[Gender] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = Field(None, alias="guardianName")
    guardian_phone: Optional[str] = Field(None, alias="guardianPhone")
    admission_date: Optional[datetime] = Field(None, alias="admissionDate")
    status: Optional[StudentStatus] = None

    class Config:
        populate_by_name = True


class StudentOut(BaseModel):
    id: str
    name: str
    roll_number: str = Field(..., alias="rollNumber")
    class_name: str = Field(..., alias="class")
    age: Optional[int] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = Field(None, alias="guardianName")
    guardian_phone: Optional[str] = Field(None, alias="guardianPhone")
    admission_date: Optional[datetime] = Field(None, alias="admissionDate")
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class StudentBulkCreate(BaseModel):
    students: List[StudentCreate]


# =============================================================================
# Grades
# =============================================================================


class GradeCreate(BaseModel):
    student_id: str
    subject: str = Field(..., min_length=1)
    marks: float = Field(..., ge=0, le=100)
    term: str = Field(..., min_length=1)
    academic_year: str = Field(..., min_length=1)
    remarks: Optional[str] = None


class GradeUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=1)
    marks: Optional[float] = Field(None, ge=0, le=100)
    term: Optional[str] = Field(None, min_length=1)
    academic_year: Optional[str] = Field(None, min_length=1)
    remarks: Optional[str] = None


class GradeOut(BaseModel):
    id: str
    student_id: str
    subject: str
    marks: float
    grade: str
    term: str
    academic_year: str
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None

    class Config:
        from_attributes = True


# =============================================================================
# Attendance
# =============================================================================


class AttendanceCreate(BaseModel):
    student_id: str
    date: date_type
    status: AttendanceStatus
    remarks: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def truncate_to_day(cls, v):
        return to_day(v)


class AttendanceUpdate(BaseModel):
    date: Optional[date_type] = None
    status: Optional[AttendanceStatus] = None
    remarks: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def truncate_to_day(cls, v):
        return to_day(v)


class AttendanceOut(BaseModel):
    id: str
    student_id: str
    date: date_type
    status: str
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None

    class Config:
        from_attributes = True


class AttendanceStats(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0


# =============================================================================
# Fees
# =============================================================================


class FeeCreate(BaseModel):
    student_id: str
    amount: float = Field(..., ge=0)
    payment_method: Optional[PaymentMethod] = None
    term: str = Field(..., min_length=1)
    academic_year: str = Field(..., min_length=1)
    receipt_number: Optional[str] = None
    status: FeeStatus = FeeStatus.PAID


class FeeUpdate(BaseModel):
    amount: Optional[float] = Field(None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    term: Optional[str] = Field(None, min_length=1)
    academic_year: Optional[str] = Field(None, min_length=1)
    receipt_number: Optional[str] = None
    status: Optional[FeeStatus] = None


class FeeOut(BaseModel):
    id: str
    student_id: str
    amount: float
    payment_method: Optional[str] = None
    term: str
    academic_year: str
    status: str
    receipt_number: Optional[str] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None
    student_name: str = "N/A"

    class Config:
        from_attributes = True


# =============================================================================
# Notifications
# =============================================================================


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    category: NotificationCategory = NotificationCategory.SYSTEM
    recipient: Optional[str] = None

    @field_validator("title", "message")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    type: str
    category: str
    recipient: str
    read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    count: int


# =============================================================================
# Reports
# =============================================================================


class DashboardStats(BaseModel):
    total_students: int
    active_students: int
    total_classes: int
    present_today: int
    pending_fees: int


class ClassDistribution(BaseModel):
    class_name: str = Field(..., alias="class")
    count: int

    class Config:
        populate_by_name = True


class TopPerformer(BaseModel):
    student_id: str
    name: str
    roll_number: str = Field(..., alias="rollNumber")
    class_name: str = Field(..., alias="class")
    average_marks: float = Field(..., alias="averageMarks")
    total_subjects: int = Field(..., alias="totalSubjects")

    class Config:
        populate_by_name = True


class Activity(BaseModel):
    type: str
    title: str
    description: str
    time_ago: str = Field(..., alias="timeAgo")
    created_at: datetime

    class Config:
        populate_by_name = True
