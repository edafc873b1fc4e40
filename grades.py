# grades.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from auth import get_current_user
from dependencies import get_grade_store, get_notification_store
from models import NotificationCategory, NotificationType
import schemas
from stores import GradeStore, NotificationStore

router = APIRouter(prefix="/api/grades", tags=["Grades"])


@router.get("", response_model=List[schemas.GradeOut])
def list_grades(
    student_id: Optional[str] = None,
    subject: Optional[str] = None,
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
):
    return grades.list(
        student_id=student_id, subject=subject, term=term, academic_year=academic_year
    )


@router.get("/all", response_model=List[schemas.GradeOut])
def list_all_grades(
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
):
    return grades.list()


@router.get("/student/{student_id}", response_model=List[schemas.GradeOut])
def get_student_grades(
    student_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
):
    return grades.list(student_id=student_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def add_grade(
    payload: schemas.GradeCreate,
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
    notifications: NotificationStore = Depends(get_notification_store),
):
    """Record a grade; the letter grade is derived from the marks."""
    grade = grades.create(payload)
    notifications.create(
        recipient=current_user.id,
        title="Grade Added",
        message=f"Grade for {grade.subject} has been recorded",
        type=NotificationType.INFO.value,
        category=NotificationCategory.GRADE.value,
    )
    return {
        "message": "Grade added successfully",
        "grade": schemas.GradeOut.model_validate(grade),
    }


@router.get("/{grade_id}", response_model=schemas.GradeOut)
def get_grade(
    grade_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
):
    return grades.get(grade_id)


@router.put("/{grade_id}")
def update_grade(
    grade_id: str,
    payload: schemas.GradeUpdate,
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
):
    grade = grades.update(grade_id, payload)
    return {
        "message": "Grade updated successfully",
        "grade": schemas.GradeOut.model_validate(grade),
    }


@router.delete("/{grade_id}")
def delete_grade(
    grade_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    grades: GradeStore = Depends(get_grade_store),
):
    grades.delete(grade_id)
    return {"message": "Grade deleted successfully"}
