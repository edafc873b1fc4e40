# students.py
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import ValidationError

from app_logging import get_logger
from auth import get_current_user
from dependencies import get_notification_store, get_student_store
from models import NotificationCategory, NotificationType
import schemas
from stores import NotificationStore, StudentStore

router = APIRouter(prefix="/api/students", tags=["Students"])

logger = get_logger(__name__)


@router.get("", response_model=List[schemas.StudentOut])
def list_students(
    class_name: Optional[str] = Query(None, alias="class"),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    current_user: schemas.TokenData = Depends(get_current_user),
    students: StudentStore = Depends(get_student_store),
):
    return students.list(class_name=class_name, status=status_filter, search=search)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_student(
    payload: schemas.StudentCreate,
    current_user: schemas.TokenData = Depends(get_current_user),
    students: StudentStore = Depends(get_student_store),
    notifications: NotificationStore = Depends(get_notification_store),
):
    student = students.create(payload)
    notifications.create(
        recipient=current_user.id,
        title="New Student Added",
        message=f"{student.name} has been added to class {student.class_name}",
        type=NotificationType.SUCCESS.value,
        category=NotificationCategory.STUDENT.value,
    )
    return {
        "message": "Student created successfully",
        "student": schemas.StudentOut.model_validate(student),
    }


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def bulk_import_students(
    body: Any = Body(...),
    current_user: schemas.TokenData = Depends(get_current_user),
    students: StudentStore = Depends(get_student_store),
):
    """Import many students at once.

    Rows whose roll number is already used are skipped and listed in the
    response instead of failing the whole import.
    """
    rows = body.get("students") if isinstance(body, dict) else None
    if not isinstance(rows, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid data format. Expected an array of students.",
        )
    try:
        payload = schemas.StudentBulkCreate(students=rows)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{where}: {first.get('msg')}",
        )

    created, skipped = students.bulk_create(payload.students)
    logger.info("bulk import created %d students, skipped %d", len(created), len(skipped))
    return {
        "message": f"{len(created)} students imported successfully",
        "students": [schemas.StudentOut.model_validate(s) for s in created],
        "skipped": skipped,
    }


@router.get("/{student_id}", response_model=schemas.StudentOut)
def get_student(
    student_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    students: StudentStore = Depends(get_student_store),
):
    return students.get(student_id)


@router.put("/{student_id}")
def update_student(
    student_id: str,
    payload: schemas.StudentUpdate,
    current_user: schemas.TokenData = Depends(get_current_user),
    students: StudentStore = Depends(get_student_store),
):
    student = students.update(student_id, payload)
    return {
        "message": "Student updated successfully",
        "student": schemas.StudentOut.model_validate(student),
    }


@router.delete("/{student_id}")
def delete_student(
    student_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    students: StudentStore = Depends(get_student_store),
):
    students.delete(student_id)
    logger.info("student %s deleted by %s", student_id, current_user.id)
    return {"message": "Student and related records deleted successfully"}
