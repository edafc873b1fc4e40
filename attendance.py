# attendance.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from auth import get_current_user
from dependencies import get_attendance_store
import schemas
from stores import AttendanceStore, current_month_range

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


def _query_day(value: Optional[str], name: str) -> Optional[date]:
    """Parse a date query parameter the same way request bodies are parsed."""
    try:
        return schemas.to_day(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{name}: Input should be a valid date",
        )


@router.get("", response_model=List[schemas.AttendanceOut])
def list_attendance(
    on_day: Optional[str] = Query(None, alias="date"),
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    """Attendance records, limited to a single day when ``date`` is given."""
    return attendance.list(on_day=_query_day(on_day, "date"))


@router.get("/stats", response_model=schemas.AttendanceStats)
def attendance_stats(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    """Count records per status; defaults to the current calendar month."""
    start = _query_day(start_date, "startDate")
    end = _query_day(end_date, "endDate")
    if start is None and end is None:
        start, end = current_month_range()
    return attendance.stats(start or date.min, end or date.max)


@router.get("/student/{student_id}", response_model=List[schemas.AttendanceOut])
def get_student_attendance(
    student_id: str,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    return attendance.list_for_student(
        student_id,
        start=_query_day(start_date, "startDate"),
        end=_query_day(end_date, "endDate"),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def mark_attendance(
    payload: schemas.AttendanceCreate,
    response: Response,
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    record, created = attendance.mark(payload)
    if not created:
        response.status_code = status.HTTP_200_OK
        message = "Attendance updated successfully"
    else:
        message = "Attendance marked successfully"
    return {
        "message": message,
        "attendance": schemas.AttendanceOut.model_validate(record),
    }


@router.get("/{attendance_id}", response_model=schemas.AttendanceOut)
def get_attendance(
    attendance_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    return attendance.get(attendance_id)


@router.put("/{attendance_id}")
def update_attendance(
    attendance_id: str,
    payload: schemas.AttendanceUpdate,
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    record = attendance.update(attendance_id, payload)
    return {
        "message": "Attendance updated successfully",
        "attendance": schemas.AttendanceOut.model_validate(record),
    }


@router.delete("/{attendance_id}")
def delete_attendance(
    attendance_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    attendance: AttendanceStore = Depends(get_attendance_store),
):
    attendance.delete(attendance_id)
    return {"message": "Attendance record deleted successfully"}
