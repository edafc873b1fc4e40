# fees.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from auth import get_current_user
from dependencies import get_fee_store, get_notification_store
from models import NotificationCategory, NotificationType
import schemas
from stores import FeeStore, NotificationStore

router = APIRouter(prefix="/api/fees", tags=["Fees"])


def _fee_out(fee) -> schemas.FeeOut:
    out = schemas.FeeOut.model_validate(fee)
    out.student_name = fee.student.name if fee.student else "N/A"
    return out


@router.get("", response_model=List[schemas.FeeOut])
def list_fees(
    status_filter: Optional[str] = Query(None, alias="status"),
    term: Optional[str] = None,
    academic_year: Optional[str] = None,
    current_user: schemas.TokenData = Depends(get_current_user),
    fees: FeeStore = Depends(get_fee_store),
):
    rows = fees.list(status=status_filter, term=term, academic_year=academic_year)
    return [_fee_out(f) for f in rows]


@router.get("/student/{student_id}", response_model=List[schemas.FeeOut])
def get_student_fees(
    student_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    fees: FeeStore = Depends(get_fee_store),
):
    return [_fee_out(f) for f in fees.list_for_student(student_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def add_fee_payment(
    payload: schemas.FeeCreate,
    current_user: schemas.TokenData = Depends(get_current_user),
    fees: FeeStore = Depends(get_fee_store),
    notifications: NotificationStore = Depends(get_notification_store),
):
    fee = fees.create(payload)
    notifications.create(
        recipient=current_user.id,
        title="Fee Payment Recorded",
        message=f"Payment of ₦{fee.amount:,.2f} has been recorded",
        type=NotificationType.SUCCESS.value,
        category=NotificationCategory.FEE.value,
    )
    return {"message": "Fee payment recorded successfully", "fee": _fee_out(fee)}


@router.get("/{fee_id}", response_model=schemas.FeeOut)
def get_fee(
    fee_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    fees: FeeStore = Depends(get_fee_store),
):
    return _fee_out(fees.get(fee_id))


@router.put("/{fee_id}")
def update_fee(
    fee_id: str,
    payload: schemas.FeeUpdate,
    current_user: schemas.TokenData = Depends(get_current_user),
    fees: FeeStore = Depends(get_fee_store),
):
    """Partial update; moving the status to ``paid`` stamps the payment date."""
    fee = fees.update(fee_id, payload)
    return {"message": "Fee record updated successfully", "fee": _fee_out(fee)}


@router.delete("/{fee_id}")
def delete_fee(
    fee_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    fees: FeeStore = Depends(get_fee_store),
):
    fees.delete(fee_id)
    return {"message": "Fee record deleted successfully"}
