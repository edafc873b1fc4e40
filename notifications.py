# notifications.py
from typing import List

from fastapi import APIRouter, Depends, Query, status

from auth import get_current_user
from dependencies import get_notification_store, get_user_store
import schemas
from stores import NotFoundError, NotificationStore, UserStore

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=List[schemas.NotificationOut])
def list_notifications(
    limit: int = Query(0, ge=0),
    current_user: schemas.TokenData = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    """The caller's notifications, newest first. ``limit=0`` returns all."""
    return notifications.list_for(current_user.id, limit=limit)


@router.get("/unread-count", response_model=schemas.UnreadCount)
def unread_count(
    current_user: schemas.TokenData = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    return {"count": notifications.unread_count(current_user.id)}


@router.put("/mark-all-read")
def mark_all_read(
    current_user: schemas.TokenData = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    notifications.mark_all_read(current_user.id)
    return {"message": "All notifications marked as read"}


@router.put("/{notification_id}/read", response_model=schemas.NotificationOut)
def mark_read(
    notification_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    return notifications.mark_read(notification_id, current_user.id)


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    current_user: schemas.TokenData = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
):
    notifications.delete(notification_id, current_user.id)
    return {"message": "Notification deleted"}


@router.post(
    "",
    response_model=schemas.NotificationOut,
    status_code=status.HTTP_201_CREATED,
)
def create_notification(
    payload: schemas.NotificationCreate,
    current_user: schemas.TokenData = Depends(get_current_user),
    notifications: NotificationStore = Depends(get_notification_store),
    users: UserStore = Depends(get_user_store),
):
    if payload.recipient and users.get(payload.recipient) is None:
        raise NotFoundError("Recipient not found")
    return notifications.create(
        recipient=payload.recipient or current_user.id,
        title=payload.title,
        message=payload.message,
        type=payload.type.value,
        category=payload.category.value,
    )
