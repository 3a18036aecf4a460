import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from fridgy import crud
from fridgy.api.deps import CurrentUser, SessionDep
from fridgy.models import Message, NotificationPublic, NotificationsPublic

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationsPublic)
def read_notifications(session: SessionDep, current_user: CurrentUser) -> Any:
    notifications = crud.get_user_notifications(session=session, owner_id=current_user.id)
    return NotificationsPublic(
        data=[NotificationPublic.model_validate(item) for item in notifications],
        count=len(notifications),
        unread_count=sum(1 for item in notifications if not item.read),
    )


@router.patch("/{notification_id}/read", response_model=NotificationPublic)
def read_notification(
    notification_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    notification = crud.get_owned_notification(
        session=session, notification_id=notification_id, owner_id=current_user.id
    )
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return crud.mark_notification_read(session=session, notification=notification)


@router.post("/read-all", response_model=Message)
def read_all_notifications(session: SessionDep, current_user: CurrentUser) -> Any:
    updated = crud.mark_all_notifications_read(session=session, owner_id=current_user.id)
    return Message(message=f"{updated} notifications marked as read")


@router.delete("/{notification_id}", response_model=Message)
def delete_notification(
    notification_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    notification = crud.get_owned_notification(
        session=session, notification_id=notification_id, owner_id=current_user.id
    )
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    session.delete(notification)
    session.commit()
    return Message(message="Notification deleted successfully")
