from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.policy import Actor
from app.schemas.notification_schema import AffectedCount, NotificationList, NotificationMark
from app.services import notifications

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(
    unread: bool = Query(default=False),
    limit: int = Query(default=notifications.DEFAULT_PAGE_SIZE, ge=1, le=200),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return notifications.list_notifications(db, actor, unread_only=unread, limit=limit)


@router.patch("", response_model=AffectedCount)
def mark_notifications(
    payload: NotificationMark,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    if payload.mark_all_as_read:
        return {"count": notifications.mark_all_read(db, actor)}
    notifications.mark_read(db, actor, payload.notification_id)
    return {"count": 1}


@router.delete("", response_model=AffectedCount)
def delete_notifications(
    notification_id: Optional[UUID] = Query(default=None, alias="id"),
    delete_all: bool = Query(default=False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    if notification_id is not None:
        notifications.dismiss(db, actor, notification_id)
        return {"count": 1}
    if delete_all:
        return {"count": notifications.dismiss_all(db, actor)}
    return {"count": 0}
