"""In-app notifications and transactional e-mail hand-off.

Both run *after* the primary change is committed and never fail the request
that triggered them.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.account import Account
from app.models.enums import Role
from app.models.notification import Notification
from app.policy import Action, Actor, enforce
from app.policy.resources import notification_ref
from shared.messaging import Publisher

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def notify(
    db: Session,
    account_id: UUID,
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> Optional[Notification]:
    notification = Notification(
        account_id=account_id,
        type=type,
        title=title,
        message=message,
        data=data,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Falha ao criar notificação %s para %s", type, account_id)
        return None
    return notification


def notify_many(
    db: Session,
    account_ids: Iterable[UUID],
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> int:
    sent = 0
    for account_id in account_ids:
        if notify(db, account_id, type, title, message, data) is not None:
            sent += 1
    return sent


def super_admin_ids(db: Session) -> List[UUID]:
    rows = (
        db.query(Account.id)
        .filter(Account.role == Role.SUPER_ADMIN.value, Account.is_active.is_(True))
        .all()
    )
    return [row[0] for row in rows]


def send_email(
    publisher: Optional[Publisher],
    kind: str,
    payload: Dict[str, Any],
    *,
    tenant_id: Optional[UUID] = None,
) -> None:
    """Entrega o e-mail ao worker via stream; sem Redis configurado só registra."""
    if publisher is None:
        logger.info("E-mail %s não enviado (publisher desabilitado) para %s", kind, payload.get("to"))
        return
    metadata = {"tenant_id": str(tenant_id)} if tenant_id else None
    publisher.publish(f"email.{kind}", payload, metadata=metadata)


def list_notifications(
    db: Session,
    actor: Actor,
    *,
    unread_only: bool = False,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Dict[str, Any]:
    query = db.query(Notification).filter(Notification.account_id == actor.account_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()
    unread_count = (
        db.query(Notification)
        .filter(Notification.account_id == actor.account_id, Notification.is_read.is_(False))
        .count()
    )
    return {"notifications": notifications, "unread_count": unread_count}


def _get(db: Session, notification_id: UUID) -> Optional[Notification]:
    return db.query(Notification).filter(Notification.id == notification_id).first()


def mark_read(db: Session, actor: Actor, notification_id: UUID) -> Notification:
    notification = _get(db, notification_id)
    enforce(actor, Action.NOTIFICATION_READ, notification_ref(notification))
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, actor: Actor) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.account_id == actor.account_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return count


def dismiss(db: Session, actor: Actor, notification_id: UUID) -> None:
    notification = _get(db, notification_id)
    enforce(actor, Action.NOTIFICATION_DISMISS, notification_ref(notification))
    db.delete(notification)
    db.commit()


def dismiss_all(db: Session, actor: Actor) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.account_id == actor.account_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count
