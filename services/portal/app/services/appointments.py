"""Consultation appointments.

    PENDING --approve--> CONFIRMED --complete--> COMPLETED
       |  \--reject--> REJECTED
       \--cancel--> CANCELED

Each transition re-reads the row under ``FOR UPDATE`` (a no-op on SQLite),
asks the policy, then writes with ``WHERE status = <expected>``. Losing a
race therefore surfaces as Conflict instead of a silent overwrite.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid
from app.core.security import as_utc, utcnow
from app.models.account import Account
from app.models.appointment import Appointment, ConsultationFeedback
from app.models.enums import AppointmentStatus, Role
from app.models.tenant import Tenant
from app.policy import Action, Actor, enforce
from app.policy.resources import appointment_ref, feedback_target_ref, tenant_ref
from app.services.notifications import notify, notify_many, send_email, super_admin_ids
from app.services.subscriptions import is_tenant_entitled
from shared.messaging import Publisher

logger = logging.getLogger(__name__)


def get_appointment(db: Session, appointment_id: UUID, *, lock: bool = False) -> Optional[Appointment]:
    query = db.query(Appointment).filter(Appointment.id == appointment_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def _transition(db: Session, appointment: Appointment, expected: str, **values) -> Appointment:
    result = db.execute(
        update(Appointment)
        .where(Appointment.id == appointment.id, Appointment.status == expected)
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise Conflict("O agendamento mudou de estado")
    db.commit()
    db.refresh(appointment)
    return appointment


def create_appointment(
    db: Session,
    actor: Actor,
    *,
    title: str,
    scheduled_at: datetime,
    description: Optional[str] = None,
    duration_minutes: int = 60,
) -> Appointment:
    tenant = db.query(Tenant).filter(Tenant.id == actor.tenant_id).first() if actor.tenant_id else None
    entitled = is_tenant_entitled(db, actor.tenant_id) if tenant else None
    enforce(actor, Action.APPOINTMENT_CREATE, tenant_ref(tenant, entitled=entitled))

    appointment = Appointment(
        tenant_id=actor.tenant_id,
        employee_id=actor.account_id,
        title=title,
        description=description,
        scheduled_at=as_utc(scheduled_at),
        duration_minutes=duration_minutes,
        status=AppointmentStatus.PENDING.value,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)

    logger.info("Agendamento %s solicitado por %s", appointment.id, actor.account_id)
    notify_many(
        db,
        super_admin_ids(db),
        "appointment_requested",
        "Nova solicitação de consultoria",
        f"{tenant.name} solicitou \"{appointment.title}\".",
        {"appointment_id": str(appointment.id), "tenant_id": str(appointment.tenant_id)},
    )
    return appointment


def list_appointments(db: Session, actor: Actor, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
    query = db.query(Appointment)
    if actor.role is Role.SUPER_ADMIN:
        pass
    elif actor.role is Role.CONSULTANT:
        query = query.filter(Appointment.consultant_id == actor.account_id)
    elif actor.role is Role.TENANT_ADMIN:
        query = query.filter(Appointment.tenant_id == actor.tenant_id)
    elif actor.role is Role.EMPLOYEE:
        query = query.filter(
            Appointment.tenant_id == actor.tenant_id,
            Appointment.employee_id == actor.account_id,
        )
    else:
        return []
    if status is not None:
        query = query.filter(Appointment.status == status.value)
    return query.order_by(Appointment.scheduled_at.asc()).all()


def view_appointment(db: Session, actor: Actor, appointment_id: UUID) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    enforce(actor, Action.APPOINTMENT_VIEW, appointment_ref(appointment))
    return appointment


def _decide_appointment(
    db: Session,
    actor: Actor,
    appointment_id: UUID,
    action: Action,
    target: AppointmentStatus,
    notes: Optional[str],
    publisher: Optional[Publisher],
) -> Appointment:
    appointment = get_appointment(db, appointment_id, lock=True)
    enforce(actor, action, appointment_ref(appointment))

    values = {"status": target.value}
    if notes is not None:
        values["notes"] = notes
    appointment = _transition(db, appointment, AppointmentStatus.PENDING.value, **values)

    label = "confirmado" if target is AppointmentStatus.CONFIRMED else "recusado"
    notify(
        db,
        appointment.employee_id,
        f"appointment_{target.value.lower()}",
        f"Agendamento {label}",
        f"Seu agendamento \"{appointment.title}\" foi {label}.",
        {"appointment_id": str(appointment.id), "status": appointment.status},
    )
    employee = db.query(Account).filter(Account.id == appointment.employee_id).first()
    if employee is not None:
        send_email(
            publisher,
            f"appointment_{target.value.lower()}",
            {
                "to": employee.email,
                "name": employee.name,
                "title": appointment.title,
                "scheduled_at": appointment.scheduled_at,
                "notes": appointment.notes,
            },
            tenant_id=appointment.tenant_id,
        )
    return appointment


def approve_appointment(
    db: Session,
    actor: Actor,
    appointment_id: UUID,
    notes: Optional[str] = None,
    *,
    publisher: Optional[Publisher] = None,
) -> Appointment:
    return _decide_appointment(
        db, actor, appointment_id, Action.APPOINTMENT_APPROVE, AppointmentStatus.CONFIRMED, notes, publisher
    )


def reject_appointment(
    db: Session,
    actor: Actor,
    appointment_id: UUID,
    notes: Optional[str] = None,
    *,
    publisher: Optional[Publisher] = None,
) -> Appointment:
    return _decide_appointment(
        db, actor, appointment_id, Action.APPOINTMENT_REJECT, AppointmentStatus.REJECTED, notes, publisher
    )


def assign_consultant(
    db: Session,
    actor: Actor,
    appointment_id: UUID,
    consultant_id: UUID,
    meeting_url: Optional[str] = None,
) -> Appointment:
    appointment = get_appointment(db, appointment_id, lock=True)
    enforce(actor, Action.APPOINTMENT_ASSIGN_CONSULTANT, appointment_ref(appointment))

    consultant = db.query(Account).filter(Account.id == consultant_id).first()
    if consultant is None or consultant.role != Role.CONSULTANT.value or not consultant.is_active:
        raise Invalid("Consultor inválido")

    values = {"consultant_id": consultant_id}
    if meeting_url is not None:
        values["meeting_url"] = meeting_url
    appointment = _transition(db, appointment, appointment.status, **values)

    notify(
        db,
        consultant_id,
        "appointment_assigned",
        "Nova consultoria atribuída",
        f"Você foi atribuído ao agendamento \"{appointment.title}\".",
        {"appointment_id": str(appointment.id)},
    )
    return appointment


def complete_appointment(
    db: Session,
    actor: Actor,
    appointment_id: UUID,
    notes: Optional[str] = None,
) -> Appointment:
    appointment = get_appointment(db, appointment_id, lock=True)
    enforce(actor, Action.APPOINTMENT_COMPLETE, appointment_ref(appointment))

    values = {"status": AppointmentStatus.COMPLETED.value, "completed_at": utcnow()}
    if notes is not None:
        values["notes"] = notes
    appointment = _transition(db, appointment, AppointmentStatus.CONFIRMED.value, **values)

    notify(
        db,
        appointment.employee_id,
        "feedback_request",
        "Como foi sua consultoria?",
        f"Conte-nos como foi \"{appointment.title}\".",
        {"appointment_id": str(appointment.id)},
    )
    return appointment


def cancel_appointment(db: Session, actor: Actor, appointment_id: UUID) -> Appointment:
    appointment = get_appointment(db, appointment_id, lock=True)
    enforce(actor, Action.APPOINTMENT_CANCEL, appointment_ref(appointment))
    appointment = _transition(
        db, appointment, AppointmentStatus.PENDING.value, status=AppointmentStatus.CANCELED.value
    )
    if appointment.consultant_id is not None:
        notify(
            db,
            appointment.consultant_id,
            "appointment_canceled",
            "Agendamento cancelado",
            f"O agendamento \"{appointment.title}\" foi cancelado.",
            {"appointment_id": str(appointment.id)},
        )
    return appointment


def submit_feedback(
    db: Session,
    actor: Actor,
    appointment_id: UUID,
    *,
    rating: int,
    satisfaction: int,
    would_recommend: bool = False,
    comments: Optional[str] = None,
) -> ConsultationFeedback:
    appointment = get_appointment(db, appointment_id, lock=True)
    enforce(actor, Action.FEEDBACK_CREATE, feedback_target_ref(appointment))

    feedback = ConsultationFeedback(
        appointment_id=appointment.id,
        rating=rating,
        satisfaction=satisfaction,
        would_recommend=would_recommend,
        comments=comments,
    )
    db.add(feedback)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Feedback já enviado para este agendamento")
    db.refresh(feedback)

    if appointment.consultant_id is not None:
        notify(
            db,
            appointment.consultant_id,
            "feedback_received",
            "Novo feedback recebido",
            f"Nota {rating}/5 para \"{appointment.title}\".",
            {"appointment_id": str(appointment.id), "rating": rating},
        )
    return feedback
