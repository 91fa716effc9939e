from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.models.enums import AppointmentStatus
from app.policy import Actor
from app.schemas.appointment_schema import (
    AppointmentCreate,
    AppointmentDecision,
    AppointmentOut,
    ConsultantAssignment,
    FeedbackCreate,
    FeedbackOut,
)
from app.services import appointments

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _notes(payload: Optional[AppointmentDecision]) -> Optional[str]:
    return payload.notes if payload else None


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.create_appointment(db, actor, **payload.model_dump())


@router.get("", response_model=List[AppointmentOut])
def list_appointments(
    status_filter: Optional[AppointmentStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.list_appointments(db, actor, status_filter)


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return appointments.view_appointment(db, actor, appointment_id)


@router.post("/{appointment_id}/approve", response_model=AppointmentOut)
def approve_appointment(
    appointment_id: UUID,
    request: Request,
    payload: Optional[AppointmentDecision] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.approve_appointment(
        db, actor, appointment_id, _notes(payload), publisher=request.app.state.publisher
    )


@router.post("/{appointment_id}/reject", response_model=AppointmentOut)
def reject_appointment(
    appointment_id: UUID,
    request: Request,
    payload: Optional[AppointmentDecision] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.reject_appointment(
        db, actor, appointment_id, _notes(payload), publisher=request.app.state.publisher
    )


@router.post("/{appointment_id}/assign", response_model=AppointmentOut)
def assign_consultant(
    appointment_id: UUID,
    payload: ConsultantAssignment,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.assign_consultant(db, actor, appointment_id, payload.consultant_id, payload.meeting_url)


@router.post("/{appointment_id}/complete", response_model=AppointmentOut)
def complete_appointment(
    appointment_id: UUID,
    payload: Optional[AppointmentDecision] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.complete_appointment(db, actor, appointment_id, _notes(payload))


@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)
def cancel_appointment(appointment_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return appointments.cancel_appointment(db, actor, appointment_id)


@router.post("/{appointment_id}/feedback", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    appointment_id: UUID,
    payload: FeedbackCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.submit_feedback(db, actor, appointment_id, **payload.model_dump())
