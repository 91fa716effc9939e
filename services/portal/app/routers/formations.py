from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.policy import Actor
from app.schemas.formation_schema import (
    EnrollmentOut,
    FormationAssign,
    FormationCreate,
    FormationOut,
    FormationUpdate,
    LessonCreate,
    LessonOut,
    ProgressUpdate,
    SectionCreate,
    SectionOut,
)
from app.services import enrollments, formations

router = APIRouter(tags=["Formations"])


@router.post("/formations", response_model=FormationOut, status_code=status.HTTP_201_CREATED)
def create_formation(
    payload: FormationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return formations.create_formation(db, actor, payload.title, payload.description)


@router.get("/formations/enrollments/me", response_model=List[EnrollmentOut])
def list_my_enrollments(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return enrollments.list_own_enrollments(db, actor)


@router.put("/formations/{formation_id}", response_model=FormationOut)
def update_formation(
    formation_id: UUID,
    payload: FormationUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return formations.update_formation(db, actor, formation_id, payload.model_dump(exclude_unset=True))


@router.patch("/formations/{formation_id}/toggle-active", response_model=FormationOut)
def toggle_formation(formation_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return formations.toggle_active(db, actor, formation_id)


@router.post(
    "/formations/{formation_id}/sections",
    response_model=SectionOut,
    status_code=status.HTTP_201_CREATED,
)
def create_section(
    formation_id: UUID,
    payload: SectionCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return formations.add_section(db, actor, formation_id, payload.title, payload.position)


@router.post("/sections/{section_id}/lessons", response_model=LessonOut, status_code=status.HTTP_201_CREATED)
def create_lesson(
    section_id: UUID,
    payload: LessonCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return formations.add_lesson(db, actor, section_id, payload.model_dump())


@router.patch("/lessons/{lesson_id}/publish", response_model=LessonOut)
def publish_lesson(
    lesson_id: UUID,
    published: bool = Query(default=True),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return formations.publish_lesson(db, actor, lesson_id, published)


@router.post("/formations/{formation_id}/assign", response_model=List[EnrollmentOut])
def assign_formation(
    formation_id: UUID,
    payload: FormationAssign,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return formations.assign_formation(db, actor, formation_id, payload.account_ids)


@router.put("/formations/{formation_id}/progress", response_model=EnrollmentOut)
def update_progress(
    formation_id: UUID,
    payload: ProgressUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return enrollments.update_progress(db, actor, formation_id, payload.progress)


@router.get("/enrollments/{enrollment_id}", response_model=EnrollmentOut)
def get_enrollment(enrollment_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return enrollments.view_enrollment(db, actor, enrollment_id)
