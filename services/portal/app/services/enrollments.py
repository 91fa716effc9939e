"""Learner progress on assigned formations.

Progress only moves forward. The write is a conditional UPDATE so that two
concurrent submissions can never lower a stored value, and ``completed_at``
is stamped exactly once, by whichever write first reaches 100.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid
from app.core.security import utcnow
from app.models.formation import Enrollment
from app.policy import Action, Actor, enforce
from app.policy.resources import enrollment_ref

logger = logging.getLogger(__name__)

COMPLETE = 100


def get_enrollment(db: Session, enrollment_id: UUID) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()


def find_enrollment(
    db: Session,
    account_id: UUID,
    formation_id: UUID,
    *,
    lock: bool = False,
) -> Optional[Enrollment]:
    query = db.query(Enrollment).filter(
        Enrollment.account_id == account_id,
        Enrollment.formation_id == formation_id,
    )
    if lock:
        query = query.with_for_update()
    return query.first()


def view_enrollment(db: Session, actor: Actor, enrollment_id: UUID) -> Enrollment:
    enrollment = get_enrollment(db, enrollment_id)
    enforce(actor, Action.ENROLLMENT_VIEW, enrollment_ref(enrollment))
    return enrollment


def list_own_enrollments(db: Session, actor: Actor) -> List[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.account_id == actor.account_id)
        .order_by(Enrollment.created_at.desc())
        .all()
    )


def advance_progress(db: Session, enrollment_id: UUID, progress: int, now: datetime) -> bool:
    """Conditional UPDATE, no commit. False when the stored value is already higher."""
    completed_at = Enrollment.completed_at
    if progress == COMPLETE:
        completed_at = case((Enrollment.completed_at.is_(None), now), else_=Enrollment.completed_at)
    result = db.execute(
        update(Enrollment)
        .where(Enrollment.id == enrollment_id, Enrollment.progress <= progress)
        .values(progress=progress, completed_at=completed_at, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def update_progress(
    db: Session,
    actor: Actor,
    formation_id: UUID,
    progress: int,
    *,
    now: Optional[datetime] = None,
) -> Enrollment:
    if progress < 0 or progress > COMPLETE:
        raise Invalid("O progresso deve estar entre 0 e 100")

    now = now or utcnow()
    enrollment = find_enrollment(db, actor.account_id, formation_id, lock=True)
    enforce(actor, Action.ENROLLMENT_UPDATE_PROGRESS, enrollment_ref(enrollment))

    if not advance_progress(db, enrollment.id, progress, now):
        db.rollback()
        raise Conflict("O progresso não pode diminuir")
    db.commit()
    db.refresh(enrollment)
    logger.info(
        "Progresso de %s na formação %s: %s%%",
        actor.account_id,
        formation_id,
        enrollment.progress,
    )
    return enrollment
