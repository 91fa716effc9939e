"""Per-lesson progress of a learner and the formation progress derived from it.

A formation's progress is the share of its *published* lessons the learner has
completed. The derived value is written with the same conditional UPDATE as a
direct submission, so it never lowers what is already stored: a lesson
published after the fact does not take progress back.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid
from app.core.security import utcnow
from app.models.formation import Enrollment, Lesson, LessonProgress, Section
from app.policy import Action, Actor, enforce
from app.policy.resources import enrollment_ref, learner_lesson_ref
from app.services.enrollments import COMPLETE, advance_progress, find_enrollment

logger = logging.getLogger(__name__)


def get_lesson(db: Session, lesson_id: UUID) -> Optional[Lesson]:
    return db.query(Lesson).filter(Lesson.id == lesson_id).first()


def find_lesson_progress(db: Session, account_id: UUID, lesson_id: UUID) -> Optional[LessonProgress]:
    return (
        db.query(LessonProgress)
        .filter(LessonProgress.account_id == account_id, LessonProgress.lesson_id == lesson_id)
        .first()
    )


def load_learner_lesson(
    db: Session,
    actor: Actor,
    lesson_id: UUID,
    action: Action,
    *,
    lock: bool = False,
) -> Tuple[Lesson, Enrollment]:
    """Lesson plus the actor's enrollment in its formation, or the mapped denial."""
    lesson = get_lesson(db, lesson_id)
    enrollment = None
    if lesson is not None:
        enrollment = find_enrollment(db, actor.account_id, lesson.section.formation_id, lock=lock)
    enforce(actor, action, learner_lesson_ref(lesson, enrollment))
    return lesson, enrollment


def formation_progress(db: Session, account_id: UUID, formation_id: UUID) -> int:
    lesson_ids = [
        row.id
        for row in db.query(Lesson.id)
        .join(Section, Lesson.section_id == Section.id)
        .filter(Section.formation_id == formation_id, Lesson.is_published.is_(True))
    ]
    if not lesson_ids:
        return 0
    completed = (
        db.query(LessonProgress)
        .filter(
            LessonProgress.account_id == account_id,
            LessonProgress.is_completed.is_(True),
            LessonProgress.lesson_id.in_(lesson_ids),
        )
        .count()
    )
    return min(COMPLETE, int(completed * COMPLETE / len(lesson_ids) + 0.5))


def mark_lesson(
    db: Session,
    account_id: UUID,
    lesson: Lesson,
    watched_seconds: int,
    completed: bool,
    now: datetime,
) -> LessonProgress:
    """Upsert sem commit: o tempo assistido só cresce e a conclusão é definitiva."""
    record = find_lesson_progress(db, account_id, lesson.id)
    if record is None:
        record = LessonProgress(account_id=account_id, lesson_id=lesson.id, watched_seconds=0, is_completed=False)
        db.add(record)
    record.watched_seconds = max(record.watched_seconds or 0, watched_seconds)
    if completed and not record.is_completed:
        record.is_completed = True
        record.completed_at = now
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise Conflict("Progresso registrado em paralelo; tente novamente")
    return record


def settle_formation_progress(db: Session, enrollment: Enrollment, now: datetime) -> Enrollment:
    """Recalcula o progresso da formação e faz o commit da transação corrente."""
    progress = formation_progress(db, enrollment.account_id, enrollment.formation_id)
    if not advance_progress(db, enrollment.id, progress, now):
        logger.info(
            "Progresso derivado (%s%%) abaixo do registrado na matrícula %s; mantido",
            progress,
            enrollment.id,
        )
    db.commit()
    db.refresh(enrollment)
    return enrollment


def record_progress(
    db: Session,
    actor: Actor,
    lesson_id: UUID,
    watched_seconds: int = 0,
    completed: bool = False,
    *,
    now: Optional[datetime] = None,
) -> Tuple[LessonProgress, Enrollment]:
    if watched_seconds < 0:
        raise Invalid("O tempo assistido não pode ser negativo")

    now = now or utcnow()
    lesson, enrollment = load_learner_lesson(db, actor, lesson_id, Action.LESSON_UPDATE_PROGRESS, lock=True)
    record = mark_lesson(db, actor.account_id, lesson, watched_seconds, completed, now)
    settle_formation_progress(db, enrollment, now)
    db.refresh(record)
    logger.info(
        "Lição %s de %s: %ss assistidos, concluída=%s; formação em %s%%",
        lesson_id,
        actor.account_id,
        record.watched_seconds,
        record.is_completed,
        enrollment.progress,
    )
    return record, enrollment


def list_lesson_progress(db: Session, actor: Actor, formation_id: UUID) -> List[LessonProgress]:
    enrollment = find_enrollment(db, actor.account_id, formation_id)
    enforce(actor, Action.ENROLLMENT_VIEW, enrollment_ref(enrollment))
    return (
        db.query(LessonProgress)
        .join(Lesson, LessonProgress.lesson_id == Lesson.id)
        .join(Section, Lesson.section_id == Section.id)
        .filter(LessonProgress.account_id == actor.account_id, Section.formation_id == formation_id)
        .order_by(Section.position.asc(), Lesson.position.asc())
        .all()
    )
