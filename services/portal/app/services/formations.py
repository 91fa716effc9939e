import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid
from app.models.account import Account
from app.models.formation import Enrollment, Formation, Lesson, Section
from app.policy import Action, Actor, ResourceRef, enforce
from app.policy.resources import formation_assignment_ref, formation_ref, lesson_ref, section_ref
from app.services.enrollments import find_enrollment
from app.services.notifications import notify, notify_many
from app.services.subscriptions import is_tenant_entitled

logger = logging.getLogger(__name__)


def get_formation(db: Session, formation_id: UUID) -> Optional[Formation]:
    return db.query(Formation).filter(Formation.id == formation_id).first()


def create_formation(db: Session, actor: Actor, title: str, description: Optional[str] = None) -> Formation:
    enforce(actor, Action.FORMATION_CREATE, ResourceRef(kind="formation"))
    formation = Formation(author_id=actor.account_id, title=title, description=description)
    db.add(formation)
    db.commit()
    db.refresh(formation)
    return formation


# colunas NOT NULL
_REQUIRED_FIELDS = ("title",)


def update_formation(db: Session, actor: Actor, formation_id: UUID, changes: dict) -> Formation:
    formation = get_formation(db, formation_id)
    enforce(actor, Action.FORMATION_UPDATE, formation_ref(formation))
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise Invalid(f"O campo {field} não pode ser nulo")
    for field, value in changes.items():
        setattr(formation, field, value)
    db.commit()
    db.refresh(formation)
    return formation


def toggle_active(db: Session, actor: Actor, formation_id: UUID) -> Formation:
    formation = get_formation(db, formation_id)
    enforce(actor, Action.FORMATION_TOGGLE_ACTIVE, formation_ref(formation))
    formation.is_active = not formation.is_active
    db.commit()
    db.refresh(formation)

    state = "ativada" if formation.is_active else "desativada"
    notify(
        db,
        formation.author_id,
        "formation_status",
        f"Formação {state}",
        f"Sua formação \"{formation.title}\" foi {state}.",
        {"formation_id": str(formation.id), "is_active": formation.is_active},
    )
    return formation


def _next_position(db: Session, column, parent_column, parent_id: UUID) -> int:
    current = db.query(func.max(column)).filter(parent_column == parent_id).scalar()
    return 0 if current is None else current + 1


def add_section(
    db: Session,
    actor: Actor,
    formation_id: UUID,
    title: str,
    position: Optional[int] = None,
) -> Section:
    formation = get_formation(db, formation_id)
    enforce(actor, Action.SECTION_CREATE, formation_ref(formation))
    if position is None:
        position = _next_position(db, Section.position, Section.formation_id, formation_id)
    section = Section(formation_id=formation_id, title=title, position=position)
    db.add(section)
    db.commit()
    db.refresh(section)
    return section


def add_lesson(db: Session, actor: Actor, section_id: UUID, data: dict) -> Lesson:
    section = db.query(Section).filter(Section.id == section_id).first()
    enforce(actor, Action.LESSON_CREATE, section_ref(section))
    data = dict(data)
    if data.get("position") is None:
        data["position"] = _next_position(db, Lesson.position, Lesson.section_id, section_id)
    if "lesson_type" in data and hasattr(data["lesson_type"], "value"):
        data["lesson_type"] = data["lesson_type"].value
    lesson = Lesson(section_id=section_id, **data)
    db.add(lesson)
    db.commit()
    db.refresh(lesson)
    return lesson


def publish_lesson(db: Session, actor: Actor, lesson_id: UUID, published: bool = True) -> Lesson:
    lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
    enforce(actor, Action.LESSON_PUBLISH, lesson_ref(lesson))
    lesson.is_published = published
    db.commit()
    db.refresh(lesson)
    return lesson


def _load_learners(db: Session, account_ids: Iterable[UUID]) -> List[Account]:
    ids = list(dict.fromkeys(account_ids))
    return db.query(Account).filter(Account.id.in_(ids)).all() if ids else []


def assign_formation(
    db: Session,
    actor: Actor,
    formation_id: UUID,
    account_ids: Iterable[UUID],
) -> List[Enrollment]:
    """Matricula colaboradores da empresa do ator; reatribuir é idempotente."""
    learners = _load_learners(db, account_ids)
    tenant_id = actor.tenant_id
    if tenant_id is None and learners:
        tenant_id = learners[0].tenant_id

    formation = get_formation(db, formation_id)
    entitled = is_tenant_entitled(db, tenant_id)
    enforce(actor, Action.FORMATION_ASSIGN, formation_assignment_ref(formation, tenant_id, entitled))

    requested = set(account_ids)
    if len(learners) != len(requested) or any(account.tenant_id != tenant_id for account in learners):
        raise Invalid("Alguns usuários não pertencem à empresa")

    enrollments = []
    created = []
    for account in learners:
        enrollment = find_enrollment(db, account.id, formation_id)
        if enrollment is None:
            enrollment = Enrollment(
                account_id=account.id,
                formation_id=formation_id,
                progress=0,
                assigned_by=actor.account_id,
            )
            db.add(enrollment)
            created.append(account.id)
        enrollments.append(enrollment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Matrícula criada em paralelo; tente novamente")

    logger.info("Formação %s atribuída a %d colaboradores (%d novos)", formation_id, len(enrollments), len(created))
    notify_many(
        db,
        created,
        "formation_assigned",
        "Nova formação atribuída",
        f"A formação \"{formation.title}\" foi atribuída a você.",
        {"formation_id": str(formation_id)},
    )
    for enrollment in enrollments:
        db.refresh(enrollment)
    return enrollments
