"""Quizzes attached to QUIZ lessons and the learners' attempts at them.

Answers are scored here, never trusted from the client. A passing attempt
completes the lesson, which in turn moves the formation progress.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Invalid, NotFound
from app.core.security import utcnow
from app.models.enums import LessonType, QuestionType
from app.models.formation import Lesson, Quiz, QuizResult
from app.policy import Action, Actor, enforce
from app.policy.resources import lesson_ref
from app.services.lessons import get_lesson, load_learner_lesson, mark_lesson, settle_formation_progress

logger = logging.getLogger(__name__)


def _require_quiz_lesson(lesson: Lesson) -> None:
    if lesson.lesson_type != LessonType.QUIZ.value:
        raise Invalid("Esta lição não é um quiz")


def _existing_quiz(lesson: Lesson) -> Quiz:
    _require_quiz_lesson(lesson)
    if lesson.quiz is None:
        raise NotFound("Nenhum quiz definido para esta lição")
    return lesson.quiz


def define_quiz(db: Session, actor: Actor, lesson_id: UUID, definition: Dict[str, Any]) -> Quiz:
    """Cria ou substitui o quiz da lição; tentativas já feitas são mantidas."""
    lesson = get_lesson(db, lesson_id)
    enforce(actor, Action.QUIZ_MANAGE, lesson_ref(lesson))
    _require_quiz_lesson(lesson)

    quiz = lesson.quiz
    if quiz is None:
        quiz = Quiz(lesson_id=lesson.id)
        db.add(quiz)
    for field, value in definition.items():
        setattr(quiz, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Quiz criado em paralelo; tente novamente")
    db.refresh(quiz)
    logger.info("Quiz da lição %s definido com %d questões", lesson_id, len(quiz.questions))
    return quiz


def get_quiz_definition(db: Session, actor: Actor, lesson_id: UUID) -> Quiz:
    lesson = get_lesson(db, lesson_id)
    enforce(actor, Action.QUIZ_MANAGE, lesson_ref(lesson))
    return _existing_quiz(lesson)


def view_quiz(db: Session, actor: Actor, lesson_id: UUID) -> Quiz:
    lesson, _ = load_learner_lesson(db, actor, lesson_id, Action.QUIZ_TAKE)
    return _existing_quiz(lesson)


def _is_correct(question: Dict[str, Any], answer: Any) -> bool:
    if answer is None:
        return False
    given = str(answer).strip()
    expected = str(question["correct_answer"]).strip()
    kind = question.get("type")
    if kind == QuestionType.OPEN_ENDED.value:
        keywords = [keyword.strip().lower() for keyword in expected.split(",") if keyword.strip()]
        text = given.lower()
        return any(keyword in text for keyword in keywords)
    if kind == QuestionType.TRUE_FALSE.value:
        return given.lower() == expected.lower()
    return given == expected


def score_answers(questions: Iterable[Dict[str, Any]], answers: Dict[str, Any]) -> Tuple[int, int, int]:
    """Returns ``(points, total_points, percentage)``."""
    points = 0
    total = 0
    for question in questions:
        weight = int(question.get("points") or 1)
        total += weight
        if _is_correct(question, answers.get(question["id"])):
            points += weight
    percentage = int(points * 100 / total + 0.5) if total else 0
    return points, total, percentage


def count_attempts(db: Session, account_id: UUID, lesson_id: UUID) -> int:
    return (
        db.query(QuizResult)
        .filter(QuizResult.account_id == account_id, QuizResult.lesson_id == lesson_id)
        .count()
    )


def submit_quiz(
    db: Session,
    actor: Actor,
    lesson_id: UUID,
    answers: Dict[str, Any],
    *,
    now: Optional[datetime] = None,
) -> QuizResult:
    now = now or utcnow()
    lesson, enrollment = load_learner_lesson(db, actor, lesson_id, Action.QUIZ_TAKE, lock=True)
    quiz = _existing_quiz(lesson)

    if quiz.max_attempts is not None and count_attempts(db, actor.account_id, lesson_id) >= quiz.max_attempts:
        raise Conflict("Número máximo de tentativas atingido")

    points, total, score = score_answers(quiz.questions, answers)
    result = QuizResult(
        account_id=actor.account_id,
        lesson_id=lesson.id,
        score=score,
        points=points,
        total_points=total,
        passed=score >= quiz.passing_score,
        answers=answers,
        created_at=now,
    )
    db.add(result)
    if result.passed:
        mark_lesson(db, actor.account_id, lesson, lesson.duration_seconds or 0, True, now)
    settle_formation_progress(db, enrollment, now)
    db.refresh(result)
    logger.info(
        "Quiz da lição %s por %s: %s%% (%s)",
        lesson_id,
        actor.account_id,
        score,
        "aprovado" if result.passed else "reprovado",
    )
    return result


def list_own_results(db: Session, actor: Actor, lesson_id: UUID) -> List[QuizResult]:
    load_learner_lesson(db, actor, lesson_id, Action.QUIZ_TAKE)
    return (
        db.query(QuizResult)
        .filter(QuizResult.account_id == actor.account_id, QuizResult.lesson_id == lesson_id)
        .order_by(QuizResult.created_at.desc())
        .all()
    )
