from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth_dependencies import get_current_actor
from app.core.database import get_db
from app.policy import Actor
from app.schemas.lesson_schema import (
    LessonProgressOut,
    LessonProgressRecord,
    LessonProgressUpdate,
    QuizDefinition,
    QuizOut,
    QuizResultOut,
    QuizSubmission,
    QuizView,
)
from app.services import lessons, quizzes

router = APIRouter(tags=["Lessons"])


@router.put("/lessons/{lesson_id}/progress", response_model=LessonProgressOut)
def record_lesson_progress(
    lesson_id: UUID,
    payload: LessonProgressUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    record, enrollment = lessons.record_progress(
        db, actor, lesson_id, payload.watched_seconds, payload.is_completed
    )
    return {"lesson_progress": record, "enrollment": enrollment}


@router.get("/formations/{formation_id}/lesson-progress", response_model=List[LessonProgressRecord])
def list_lesson_progress(
    formation_id: UUID,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return lessons.list_lesson_progress(db, actor, formation_id)


@router.put("/lessons/{lesson_id}/quiz", response_model=QuizOut)
def define_quiz(
    lesson_id: UUID,
    payload: QuizDefinition,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return quizzes.define_quiz(db, actor, lesson_id, payload.model_dump(mode="json"))


@router.get("/lessons/{lesson_id}/quiz/definition", response_model=QuizOut)
def get_quiz_definition(lesson_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return quizzes.get_quiz_definition(db, actor, lesson_id)


@router.get("/lessons/{lesson_id}/quiz", response_model=QuizView)
def get_quiz(lesson_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return quizzes.view_quiz(db, actor, lesson_id)


@router.post("/lessons/{lesson_id}/quiz-results", response_model=QuizResultOut, status_code=status.HTTP_201_CREATED)
def submit_quiz(
    lesson_id: UUID,
    payload: QuizSubmission,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return quizzes.submit_quiz(db, actor, lesson_id, payload.answers)


@router.get("/lessons/{lesson_id}/quiz-results", response_model=List[QuizResultOut])
def list_quiz_results(lesson_id: UUID, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return quizzes.list_own_results(db, actor, lesson_id)
