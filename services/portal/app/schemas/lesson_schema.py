from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import QuestionType
from app.schemas.formation_schema import EnrollmentOut


class LessonProgressUpdate(BaseModel):
    watched_seconds: int = Field(default=0, ge=0)
    is_completed: bool = False


class LessonProgressRecord(BaseModel):
    lesson_id: UUID
    account_id: UUID
    watched_seconds: int
    is_completed: bool
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LessonProgressOut(BaseModel):
    lesson_progress: LessonProgressRecord
    enrollment: EnrollmentOut


class QuizQuestion(BaseModel):
    id: str = Field(..., min_length=1)
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    question: str = Field(..., min_length=1)
    options: List[str] = Field(default_factory=list)
    correct_answer: str = Field(..., min_length=1, examples=["Respirar fundo"])
    points: int = Field(default=1, ge=1)
    explanation: Optional[str] = None

    @field_validator("correct_answer")
    @classmethod
    def validate_correct_answer(cls, value, info):
        """Valida o gabarito conforme o tipo da questão."""
        kind = info.data.get("type")
        options = info.data.get("options") or []
        if kind is QuestionType.MULTIPLE_CHOICE:
            if len(options) < 2:
                raise ValueError("Questões de múltipla escolha precisam de ao menos duas opções")
            if value not in options:
                raise ValueError("A resposta correta deve ser uma das opções")
        elif kind is QuestionType.TRUE_FALSE and value.lower() not in ("true", "false"):
            raise ValueError("Questões verdadeiro/falso aceitam apenas 'true' ou 'false'")
        return value


class QuizDefinition(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    passing_score: int = Field(default=70, ge=0, le=100)
    time_limit_seconds: Optional[int] = Field(default=None, ge=1)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    questions: List[QuizQuestion] = Field(..., min_length=1)

    @field_validator("questions")
    @classmethod
    def validate_unique_ids(cls, value):
        ids = [question.id for question in value]
        if len(ids) != len(set(ids)):
            raise ValueError("Os ids das questões devem ser únicos")
        return value


class QuizOut(QuizDefinition):
    id: UUID
    lesson_id: UUID
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QuizQuestionView(BaseModel):
    """Questão como o colaborador a vê, sem gabarito."""

    id: str
    type: QuestionType
    question: str
    options: List[str] = Field(default_factory=list)
    points: int


class QuizView(BaseModel):
    lesson_id: UUID
    title: str
    description: Optional[str] = None
    passing_score: int
    time_limit_seconds: Optional[int] = None
    max_attempts: Optional[int] = None
    questions: List[QuizQuestionView]

    model_config = ConfigDict(from_attributes=True)


class QuizSubmission(BaseModel):
    # id da questão -> resposta
    answers: Dict[str, str] = Field(default_factory=dict)


class QuizResultOut(BaseModel):
    id: UUID
    lesson_id: UUID
    account_id: UUID
    score: int
    points: int
    total_points: int
    passed: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
