import pytest
from fastapi import status

from app.models.enums import LessonType, Role
from app.services.lessons import find_lesson_progress
from app.services.quizzes import score_answers

QUESTIONS = [
    {
        "id": "q1",
        "type": "multiple_choice",
        "question": "O que fazer primeiro numa crise de ansiedade?",
        "options": ["Respirar fundo", "Ignorar"],
        "correct_answer": "Respirar fundo",
        "points": 2,
    },
    {"id": "q2", "type": "true_false", "question": "Pausas aumentam a produtividade.", "correct_answer": "true"},
    {"id": "q3", "type": "open_ended", "question": "Cite uma estratégia.", "correct_answer": "pausa, descanso"},
]

ALL_RIGHT = {"q1": "Respirar fundo", "q2": "True", "q3": "Fazer uma pausa curta"}


@pytest.fixture
def quiz_course(seed):
    tenant = seed.tenant()
    employee = seed.account(Role.EMPLOYEE, tenant)
    author = seed.account(Role.CONTENT_AUTHOR)
    formation = seed.formation(author)
    quiz_lesson = seed.lesson(formation, lesson_type=LessonType.QUIZ, duration_seconds=300)
    seed.lesson(formation)
    seed.enrollment(employee, formation)
    return author, employee, formation, quiz_lesson


def _define(client, auth_headers, author, lesson, **overrides):
    body = {"title": "Gestão do stress: revisão", "passing_score": 70, "questions": QUESTIONS}
    body.update(overrides)
    return client.put(f"/lessons/{lesson.id}/quiz", json=body, headers=auth_headers(author))


def test_author_defines_quiz_and_learner_sees_no_answers(client, seed, quiz_course, auth_headers):
    author, employee, _, lesson = quiz_course

    defined = _define(client, auth_headers, author, lesson)
    assert defined.status_code == status.HTTP_200_OK
    assert defined.json()["questions"][0]["correct_answer"] == "Respirar fundo"

    definition = client.get(f"/lessons/{lesson.id}/quiz/definition", headers=auth_headers(author))
    assert definition.status_code == status.HTTP_200_OK
    assert len(definition.json()["questions"]) == 3

    intruder = seed.account(Role.CONTENT_AUTHOR)
    assert _define(client, auth_headers, intruder, lesson).status_code == status.HTTP_403_FORBIDDEN

    view = client.get(f"/lessons/{lesson.id}/quiz", headers=auth_headers(employee))
    assert view.status_code == status.HTTP_200_OK
    assert view.json()["passing_score"] == 70
    for question in view.json()["questions"]:
        assert "correct_answer" not in question
        assert "explanation" not in question


def test_quiz_requires_quiz_lesson_and_consistent_questions(client, seed, quiz_course, auth_headers):
    author, employee, formation, lesson = quiz_course
    text_lesson = seed.lesson(formation)

    assert _define(client, auth_headers, author, text_lesson).status_code == status.HTTP_400_BAD_REQUEST

    broken = [dict(QUESTIONS[0], correct_answer="Correr")]
    assert _define(client, auth_headers, author, lesson, questions=broken).status_code == 422

    duplicated = [QUESTIONS[1], dict(QUESTIONS[2], id="q2")]
    assert _define(client, auth_headers, author, lesson, questions=duplicated).status_code == 422

    missing = client.get(f"/lessons/{lesson.id}/quiz", headers=auth_headers(employee))
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_passing_attempt_completes_lesson_and_moves_formation(client, db, quiz_course, auth_headers):
    author, employee, formation, lesson = quiz_course
    _define(client, auth_headers, author, lesson)
    url = f"/lessons/{lesson.id}/quiz-results"

    failed = client.post(url, json={"answers": {"q1": "Respirar fundo", "q2": "false"}}, headers=auth_headers(employee))
    assert failed.status_code == status.HTTP_201_CREATED
    assert failed.json()["score"] == 50
    assert failed.json()["passed"] is False
    assert find_lesson_progress(db, employee.id, lesson.id) is None

    passed = client.post(url, json={"answers": ALL_RIGHT}, headers=auth_headers(employee))
    assert passed.status_code == status.HTTP_201_CREATED
    assert passed.json()["score"] == 100
    assert passed.json()["points"] == passed.json()["total_points"] == 4
    assert passed.json()["passed"] is True

    db.expire_all()
    progress = find_lesson_progress(db, employee.id, lesson.id)
    assert progress.is_completed is True
    assert progress.watched_seconds == 300

    enrolled = client.get("/formations/enrollments/me", headers=auth_headers(employee))
    assert enrolled.json()[0]["progress"] == 50

    history = client.get(url, headers=auth_headers(employee))
    assert [attempt["passed"] for attempt in history.json()] == [True, False]


def test_attempts_are_capped(client, quiz_course, auth_headers):
    author, employee, _, lesson = quiz_course
    _define(client, auth_headers, author, lesson, max_attempts=1)
    url = f"/lessons/{lesson.id}/quiz-results"

    assert client.post(url, json={"answers": {}}, headers=auth_headers(employee)).status_code == 201
    again = client.post(url, json={"answers": ALL_RIGHT}, headers=auth_headers(employee))
    assert again.status_code == status.HTTP_409_CONFLICT


def test_only_enrolled_employees_take_the_quiz(client, seed, quiz_course, auth_headers):
    author, employee, _, lesson = quiz_course
    _define(client, auth_headers, author, lesson)
    outsider = seed.account(Role.EMPLOYEE, seed.tenant(name="Other"))

    url = f"/lessons/{lesson.id}/quiz-results"
    assert client.post(url, json={"answers": ALL_RIGHT}, headers=auth_headers(outsider)).status_code == 404
    assert client.get(f"/lessons/{lesson.id}/quiz", headers=auth_headers(author)).status_code == 404


def test_score_answers_weights_points_and_matches_keywords():
    assert score_answers(QUESTIONS, ALL_RIGHT) == (4, 4, 100)
    assert score_answers(QUESTIONS, {"q3": "um DESCANSO no meio do dia"}) == (1, 4, 25)
    assert score_answers(QUESTIONS, {"q1": "respirar fundo"}) == (0, 4, 0)
    assert score_answers([], {}) == (0, 0, 0)
