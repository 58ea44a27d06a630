from __future__ import annotations

import random

import pytest

from quizdeck.core.models import Question, QuestionDraft, Quiz
from quizdeck.core.services.quiz_repository import QuizRepository


def make_question(
    question_id: str,
    options: list[str],
    correct: set[int],
    text: str | None = None,
    order_index: int = 0,
) -> Question:
    return Question(
        id=question_id,
        question_text=text or f"Question {question_id}?",
        options=tuple(options),
        correct_answers=frozenset(correct),
        order_index=order_index,
    )


def make_quiz(*questions: Question, quiz_id: str = "quiz-1", owner_id: str = "author") -> Quiz:
    return Quiz(id=quiz_id, title="Sample quiz", owner_id=owner_id, questions=tuple(questions))


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(20240607)


@pytest.fixture()
def capitals_quiz() -> Quiz:
    return make_quiz(
        make_question("q1", ["Paris", "Lyon"], {0}, text="Capital of France?"),
        make_question("q2", ["Red", "Blue", "Green"], {0, 2}, text="Colours of the Italian flag?", order_index=1),
    )


@pytest.fixture()
def repository() -> QuizRepository:
    return QuizRepository()


@pytest.fixture()
def capitals_drafts() -> list[QuestionDraft]:
    return [
        QuestionDraft(question_text="Capital of France?", options=["Paris", "Lyon"], correct_answers=[0]),
        QuestionDraft(
            question_text="Colours of the Italian flag?",
            options=["Red", "Blue", "Green"],
            correct_answers=[0, 2],
        ),
    ]
