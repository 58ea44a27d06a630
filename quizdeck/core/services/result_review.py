"""Per-question review of a stored attempt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from quizdeck.constants.quiz_constants import MISSING_OPTION_TEXT
from quizdeck.core.models import Question, Quiz, QuizResult
from quizdeck.core.services.scoring import is_selection_correct


class AnswerStatus(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


@dataclass(slots=True)
class ReviewedQuestion:
    question_id: str
    question_text: str
    selected_indices: list[int]
    selected_texts: list[str]
    correct_indices: list[int]
    correct_texts: list[str]
    status: AnswerStatus


@dataclass(slots=True)
class ResultReview:
    result: QuizResult
    quiz_title: str
    questions: list[ReviewedQuestion]
    correct_count: int
    incorrect_count: int
    unanswered_count: int


def review_result(quiz: Quiz, result: QuizResult, only_incorrect: bool = False) -> ResultReview:
    """Grade stored answers against the current quiz.

    Stored answers may be a list of indices or, for results saved before
    multi-answer questions, a single index. Indices that no longer match an
    option are shown with a placeholder text.
    """
    reviewed = [_review_question(q, result.answers.get(q.id)) for q in quiz.questions]
    counts = {status: 0 for status in AnswerStatus}
    for entry in reviewed:
        counts[entry.status] += 1

    if only_incorrect:
        reviewed = [entry for entry in reviewed if entry.status is AnswerStatus.INCORRECT]

    return ResultReview(
        result=result,
        quiz_title=quiz.title,
        questions=reviewed,
        correct_count=counts[AnswerStatus.CORRECT],
        incorrect_count=counts[AnswerStatus.INCORRECT],
        unanswered_count=counts[AnswerStatus.UNANSWERED],
    )


def _review_question(question: Question, stored: int | list[int] | None) -> ReviewedQuestion:
    if stored is None:
        selected: list[int] = []
    elif isinstance(stored, int):
        selected = [stored]
    else:
        selected = sorted(set(stored))

    if not selected:
        status = AnswerStatus.UNANSWERED
    elif is_selection_correct(selected, question.correct_answers):
        status = AnswerStatus.CORRECT
    else:
        status = AnswerStatus.INCORRECT

    correct = sorted(question.correct_answers)
    return ReviewedQuestion(
        question_id=question.id,
        question_text=question.question_text,
        selected_indices=selected,
        selected_texts=[_option_text(question, index) for index in selected],
        correct_indices=correct,
        correct_texts=[_option_text(question, index) for index in correct],
        status=status,
    )


def _option_text(question: Question, index: int) -> str:
    if 0 <= index < len(question.options):
        return question.options[index]
    return MISSING_OPTION_TEXT
