"""Service for storing quizzes and normalizing authored questions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
import logging
from uuid import uuid4

from quizdeck.constants.quiz_constants import MAX_OPTIONS_PER_QUESTION, MIN_OPTIONS_PER_QUESTION
from quizdeck.core.errors import QuizNotFoundError
from quizdeck.core.models import Question, QuestionDraft, Quiz

logger = logging.getLogger(__name__)


class QuizRepository:
    """In-memory quiz store standing in for the hosted database."""

    def __init__(self) -> None:
        self._quizzes: dict[str, Quiz] = {}

    def create_quiz(
        self,
        title: str,
        owner_id: str,
        questions: Iterable[QuestionDraft],
        description: str | None = None,
    ) -> Quiz:
        quiz = Quiz(
            id=uuid4().hex,
            title=self._validate_title(title),
            owner_id=owner_id,
            questions=self._prepare_questions(questions),
            description=self._clean_description(description),
        )
        self._quizzes[quiz.id] = quiz
        logger.info("Created quiz %s with %d questions", quiz.id, len(quiz.questions))
        return quiz

    def update_quiz(
        self,
        quiz_id: str,
        title: str,
        questions: Iterable[QuestionDraft],
        description: str | None = None,
    ) -> Quiz:
        """Replace a quiz's content while keeping its id, owner and creation time."""
        existing = self.get_quiz(quiz_id)
        updated = replace(
            existing,
            title=self._validate_title(title),
            questions=self._prepare_questions(questions),
            description=self._clean_description(description),
            updated_at=datetime.utcnow(),
        )
        self._quizzes[quiz_id] = updated
        return updated

    def delete_quiz(self, quiz_id: str) -> None:
        if self._quizzes.pop(quiz_id, None) is None:
            raise QuizNotFoundError(quiz_id)

    def get_quiz(self, quiz_id: str) -> Quiz:
        try:
            return self._quizzes[quiz_id]
        except KeyError:
            raise QuizNotFoundError(quiz_id) from None

    def list_quizzes(self, owner_id: str | None = None) -> list[Quiz]:
        """Return quizzes newest first, optionally only those of one owner."""
        quizzes = [
            quiz for quiz in self._quizzes.values() if owner_id is None or quiz.owner_id == owner_id
        ]
        return sorted(quizzes, key=lambda q: q.created_at, reverse=True)

    def _prepare_questions(self, drafts: Iterable[QuestionDraft]) -> tuple[Question, ...]:
        questions = tuple(
            normalize_question(draft, order_index) for order_index, draft in enumerate(drafts)
        )
        if not questions:
            raise ValueError("Quiz must contain at least one question.")
        if len({q.id for q in questions}) != len(questions):
            raise ValueError("Question ids must be unique within a quiz.")
        return questions

    @staticmethod
    def _validate_title(title: str) -> str:
        cleaned = title.strip()
        if not cleaned:
            raise ValueError("Quiz title must not be empty.")
        return cleaned

    @staticmethod
    def _clean_description(description: str | None) -> str | None:
        if description is None:
            return None
        return description.strip() or None


def normalize_question(draft: QuestionDraft, order_index: int = 0) -> Question:
    """Validate a draft and fold it into the single canonical question shape.

    Empty options are dropped and the correct indices are shifted onto the
    remaining ones; option images are dropped and shifted with their options.
    A draft without ``correct_answers`` is graded on ``{correct_answer}``.
    """
    cleaned_text = draft.question_text.strip()
    if not cleaned_text:
        raise ValueError(f"Question {order_index + 1} text must not be empty.")

    if draft.option_image_urls is None:
        raw_images: list[str | None] = [None] * len(draft.options)
    elif len(draft.option_image_urls) != len(draft.options):
        raise ValueError(
            f"Question {order_index + 1} has {len(draft.option_image_urls)} option images "
            f"for {len(draft.options)} options."
        )
    else:
        raw_images = list(draft.option_image_urls)

    compacted_index: dict[int, int] = {}
    options: list[str] = []
    option_images: list[str | None] = []
    for original_index, (option, image_url) in enumerate(zip(draft.options, raw_images)):
        cleaned = option.strip()
        if cleaned:
            compacted_index[original_index] = len(options)
            options.append(cleaned)
            option_images.append(_clean_url(image_url))

    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise ValueError(
            f"Question {order_index + 1} must have at least {MIN_OPTIONS_PER_QUESTION} options."
        )
    if len(options) > MAX_OPTIONS_PER_QUESTION:
        raise ValueError(
            f"Question {order_index + 1} cannot have more than {MAX_OPTIONS_PER_QUESTION} options."
        )

    if draft.correct_answers is not None:
        raw_correct = list(draft.correct_answers)
    elif draft.correct_answer is not None:
        raw_correct = [draft.correct_answer]
    else:
        raw_correct = []

    for index in raw_correct:
        if not 0 <= index < len(draft.options):
            raise ValueError(f"Question {order_index + 1} has no option {index} to mark correct.")
    correct = frozenset(compacted_index[i] for i in raw_correct if i in compacted_index)
    if not correct:
        raise ValueError(f"Question {order_index + 1} must have at least one correct answer.")

    return Question(
        id=draft.id or uuid4().hex,
        question_text=cleaned_text,
        options=tuple(options),
        correct_answers=correct,
        order_index=order_index,
        image_url=_clean_url(draft.image_url),
        option_image_urls=tuple(option_images),
    )


def _clean_url(url: str | None) -> str | None:
    if url is None:
        return None
    return url.strip() or None
