"""Build the shuffled presentation of a quiz for one play session."""

from __future__ import annotations

import logging
import random

from quizdeck.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from quizdeck.core.errors import PresentationError, QuizIntegrityError
from quizdeck.core.models import Presentation, PresentationQuestion, Question, Quiz
from quizdeck.core.permutation import Permutation

logger = logging.getLogger(__name__)


def build_presentation(quiz: Quiz, rng: random.Random | None = None) -> Presentation:
    """Shuffle question order and every question's options.

    The canonical quiz is left untouched. Each call draws fresh, independent
    permutations, so calling it again is how a play session restarts.
    """
    if not quiz.questions:
        raise PresentationError(f"Quiz {quiz.id!r} has no questions to present.")
    for question in quiz.questions:
        validate_question(question)

    rng = rng or random.Random()
    question_order = Permutation.shuffled(len(quiz.questions), rng)
    shuffled_questions = []
    for canonical_index in question_order.to_canonical_table:
        question = quiz.questions[canonical_index]
        permutation = Permutation.shuffled(len(question.options), rng)
        shuffled_questions.append(
            PresentationQuestion(
                question=question,
                permutation=permutation,
                options=permutation.apply(question.options),
                option_image_urls=permutation.apply(question.option_image_urls),
            )
        )

    logger.debug("Built presentation for quiz %s (%d questions)", quiz.id, len(quiz.questions))
    return Presentation(question_order=question_order, questions=tuple(shuffled_questions))


def validate_question(question: Question) -> None:
    """Raise if a question cannot be shown or graded."""
    if len(question.options) < MIN_OPTIONS_PER_QUESTION:
        raise PresentationError(
            f"Question {question.id!r} needs at least {MIN_OPTIONS_PER_QUESTION} options."
        )
    if len(question.option_image_urls) != len(question.options):
        raise QuizIntegrityError(
            f"Question {question.id!r} has {len(question.option_image_urls)} option images "
            f"for {len(question.options)} options."
        )
    if not question.correct_answers:
        raise QuizIntegrityError(f"Question {question.id!r} has no correct answer.")
    out_of_range = sorted(
        index for index in question.correct_answers if not 0 <= index < len(question.options)
    )
    if out_of_range:
        raise QuizIntegrityError(
            f"Question {question.id!r} marks missing options {out_of_range} as correct."
        )
