"""Reconcile presentation-order selections with the canonical quiz and score them."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping

from quizdeck.core.errors import QuizIntegrityError
from quizdeck.core.models import Presentation, QuestionOutcome, Quiz, ScoredResult


def is_selection_correct(selected: Collection[int], correct_answers: Collection[int]) -> bool:
    """A selection is correct only when it equals the correct set exactly."""
    if not selected or not correct_answers:
        return False
    return set(selected) == set(correct_answers)


def reconcile_and_score(
    quiz: Quiz,
    presentation: Presentation,
    selections: Mapping[int, Iterable[int]],
) -> ScoredResult:
    """Translate selections back to canonical indices and count correct questions.

    ``selections`` maps presentation positions to presentation-local option
    indices. Outcomes are returned in canonical question order.
    """
    _check_presentation_matches(quiz, presentation)
    unknown_positions = sorted(set(selections) - set(range(len(presentation))))
    if unknown_positions:
        raise IndexError(f"Selections reference unknown question positions {unknown_positions}")

    selected_by_canonical: dict[int, frozenset[int]] = {}
    for position, shown in enumerate(presentation.questions):
        chosen = selections.get(position, ())
        selected_by_canonical[presentation.question_order.to_canonical(position)] = frozenset(
            shown.to_canonical(index) for index in chosen
        )

    outcomes = []
    for canonical_index, question in enumerate(quiz.questions):
        selected = selected_by_canonical[canonical_index]
        outcomes.append(
            QuestionOutcome(
                question_id=question.id,
                selected=selected,
                correct_answers=question.correct_answers,
                is_correct=is_selection_correct(selected, question.correct_answers),
            )
        )

    return ScoredResult(
        quiz_id=quiz.id,
        score=sum(1 for outcome in outcomes if outcome.is_correct),
        total=len(quiz.questions),
        outcomes=tuple(outcomes),
    )


def _check_presentation_matches(quiz: Quiz, presentation: Presentation) -> None:
    if len(presentation.question_order) != len(quiz.questions):
        raise QuizIntegrityError(
            f"Presentation covers {len(presentation.question_order)} questions, "
            f"quiz {quiz.id!r} has {len(quiz.questions)}."
        )
    if len(presentation.questions) != len(quiz.questions):
        raise QuizIntegrityError("Presentation question list does not match its order table.")
    for position, shown in enumerate(presentation.questions):
        canonical = quiz.questions[presentation.question_order.to_canonical(position)]
        if shown.question.id != canonical.id:
            raise QuizIntegrityError(
                f"Position {position} shows question {shown.question.id!r}, expected {canonical.id!r}."
            )
        if len(shown.permutation) != len(canonical.options):
            raise QuizIntegrityError(
                f"Option table for question {canonical.id!r} has {len(shown.permutation)} slots, "
                f"expected {len(canonical.options)}."
            )
