"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from quizdeck.core.permutation import Permutation


@dataclass(slots=True, frozen=True)
class Question:
    """Multiple-choice question with one or more correct options.

    ``correct_answers`` is authoritative. ``correct_answer`` mirrors the lowest
    correct index for records written before multi-answer questions existed.
    ``option_image_urls`` runs parallel to ``options``; None marks an option
    without a picture.
    """

    id: str
    question_text: str
    options: tuple[str, ...]
    correct_answers: frozenset[int]
    order_index: int = 0
    image_url: str | None = None
    option_image_urls: tuple[str | None, ...] = ()

    def __post_init__(self) -> None:
        if not self.option_image_urls:
            object.__setattr__(self, "option_image_urls", (None,) * len(self.options))

    @property
    def correct_answer(self) -> int:
        return min(self.correct_answers)

    @property
    def is_multi_answer(self) -> bool:
        return len(self.correct_answers) > 1


@dataclass(slots=True, frozen=True)
class Quiz:
    """A titled, ordered collection of questions owned by one user."""

    id: str
    title: str
    owner_id: str
    questions: tuple[Question, ...]
    description: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(slots=True, frozen=True)
class PresentationQuestion:
    """A question as shown in one play session, options in shuffled order.

    ``option_image_urls`` is shuffled with the same permutation as ``options``.
    """

    question: Question
    permutation: Permutation
    options: tuple[str, ...]
    option_image_urls: tuple[str | None, ...] = ()

    def to_canonical(self, presentation_index: int) -> int:
        return self.permutation.to_canonical(presentation_index)

    def to_presentation(self, canonical_index: int) -> int:
        return self.permutation.to_presentation(canonical_index)


@dataclass(slots=True, frozen=True)
class Presentation:
    """Question order plus the shuffled questions in that order."""

    question_order: Permutation
    questions: tuple[PresentationQuestion, ...]

    def __len__(self) -> int:
        return len(self.questions)


@dataclass(slots=True, frozen=True)
class QuestionOutcome:
    """Scoring verdict for a single canonical question."""

    question_id: str
    selected: frozenset[int]
    correct_answers: frozenset[int]
    is_correct: bool


@dataclass(slots=True, frozen=True)
class ScoredResult:
    """Outcome of reconciling a session's selections against the quiz."""

    quiz_id: str
    score: int
    total: int
    outcomes: tuple[QuestionOutcome, ...]

    @property
    def answers(self) -> dict[str, frozenset[int]]:
        """Canonical selections keyed by question id."""
        return {outcome.question_id: outcome.selected for outcome in self.outcomes}


@dataclass(slots=True, frozen=True)
class QuizResult:
    """A stored attempt as handed to the result store."""

    id: str
    quiz_id: str
    user_id: str
    score: int
    total_questions: int
    answers: dict[str, list[int]]
    completed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def percentage(self) -> int:
        if self.total_questions <= 0:
            return 0
        return round(self.score / self.total_questions * 100)


@dataclass(slots=True)
class QuestionDraft:
    """Question as authored, before normalization.

    Older records only carry ``correct_answer``; newer ones carry
    ``correct_answers``, which wins whenever it is present.
    """

    question_text: str
    options: list[str]
    correct_answers: list[int] | None = None
    correct_answer: int | None = None
    id: str | None = None
    image_url: str | None = None
    option_image_urls: list[str | None] | None = None
