"""Service holding the state of one player's attempt at a quiz."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import random
from uuid import uuid4

from quizdeck.core.models import Presentation, PresentationQuestion, Quiz, ScoredResult
from quizdeck.core.services.presentation import build_presentation
from quizdeck.core.services.scoring import reconcile_and_score


@dataclass(slots=True)
class SessionProgress:
    """Snapshot of where the player is in the quiz."""

    position: int
    total_questions: int
    answered_count: int

    @property
    def is_last_question(self) -> bool:
        return self.position >= self.total_questions - 1


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    """Consistent copy of a session's presentation, cursor and selections."""

    session_id: str
    quiz_id: str
    quiz_title: str
    attempt: int
    progress: SessionProgress
    questions: tuple[PresentationQuestion, ...]
    selections: dict[int, frozenset[int]]

    def get_selection(self, position: int) -> frozenset[int]:
        return self.selections.get(position, frozenset())


class PlaySession:
    """Owns the shuffled presentation and the player's selections.

    Nothing here is shared with other sessions; the canonical quiz is only read.
    """

    def __init__(self, quiz: Quiz, user_id: str, seed: int | None = None) -> None:
        self.session_id: str = uuid4().hex
        self.quiz = quiz
        self.user_id = user_id
        self.started_at: datetime = datetime.utcnow()
        self._shuffle_rng = random.Random(seed)
        self._presentation: Presentation = build_presentation(quiz, self._shuffle_rng)
        self._selections: dict[int, set[int]] = {}
        self._position: int = 0
        self._attempt: int = 1

    @property
    def presentation(self) -> Presentation:
        return self._presentation

    @property
    def attempt(self) -> int:
        return self._attempt

    def get_question_count(self) -> int:
        return len(self._presentation)

    def get_question_at(self, position: int) -> PresentationQuestion:
        if not 0 <= position < len(self._presentation):
            raise IndexError(f"Question position {position} out of range")
        return self._presentation.questions[position]

    # --- Navigation ---

    def get_position(self) -> int:
        return self._position

    def current_question(self) -> PresentationQuestion:
        return self._presentation.questions[self._position]

    def next_question(self) -> PresentationQuestion | None:
        """Advance the cursor; returns None once the last question is passed."""
        if self._position >= len(self._presentation) - 1:
            return None
        self._position += 1
        return self.current_question()

    def previous_question(self) -> PresentationQuestion | None:
        if self._position == 0:
            return None
        self._position -= 1
        return self.current_question()

    def go_to(self, position: int) -> PresentationQuestion:
        question = self.get_question_at(position)
        self._position = position
        return question

    def get_progress(self) -> SessionProgress:
        return SessionProgress(
            position=self._position,
            total_questions=len(self._presentation),
            answered_count=sum(1 for chosen in self._selections.values() if chosen),
        )

    # --- Selections ---

    def select_option(
        self,
        position: int,
        option_index: int,
        multi_select: bool | None = None,
    ) -> frozenset[int]:
        """Record a choice and return the selection now held for that question.

        Single-answer mode replaces the previous choice. Multi-answer mode
        toggles the option; an emptied selection leaves the question unanswered.
        ``multi_select`` defaults to the question's own kind.
        """
        shown = self.get_question_at(position)
        if not 0 <= option_index < len(shown.options):
            raise IndexError(
                f"Option index {option_index} out of range for question at position {position}"
            )
        if multi_select is None:
            multi_select = shown.question.is_multi_answer

        if not multi_select:
            self._selections[position] = {option_index}
        else:
            chosen = self._selections.setdefault(position, set())
            if option_index in chosen:
                chosen.remove(option_index)
            else:
                chosen.add(option_index)
        return self.get_selection(position)

    def clear_selection(self, position: int) -> None:
        self.get_question_at(position)
        self._selections.pop(position, None)

    def get_selection(self, position: int) -> frozenset[int]:
        return frozenset(self._selections.get(position, ()))

    def get_selections(self) -> dict[int, frozenset[int]]:
        return {position: frozenset(chosen) for position, chosen in self._selections.items()}

    def has_answered(self, position: int) -> bool:
        return bool(self._selections.get(position))

    # --- Lifecycle ---

    def restart(self) -> Presentation:
        """Draw a fresh presentation and forget every selection."""
        presentation = build_presentation(self.quiz, self._shuffle_rng)
        self._presentation = presentation
        self._selections = {}
        self._position = 0
        self._attempt += 1
        self.started_at = datetime.utcnow()
        return presentation

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            quiz_id=self.quiz.id,
            quiz_title=self.quiz.title,
            attempt=self._attempt,
            progress=self.get_progress(),
            questions=self._presentation.questions,
            selections=self.get_selections(),
        )

    def score(self) -> ScoredResult:
        return reconcile_and_score(self.quiz, self._presentation, self._selections)
