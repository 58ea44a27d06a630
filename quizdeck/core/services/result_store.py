"""Persistence boundary for finished quiz attempts."""

from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import Protocol
from uuid import uuid4

from quizdeck.core.errors import ResultNotFoundError
from quizdeck.core.models import QuizResult, ScoredResult


class ResultStore(Protocol):
    """Durable storage for quiz results.

    Implementations raise ``ResultNotSavedError`` when ``save`` fails.
    """

    def save(self, result: QuizResult) -> QuizResult: ...

    def get(self, result_id: str) -> QuizResult: ...

    def list_for_quiz(self, quiz_id: str) -> list[QuizResult]: ...

    def list_for_user(self, user_id: str) -> list[QuizResult]: ...


def build_result(scored: ScoredResult, user_id: str) -> QuizResult:
    """Turn a scored attempt into the record handed to the store."""
    return QuizResult(
        id=uuid4().hex,
        quiz_id=scored.quiz_id,
        user_id=user_id,
        score=scored.score,
        total_questions=scored.total,
        answers={
            question_id: sorted(selected)
            for question_id, selected in scored.answers.items()
            if selected
        },
        completed_at=datetime.utcnow(),
    )


class InMemoryResultStore:
    """Process-local result store, newest results first."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._results: dict[str, QuizResult] = {}

    def save(self, result: QuizResult) -> QuizResult:
        with self._lock:
            self._results[result.id] = result
        return result

    def get(self, result_id: str) -> QuizResult:
        with self._lock:
            try:
                return self._results[result_id]
            except KeyError:
                raise ResultNotFoundError(result_id) from None

    def list_for_quiz(self, quiz_id: str) -> list[QuizResult]:
        with self._lock:
            return self._newest_first(r for r in self._results.values() if r.quiz_id == quiz_id)

    def list_for_user(self, user_id: str) -> list[QuizResult]:
        with self._lock:
            return self._newest_first(r for r in self._results.values() if r.user_id == user_id)

    @staticmethod
    def _newest_first(results) -> list[QuizResult]:
        return sorted(results, key=lambda r: r.completed_at, reverse=True)
