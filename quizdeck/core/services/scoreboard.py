"""Service for summarizing stored quiz attempts."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from quizdeck.core.models import QuizResult


@dataclass(slots=True)
class QuizStatistics:
    """Aggregate figures for every attempt at one quiz."""

    total_attempts: int = 0
    average_percentage: int = 0
    best_percentage: int = 0
    unique_users: int = 0


@dataclass(slots=True)
class ScoreboardRow:
    """Best attempt of one player."""

    user_id: str
    best_score: int
    total_questions: int
    attempts: int
    best_completed_at: datetime


def summarize_results(results: Iterable[QuizResult]) -> QuizStatistics:
    results = list(results)
    if not results:
        return QuizStatistics()
    percentages = [result.percentage for result in results]
    return QuizStatistics(
        total_attempts=len(results),
        average_percentage=round(sum(percentages) / len(percentages)),
        best_percentage=max(percentages),
        unique_users=len({result.user_id for result in results}),
    )


class Scoreboard:
    """Tracks the best attempt of every player of a quiz."""

    def __init__(self) -> None:
        self._rows: dict[str, ScoreboardRow] = {}

    @classmethod
    def from_results(cls, results: Iterable[QuizResult]) -> "Scoreboard":
        board = cls()
        for result in results:
            board.record_result(result)
        return board

    def record_result(self, result: QuizResult) -> None:
        """Fold one attempt into the player's row."""
        row = self._rows.get(result.user_id)
        if row is None:
            self._rows[result.user_id] = ScoreboardRow(
                user_id=result.user_id,
                best_score=result.score,
                total_questions=result.total_questions,
                attempts=1,
                best_completed_at=result.completed_at,
            )
            return

        row.attempts += 1
        current = _ratio(row.best_score, row.total_questions)
        candidate = _ratio(result.score, result.total_questions)
        improved = candidate > current or (
            candidate == current
            and result.completed_at < row.best_completed_at
        )
        if improved:
            row.best_score = result.score
            row.total_questions = result.total_questions
            row.best_completed_at = result.completed_at

    def get_top_scorers(self, limit: int = 3) -> list[ScoreboardRow]:
        """Return the top N players sorted by best percentage, earliest first on ties."""
        sorted_rows = sorted(
            self._rows.values(),
            key=lambda r: (-_ratio(r.best_score, r.total_questions), r.best_completed_at),
        )
        return [replace(row) for row in sorted_rows[:limit]]


def _ratio(score: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return score / total
