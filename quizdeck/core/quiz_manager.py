"""Business logic shared between the API and any other front end."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from threading import Lock

from quizdeck.core.errors import ResultNotSavedError, SessionNotFoundError
from quizdeck.core.models import QuestionDraft, Quiz, QuizResult, ScoredResult
from quizdeck.core.quiz_exporter import serialize_quiz
from quizdeck.core.quiz_importer import QuizImportError, parse_quiz_text
from quizdeck.core.services.game_session import PlaySession, SessionSnapshot
from quizdeck.core.services.quiz_repository import QuizRepository
from quizdeck.core.services.result_review import ResultReview, review_result
from quizdeck.core.services.result_store import InMemoryResultStore, ResultStore, build_result
from quizdeck.core.services.scoreboard import (
    QuizStatistics,
    Scoreboard,
    ScoreboardRow,
    summarize_results,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FinishedAttempt:
    """A scored session and whether its result reached the store.

    The score stays valid when ``saved`` is False; ``save_error`` says why.
    """

    scored: ScoredResult
    result: QuizResult
    saved: bool
    save_error: str | None = None


class QuizManager:
    """Facade for quiz services: Repository, PlaySessions and ResultStore."""

    def __init__(
        self,
        repository: QuizRepository | None = None,
        result_store: ResultStore | None = None,
    ) -> None:
        self._lock = Lock()
        self._repository = repository or QuizRepository()
        self._results: ResultStore = result_store or InMemoryResultStore()
        self._sessions: dict[str, PlaySession] = {}
        self._shuffle_seed: int | None = None

    # --- Quiz Repository Delegation ---

    def create_quiz(
        self,
        title: str,
        owner_id: str,
        questions: Iterable[QuestionDraft],
        description: str | None = None,
    ) -> Quiz:
        with self._lock:
            return self._repository.create_quiz(title, owner_id, questions, description)

    def update_quiz(
        self,
        quiz_id: str,
        user_id: str,
        title: str,
        questions: Iterable[QuestionDraft],
        description: str | None = None,
    ) -> Quiz:
        with self._lock:
            self._require_owner(quiz_id, user_id)
            quiz = self._repository.update_quiz(quiz_id, title, questions, description)
            self._drop_sessions_for(quiz_id)
            return quiz

    def delete_quiz(self, quiz_id: str, user_id: str) -> None:
        with self._lock:
            self._require_owner(quiz_id, user_id)
            self._repository.delete_quiz(quiz_id)
            self._drop_sessions_for(quiz_id)
            logger.info("Deleted quiz %s", quiz_id)

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return self._repository.get_quiz(quiz_id)

    def list_quizzes(self, owner_id: str | None = None) -> list[Quiz]:
        with self._lock:
            return self._repository.list_quizzes(owner_id)

    def import_quiz(
        self,
        text: str,
        owner_id: str,
        title: str | None = None,
        description: str | None = None,
    ) -> Quiz:
        """Create a quiz from the plain-text format; ``title`` overrides TITLE."""
        parsed_title, drafts = parse_quiz_text(text)
        if not drafts:
            raise QuizImportError("Quiz text did not contain any questions.")
        return self.create_quiz(title or parsed_title or "", owner_id, drafts, description)

    def export_quiz(self, quiz_id: str, user_id: str) -> str:
        with self._lock:
            return serialize_quiz(self._require_owner(quiz_id, user_id))

    # --- Play Session Delegation ---

    def start_session(self, quiz_id: str, user_id: str) -> PlaySession:
        with self._lock:
            quiz = self._repository.get_quiz(quiz_id)
            session = PlaySession(quiz, user_id, seed=self._shuffle_seed)
            self._sessions[session.session_id] = session
            logger.info("User %s started session %s on quiz %s", user_id, session.session_id, quiz_id)
            return session

    def get_session(self, session_id: str, user_id: str) -> PlaySession:
        with self._lock:
            return self._require_session(session_id, user_id)

    def describe_session(self, session_id: str, user_id: str) -> SessionSnapshot:
        with self._lock:
            return self._require_session(session_id, user_id).snapshot()

    def navigate_session(
        self,
        session_id: str,
        user_id: str,
        direction: str | None = None,
        position: int | None = None,
    ) -> SessionSnapshot:
        """Move the cursor to ``position`` or one step ``next``/``previous``.

        Stepping past either end leaves the cursor where it is.
        """
        with self._lock:
            session = self._require_session(session_id, user_id)
            if position is not None:
                session.go_to(position)
            elif direction == "next":
                session.next_question()
            elif direction == "previous":
                session.previous_question()
            else:
                raise ValueError("Navigation needs a position or a direction of 'next' or 'previous'.")
            return session.snapshot()

    def select_option(
        self,
        session_id: str,
        user_id: str,
        position: int,
        option_index: int,
        multi_select: bool | None = None,
    ) -> frozenset[int]:
        with self._lock:
            session = self._require_session(session_id, user_id)
            return session.select_option(position, option_index, multi_select)

    def clear_selection(self, session_id: str, user_id: str, position: int) -> None:
        with self._lock:
            self._require_session(session_id, user_id).clear_selection(position)

    def restart_session(self, session_id: str, user_id: str) -> PlaySession:
        with self._lock:
            session = self._require_session(session_id, user_id)
            session.restart()
            return session

    def abandon_session(self, session_id: str, user_id: str) -> None:
        with self._lock:
            self._require_session(session_id, user_id)
            del self._sessions[session_id]

    def finish_session(self, session_id: str, user_id: str) -> FinishedAttempt:
        """Score the session, hand the result to the store and close the session.

        A store that fails, for whatever reason, never costs the player the
        score: the failure comes back as ``saved=False``.
        """
        with self._lock:
            session = self._require_session(session_id, user_id)
            scored = session.score()
            result = build_result(scored, user_id)
            try:
                self._results.save(result)
            except ResultNotSavedError as exc:
                logger.error("Result for session %s was not saved: %s", session_id, exc)
                return self._close_unsaved(session_id, scored, result, str(exc))
            except Exception as exc:
                logger.exception("Result store failed for session %s", session_id)
                return self._close_unsaved(session_id, scored, result, f"Result store failed: {exc}")
            del self._sessions[session_id]
            logger.info(
                "Session %s finished with %d/%d", session_id, scored.score, scored.total
            )
            return FinishedAttempt(scored=scored, result=result, saved=True)

    def get_active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # --- Results Delegation ---

    def list_results_for_quiz(self, quiz_id: str, user_id: str) -> list[QuizResult]:
        """Every attempt at a quiz; only its owner may look."""
        with self._lock:
            self._require_owner(quiz_id, user_id)
            return self._results.list_for_quiz(quiz_id)

    def list_results_for_user(self, user_id: str) -> list[QuizResult]:
        with self._lock:
            return self._results.list_for_user(user_id)

    def get_quiz_statistics(self, quiz_id: str, user_id: str) -> QuizStatistics:
        return summarize_results(self.list_results_for_quiz(quiz_id, user_id))

    def get_top_scorers(self, quiz_id: str, user_id: str, limit: int) -> list[ScoreboardRow]:
        results = self.list_results_for_quiz(quiz_id, user_id)
        return Scoreboard.from_results(results).get_top_scorers(limit)

    def review_result(
        self, result_id: str, user_id: str, only_incorrect: bool = False
    ) -> ResultReview:
        """Review an attempt; visible to the player and to the quiz owner."""
        with self._lock:
            result = self._results.get(result_id)
            quiz = self._repository.get_quiz(result.quiz_id)
            if user_id not in (result.user_id, quiz.owner_id):
                raise PermissionError(f"User {user_id} cannot view result {result_id}.")
            return review_result(quiz, result, only_incorrect=only_incorrect)

    # --- Settings ---

    def set_shuffle_seed(self, seed: int | None) -> None:
        """Seed new sessions; None restores unpredictable shuffles."""
        with self._lock:
            self._shuffle_seed = seed

    # --- Helpers (call with the lock held) ---

    def _require_owner(self, quiz_id: str, user_id: str) -> Quiz:
        quiz = self._repository.get_quiz(quiz_id)
        if quiz.owner_id != user_id:
            raise PermissionError(f"User {user_id} does not own quiz {quiz_id}.")
        return quiz

    def _require_session(self, session_id: str, user_id: str) -> PlaySession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.user_id != user_id:
            raise PermissionError(f"Session {session_id} belongs to another user.")
        return session

    def _drop_sessions_for(self, quiz_id: str) -> None:
        stale = [sid for sid, s in self._sessions.items() if s.quiz.id == quiz_id]
        for session_id in stale:
            del self._sessions[session_id]

    def _close_unsaved(
        self, session_id: str, scored: ScoredResult, result: QuizResult, error: str
    ) -> FinishedAttempt:
        del self._sessions[session_id]
        return FinishedAttempt(scored=scored, result=result, saved=False, save_error=error)
