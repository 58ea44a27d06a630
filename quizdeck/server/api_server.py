"""FastAPI server exposing quiz authoring, play and result endpoints."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from typing import Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
import uvicorn

from quizdeck.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from quizdeck.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizdeck.constants.quiz_constants import TOP_SCORERS_LIMIT
from quizdeck.core.errors import (
    QuizIntegrityError,
    QuizNotFoundError,
    ResultNotFoundError,
    SessionNotFoundError,
)
from quizdeck.core.markdown_math_renderer import renderer
from quizdeck.core.models import QuestionDraft, Quiz, QuizResult
from quizdeck.core.quiz_importer import QuizImportError
from quizdeck.core.quiz_manager import FinishedAttempt, QuizManager
from quizdeck.core.services.game_session import SessionSnapshot
from quizdeck.core.services.result_review import ResultReview

logger = logging.getLogger(__name__)


class QuestionPayload(BaseModel):
    """One authored question; ``correct_answers`` wins over ``correct_answer``."""

    id: str | None = None
    question_text: str
    options: list[str]
    correct_answers: list[int] | None = None
    correct_answer: int | None = None
    image_url: str | None = None
    option_image_urls: list[str | None] | None = None

    def to_draft(self) -> QuestionDraft:
        return QuestionDraft(
            question_text=self.question_text,
            options=list(self.options),
            correct_answers=self.correct_answers,
            correct_answer=self.correct_answer,
            id=self.id,
            image_url=self.image_url,
            option_image_urls=self.option_image_urls,
        )


class QuizPayload(BaseModel):
    """Payload schema for creating or replacing a quiz."""

    title: str
    description: str | None = None
    questions: list[QuestionPayload] = Field(default_factory=list)


class SelectPayload(BaseModel):
    """Payload schema for choosing an option in presentation order."""

    position: int
    option_index: int
    multi_select: bool | None = None


class NavigatePayload(BaseModel):
    """Move the cursor to ``position``, or one step in ``direction``."""

    direction: Literal["next", "previous"] | None = None
    position: int | None = None


class ClearPayload(BaseModel):
    position: int


class ImportPayload(BaseModel):
    """Quiz in the plain-text format; ``title`` overrides the TITLE line."""

    text: str
    title: str | None = None
    description: str | None = None


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _require_user(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header.")
    return x_user_id.strip()


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except (QuizNotFoundError, SessionNotFoundError, ResultNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=f"Not found: {exc.args[0]}") from exc
    except QuizImportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (ValueError, IndexError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except QuizIntegrityError as exc:
        logger.exception("Data integrity error")
        raise HTTPException(status_code=500, detail=f"Quiz data is inconsistent: {exc}") from exc


def _iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def _quiz_summary(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "owner_id": quiz.owner_id,
        "question_count": len(quiz.questions),
        "created_at": _iso(quiz.created_at),
        "updated_at": _iso(quiz.updated_at),
    }


def _quiz_detail(quiz: Quiz) -> dict[str, object]:
    detail = _quiz_summary(quiz)
    detail["questions"] = [
        {
            "id": question.id,
            "question_text": question.question_text,
            "options": list(question.options),
            "correct_answer": question.correct_answer,
            "correct_answers": sorted(question.correct_answers),
            "order_index": question.order_index,
            "image_url": question.image_url,
            "option_image_urls": list(question.option_image_urls),
        }
        for question in quiz.questions
    ]
    return detail


def _session_view(snapshot: SessionSnapshot) -> dict[str, object]:
    """Player-facing view: shuffled texts only, never answers or index tables."""
    progress = snapshot.progress
    questions = []
    for position, shown in enumerate(snapshot.questions):
        questions.append(
            {
                "position": position,
                "question_id": shown.question.id,
                "question_html": renderer.render_fragment(shown.question.question_text),
                "image_url": shown.question.image_url,
                "options": list(shown.options),
                "option_image_urls": list(shown.option_image_urls),
                "multi_answer": shown.question.is_multi_answer,
                "selected": sorted(snapshot.get_selection(position)),
            }
        )
    return {
        "session_id": snapshot.session_id,
        "quiz_id": snapshot.quiz_id,
        "quiz_title": snapshot.quiz_title,
        "attempt": snapshot.attempt,
        "position": progress.position,
        "answered_count": progress.answered_count,
        "total_questions": progress.total_questions,
        "questions": questions,
    }


def _result_summary(result: QuizResult) -> dict[str, object]:
    return {
        "id": result.id,
        "quiz_id": result.quiz_id,
        "user_id": result.user_id,
        "score": result.score,
        "total_questions": result.total_questions,
        "percentage": result.percentage,
        "answers": result.answers,
        "completed_at": _iso(result.completed_at),
    }


def _finished_view(finished: FinishedAttempt) -> dict[str, object]:
    scored = finished.scored
    return {
        "result_id": finished.result.id if finished.saved else None,
        "score": scored.score,
        "total_questions": scored.total,
        "percentage": finished.result.percentage,
        "saved": finished.saved,
        "save_error": finished.save_error,
        "answers": {qid: sorted(selected) for qid, selected in scored.answers.items()},
        "outcomes": [
            {
                "question_id": outcome.question_id,
                "selected": sorted(outcome.selected),
                "correct_answers": sorted(outcome.correct_answers),
                "is_correct": outcome.is_correct,
            }
            for outcome in scored.outcomes
        ],
    }


def _review_view(review: ResultReview) -> dict[str, object]:
    return {
        "result": _result_summary(review.result),
        "quiz_title": review.quiz_title,
        "correct_count": review.correct_count,
        "incorrect_count": review.incorrect_count,
        "unanswered_count": review.unanswered_count,
        "questions": [
            {
                "question_id": entry.question_id,
                "question_text": entry.question_text,
                "selected_indices": entry.selected_indices,
                "selected_texts": entry.selected_texts,
                "correct_indices": entry.correct_indices,
                "correct_texts": entry.correct_texts,
                "status": entry.status.value,
            }
            for entry in review.questions
        ],
    }


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"status": "ok", "version": APP_VERSION}

    # --- Authoring ---

    @app.get("/quizzes")
    def list_quizzes(
        owner: str | None = None,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        owner_id = user_id if owner == "me" else owner
        return [_quiz_summary(quiz) for quiz in manager.list_quizzes(owner_id)]

    @app.post("/quizzes", status_code=201)
    def create_quiz(
        payload: QuizPayload,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            quiz = manager.create_quiz(
                payload.title,
                user_id,
                [question.to_draft() for question in payload.questions],
                payload.description,
            )
        return _quiz_detail(quiz)

    @app.post("/quizzes/import", status_code=201)
    def import_quiz(
        payload: ImportPayload,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            quiz = manager.import_quiz(payload.text, user_id, payload.title, payload.description)
        return _quiz_detail(quiz)

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            quiz = manager.get_quiz(quiz_id)
        # Answers stay hidden from anyone but the author.
        if quiz.owner_id != user_id:
            return _quiz_summary(quiz)
        return _quiz_detail(quiz)

    @app.get("/quizzes/{quiz_id}/export", response_class=PlainTextResponse)
    def export_quiz(
        quiz_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> str:
        with _translate_errors():
            return manager.export_quiz(quiz_id, user_id)

    @app.put("/quizzes/{quiz_id}")
    def update_quiz(
        quiz_id: str,
        payload: QuizPayload,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            quiz = manager.update_quiz(
                quiz_id,
                user_id,
                payload.title,
                [question.to_draft() for question in payload.questions],
                payload.description,
            )
        return _quiz_detail(quiz)

    @app.delete("/quizzes/{quiz_id}", status_code=204)
    def delete_quiz(
        quiz_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        with _translate_errors():
            manager.delete_quiz(quiz_id, user_id)
        return Response(status_code=204)

    # --- Play ---

    @app.post("/quizzes/{quiz_id}/sessions", status_code=201)
    def start_session(
        quiz_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            session = manager.start_session(quiz_id, user_id)
            snapshot = manager.describe_session(session.session_id, user_id)
        return _session_view(snapshot)

    @app.get("/sessions/{session_id}")
    def get_session(
        session_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.describe_session(session_id, user_id)
        return _session_view(snapshot)

    @app.post("/sessions/{session_id}/select")
    def select_option(
        session_id: str,
        payload: SelectPayload,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            selected = manager.select_option(
                session_id,
                user_id,
                payload.position,
                payload.option_index,
                payload.multi_select,
            )
        return {"position": payload.position, "selected": sorted(selected)}

    @app.post("/sessions/{session_id}/clear")
    def clear_selection(
        session_id: str,
        payload: ClearPayload,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            manager.clear_selection(session_id, user_id, payload.position)
        return {"position": payload.position, "selected": []}

    @app.post("/sessions/{session_id}/navigate")
    def navigate_session(
        session_id: str,
        payload: NavigatePayload,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            snapshot = manager.navigate_session(
                session_id, user_id, direction=payload.direction, position=payload.position
            )
        return _session_view(snapshot)

    @app.post("/sessions/{session_id}/restart")
    def restart_session(
        session_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            manager.restart_session(session_id, user_id)
            snapshot = manager.describe_session(session_id, user_id)
        return _session_view(snapshot)

    @app.delete("/sessions/{session_id}", status_code=204)
    def abandon_session(
        session_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        with _translate_errors():
            manager.abandon_session(session_id, user_id)
        return Response(status_code=204)

    @app.post("/sessions/{session_id}/finish")
    def finish_session(
        session_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            finished = manager.finish_session(session_id, user_id)
        return _finished_view(finished)

    # --- Results ---

    @app.get("/results")
    def list_my_results(
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_result_summary(result) for result in manager.list_results_for_user(user_id)]

    @app.get("/quizzes/{quiz_id}/results")
    def list_quiz_results(
        quiz_id: str,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            results = manager.list_results_for_quiz(quiz_id, user_id)
            statistics = manager.get_quiz_statistics(quiz_id, user_id)
            top_scorers = manager.get_top_scorers(quiz_id, user_id, TOP_SCORERS_LIMIT)
        return {
            "statistics": {
                "total_attempts": statistics.total_attempts,
                "average_percentage": statistics.average_percentage,
                "best_percentage": statistics.best_percentage,
                "unique_users": statistics.unique_users,
            },
            "top_scorers": [
                {
                    "user_id": row.user_id,
                    "best_score": row.best_score,
                    "total_questions": row.total_questions,
                    "attempts": row.attempts,
                }
                for row in top_scorers
            ],
            "results": [_result_summary(result) for result in results],
        }

    @app.get("/results/{result_id}")
    def review_result(
        result_id: str,
        only_incorrect: bool = False,
        user_id: str = Depends(_require_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _translate_errors():
            review = manager.review_result(result_id, user_id, only_incorrect=only_incorrect)
        return _review_view(review)

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
