"""Application entry point for the QuizDeck service."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from quizdeck.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    HOST_ENV_VAR,
    PORT_ENV_VAR,
)
from quizdeck.constants.quiz_constants import (
    DEFAULT_QUIZ_OWNER,
    QUIZ_FILES_ENV_VAR,
    QUIZ_OWNER_ENV_VAR,
)
from quizdeck.core.quiz_importer import QuizImportError, load_quiz_from_file
from quizdeck.core.quiz_manager import QuizManager
from quizdeck.server.api_server import run_api_server
from quizdeck.utils.logging_config import configure_logging


def _resolve_bind_address() -> tuple[str, int]:
    host = os.environ.get(HOST_ENV_VAR, DEFAULT_HOST)
    raw_port = os.environ.get(PORT_ENV_VAR)
    if not raw_port:
        return host, DEFAULT_PORT
    try:
        return host, int(raw_port)
    except ValueError as exc:
        raise SystemExit(f"{PORT_ENV_VAR} must be an integer, got {raw_port!r}") from exc


def _preload_quizzes(quiz_manager: QuizManager, logger: logging.Logger) -> int:
    """Import the quiz files listed in QUIZDECK_QUIZ_FILES (os.pathsep separated)."""
    raw_paths = os.environ.get(QUIZ_FILES_ENV_VAR, "")
    owner_id = os.environ.get(QUIZ_OWNER_ENV_VAR) or DEFAULT_QUIZ_OWNER
    loaded = 0
    for entry in raw_paths.split(os.pathsep):
        if not entry.strip():
            continue
        path = Path(entry.strip())
        try:
            imported = load_quiz_from_file(path)
            quiz = quiz_manager.create_quiz(imported.title, owner_id, imported.questions)
        except (OSError, QuizImportError, ValueError) as exc:
            raise SystemExit(f"Could not import quiz file {path}: {exc}") from exc
        logger.info("Imported quiz %r (%s) from %s", quiz.title, quiz.id, path)
        loaded += 1
    return loaded


def main() -> None:
    """Initialize logging, load any quiz files and serve the API."""
    logger = configure_logging()
    host, port = _resolve_bind_address()

    quiz_manager = QuizManager()
    _preload_quizzes(quiz_manager, logger)

    logger.info("Starting QuizDeck on http://%s:%d/", host, port)
    run_api_server(quiz_manager=quiz_manager, host=host, port=port)


if __name__ == "__main__":
    main()
