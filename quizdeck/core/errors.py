"""Exceptions shared by the quiz services."""

from __future__ import annotations


class PresentationError(ValueError):
    """Raised when a quiz cannot be presented (no questions, too few options)."""


class QuizIntegrityError(RuntimeError):
    """Raised when canonical quiz data or a shuffle table breaks an invariant.

    This is never a wrong answer; it means the stored data is malformed.
    """


class ResultNotSavedError(RuntimeError):
    """Raised by a result store that failed to persist an attempt."""


class QuizNotFoundError(KeyError):
    """Raised when a quiz id is unknown."""


class SessionNotFoundError(KeyError):
    """Raised when a play session id is unknown or already finished."""


class ResultNotFoundError(KeyError):
    """Raised when a stored result id is unknown."""
