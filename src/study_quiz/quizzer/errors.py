"""Error types raised by the quiz core."""

from __future__ import annotations

from typing import Literal

__all__ = [
    "QuizError",
    "LoadError",
    "ValidationError",
    "InvalidCountError",
    "EmptyPoolError",
    "OutOfRangeError",
    "NotAnsweredError",
    "QuestionTypeError",
    "SessionNotFinishedError",
]

ValidationReason = Literal["empty", "malformed"]


class QuizError(RuntimeError):
    """Base class for quiz failures."""


class LoadError(QuizError):
    """The question-set document could not be read or parsed."""


class ValidationError(QuizError):
    """The question-set body is not a usable array of questions.

    ``reason`` is ``"empty"`` for a valid but empty array and ``"malformed"``
    for anything that is not an array, so callers can tell "no questions yet"
    apart from "bad data".
    """

    def __init__(self, message: str, *, reason: ValidationReason) -> None:
        super().__init__(message)
        self.reason: ValidationReason = reason


class InvalidCountError(QuizError, ValueError):
    """Requested question count is outside ``[1, pool size]``."""

    def __init__(self, requested: object, available: int) -> None:
        super().__init__(
            f"Question count must be between 1 and {available}; "
            f"got {requested!r}."
        )
        self.requested = requested
        self.available = available


class EmptyPoolError(QuizError):
    """A session was started with no questions."""


class OutOfRangeError(QuizError, IndexError):
    """No current question: the session has not started or already ended."""


class NotAnsweredError(QuizError):
    """``advance`` was called before the current question was answered."""


class QuestionTypeError(QuizError):
    """An answer of the wrong kind was submitted for the current question."""


class SessionNotFinishedError(QuizError):
    """A summary was requested before the session reached its end."""
