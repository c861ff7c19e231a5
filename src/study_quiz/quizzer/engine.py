"""Quiz session state machine.

A :class:`SessionEngine` owns one :class:`SessionState` and moves it through
``SETUP -> IN_PROGRESS -> SUMMARY``. Presentation code (the Rich loop and the
Textual app) only calls the public operations and renders what they return;
the engine itself performs no I/O besides logging.

Every operation validates before it mutates, so a rejected call leaves the
state exactly as it was.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from .errors import (
    EmptyPoolError,
    InvalidCountError,
    NotAnsweredError,
    OutOfRangeError,
    QuestionTypeError,
    SessionNotFinishedError,
)
from .pool import QuestionKind, QuestionRecord
from .shuffle import shuffle
from .text import normalize

__all__ = [
    "DEFAULT_RETRY_OFFSET",
    "AnswerOutcome",
    "OptionFeedback",
    "QuizSummary",
    "SessionEngine",
    "SessionPhase",
    "SessionState",
    "WrongAnswerRecord",
]

DEFAULT_RETRY_OFFSET = 4

OptionStatus = Literal["correct", "incorrect", "neutral"]


class SessionPhase(Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    SUMMARY = "summary"


@dataclass(frozen=True)
class WrongAnswerRecord:
    """One incorrect submission, kept verbatim for the end-of-quiz review."""

    question: str
    user_answer: str
    correct_answer: str


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of scoring a single submission."""

    correct: bool
    user_answer: str
    correct_answer: str
    retry_position: int | None = None


@dataclass(frozen=True)
class OptionFeedback:
    option: str
    status: OptionStatus


@dataclass(frozen=True)
class QuizSummary:
    """Final score for a finished session."""

    score: int
    total: int
    percent: int
    wrong_log: tuple[WrongAnswerRecord, ...] = ()

    @property
    def perfect(self) -> bool:
        return not self.wrong_log


@dataclass
class SessionState:
    """Mutable session data; owned by exactly one engine."""

    queue: list[QuestionRecord] = field(default_factory=list)
    index: int = 0
    score: int = 0
    wrong_log: list[WrongAnswerRecord] = field(default_factory=list)
    answered: bool = False
    phase: SessionPhase = SessionPhase.SETUP


def _percent(score: int, total: int) -> int:
    if total <= 0:
        return 0
    # round half up
    return (score * 200 + total) // (2 * total)


def _copy_record(record: QuestionRecord) -> QuestionRecord:
    return dataclasses.replace(record, source=copy.deepcopy(record.source))


class SessionEngine:
    """Drive one quiz session at a time.

    Missed questions are inserted back into the queue ``retry_offset`` slots
    ahead of the current position (or at the end when fewer remain), so the
    learner meets them again later in the same sitting. Each pass counts once
    toward both ``score`` and the final total. There is no cap on retries.
    """

    def __init__(
        self,
        *,
        retry_offset: int = DEFAULT_RETRY_OFFSET,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if isinstance(retry_offset, bool) or not isinstance(retry_offset, int):
            raise TypeError("retry_offset must be an integer.")
        if retry_offset < 1:
            raise ValueError("retry_offset must be at least 1.")
        self.retry_offset = retry_offset
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)
        self._state = SessionState()
        self._last_outcome: AnswerOutcome | None = None

    # State accessors -----------------------------------------------------

    @property
    def state(self) -> SessionState:
        """The live state object. Treat it as read-only."""

        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def index(self) -> int:
        return self._state.index

    @property
    def answered(self) -> bool:
        return self._state.answered

    @property
    def queue(self) -> tuple[QuestionRecord, ...]:
        return tuple(self._state.queue)

    @property
    def wrong_log(self) -> tuple[WrongAnswerRecord, ...]:
        return tuple(self._state.wrong_log)

    @property
    def last_outcome(self) -> AnswerOutcome | None:
        """Outcome of the submission for the current question, if any."""

        return self._last_outcome

    @property
    def is_finished(self) -> bool:
        return self._state.phase is SessionPhase.SUMMARY

    def progress(self) -> tuple[int, int]:
        """Return ``(position, total)`` for "Question X of Y" displays."""

        total = len(self._state.queue)
        return min(self._state.index + 1, total), total

    # Lifecycle -----------------------------------------------------------

    def start(
        self, pool: Sequence[QuestionRecord], desired_count: int
    ) -> QuestionRecord:
        """Sample ``desired_count`` questions from ``pool`` and begin.

        Any previous session held by this engine is discarded.
        """

        available = len(pool)
        if available == 0:
            raise EmptyPoolError(
                "Cannot start a session with an empty question pool."
            )
        if (
            isinstance(desired_count, bool)
            or not isinstance(desired_count, int)
            or not 1 <= desired_count <= available
        ):
            raise InvalidCountError(desired_count, available)

        sampled = shuffle(list(pool), self._rng)[:desired_count]
        self._state = SessionState(
            queue=[_copy_record(record) for record in sampled],
            phase=SessionPhase.IN_PROGRESS,
        )
        self._last_outcome = None
        self._logger.info(
            "Quiz session started",
            extra={"pool_size": available, "question_count": desired_count},
        )
        return self._state.queue[0]

    def reset(self) -> None:
        """Drop the current session and return to the setup state."""

        self._state = SessionState()
        self._last_outcome = None
        self._logger.debug("Quiz session reset")

    # Question flow -------------------------------------------------------

    def current_question(self) -> QuestionRecord:
        state = self._state
        if (
            state.phase is not SessionPhase.IN_PROGRESS
            or state.index >= len(state.queue)
        ):
            raise OutOfRangeError("No current question; the session is over.")
        return state.queue[state.index]

    def submit_multiple_choice(self, selected: object) -> AnswerOutcome | None:
        """Score ``selected`` against the current multiple-choice question.

        Matching is exact and case-sensitive. Returns ``None`` without doing
        anything when the question was already answered.
        """

        if self._state.answered:
            return None
        record = self._current_of_kind(QuestionKind.MULTIPLE_CHOICE)
        user_answer = "" if selected is None else str(selected)
        return self._record_answer(
            record,
            user_answer=user_answer,
            correct=user_answer == record.answer,
        )

    def submit_fill_blank(self, raw_text: object) -> AnswerOutcome | None:
        """Score free text against the current fill-in-the-blank question.

        Both sides go through :func:`normalize` before comparison; the wrong
        answer log keeps the raw texts. Returns ``None`` when the question was
        already answered.
        """

        if self._state.answered:
            return None
        record = self._current_of_kind(QuestionKind.FILL_BLANK)
        user_answer = "" if raw_text is None else str(raw_text)
        return self._record_answer(
            record,
            user_answer=user_answer,
            correct=normalize(user_answer) == normalize(record.answer),
        )

    def advance(self) -> QuestionRecord | None:
        """Move past the answered question.

        Returns the next question, or ``None`` once the queue is exhausted
        and the session has moved to the summary phase.
        """

        state = self._state
        if not state.answered:
            raise NotAnsweredError(
                "Answer the current question before moving on."
            )
        state.index += 1
        state.answered = False
        self._last_outcome = None
        if state.index >= len(state.queue):
            state.phase = SessionPhase.SUMMARY
            self._logger.info(
                "Quiz session finished",
                extra={
                    "score": state.score,
                    "total": len(state.queue),
                    "mistakes": len(state.wrong_log),
                },
            )
            return None
        return state.queue[state.index]

    def summary(self) -> QuizSummary:
        state = self._state
        if state.phase is not SessionPhase.SUMMARY:
            raise SessionNotFinishedError(
                "The summary is only available once the session has finished."
            )
        total = len(state.queue)
        return QuizSummary(
            score=state.score,
            total=total,
            percent=_percent(state.score, total),
            wrong_log=tuple(state.wrong_log),
        )

    def option_feedback(
        self, options: Sequence[str] | None = None
    ) -> list[OptionFeedback]:
        """Per-option correctness for the current multiple-choice question.

        ``options`` lets the caller keep its own display order; it defaults to
        the record's options. Before an answer is submitted every option is
        ``neutral``.
        """

        record = self._current_of_kind(QuestionKind.MULTIPLE_CHOICE)
        shown = list(record.options if options is None else options)
        outcome = self._last_outcome
        if not self._state.answered or outcome is None:
            return [OptionFeedback(option, "neutral") for option in shown]

        feedback: list[OptionFeedback] = []
        for option in shown:
            if option == record.answer:
                status: OptionStatus = "correct"
            elif option == outcome.user_answer:
                status = "incorrect"
            else:
                status = "neutral"
            feedback.append(OptionFeedback(option, status))
        return feedback

    # Internals -----------------------------------------------------------

    def _current_of_kind(self, kind: QuestionKind) -> QuestionRecord:
        record = self.current_question()
        if record.kind is not kind:
            raise QuestionTypeError(
                f"Current question expects a {record.kind.value} answer, "
                f"not {kind.value}."
            )
        return record

    def _record_answer(
        self,
        record: QuestionRecord,
        *,
        user_answer: str,
        correct: bool,
    ) -> AnswerOutcome:
        state = self._state
        retry_position: int | None = None
        if correct:
            state.score += 1
        else:
            state.wrong_log.append(
                WrongAnswerRecord(
                    question=record.question,
                    user_answer=user_answer,
                    correct_answer=record.answer,
                )
            )
            retry_position = min(
                len(state.queue), state.index + self.retry_offset
            )
            state.queue.insert(retry_position, record)
        state.answered = True

        outcome = AnswerOutcome(
            correct=correct,
            user_answer=user_answer,
            correct_answer=record.answer,
            retry_position=retry_position,
        )
        self._last_outcome = outcome
        self._logger.debug(
            "Answer scored",
            extra={
                "index": state.index,
                "kind": record.kind.value,
                "correct": correct,
                "retry_position": retry_position,
            },
        )
        return outcome
