"""Question records and question-set validation."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .errors import ValidationError

__all__ = [
    "QuestionKind",
    "QuestionRecord",
    "QuestionPool",
    "build_record",
    "load_pool",
]

logger = logging.getLogger(__name__)


class QuestionKind(Enum):
    """How a question is answered."""

    MULTIPLE_CHOICE = "multiple_choice"
    FILL_BLANK = "fill_blank"


@dataclass(frozen=True)
class QuestionRecord:
    """A question with its kind resolved once at load time."""

    question: str
    kind: QuestionKind
    answer: str
    options: tuple[str, ...] = ()
    source: dict[str, object] = field(
        default_factory=dict, compare=False, repr=False
    )

    @property
    def is_multiple_choice(self) -> bool:
        return self.kind is QuestionKind.MULTIPLE_CHOICE


def _resolve_kind(raw_type: object, options: list[object]) -> QuestionKind:
    if raw_type is None or raw_type == "":
        return (
            QuestionKind.MULTIPLE_CHOICE if options else QuestionKind.FILL_BLANK
        )
    for kind in QuestionKind:
        if kind.value == raw_type:
            return kind
    logger.warning(
        "Unknown question type; treating as fill-in-the-blank",
        extra={"question_type": raw_type},
    )
    return QuestionKind.FILL_BLANK


def _coerce_options(raw: object) -> list[object]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return []


def build_record(data: object) -> QuestionRecord:
    """Resolve one raw question object into a :class:`QuestionRecord`.

    Content is trusted: a missing ``question`` or ``answer`` becomes an empty
    string instead of an error. A multiple-choice question without options
    and with a string answer is given that answer as its only option.
    """

    if not isinstance(data, Mapping):
        logger.warning(
            "Question entry is not an object; using an empty record",
            extra={"entry_type": type(data).__name__},
        )
        data = {}
    source = copy.deepcopy(dict(data))

    raw_answer = source.get("answer")
    raw_options = _coerce_options(source.get("options"))
    kind = _resolve_kind(source.get("type"), raw_options)

    if (
        kind is QuestionKind.MULTIPLE_CHOICE
        and not raw_options
        and isinstance(raw_answer, str)
    ):
        raw_options = [raw_answer]

    question = source.get("question")
    return QuestionRecord(
        question="" if question is None else str(question),
        kind=kind,
        answer="" if raw_answer is None else str(raw_answer),
        options=tuple(str(option) for option in raw_options)
        if kind is QuestionKind.MULTIPLE_CHOICE
        else (),
        source=source,
    )


def load_pool(raw: object) -> list[QuestionRecord]:
    """Validate a parsed question-set body and resolve its records.

    Raises :class:`ValidationError` with ``reason="malformed"`` when ``raw``
    is not an array and ``reason="empty"`` when it has no entries.
    """

    if not isinstance(raw, list):
        raise ValidationError(
            "Question data is malformed: expected a JSON array, found "
            f"{type(raw).__name__}.",
            reason="malformed",
        )
    if not raw:
        raise ValidationError(
            "No questions available for this topic yet.", reason="empty"
        )
    return [build_record(item) for item in raw]


@dataclass(frozen=True)
class QuestionPool(Sequence[QuestionRecord]):
    """The validated questions of one topic."""

    records: tuple[QuestionRecord, ...]
    topic: str | None = None

    @classmethod
    def load(cls, raw: object, *, topic: str | None = None) -> "QuestionPool":
        return cls(records=tuple(load_pool(raw)), topic=topic)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[QuestionRecord]:
        return iter(self.records)

    def __getitem__(self, index):  # type: ignore[override]
        return self.records[index]

    def counts_by_kind(self) -> dict[QuestionKind, int]:
        counts = {kind: 0 for kind in QuestionKind}
        for record in self.records:
            counts[record.kind] += 1
        return counts
