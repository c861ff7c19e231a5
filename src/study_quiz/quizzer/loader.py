"""Read question-set documents from disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .errors import LoadError
from .pool import QuestionPool

__all__ = [
    "QUESTION_SET_SUFFIX",
    "list_topics",
    "load_question_set",
    "read_question_set",
    "resolve_question_set",
]

QUESTION_SET_SUFFIX = ".json"

logger = logging.getLogger(__name__)


def list_topics(questions_dir: Path) -> list[str]:
    """Return the sorted topic identifiers available in ``questions_dir``."""

    if not questions_dir.is_dir():
        return []
    return sorted(
        (
            child.stem
            for child in questions_dir.iterdir()
            if child.is_file() and child.suffix.lower() == QUESTION_SET_SUFFIX
        ),
        key=str.lower,
    )


def resolve_question_set(topic: str, questions_dir: Path) -> Path:
    """Map a topic identifier to its document path.

    An identifier naming an existing file is used as-is; otherwise it is
    looked up as ``<questions_dir>/<topic>.json``.
    """

    candidate = Path(topic).expanduser()
    if candidate.is_file():
        return candidate
    name = topic
    if not name.lower().endswith(QUESTION_SET_SUFFIX):
        name += QUESTION_SET_SUFFIX
    return questions_dir / name


def read_question_set(path: Path) -> object:
    """Read and parse the JSON body at ``path``."""

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LoadError(f"Question set not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Failed to load {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise LoadError(
            f"Question set {path} is not valid JSON: {exc}"
        ) from exc


def load_question_set(topic: str, questions_dir: Path) -> QuestionPool:
    """Load and validate the question pool for ``topic``."""

    path = resolve_question_set(topic, questions_dir)
    try:
        body = read_question_set(path)
    except LoadError:
        logger.error(
            "Could not load question set",
            extra={"topic": topic, "path": str(path)},
        )
        raise
    pool = QuestionPool.load(body, topic=Path(path).stem)
    logger.info(
        "Loaded question set",
        extra={"topic": pool.topic, "path": str(path), "count": len(pool)},
    )
    return pool
