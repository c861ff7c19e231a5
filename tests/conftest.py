from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import (  # noqa: E402
    WorkspaceBuilder,
    make_records,
    sample_question_set,
)
from study_quiz.core import workspace as workspace_mod  # noqa: E402
from study_quiz.quizzer.pool import QuestionRecord  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point the workspace at tmp so no test touches the real home dir."""

    home = tmp_path / "quiz-home"
    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(home))
    for name in (
        "STUDY_QUIZ_CONFIG",
        "STUDY_QUIZ_QUESTIONS_DIR",
        "STUDY_QUIZ_RETRY_OFFSET",
        "STUDY_QUIZ_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def questions() -> list[dict[str, object]]:
    """Mixed multiple-choice and fill-in-the-blank raw question data."""

    return sample_question_set()


@pytest.fixture
def records() -> Callable[..., list[QuestionRecord]]:
    return make_records


@pytest.fixture(autouse=True)
def _reset_quiz_loggers():
    """Undo configure_logger side effects so caplog sees every record."""

    yield
    for name in list(logging.Logger.manager.loggerDict):
        if not name.startswith("study_quiz"):
            continue
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
