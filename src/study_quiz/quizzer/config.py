"""Configuration loader for quiz sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from study_quiz.core import config as core_config
from study_quiz.core import workspace as workspace_mod

from .engine import DEFAULT_RETRY_OFFSET

CONFIG_FILENAME = "quizzer.toml"
CONFIG_ENV = "STUDY_QUIZ_CONFIG"
TEMPLATE_FILENAME = "template.toml"
ENV_PREFIX = "STUDY_QUIZ_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class QuizzerConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizzerConfig:
    """Fully resolved settings for a quiz run."""

    questions_dir: Path
    default_count: int
    retry_offset: int
    shuffle_options: bool
    log_level: str
    verbose: bool


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced values applied on top of env and file options."""

    questions_dir: Optional[Path] = None
    default_count: Optional[int] = None
    shuffle_options: Optional[bool] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizzerConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults.

    A missing config file is fine when it was not asked for explicitly; an
    explicit ``config_path`` or ``STUDY_QUIZ_CONFIG`` that points nowhere is
    an error.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            core_config.merge_defaults(
                table, core_config.load_toml(requested_path)
            )
        except core_config.TomlConfigError as exc:
            raise QuizzerConfigError(str(exc)) from exc
    elif config_path is not None or _parse_env_string(env_map, "CONFIG"):
        raise QuizzerConfigError(f"Config file not found: {requested_path}")

    questions_dir = _resolve_questions_dir(
        cli_value=overrides.questions_dir,
        env_value=_parse_env_path(env_map, "QUESTIONS_DIR"),
        file_value=_coerce_optional_path(table["paths"]["questions_dir"]),
        layout=layout,
    )
    default_count = _require_int(
        _pick_first(
            overrides.default_count,
            table["session"]["default_count"],
        ),
        field="session.default_count",
        minimum=0,
    )
    retry_offset = _require_int(
        _pick_first(
            _parse_env_int(env_map, "RETRY_OFFSET"),
            table["session"]["retry_offset"],
        ),
        field="session.retry_offset",
        minimum=1,
    )
    shuffle_options = _require_bool(
        _pick_first(
            overrides.shuffle_options,
            table["session"]["shuffle_options"],
        ),
        field="session.shuffle_options",
    )
    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        )
    )
    verbose = _require_bool(
        _pick_first(overrides.verbose, table["logging"]["verbose"]),
        field="logging.verbose",
    )

    config = QuizzerConfig(
        questions_dir=questions_dir,
        default_count=default_count,
        retry_offset=retry_offset,
        shuffle_options=shuffle_options,
        log_level=log_level,
        verbose=verbose,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def template_text() -> str:
    """Return the commented default config shipped with the package."""

    return (
        resources.files(__package__)
        .joinpath(TEMPLATE_FILENAME)
        .read_text(encoding="utf-8")
    )


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=template_text(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizzerConfigError(str(exc)) from exc


def default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    """Return a fresh copy of the default option tree."""

    return {
        "paths": {"questions_dir": None},
        "session": {
            "default_count": 0,
            "retry_offset": DEFAULT_RETRY_OFFSET,
            "shuffle_options": True,
        },
        "logging": {"level": "INFO", "verbose": False},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = _parse_env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _resolve_questions_dir(
    *,
    cli_value: Optional[Path],
    env_value: Optional[Path],
    file_value: Optional[Path],
    layout: workspace_mod.WorkspaceLayout,
) -> Path:
    """Pick the questions directory.

    CLI and env paths are taken relative to the working directory; a
    relative path from the config file is taken relative to the workspace.
    """

    for candidate in (cli_value, env_value):
        if candidate is not None:
            return candidate.expanduser().resolve()
    if file_value is None:
        return layout.path_for("question_sets")
    candidate = file_value.expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate.resolve()


def _coerce_optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str):
        raw = value.strip()
        return Path(raw) if raw else None
    raise QuizzerConfigError(
        "paths.questions_dir must be a string when provided."
    )


def _require_int(value: object, *, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuizzerConfigError(f"'{field}' must be an integer.")
    if value < minimum:
        raise QuizzerConfigError(f"'{field}' must be >= {minimum}.")
    return value


def _require_bool(value: object, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise QuizzerConfigError(f"'{field}' must be a boolean.")
    return value


def _resolve_log_level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizzerConfigError("logging.level must be a non-empty string.")
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        raise QuizzerConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    return level


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _parse_env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _parse_env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise QuizzerConfigError(
            f"{ENV_PREFIX}{key} must be an integer, got {raw!r}."
        ) from exc


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
