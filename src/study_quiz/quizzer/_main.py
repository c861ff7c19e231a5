"""CLI entry point for quiz sessions."""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from study_quiz.core import workspace as workspace_mod
from study_quiz.core.logging import configure_logger
from study_quiz.core.workspace import WorkspaceError

from .config import (
    CONFIG_ENV,
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    QuizzerConfigError,
    load_config,
    write_template,
)
from .engine import SessionEngine
from .errors import LoadError, ValidationError
from .loader import list_topics, load_question_set
from .session import InputProvider, run_quiz_session
from .view.quiz import QuizApp

LOGGER_NAME = "study_quiz.quizzer"


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizzer",
        description="Run one-at-a-time quizzes from JSON question sets.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser(
        "init", help=f"Write the default {CONFIG_FILENAME} template"
    )
    sp_init.add_argument(
        "--path",
        type=Path,
        help="Destination for the config (defaults to the workspace).",
    )
    sp_init.add_argument("--workspace", type=Path)
    sp_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config.",
    )

    sp_topics = sub.add_parser("topics", help="List available question sets")
    _add_common_options(sp_topics)

    sp_start = sub.add_parser("start", help="Start a quiz session")
    sp_start.add_argument(
        "topic",
        help="Question set name (file stem) or a path to a JSON file",
    )
    _add_common_options(sp_start)
    sp_start.add_argument(
        "--num",
        type=int,
        help="Number of questions; prompts when omitted",
    )
    sp_start.add_argument(
        "--tui", action="store_true", help="Use the Textual interface"
    )
    sp_start.add_argument(
        "--seed", type=int, help="Seed for reproducible question order"
    )
    sp_start.add_argument(
        "--shuffle-options",
        dest="shuffle_options",
        action="store_true",
        default=None,
    )
    sp_start.add_argument(
        "--no-shuffle-options", dest="shuffle_options", action="store_false"
    )
    sp_start.add_argument("--log-level")
    sp_start.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Mirror log records to stderr",
    )
    return p


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Config TOML (defaults to ${CONFIG_ENV} or the workspace)",
    )
    parser.add_argument("--workspace", type=Path)
    parser.add_argument("--questions-dir", type=Path)


def _load(args: argparse.Namespace) -> LoadResult:
    overrides = ConfigOverrides(
        questions_dir=_cli_path(getattr(args, "questions_dir", None)),
        default_count=getattr(args, "num", None),
        shuffle_options=getattr(args, "shuffle_options", None),
        log_level=getattr(args, "log_level", None),
        verbose=getattr(args, "verbose", None),
    )
    return load_config(
        config_path=args.config,
        overrides=overrides,
        workspace_path=args.workspace,
    )


def _cli_path(value: Optional[Path]) -> Optional[Path]:
    if value is None:
        return None
    candidate = value.expanduser()
    if not candidate.is_absolute():
        candidate = (Path.cwd() / candidate).resolve()
    return candidate


def _cmd_init(args: argparse.Namespace) -> int:
    try:
        target = _cli_path(args.path)
        if target is None:
            layout = workspace_mod.ensure_workspace(path=args.workspace)
            target = layout.path_for("config") / CONFIG_FILENAME
        written = write_template(target, overwrite=args.force)
    except (WorkspaceError, QuizzerConfigError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    print(f"Wrote quizzer config to {written}")
    return 0


def _cmd_topics(args: argparse.Namespace) -> int:
    try:
        result = _load(args)
    except (QuizzerConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    questions_dir = result.config.questions_dir
    topics = list_topics(questions_dir)
    if not topics:
        print(f"No question sets found in {questions_dir}.")
        return 1
    for topic in topics:
        print(f"- {topic}")
    return 0


def _cmd_start(
    args: argparse.Namespace,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    try:
        result = _load(args)
    except (QuizzerConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    config = result.config

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=result.layout.path_for("logs"),
        level=config.log_level,
        verbose=config.verbose,
    )
    logger.debug(
        "quizzer start invoked",
        extra={"topic": args.topic, "config_path": result.config_path},
    )

    try:
        pool = load_question_set(args.topic, config.questions_dir)
    except LoadError as exc:
        sys.stderr.write(
            "Could not load quiz data. Make sure the question set exists.\n"
            f"{exc}\n"
        )
        return 1
    except ValidationError as exc:
        logger.warning(
            "Question set rejected",
            extra={"topic": args.topic, "reason": exc.reason},
        )
        sys.stderr.write(f"{exc}\n")
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    engine = SessionEngine(
        retry_offset=config.retry_offset,
        rng=rng,
        logger=logger.getChild("engine"),
    )
    count = config.default_count or None

    if args.tui:
        app = QuizApp(
            pool,
            engine=engine,
            count=count,
            shuffle_options=config.shuffle_options,
            rng=rng,
        )
        app.run()
        return 0

    console = console or Console()
    outcome = run_quiz_session(
        pool,
        console,
        input_provider or (lambda: console.input("[bold cyan]> [/]")),
        count=count,
        engine=engine,
        shuffle_options=config.shuffle_options,
        rng=rng,
    )
    logger.info(
        "quizzer session closed",
        extra={
            "exit_action": outcome.exit_action,
            "rounds": len(outcome.summaries),
            "log_path": log_path,
        },
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "topics":
        return _cmd_topics(args)
    if args.command == "start":
        return _cmd_start(args)
    parser.print_help()  # pragma: no cover - argparse enforces commands
    return 2


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
