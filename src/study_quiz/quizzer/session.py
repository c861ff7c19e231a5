"""Rich-powered quiz session loop.

The loop renders whatever the :class:`SessionEngine` exposes and feeds user
input back to it. Input arrives through a plain callable so tests (and the
CLI) can script a whole session; the engine never reads input itself.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .engine import AnswerOutcome, QuizSummary, SessionEngine
from .errors import InvalidCountError
from .pool import QuestionRecord
from .shuffle import shuffle
from .text import normalize

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit"]

QUIT_COMMANDS = frozenset({":q", ":quit", ":exit"})

_STATUS_STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "neutral": "",
}
_STATUS_MARKERS = {"correct": "✓ ", "incorrect": "✗ "}


class _SessionQuit(Exception):
    """Raised inside the loop when the learner asks to stop."""


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from :func:`run_quiz_session`."""

    summaries: tuple[QuizSummary, ...]
    exit_action: ExitAction

    @property
    def summary(self) -> QuizSummary | None:
        """The summary of the last completed round, if any."""

        return self.summaries[-1] if self.summaries else None


def parse_count(raw: str | None, available: int) -> int:
    """Parse a question count typed by the learner.

    Blank input means "all of them". Anything that is not an integer in
    ``[1, available]`` raises :class:`InvalidCountError`.
    """

    text = (raw or "").strip()
    if not text:
        return available
    try:
        value = int(text)
    except ValueError as exc:
        raise InvalidCountError(text, available) from exc
    if not 1 <= value <= available:
        raise InvalidCountError(value, available)
    return value


def parse_choice(raw: str | None, options: Sequence[str]) -> str | None:
    """Map input to an option: a 1-based number or the exact option text."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if text.isdigit():
        position = int(text)
        if 1 <= position <= len(options):
            return options[position - 1]
        return None
    return text if text in options else None


def display_options(
    record: QuestionRecord,
    *,
    shuffle_options: bool = True,
    rng: random.Random | None = None,
) -> list[str]:
    options = list(record.options)
    if shuffle_options:
        shuffle(options, rng)
    return options


def run_quiz_session(
    pool: Sequence[QuestionRecord],
    console: Console,
    input_provider: InputProvider,
    *,
    count: int | None = None,
    engine: SessionEngine | None = None,
    shuffle_options: bool = True,
    rng: random.Random | None = None,
    allow_restart: bool = True,
) -> QuizSessionResult:
    """Run rounds of the quiz until the learner stops.

    ``count`` skips the count prompt for the first round. After each round
    the learner may start another one over the same pool; quitting mid-round
    resets the engine and discards that round.
    """

    engine = engine or SessionEngine(rng=rng)
    summaries: list[QuizSummary] = []
    requested = count

    try:
        while True:
            _start_round(engine, pool, console, input_provider, requested)
            while not engine.is_finished:
                _play_question(
                    engine,
                    console,
                    input_provider,
                    shuffle_options=shuffle_options,
                    rng=rng,
                )
            summary = engine.summary()
            summaries.append(summary)
            render_summary(console, summary)
            if not allow_restart or not _ask_restart(console, input_provider):
                break
            engine.reset()
            requested = None
    except _SessionQuit:
        console.print("\n[bold yellow]Ending session.[/]")
        engine.reset()
        return QuizSessionResult(tuple(summaries), "quit")
    except (EOFError, KeyboardInterrupt):
        console.print("\n[bold yellow]Session interrupted.[/]")
        engine.reset()
        return QuizSessionResult(tuple(summaries), "quit")

    return QuizSessionResult(tuple(summaries), "finished")


def _read(input_provider: InputProvider) -> str:
    raw = input_provider()
    if raw.strip().lower() in QUIT_COMMANDS:
        raise _SessionQuit()
    return raw


def _start_round(
    engine: SessionEngine,
    pool: Sequence[QuestionRecord],
    console: Console,
    input_provider: InputProvider,
    requested: int | None,
) -> None:
    available = len(pool)
    while True:
        if requested is None:
            console.print(
                Text(
                    f"How many questions? (1-{available}, Enter for all)",
                    style="bold",
                )
            )
            try:
                desired = parse_count(_read(input_provider), available)
            except InvalidCountError as exc:
                console.print(Text(str(exc), style="red"))
                continue
        else:
            desired = requested
        try:
            engine.start(pool, desired)
            return
        except InvalidCountError as exc:
            console.print(Text(str(exc), style="red"))
            requested = None


def _play_question(
    engine: SessionEngine,
    console: Console,
    input_provider: InputProvider,
    *,
    shuffle_options: bool,
    rng: random.Random | None,
) -> None:
    record = engine.current_question()
    if record.is_multiple_choice:
        options = display_options(
            record, shuffle_options=shuffle_options, rng=rng
        )
        render_question(console, engine, record, options)
        outcome = _answer_multiple_choice(
            engine, console, input_provider, options
        )
        render_feedback(console, engine, record, outcome, options)
    else:
        render_question(console, engine, record, [])
        console.print(Text("Type your answer and press Enter.", style="dim"))
        outcome = engine.submit_fill_blank(_read(input_provider))
        render_feedback(console, engine, record, outcome, [])

    console.print(Text("Press Enter to continue (:q to quit).", style="dim"))
    _read(input_provider)
    engine.advance()


def _answer_multiple_choice(
    engine: SessionEngine,
    console: Console,
    input_provider: InputProvider,
    options: Sequence[str],
) -> AnswerOutcome | None:
    while True:
        raw = _read(input_provider)
        if not options:
            return engine.submit_multiple_choice(raw.strip())
        selected = parse_choice(raw, options)
        if selected is not None:
            return engine.submit_multiple_choice(selected)
        console.print(
            Text(
                f"'{raw.strip()}' is not a valid choice. "
                f"Enter 1-{len(options)}.",
                style="red",
            )
        )


def render_question(
    console: Console,
    engine: SessionEngine,
    record: QuestionRecord,
    options: Sequence[str],
) -> None:
    position, total = engine.progress()
    header = Text.assemble(
        (f"Question {position}", "bold cyan"),
        (f" of {total}", "dim"),
        ("  |  ", "dim"),
        (f"Score: {engine.score}", "bold"),
    )
    console.print()
    console.rule(header)
    console.print(Text(record.question, style="bold"))

    if not record.is_multiple_choice:
        return
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="right", style="cyan")
    table.add_column("Option")
    for idx, option in enumerate(options, start=1):
        table.add_row(str(idx), Text(option))
    console.print(table)


def render_feedback(
    console: Console,
    engine: SessionEngine,
    record: QuestionRecord,
    outcome: AnswerOutcome | None,
    options: Sequence[str],
) -> None:
    if outcome is None:
        return
    if outcome.correct:
        console.print(Text("Correct ✅", style="bold green"))
    else:
        console.print(Text("Incorrect ❌", style="bold red"))

    if record.is_multiple_choice:
        table = Table(show_header=False, box=box.SIMPLE, expand=True)
        table.add_column("Key", justify="right", style="cyan")
        table.add_column("Option")
        for idx, item in enumerate(
            engine.option_feedback(options), start=1
        ):
            marker = _STATUS_MARKERS.get(item.status, "  ")
            table.add_row(
                str(idx),
                Text(marker + item.option, style=_STATUS_STYLES[item.status]),
            )
        console.print(table)
    elif not outcome.correct:
        console.print(
            Text.assemble("Your answer: ", outcome.user_answer or "—")
        )
        console.print(
            Text(
                f"Compared as: '{normalize(outcome.user_answer)}' vs "
                f"'{normalize(outcome.correct_answer)}'",
                style="dim",
            )
        )
        console.print(
            Text.assemble(
                "Correct answer: ", (outcome.correct_answer, "bold")
            )
        )

    if outcome.retry_position is not None:
        console.print(
            Text("This question will come back later.", style="yellow")
        )


def render_summary(console: Console, summary: QuizSummary) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))
    console.print(
        Text(
            f"Final Score: {summary.score} / {summary.total} "
            f"({summary.percent}%)",
            style="bold",
        )
    )

    if summary.perfect:
        console.print(
            Panel(
                "Excellent! You answered every question correctly.",
                border_style="green",
            )
        )
        return

    table = Table(title="Review", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Your answer", style="red")
    table.add_column("Correct answer", style="green")
    for idx, wrong in enumerate(summary.wrong_log, start=1):
        table.add_row(
            str(idx),
            Text(wrong.question or f"Question {idx}"),
            Text(wrong.user_answer or "—"),
            Text(wrong.correct_answer or "—"),
        )
    console.print(table)


def _ask_restart(console: Console, input_provider: InputProvider) -> bool:
    console.print(Text("Take another round? [y/N]", style="bold"))
    answer = _read(input_provider).strip().lower()
    return answer in {"y", "yes"}
