from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import Button, Input, Static

from ..engine import (
    AnswerOutcome,
    OptionFeedback,
    QuizSummary,
    SessionEngine,
    SessionPhase,
)
from ..errors import InvalidCountError
from ..pool import QuestionRecord
from ..session import display_options, parse_count
from ..text import normalize


def feedback_text(outcome: Optional[AnswerOutcome]) -> str:
    """One-line verdict shown under an answered question."""

    if outcome is None:
        return ""
    if outcome.correct:
        return "Correct ✅"
    return f"Incorrect ❌  Correct answer: {outcome.correct_answer}"


class QuizApp(App):
    CSS_PATH = None
    CSS = """
#stage { height: auto; padding: 1 2; }
#fillin { height: auto; }
#fillin Input { width: 1fr; }
#options Button { width: 100%; margin: 0 0 1 0; }
#options Button.correct { background: $success; color: black; }
#options Button.incorrect { background: $error; color: black; }
#feedback.correct { color: $success; }
#feedback.incorrect { color: $error; }
.wrong-item { margin: 0 0 1 0; }
"""
    BINDINGS = [
        ("ctrl+n", "next", "Next"),
        ("ctrl+r", "restart", "Restart"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        pool: Sequence[QuestionRecord],
        *,
        engine: Optional[SessionEngine] = None,
        count: Optional[int] = None,
        shuffle_options: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__()
        self._question_pool = list(pool)
        self._engine = engine or SessionEngine(rng=rng)
        self._shuffle_options = shuffle_options
        self._option_rng = rng
        self._shown_options: list[str] = []
        self._setup_error = ""
        self._stage_ready = False
        if count is not None:
            self.begin(str(count))

    @property
    def engine(self) -> SessionEngine:
        return self._engine

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield self._build_view()
        yield Static(self.status_text(), id="status")

    def on_mount(self) -> None:
        self._stage_ready = True

    # Pure helpers (usable without a running app) --------------------------

    def begin(self, count_text: str) -> bool:
        """Start a round with the count typed on the setup screen."""

        try:
            desired = parse_count(count_text, len(self._question_pool))
            self._engine.start(self._question_pool, desired)
        except InvalidCountError as exc:
            self._setup_error = str(exc)
            self._update_stage()
            return False
        self._setup_error = ""
        self._prepare_options()
        self._update_stage()
        return True

    def choose_option(self, option: str) -> Optional[AnswerOutcome]:
        outcome = self._engine.submit_multiple_choice(option)
        self._update_stage()
        return outcome

    def choose_position(self, position: int) -> Optional[AnswerOutcome]:
        """Select the option shown at 1-based ``position``."""

        if not 1 <= position <= len(self._shown_options):
            return None
        return self.choose_option(self._shown_options[position - 1])

    def submit_text(self, text: str) -> Optional[AnswerOutcome]:
        outcome = self._engine.submit_fill_blank(text)
        self._update_stage()
        return outcome

    def next_question(self) -> bool:
        """Advance past an answered question; ignored until one is answered."""

        if not self._engine.answered:
            return False
        self._engine.advance()
        self._prepare_options()
        self._update_stage()
        return True

    def restart(self) -> None:
        self._engine.reset()
        self._shown_options = []
        self._setup_error = ""
        self._update_stage()

    def status_text(self) -> str:
        if self._engine.phase is not SessionPhase.IN_PROGRESS:
            return f"Questions available: {len(self._question_pool)}"
        position, total = self._engine.progress()
        return f"Question {position} of {total} | Score: {self._engine.score}"

    def displayed_options(self) -> list[str]:
        return list(self._shown_options)

    # Actions and events --------------------------------------------------

    def action_next(self) -> None:
        self.next_question()

    def action_restart(self) -> None:
        self.restart()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("option-"):
            self.choose_position(int(bid.split("-", 1)[1]))
        elif bid == "start":
            self.begin(self._input_value("#count-input"))
        elif bid == "submit-fillin":
            self.submit_text(self._input_value("#fillin-input"))
        elif bid == "next":
            self.next_question()
        elif bid == "restart":
            self.restart()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "count-input":
            self.begin(event.value)
        elif event.input.id == "fillin-input":
            self.submit_text(event.value)

    # Rendering -----------------------------------------------------------

    def _prepare_options(self) -> None:
        if self._engine.phase is not SessionPhase.IN_PROGRESS:
            self._shown_options = []
            return
        record = self._engine.current_question()
        self._shown_options = display_options(
            record,
            shuffle_options=self._shuffle_options,
            rng=self._option_rng,
        )

    def _build_view(self) -> Widget:
        engine = self._engine
        if engine.phase is SessionPhase.SUMMARY:
            return SummaryView(engine.summary())
        if engine.phase is SessionPhase.IN_PROGRESS:
            record = engine.current_question()
            feedback = (
                engine.option_feedback(self._shown_options)
                if record.is_multiple_choice
                else []
            )
            return QuestionView(
                record,
                options=self._shown_options,
                feedback=feedback,
                outcome=engine.last_outcome,
                answered=engine.answered,
            )
        return SetupView(len(self._question_pool), error=self._setup_error)

    def _update_stage(self) -> None:
        if not self._stage_ready:
            return
        stage = self.query_one("#stage", Container)
        stage.remove_children()
        stage.mount(self._build_view())
        self.query_one("#status", Static).update(self.status_text())

    def _input_value(self, selector: str) -> str:
        if not self._stage_ready:
            return ""
        return self.query_one(selector, Input).value


class SetupView(Widget):
    """Asks how many questions the round should have."""

    DEFAULT_CSS = "SetupView { height: auto; }"

    def __init__(self, available: int, *, error: str = "") -> None:
        super().__init__()
        self.available = available
        self.error = error

    def compose(self) -> ComposeResult:
        yield Static(
            f"How many questions? (1-{self.available}, blank for all)",
            id="setup-prompt",
        )
        yield Input(placeholder=str(self.available), id="count-input")
        yield Button("Start", id="start", variant="primary")
        yield Static(self.error, id="setup-error", markup=False)


class QuestionView(Widget):
    """Renders one question, its answer controls and the verdict."""

    DEFAULT_CSS = "QuestionView { height: auto; }"

    def __init__(
        self,
        record: QuestionRecord,
        *,
        options: Sequence[str] = (),
        feedback: Sequence[OptionFeedback] = (),
        outcome: Optional[AnswerOutcome] = None,
        answered: bool = False,
    ) -> None:
        super().__init__()
        self.record = record
        self.options = list(options)
        self.feedback = list(feedback)
        self.outcome = outcome
        self.answered = answered

    def option_classes(self) -> list[str]:
        """CSS class per displayed option ("" when nothing to highlight)."""

        if not self.answered:
            return ["" for _ in self.options]
        by_option = {item.option: item.status for item in self.feedback}
        return [
            {"correct": "correct", "incorrect": "incorrect"}.get(
                by_option.get(option, "neutral"), ""
            )
            for option in self.options
        ]

    def reveal_text(self) -> str:
        """Raw and normalized texts for a missed fill-in-the-blank answer."""

        outcome = self.outcome
        if outcome is None or outcome.correct:
            return ""
        if self.record.is_multiple_choice:
            return ""
        return (
            f"Your answer: {outcome.user_answer or '—'} "
            f"(compared as '{normalize(outcome.user_answer)}')"
        )

    def compose(self) -> ComposeResult:
        yield Static(self.record.question, id="question-text", markup=False)
        if self.record.is_multiple_choice:
            with Vertical(id="options"):
                for idx, (option, css) in enumerate(
                    zip(self.options, self.option_classes()), start=1
                ):
                    btn = Button(
                        Text(f"{idx}) {option}"),
                        id=f"option-{idx}",
                        disabled=self.answered,
                    )
                    if css:
                        btn.add_class(css)
                    yield btn
        else:
            with Horizontal(id="fillin"):
                yield Input(
                    placeholder="Type your answer",
                    id="fillin-input",
                    disabled=self.answered,
                )
                yield Button(
                    "Submit", id="submit-fillin", disabled=self.answered
                )
        verdict = Static(
            feedback_text(self.outcome), id="feedback", markup=False
        )
        if self.outcome is not None:
            verdict.add_class(
                "correct" if self.outcome.correct else "incorrect"
            )
        yield verdict
        if self.reveal_text():
            yield Static(self.reveal_text(), id="reveal", markup=False)
        if self.answered:
            yield Button("Next", id="next", variant="primary")


class SummaryView(Widget):
    """Final score and the list of mistakes."""

    DEFAULT_CSS = "SummaryView { height: auto; }"

    def __init__(self, summary: QuizSummary) -> None:
        super().__init__()
        self.summary = summary

    def score_text(self) -> str:
        s = self.summary
        return f"Final Score: {s.score} / {s.total} ({s.percent}%)"

    def review_lines(self) -> list[str]:
        if self.summary.perfect:
            return ["Excellent! You answered every question correctly."]
        lines: list[str] = []
        for idx, wrong in enumerate(self.summary.wrong_log, start=1):
            lines.append(
                f"{idx}. {wrong.question}\n"
                f"   Your answer: {wrong.user_answer}\n"
                f"   Correct answer: {wrong.correct_answer}"
            )
        return lines

    def compose(self) -> ComposeResult:
        yield Static(self.score_text(), id="final-score")
        with Vertical(id="wrong-list"):
            for line in self.review_lines():
                yield Static(line, classes="wrong-item", markup=False)
        yield Button("Restart", id="restart", variant="primary")
