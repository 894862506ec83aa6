#!/usr/bin/env python3
"""
Trivia - Textual TUI
====================
Same round as trivia.py (one question, stats update, accuracy report) in a
full-screen terminal UI: press 1-4 (or T/F) or click to answer.

Run:
    pip install textual
    python trivia_gui.py
"""

from __future__ import annotations

import logging
import random
import sys

try:
    from textual import on, work
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Container, Horizontal, ScrollableContainer, Vertical
    from textual.logging import TextualHandler
    from textual.screen import Screen
    from textual.widgets import Button, Footer, Header, Rule, Static
except ImportError:
    print("Textual not installed. Run:  pip install textual")
    sys.exit(1)

from rich.markup import escape

import report
import stats_store
from entities import decode
from question_source import Question, SourceExhausted, fetch
from stats_store import CorruptStats, StatsDocument
from trivia import DIFFICULTY_STARS, OPTION_LABELS, build_options, is_correct, log_level

logger = logging.getLogger(__name__)


def answer_options(question: Question, rng=random) -> list:
    """Options in button order; True/False keep their natural order."""
    if question.type == "boolean":
        return ["True", "False"]
    return build_options(question, rng)


def option_labels(question: Question, options: list) -> list:
    """Button captions, e.g. '1.  A)  Paris' or '1.  T)  True'."""
    if question.type == "boolean":
        letters = [o[0] for o in options]
    else:
        letters = list(OPTION_LABELS)
    return [f"{i + 1}.  {letters[i]})  {text}" for i, text in enumerate(options)]


# ── Round Screen ──────────────────────────────────────────────────────────────


class RoundScreen(Screen):
    """Fetch one question, take one answer, save the result."""

    BINDINGS = [
        Binding("1", "pick(0)", "A", show=True),
        Binding("2", "pick(1)", "B", show=True),
        Binding("3", "pick(2)", "C", show=True),
        Binding("4", "pick(3)", "D", show=True),
        Binding("t", "pick_bool('True')", "True", show=False),
        Binding("f", "pick_bool('False')", "False", show=False),
        Binding("enter", "show_report", "Report", show=False),
        Binding("escape", "quit_round", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.doc: StatsDocument = None
        self.question: Question = None
        self.options: list = []
        self.answered = False

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container(id="round-layout"):
            yield Static(id="round-header", classes="section-title")
            yield Rule()
            with ScrollableContainer(id="round-area"):
                yield Static(id="round-question", classes="question-text")
                with Vertical(id="round-options"):
                    for i in range(len(OPTION_LABELS)):
                        yield Button("", id=f"opt-{i + 1}", classes="opt")
                yield Static(id="round-feedback", classes="feedback-text")
            yield Rule()
            with Horizontal(id="round-nav"):
                yield Button("Report →  [Enter]", id="btn-report", variant="success")
                yield Button("Quit  [Esc]", id="btn-quit", variant="warning")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#btn-report", Button).display = False
        for btn in self.query(".opt").results(Button):
            btn.display = False
        self.query_one("#round-question", Static).update("[dim]Fetching a question…[/dim]")
        self._fetch_question()

    @work(thread=True, exclusive=True)
    def _fetch_question(self) -> None:
        path = self.app.stats_path
        try:
            doc = stats_store.load(path)
            question = fetch(excluding=doc.questions)
        except (CorruptStats, SourceExhausted) as exc:
            logger.warning("Round aborted: %s", exc)
            self.app.call_from_thread(self._show_error, exc)
            return
        self.app.call_from_thread(self._show_question, doc, question)

    def _show_error(self, exc: Exception) -> None:
        self.app.failed = True
        if isinstance(exc, SourceExhausted):
            text = (f"[bold red]Could not get a new trivia question.[/bold red]\n"
                    f"[yellow]Last error: {escape(exc.last_error)}[/yellow]")
        else:
            text = (f"[bold red]{escape(str(exc))}[/bold red]\n"
                    f"[yellow]Fix or move the file aside; it has not been changed.[/yellow]")
        self.query_one("#round-question", Static).update(text)

    def _show_question(self, doc: StatsDocument, question: Question) -> None:
        self.doc = doc
        self.question = question
        self.options = answer_options(question)
        self.answered = False

        stars = DIFFICULTY_STARS.get(question.difficulty, "★")
        self.query_one("#round-header", Static).update(
            f"[bold]{escape(decode(question.category))}[/bold]  [yellow]{stars}[/yellow]"
        )
        self.query_one("#round-question", Static).update(
            f"[bold cyan]{escape(question.text)}[/bold cyan]"
        )
        self.query_one("#round-feedback", Static).update("")

        labels = option_labels(question, self.options)
        for i in range(len(OPTION_LABELS)):
            btn = self.query_one(f"#opt-{i + 1}", Button)
            if i < len(labels):
                btn.label = escape(labels[i])
                btn.variant = "default"
                btn.display = True
            else:
                btn.display = False

    def _pick(self, idx: int) -> None:
        if self.question is None or self.answered or idx >= len(self.options):
            return
        self.answered = True

        chosen = self.options[idx]
        correct = is_correct(self.question, chosen)
        for i, text in enumerate(self.options):
            btn = self.query_one(f"#opt-{i + 1}", Button)
            if is_correct(self.question, text):
                btn.variant = "success"
            elif i == idx:
                btn.variant = "error"

        stats_store.record_answer(self.doc, self.question.category, correct)
        stats_store.record_asked_question(self.doc, self.question.question)
        stats_store.save(self.doc, self.app.stats_path)

        if correct:
            feedback = "[bold green]✔  Correct![/bold green]"
        else:
            feedback = (f"[bold red]✘  Wrong.[/bold red]  "
                        f"Correct: [green]{escape(decode(self.question.correct_answer))}[/green]")
        self.query_one("#round-feedback", Static).update(feedback)
        self.query_one("#btn-report", Button).display = True

    # ── Keyboard actions ──────────────────────────────────────────────────────

    def action_pick(self, idx: int) -> None:
        self._pick(idx)

    def action_pick_bool(self, value: str) -> None:
        if self.question is not None and self.question.type == "boolean":
            self._pick(self.options.index(value))

    def action_show_report(self) -> None:
        if self.answered:
            self.app.push_screen(ReportScreen(self.doc))

    def action_quit_round(self) -> None:
        self.app.exit(return_code=1 if self.app.failed else 0)

    # ── Button handlers ───────────────────────────────────────────────────────

    @on(Button.Pressed)
    def handle_button(self, event: Button.Pressed) -> None:
        bid = event.button.id
        if bid and bid.startswith("opt-"):
            self._pick(int(bid.split("-")[-1]) - 1)
        elif bid == "btn-report":
            self.action_show_report()
        elif bid == "btn-quit":
            self.action_quit_round()


# ── Report Screen ─────────────────────────────────────────────────────────────


class ReportScreen(Screen):
    """Accuracy bars for every answered category."""

    BINDINGS = [
        Binding("escape", "quit_app", "Quit"),
        Binding("q", "quit_app", "Quit", show=False),
    ]

    def __init__(self, doc: StatsDocument) -> None:
        super().__init__()
        self.doc = doc

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with ScrollableContainer(id="report-scroll"):
            yield Static(report.render(self.doc), id="report-content", markup=False)
        with Horizontal(id="report-nav"):
            yield Button("Quit  [Esc]", id="btn-quit", variant="warning")
        yield Footer()

    def action_quit_app(self) -> None:
        self.app.exit()

    @on(Button.Pressed, "#btn-quit")
    def on_quit(self) -> None:
        self.app.exit()


# ── App ───────────────────────────────────────────────────────────────────────


class TriviaApp(App):
    TITLE = "Trivia"
    SUB_TITLE = "One question at a time"

    CSS = """
    Screen { background: $surface; }

    #round-layout { padding: 1 2; height: 1fr; }
    .section-title { color: $text-muted; }

    .question-text { padding: 1 0; min-height: 5; }
    .feedback-text { padding: 1 0; }

    #round-area {
        height: 1fr;
        border: solid $primary-darken-2;
        padding: 1 2;
        margin-bottom: 1;
    }
    .opt {
        width: 100%;
        margin: 0 0 1 0;
    }
    #round-options { margin-top: 1; }

    #round-nav, #report-nav {
        height: 3;
        align: right middle;
        padding: 0 1;
    }
    #report-scroll { padding: 1 2; height: 1fr; }

    Button { margin: 0 1 0 0; }
    Rule   { margin: 1 0; }
    """

    def __init__(self, stats_path: str = None) -> None:
        super().__init__()
        self.stats_path = stats_path or stats_store.stats_path()
        self.failed = False

    def on_mount(self) -> None:
        self.push_screen(RoundScreen())


def main() -> None:
    # stderr belongs to the TUI; send records to the Textual devtools console
    logging.basicConfig(level=log_level(logging.INFO), handlers=[TextualHandler()])
    app = TriviaApp()
    app.run()
    sys.exit(app.return_code or 0)


if __name__ == "__main__":
    main()
