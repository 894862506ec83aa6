#!/usr/bin/env python3
"""
Trivia - one-question-per-run CLI game
======================================
Fetches a single question from the Open Trivia DB, asks it, records the
result in a per-user stats file next to this script and prints accuracy
bars for every category answered so far.

Usage:
    python trivia.py
"""

import argparse
import io
import logging
import os
import random
import sys

from entities import decode
from question_source import Question, SourceExhausted, fetch
import report
import stats_store
from stats_store import CorruptStats

# Fix Windows console encoding for accented answers and typographic quotes
if sys.platform == "win32":
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    else:
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OPTION_LABELS = "ABCD"

BOOLEAN_ANSWERS = {"T": "True", "F": "False"}

DIFFICULTY_STARS = {
    "easy": "★",
    "medium": "★★",
    "hard": "★★★",
}

# ANSI color codes
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
BOLD = "\033[1m"
RESET = "\033[0m"


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def use_colors(stream=None):
    """Return True if ANSI colors should be written to *stream*."""
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def paint(text, color, enabled=True):
    return f"{color}{text}{RESET}" if enabled else text


def get_input(reader, prompt=""):
    """Read one line from *reader*; end of input reads as an empty answer."""
    try:
        return reader(prompt)
    except EOFError:
        return ""


def build_options(question: Question, rng=random):
    """Decoded answer options for a multiple-choice question, shuffled."""
    options = [decode(a) for a in question.incorrect_answers]
    options.append(decode(question.correct_answer))
    rng.shuffle(options)
    return options


def resolve_answer(question: Question, raw, options=None):
    """Map the typed letter to answer text, or None if it names no option."""
    key = (raw or "").strip().upper()
    if question.type == "boolean":
        return BOOLEAN_ANSWERS.get(key)
    if len(key) == 1 and key in OPTION_LABELS[: len(options or ())]:
        return options[OPTION_LABELS.index(key)]
    return None


def is_correct(question: Question, answer) -> bool:
    if answer is None:
        return False
    return decode(answer) == decode(question.correct_answer)


# ---------------------------------------------------------------------------
# Interaction
# ---------------------------------------------------------------------------


def ask(question: Question, reader=None, writer=print, rng=random, colors=False) -> bool:
    """Show *question*, read one answer and return True if it was correct."""
    reader = reader or input
    stars = DIFFICULTY_STARS.get(question.difficulty, "★")
    writer("")
    writer(f"  {paint(decode(question.category), BOLD, colors)} {paint(stars, YELLOW, colors)}")
    writer(f"  {paint(question.text, CYAN, colors)}")
    writer("")

    options = None
    if question.type == "boolean":
        raw = get_input(reader, f"  {paint('True or False? [T/F]: ', BOLD, colors)}")
    else:
        options = build_options(question, rng)
        for label, option in zip(OPTION_LABELS, options):
            writer(f"    {paint(label + ')', BOLD, colors)} {option}")
        writer("")
        raw = get_input(reader, f"  {paint('Your answer [A-D]: ', BOLD, colors)}")

    answer = resolve_answer(question, raw, options)
    correct = is_correct(question, answer)

    writer("")
    if correct:
        writer(f"  {paint(chr(0x2714) + ' Correct!', GREEN, colors)}")
    else:
        writer(f"  {paint(chr(0x2718) + ' Incorrect', RED, colors)}"
               f" -- the answer was {paint(decode(question.correct_answer), GREEN, colors)}")
    writer("")
    return correct


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def play(path, reader=None, writer=print, session=None, rng=random, colors=False):
    """
    Run one full round against the stats file at *path*.

    Raises CorruptStats or SourceExhausted before anything is written, and
    OSError if the stats file cannot be saved.
    """
    doc = stats_store.load(path)
    question = fetch(excluding=set(doc.questions), session=session, rng=rng)
    correct = ask(question, reader=reader, writer=writer, rng=rng, colors=colors)

    stats_store.record_answer(doc, question.category, correct)
    stats_store.record_asked_question(doc, question.question)
    stats_store.save(doc, path)

    writer(report.render(doc, colors=colors))
    return correct


def log_level(default=logging.WARNING):
    """Level named by TRIVIA_LOG_LEVEL, or *default* if unset or unknown."""
    name = os.environ.get("TRIVIA_LOG_LEVEL", "").upper()
    level = getattr(logging, name, None) if name else None
    return level if isinstance(level, int) else default


def configure_logging():
    logging.basicConfig(
        level=log_level(),
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Answer one trivia question and see your accuracy per category.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Stats are kept in trivia_<username>.json next to this script.
Set TRIVIA_LOG_LEVEL=DEBUG to see network retries.
        """,
    )
    parser.parse_args(argv)
    configure_logging()

    colors = use_colors()
    path = stats_store.stats_path()

    try:
        play(path, colors=colors)
    except SourceExhausted as exc:
        print(paint("Error: could not get a new trivia question.", RED, colors))
        print(paint(f"Last error: {exc.last_error}", YELLOW, colors))
        sys.exit(1)
    except CorruptStats as exc:
        print(paint(f"Error: {exc}", RED, colors))
        print(paint("Fix or move the file aside; it has not been changed.", YELLOW, colors))
        sys.exit(1)
    except OSError as exc:
        print(paint(f"Error: could not save stats to {path}: {exc}", RED, colors))
        sys.exit(1)
    except KeyboardInterrupt:
        print(f"\n{paint('Goodbye!', CYAN, colors)}\n")
        sys.exit(130)


if __name__ == "__main__":
    main()
