"""
Persistent per-user trivia statistics.

One JSON document per (script, user) holds correct/incorrect counters for
every category answered so far and the texts of every question already
asked:

    {
      "Version": 1,
      "Categories": {"Science and Nature": {"Correct": 3, "Incorrect": 1}},
      "Questions": ["What is the chemical symbol for gold?"]
    }

The document is read in full, changed in memory and rewritten in full with an
atomic replace, so a crash mid-write never leaves a truncated file behind.
"""

import getpass
import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from entities import decode, sanitize_category

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Seeds the asked-questions list of a brand-new document; dropped as soon as
# a real question is recorded.
SENTINEL_QUESTION = "Does 5 + 4 = 10 ?"

DEFAULT_SCRIPT = "trivia"
DEFAULT_DIR = os.path.dirname(os.path.abspath(__file__))

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class CorruptStats(Exception):
    """The stats file exists but cannot be read or does not match the schema."""

    def __init__(self, path, reason):
        super().__init__(f"Stats file {path} is unreadable: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class StatsDocument:
    categories: Dict[str, Dict[str, int]] = field(default_factory=dict)
    questions: List[str] = field(default_factory=list)
    version: int = SCHEMA_VERSION

    @classmethod
    def fresh(cls) -> "StatsDocument":
        return cls(questions=[SENTINEL_QUESTION])

    @classmethod
    def from_dict(cls, data, path="<memory>") -> "StatsDocument":
        """Validate a parsed document, filling in fields older versions lack."""
        if not isinstance(data, dict):
            raise CorruptStats(path, "top level is not a JSON object")

        categories = data.get("Categories", {})
        if not isinstance(categories, dict):
            raise CorruptStats(path, "'Categories' is not an object")
        parsed = {}
        for name, counts in categories.items():
            if not isinstance(counts, dict):
                raise CorruptStats(path, f"counters for {name!r} are not an object")
            entry = {}
            for key in ("Correct", "Incorrect"):
                value = counts.get(key, 0)
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise CorruptStats(path, f"{name!r}.{key} is not a non-negative integer")
                entry[key] = value
            parsed[name] = entry

        # Documents written before the asked-questions list existed
        questions = data.get("Questions", [])
        if not isinstance(questions, list) or not all(isinstance(q, str) for q in questions):
            raise CorruptStats(path, "'Questions' is not a list of strings")

        version = data.get("Version", 0)
        if isinstance(version, bool) or not isinstance(version, int):
            raise CorruptStats(path, "'Version' is not an integer")
        if version > SCHEMA_VERSION:
            raise CorruptStats(path, f"schema version {version} is newer than {SCHEMA_VERSION}")
        if version < SCHEMA_VERSION:
            logger.debug("Upgrading %s from schema %d to %d", path, version, SCHEMA_VERSION)

        return cls(categories=parsed, questions=list(questions), version=SCHEMA_VERSION)

    def to_dict(self) -> dict:
        return {
            "Version": self.version,
            "Categories": {
                name: {"Correct": c["Correct"], "Incorrect": c["Incorrect"]}
                for name, c in self.categories.items()
            },
            "Questions": list(self.questions),
        }

    def total(self, category: Optional[str] = None) -> Tuple[int, int]:
        """(correct, incorrect) for one category, or summed over all of them."""
        if category is not None:
            entry = self.categories.get(category, {})
            return entry.get("Correct", 0), entry.get("Incorrect", 0)
        correct = sum(c["Correct"] for c in self.categories.values())
        incorrect = sum(c["Incorrect"] for c in self.categories.values())
        return correct, incorrect


# ---------------------------------------------------------------------------
# File location
# ---------------------------------------------------------------------------


def stats_path(script=DEFAULT_SCRIPT, user=None, directory=None):
    """Path of the stats file for *script* and the invoking (or given) user."""
    if user is None:
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = "player"
    safe_user = _UNSAFE_FILENAME_CHARS.sub("_", user) or "player"
    return os.path.join(directory or DEFAULT_DIR, f"{script}_{safe_user}.json")


# ---------------------------------------------------------------------------
# Load / Save
# ---------------------------------------------------------------------------


def load(path) -> StatsDocument:
    """Load the stats document at *path*, or return a fresh one if it is absent."""
    if not os.path.isfile(path):
        logger.debug("No stats file at %s, starting fresh", path)
        return StatsDocument.fresh()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise CorruptStats(path, f"invalid JSON ({exc})") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise CorruptStats(path, str(exc)) from exc
    return StatsDocument.from_dict(data, path)


def save(doc: StatsDocument, path) -> None:
    """Write *doc* to *path*; the old file stays intact unless the write completes."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".stats-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(doc.to_dict(), f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    logger.debug("Saved stats to %s", path)


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


def record_answer(doc: StatsDocument, category: str, correct: bool) -> StatsDocument:
    """Count one correct or incorrect answer against the sanitized *category*."""
    key = sanitize_category(category)
    entry = doc.categories.setdefault(key, {"Correct": 0, "Incorrect": 0})
    if correct:
        entry["Correct"] += 1
    else:
        entry["Incorrect"] += 1
    return doc


def record_asked_question(doc: StatsDocument, question_text: str) -> StatsDocument:
    """Remember *question_text* so it is not asked again, and drop the seed entry."""
    text = decode(question_text)
    if text not in doc.questions:
        doc.questions.append(text)
    doc.questions[:] = [q for q in doc.questions if q != SENTINEL_QUESTION]
    return doc
