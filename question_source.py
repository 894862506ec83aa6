"""
Question source for the Open Trivia DB.

fetch() asks the provider for one question from a random category and keeps
trying, a bounded number of times, until it gets one whose text is not in the
caller's list of already-asked questions.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import requests

from entities import decode

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

API_URL = "https://opentdb.com/api.php"

# Category ids are drawn from this inclusive range; the provider owns the
# numbering.
MIN_CATEGORY = 1
MAX_CATEGORY = 31

MAX_ATTEMPTS = 10
RETRY_DELAY = 1  # seconds
REQUEST_TIMEOUT = 10  # seconds

QUESTION_TYPES = ("boolean", "multiple")
DIFFICULTIES = ("easy", "medium", "hard")

# Wrong answers the provider sends per question type
INCORRECT_COUNTS = {"boolean": 1, "multiple": 3}

_REQUIRED_FIELDS = ("category", "type", "difficulty", "question", "correct_answer", "incorrect_answers")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TriviaError(Exception):
    """Base class for the errors this game reports to the user."""


class TransportError(TriviaError):
    """One attempt to get a question failed (network, HTTP status, bad payload)."""


class SourceExhausted(TriviaError):
    """No new question could be fetched within MAX_ATTEMPTS."""

    def __init__(self, last_error, attempts=MAX_ATTEMPTS):
        super().__init__(f"No new question after {attempts} attempts. Last error: {last_error}")
        self.last_error = last_error
        self.attempts = attempts


# ---------------------------------------------------------------------------
# Question
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Question:
    category: str
    type: str
    difficulty: str
    question: str
    correct_answer: str
    incorrect_answers: Tuple[str, ...]

    @classmethod
    def from_api(cls, data: dict) -> "Question":
        """Build a Question from one element of the provider's ``results`` array."""
        if not isinstance(data, dict):
            raise TransportError(f"Expected a question object, got {type(data).__name__}")
        missing = [f for f in _REQUIRED_FIELDS if f not in data]
        if missing:
            raise TransportError(f"Question is missing fields: {', '.join(missing)}")
        if data["type"] not in QUESTION_TYPES:
            raise TransportError(f"Unknown question type: {data['type']!r}")
        if data["difficulty"] not in DIFFICULTIES:
            raise TransportError(f"Unknown difficulty: {data['difficulty']!r}")
        incorrect = data["incorrect_answers"]
        expected = INCORRECT_COUNTS[data["type"]]
        if not isinstance(incorrect, list) or len(incorrect) != expected:
            raise TransportError(f"A {data['type']} question needs {expected} incorrect answers")
        return cls(
            category=str(data["category"]),
            type=data["type"],
            difficulty=str(data["difficulty"]),
            question=str(data["question"]),
            correct_answer=str(data["correct_answer"]),
            incorrect_answers=tuple(str(a) for a in incorrect),
        )

    @property
    def text(self) -> str:
        """The question text as it is displayed and stored."""
        return decode(self.question)


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def request_question(category: int, session: Optional[requests.Session] = None) -> Question:
    """Issue one request for one question in *category*. Raises TransportError."""
    http = session or requests
    try:
        resp = http.get(
            API_URL,
            params={"amount": 1, "category": category},
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as exc:
        raise TransportError(str(exc)) from exc
    except ValueError as exc:
        # requests' JSONDecodeError subclasses ValueError on every version
        raise TransportError(f"Response is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise TransportError("Response is not a JSON object")
    code = payload.get("response_code", 0)
    if code != 0:
        raise TransportError(f"Provider returned response_code {code} for category {category}")
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        raise TransportError(f"No results for category {category}")
    return Question.from_api(results[0])


def fetch(
    excluding: Iterable[str] = (),
    session: Optional[requests.Session] = None,
    rng=random,
    sleep=time.sleep,
) -> Question:
    """
    Return a question whose text is not in *excluding*.

    Every attempt picks a category uniformly from MIN_CATEGORY..MAX_CATEGORY.
    Transport failures and already-asked questions both count as failed
    attempts; after MAX_ATTEMPTS of them SourceExhausted is raised carrying
    the last error message.
    """
    seen = set(excluding)
    last_error = "no attempt made"

    for attempt in range(1, MAX_ATTEMPTS + 1):
        category = rng.randint(MIN_CATEGORY, MAX_CATEGORY)
        logger.debug("Attempt %d/%d: category %d", attempt, MAX_ATTEMPTS, category)
        try:
            question = request_question(category, session=session)
        except TransportError as exc:
            last_error = str(exc)
            logger.warning("Attempt %d/%d failed: %s", attempt, MAX_ATTEMPTS, last_error)
        else:
            if question.text not in seen:
                return question
            last_error = f"Question already asked: {question.text}"
            logger.info("Attempt %d/%d returned a repeat question", attempt, MAX_ATTEMPTS)

        if attempt < MAX_ATTEMPTS:
            sleep(RETRY_DELAY)

    raise SourceExhausted(last_error, MAX_ATTEMPTS)
