"""Tests for fetching questions from the trivia provider."""

import unittest
from unittest.mock import MagicMock

import requests

import question_source
from question_source import (
    MAX_ATTEMPTS,
    Question,
    SourceExhausted,
    TransportError,
    fetch,
    request_question,
)


def api_question(text="What is the capital of France?", qtype="multiple", category="Geography"):
    return {
        "category": category,
        "type": qtype,
        "difficulty": "easy",
        "question": text,
        "correct_answer": "Paris",
        "incorrect_answers": ["Lyon", "Nice", "Lille"] if qtype == "multiple" else ["False"],
    }


def response(payload=None, status=200, json_error=None):
    resp = MagicMock()
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Server Error")
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


def ok(*questions):
    return response({"response_code": 0, "results": list(questions)})


class FixedRandom:
    """Stands in for the random module; records the category ids it hands out."""

    def __init__(self, value=9):
        self.value = value
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self.value


class QuestionFromApiTests(unittest.TestCase):

    def test_builds_immutable_question(self):
        q = Question.from_api(api_question(text="Is &quot;this&quot; true?", qtype="boolean"))
        self.assertEqual(q.type, "boolean")
        self.assertEqual(q.incorrect_answers, ("False",))
        self.assertEqual(q.text, 'Is "this" true?')
        with self.assertRaises(AttributeError):
            q.question = "changed"

    def test_unknown_type_is_transport_error(self):
        data = api_question()
        data["type"] = "open"
        with self.assertRaises(TransportError):
            Question.from_api(data)

    def test_wrong_number_of_incorrect_answers_is_transport_error(self):
        too_many = api_question()
        too_many["incorrect_answers"] = ["Lyon", "Nice", "Lille", "Metz"]
        boolean_with_three = api_question(qtype="boolean")
        boolean_with_three["incorrect_answers"] = ["False", "Maybe", "Never"]
        for data in (too_many, boolean_with_three):
            with self.assertRaises(TransportError, msg=repr(data)):
                Question.from_api(data)

    def test_unknown_difficulty_is_transport_error(self):
        data = api_question()
        data["difficulty"] = "impossible"
        with self.assertRaises(TransportError):
            Question.from_api(data)

    def test_oversized_answer_list_counts_as_failed_attempt(self):
        bad = api_question(text="Five options?")
        bad["incorrect_answers"] = ["Lyon", "Nice", "Lille", "Metz"]
        session = MagicMock()
        session.get.side_effect = [ok(bad), ok(api_question())]
        q = fetch(session=session, rng=FixedRandom(), sleep=MagicMock())
        self.assertEqual(q.text, "What is the capital of France?")
        self.assertEqual(len(q.incorrect_answers), 3)

    def test_missing_field_is_transport_error(self):
        data = api_question()
        del data["correct_answer"]
        with self.assertRaises(TransportError):
            Question.from_api(data)


class RequestQuestionTests(unittest.TestCase):

    def test_request_parameters(self):
        session = MagicMock()
        session.get.return_value = ok(api_question())
        q = request_question(12, session=session)
        self.assertEqual(q.correct_answer, "Paris")
        args, kwargs = session.get.call_args
        self.assertEqual(args[0], question_source.API_URL)
        self.assertEqual(kwargs["params"], {"amount": 1, "category": 12})
        self.assertEqual(kwargs["timeout"], question_source.REQUEST_TIMEOUT)

    def test_http_error(self):
        session = MagicMock()
        session.get.return_value = response(status=500)
        with self.assertRaisesRegex(TransportError, "500"):
            request_question(9, session=session)

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("network down")
        with self.assertRaisesRegex(TransportError, "network down"):
            request_question(9, session=session)

    def test_malformed_json(self):
        session = MagicMock()
        session.get.return_value = response(json_error=ValueError("Expecting value"))
        with self.assertRaises(TransportError):
            request_question(9, session=session)

    def test_non_zero_response_code(self):
        session = MagicMock()
        session.get.return_value = response({"response_code": 1, "results": []})
        with self.assertRaisesRegex(TransportError, "response_code 1"):
            request_question(9, session=session)

    def test_empty_results(self):
        session = MagicMock()
        session.get.return_value = response({"response_code": 0, "results": []})
        with self.assertRaises(TransportError):
            request_question(9, session=session)


class FetchTests(unittest.TestCase):

    def test_first_novel_question_returned(self):
        session = MagicMock()
        session.get.return_value = ok(api_question())
        sleep = MagicMock()
        rng = FixedRandom(17)
        q = fetch(excluding=["Something else"], session=session, rng=rng, sleep=sleep)
        self.assertEqual(q.text, "What is the capital of France?")
        self.assertEqual(rng.calls, [(1, 31)])
        self.assertEqual(session.get.call_args[1]["params"]["category"], 17)
        sleep.assert_not_called()

    def test_excluded_question_is_skipped(self):
        session = MagicMock()
        session.get.side_effect = [
            ok(api_question(text="Seen &quot;before&quot;?")),
            ok(api_question(text="Brand new?")),
        ]
        sleep = MagicMock()
        q = fetch(excluding={'Seen "before"?'}, session=session, rng=FixedRandom(), sleep=sleep)
        self.assertEqual(q.text, "Brand new?")
        sleep.assert_called_once_with(question_source.RETRY_DELAY)

    def test_transport_errors_are_retried(self):
        session = MagicMock()
        session.get.side_effect = [
            requests.Timeout("timed out"),
            response(status=503),
            ok(api_question()),
        ]
        sleep = MagicMock()
        q = fetch(session=session, rng=FixedRandom(), sleep=sleep)
        self.assertEqual(q.correct_answer, "Paris")
        self.assertEqual(sleep.call_count, 2)

    def test_exhausted_after_budget_with_last_error(self):
        session = MagicMock()
        session.get.side_effect = [requests.ConnectionError(f"failure {i}") for i in range(MAX_ATTEMPTS)]
        sleep = MagicMock()
        with self.assertRaises(SourceExhausted) as ctx:
            fetch(session=session, rng=FixedRandom(), sleep=sleep)
        self.assertEqual(session.get.call_count, MAX_ATTEMPTS)
        self.assertIn(f"failure {MAX_ATTEMPTS - 1}", ctx.exception.last_error)
        # no delay after the final attempt
        self.assertEqual(sleep.call_count, MAX_ATTEMPTS - 1)

    def test_never_returns_excluded_question(self):
        session = MagicMock()
        session.get.side_effect = lambda *a, **kw: ok(api_question(text="Always the same"))
        with self.assertRaises(SourceExhausted) as ctx:
            fetch(excluding=["Always the same"], session=session, rng=FixedRandom(), sleep=MagicMock())
        self.assertIn("already asked", ctx.exception.last_error)


if __name__ == "__main__":
    unittest.main()
