import json
import random

import httpx
import pytest

from fakes import envelope, make_ai_client
from resq.core.answer_judge import (
    FALLBACK_FEEDBACK,
    OPTIMAL_ANSWER_UNAVAILABLE,
    AnswerJudge,
)
from resq.core.punctuator import TranscriptPunctuator


def offline(request):
    raise httpx.ReadTimeout("timed out", request=request)


# ============================================================================
# ANSWER VALIDATION
# ============================================================================

async def test_validate_answer_sends_question_and_answer(settings):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return envelope(result={"rating": 4, "feedback": "Clear and specific."})

    judge = AnswerJudge(make_ai_client(handler, settings))
    result = await judge.validate_answer("Why this role?", "Because I like building things.")

    assert seen["body"] == {
        "action": "validate_answer",
        "data": {"question": "Why this role?", "answer": "Because I like building things."},
    }
    assert result.rating == 4
    assert result.feedback == "Clear and specific."


@pytest.mark.parametrize("raw, expected", [(0, 1), (-3, 1), (9, 5), (4.6, 5), ("3", 3)])
async def test_validate_answer_clamps_rating(raw, expected, settings):
    handler = lambda request: envelope(result={"rating": raw, "feedback": "ok"})
    result = await AnswerJudge(make_ai_client(handler, settings)).validate_answer("Q", "A")

    assert result.rating == expected


@pytest.mark.parametrize(
    "response",
    [
        lambda request: envelope(result={"feedback": "missing rating"}),
        lambda request: envelope(result={"rating": "great", "feedback": "x"}),
        lambda request: envelope(result="4/5"),
        lambda request: envelope(result={"rating": float("inf"), "feedback": "x"}),
        lambda request: envelope(result={"rating": float("nan"), "feedback": "x"}),
        lambda request: httpx.Response(200, content=b'{"result": {"rating": 1e400, "feedback": "x"}}'),
        lambda request: envelope(error="bad request", status_code=400),
        offline,
    ],
)
async def test_validate_answer_failure_uses_fallback(response, settings):
    judge = AnswerJudge(make_ai_client(response, settings), rng=random.Random(7))
    result = await judge.validate_answer("Q", "A")

    assert result.rating in {2, 3, 4}
    assert result.feedback == FALLBACK_FEEDBACK


async def test_validate_answer_fallback_ratings_stay_in_range(settings):
    judge = AnswerJudge(make_ai_client(offline, settings), rng=random.Random(1))
    ratings = {(await judge.validate_answer("Q", "A")).rating for _ in range(50)}

    assert ratings <= {2, 3, 4}
    assert len(ratings) > 1


# ============================================================================
# OPTIMAL ANSWER
# ============================================================================

async def test_get_optimal_answer(settings):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return envelope(result={"answer": "Start with the situation, then the action."})

    judge = AnswerJudge(make_ai_client(handler, settings))
    answer = await judge.get_optimal_answer("Describe a conflict.")

    assert seen["body"] == {"action": "optimal_answer", "data": {"question": "Describe a conflict."}}
    assert answer == "Start with the situation, then the action."


@pytest.mark.parametrize(
    "response",
    [
        lambda request: envelope(result={"text": "wrong key"}),
        lambda request: envelope(result=["not", "an", "object"]),
        lambda request: envelope(error="overloaded", status_code=503),
        offline,
    ],
)
async def test_get_optimal_answer_failure_returns_sentinel(response, settings):
    judge = AnswerJudge(make_ai_client(response, settings))

    assert await judge.get_optimal_answer("Q") == OPTIMAL_ANSWER_UNAVAILABLE


# ============================================================================
# PUNCTUATION
# ============================================================================

async def test_punctuate_returns_remote_text(settings):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return envelope(result="I led the migration. It took three months.")

    punctuator = TranscriptPunctuator(make_ai_client(handler, settings))
    text = await punctuator.punctuate("i led the migration it took three months")

    assert seen["body"]["action"] == "add_punctuation"
    assert seen["body"]["data"] == {"text": "i led the migration it took three months"}
    assert text == "I led the migration. It took three months."


@pytest.mark.parametrize(
    "response",
    [
        lambda request: envelope(result={"text": "nope"}),
        lambda request: envelope(result="   "),
        lambda request: envelope(error="boom", status_code=500),
        offline,
    ],
)
async def test_punctuate_failure_passes_through(response, settings):
    punctuator = TranscriptPunctuator(make_ai_client(response, settings))

    assert await punctuator.punctuate("raw words here") == "raw words here"


async def test_punctuate_blank_input_is_not_sent(settings):
    calls = []

    def handler(request):
        calls.append(request)
        return envelope(result="unused")

    punctuator = TranscriptPunctuator(make_ai_client(handler, settings))

    assert await punctuator.punctuate("  ") == "  "
    assert calls == []
