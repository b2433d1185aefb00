import httpx
import pytest

from fakes import envelope, make_ai_client
from resq.core.question_generator import QuestionGenerationError, QuestionGenerator
from resq.models.categories import FALLBACK_QUESTIONS, InterviewCategory, get_fallback_questions
from resq.models.interview import ResumeDocument

RESUME = ResumeDocument(filename="jane_doe.pdf", data=b"%PDF-1.4 resume")


def generator_for(handler, settings):
    return QuestionGenerator(make_ai_client(handler, settings))


def failing(request):
    raise httpx.ConnectError("offline", request=request)


@pytest.mark.parametrize("category", list(InterviewCategory))
async def test_failure_returns_category_fallback(category, settings):
    questions = await generator_for(failing, settings).generate(RESUME, category)

    assert questions == FALLBACK_QUESTIONS[category]
    assert 0 < len(questions) <= 15
    assert all(isinstance(q, str) and q for q in questions)


async def test_unknown_category_falls_back_to_hr(settings):
    questions = await generator_for(failing, settings).generate(RESUME, "marketing")

    assert questions == FALLBACK_QUESTIONS[InterviewCategory.HR]


@pytest.mark.parametrize(
    "result",
    [
        None,
        [],
        "Tell me about yourself.",
        {"questions": ["Q1"]},
        ["Q1", ""],
        ["Q1", 42],
    ],
)
async def test_malformed_payload_triggers_fallback(result, settings):
    handler = lambda request: envelope(result=result) if result is not None else envelope()
    questions = await generator_for(handler, settings).generate(RESUME, "testcase")

    assert questions == get_fallback_questions("testcase")


async def test_non_2xx_triggers_fallback(settings):
    handler = lambda request: envelope(error="could not read PDF", status_code=500)
    questions = await generator_for(handler, settings).generate(RESUME, InterviewCategory.TECHNICAL)

    assert questions == get_fallback_questions(InterviewCategory.TECHNICAL)


async def test_short_list_is_used_as_returned(settings):
    handler = lambda request: envelope(result=["Explain REST.", "What is a deadlock?"])
    questions = await generator_for(handler, settings).generate(RESUME, "technical")

    assert questions == ["Explain REST.", "What is a deadlock?"]


async def test_long_list_is_truncated_in_order(settings):
    returned = [f"Question {i}?" for i in range(1, 21)]
    handler = lambda request: envelope(result=returned)
    questions = await generator_for(handler, settings).generate(RESUME, "hr")

    assert questions == returned[:15]


async def test_category_is_sent_as_interview_type(settings):
    seen = {}

    def handler(request):
        seen["body"] = request.content
        return envelope(result=["Q1"])

    await generator_for(handler, settings).generate(RESUME, InterviewCategory.TESTCASE)

    assert b'name="interviewType"' in seen["body"]
    assert b"testcase" in seen["body"]
    assert b'filename="jane_doe.pdf"' in seen["body"]


async def test_strict_mode_raises(settings):
    with pytest.raises(QuestionGenerationError):
        await generator_for(failing, settings).generate(RESUME, "hr", use_fallback=False)


def test_fallback_lists_are_copies():
    questions = get_fallback_questions("hr")
    questions.clear()

    assert len(get_fallback_questions("hr")) == 15
