import pytest

from fakes import AI_URL, FakeJudge, FakePunctuator, FakeRecognitionEngine, FakeSynthesisEngine
from resq.config.settings import Settings
from resq.core.interview_session import InterviewSessionMachine
from resq.core.speech_bridge import SpeechBridge


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ai_function_url=AI_URL,
        progress_interval_seconds=0.01,
    )


@pytest.fixture
def recognition():
    return FakeRecognitionEngine()


@pytest.fixture
def synthesis():
    return FakeSynthesisEngine()


@pytest.fixture
def bridge(recognition, synthesis, settings):
    return SpeechBridge(recognition, synthesis, settings)


@pytest.fixture
def judge():
    return FakeJudge()


@pytest.fixture
def punctuator():
    return FakePunctuator()


@pytest.fixture
def machine(bridge, judge, punctuator):
    return InterviewSessionMachine(bridge, judge, punctuator)
