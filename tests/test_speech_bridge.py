import asyncio

import pytest

from fakes import FakeRecognitionEngine, FakeSynthesisEngine
from resq.core.speech_bridge import SpeechBridge, SpeechSynthesisError


class Collector:
    def __init__(self):
        self.partials = []
        self.errors = []

    def on_partial(self, text):
        self.partials.append(text)

    def on_error(self, reason):
        self.errors.append(reason)


# ============================================================================
# CAPABILITY PROBES
# ============================================================================

def test_support_probes(settings):
    bridge = SpeechBridge(FakeRecognitionEngine(available=False), FakeSynthesisEngine(), settings)

    assert bridge.is_recognition_supported() is False
    assert bridge.is_synthesis_supported() is True


def test_missing_engines_are_unsupported(settings):
    bridge = SpeechBridge(None, None, settings)

    assert not bridge.is_recognition_supported()
    assert not bridge.is_synthesis_supported()


# ============================================================================
# RECOGNITION
# ============================================================================

def test_partials_are_cumulative(bridge, recognition):
    out = Collector()
    bridge.start_listening(out.on_partial, out.on_error)

    recognition.emit(("I have", False))
    recognition.emit(("I have five", False))
    recognition.emit(("I have five years", True))
    recognition.emit(("I have five years", True), (" of Python", False), result_index=1)

    assert out.partials == [
        "I have",
        "I have five",
        "I have five years",
        "I have five years of Python",
    ]
    assert recognition.language == "en-US"


def test_engine_end_restarts_silently(bridge, recognition):
    out = Collector()
    bridge.start_listening(out.on_partial, out.on_error)

    recognition.emit(("first part.", True))
    recognition.end()
    recognition.emit((" second part", False))

    assert recognition.start_count == 2
    assert out.errors == []
    assert out.partials[-1] == "first part. second part"


def test_failed_restart_stops_and_reports(bridge, recognition):
    out = Collector()
    handle = bridge.start_listening(out.on_partial, out.on_error)
    recognition.fail_restart = True

    recognition.end()
    recognition.end()

    assert out.errors == ["Failed to restart speech recognition"]
    assert not handle.active
    assert recognition.stop_count == 1


def test_stop_is_idempotent_and_prevents_restart(bridge, recognition):
    out = Collector()
    handle = bridge.start_listening(out.on_partial, out.on_error)

    handle.stop()
    handle.stop()
    recognition.end()

    assert recognition.stop_count == 1
    assert recognition.start_count == 1
    assert not handle.active


def test_results_after_stop_are_ignored(bridge, recognition):
    out = Collector()
    handle = bridge.start_listening(out.on_partial, out.on_error)
    handle()

    recognition.emit(("late words", False))

    assert out.partials == []


def test_error_reported_once_and_stops(bridge, recognition):
    out = Collector()
    handle = bridge.start_listening(out.on_partial, out.on_error)

    recognition.fail("no-speech")
    recognition.fail("network")

    assert out.errors == ["no-speech"]
    assert not handle.active
    assert recognition.stop_count == 1


def test_start_failure_is_reported(settings):
    recognition = FakeRecognitionEngine(fail_start=True)
    bridge = SpeechBridge(recognition, None, settings)
    out = Collector()

    handle = bridge.start_listening(out.on_partial, out.on_error)

    assert out.errors == ["Failed to start speech recognition"]
    assert not handle.active


def test_unsupported_recognition_reports_and_returns_inert_handle(settings):
    recognition = FakeRecognitionEngine(available=False)
    bridge = SpeechBridge(recognition, None, settings)
    out = Collector()

    handle = bridge.start_listening(out.on_partial, out.on_error)
    handle.stop()

    assert out.errors == ["Speech recognition not supported"]
    assert recognition.start_count == 0


def test_new_stream_stops_previous(bridge, recognition):
    first, second = Collector(), Collector()
    first_handle = bridge.start_listening(first.on_partial, first.on_error)
    bridge.start_listening(second.on_partial, second.on_error)

    recognition.emit(("hello", False))

    assert not first_handle.active
    assert first.partials == []
    assert second.partials == ["hello"]


# ============================================================================
# SYNTHESIS
# ============================================================================

async def test_speak_uses_voice_policy(bridge, synthesis):
    await bridge.speak("Tell me about yourself.")

    assert synthesis.spoken == ["Tell me about yourself."]
    assert synthesis.voice == [(0.8, 1.0, 1.0)]


async def test_speak_raises_platform_error(settings):
    synthesis = FakeSynthesisEngine(error=RuntimeError("audio-busy"))
    bridge = SpeechBridge(None, synthesis, settings)

    with pytest.raises(SpeechSynthesisError, match="audio-busy"):
        await bridge.speak("Hello")


async def test_speak_unsupported_raises(settings):
    bridge = SpeechBridge(None, FakeSynthesisEngine(available=False), settings)

    with pytest.raises(SpeechSynthesisError):
        await bridge.speak("Hello")


async def test_cancel_resolves_pending_speak(settings):
    synthesis = FakeSynthesisEngine(block=True)
    bridge = SpeechBridge(None, synthesis, settings)

    pending = asyncio.create_task(bridge.speak("A long optimal answer"))
    await asyncio.sleep(0)
    assert bridge.is_speaking

    bridge.cancel_speech()
    bridge.cancel_speech()

    await asyncio.wait_for(pending, timeout=1)
    assert not bridge.is_speaking
    assert synthesis.cancel_count >= 1


async def test_new_utterance_cancels_previous(settings):
    synthesis = FakeSynthesisEngine(block=True)
    bridge = SpeechBridge(None, synthesis, settings)

    first = asyncio.create_task(bridge.speak("first"))
    await asyncio.sleep(0)
    second = asyncio.create_task(bridge.speak("second"))
    await asyncio.sleep(0)

    await asyncio.wait_for(first, timeout=1)
    assert not second.done()
    assert synthesis.spoken == ["first", "second"]

    bridge.cancel_speech()
    await asyncio.wait_for(second, timeout=1)


async def test_close_releases_everything(bridge, recognition):
    out = Collector()
    handle = bridge.start_listening(out.on_partial, out.on_error)

    await bridge.close()

    assert not handle.active
