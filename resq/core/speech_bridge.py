"""
Speech Bridge for ResQ

Wraps the host platform's speech capabilities:
- Speech-to-text: continuous recognition with interim and final results
- Text-to-speech: single-utterance playback with cancel

The engines themselves are pluggable (see speech_engines.py for the
browser-backed implementation). The bridge enforces at most one active
recognition stream and at most one active utterance.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol, Sequence

from resq.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class SpeechSynthesisError(Exception):
    """Raised when an utterance cannot be played."""
    pass


@dataclass
class RecognitionSegment:
    """One recognition result as delivered by the engine."""
    transcript: str
    is_final: bool = False


ResultCallback = Callable[[Sequence[RecognitionSegment], int], None]
ErrorCallback = Callable[[str], None]
EndCallback = Callable[[], None]


class RecognitionEngine(Protocol):
    """Platform speech-to-text engine."""

    @property
    def is_available(self) -> bool: ...

    def start(
        self,
        language: str,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        """
        Begin a continuous recognition stream.

        on_result receives every result of the stream so far plus the
        index of the first result that changed.
        """
        ...

    def stop(self) -> None: ...


class SynthesisEngine(Protocol):
    """Platform text-to-speech engine."""

    @property
    def is_available(self) -> bool: ...

    def speak(self, text: str, rate: float, pitch: float, volume: float) -> Awaitable[None]:
        """Play one utterance; completes when playback ends."""
        ...

    def cancel(self) -> None: ...


class ListeningHandle:
    """
    Subscription to one logical recognition session.

    The engine may end its stream on its own (silence, platform limits);
    while the handle is active the stream is restarted silently. Only
    stop() ends recognition for good.
    """

    def __init__(
        self,
        engine: RecognitionEngine | None,
        language: str,
        on_partial: Callable[[str], None],
        on_error: Callable[[str], None],
    ):
        self._engine = engine
        self._language = language
        self._on_partial = on_partial
        self._on_error = on_error

        self._active = False
        self._error_reported = False
        self._final_transcript = ""

    @property
    def active(self) -> bool:
        return self._active

    def __call__(self) -> None:
        self.stop()

    def stop(self) -> None:
        """Stop recognition. Safe to call any number of times."""
        if not self._active:
            return
        self._active = False
        try:
            self._engine.stop()
        except Exception as e:
            logger.error(f"Error stopping recognition: {e}")

    def _open(self) -> None:
        self._active = True
        try:
            self._start_stream()
        except Exception as e:
            logger.error(f"Failed to start speech recognition: {e}")
            self._handle_error("Failed to start speech recognition")

    def _start_stream(self) -> None:
        self._engine.start(
            self._language,
            on_result=self._handle_result,
            on_error=self._handle_error,
            on_end=self._handle_end,
        )

    def _handle_result(self, segments: Sequence[RecognitionSegment], result_index: int) -> None:
        if not self._active:
            return

        interim = ""
        for segment in segments[result_index:]:
            if segment.is_final:
                self._final_transcript += segment.transcript
            else:
                interim += segment.transcript

        self._on_partial(self._final_transcript + interim)

    def _handle_error(self, reason: str) -> None:
        if not self._active or self._error_reported:
            return
        self._error_reported = True
        logger.error(f"Speech recognition error: {reason}")
        self.stop()
        self._on_error(reason)

    def _handle_end(self) -> None:
        if not self._active:
            return
        try:
            self._start_stream()
        except Exception as e:
            logger.error(f"Failed to restart recognition: {e}")
            self._handle_error("Failed to restart speech recognition")


class SpeechBridge:
    """
    Central speech component.

    STT: continuous recognition through a RecognitionEngine
    TTS: one utterance at a time through a SynthesisEngine
    """

    def __init__(
        self,
        recognition_engine: RecognitionEngine | None = None,
        synthesis_engine: SynthesisEngine | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.recognition_engine = recognition_engine
        self.synthesis_engine = synthesis_engine

        self._listening: ListeningHandle | None = None
        self._utterance: asyncio.Future | None = None

    async def close(self):
        """Release any active recognition stream or utterance."""
        self.stop_listening()
        self.cancel_speech()

    # =========================================================================
    # CAPABILITY PROBES
    # =========================================================================

    def is_recognition_supported(self) -> bool:
        return self.recognition_engine is not None and self.recognition_engine.is_available

    def is_synthesis_supported(self) -> bool:
        return self.synthesis_engine is not None and self.synthesis_engine.is_available

    # =========================================================================
    # SPEECH-TO-TEXT
    # =========================================================================

    def start_listening(
        self,
        on_partial: Callable[[str], None],
        on_error: Callable[[str], None],
    ) -> ListeningHandle:
        """
        Begin continuous recognition.

        Args:
            on_partial: Receives the cumulative transcript (final segments
                followed by the current interim segment) on every result
            on_error: Receives the engine's error reason, at most once

        Returns:
            Handle whose stop() ends recognition
        """
        self.stop_listening()

        handle = ListeningHandle(
            self.recognition_engine,
            self.settings.speech_language,
            on_partial,
            on_error,
        )

        if not self.is_recognition_supported():
            on_error("Speech recognition not supported")
            return handle

        self._listening = handle
        handle._open()
        return handle

    def stop_listening(self) -> None:
        handle, self._listening = self._listening, None
        if handle is not None:
            handle.stop()

    # =========================================================================
    # TEXT-TO-SPEECH
    # =========================================================================

    @property
    def is_speaking(self) -> bool:
        return self._utterance is not None and not self._utterance.done()

    async def speak(self, text: str) -> None:
        """
        Speak text, replacing any utterance in flight.

        Returns when playback ends or is cancelled through cancel_speech().

        Raises:
            SpeechSynthesisError: Synthesis unsupported or playback failed
        """
        if not self.is_synthesis_supported():
            raise SpeechSynthesisError("Speech synthesis not supported")

        self.cancel_speech()

        utterance = asyncio.ensure_future(
            self.synthesis_engine.speak(
                text,
                rate=self.settings.speech_rate,
                pitch=self.settings.speech_pitch,
                volume=self.settings.speech_volume,
            )
        )
        self._utterance = utterance

        try:
            await asyncio.wait({utterance})
        except asyncio.CancelledError:
            if self._utterance is utterance:
                self.cancel_speech()
            raise
        finally:
            if self._utterance is utterance:
                self._utterance = None

        if utterance.cancelled():
            return

        error = utterance.exception()
        if isinstance(error, SpeechSynthesisError):
            raise error
        if error is not None:
            raise SpeechSynthesisError(str(error)) from error

    def cancel_speech(self) -> None:
        """Stop any utterance in flight. Safe to call any number of times."""
        utterance, self._utterance = self._utterance, None
        if utterance is not None and not utterance.done():
            utterance.cancel()
        if self.is_synthesis_supported():
            self.synthesis_engine.cancel()
