"""
Browser-backed speech engines for ResQ

In the web deployment the host platform's speech APIs live in the
browser. These engines relay recognition and synthesis over a speech
channel (a WebSocket in the API layer):

    server -> client: recognition_start, recognition_stop, speak, cancel_speech
    client -> server: capabilities, recognition_result, recognition_end,
                      recognition_error, speech_end, speech_error

When the TTS provider is edge-tts, utterances are rendered server-side
and shipped to the browser as base64 audio; otherwise the browser's own
voice reads the text.
"""

import asyncio
import base64
import logging
from typing import Any
from uuid import uuid4

import edge_tts

from resq.config.settings import Settings, get_settings
from resq.core.speech_bridge import (
    EndCallback,
    ErrorCallback,
    RecognitionSegment,
    ResultCallback,
    SpeechSynthesisError,
)

logger = logging.getLogger(__name__)


class SpeechChannel:
    """
    Message hub between the speech engines and one connected client.

    Outbound messages are queued; the transport drains `outbox`.
    Inbound messages are routed with dispatch().
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.connected = False

        self.recognition = ClientRecognitionEngine(self)
        self.synthesis = ClientSynthesisEngine(self, self.settings)

    def send(self, message: dict[str, Any]) -> None:
        self.outbox.put_nowait(message)

    def connect(self) -> None:
        self.connected = True
        logger.info("Speech channel connected")

    def disconnect(self) -> None:
        """Mark the client gone; in-flight speech work fails over."""
        self.connected = False
        self.recognition.disconnect()
        self.synthesis.disconnect()
        logger.info("Speech channel disconnected")

    def dispatch(self, message: dict[str, Any]) -> None:
        """Route an inbound client message to the matching engine."""
        message_type = message.get("type")

        if message_type == "capabilities":
            self.recognition.available = bool(message.get("recognition"))
            self.synthesis.available = bool(message.get("synthesis"))
            logger.info(
                f"Client speech capabilities: recognition={self.recognition.available}, "
                f"synthesis={self.synthesis.available}"
            )

        elif message_type == "recognition_result":
            segments = [
                RecognitionSegment(
                    transcript=str(result.get("transcript", "")),
                    is_final=bool(result.get("is_final")),
                )
                for result in message.get("results", [])
            ]
            self.recognition.handle_result(
                message.get("stream_id"),
                segments,
                int(message.get("result_index", 0)),
            )

        elif message_type == "recognition_end":
            self.recognition.handle_end(message.get("stream_id"))

        elif message_type == "recognition_error":
            self.recognition.handle_error(
                message.get("stream_id"),
                str(message.get("error", "unknown")),
            )

        elif message_type == "speech_end":
            self.synthesis.handle_end(message.get("utterance_id"))

        elif message_type == "speech_error":
            self.synthesis.handle_error(
                message.get("utterance_id"),
                str(message.get("error", "unknown")),
            )

        elif message_type == "ping":
            self.send({"type": "pong"})

        else:
            logger.warning(f"Ignoring unknown speech channel message: {message_type}")


class ClientRecognitionEngine:
    """Recognition engine driven by the browser's speech recognition."""

    def __init__(self, channel: SpeechChannel):
        self.channel = channel
        self.available = False

        self._stream_id: str | None = None
        self._on_result: ResultCallback | None = None
        self._on_error: ErrorCallback | None = None
        self._on_end: EndCallback | None = None

    @property
    def is_available(self) -> bool:
        return self.available and self.channel.connected

    def start(
        self,
        language: str,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        if not self.is_available:
            raise RuntimeError("Speech channel is not connected")

        self._stream_id = str(uuid4())
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

        self.channel.send({
            "type": "recognition_start",
            "stream_id": self._stream_id,
            "lang": language,
            "continuous": True,
            "interim_results": True,
            "max_alternatives": 1,
        })

    def stop(self) -> None:
        stream_id = self._detach()
        if stream_id is not None:
            self.channel.send({"type": "recognition_stop", "stream_id": stream_id})

    def disconnect(self) -> None:
        on_error = self._on_error
        self._detach()
        if on_error is not None:
            on_error("Speech channel closed")

    def handle_result(
        self,
        stream_id: str | None,
        segments: list[RecognitionSegment],
        result_index: int,
    ) -> None:
        if self._matches(stream_id) and self._on_result:
            self._on_result(segments, result_index)

    def handle_end(self, stream_id: str | None) -> None:
        if self._matches(stream_id) and self._on_end:
            on_end = self._on_end
            self._stream_id = None
            on_end()

    def handle_error(self, stream_id: str | None, reason: str) -> None:
        if self._matches(stream_id) and self._on_error:
            self._on_error(reason)

    def _matches(self, stream_id: str | None) -> bool:
        if self._stream_id is None:
            return False
        return stream_id is None or stream_id == self._stream_id

    def _detach(self) -> str | None:
        stream_id = self._stream_id
        self._stream_id = None
        self._on_result = None
        self._on_error = None
        self._on_end = None
        return stream_id


class ClientSynthesisEngine:
    """Synthesis engine that plays utterances in the browser."""

    # Map voice names to Edge TTS voices
    EDGE_VOICES = {
        "male": "en-US-GuyNeural",
        "female": "en-US-JennyNeural",
        "professional": "en-US-AriaNeural",
    }

    def __init__(self, channel: SpeechChannel, settings: Settings):
        self.channel = channel
        self.settings = settings
        self.available = False

        self._pending: dict[str, asyncio.Future] = {}

    @property
    def is_available(self) -> bool:
        return self.available and self.channel.connected

    async def speak(self, text: str, rate: float, pitch: float, volume: float) -> None:
        utterance_id = str(uuid4())
        message: dict[str, Any] = {
            "type": "speak",
            "utterance_id": utterance_id,
            "text": text,
            "rate": rate,
            "pitch": pitch,
            "volume": volume,
        }

        if self.settings.tts_provider.lower() == "edge-tts":
            audio = await self._render_edge_audio(text, rate, volume)
            if audio:
                message["audio_base64"] = base64.b64encode(audio).decode("utf-8")
                message["format"] = "mp3"

        future = asyncio.get_running_loop().create_future()
        self._pending[utterance_id] = future
        self.channel.send(message)

        try:
            await future
        finally:
            self._pending.pop(utterance_id, None)

    def cancel(self) -> None:
        if not self._pending:
            return
        self.channel.send({"type": "cancel_speech"})
        for future in list(self._pending.values()):
            if not future.done():
                future.cancel()

    def disconnect(self) -> None:
        for future in list(self._pending.values()):
            if not future.done():
                future.set_exception(SpeechSynthesisError("Speech channel closed"))

    def handle_end(self, utterance_id: str | None) -> None:
        future = self._pending.get(utterance_id or "")
        if future is not None and not future.done():
            future.set_result(None)

    def handle_error(self, utterance_id: str | None, reason: str) -> None:
        future = self._pending.get(utterance_id or "")
        if future is not None and not future.done():
            future.set_exception(SpeechSynthesisError(reason))

    async def _render_edge_audio(self, text: str, rate: float, volume: float) -> bytes:
        """Render speech with Edge TTS; empty bytes if unavailable."""
        voice = self.EDGE_VOICES.get(self.settings.tts_voice, self.settings.tts_voice)
        try:
            communicate = edge_tts.Communicate(
                text,
                voice,
                rate=f"{round((rate - 1) * 100):+d}%",
                volume=f"{round((volume - 1) * 100):+d}%",
            )

            audio_chunks = []
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_chunks.append(chunk["data"])

            return b"".join(audio_chunks)

        except Exception as e:
            logger.error(f"Edge TTS failed, falling back to client voice: {e}")
            return b""
