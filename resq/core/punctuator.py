"""
Transcript Punctuator for ResQ

Adds punctuation to raw speech-to-text transcripts. Purely cosmetic: on
any failure the transcript is returned unchanged.
"""

import logging

from resq.core.ai_client import AIFunctionClient, AIServiceError

logger = logging.getLogger(__name__)


class TranscriptPunctuator:
    """Remote punctuation with pass-through fallback."""

    def __init__(self, ai_client: AIFunctionClient):
        self.ai_client = ai_client

    async def punctuate(self, transcript: str) -> str:
        if not transcript.strip():
            return transcript

        try:
            result = await self.ai_client.call_action("add_punctuation", {"text": transcript})
        except AIServiceError as e:
            logger.error(f"Adding punctuation failed: {e}")
            return transcript

        if not isinstance(result, str) or not result.strip():
            logger.error(f"Unexpected response format for punctuation: {result!r}")
            return transcript

        return result
