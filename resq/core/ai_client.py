"""
AI Function Client for ResQ

Shared transport for the remote AI function that backs:
- Resume analysis / question generation
- Answer validation
- Optimal answer generation
- Transcript punctuation

Every action is a POST to a single endpoint. Responses use an envelope of
the form {"result": ..., "error": ...}.
"""

import logging
from typing import Any

import httpx

from resq.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Raised when the AI function is unreachable or returns an unusable response."""
    pass


class AIFunctionClient:
    """
    Thin async client for the remote AI function.

    Raises AIServiceError for transport failures, non-2xx responses,
    error envelopes and bodies that are not JSON objects. Interpreting the
    `result` field is left to the callers, which own their fallbacks.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Application settings (defaults to the cached instance)
            client: Pre-built HTTP client, mainly for tests
        """
        self.settings = settings or get_settings()
        self.url = self.settings.ai_function_url

        headers = {}
        if self.settings.ai_function_token:
            headers["Authorization"] = f"Bearer {self.settings.ai_function_token}"

        self.client = client or httpx.AsyncClient(
            headers=headers,
            timeout=self.settings.ai_timeout_seconds,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    # =========================================================================
    # ACTIONS
    # =========================================================================

    async def call_action(self, action: str, data: dict[str, Any]) -> Any:
        """
        Invoke a JSON action.

        Args:
            action: Action name understood by the AI function
            data: Action payload

        Returns:
            The `result` field of the response envelope
        """
        return await self._post(action, json={"action": action, "data": data})

    async def upload(
        self,
        action: str,
        fields: dict[str, str],
        files: dict[str, tuple[str, bytes, str]],
    ) -> Any:
        """
        Invoke a multipart action (used for file uploads).

        Args:
            action: Action name understood by the AI function
            fields: Extra form fields
            files: Form files as (filename, content, content_type)

        Returns:
            The `result` field of the response envelope
        """
        form = {"action": action, **fields}
        return await self._post(action, data=form, files=files)

    async def _post(self, action: str, **kwargs: Any) -> Any:
        if not self.url:
            raise AIServiceError("AI function URL is not configured")

        try:
            response = await self.client.post(self.url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"AI function transport error ({action}): {e}")
            raise AIServiceError(f"Transport error calling {action}: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            message = payload.get("error") if isinstance(payload, dict) else None
            message = message or f"HTTP error! status: {response.status_code}"
            logger.error(f"AI function error ({action}): {message}")
            raise AIServiceError(f"Error calling {action}: {message}")

        if not isinstance(payload, dict):
            raise AIServiceError(f"Unexpected response format for {action}")

        if payload.get("error"):
            logger.error(f"AI function reported an error ({action}): {payload['error']}")
            raise AIServiceError(str(payload["error"]))

        logger.debug(f"AI function response for {action}: {payload}")
        return payload.get("result")
