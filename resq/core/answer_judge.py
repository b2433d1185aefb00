"""
Answer Judge for ResQ

Scores a candidate's answer and produces model answers through the remote
AI function. Judging never blocks a session: every failure is absorbed
and replaced with a fallback value.
"""

import logging
import math
import random
from typing import Any

from resq.core.ai_client import AIFunctionClient, AIServiceError
from resq.models.evaluation import ValidationResult

logger = logging.getLogger(__name__)

FALLBACK_FEEDBACK = "Unable to validate answer at this time."
OPTIMAL_ANSWER_UNAVAILABLE = "Unable to generate optimal answer at this time."


class AnswerJudge:
    """
    Remote answer evaluation.

    Fallbacks:
    - validate_answer: random rating in {2, 3, 4} with a generic message
    - get_optimal_answer: a fixed "unable to generate" sentinel
    """

    def __init__(self, ai_client: AIFunctionClient, rng: random.Random | None = None):
        self.ai_client = ai_client
        self._rng = rng or random.Random()

    async def validate_answer(self, question: str, answer: str) -> ValidationResult:
        """
        Rate an answer to a question on a 1-5 scale.

        Args:
            question: Question text
            answer: Candidate's answer text

        Returns:
            ValidationResult with rating clamped to 1-5
        """
        try:
            result = await self.ai_client.call_action(
                "validate_answer",
                {"question": question, "answer": answer},
            )
            return self._parse_validation(result)
        except AIServiceError as e:
            logger.error(f"Answer validation failed: {e}")
            return ValidationResult(
                rating=self._rng.randint(2, 4),
                feedback=FALLBACK_FEEDBACK,
            )

    async def get_optimal_answer(self, question: str) -> str:
        """Get a model answer for a question."""
        try:
            result = await self.ai_client.call_action("optimal_answer", {"question": question})
            if not isinstance(result, dict) or not isinstance(result.get("answer"), str):
                raise AIServiceError("Received unexpected response format for optimal answer.")
            return result["answer"]
        except AIServiceError as e:
            logger.error(f"Optimal answer failed: {e}")
            return OPTIMAL_ANSWER_UNAVAILABLE

    def _parse_validation(self, result: Any) -> ValidationResult:
        if not isinstance(result, dict) or "rating" not in result or "feedback" not in result:
            raise AIServiceError("Received unexpected response format for validation.")

        try:
            value = float(result["rating"])
        except (TypeError, ValueError) as e:
            raise AIServiceError(f"Invalid rating in validation response: {result['rating']!r}") from e
        if not math.isfinite(value):
            raise AIServiceError(f"Invalid rating in validation response: {result['rating']!r}")
        rating = round(value)

        return ValidationResult(
            rating=max(1, min(5, rating)),
            feedback=str(result["feedback"]),
        )
