"""
Question Generator for ResQ

Turns an uploaded resume and an interview category into an ordered list
of interview questions using the remote AI function. Falls back to a
fixed, category-specific question set whenever the remote call fails.
"""

import logging
from typing import Any

from resq.core.ai_client import AIFunctionClient, AIServiceError
from resq.models.categories import MAX_QUESTIONS, InterviewCategory, get_fallback_questions
from resq.models.interview import ResumeDocument

logger = logging.getLogger(__name__)


class QuestionGenerationError(Exception):
    """Raised when questions cannot be generated and fallback is disabled."""
    pass


class QuestionGenerator:
    """
    Resume-to-questions client.

    Policy: questions are used as returned (at most MAX_QUESTIONS, in
    order). Only a failed call or a malformed/empty payload triggers the
    fallback set.
    """

    ACTION = "analyze_resume"

    def __init__(self, ai_client: AIFunctionClient, max_questions: int = MAX_QUESTIONS):
        self.ai_client = ai_client
        self.max_questions = min(max_questions, MAX_QUESTIONS)

    async def generate(
        self,
        resume: ResumeDocument,
        category: str | InterviewCategory,
        use_fallback: bool = True,
    ) -> list[str]:
        """
        Generate interview questions for a resume.

        Args:
            resume: Uploaded resume document
            category: Interview category tag
            use_fallback: Return the category's fixed set instead of raising

        Returns:
            Ordered list of question strings

        Raises:
            QuestionGenerationError: Only when use_fallback is False
        """
        tag = category.value if isinstance(category, InterviewCategory) else str(category)
        logger.info(f"Generating questions for {resume.filename} ({tag})")

        try:
            result = await self.ai_client.upload(
                self.ACTION,
                fields={"interviewType": tag},
                files={"resumeFile": (resume.filename, resume.data, resume.content_type)},
            )
            questions = self._parse_questions(result)
        except (AIServiceError, QuestionGenerationError) as e:
            if not use_fallback:
                raise QuestionGenerationError(str(e)) from e
            logger.warning(f"Question generation failed, using fallback set for '{tag}': {e}")
            return get_fallback_questions(category)

        logger.info(f"Generated {len(questions)} questions")
        return questions

    def _parse_questions(self, result: Any) -> list[str]:
        """Validate the payload as a non-empty list of non-empty strings."""
        if not isinstance(result, list) or not result:
            raise QuestionGenerationError("Received unexpected response format for questions.")

        questions = []
        for item in result:
            if not isinstance(item, str) or not item.strip():
                raise QuestionGenerationError("Received malformed question entry.")
            questions.append(item.strip())

        return questions[:self.max_questions]
