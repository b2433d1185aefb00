"""
Data models and schemas for ResQ

Contains Pydantic models for:
- Interview categories and fallback question sets
- Interview sessions and per-question state
- Question generation progress
- Answer evaluation results
"""

from resq.models.categories import (
    InterviewCategory,
    get_fallback_questions,
    parse_category,
)
from resq.models.interview import (
    Session,
    QuestionState,
    InterviewPhase,
    GenerationState,
    GenerationProgress,
    GenerationStatus,
    ResumeDocument,
    SessionSnapshot,
)
from resq.models.evaluation import ValidationResult, Feedback

__all__ = [
    # Categories
    "InterviewCategory",
    "get_fallback_questions",
    "parse_category",
    # Interview
    "Session",
    "QuestionState",
    "InterviewPhase",
    "GenerationState",
    "GenerationProgress",
    "GenerationStatus",
    "ResumeDocument",
    "SessionSnapshot",
    # Evaluation
    "ValidationResult",
    "Feedback",
]
