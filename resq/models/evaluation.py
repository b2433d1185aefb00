"""
Evaluation models for ResQ

Structures returned by the answer judge and shown after verification.
"""

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Judge verdict for a single answer."""

    rating: int = Field(..., ge=1, le=5, description="Answer rating on a 1-5 scale")
    feedback: str = Field(default="", description="Short written feedback")


class Feedback(BaseModel):
    """Feedback displayed for the current question after verification."""

    rating: int = Field(..., ge=1, le=5)
    comment: str = ""
