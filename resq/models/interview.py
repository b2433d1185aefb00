"""
Interview session and state models for ResQ
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from resq.models.categories import InterviewCategory
from resq.models.evaluation import Feedback


class InterviewPhase(str, Enum):
    """Interview session state machine phases."""

    AWAITING_QUESTIONS = "awaiting_questions"  # No question set loaded
    PRESENTING_QUESTION = "presenting_question"  # Question shown, no answer captured yet
    RECORDING = "recording"  # Capturing a spoken answer
    REVIEWING = "reviewing"  # Answer captured; verify / optimal answer / next
    COMPLETE = "complete"  # Past the last question, final score available


class GenerationState(str, Enum):
    """Resume analysis / question generation states."""

    IDLE = "idle"
    UPLOADING = "uploading"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class ResumeDocument(BaseModel):
    """An uploaded resume file."""

    filename: str
    content_type: str = "application/pdf"
    data: bytes = Field(repr=False)

    @property
    def is_pdf(self) -> bool:
        return self.content_type == "application/pdf" or self.filename.lower().endswith(".pdf")


class Session(BaseModel):
    """One run through an ordered question list."""

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    category: InterviewCategory
    questions: tuple[str, ...]
    current_index: int = 0
    ratings: list[int] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    @field_validator("questions")
    @classmethod
    def _require_questions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("A session needs at least one question")
        return value

    @property
    def current_question(self) -> str:
        return self.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index >= len(self.questions) - 1


class QuestionState(BaseModel):
    """Mutable state for the question at the current index."""

    answer_text: str = ""
    recording_active: bool = False
    processing_answer: bool = False
    results_revealed: bool = False
    feedback: Feedback | None = None
    optimal_answer_text: str | None = None
    speaking_active: bool = False
    recording_error_text: str | None = None


class GenerationProgress(BaseModel):
    """Cosmetic progress shown while questions are generated."""

    percent: int = Field(default=0, ge=0, le=100)
    file_label: str = ""

    @property
    def step_label(self) -> str:
        """Analysis stage matching the current percentage."""
        if self.percent < 25:
            return "Reading resume content..."
        if self.percent < 50:
            return "Extracting skills and experience..."
        if self.percent < 75:
            return "Analyzing career profile..."
        if self.percent < 100:
            return "Generating interview questions..."
        return "Analysis complete!"


class GenerationStatus(BaseModel):
    """Serializable view of the generation orchestrator."""

    state: GenerationState
    category: InterviewCategory | None = None
    percent: int | None = None
    file_label: str | None = None
    step_label: str | None = None
    question_count: int = 0
    error_message: str | None = None


class SessionSnapshot(BaseModel):
    """Serializable view of the interview session machine."""

    phase: InterviewPhase
    category: InterviewCategory | None = None
    question_number: int | None = None
    total_questions: int = 0
    question_text: str | None = None
    is_last_question: bool = False
    ratings: list[int] = Field(default_factory=list)
    final_score: float | None = None
    quit_requested: bool = False
    recognition_supported: bool = False
    synthesis_supported: bool = False
    question_state: QuestionState = Field(default_factory=QuestionState)
