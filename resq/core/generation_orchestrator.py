"""
Generation Orchestrator - drives resume upload → question generation.

States:
    IDLE → UPLOADING → GENERATING → (READY | FAILED)

The remote generator reports no progress of its own, so a ticker
advances a cosmetic percentage while the call is pending. On success the
questions are handed to the interview session machine.
"""

import asyncio
import logging

from resq.config.settings import Settings, get_settings
from resq.core.interview_session import InterviewSessionMachine, StateTransitionError
from resq.core.question_generator import QuestionGenerationError, QuestionGenerator
from resq.models.categories import InterviewCategory, parse_category
from resq.models.interview import (
    GenerationProgress,
    GenerationState,
    GenerationStatus,
    ResumeDocument,
)

logger = logging.getLogger(__name__)


class ResumeValidationError(ValueError):
    """Raised when an uploaded resume is not acceptable."""
    pass


class GenerationOrchestrator:
    """
    Coordinates one resume analysis run.

    A failed run is not an error screen: the caller sends the user back
    to category selection to try another category or file.
    """

    def __init__(
        self,
        question_generator: QuestionGenerator,
        session_machine: InterviewSessionMachine,
        settings: Settings | None = None,
    ):
        self.question_generator = question_generator
        self.session_machine = session_machine
        self.settings = settings or get_settings()

        self.state = GenerationState.IDLE
        self.category: InterviewCategory | None = None
        self.progress: GenerationProgress | None = None
        self.questions: list[str] = []
        self.error_message: str | None = None

        self._ticker: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self.state in (GenerationState.UPLOADING, GenerationState.GENERATING)

    @staticmethod
    def validate_resume(resume: ResumeDocument) -> None:
        """Only non-empty PDF resumes are accepted."""
        if not resume.is_pdf:
            raise ResumeValidationError("Please upload a PDF file")
        if not resume.data:
            raise ResumeValidationError("The uploaded file is empty")

    def status(self) -> GenerationStatus:
        status = GenerationStatus(
            state=self.state,
            category=self.category,
            question_count=len(self.questions),
            error_message=self.error_message,
        )
        if self.progress is not None:
            status.percent = self.progress.percent
            status.file_label = self.progress.file_label
            status.step_label = self.progress.step_label
        return status

    # =========================================================================
    # GENERATION FLOW
    # =========================================================================

    async def run(self, resume: ResumeDocument, category: InterviewCategory | str) -> bool:
        """
        Analyze a resume and load the resulting questions.

        Args:
            resume: Uploaded resume document
            category: Interview category

        Returns:
            True if questions were loaded (READY), False if FAILED

        Raises:
            ResumeValidationError: Resume rejected before any work starts
            StateTransitionError: A run is already in progress
        """
        if self.is_running:
            raise StateTransitionError(f"Generation already in progress: {self.state.value}")

        self.validate_resume(resume)
        resolved = parse_category(category)
        if resolved is None:
            raise ValueError(f"Unknown interview category: {category}")

        self.category = resolved
        self.questions = []
        self.error_message = None

        self._transition(GenerationState.UPLOADING)
        self.progress = GenerationProgress(percent=0, file_label=resume.filename)
        self._transition(GenerationState.GENERATING)
        self._ticker = asyncio.create_task(self._tick_progress())

        try:
            questions = await self.question_generator.generate(
                resume,
                resolved,
                use_fallback=self.settings.use_fallback_questions,
            )
            if not questions:
                raise QuestionGenerationError("No questions were generated")

            self.questions = list(questions)
            self.session_machine.load_questions(resolved, self.questions)

        except asyncio.CancelledError:
            self._fail("Generation cancelled")
            raise
        except Exception as e:
            logger.error(f"Question generation failed for {resume.filename}: {e}")
            self._fail(str(e))
            return False
        finally:
            self._stop_ticker()

        self.progress.percent = 100
        self._transition(GenerationState.READY)
        return True

    def reset(self) -> None:
        """Return to IDLE, discarding progress and questions."""
        self._stop_ticker()
        self.state = GenerationState.IDLE
        self.category = None
        self.progress = None
        self.questions = []
        self.error_message = None

    async def _tick_progress(self) -> None:
        interval = self.settings.progress_interval_seconds
        step = self.settings.progress_step
        cap = self.settings.progress_cap

        while True:
            await asyncio.sleep(interval)
            if self.progress is not None and self.progress.percent < cap:
                self.progress.percent = min(cap, self.progress.percent + step)

    def _stop_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None and not ticker.done():
            ticker.cancel()

    def _fail(self, message: str) -> None:
        self.questions = []
        self.progress = None
        self.error_message = message
        self._transition(GenerationState.FAILED)

    def _transition(self, new_state: GenerationState) -> None:
        old_state = self.state
        self.state = new_state
        logger.info(f"Generation: {old_state.value} → {new_state.value}")
