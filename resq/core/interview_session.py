"""
Interview Session Machine - State machine for one practice interview.

Owns the Session (question list, index, ratings) and the state of the
question currently on screen, and coordinates the speech bridge, the
transcript punctuator and the answer judge through each question cycle:

    speak question -> record answer -> punctuate -> verify / optimal answer -> advance
"""

import asyncio
import logging
import math
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Sequence

from resq.core.answer_judge import AnswerJudge
from resq.core.punctuator import TranscriptPunctuator
from resq.core.speech_bridge import ListeningHandle, SpeechBridge, SpeechSynthesisError
from resq.models.categories import InterviewCategory, parse_category
from resq.models.evaluation import Feedback
from resq.models.interview import InterviewPhase, QuestionState, Session, SessionSnapshot

logger = logging.getLogger(__name__)

RECOGNITION_UNSUPPORTED_MESSAGE = "Speech recognition not supported in this browser"


class StateTransitionError(Exception):
    """Raised when an operation is not allowed in the current phase."""
    pass


def compute_final_score(ratings: Sequence[int]) -> float:
    """
    Final score on a 0-10 scale.

    Average of the 1-5 ratings, doubled and rounded half-up to one
    decimal place. No ratings scores 0.
    """
    if not ratings:
        return 0.0
    average = sum(ratings) / len(ratings)
    return math.floor(average * 2 * 10 + 0.5) / 10


class InterviewSessionMachine:
    """
    Manages one interview session using a state machine pattern.

    Phases:
        AWAITING_QUESTIONS → PRESENTING_QUESTION → (RECORDING) → REVIEWING
                                     ↑                              ↓
                                     └──────── advance ─────────────┤
                                                                COMPLETE

    The phase is derived from the session and question state rather than
    stored. Results of awaited calls are dropped when the question changed
    while they were pending.
    """

    def __init__(
        self,
        speech_bridge: SpeechBridge,
        answer_judge: AnswerJudge,
        punctuator: TranscriptPunctuator,
    ):
        """
        Initialize the machine with its collaborators.

        Args:
            speech_bridge: Speech recognition / synthesis
            answer_judge: Remote answer scoring and model answers
            punctuator: Remote transcript punctuation
        """
        self.speech = speech_bridge
        self.answer_judge = answer_judge
        self.punctuator = punctuator

        self.session: Session | None = None
        self.question_state = QuestionState()
        self.quit_requested = False

        self._complete = False
        self._epoch = 0  # Bumped whenever the question on screen changes
        self._narration = 0  # Bumped for every optimal-answer narration
        self._listening: ListeningHandle | None = None
        self._verify_lock = asyncio.Lock()

        # Event callbacks
        self._change_listeners: list[Callable[[SessionSnapshot], None]] = []
        self._finish_callbacks: list[Callable[[float], Awaitable[None]]] = []
        self._quit_callbacks: list[Callable[[], Awaitable[None]]] = []

    # =========================================================================
    # OBSERVATION
    # =========================================================================

    @property
    def phase(self) -> InterviewPhase:
        if self.session is None:
            return InterviewPhase.AWAITING_QUESTIONS
        if self._complete:
            return InterviewPhase.COMPLETE
        if self.question_state.recording_active:
            return InterviewPhase.RECORDING
        if self.question_state.results_revealed:
            return InterviewPhase.REVIEWING
        return InterviewPhase.PRESENTING_QUESTION

    @property
    def ratings(self) -> list[int]:
        return list(self.session.ratings) if self.session else []

    @property
    def final_score(self) -> float | None:
        if self.session is None or not self._complete:
            return None
        return compute_final_score(self.session.ratings)

    def snapshot(self) -> SessionSnapshot:
        """Serializable view of the machine."""
        session = self.session
        snapshot = SessionSnapshot(
            phase=self.phase,
            quit_requested=self.quit_requested,
            recognition_supported=self.speech.is_recognition_supported(),
            synthesis_supported=self.speech.is_synthesis_supported(),
            question_state=self.question_state.model_copy(),
        )
        if session is not None:
            snapshot.category = session.category
            snapshot.question_number = session.current_index + 1
            snapshot.total_questions = len(session.questions)
            snapshot.question_text = session.current_question
            snapshot.is_last_question = session.is_last_question
            snapshot.ratings = list(session.ratings)
            snapshot.final_score = self.final_score
        return snapshot

    def add_listener(self, listener: Callable[[SessionSnapshot], None]) -> None:
        """Register a callback invoked with a snapshot after every change."""
        self._change_listeners.append(listener)

    def on_finish(self, callback: Callable[[float], Awaitable[None]]) -> None:
        self._finish_callbacks.append(callback)

    def on_quit(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._quit_callbacks.append(callback)

    # =========================================================================
    # SESSION DATA
    # =========================================================================

    def load_questions(
        self,
        category: InterviewCategory | str,
        questions: Iterable[str],
    ) -> Session:
        """
        Replace the question set and start a fresh session.

        Raises:
            ValueError: Empty question list or unknown category
        """
        resolved = parse_category(category)
        if resolved is None:
            raise ValueError(f"Unknown interview category: {category}")

        question_list = tuple(questions)
        if not question_list:
            raise ValueError("Cannot start a session without questions")

        self._stop_listening()
        self.speech.cancel_speech()

        self.session = Session(category=resolved, questions=question_list)
        self._complete = False
        self.quit_requested = False
        self._reset_question_state()

        logger.info(
            f"Loaded {len(question_list)} {resolved.value} questions "
            f"into session {self.session.session_id}"
        )
        self._notify()
        return self.session

    def change_category(self, category: InterviewCategory | str) -> None:
        """Switch category; the session restarts from the first question."""
        resolved = parse_category(category)
        if resolved is None:
            raise ValueError(f"Unknown interview category: {category}")
        if self.session is None or self.session.category == resolved:
            return

        self._stop_listening()
        self.speech.cancel_speech()

        self.session.category = resolved
        self.session.current_index = 0
        self._complete = False
        self._reset_question_state()

        logger.info(f"Session {self.session.session_id}: category changed to {resolved.value}")
        self._notify()

    # =========================================================================
    # ANSWER CAPTURE
    # =========================================================================

    def start_recording(self) -> bool:
        """
        Start capturing a spoken answer.

        Returns:
            False if speech recognition is unsupported (an inline error
            message is set instead)
        """
        phase = self.phase
        if phase not in (InterviewPhase.PRESENTING_QUESTION, InterviewPhase.RECORDING):
            raise StateTransitionError(f"Cannot start recording in phase: {phase.value}")
        if self.question_state.processing_answer:
            raise StateTransitionError("Cannot start recording while the answer is being processed")

        state = self.question_state
        if not self.speech.is_recognition_supported():
            state.recording_error_text = RECOGNITION_UNSUPPORTED_MESSAGE
            self._notify()
            return False

        self._stop_listening()

        state.recording_active = True
        state.recording_error_text = None
        state.answer_text = ""

        epoch = self._epoch
        self._listening = self.speech.start_listening(
            on_partial=lambda text: self._handle_partial(epoch, text),
            on_error=lambda reason: self._handle_recognition_error(epoch, reason),
        )

        self._notify()
        return state.recording_active

    async def stop_recording(self) -> None:
        """
        Stop capturing and move to review.

        Non-empty answers are punctuated before the review view opens.
        Calling this when not recording does nothing.
        """
        state = self.question_state
        if not state.recording_active:
            return

        self._stop_listening()

        answer = state.answer_text
        if not answer.strip():
            state.results_revealed = True
            self._notify()
            return

        epoch = self._epoch
        state.processing_answer = True
        self._notify()

        try:
            punctuated = await self.punctuator.punctuate(answer)
        finally:
            state.processing_answer = False

        if epoch != self._epoch:
            logger.debug("Discarding punctuated answer for a question no longer shown")
            return

        state.answer_text = punctuated
        state.results_revealed = True
        self._notify()

    def update_answer(self, text: str) -> None:
        """Replace the answer text with a typed or edited version."""
        phase = self.phase
        if phase not in (InterviewPhase.PRESENTING_QUESTION, InterviewPhase.REVIEWING):
            raise StateTransitionError(f"Cannot edit the answer in phase: {phase.value}")
        if self.question_state.processing_answer:
            raise StateTransitionError("Cannot edit the answer while it is being processed")
        self.question_state.answer_text = text
        self._notify()

    def submit_answer(self, text: str | None = None) -> bool:
        """
        Reveal the review view without (or after) recording.

        Args:
            text: Optional typed answer replacing the current text

        Returns:
            True if the review view opened (requires non-empty text)
        """
        phase = self.phase
        if phase not in (InterviewPhase.PRESENTING_QUESTION, InterviewPhase.RECORDING):
            raise StateTransitionError(f"Cannot submit an answer in phase: {phase.value}")
        if self.question_state.processing_answer:
            raise StateTransitionError("Cannot submit an answer while it is being processed")

        self._stop_listening()

        state = self.question_state
        if text is not None:
            state.answer_text = text

        if not state.answer_text.strip():
            self._notify()
            return False

        state.results_revealed = True
        self._notify()
        return True

    # =========================================================================
    # REVIEW
    # =========================================================================

    async def verify_answer(self) -> Feedback:
        """
        Judge the current answer and record its rating.

        Each call appends one rating, in call order, even when repeated
        for the same question.
        """
        self._require_phase(InterviewPhase.REVIEWING, "verify the answer")

        session = self.session
        epoch = self._epoch
        question = session.current_question
        answer = self.question_state.answer_text

        async with self._verify_lock:
            result = await self.answer_judge.validate_answer(question, answer)
            feedback = Feedback(rating=result.rating, comment=result.feedback)

            if self.session is not session:
                logger.debug("Discarding verification for an ended session")
                return feedback

            session.ratings.append(result.rating)

        if epoch == self._epoch:
            self.question_state.feedback = feedback

        logger.info(
            f"Session {session.session_id}: question {session.current_index + 1} "
            f"rated {result.rating}/5"
        )
        self._notify()
        return feedback

    async def reveal_optimal_answer(self) -> str:
        """
        Fetch the model answer and narrate it when synthesis is available.

        A playback failure keeps the text on screen.
        """
        self._require_phase(InterviewPhase.REVIEWING, "reveal the optimal answer")

        epoch = self._epoch
        optimal = await self.answer_judge.get_optimal_answer(self.session.current_question)

        if epoch != self._epoch:
            return optimal

        state = self.question_state
        state.optimal_answer_text = optimal
        self._notify()

        if not self.speech.is_synthesis_supported():
            return optimal

        self._narration += 1
        narration = self._narration
        state.speaking_active = True
        self._notify()
        try:
            await self.speech.speak(optimal)
        except SpeechSynthesisError as e:
            logger.error(f"Speech synthesis error: {e}")
        finally:
            if epoch == self._epoch and narration == self._narration:
                state.speaking_active = False
                self._notify()

        return optimal

    def cancel_speech(self) -> None:
        """Stop narration; the optimal answer text stays visible."""
        self.speech.cancel_speech()
        if self.question_state.speaking_active:
            self.question_state.speaking_active = False
            self._notify()

    async def speak_question(self) -> bool:
        """Read the current question aloud if synthesis is available."""
        if self.session is None or self._complete:
            raise StateTransitionError(f"No question to speak in phase: {self.phase.value}")
        if not self.speech.is_synthesis_supported():
            return False

        try:
            await self.speech.speak(self.session.current_question)
        except SpeechSynthesisError as e:
            logger.error(f"Speech synthesis error: {e}")
            return False
        return True

    # =========================================================================
    # PROGRESSION
    # =========================================================================

    def advance(self) -> InterviewPhase:
        """
        Move to the next question, or complete the session after the last.

        Any active recording or narration is stopped first.
        """
        session = self.session
        if session is None:
            raise StateTransitionError("No questions loaded")
        if self._complete:
            return InterviewPhase.COMPLETE

        self._stop_listening()
        self.speech.cancel_speech()

        if session.is_last_question:
            self._complete = True
            session.completed_at = datetime.utcnow()
            logger.info(
                f"Session {session.session_id}: complete with score "
                f"{compute_final_score(session.ratings)}/10"
            )
        else:
            session.current_index += 1
            logger.info(
                f"Session {session.session_id}: question "
                f"{session.current_index + 1}/{len(session.questions)}"
            )

        self._reset_question_state()
        self._notify()
        return self.phase

    async def finish(self) -> float:
        """End a completed session and report its final score upward."""
        self._require_phase(InterviewPhase.COMPLETE, "finish the interview")

        score = compute_final_score(self.session.ratings)
        self._end_session()

        for callback in self._finish_callbacks:
            try:
                await callback(score)
            except Exception as e:
                logger.error(f"Finish callback error: {e}")

        return score

    # =========================================================================
    # QUIT
    # =========================================================================

    def request_quit(self) -> None:
        if self.session is None:
            raise StateTransitionError("No session to quit")
        self.quit_requested = True
        self._notify()

    def cancel_quit(self) -> None:
        if self.quit_requested:
            self.quit_requested = False
            self._notify()

    async def confirm_quit(self) -> None:
        """
        Abandon the session without a score.

        Does nothing if the session is already gone.
        """
        if self.session is None:
            return
        if not self.quit_requested:
            raise StateTransitionError("Quit must be requested before it is confirmed")

        logger.info(f"Session {self.session.session_id}: quit by user")
        self._stop_listening()
        self.speech.cancel_speech()
        self._end_session()

        for callback in self._quit_callbacks:
            try:
                await callback()
            except Exception as e:
                logger.error(f"Quit callback error: {e}")

    async def close(self) -> None:
        """Release speech resources."""
        self._stop_listening()
        await self.speech.close()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _require_phase(self, phase: InterviewPhase, action: str) -> None:
        if self.phase != phase:
            raise StateTransitionError(f"Cannot {action} in phase: {self.phase.value}")

    def _reset_question_state(self) -> None:
        self._epoch += 1
        self.question_state = QuestionState()

    def _end_session(self) -> None:
        self.session = None
        self._complete = False
        self.quit_requested = False
        self._reset_question_state()
        self._notify()

    def _stop_listening(self) -> None:
        handle, self._listening = self._listening, None
        if handle is not None:
            handle.stop()
        self.question_state.recording_active = False

    def _handle_partial(self, epoch: int, text: str) -> None:
        if epoch != self._epoch or not self.question_state.recording_active:
            return
        self.question_state.answer_text = text
        self._notify()

    def _handle_recognition_error(self, epoch: int, reason: str) -> None:
        if epoch != self._epoch:
            return
        self.question_state.recording_error_text = f"Recording error: {reason}"
        self._stop_listening()
        self._notify()

    def _notify(self) -> None:
        if not self._change_listeners:
            return
        snapshot = self.snapshot()
        for listener in self._change_listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Session listener error: {e}")
