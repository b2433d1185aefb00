"""
Interview API endpoints

Handles the interview session lifecycle:
- Creating and deleting sessions
- Capturing answers (recording, typing)
- Verifying answers and revealing optimal answers
- Moving between questions, finishing and quitting
"""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from resq.api.dependencies import get_session_manager, get_workspace
from resq.core.interview_session import StateTransitionError
from resq.models.evaluation import Feedback
from resq.models.interview import InterviewPhase, SessionSnapshot

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionResponse(BaseModel):
    """Response after creating a session workspace."""
    session_id: str
    speech_channel: str


class AnswerRequest(BaseModel):
    """Typed or edited answer text."""
    text: str


class SubmitAnswerRequest(BaseModel):
    """Manual answer submission; text is optional."""
    text: str | None = None


class CategoryRequest(BaseModel):
    """Category change request."""
    category: str


class VerifyResponse(BaseModel):
    """Response after verifying an answer."""
    feedback: Feedback
    session: SessionSnapshot


class FinishResponse(BaseModel):
    """Response after finishing an interview."""
    final_score: float


# ============================================================================
# SESSION ENDPOINTS
# ============================================================================

@router.post("", response_model=CreateSessionResponse, status_code=201)
async def create_session() -> CreateSessionResponse:
    """
    Create a new interview workspace.

    The client should then open the speech channel and upload a resume.
    """
    workspace = get_session_manager().create_workspace()
    return CreateSessionResponse(
        session_id=workspace.workspace_id,
        speech_channel=f"/api/sessions/{workspace.workspace_id}/speech",
    )


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str) -> SessionSnapshot:
    """Get the current state of an interview session."""
    return get_workspace(session_id).machine.snapshot()


@router.delete("/{session_id}")
async def delete_session(session_id: str) -> dict[str, Any]:
    """Tear down a workspace and release its speech resources."""
    if not await get_session_manager().remove(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


@router.post("/{session_id}/category", response_model=SessionSnapshot)
async def change_category(session_id: str, request: CategoryRequest) -> SessionSnapshot:
    """Switch category; the session restarts from its first question."""
    machine = get_workspace(session_id).machine
    try:
        machine.change_category(request.category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return machine.snapshot()


# ============================================================================
# ANSWER CAPTURE
# ============================================================================

@router.post("/{session_id}/recording/start", response_model=SessionSnapshot)
async def start_recording(session_id: str) -> SessionSnapshot:
    """
    Start speech capture for the current question.

    If speech recognition is unavailable the snapshot carries an inline
    recording error instead of failing the request.
    """
    machine = get_workspace(session_id).machine
    try:
        machine.start_recording()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.snapshot()


@router.post("/{session_id}/recording/stop", response_model=SessionSnapshot)
async def stop_recording(session_id: str) -> SessionSnapshot:
    """Stop speech capture, punctuate the transcript and open the review view."""
    machine = get_workspace(session_id).machine
    await machine.stop_recording()
    return machine.snapshot()


@router.put("/{session_id}/answer", response_model=SessionSnapshot)
async def update_answer(session_id: str, request: AnswerRequest) -> SessionSnapshot:
    """Replace the answer text with an edited version."""
    machine = get_workspace(session_id).machine
    try:
        machine.update_answer(request.text)
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.snapshot()


@router.post("/{session_id}/answer/submit", response_model=SessionSnapshot)
async def submit_answer(session_id: str, request: SubmitAnswerRequest) -> SessionSnapshot:
    """Open the review view for a typed answer."""
    machine = get_workspace(session_id).machine
    try:
        if not machine.submit_answer(request.text):
            raise HTTPException(status_code=400, detail="Answer text is empty")
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.snapshot()


# ============================================================================
# REVIEW
# ============================================================================

@router.post("/{session_id}/verify", response_model=VerifyResponse)
async def verify_answer(session_id: str) -> VerifyResponse:
    """Rate the current answer and record the rating."""
    machine = get_workspace(session_id).machine
    try:
        feedback = await machine.verify_answer()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return VerifyResponse(feedback=feedback, session=machine.snapshot())


@router.post("/{session_id}/optimal-answer", response_model=SessionSnapshot, status_code=202)
async def reveal_optimal_answer(session_id: str) -> SessionSnapshot:
    """
    Fetch and narrate the optimal answer.

    Runs in the background because narration lasts until playback ends;
    progress is pushed over the speech channel.
    """
    workspace = get_workspace(session_id)
    machine = workspace.machine
    if machine.phase != InterviewPhase.REVIEWING:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot reveal the optimal answer in phase: {machine.phase.value}"
        )

    workspace.run_in_background(machine.reveal_optimal_answer())
    return machine.snapshot()


@router.post("/{session_id}/speak-question", response_model=SessionSnapshot, status_code=202)
async def speak_question(session_id: str) -> SessionSnapshot:
    """Read the current question aloud."""
    workspace = get_workspace(session_id)
    machine = workspace.machine
    if machine.session is None:
        raise HTTPException(status_code=409, detail="No questions loaded")

    workspace.run_in_background(machine.speak_question())
    return machine.snapshot()


@router.post("/{session_id}/speech/cancel", response_model=SessionSnapshot)
async def cancel_speech(session_id: str) -> SessionSnapshot:
    """Stop narration without clearing the optimal answer."""
    machine = get_workspace(session_id).machine
    machine.cancel_speech()
    return machine.snapshot()


# ============================================================================
# PROGRESSION
# ============================================================================

@router.post("/{session_id}/next", response_model=SessionSnapshot)
async def next_question(session_id: str) -> SessionSnapshot:
    """Advance to the next question, or complete the interview after the last one."""
    machine = get_workspace(session_id).machine
    try:
        machine.advance()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.snapshot()


@router.post("/{session_id}/finish", response_model=FinishResponse)
async def finish_interview(session_id: str) -> FinishResponse:
    """End a completed interview and return its final score."""
    machine = get_workspace(session_id).machine
    try:
        score = await machine.finish()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return FinishResponse(final_score=score)


@router.post("/{session_id}/quit", response_model=SessionSnapshot)
async def request_quit(session_id: str) -> SessionSnapshot:
    """Ask to quit; must be confirmed or cancelled."""
    machine = get_workspace(session_id).machine
    try:
        machine.request_quit()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.snapshot()


@router.post("/{session_id}/quit/confirm", response_model=SessionSnapshot)
async def confirm_quit(session_id: str) -> SessionSnapshot:
    """Abandon the interview without a score."""
    machine = get_workspace(session_id).machine
    try:
        await machine.confirm_quit()
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return machine.snapshot()


@router.post("/{session_id}/quit/cancel", response_model=SessionSnapshot)
async def cancel_quit(session_id: str) -> SessionSnapshot:
    """Keep going with the interview."""
    machine = get_workspace(session_id).machine
    machine.cancel_quit()
    return machine.snapshot()
