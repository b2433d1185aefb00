"""
Generation API endpoints

Handles:
- Resume upload for a chosen interview category
- Polling generation progress
- Returning to category selection
"""

import asyncio

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from resq.api.dependencies import get_workspace
from resq.core.interview_session import StateTransitionError
from resq.models.interview import GenerationStatus, ResumeDocument

router = APIRouter()


@router.post("/{session_id}/resume", response_model=GenerationStatus, status_code=202)
async def upload_resume(
    session_id: str,
    resume: UploadFile = File(...),
    category: str = Form(...),
) -> GenerationStatus:
    """
    Upload a PDF resume and start generating questions.

    Generation runs in the background; poll /generation for progress.
    """
    workspace = get_workspace(session_id)

    document = ResumeDocument(
        filename=resume.filename or "resume.pdf",
        content_type=resume.content_type or "application/octet-stream",
        data=await resume.read(),
    )

    try:
        workspace.start_generation(document, category)
    except StateTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        # Covers ResumeValidationError and unknown categories
        raise HTTPException(status_code=400, detail=str(e))

    # Let the run reach its first suspension point so the status reflects it
    await asyncio.sleep(0)
    return workspace.generation.status()


@router.get("/{session_id}/generation", response_model=GenerationStatus)
async def get_generation_status(session_id: str) -> GenerationStatus:
    """Get question generation progress."""
    return get_workspace(session_id).generation.status()


@router.delete("/{session_id}/generation", response_model=GenerationStatus)
async def reset_generation(session_id: str) -> GenerationStatus:
    """Discard generation state and return to category selection."""
    workspace = get_workspace(session_id)
    if workspace.generation.is_running:
        raise HTTPException(status_code=409, detail="Generation in progress")
    workspace.generation.reset()
    return workspace.generation.status()
