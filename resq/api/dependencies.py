"""
API Dependencies

Provides dependency injection for API endpoints.
Manages the singleton session manager.
"""

from fastapi import HTTPException

from resq.core.session_manager import InterviewWorkspace, SessionManager


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """
    Get the session manager singleton.

    Lazily initializes the shared AI clients.
    """
    global _session_manager

    if _session_manager is None:
        _session_manager = SessionManager()

    return _session_manager


def get_workspace(session_id: str) -> InterviewWorkspace:
    """Look up a workspace or fail with 404."""
    workspace = get_session_manager().get(session_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return workspace


async def cleanup():
    """Cleanup resources on shutdown."""
    global _session_manager

    if _session_manager:
        await _session_manager.close()

    _session_manager = None
