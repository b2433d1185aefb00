"""
API layer for ResQ

Contains FastAPI routers for:
- Interview session management
- Resume upload and question generation
- WebSocket speech channel
"""

from resq.api.router import api_router

__all__ = ["api_router"]
