"""
Main API router for ResQ

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from resq.api.endpoints import interview, generation, speech

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/sessions",
    tags=["Interview"]
)

api_router.include_router(
    generation.router,
    prefix="/sessions",
    tags=["Generation"]
)

api_router.include_router(
    speech.router,
    prefix="/sessions",
    tags=["Speech"]
)
