"""API routes."""

from .stages import router as stages_router

__all__ = [
    "stages_router",
]
