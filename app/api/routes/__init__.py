"""API route modules."""

from .generate import router as generation_router

__all__ = [
    "generation_router",
]
