"""API module - FastAPI routes."""

from .router import router

__all__ = ["router"]
