"""API layer - REST endpoints and periodic jobs."""

from src.api.main import app, create_app

__all__ = [
    "app",
    "create_app",
]
