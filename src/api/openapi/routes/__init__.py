"""API route handlers."""

from src.api.openapi.routes import health, maintenance, query, videos

__all__ = [
    "health",
    "maintenance",
    "query",
    "videos",
]
