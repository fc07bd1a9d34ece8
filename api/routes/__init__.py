"""API route handlers."""

from api.routes import admin, campaigns, claims, health

__all__ = ["health", "campaigns", "claims", "admin"]
