"""FastAPI application entrypoint for the audit report service."""

from __future__ import annotations

from src.audit.api.main import app, health

__all__ = ["app", "health"]
