"""HTTP route modules."""

from __future__ import annotations

from .export import router as export_router
from .report import router as report_router

__all__ = ["export_router", "report_router"]
