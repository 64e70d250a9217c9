"""FastAPI application wiring for the audit report service."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from src.audit.api.routes import export_router, report_router
from src.audit.errors import AuditReportError
from src.audit.logging import setup_logging

setup_logging()

app = FastAPI(title="Food Safety Audit Reports")


@app.exception_handler(AuditReportError)
async def audit_error_handler(request: Request, exc: AuditReportError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message, "details": exc.details},
    )


@app.get("/health")
def health() -> JSONResponse:
    """Simple liveness endpoint used by deployment probes."""

    return JSONResponse({"status": "ok"})


@app.get("/favicon.ico")
def favicon() -> Response:
    """Return an empty favicon response to silence 404 noise."""

    return Response(status_code=204)


# JSON payloads for integrations.
app.include_router(report_router)

# Rendered downloads.
app.include_router(export_router)


__all__ = ["app", "health"]
