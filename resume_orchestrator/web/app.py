"""FastAPI app entrypoint for the orchestrator API."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from .. import __version__
from ..agents.orchestrator import AgentOrchestrator
from .api.v1.router import api_v1_router
from .errors import APIError, api_error_handler, validation_error_handler

logger = logging.getLogger("resume_orchestrator.web.api")


def create_app(orchestrator: Optional[AgentOrchestrator] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        orchestrator: Orchestrator served by this app; built from config on
            first request when omitted
    """
    app = FastAPI(title="Resume Orchestrator API", version=__version__)
    app.state.orchestrator = orchestrator
    app.include_router(api_v1_router)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.info(
                "api_request method=%s path=%s status=%s duration_ms=%.2f",
                request.method,
                request.url.path,
                500,
                (perf_counter() - start) * 1000,
            )
            raise

        current = request.app.state.orchestrator
        logger.info(
            "api_request method=%s path=%s status=%s duration_ms=%.2f orchestrator_status=%s",
            request.method,
            request.url.path,
            response.status_code,
            (perf_counter() - start) * 1000,
            current.status.value if current is not None else "-",
        )
        return response

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict:
        return {"status": "ok"}

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app


def main(host: str = "127.0.0.1", port: int = 8000, orchestrator: Optional[AgentOrchestrator] = None) -> None:
    """Run development API server."""
    import uvicorn

    uvicorn.run(create_app(orchestrator), host=host, port=port)
