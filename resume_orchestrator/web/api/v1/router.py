"""Top-level v1 API router."""

from __future__ import annotations

from fastapi import APIRouter

from .endpoints.orchestrator import router as orchestrator_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(orchestrator_router)
