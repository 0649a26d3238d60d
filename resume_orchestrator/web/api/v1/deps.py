"""Dependency providers for v1 API."""

from __future__ import annotations

from fastapi import Request

from ....agents.orchestrator import AgentOrchestrator
from ....agent_factory import create_orchestrator


def get_orchestrator(request: Request) -> AgentOrchestrator:
    """Access the app's orchestrator, building it from config on first use."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = create_orchestrator()
        request.app.state.orchestrator = orchestrator
    return orchestrator
