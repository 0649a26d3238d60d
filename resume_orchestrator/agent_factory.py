"""Composition root: build a fully wired orchestrator from configuration."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .agents.factory import AgentFactory
from .agents.orchestrator import AgentOrchestrator, OrchestratorConfig
from .llm import CompletionClient, LLMConfig, load_raw_config
from .observability import AgentObserver
from .retry import RetryConfig
from .tools import ToolRegistry, default_tool_registry

logger = logging.getLogger(__name__)


def create_orchestrator(
    client: Optional[CompletionClient] = None,
    raw_config: Optional[Dict[str, Any]] = None,
    tool_registry: Optional[ToolRegistry] = None,
    observer: Optional[AgentObserver] = None,
    config_path: str = "config/config.local.yaml",
    verbose: bool = False,
) -> AgentOrchestrator:
    """Wire a completion client, tools, agent factory and orchestrator together.

    Each call builds an isolated object graph; nothing is cached at module level.

    Args:
        client: Completion client to share (built from config if None)
        raw_config: Parsed configuration (loaded from ``config_path`` if None)
        tool_registry: Tools available to the agents (all career tools if None)
        observer: Event observer shared by every component
        config_path: YAML config used when ``raw_config`` is not given
        verbose: Log events at INFO level

    Returns:
        A ready-to-use AgentOrchestrator
    """
    observer = observer or AgentObserver(verbose=verbose)

    if client is None:
        if raw_config is None:
            raw_config = load_raw_config(config_path)
        client = CompletionClient.from_config(
            LLMConfig.from_dict(raw_config),
            retry_config=RetryConfig.from_dict(raw_config.get("retry")),
            observer=observer,
        )
    raw_config = raw_config or {}

    factory = AgentFactory(client, tool_registry or default_tool_registry(), observer=observer)
    orchestrator_config = OrchestratorConfig.from_dict(raw_config.get("orchestrator"))
    logger.info(
        "Creating orchestrator (model=%s, max_concurrency=%d)",
        client.model,
        orchestrator_config.max_concurrency,
    )
    return AgentOrchestrator(client, factory, config=orchestrator_config, observer=observer)
