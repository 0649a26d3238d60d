"""Keyed cache of specialized agents, one instance per role."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from ..errors import UnknownAgentRoleError
from ..tools.base import ToolRegistry
from .base import Agent
from .roles import ROLE_CONFIGS, AgentRoleConfig

if TYPE_CHECKING:
    from ..llm import CompletionClient
    from ..observability import AgentObserver

logger = logging.getLogger(__name__)


class AgentFactory:
    """Builds agents from the role table and caches them per role.

    A factory is constructed explicitly by the composition root and shared by
    whatever needs agents. Cached agents keep their memory across orchestrator
    runs until ``clear_cache()`` or ``reset_agent()`` is called.

    Example:
        factory = AgentFactory(client, default_tool_registry())
        coach = factory.get_agent("career_coach")
        assert factory.get_agent("career_coach") is coach
    """

    def __init__(
        self,
        client: CompletionClient,
        tool_registry: ToolRegistry,
        role_configs: Optional[Mapping[str, AgentRoleConfig]] = None,
        observer: Optional[AgentObserver] = None,
    ):
        self.client = client
        self.tool_registry = tool_registry
        self.role_configs: Dict[str, AgentRoleConfig] = dict(role_configs if role_configs is not None else ROLE_CONFIGS)
        self.observer = observer
        self._cache: Dict[str, Agent] = {}

    def create_agent(self, role: str) -> Agent:
        """Build a new, uncached agent for ``role``.

        Raises:
            UnknownAgentRoleError: If ``role`` is not in the role table
            ToolNotFoundError: If the role binds a tool missing from the registry
        """
        config = self.role_configs.get(role)
        if config is None:
            raise UnknownAgentRoleError(role)
        tools = self.tool_registry.subset(config.tool_names)
        return Agent(config, self.client, tools, observer=self.observer, agent_id=role)

    def get_agent(self, role: str) -> Agent:
        """Return the cached agent for ``role``, building it on first use."""
        agent = self._cache.get(role)
        if agent is None:
            agent = self.create_agent(role)
            self._cache[role] = agent
            logger.info("Created agent '%s' with tools: %s", role, agent.tools.names())
        return agent

    def reset_agent(self, role: str) -> bool:
        """Clear a cached agent's memory without evicting it.

        Returns:
            True if an agent for ``role`` was cached
        """
        agent = self._cache.get(role)
        if agent is None:
            return False
        agent.reset()
        return True

    def clear_cache(self) -> None:
        self._cache.clear()

    def dispose(self) -> None:
        """Reset every cached agent, then drop them all."""
        for agent in self._cache.values():
            agent.reset()
        self.clear_cache()

    def cached_roles(self) -> List[str]:
        return list(self._cache)

    def known_roles(self) -> List[str]:
        return list(self.role_configs)

    def __contains__(self, role: object) -> bool:
        return role in self.role_configs
