"""Tests for AgentFactory caching and the role table."""

from __future__ import annotations

import pytest

from conftest import FakeCompletionClient
from resume_orchestrator.agents.base import Agent
from resume_orchestrator.agents.factory import AgentFactory
from resume_orchestrator.agents.protocol import Task
from resume_orchestrator.agents.roles import ROLE_CONFIGS, AgentRoleConfig, describe_role_catalog
from resume_orchestrator.errors import ToolNotFoundError, UnknownAgentRoleError
from resume_orchestrator.tools import ToolRegistry, default_tool_registry

ALL_ROLES = ["career_coach", "resume_optimizer", "job_matcher", "research", "writing", "interview_prep"]


@pytest.fixture
def factory() -> AgentFactory:
    client = FakeCompletionClient(lambda call: {"result": {"ok": True}})
    return AgentFactory(client, default_tool_registry())


class TestAgentFactory:
    def test_same_instance_until_cache_cleared(self, factory):
        first = factory.get_agent("career_coach")
        second = factory.get_agent("career_coach")

        assert first is second

        factory.clear_cache()
        third = factory.get_agent("career_coach")

        assert third is not first

    def test_one_instance_per_role(self, factory):
        agents = [factory.get_agent(role) for role in ALL_ROLES]

        assert len({id(agent) for agent in agents}) == len(ALL_ROLES)
        assert factory.cached_roles() == ALL_ROLES

    def test_unknown_role(self, factory):
        with pytest.raises(UnknownAgentRoleError) as excinfo:
            factory.get_agent("astrologer")

        assert excinfo.value.role == "astrologer"
        assert isinstance(excinfo.value, KeyError)
        assert str(excinfo.value) == "Unknown agent role: 'astrologer'"
        assert factory.cached_roles() == []

    def test_create_agent_is_uncached(self, factory):
        cached = factory.get_agent("writing")

        assert factory.create_agent("writing") is not cached
        assert factory.get_agent("writing") is cached

    @pytest.mark.parametrize("role", ALL_ROLES)
    def test_agents_bind_only_their_tools(self, factory, role):
        agent = factory.get_agent(role)

        assert isinstance(agent, Agent)
        assert agent.agent_id == role
        assert agent.tools.names() == ROLE_CONFIGS[role].tool_names

    def test_tools_shared_by_reference(self, factory):
        coach = factory.get_agent("career_coach")
        research = factory.get_agent("research")

        assert coach.tools.get("web_search") is research.tools.get("web_search")
        assert coach.tools.get("web_search") is factory.tool_registry.get("web_search")

    @pytest.mark.asyncio
    async def test_reset_agent_keeps_instance(self, factory):
        agent = factory.get_agent("research")
        await agent.execute_task(Task(id="t1", description="Research Acme"))
        assert agent.get_state().thoughts

        assert factory.reset_agent("research") is True

        assert factory.get_agent("research") is agent
        assert agent.get_state().thoughts == []
        assert factory.reset_agent("writing") is False

    @pytest.mark.asyncio
    async def test_memory_persists_until_cleared(self, factory):
        agent = factory.get_agent("research")
        await agent.execute_task(Task(id="t1", description="Research Acme"))

        assert factory.get_agent("research").get_state().completed_tasks

        factory.clear_cache()

        assert factory.get_agent("research").get_state().completed_tasks == []

    @pytest.mark.asyncio
    async def test_dispose_resets_and_clears(self, factory):
        agent = factory.get_agent("writing")
        await agent.execute_task(Task(id="t1", description="Draft"))

        factory.dispose()

        assert factory.cached_roles() == []
        assert agent.get_state().thoughts == []

    def test_isolated_factories(self):
        client = FakeCompletionClient(lambda call: "")
        one = AgentFactory(client, default_tool_registry())
        two = AgentFactory(client, default_tool_registry())

        assert one.get_agent("writing") is not two.get_agent("writing")

    def test_role_with_unregistered_tool(self):
        factory = AgentFactory(FakeCompletionClient(lambda call: ""), ToolRegistry())

        with pytest.raises(ToolNotFoundError):
            factory.get_agent("career_coach")

    def test_custom_role_table(self):
        roles = {
            "proofreader": AgentRoleConfig(
                name="Proofreader",
                role="Catches typos",
                system_instruction="You proofread.",
                capabilities=["Proofreading"],
                tool_names=["analyze_resume"],
            )
        }
        factory = AgentFactory(FakeCompletionClient(lambda call: ""), default_tool_registry(), role_configs=roles)

        assert "proofreader" in factory
        assert "career_coach" not in factory
        assert factory.get_agent("proofreader").name == "Proofreader"
        assert "proofreader (Proofreader) - Proofreading" in describe_role_catalog(roles)


class TestRoleCatalog:
    def test_catalog_lists_every_role_key(self):
        catalog = describe_role_catalog()

        lines = catalog.splitlines()
        assert len(lines) == len(ALL_ROLES)
        for line, role in zip(lines, ALL_ROLES):
            assert f" {role} (" in line

    def test_every_role_has_persona_and_tools(self):
        assert list(ROLE_CONFIGS) == ALL_ROLES
        registry = default_tool_registry()
        for config in ROLE_CONFIGS.values():
            assert config.system_instruction
            assert len(config.capabilities) == 5
            assert all(name in registry for name in config.tool_names)
