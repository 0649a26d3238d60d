"""Tests for plan ingestion and planning failures."""

from __future__ import annotations

import pytest

from conftest import make_plan, make_step
from resume_orchestrator.agents.protocol import OrchestratorStatus, TaskStatus
from resume_orchestrator.errors import CompletionError, PlanningError


class TestPlanIngestion:
    """Plan steps become pending tasks with a repaired dependency graph."""

    @pytest.mark.asyncio
    async def test_steps_become_pending_tasks(self, make_orchestrator):
        plan = make_plan(make_step("s1", role="job_matcher"), make_step("s2", ["s1"], role="writing"))
        orchestrator, _ = make_orchestrator(plan=plan)

        returned = await orchestrator.plan_agent_workflow("Match me to this job", {"job": "SWE"})

        assert [step.id for step in returned.agent_workflow] == ["s1", "s2"]
        state = orchestrator.get_state()
        assert state.status == OrchestratorStatus.PLANNING
        assert [t.id for t in state.tasks] == ["s1", "s2"]
        assert all(t.status == TaskStatus.PENDING for t in state.tasks)
        assert [t.assigned_agent_role for t in state.tasks] == ["job_matcher", "writing"]
        assert state.tasks[1].dependencies == ["s1"]

    @pytest.mark.asyncio
    async def test_missing_fields_get_defaults(self, make_orchestrator):
        plan = make_plan({"task": "first"}, {"id": "named", "agentType": "research"}, {})
        orchestrator, _ = make_orchestrator(plan=plan)

        await orchestrator.plan_agent_workflow("goal")

        tasks = orchestrator.get_state().tasks
        assert [t.id for t in tasks] == ["task_0", "named", "task_2"]
        assert [t.description for t in tasks] == ["first", "Task 1", "Task 2"]
        assert [t.assigned_agent_role for t in tasks] == ["career_coach", "research", "career_coach"]
        assert all(t.dependencies == [] for t in tasks)

    @pytest.mark.asyncio
    async def test_dangling_dependency_is_dropped(self, make_orchestrator):
        """Scenario C: an unknown dependency id is ignored."""
        plan = make_plan(make_step("s1", ["nonexistent"]))
        orchestrator, client = make_orchestrator(plan=plan)

        outcome = await orchestrator.achieve_goal("goal")

        assert orchestrator.get_state().tasks[0].dependencies == []
        assert client.executed_tasks == ["s1"]
        assert outcome.tasks_completed == 1

    @pytest.mark.asyncio
    async def test_self_dependency_is_dropped(self, make_orchestrator):
        plan = make_plan(make_step("s1", ["s1"]), make_step("s2", ["s2", "s1"]))
        orchestrator, _ = make_orchestrator(plan=plan)

        await orchestrator.plan_agent_workflow("goal")

        tasks = orchestrator.get_state().tasks
        assert tasks[0].dependencies == []
        assert tasks[1].dependencies == ["s1"]
        plan_events = [e for e in orchestrator.observer.events if e.event_type == "plan"]
        assert plan_events[-1].data["dropped_dependencies"] == 2

    @pytest.mark.asyncio
    async def test_numeric_ids_and_dependencies_are_strings(self, make_orchestrator):
        plan = make_plan(make_step(1), make_step(2, [1]))
        orchestrator, _ = make_orchestrator(plan=plan)

        await orchestrator.plan_agent_workflow("goal")

        tasks = orchestrator.get_state().tasks
        assert [t.id for t in tasks] == ["1", "2"]
        assert tasks[1].dependencies == ["1"]

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_renamed(self, make_orchestrator):
        plan = make_plan(make_step("s1"), make_step("s1"), make_step("s2", ["s1"]))
        orchestrator, client = make_orchestrator(plan=plan)

        await orchestrator.achieve_goal("goal")

        tasks = orchestrator.get_state().tasks
        ids = [t.id for t in tasks]
        assert len(set(ids)) == 3
        assert ids[0] == "s1"
        assert tasks[2].dependencies == ["s1"]
        assert len(client.executed_tasks) == 3

    @pytest.mark.asyncio
    async def test_unknown_role_falls_back_to_default(self, make_orchestrator):
        plan = make_plan(make_step("s1", role="astrologer"))
        orchestrator, _ = make_orchestrator(plan=plan)

        outcome = await orchestrator.achieve_goal("goal")

        assert orchestrator.get_state().tasks[0].assigned_agent_role == "career_coach"
        assert outcome.agents_used == ["career_coach"]

    @pytest.mark.asyncio
    async def test_assignments_are_one_to_one_with_tasks(self, make_orchestrator):
        plan = make_plan(make_step("s1", role="research"), make_step("s2", role="writing"))
        orchestrator, _ = make_orchestrator(plan=plan)

        await orchestrator.plan_agent_workflow("goal")

        state = orchestrator.get_state()
        assert [a.task.id for a in state.agent_assignments] == ["s1", "s2"]
        assert [a.agent_role for a in state.agent_assignments] == ["research", "writing"]
        assert state.agent_assignments[0].reasoning == "because s1"

    @pytest.mark.asyncio
    async def test_planning_prompt_lists_every_role(self, make_orchestrator):
        orchestrator, client = make_orchestrator(plan=make_plan())

        await orchestrator.plan_agent_workflow("Find me a job", {"city": "Berlin"})

        call = client.calls[0]
        assert call.json_output is True
        for role in ("career_coach", "resume_optimizer", "job_matcher", "research", "writing", "interview_prep"):
            assert role in call.prompt
        assert "Find me a job" in call.prompt
        assert '"city": "Berlin"' in call.prompt

    @pytest.mark.asyncio
    async def test_new_plan_replaces_previous_run(self, make_orchestrator):
        orchestrator, _ = make_orchestrator(plan=make_plan(make_step("s1")))
        await orchestrator.achieve_goal("first")

        outcome = await orchestrator.achieve_goal("second")

        assert [r.task_id for r in outcome.results] == ["s1"]
        assert len(orchestrator.get_state().results) == 1


class TestPlanningFailures:
    """Unusable plans raise PlanningError and leave status at planning."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        ["this is not json", "[1, 2, 3]", '{"agentWorkflow": "not a list"}', '{"agentWorkflow": [42]}'],
    )
    async def test_unparseable_plan(self, make_orchestrator, reply):
        orchestrator, client = make_orchestrator(plan=reply)

        with pytest.raises(PlanningError) as excinfo:
            await orchestrator.achieve_goal("goal")

        assert excinfo.value.raw_text == reply
        assert orchestrator.status == OrchestratorStatus.PLANNING
        assert orchestrator.get_state().tasks == []
        assert client.executed_tasks == []

    @pytest.mark.asyncio
    async def test_backend_error(self, make_orchestrator):
        orchestrator, _ = make_orchestrator(plan=CompletionError("Empty LLM response"))

        with pytest.raises(PlanningError, match="Empty LLM response") as excinfo:
            await orchestrator.achieve_goal("goal")

        assert isinstance(excinfo.value.__cause__, CompletionError)
        assert orchestrator.status == OrchestratorStatus.PLANNING
        assert not orchestrator.is_busy

    @pytest.mark.asyncio
    async def test_fenced_json_plan_is_accepted(self, make_orchestrator):
        fenced = '```json\n{"agentWorkflow": [{"id": "s1", "agentType": "writing", "task": "s1"}]}\n```'
        orchestrator, client = make_orchestrator(plan=fenced)

        await orchestrator.achieve_goal("goal")

        assert client.executed_tasks == ["s1"]
