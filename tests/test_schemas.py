"""Tests for structured reply parsing."""

from __future__ import annotations

import pytest

from resume_orchestrator.agents.schemas import (
    AgentTaskReply,
    ChatRoutingDecision,
    LearningUpdate,
    ParseOutcome,
    TaskBreakdown,
    WorkflowPlan,
    parse_json_object,
    parse_reply,
)
from resume_orchestrator.errors import MalformedResponseError


class TestParseJsonObject:
    def test_plain_object(self):
        outcome = parse_json_object('{"a": 1}')

        assert outcome.ok
        assert outcome.value == {"a": 1}

    @pytest.mark.parametrize("text", ['```json\n{"a": 1}\n```', '```\n{"a": 1}\n```', '  ```JSON {"a": 1} ```  '])
    def test_code_fences_are_stripped(self, text):
        assert parse_json_object(text).value == {"a": 1}

    @pytest.mark.parametrize("text", [None, "", "   ", "nope", "[1]", '"just a string"', "{broken"])
    def test_failures(self, text):
        outcome = parse_json_object(text)

        assert not outcome.ok
        assert outcome.value is None
        assert outcome.error

    def test_unwrap_raises_malformed(self):
        outcome = ParseOutcome.failure("bad", raw_text="raw")

        with pytest.raises(MalformedResponseError) as excinfo:
            outcome.unwrap()

        assert excinfo.value.raw_text == "raw"


class TestWorkflowPlan:
    def test_aliases_and_defaults(self):
        plan = parse_reply(
            '{"approach": "x", "agentWorkflow": [{"id": "s1", "agentType": "research", "task": "t"}]}',
            WorkflowPlan,
        ).unwrap()

        step = plan.agent_workflow[0]
        assert step.agent_type == "research"
        assert step.dependencies == []
        assert step.reasoning == ""
        assert plan.expected_outcome == ""

    def test_empty_object(self):
        plan = parse_reply("{}", WorkflowPlan).unwrap()

        assert plan.agent_workflow == []

    def test_null_fields_tolerated(self):
        plan = parse_reply(
            '{"agentWorkflow": [{"id": null, "agentType": "", "task": null, "reasoning": null, "dependencies": null}]}',
            WorkflowPlan,
        ).unwrap()

        step = plan.agent_workflow[0]
        assert step.id is None
        assert step.agent_type is None
        assert step.task is None
        assert step.dependencies == []

    def test_dependency_ids_coerced(self):
        plan = parse_reply('{"agentWorkflow": [{"id": 2, "dependencies": [1, " s0 ", null, ""]}]}', WorkflowPlan).unwrap()

        assert plan.agent_workflow[0].id == "2"
        assert plan.agent_workflow[0].dependencies == ["1", "s0"]

    def test_single_dependency_string(self):
        plan = parse_reply('{"agentWorkflow": [{"id": "b", "dependencies": "a"}]}', WorkflowPlan).unwrap()

        assert plan.agent_workflow[0].dependencies == ["a"]

    def test_wrong_shape_is_failure(self):
        outcome = parse_reply('{"agentWorkflow": [42]}', WorkflowPlan)

        assert not outcome.ok
        assert "WorkflowPlan" in outcome.error


class TestChatRoutingDecision:
    def test_defaults(self):
        decision = parse_reply("{}", ChatRoutingDecision).unwrap()

        assert decision.requires_agents is False
        assert decision.routed_agent is None
        assert decision.direct_response is None

    def test_routed_agent(self):
        decision = parse_reply('{"requiresAgents": true, "suggestedAgent": " writing "}', ChatRoutingDecision).unwrap()

        assert decision.requires_agents is True
        assert decision.routed_agent == "writing"

    def test_none_agent(self):
        decision = parse_reply('{"requiresAgents": true, "suggestedAgent": "None"}', ChatRoutingDecision).unwrap()

        assert decision.routed_agent is None


class TestAgentTaskReply:
    def test_full_reply(self):
        reply = parse_reply(
            '{"reasoning": "r", "toolCalls": [{"tool": "web_search", "params": {"query": "q"}}],'
            ' "result": {"k": "v"}, "nextSteps": "n"}',
            AgentTaskReply,
        ).unwrap()

        assert reply.tool_calls[0].tool == "web_search"
        assert reply.tool_calls[0].params == {"query": "q"}
        assert reply.result == {"k": "v"}
        assert reply.next_steps == "n"

    def test_scalar_result_is_wrapped(self):
        reply = parse_reply('{"result": "done", "toolCalls": null}', AgentTaskReply).unwrap()

        assert reply.result == {"output": "done"}
        assert reply.tool_calls == []

    def test_tool_call_without_params(self):
        reply = parse_reply('{"toolCalls": [{"tool": "web_search", "params": null}]}', AgentTaskReply).unwrap()

        assert reply.tool_calls[0].params == {}

    def test_tool_call_without_name_is_failure(self):
        assert not parse_reply('{"toolCalls": [{"params": {}}]}', AgentTaskReply).ok


class TestOtherReplies:
    def test_task_breakdown(self):
        breakdown = parse_reply(
            '{"tasks": [{"id": 1, "description": "d", "requiredTools": ["web_search"]}], "reasoning": "r"}',
            TaskBreakdown,
        ).unwrap()

        assert breakdown.tasks[0].id == "1"
        assert breakdown.tasks[0].priority == "medium"
        assert breakdown.tasks[0].required_tools == ["web_search"]

    def test_learning_update(self):
        update = parse_reply('{"facts": "one fact", "preferences": null}', LearningUpdate).unwrap()

        assert update.facts == ["one fact"]
        assert update.preferences == {}
        assert update.learnings == []
