"""Global pytest fixtures: a scripted completion client and wired orchestrators."""

from __future__ import annotations

import asyncio
import inspect
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest

from resume_orchestrator.agents.factory import AgentFactory
from resume_orchestrator.agents.orchestrator import ORCHESTRATOR_ID, AgentOrchestrator, OrchestratorConfig
from resume_orchestrator.errors import EmptyResponseError
from resume_orchestrator.observability import AgentObserver
from resume_orchestrator.tools import default_tool_registry

TASK_LINE = re.compile(r"^Current task: (.*)$", re.MULTILINE)


@dataclass
class CompletionCall:
    prompt: str
    system_instruction: Optional[str]
    json_output: bool
    response_schema: Optional[Dict[str, Any]]
    agent_id: Optional[str]

    @property
    def task(self) -> Optional[str]:
        """Task description when this is an agent task-execution call."""
        match = TASK_LINE.search(self.prompt)
        return match.group(1).strip() if match else None

    @property
    def is_chat_routing(self) -> bool:
        return self.agent_id == ORCHESTRATOR_ID and self.prompt.startswith("User message:")


class FakeCompletionClient:
    """Stands in for CompletionClient; every reply comes from ``handler``.

    The handler may return text, a dict/list (sent as JSON), an exception
    (raised) or an awaitable resolving to any of those. Blank text raises
    EmptyResponseError, as the real client does.
    """

    model = "fake-model"

    def __init__(self, handler: Callable[[CompletionCall], Any]):
        self.handler = handler
        self.calls: List[CompletionCall] = []

    async def complete(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        json_output: bool = False,
        response_schema: Optional[Dict[str, Any]] = None,
        agent_id: Optional[str] = None,
    ) -> str:
        call = CompletionCall(prompt, system_instruction, json_output, response_schema, agent_id)
        self.calls.append(call)
        await asyncio.sleep(0)

        reply = self.handler(call)
        if inspect.isawaitable(reply):
            reply = await reply
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        if reply is None or not reply.strip():
            raise EmptyResponseError("Empty LLM response")
        return reply

    @property
    def executed_tasks(self) -> List[str]:
        return [c.task for c in self.calls if c.task is not None]


def orchestrator_script(
    plan: Any = None,
    routing: Any = None,
    task_replies: Optional[Dict[str, Any]] = None,
    chat_text: str = "Agent reply",
) -> Callable[[CompletionCall], Any]:
    """Handler answering planning, routing, task and chat calls.

    Task calls are keyed by task description; unknown tasks get a default
    reply whose result echoes the description.
    """
    task_replies = task_replies or {}

    def handler(call: CompletionCall) -> Any:
        if call.agent_id == ORCHESTRATOR_ID:
            return routing if call.is_chat_routing else plan
        task = call.task
        if task is not None:
            reply = task_replies.get(task)
            if callable(reply):
                return reply(call)
            if reply is not None:
                return reply
            return {"reasoning": f"working on {task}", "toolCalls": [], "result": {"handled": task}}
        return chat_text

    return handler


def make_plan(*steps: Dict[str, Any]) -> Dict[str, Any]:
    return {"approach": "test approach", "agentWorkflow": list(steps), "expectedOutcome": "done"}


def make_step(step_id: Any, dependencies: Any = (), role: Optional[str] = "research", **extra: Any) -> Dict[str, Any]:
    step = {"id": step_id, "task": str(step_id), "reasoning": f"because {step_id}", "dependencies": list(dependencies)}
    if role is not None:
        step["agentType"] = role
    step.update(extra)
    return step


@pytest.fixture(autouse=True)
def _isolate_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear provider keys that can leak into tests on developer machines."""
    for key in ("GEMINI_API_KEY", "OPENAI_API_KEY", "GLM_API_KEY", "KIMI_API_KEY", "DEEPSEEK_API_KEY"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def plan_factory() -> Callable[..., Dict[str, Any]]:
    return make_plan


@pytest.fixture
def step_factory() -> Callable[..., Dict[str, Any]]:
    return make_step


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeCompletionClient]:
    return FakeCompletionClient


@pytest.fixture
def make_orchestrator():
    """Build an isolated orchestrator over a scripted client.

    Returns a callable ``(config=None, **script) -> (orchestrator, client)``
    where ``script`` is passed to ``orchestrator_script``.
    """

    def _make(config: Optional[OrchestratorConfig] = None, **script: Any):
        client = FakeCompletionClient(orchestrator_script(**script))
        observer = AgentObserver()
        factory = AgentFactory(client, default_tool_registry(), observer=observer)
        orchestrator = AgentOrchestrator(client, factory, config=config, observer=observer)
        return orchestrator, client

    return _make
