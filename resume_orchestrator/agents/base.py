"""Agent core: a persona and tool binding over the shared completion client."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set

from ..errors import UnresolvableWorkflowError
from ..skills.agent_prompt import (
    CHAT_SYSTEM_PROMPT,
    LEARNING_PROMPT,
    TASK_BREAKDOWN_PROMPT,
    TASK_EXECUTION_PROMPT,
)
from ..tools.base import ToolRegistry, ToolResult
from .protocol import AgentState, AgentThought, Task, TaskStatus, ThoughtType
from .roles import AgentRoleConfig
from .schemas import TASK_BREAKDOWN_SCHEMA, AgentTaskReply, LearningUpdate, TaskBreakdown, parse_reply

if TYPE_CHECKING:
    from ..llm import CompletionClient
    from ..observability import AgentObserver

logger = logging.getLogger(__name__)

RECENT_TOOL_CALLS = 3
RECENT_THOUGHTS = 5
RECENT_TURNS = 5


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


class Agent:
    """A specialized, LLM-backed agent.

    The agent frames calls to the completion backend with its role, system
    instruction and bound tools, and turns structured replies into tool calls
    and results. It keeps a private thought log and memory for observability;
    neither is ever read by the orchestrator's scheduler.

    Attributes:
        agent_id: Role key this agent was built for
        config: Persona and tool binding
        client: Shared completion client
        tools: Registry holding only the tools this role may call
    """

    def __init__(
        self,
        config: AgentRoleConfig,
        client: CompletionClient,
        tools: ToolRegistry,
        observer: Optional[AgentObserver] = None,
        agent_id: Optional[str] = None,
    ):
        self.config = config
        self.client = client
        self.tools = tools
        self.observer = observer
        self.agent_id = agent_id or config.name.lower().replace(" ", "_")
        self._state = AgentState()
        self._tool_call_history: List[Dict[str, Any]] = []

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def capabilities(self) -> List[str]:
        return list(self.config.capabilities)

    @property
    def tool_call_history(self) -> List[Dict[str, Any]]:
        return list(self._tool_call_history)

    def _add_thought(self, thought_type: ThoughtType, content: str) -> None:
        self._state.thoughts.append(AgentThought(type=thought_type, content=content))

    async def call_tool(self, tool_name: str, params: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Validate and execute one bound tool.

        Args:
            tool_name: Name of a tool bound to this agent
            params: Tool parameters as requested by the model

        Returns:
            The tool's result

        Raises:
            ToolNotFoundError: If the tool is not bound to this agent
            ToolInputError: If required parameters are missing
        """
        tool = self.tools.get(tool_name)
        params = dict(params or {})
        self._add_thought(ThoughtType.ACTION, f"Calling tool: {tool_name} with params: {_dump(params)}")

        start_time = time.time()
        try:
            result = await tool.execute(**tool.validate(params))
        except Exception as e:
            if self.observer:
                self.observer.log_tool_call(
                    tool_name, params, str(e), (time.time() - start_time) * 1000, success=False, agent_id=self.agent_id
                )
            self._add_thought(ThoughtType.OBSERVATION, f"Tool {tool_name} failed: {e}")
            raise

        if self.observer:
            self.observer.log_tool_call(
                tool_name,
                params,
                result.to_message(),
                (time.time() - start_time) * 1000,
                success=result.success,
                agent_id=self.agent_id,
            )
        self._tool_call_history.append({"tool": tool_name, "params": params, "result": result.data or result.output})
        self._add_thought(ThoughtType.OBSERVATION, f"Tool {tool_name} returned: {result.to_message()}")
        return result

    async def execute_task(self, task: Task, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Produce a result for ``task`` with one structured completion call.

        Requested tool calls run sequentially after the reply is parsed. The
        task's status is left to the caller.

        Returns:
            The reply's ``result`` object plus a ``tool_results`` list

        Raises:
            CompletionError: If the backend call fails
            MalformedResponseError: If the reply is not a valid task reply
        """
        self._state.current_task = task
        self._add_thought(ThoughtType.ACTION, f"Starting task: {task.description}")

        prompt = TASK_EXECUTION_PROMPT.format(
            name=self.config.name,
            task=task.description,
            context=_dump(context or {}),
            tools=_dump(self.tools.schemas()),
            recent_tool_calls=_dump(self._tool_call_history[-RECENT_TOOL_CALLS:]),
        )

        try:
            text = await self.client.complete(
                prompt,
                system_instruction=self.config.system_instruction,
                json_output=True,
                agent_id=self.agent_id,
            )
            reply = parse_reply(text, AgentTaskReply).unwrap()
            if reply.reasoning:
                self._add_thought(ThoughtType.REASONING, reply.reasoning)

            tool_results = []
            for call in reply.tool_calls:
                tool_result = await self.call_tool(call.tool, call.params)
                tool_results.append({"tool": call.tool, "result": asdict(tool_result)})
        except Exception as e:
            self._add_thought(ThoughtType.OBSERVATION, f"Task failed: {e}")
            logger.debug("Agent %s failed task %s: %s", self.agent_id, task.id, e)
            raise

        self._state.completed_tasks.append(task)
        self._add_thought(ThoughtType.RESULT, reply.next_steps or "Task completed successfully")
        return {**reply.result, "tool_results": tool_results}

    async def chat(self, message: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Single-turn reply in this agent's persona."""
        memory = self._state.memory
        thoughts = "\n".join(f"[{t.type.value}] {t.content}" for t in self._state.thoughts[-RECENT_THOUGHTS:])
        system_context = CHAT_SYSTEM_PROMPT.format(
            name=self.config.name,
            role=self.config.role,
            capabilities=", ".join(self.config.capabilities),
            facts=", ".join(memory.facts),
            preferences=_dump(memory.preferences),
            learnings=", ".join(memory.learnings),
            thoughts=thoughts or "(none)",
            context=_dump(context or {}),
            system_instruction=self.config.system_instruction,
        )

        memory.short_term.append({"role": "user", "text": message})
        reply = await self.client.complete(message, system_instruction=system_context, agent_id=self.agent_id)
        memory.short_term.append({"role": "assistant", "text": reply})
        return reply

    async def plan_tasks(self, goal: str) -> List[Task]:
        """Break ``goal`` into tasks and append them to this agent's queue."""
        self._add_thought(ThoughtType.PLAN, f"Planning tasks for goal: {goal}")

        history = "\n".join(f"{turn['role']}: {turn['text']}" for turn in self._state.memory.short_term[-RECENT_TURNS:])
        prompt = TASK_BREAKDOWN_PROMPT.format(
            name=self.config.name,
            role=self.config.role,
            capabilities=", ".join(self.config.capabilities),
            tools=_dump([{"name": t.name, "description": t.description} for t in self.tools]),
            goal=goal,
            history=history or "(none)",
        )
        text = await self.client.complete(
            prompt,
            system_instruction=self.config.system_instruction,
            json_output=True,
            response_schema=TASK_BREAKDOWN_SCHEMA,
            agent_id=self.agent_id,
        )
        breakdown = parse_reply(text, TaskBreakdown).unwrap()
        if breakdown.reasoning:
            self._add_thought(ThoughtType.REASONING, breakdown.reasoning)

        tasks = [
            Task(
                id=planned.id,
                description=planned.description,
                assigned_agent_role=self.agent_id,
                dependencies=list(planned.dependencies),
                priority=planned.priority,
            )
            for planned in breakdown.tasks
        ]
        self._state.task_queue.extend(tasks)
        return tasks

    async def achieve_goal(self, goal: str, context: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Plan ``goal`` and run the queued tasks in dependency order.

        Raises:
            UnresolvableWorkflowError: If no queued task can become ready
        """
        self._add_thought(ThoughtType.PLAN, f"New goal received: {goal}")
        await self.plan_tasks(goal)

        queue = self._state.task_queue
        done: Set[str] = set()
        results = []
        while queue:
            task = next((t for t in queue if all(dep in done for dep in t.dependencies)), None)
            if task is None:
                raise UnresolvableWorkflowError(
                    "Circular dependency detected in task queue",
                    pending_task_ids=[t.id for t in queue],
                )
            queue.remove(task)

            task.transition_to(TaskStatus.IN_PROGRESS)
            try:
                result = await self.execute_task(task, context)
            except Exception as e:
                task.transition_to(TaskStatus.FAILED)
                task.error = str(e)
                raise
            task.transition_to(TaskStatus.COMPLETED)
            task.result = result
            done.add(task.id)
            results.append(result)

        self._add_thought(ThoughtType.RESULT, "Goal achieved successfully")
        return results

    async def learn(self, feedback: str, context: Optional[Dict[str, Any]] = None) -> LearningUpdate:
        """Extract facts, preferences and learnings from feedback into long-term memory."""
        self._add_thought(ThoughtType.OBSERVATION, f"Received feedback: {feedback}")
        memory = self._state.memory
        prompt = LEARNING_PROMPT.format(
            feedback=feedback,
            context=_dump(context or {}),
            knowledge=_dump(memory.long_term_dict()),
        )
        text = await self.client.complete(prompt, json_output=True, agent_id=self.agent_id)
        update = parse_reply(text, LearningUpdate).unwrap()

        memory.facts.extend(update.facts)
        memory.preferences.update(update.preferences)
        memory.learnings.extend(update.learnings)
        return update

    def get_state(self) -> AgentState:
        """Deep-copied snapshot of thoughts, memory and queues."""
        return self._state.snapshot()

    def reset(self) -> None:
        self._state = AgentState()
        self._tool_call_history = []

    def __repr__(self) -> str:
        return f"Agent(agent_id={self.agent_id!r}, tools={self.tools.names()})"
