"""AgentOrchestrator - plans a task graph over the specialized agents and runs it."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Set, Tuple

from ..errors import (
    CompletionError,
    EmptyResponseError,
    OrchestratorBusyError,
    PlanningError,
    UnresolvableWorkflowError,
    WorkflowCancelledError,
)
from ..observability import AgentObserver
from ..skills.orchestrator_prompt import CHAT_ROUTING_PROMPT, WORKFLOW_PLANNING_PROMPT
from .base import Agent
from .factory import AgentFactory
from .protocol import (
    AgentAssignment,
    GoalOutcome,
    OrchestratorState,
    OrchestratorStatus,
    Task,
    TaskResultRecord,
    TaskStatus,
)
from .roles import DEFAULT_ROLE, describe_role_catalog
from .schemas import ChatRoutingDecision, WorkflowPlan, parse_reply

if TYPE_CHECKING:
    from ..llm import CompletionClient

logger = logging.getLogger(__name__)

ORCHESTRATOR_ID = "orchestrator"
CHAT_FALLBACK_RESPONSE = "I'm here to help! Could you provide more details?"
CHAT_ROUTED_FALLBACK_RESPONSE = "Let me help you with that."


@dataclass
class OrchestratorConfig:
    """Scheduler settings.

    Attributes:
        max_concurrency: Ready tasks started together; 1 runs strictly one at a time
        max_forced_drops: Deadlock recoveries allowed per run; None means one per task
    """

    max_concurrency: int = 1
    max_forced_drops: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OrchestratorConfig":
        data = data or {}
        max_forced_drops = data.get("max_forced_drops")
        return cls(
            max_concurrency=max(1, int(data.get("max_concurrency") or 1)),
            max_forced_drops=None if max_forced_drops is None else max(0, int(max_forced_drops)),
        )


class AgentOrchestrator:
    """Coordinates the specialized agents to achieve a goal.

    A run moves through ``idle -> planning -> executing -> completed | failed``.
    Planning asks the completion backend for a workflow of steps with declared
    dependencies; execution runs the earliest ready task in plan order until
    every task is terminal, forcing progress when the graph deadlocks.

    At most one ``achieve_goal`` or ``chat`` call may be in flight per
    instance; a second concurrent call raises ``OrchestratorBusyError``.
    """

    def __init__(
        self,
        client: CompletionClient,
        factory: AgentFactory,
        config: Optional[OrchestratorConfig] = None,
        observer: Optional[AgentObserver] = None,
    ):
        self.client = client
        self.factory = factory
        self.config = config or OrchestratorConfig()
        self.observer = observer or AgentObserver()
        self._state = OrchestratorState()
        self._active_agents: Dict[str, Agent] = {}
        self._busy = False

    @property
    def status(self) -> OrchestratorStatus:
        return self._state.status

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def agents_used(self) -> List[str]:
        """Roles resolved since the last plan, in first-use order."""
        return list(self._active_agents)

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[None]:
        if self._busy:
            raise OrchestratorBusyError(f"Orchestrator is busy; cannot start {operation}")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    async def achieve_goal(
        self,
        goal: str,
        context: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GoalOutcome:
        """Plan ``goal`` and execute the resulting workflow.

        Raises:
            OrchestratorBusyError: If another call is in flight
            PlanningError: If no usable plan was obtained (status stays ``planning``)
            UnresolvableWorkflowError: If deadlock recovery ran out of forced drops
            WorkflowCancelledError: If ``cancel_event`` was set before a task started
            Exception: Whatever a failing agent raised, unchanged
        """
        with self._exclusive("achieve_goal"):
            await self.plan_agent_workflow(goal, context)

            self._state.status = OrchestratorStatus.EXECUTING
            results = await self.execute_workflow(context, cancel_event=cancel_event)
            self._state.status = OrchestratorStatus.COMPLETED

            tasks = self._state.tasks
            return GoalOutcome(
                goal=goal,
                results=results,
                agents_used=self.agents_used,
                tasks_completed=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
                total_tasks=len(tasks),
            )

    async def plan_agent_workflow(self, goal: str, context: Optional[Dict[str, Any]] = None) -> WorkflowPlan:
        """Obtain a workflow plan and load it into state as pending tasks.

        Raises:
            PlanningError: If the backend call fails or the reply is not a usable plan
        """
        self._state.status = OrchestratorStatus.PLANNING
        prompt = WORKFLOW_PLANNING_PROMPT.format(
            role_catalog=describe_role_catalog(self.factory.role_configs),
            goal=goal,
            context=json.dumps(context or {}, ensure_ascii=False, default=str),
        )

        try:
            text = await self.client.complete(prompt, json_output=True, agent_id=ORCHESTRATOR_ID)
        except CompletionError as e:
            self.observer.log_error("planning", str(e), {"goal": goal[:200]}, agent_id=ORCHESTRATOR_ID)
            raise PlanningError(f"Planning call failed: {e}") from e

        outcome = parse_reply(text, WorkflowPlan)
        if not outcome.ok:
            self.observer.log_error("planning", outcome.error, {"goal": goal[:200]}, agent_id=ORCHESTRATOR_ID)
            raise PlanningError(f"Could not parse workflow plan: {outcome.error}", raw_text=outcome.raw_text)

        plan = outcome.value
        tasks, assignments, dropped = self._ingest_plan(plan)
        self._state.tasks = tasks
        self._state.agent_assignments = assignments
        self._state.results = []
        self._active_agents = {}

        if not tasks:
            logger.warning("Workflow plan for goal %r contains no steps", goal[:100])
        self.observer.log_plan(goal, [t.id for t in tasks], dropped_dependencies=dropped)
        return plan

    def _ingest_plan(self, plan: WorkflowPlan) -> Tuple[List[Task], List[AgentAssignment], int]:
        """Convert plan steps to tasks and repair the dependency graph."""
        tasks: List[Task] = []
        seen: Set[str] = set()
        for index, step in enumerate(plan.agent_workflow):
            task_id = step.id or f"task_{index}"
            if task_id in seen:
                renamed = f"{task_id}_{index}"
                while renamed in seen:
                    renamed = f"{renamed}_dup"
                logger.warning("Duplicate task id %r in plan; renamed to %r", task_id, renamed)
                task_id = renamed
            seen.add(task_id)

            role = step.agent_type or DEFAULT_ROLE
            if role not in self.factory:
                logger.warning("Plan step %s names unknown agent %r; assigning %s", task_id, role, DEFAULT_ROLE)
                role = DEFAULT_ROLE

            tasks.append(
                Task(
                    id=task_id,
                    description=step.task or f"Task {index}",
                    assigned_agent_role=role,
                    dependencies=list(dict.fromkeys(step.dependencies)),
                )
            )

        dropped = 0
        task_ids = {t.id for t in tasks}
        for task in tasks:
            valid = [dep for dep in task.dependencies if dep in task_ids]
            if len(valid) != len(task.dependencies):
                logger.warning(
                    "Task %s: dropping unknown dependencies %s",
                    task.id,
                    [dep for dep in task.dependencies if dep not in task_ids],
                )
            without_self = [dep for dep in valid if dep != task.id]
            dropped += len(task.dependencies) - len(without_self)
            task.dependencies = without_self

        assignments = [
            AgentAssignment(agent_role=task.assigned_agent_role, task=task, reasoning=step.reasoning)
            for task, step in zip(tasks, plan.agent_workflow)
        ]
        return tasks, assignments, dropped

    async def execute_workflow(
        self,
        context: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[TaskResultRecord]:
        """Run the planned tasks in dependency order.

        Each iteration picks the earliest ready pending task in plan order (up to
        ``max_concurrency`` of them). When pending tasks remain but none is
        ready, the first pending task has its dependencies cleared.

        Returns:
            Result records in completion order
        """
        tasks = self._state.tasks
        completed: Set[str] = {t.id for t in tasks if t.status == TaskStatus.COMPLETED}
        max_forced_drops = self.config.max_forced_drops
        if max_forced_drops is None:
            max_forced_drops = len(tasks)
        forced_drops = 0

        while any(not t.status.is_terminal for t in tasks):
            ready = [
                t for t in tasks if t.status == TaskStatus.PENDING and all(dep in completed for dep in t.dependencies)
            ][: self.config.max_concurrency]

            if not ready:
                pending = [t for t in tasks if t.status == TaskStatus.PENDING]
                if not pending:
                    break
                if forced_drops >= max_forced_drops:
                    self._state.status = OrchestratorStatus.FAILED
                    raise UnresolvableWorkflowError(
                        f"Workflow still deadlocked after {forced_drops} forced dependency drop(s)",
                        pending_task_ids=[t.id for t in pending],
                    )
                forced_drops += 1
                self.break_cycle_by_dependency_drop(pending)
                continue

            if cancel_event is not None and cancel_event.is_set():
                self._state.status = OrchestratorStatus.FAILED
                raise WorkflowCancelledError(f"Workflow cancelled before task {ready[0].id} started")

            if len(ready) == 1:
                await self._run_task(ready[0], context, completed)
                continue

            outcomes = await asyncio.gather(
                *(self._run_task(task, context, completed) for task in ready),
                return_exceptions=True,
            )
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    raise outcome

        return list(self._state.results)

    def break_cycle_by_dependency_drop(self, pending: List[Task]) -> Task:
        """Clear the first pending task's dependencies so it can run next."""
        forced = pending[0]
        dropped = list(forced.dependencies)
        forced.dependencies = []
        self.observer.log_deadlock(forced.id, [t.id for t in pending], dropped)
        return forced

    def _build_task_context(self, task: Task, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        dependency_results = []
        for dep_id in task.dependencies:
            dep = self._state.find_task(dep_id)
            dependency_results.append(dep.result if dep is not None else None)
        return {
            **(context or {}),
            "dependency_results": dependency_results,
            "previous_results": [record.to_dict() for record in self._state.results],
        }

    async def _run_task(self, task: Task, context: Optional[Dict[str, Any]], completed: Set[str]) -> Any:
        role = task.assigned_agent_role
        task.transition_to(TaskStatus.IN_PROGRESS)
        self.observer.log_task_start(task.id, role)
        start_time = time.time()

        try:
            agent = self._get_or_create_agent(role)
            result = await agent.execute_task(task, self._build_task_context(task, context))
        except (Exception, asyncio.CancelledError) as e:
            task.transition_to(TaskStatus.FAILED)
            task.error = str(e) or type(e).__name__
            self._state.status = OrchestratorStatus.FAILED
            self.observer.log_task_end(task.id, role, (time.time() - start_time) * 1000, success=False)
            self.observer.log_error("task_execution", task.error, {"task_id": task.id}, agent_id=role)
            raise

        task.transition_to(TaskStatus.COMPLETED)
        task.result = result
        completed.add(task.id)
        self._state.results.append(TaskResultRecord(task_id=task.id, agent_role=role, result=result))
        self.observer.log_task_end(task.id, role, (time.time() - start_time) * 1000, success=True)
        return result

    def _get_or_create_agent(self, role: str) -> Agent:
        agent = self._active_agents.get(role)
        if agent is None:
            agent = self.factory.get_agent(role)
            self._active_agents[role] = agent
        return agent

    async def chat(self, message: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Answer directly or route the message to one specialized agent.

        A blank or unparseable routing reply yields a safe direct response.

        Raises:
            OrchestratorBusyError: If another call is in flight
            CompletionError: If the classification call itself fails
        """
        with self._exclusive("chat"):
            prompt = CHAT_ROUTING_PROMPT.format(
                message=message,
                context=json.dumps(context or {}, ensure_ascii=False, default=str),
                role_names=", ".join(self.factory.known_roles()),
            )
            try:
                text = await self.client.complete(prompt, json_output=True, agent_id=ORCHESTRATOR_ID)
            except EmptyResponseError:
                text = ""

            outcome = parse_reply(text, ChatRoutingDecision)
            if not outcome.ok:
                logger.warning("Chat routing reply unusable (%s); answering directly", outcome.error)
                return CHAT_FALLBACK_RESPONSE

            decision = outcome.value
            if not decision.requires_agents:
                return decision.direct_response or CHAT_FALLBACK_RESPONSE

            role = decision.routed_agent
            if role is not None:
                if role in self.factory:
                    return await self._get_or_create_agent(role).chat(message, context)
                logger.warning("Chat routing suggested unknown agent %r; answering directly", role)
            return decision.direct_response or CHAT_ROUTED_FALLBACK_RESPONSE

    def get_state(self) -> OrchestratorState:
        """Deep-copied snapshot of the current state."""
        return copy.deepcopy(self._state)

    def reset(self) -> None:
        """Return to a fresh idle state and drop active agent references.

        The factory's agent cache is left untouched.

        Raises:
            OrchestratorBusyError: If a call is in flight
        """
        if self._busy:
            raise OrchestratorBusyError("Orchestrator is busy; cannot reset")
        self._state = OrchestratorState()
        self._active_agents = {}
