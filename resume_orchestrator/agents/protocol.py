"""Data model shared by the agents and the orchestrator."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


_ALLOWED_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.FAILED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}


class OrchestratorStatus(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class ThoughtType(str, Enum):
    OBSERVATION = "observation"
    REASONING = "reasoning"
    PLAN = "plan"
    ACTION = "action"
    RESULT = "result"


@dataclass
class Task:
    """One unit of planned work assigned to a single agent role.

    Attributes:
        id: Unique identifier within its workflow
        description: What the agent should do
        assigned_agent_role: Role key used to resolve the agent
        dependencies: Ids of tasks in the same workflow that must complete first
        status: Lifecycle state; only moves forward
        result: Opaque result produced by the agent
    """

    id: str
    description: str
    assigned_agent_role: str = ""
    dependencies: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    priority: str = "high"
    error: Optional[str] = None

    def transition_to(self, status: TaskStatus) -> None:
        """Move to ``status``.

        Raises:
            ValueError: If the transition would move the task backwards
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Task {self.id}: illegal transition {self.status.value} -> {status.value}")
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "assigned_agent_role": self.assigned_agent_role,
            "dependencies": list(self.dependencies),
            "result": self.result,
            "priority": self.priority,
            "error": self.error,
        }


@dataclass
class AgentAssignment:
    """Audit record pairing a planned task with the planner's reasoning."""

    agent_role: str
    task: Task
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"agent_role": self.agent_role, "task_id": self.task.id, "reasoning": self.reasoning}


@dataclass
class TaskResultRecord:
    task_id: str
    agent_role: str
    result: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"task_id": self.task_id, "agent_role": self.agent_role, "result": self.result}


@dataclass
class OrchestratorState:
    """Mutable state of one orchestrator; replaced wholesale on reset."""

    tasks: List[Task] = field(default_factory=list)
    agent_assignments: List[AgentAssignment] = field(default_factory=list)
    results: List[TaskResultRecord] = field(default_factory=list)
    status: OrchestratorStatus = OrchestratorStatus.IDLE

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "agent_assignments": [a.to_dict() for a in self.agent_assignments],
            "results": [r.to_dict() for r in self.results],
            "status": self.status.value,
        }


@dataclass
class GoalOutcome:
    """Summary returned by ``AgentOrchestrator.achieve_goal``."""

    goal: str
    results: List[TaskResultRecord]
    agents_used: List[str]
    tasks_completed: int
    total_tasks: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goal": self.goal,
            "results": [r.to_dict() for r in self.results],
            "agents_used": list(self.agents_used),
            "tasks_completed": self.tasks_completed,
            "total_tasks": self.total_tasks,
        }


@dataclass
class AgentThought:
    type: ThoughtType
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "content": self.content, "timestamp": self.timestamp.isoformat()}


@dataclass
class AgentMemory:
    """Short-term conversation turns plus long-term learned knowledge."""

    short_term: List[Dict[str, str]] = field(default_factory=list)
    facts: List[str] = field(default_factory=list)
    preferences: Dict[str, Any] = field(default_factory=dict)
    learnings: List[str] = field(default_factory=list)

    def long_term_dict(self) -> Dict[str, Any]:
        return {"facts": self.facts, "preferences": self.preferences, "learnings": self.learnings}


@dataclass
class AgentState:
    """Observability snapshot of an agent."""

    thoughts: List[AgentThought] = field(default_factory=list)
    memory: AgentMemory = field(default_factory=AgentMemory)
    current_task: Optional[Task] = None
    task_queue: List[Task] = field(default_factory=list)
    completed_tasks: List[Task] = field(default_factory=list)

    def snapshot(self) -> "AgentState":
        return copy.deepcopy(self)
