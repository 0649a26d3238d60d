"""Multi-agent orchestration core.

Specialized career agents (coach, resume optimizer, job matcher, research,
writing, interview prep) are built by an ``AgentFactory`` and coordinated by an
``AgentOrchestrator`` that plans and executes a dependency-ordered workflow.
"""

from .protocol import (
    AgentAssignment,
    AgentMemory,
    AgentState,
    AgentThought,
    GoalOutcome,
    OrchestratorState,
    OrchestratorStatus,
    Task,
    TaskResultRecord,
    TaskStatus,
    ThoughtType,
)
from .roles import ROLE_CONFIGS, AgentRoleConfig, describe_role_catalog
from .schemas import (
    AgentTaskReply,
    ChatRoutingDecision,
    LearningUpdate,
    ParseOutcome,
    TaskBreakdown,
    WorkflowPlan,
    WorkflowStep,
    parse_json_object,
    parse_reply,
)
from .base import Agent
from .factory import AgentFactory
from .orchestrator import AgentOrchestrator, OrchestratorConfig

__all__ = [
    "AgentAssignment",
    "AgentMemory",
    "AgentState",
    "AgentThought",
    "GoalOutcome",
    "OrchestratorState",
    "OrchestratorStatus",
    "Task",
    "TaskResultRecord",
    "TaskStatus",
    "ThoughtType",
    "ROLE_CONFIGS",
    "AgentRoleConfig",
    "describe_role_catalog",
    "AgentTaskReply",
    "ChatRoutingDecision",
    "LearningUpdate",
    "ParseOutcome",
    "TaskBreakdown",
    "WorkflowPlan",
    "WorkflowStep",
    "parse_json_object",
    "parse_reply",
    "Agent",
    "AgentFactory",
    "AgentOrchestrator",
    "OrchestratorConfig",
]
