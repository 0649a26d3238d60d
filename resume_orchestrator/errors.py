"""Exception hierarchy for the orchestration core."""

from __future__ import annotations

from typing import Optional


class OrchestratorError(Exception):
    """Base class for all orchestration errors."""


class CompletionError(OrchestratorError):
    """The completion backend failed or returned an empty reply."""


class EmptyResponseError(CompletionError):
    """The completion backend answered with blank text."""


class MalformedResponseError(CompletionError):
    """A structured-output reply could not be parsed into the expected shape."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class PlanningError(OrchestratorError):
    """The workflow plan could not be obtained or parsed."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class UnresolvableWorkflowError(OrchestratorError):
    """Deadlock recovery gave up after its forced-drop budget was spent."""

    def __init__(self, message: str, pending_task_ids: Optional[list] = None):
        super().__init__(message)
        self.pending_task_ids = list(pending_task_ids or [])


class OrchestratorBusyError(OrchestratorError):
    """A goal or chat call is already in flight on this orchestrator."""


class WorkflowCancelledError(OrchestratorError):
    """The caller cancelled the workflow before the next task started."""


class UnknownAgentRoleError(OrchestratorError, KeyError):
    """No agent configuration exists for the requested role."""

    def __init__(self, role: str):
        super().__init__(f"Unknown agent role: {role!r}")
        self.role = role

    def __str__(self) -> str:
        return f"Unknown agent role: {self.role!r}"


class ToolNotFoundError(OrchestratorError, KeyError):
    """The requested tool is not registered or not bound to the agent."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool {tool_name} not found")
        self.tool_name = tool_name

    def __str__(self) -> str:
        return f"Tool {self.tool_name} not found"


class ToolInputError(OrchestratorError, ValueError):
    """A tool received missing or invalid parameters."""
