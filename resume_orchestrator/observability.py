"""Observability for orchestrator runs - structured events plus logging."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class AgentEvent:
    """A single event in an orchestrator or agent run."""

    timestamp: datetime
    event_type: str  # "llm_request", "tool_call", "plan", "task_start", "task_end", "deadlock", "error"
    data: Dict[str, Any] = field(default_factory=dict)
    duration_ms: Optional[float] = None
    agent_id: Optional[str] = None


class AgentObserver:
    """
    Collects events for a session and mirrors them to the ``resume_orchestrator`` logger.

    One observer is usually shared by the completion client, the agents and the
    orchestrator so that a whole goal run can be inspected from a single event list.
    """

    def __init__(self, agent_id: Optional[str] = None, verbose: bool = False):
        self.events: List[AgentEvent] = []
        self.logger = logging.getLogger("resume_orchestrator")
        self.agent_id = agent_id
        self.verbose = verbose
        if verbose:
            self.logger.setLevel(logging.INFO)

    def _prefix(self, agent_id: Optional[str]) -> str:
        use_id = agent_id or self.agent_id
        return f"[{use_id}] " if use_id else ""

    def _record(
        self,
        event_type: str,
        data: Dict[str, Any],
        duration_ms: Optional[float] = None,
        agent_id: Optional[str] = None,
    ) -> AgentEvent:
        event = AgentEvent(
            timestamp=datetime.now(),
            event_type=event_type,
            data=data,
            duration_ms=duration_ms,
            agent_id=agent_id or self.agent_id,
        )
        self.events.append(event)
        return event

    def log_llm_request(
        self,
        model: str,
        duration_ms: float,
        json_output: bool = False,
        prompt_chars: int = 0,
        agent_id: Optional[str] = None,
    ):
        """Log a completion backend request."""
        self._record(
            "llm_request",
            {"model": model, "json_output": json_output, "prompt_chars": prompt_chars},
            duration_ms=duration_ms,
            agent_id=agent_id,
        )
        mode = "json" if json_output else "text"
        self.logger.info(
            "%sLLM: %s | %s | %d chars | %.2fms",
            self._prefix(agent_id),
            model,
            mode,
            prompt_chars,
            duration_ms,
        )

    def log_tool_call(
        self,
        tool_name: str,
        args: Dict[str, Any],
        result: str,
        duration_ms: float,
        success: bool = True,
        agent_id: Optional[str] = None,
    ):
        """
        Log a tool execution.

        Args:
            tool_name: Name of the tool executed
            args: Arguments passed to the tool
            result: Result from tool execution
            duration_ms: Execution time in milliseconds
            success: Whether execution succeeded
        """
        self._record(
            "tool_call",
            {"tool": tool_name, "args": args, "result": result[:200], "success": success},
            duration_ms=duration_ms,
            agent_id=agent_id,
        )
        status = "ok" if success else "failed"
        self.logger.info("%sTool: %s %s (%.2fms)", self._prefix(agent_id), tool_name, status, duration_ms)

    def log_plan(self, goal: str, task_ids: List[str], dropped_dependencies: int = 0):
        """Log the outcome of a planning call."""
        self._record(
            "plan",
            {"goal": goal[:200], "task_ids": list(task_ids), "dropped_dependencies": dropped_dependencies},
        )
        self.logger.info(
            "Planned %d task(s) for goal %r (dropped %d invalid dependencies)",
            len(task_ids),
            goal[:100],
            dropped_dependencies,
        )

    def log_task_start(self, task_id: str, agent_role: str):
        self._record("task_start", {"task_id": task_id}, agent_id=agent_role)
        self.logger.info("%sTask %s started", self._prefix(agent_role), task_id)

    def log_task_end(self, task_id: str, agent_role: str, duration_ms: float, success: bool = True):
        self._record("task_end", {"task_id": task_id, "success": success}, duration_ms=duration_ms, agent_id=agent_role)
        status = "completed" if success else "failed"
        self.logger.info("%sTask %s %s (%.2fms)", self._prefix(agent_role), task_id, status, duration_ms)

    def log_deadlock(self, forced_task_id: str, pending_task_ids: List[str], dropped: List[str]):
        """Log a forced dependency drop made to break a scheduling deadlock."""
        self._record(
            "deadlock",
            {"forced_task_id": forced_task_id, "pending": list(pending_task_ids), "dropped": list(dropped)},
        )
        self.logger.warning(
            "Deadlock detected among %s; breaking it by forcing task %s (dropped dependencies: %s)",
            pending_task_ids,
            forced_task_id,
            dropped,
        )

    def log_error(
        self,
        error_type: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        agent_id: Optional[str] = None,
    ):
        """
        Log an error event.

        Args:
            error_type: Type of error (e.g., "planning", "task_execution", "llm_request")
            message: Error message
            context: Additional context about the error
        """
        self._record(
            "error",
            {"error_type": error_type, "message": message, "context": context or {}},
            agent_id=agent_id,
        )
        try:
            context_dump = json.dumps(context or {}, ensure_ascii=True, default=str)
        except (TypeError, ValueError):
            context_dump = str(context)
        self.logger.error("%sError (%s): %s %s", self._prefix(agent_id), error_type, message, context_dump)

    def get_session_stats(self) -> Dict[str, Any]:
        """
        Get aggregated statistics for the current session.

        Returns:
            Dictionary with session statistics
        """
        counts: Dict[str, int] = {}
        for event in self.events:
            counts[event.event_type] = counts.get(event.event_type, 0) + 1

        failed_tasks = sum(
            1 for e in self.events if e.event_type == "task_end" and not e.data.get("success", True)
        )
        llm_duration = sum(e.duration_ms or 0 for e in self.events if e.event_type == "llm_request")

        return {
            "event_count": len(self.events),
            "llm_requests": counts.get("llm_request", 0),
            "llm_duration_ms": llm_duration,
            "tool_calls": counts.get("tool_call", 0),
            "tasks_started": counts.get("task_start", 0),
            "tasks_failed": failed_tasks,
            "deadlocks_broken": counts.get("deadlock", 0),
            "errors": counts.get("error", 0),
        }

    def clear(self):
        """Clear all recorded events."""
        self.events.clear()
        self.logger.info("Observer events cleared")
