"""Structured reply contracts for completion backend JSON output.

Each reply shape is a pydantic model that tolerates missing fields. Parsing
never raises: ``parse_reply`` returns a ``ParseOutcome`` holding either the
validated model or an error message, and callers decide what a failure means.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MalformedResponseError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class ParseOutcome(Generic[T]):
    """Either a parsed value or a parse error."""

    value: Optional[T] = None
    error: Optional[str] = None
    raw_text: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, raw_text: str = "") -> "ParseOutcome[T]":
        return cls(value=value, raw_text=raw_text)

    @classmethod
    def failure(cls, error: str, raw_text: str = "") -> "ParseOutcome[T]":
        return cls(error=error, raw_text=raw_text)

    def unwrap(self) -> T:
        """Return the value or raise ``MalformedResponseError``."""
        if self.error is not None:
            raise MalformedResponseError(self.error, raw_text=self.raw_text)
        return self.value


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _as_id_list(value: Any) -> List[str]:
    return [str(v).strip() for v in _as_list(value) if v is not None and str(v).strip()]


class _ReplyModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WorkflowStep(_ReplyModel):
    id: Optional[str] = None
    agent_type: Optional[str] = Field(default=None, alias="agentType")
    task: Optional[str] = None
    reasoning: str = ""
    dependencies: List[str] = Field(default_factory=list)

    @field_validator("id", "agent_type", "task", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _coerce_dependencies(cls, value: Any) -> List[str]:
        return _as_id_list(value)


class WorkflowPlan(_ReplyModel):
    approach: str = ""
    agent_workflow: List[WorkflowStep] = Field(default_factory=list, alias="agentWorkflow")
    expected_outcome: str = Field(default="", alias="expectedOutcome")

    @field_validator("agent_workflow", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("approach", "expected_outcome", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ChatRoutingDecision(_ReplyModel):
    requires_agents: bool = Field(default=False, alias="requiresAgents")
    reasoning: str = ""
    suggested_agent: Optional[str] = Field(default=None, alias="suggestedAgent")
    direct_response: Optional[str] = Field(default=None, alias="directResponse")

    @field_validator("requires_agents", mode="before")
    @classmethod
    def _none_to_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def routed_agent(self) -> Optional[str]:
        """Suggested role, or None when the reply names no agent."""
        agent = (self.suggested_agent or "").strip()
        if not agent or agent.lower() == "none":
            return None
        return agent


class ToolCallRequest(_ReplyModel):
    tool: str
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value


class AgentTaskReply(_ReplyModel):
    reasoning: str = ""
    tool_calls: List[ToolCallRequest] = Field(default_factory=list, alias="toolCalls")
    result: Dict[str, Any] = Field(default_factory=dict)
    next_steps: Optional[str] = Field(default=None, alias="nextSteps")

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("result", mode="before")
    @classmethod
    def _wrap_scalar_result(cls, value: Any) -> Dict[str, Any]:
        if value is None:
            return {}
        if isinstance(value, dict):
            return value
        return {"output": value}

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)


class PlannedTask(_ReplyModel):
    id: str
    description: str
    priority: str = "medium"
    dependencies: List[str] = Field(default_factory=list)
    required_tools: List[str] = Field(default_factory=list, alias="requiredTools")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("dependencies", "required_tools", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[str]:
        return _as_id_list(value)


class TaskBreakdown(_ReplyModel):
    tasks: List[PlannedTask] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("tasks", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> List[Any]:
        return _as_list(value)


class LearningUpdate(_ReplyModel):
    facts: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)
    learnings: List[str] = Field(default_factory=list)

    @field_validator("facts", "learnings", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[str]:
        return [str(v) for v in _as_list(value)]

    @field_validator("preferences", mode="before")
    @classmethod
    def _none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value


# Sent as response_schema so the backend constrains the breakdown shape.
TASK_BREAKDOWN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "description": {"type": "string"},
                    "priority": {"type": "string", "enum": ["low", "medium", "high", "critical"]},
                    "dependencies": {"type": "array", "items": {"type": "string"}},
                    "requiredTools": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["id", "description", "priority", "dependencies", "requiredTools"],
            },
        },
        "reasoning": {"type": "string"},
    },
    "required": ["tasks", "reasoning"],
}


def parse_json_object(text: Optional[str]) -> ParseOutcome[Dict[str, Any]]:
    """Parse ``text`` as a JSON object, tolerating a surrounding markdown code fence."""
    raw = (text or "").strip()
    if not raw:
        return ParseOutcome.failure("Empty response", raw_text=raw)

    fenced = _CODE_FENCE.match(raw)
    candidate = fenced.group(1) if fenced else raw
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return ParseOutcome.failure(f"Response is not valid JSON: {e}", raw_text=raw)

    if not isinstance(data, dict):
        return ParseOutcome.failure(f"Expected a JSON object, got {type(data).__name__}", raw_text=raw)
    return ParseOutcome.success(data, raw_text=raw)


def parse_reply(text: Optional[str], model_cls: Type[M]) -> ParseOutcome[M]:
    """Parse ``text`` into ``model_cls``; never raises."""
    parsed = parse_json_object(text)
    if not parsed.ok:
        return ParseOutcome.failure(parsed.error, raw_text=parsed.raw_text)
    try:
        return ParseOutcome.success(model_cls.model_validate(parsed.value), raw_text=parsed.raw_text)
    except ValidationError as e:
        return ParseOutcome.failure(
            f"Response does not match {model_cls.__name__}: {e.error_count()} validation error(s)",
            raw_text=parsed.raw_text,
        )
