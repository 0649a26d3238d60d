"""Orchestrator endpoints: goals, chat, state polling and reset."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_orchestrator
from .....agents.orchestrator import AgentOrchestrator
from .....agents.protocol import TaskStatus
from .....errors import OrchestratorBusyError
from ....errors import to_api_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orchestrator", tags=["orchestrator"])


class GoalRequest(BaseModel):
    goal: str = Field(min_length=1)
    context: Dict[str, Any] = Field(default_factory=dict)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    context: Dict[str, Any] = Field(default_factory=dict)


class TaskResultItem(BaseModel):
    task_id: str
    agent_role: str
    result: Any = None


class GoalResponse(BaseModel):
    goal: str
    results: List[TaskResultItem]
    agents_used: List[str]
    tasks_completed: int
    total_tasks: int


class ChatResponse(BaseModel):
    reply: str


class TaskItem(BaseModel):
    id: str
    description: str
    status: str
    assigned_agent_role: str
    dependencies: List[str]
    result: Any = None
    priority: str
    error: Optional[str] = None


class AssignmentItem(BaseModel):
    agent_role: str
    task_id: str
    reasoning: str


class StateResponse(BaseModel):
    status: str
    busy: bool
    tasks: List[TaskItem]
    agent_assignments: List[AssignmentItem]
    results: List[TaskResultItem]


@router.post("/goals", response_model=GoalResponse)
async def achieve_goal(
    request: GoalRequest,
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
) -> GoalResponse:
    try:
        outcome = await orchestrator.achieve_goal(request.goal, request.context)
    except OrchestratorBusyError as e:
        raise to_api_error(e) from e
    except Exception as e:
        state = orchestrator.get_state()
        failed = [t.id for t in state.tasks if t.status == TaskStatus.FAILED]
        logger.warning("Goal failed (status=%s, failed_tasks=%s): %s", state.status.value, failed, e)
        raise to_api_error(e, {"status": state.status.value, "failed_task_ids": failed}) from e
    return GoalResponse(**outcome.to_dict())


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    try:
        reply = await orchestrator.chat(request.message, request.context)
    except Exception as e:
        raise to_api_error(e) from e
    return ChatResponse(reply=reply)


@router.get("/state", response_model=StateResponse)
async def get_state(orchestrator: AgentOrchestrator = Depends(get_orchestrator)) -> StateResponse:
    return StateResponse(busy=orchestrator.is_busy, **orchestrator.get_state().to_dict())


@router.post("/reset", response_model=StateResponse)
async def reset(orchestrator: AgentOrchestrator = Depends(get_orchestrator)) -> StateResponse:
    try:
        orchestrator.reset()
    except OrchestratorBusyError as e:
        raise to_api_error(e) from e
    return StateResponse(busy=orchestrator.is_busy, **orchestrator.get_state().to_dict())
