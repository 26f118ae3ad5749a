"""System, agent and task status routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter

from ...app import Application


class SystemStatusResponse(BaseModel):
    active_agents: int
    pending_tasks: int
    in_flight_tasks: int
    total_messages: int


class AgentStatusResponse(BaseModel):
    id: str
    name: str
    capabilities: list[str]
    is_active: bool
    current_task: str | None
    mailbox_size: int


class TaskStatusResponse(BaseModel):
    id: str
    type: str
    status: str
    input: dict[str, Any]
    output: dict[str, Any] | None
    error: str | None
    assigned_agent: str | None
    created_at: datetime
    completed_at: datetime | None


def create_status_router(app: Application) -> APIRouter:
    """Create status router."""
    router = APIRouter(prefix="/api/status", tags=["status"])

    @router.get("/system", response_model=SystemStatusResponse)
    async def system_status() -> dict:
        s = app.task_manager.system_status()
        return {
            "active_agents": s.active_agents,
            "pending_tasks": s.pending_tasks,
            "in_flight_tasks": s.in_flight_tasks,
            "total_messages": s.total_messages,
        }

    @router.get("/agents", response_model=list[AgentStatusResponse])
    async def agent_status() -> list[dict]:
        return [
            {
                "id": agent.id,
                "name": agent.name,
                "capabilities": list(agent.capabilities),
                "is_active": agent.is_active,
                "current_task": agent.current_task,
                "mailbox_size": len(agent.mailbox),
            }
            for agent in app.registry.agents()
        ]

    @router.get("/tasks", response_model=list[TaskStatusResponse])
    async def task_status() -> list[dict]:
        app.prune_tasks()
        return [
            {
                "id": task.id,
                "type": task.type.value,
                "status": task.status.value,
                "input": task.input,
                "output": task.output,
                "error": task.error,
                "assigned_agent": task.assigned_agent,
                "created_at": task.created_at,
                "completed_at": task.completed_at,
            }
            for task in app.task_manager.tasks()
        ]

    return router
