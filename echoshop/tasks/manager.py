"""Task lifecycle: creation, routing, execution and completion signalling."""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

from ..errors import InvalidTransitionError, TaskTimeoutError, UnknownTaskError
from ..logging_config import get_logger
from ..message_bus import IMessageBus
from ..models import (
    Agent,
    AgentTask,
    ErrorPayload,
    Priority,
    StatusUpdatePayload,
    TaskRequestPayload,
    TaskResponsePayload,
    TaskStatus,
    TaskType,
)
from ..registry import IAgentRegistry
from ..routing import ICapabilityRouter
from ..storage import IStorage
from ..tracker import ITracker
from .handlers import StageHandlers

logger = get_logger(__name__)

REQUESTER = "orchestrator"

_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


@dataclass
class SystemStatus:
    active_agents: int
    pending_tasks: int
    in_flight_tasks: int
    total_messages: int


class ITaskManager(Protocol):
    async def create_task(
        self,
        task_type: TaskType,
        task_input: dict,
        priority: Priority = Priority.MEDIUM,
        wait: bool = True,
    ) -> AgentTask:
        """Create a task and try to assign and run it."""
        ...

    async def wait_for(self, task_id: str, timeout: float | None = None) -> AgentTask:
        """Block until the task is terminal or the timeout expires."""
        ...

    def tasks(self) -> list[AgentTask]:
        """Every task created in this process (minus pruned ones)."""
        ...


class TaskManager:
    """Drives tasks through PENDING -> IN_PROGRESS -> COMPLETED | FAILED."""

    def __init__(
        self,
        router: ICapabilityRouter,
        registry: IAgentRegistry,
        message_bus: IMessageBus,
        handlers: StageHandlers,
        tracker: ITracker | None = None,
        storage: IStorage | None = None,
        wait_timeout: float = 10.0,
    ):
        self._router = router
        self._registry = registry
        self._bus = message_bus
        self._handlers = handlers
        self._tracker = tracker
        self._storage = storage
        self._wait_timeout = wait_timeout

        self._tasks: dict[str, AgentTask] = {}
        self._done: dict[str, asyncio.Event] = {}
        self._priorities: dict[str, Priority] = {}
        self._background: set[asyncio.Task] = set()

    async def create_task(
        self,
        task_type: TaskType,
        task_input: dict,
        priority: Priority = Priority.MEDIUM,
        wait: bool = True,
    ) -> AgentTask:
        """Create a task and try to assign it at once.

        With wait=True (the pipeline's mode) the stage handler runs before
        this returns. With wait=False execution is scheduled in the
        background and callers use wait_for().
        """
        task = AgentTask(
            id=f"task_{uuid.uuid4().hex}",
            type=task_type,
            status=TaskStatus.PENDING,
            input=task_input,
            created_at=datetime.now(timezone.utc),
        )
        self._tasks[task.id] = task
        self._done[task.id] = asyncio.Event()
        self._priorities[task.id] = priority

        logger.info("Task %s created (%s)", task.id, task_type.value)
        await self._record(task, "task_created")

        agent = self._router.route(task_type)
        if agent is None:
            await self._bus.send(
                sender=REQUESTER,
                recipient=REQUESTER,
                payload=StatusUpdatePayload(
                    status="unassigned",
                    detail=f"{task.id}: no idle agent for {task_type.value}",
                ),
                priority=Priority.LOW,
            )
            return task

        await self._assign(task, agent, wait=wait)
        return task

    async def assign_pending(self, wait: bool = True) -> list[AgentTask]:
        """Retry routing for every PENDING task; returns the ones assigned."""
        assigned = []
        for task in [t for t in self._tasks.values() if t.status is TaskStatus.PENDING]:
            agent = self._router.route(task.type)
            if agent is None:
                continue
            await self._assign(task, agent, wait=wait)
            assigned.append(task)
        return assigned

    async def _assign(self, task: AgentTask, agent: Agent, wait: bool) -> None:
        self._registry.assign(agent.id, task.id)
        task.assigned_agent = agent.id
        self._transition(task, TaskStatus.IN_PROGRESS)

        logger.info("Task %s assigned to %s", task.id, agent.id)
        await self._record(task, "task_assigned")

        await self._bus.send(
            sender=REQUESTER,
            recipient=agent.id,
            payload=TaskRequestPayload(
                task_id=task.id, task_type=task.type.value, input=task.input
            ),
            priority=self._priorities.get(task.id, Priority.MEDIUM),
        )

        if wait:
            await self._execute(task, agent)
        else:
            background = asyncio.create_task(self._execute(task, agent))
            self._background.add(background)
            background.add_done_callback(self._background.discard)

    async def _execute(self, task: AgentTask, agent: Agent) -> None:
        handler = self._handlers.for_type(task.type)
        try:
            output = await handler(task.input)
        except Exception as e:
            logger.error(
                "Task %s failed on agent %s: %s", task.id, agent.id, e, exc_info=True
            )
            task.error = str(e) or type(e).__name__
            task.completed_at = datetime.now(timezone.utc)
            self._transition(task, TaskStatus.FAILED)
            self._registry.release(agent.id, task.id)
            self._done[task.id].set()

            await self._record(task, "task_failed")
            await self._bus.send(
                sender=agent.id,
                recipient=REQUESTER,
                payload=ErrorPayload(task_id=task.id, error=task.error),
                priority=Priority.CRITICAL,
            )
            return

        task.output = output
        task.completed_at = datetime.now(timezone.utc)
        self._transition(task, TaskStatus.COMPLETED)
        self._registry.release(agent.id, task.id)
        self._done[task.id].set()

        logger.info("Task %s completed by %s", task.id, agent.id)
        await self._record(task, "task_completed")
        await self._bus.send(
            sender=agent.id,
            recipient=REQUESTER,
            payload=TaskResponsePayload(task_id=task.id, output=output),
            priority=Priority.HIGH,
        )

    def _transition(self, task: AgentTask, target: TaskStatus) -> None:
        if target not in _TRANSITIONS[task.status]:
            raise InvalidTransitionError(task.id, task.status.value, target.value)
        task.status = target

    async def _record(self, task: AgentTask, event_type: str) -> None:
        if self._storage is not None:
            await self._storage.save_task(task)
        if self._tracker is not None:
            await self._tracker.track(
                event_type=event_type,
                actor=f"agent:{task.assigned_agent}" if task.assigned_agent else REQUESTER,
                data={
                    "task_id": task.id,
                    "task_type": task.type.value,
                    "status": task.status.value,
                    "error": task.error,
                },
            )

    async def wait_for(self, task_id: str, timeout: float | None = None) -> AgentTask:
        """Wait on the task's completion event, bounded by timeout (default from settings)."""
        task = self.get(task_id)
        if task.status.is_terminal:
            return task

        budget = self._wait_timeout if timeout is None else timeout
        try:
            await asyncio.wait_for(self._done[task_id].wait(), budget)
        except asyncio.TimeoutError:
            raise TaskTimeoutError(f"Task {task_id} timed out after {budget}s") from None
        return task

    def get(self, task_id: str) -> AgentTask:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise UnknownTaskError(task_id) from None

    def tasks(self) -> list[AgentTask]:
        return list(self._tasks.values())

    def prune(self, retention: timedelta) -> int:
        """Evict terminal tasks that finished more than `retention` ago."""
        cutoff = datetime.now(timezone.utc) - retention
        expired = [
            task.id
            for task in self._tasks.values()
            if task.status.is_terminal and task.completed_at and task.completed_at < cutoff
        ]
        for task_id in expired:
            del self._tasks[task_id]
            self._done.pop(task_id, None)
            self._priorities.pop(task_id, None)
        return len(expired)

    def system_status(self) -> SystemStatus:
        return SystemStatus(
            active_agents=sum(1 for agent in self._registry.agents() if agent.is_active),
            pending_tasks=sum(1 for t in self._tasks.values() if t.status is TaskStatus.PENDING),
            in_flight_tasks=sum(
                1 for t in self._tasks.values() if t.status is TaskStatus.IN_PROGRESS
            ),
            total_messages=self._bus.total_messages,
        )
