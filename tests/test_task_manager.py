"""Tests for TaskManager."""

import asyncio
from datetime import timedelta

import pytest

from echoshop.errors import InvalidTransitionError, TaskTimeoutError, UnknownTaskError
from echoshop.models import MessageKind, Priority, TaskStatus, TaskType
from echoshop.tasks import REQUESTER, TaskManager


class GatedHandlers:
    """Stage handlers whose single handler blocks until released."""

    def __init__(self, fail: bool = False):
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self._fail = fail

    def for_type(self, task_type):
        async def handler(task_input: dict) -> dict:
            self.started.set()
            await self.gate.wait()
            if self._fail:
                raise RuntimeError("stage exploded")
            return {"echo": task_input}

        return handler


@pytest.fixture
def gated_manager(router, registry, message_bus):
    handlers = GatedHandlers()
    manager = TaskManager(
        router=router, registry=registry, message_bus=message_bus, handlers=handlers
    )
    return manager, handlers


class TestCreateTask:
    """Tests for synchronous task execution."""

    @pytest.mark.asyncio
    async def test_task_completes(self, task_manager, registry):
        """Test PENDING -> IN_PROGRESS -> COMPLETED with output and agent released."""
        task = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        assert task.status is TaskStatus.COMPLETED
        assert task.assigned_agent == "discovery"
        assert task.output["restaurants"]
        assert task.completed_at is not None
        assert task.created_at <= task.completed_at
        assert registry.get("discovery").current_task is None

    @pytest.mark.asyncio
    async def test_task_messages(self, task_manager, message_bus):
        """Test that a request goes to the agent and a response comes back."""
        task = await task_manager.create_task(
            TaskType.RECOMMENDATION_GENERATION, {"user_id": "1"}, priority=Priority.HIGH
        )

        request, response = message_bus.messages
        assert request.kind is MessageKind.TASK_REQUEST
        assert request.sender == REQUESTER
        assert request.recipient == "recommendation"
        assert request.priority is Priority.HIGH
        assert request.payload.task_id == task.id

        assert response.kind is MessageKind.TASK_RESPONSE
        assert response.sender == "recommendation"
        assert response.recipient == REQUESTER
        assert response.priority is Priority.HIGH
        assert response.payload.output == task.output

    @pytest.mark.asyncio
    async def test_failed_task(self, task_manager, registry, message_bus):
        """Test that a handler error fails the task and frees the agent."""
        task = await task_manager.create_task(TaskType.VOICE_INPUT, {})

        assert task.status is TaskStatus.FAILED
        assert task.error
        assert task.output is None
        assert task.completed_at is not None
        assert registry.get("voice-input").current_task is None

        error = message_bus.messages[-1]
        assert error.kind is MessageKind.ERROR
        assert error.priority is Priority.CRITICAL
        assert error.payload.task_id == task.id

    @pytest.mark.asyncio
    async def test_no_idle_agent_leaves_task_pending(self, task_manager, registry, message_bus):
        """Test that a routing miss keeps the task PENDING and emits a status update."""
        registry.assign("discovery", "someone_else")

        task = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        assert task.status is TaskStatus.PENDING
        assert task.assigned_agent is None
        status = message_bus.messages[-1]
        assert status.kind is MessageKind.STATUS_UPDATE
        assert status.priority is Priority.LOW
        assert status.payload.status == "unassigned"

    @pytest.mark.asyncio
    async def test_assign_pending_retries(self, task_manager, registry):
        registry.assign("discovery", "someone_else")
        task = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        registry.release("discovery", "someone_else")
        assigned = await task_manager.assign_pending()

        assert assigned == [task]
        assert task.status is TaskStatus.COMPLETED


class TestLifecycle:
    """Tests for the status state machine and agent ownership."""

    @pytest.mark.asyncio
    async def test_agent_holds_task_only_while_in_progress(self, gated_manager, registry):
        manager, handlers = gated_manager

        task = await manager.create_task(TaskType.ORDER_PROCESSING, {}, wait=False)
        await handlers.started.wait()

        assert task.status is TaskStatus.IN_PROGRESS
        assert registry.get("ordering").current_task == task.id

        handlers.gate.set()
        await manager.wait_for(task.id)

        assert task.status is TaskStatus.COMPLETED
        assert registry.get("ordering").current_task is None

    @pytest.mark.asyncio
    async def test_busy_agent_blocks_second_task(self, gated_manager):
        manager, handlers = gated_manager

        first = await manager.create_task(TaskType.ORDER_PROCESSING, {}, wait=False)
        second = await manager.create_task(TaskType.ORDER_PROCESSING, {}, wait=False)

        assert first.status is TaskStatus.IN_PROGRESS
        assert second.status is TaskStatus.PENDING

        handlers.gate.set()
        await manager.wait_for(first.id)
        await manager.assign_pending(wait=True)

        assert second.status is TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_terminal_status_cannot_change(self, task_manager):
        task = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        with pytest.raises(InvalidTransitionError):
            task_manager._transition(task, TaskStatus.IN_PROGRESS)
        with pytest.raises(InvalidTransitionError):
            task_manager._transition(task, TaskStatus.FAILED)

    @pytest.mark.asyncio
    async def test_pending_cannot_skip_to_completed(self, task_manager, registry):
        registry.assign("discovery", "someone_else")
        task = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        with pytest.raises(InvalidTransitionError):
            task_manager._transition(task, TaskStatus.COMPLETED)


class TestWaitFor:
    """Tests for background execution and waiting."""

    @pytest.mark.asyncio
    async def test_wait_false_then_wait_for(self, task_manager):
        task = await task_manager.create_task(
            TaskType.RESTAURANT_SEARCH, {"user_id": "1"}, wait=False
        )
        done = await task_manager.wait_for(task.id)

        assert done is task
        assert done.status is TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_wait_for_failed_task(self, gated_manager):
        manager, _ = gated_manager
        manager._handlers = GatedHandlers(fail=True)
        manager._handlers.gate.set()

        task = await manager.create_task(TaskType.ORDER_PROCESSING, {}, wait=False)
        done = await manager.wait_for(task.id)

        assert done.status is TaskStatus.FAILED
        assert done.error == "stage exploded"

    @pytest.mark.asyncio
    async def test_wait_for_times_out(self, gated_manager):
        manager, handlers = gated_manager

        task = await manager.create_task(TaskType.ORDER_PROCESSING, {}, wait=False)

        with pytest.raises(TaskTimeoutError):
            await manager.wait_for(task.id, timeout=0.05)
        assert task.status is TaskStatus.IN_PROGRESS

        handlers.gate.set()
        await manager.wait_for(task.id)

    @pytest.mark.asyncio
    async def test_wait_for_unknown_task(self, task_manager):
        with pytest.raises(UnknownTaskError):
            await task_manager.wait_for("task_missing")


class TestBookkeeping:
    """Tests for status, pruning, persistence and tracing."""

    @pytest.mark.asyncio
    async def test_system_status(self, task_manager, registry):
        await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})
        registry.assign("ordering", "someone_else")
        await task_manager.create_task(TaskType.ORDER_PROCESSING, {})

        status = task_manager.system_status()
        assert status.active_agents == 7
        assert status.pending_tasks == 1
        assert status.in_flight_tasks == 0
        assert status.total_messages == 3

    @pytest.mark.asyncio
    async def test_prune_removes_old_terminal_tasks(self, task_manager, registry):
        done = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})
        registry.assign("ordering", "someone_else")
        pending = await task_manager.create_task(TaskType.ORDER_PROCESSING, {})

        assert task_manager.prune(timedelta(hours=1)) == 0
        assert task_manager.prune(timedelta(0)) == 1
        assert task_manager.tasks() == [pending]
        with pytest.raises(UnknownTaskError):
            task_manager.get(done.id)

    @pytest.mark.asyncio
    async def test_task_snapshot_persisted(self, task_manager, storage):
        task = await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        stored = await storage.get_task(task.id)
        assert stored is not None
        assert stored.status is TaskStatus.COMPLETED
        assert stored.assigned_agent == "discovery"
        assert stored.output == task.output

    @pytest.mark.asyncio
    async def test_lifecycle_trace_events(self, task_manager, storage):
        await task_manager.create_task(TaskType.RESTAURANT_SEARCH, {"user_id": "1"})

        events = await storage.get_trace_events(limit=100)
        types = {e.event_type for e in events}
        assert {"task_created", "task_assigned", "task_completed", "agent_message_sent"} <= types
