"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from echoshop.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def registry():
    """Create the default seven-agent registry."""
    from echoshop.registry import AgentRegistry

    return AgentRegistry()


@pytest.fixture
def message_bus(registry, storage):
    """Create MessageBus with registry and storage."""
    from echoshop.message_bus import MessageBus

    return MessageBus(registry, storage)


@pytest_asyncio.fixture
async def tracker(message_bus, storage):
    """Create Tracker subscribed to the bus."""
    from echoshop.tracker import Tracker

    tr = Tracker(message_bus=message_bus, storage=storage)
    await tr.start()
    return tr


@pytest.fixture
def router(registry):
    """Create CapabilityRouter with the default strategy."""
    from echoshop.routing import CapabilityRouter

    return CapabilityRouter(registry)


@pytest.fixture
def knowledge():
    """Create knowledge store seeded with the demo users."""
    from echoshop.knowledge import KnowledgeStore

    return KnowledgeStore()


@pytest.fixture
def carts(knowledge):
    """Create cart service on top of the knowledge store."""
    from echoshop.ordering import CartService

    return CartService(knowledge)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


@pytest.fixture
def assistant(mock_llm):
    """Create ShopAssistant around the mock provider."""
    from echoshop.llm import ShopAssistant

    return ShopAssistant(mock_llm)


@pytest.fixture
def handlers(knowledge, assistant, carts, message_bus):
    """Create stage handlers."""
    from echoshop.tasks import StageHandlers

    return StageHandlers(
        knowledge=knowledge,
        assistant=assistant,
        carts=carts,
        message_bus=message_bus,
    )


@pytest.fixture
def task_manager(router, registry, message_bus, handlers, tracker, storage):
    """Create TaskManager wired to every component."""
    from echoshop.tasks import TaskManager

    return TaskManager(
        router=router,
        registry=registry,
        message_bus=message_bus,
        handlers=handlers,
        tracker=tracker,
        storage=storage,
        wait_timeout=1.0,
    )


@pytest.fixture
def coordinator(task_manager, tracker):
    """Create PipelineCoordinator without speech clients."""
    from echoshop.pipeline import PipelineCoordinator

    return PipelineCoordinator(task_manager=task_manager, tracker=tracker)
