"""EchoShop core module."""

from .app import Application, IApplication
from .knowledge import IKnowledgeStore, KnowledgeStore
from .llm import ILLMProvider, LLMProvider, RuleBasedResponder, ShopAssistant
from .message_bus import IMessageBus, MessageBus
from .models import (
    Agent,
    AgentMessage,
    AgentTask,
    MessageKind,
    Priority,
    Recommendation,
    Restaurant,
    TaskStatus,
    TaskType,
    TraceEvent,
    UserProfile,
)
from .ordering import CartService
from .pipeline import PipelineCoordinator, PipelineResult
from .registry import AgentRegistry, IAgentRegistry
from .routing import CapabilityRouter, ICapabilityRouter
from .storage import IStorage, Storage
from .tasks import ITaskManager, TaskManager
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Agent",
    "AgentMessage",
    "AgentTask",
    "MessageKind",
    "Priority",
    "TaskStatus",
    "TaskType",
    "UserProfile",
    "Restaurant",
    "Recommendation",
    "TraceEvent",
    # Components
    "IStorage",
    "Storage",
    "IAgentRegistry",
    "AgentRegistry",
    "IMessageBus",
    "MessageBus",
    "ICapabilityRouter",
    "CapabilityRouter",
    "ITaskManager",
    "TaskManager",
    "IKnowledgeStore",
    "KnowledgeStore",
    "CartService",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMProvider",
    "ShopAssistant",
    "RuleBasedResponder",
    "PipelineCoordinator",
    "PipelineResult",
]
