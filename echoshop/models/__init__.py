"""Core data models for EchoShop."""

from .agents import (
    Agent,
    AgentMessage,
    DataUpdatePayload,
    ErrorPayload,
    MessageKind,
    MessagePayload,
    Priority,
    StatusUpdatePayload,
    TaskRequestPayload,
    TaskResponsePayload,
)
from .knowledge import (
    Dish,
    GraphNode,
    GraphRelationship,
    NodeType,
    OrderRecord,
    Recommendation,
    RelationshipType,
    Restaurant,
    UserProfile,
)
from .orders import CartItem
from .tasks import AgentTask, TaskStatus, TaskType
from .tracing import TraceEvent

__all__ = [
    # Agents
    "Agent",
    "AgentMessage",
    "MessageKind",
    "MessagePayload",
    "Priority",
    "TaskRequestPayload",
    "TaskResponsePayload",
    "DataUpdatePayload",
    "StatusUpdatePayload",
    "ErrorPayload",
    # Tasks
    "AgentTask",
    "TaskStatus",
    "TaskType",
    # Knowledge
    "GraphNode",
    "GraphRelationship",
    "NodeType",
    "RelationshipType",
    "UserProfile",
    "OrderRecord",
    "Dish",
    "Restaurant",
    "Recommendation",
    # Orders
    "CartItem",
    # Tracing
    "TraceEvent",
]
