"""Task lifecycle models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TaskType(str, Enum):
    """The seven fixed kinds of pipeline work."""

    VOICE_INPUT = "VOICE_INPUT"
    INTENT_CLASSIFICATION = "INTENT_CLASSIFICATION"
    PROFILE_UPDATE = "PROFILE_UPDATE"
    RESTAURANT_SEARCH = "RESTAURANT_SEARCH"
    ORDER_PROCESSING = "ORDER_PROCESSING"
    RECOMMENDATION_GENERATION = "RECOMMENDATION_GENERATION"
    RESPONSE_GENERATION = "RESPONSE_GENERATION"


class TaskStatus(str, Enum):
    """Task lifecycle state."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass
class AgentTask:
    """One unit of pipeline work."""

    id: str
    type: TaskType
    status: TaskStatus
    input: dict
    created_at: datetime
    output: dict | None = None
    completed_at: datetime | None = None
    assigned_agent: str | None = None
    error: str | None = None
