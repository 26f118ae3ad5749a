"""Agent and inter-agent message models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Union


class MessageKind(str, Enum):
    """Kinds of inter-agent messages."""

    TASK_REQUEST = "TASK_REQUEST"
    TASK_RESPONSE = "TASK_RESPONSE"
    DATA_UPDATE = "DATA_UPDATE"
    STATUS_UPDATE = "STATUS_UPDATE"
    ERROR = "ERROR"


class Priority(str, Enum):
    """Message priority."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class TaskRequestPayload:
    """Orchestrator asks an agent to run a task."""

    KIND: ClassVar[MessageKind] = MessageKind.TASK_REQUEST

    task_id: str
    task_type: str
    input: dict


@dataclass(frozen=True)
class TaskResponsePayload:
    """Agent reports a completed task."""

    KIND: ClassVar[MessageKind] = MessageKind.TASK_RESPONSE

    task_id: str
    output: Any


@dataclass(frozen=True)
class DataUpdatePayload:
    """Agent changed shared data (e.g. a user profile)."""

    KIND: ClassVar[MessageKind] = MessageKind.DATA_UPDATE

    entity: str
    data: dict


@dataclass(frozen=True)
class StatusUpdatePayload:
    KIND: ClassVar[MessageKind] = MessageKind.STATUS_UPDATE

    status: str
    detail: str = ""


@dataclass(frozen=True)
class ErrorPayload:
    """Agent reports a failed task."""

    KIND: ClassVar[MessageKind] = MessageKind.ERROR

    task_id: str
    error: str


MessagePayload = Union[
    TaskRequestPayload,
    TaskResponsePayload,
    DataUpdatePayload,
    StatusUpdatePayload,
    ErrorPayload,
]


@dataclass(frozen=True)
class AgentMessage:
    """An immutable message placed on the bus and in one mailbox."""

    id: str
    sender: str
    recipient: str
    payload: MessagePayload
    timestamp: datetime
    priority: Priority = Priority.MEDIUM

    @property
    def kind(self) -> MessageKind:
        return self.payload.KIND


@dataclass
class Agent:
    """A named worker responsible for one pipeline stage."""

    id: str
    name: str
    capabilities: tuple[str, ...]
    is_active: bool = True
    current_task: str | None = None
    mailbox: list[AgentMessage] = field(default_factory=list)

    @property
    def is_idle(self) -> bool:
        return self.is_active and self.current_task is None
