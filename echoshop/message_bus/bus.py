"""Append-only inter-agent message bus."""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import AgentMessage, MessageKind, MessagePayload, Priority
from ..registry import IAgentRegistry
from ..storage import IStorage

logger = get_logger(__name__)


MessageHandler = Callable[[AgentMessage], Awaitable[None]]


class IMessageBus(Protocol):
    """Timestamped log of agent messages, each delivered to one mailbox."""

    def subscribe(self, kind: MessageKind, handler: MessageHandler) -> None:
        """Subscribe a handler to a message kind."""
        ...

    async def send(
        self,
        sender: str,
        recipient: str,
        payload: MessagePayload,
        priority: Priority = Priority.MEDIUM,
    ) -> AgentMessage:
        """Create, log, deliver and persist a message."""
        ...

    @property
    def total_messages(self) -> int:
        """Number of messages ever placed on the bus."""
        ...


class MessageBus:
    """In-memory message log with mailbox delivery and kind subscriptions."""

    def __init__(self, registry: IAgentRegistry, storage: IStorage | None = None):
        self._registry = registry
        self._storage = storage
        self._log: list[AgentMessage] = []
        self._subscribers: dict[MessageKind, list[MessageHandler]] = {
            kind: [] for kind in MessageKind
        }

    def subscribe(self, kind: MessageKind, handler: MessageHandler) -> None:
        """Subscribe a handler to a message kind."""
        self._subscribers[kind].append(handler)

    async def send(
        self,
        sender: str,
        recipient: str,
        payload: MessagePayload,
        priority: Priority = Priority.MEDIUM,
    ) -> AgentMessage:
        """Create, log, deliver and persist a message."""
        message = AgentMessage(
            id=f"msg_{uuid.uuid4().hex}",
            sender=sender,
            recipient=recipient,
            payload=payload,
            timestamp=datetime.now(timezone.utc),
            priority=priority,
        )

        self._log.append(message)
        self._registry.deliver(message)

        handlers = self._subscribers.get(message.kind, [])
        if handlers:
            results = await asyncio.gather(
                *[handler(message) for handler in handlers],
                return_exceptions=True,
            )
            for i, result in enumerate(results):
                if isinstance(result, Exception):
                    logger.error("Error in %s handler %s: %s", message.kind.value, i, result)

        if self._storage is not None:
            await self._storage.save_agent_message(message)

        return message

    @property
    def messages(self) -> list[AgentMessage]:
        """Snapshot of the full message log, oldest first."""
        return list(self._log)

    @property
    def total_messages(self) -> int:
        return len(self._log)
