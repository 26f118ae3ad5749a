"""Tracker implementation for creating TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..message_bus import IMessageBus
from ..models import AgentMessage, MessageKind, TraceEvent
from ..storage import IStorage


class ITracker(Protocol):
    """Creating TraceEvents. Two channels: MessageBus subscription + direct calls."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Creates TraceEvents via MessageBus subscription and direct track() calls."""

    def __init__(self, message_bus: IMessageBus, storage: IStorage):
        self._message_bus = message_bus
        self._storage = storage

    async def start(self) -> None:
        """Subscribe to every message kind."""
        for kind in MessageKind:
            self._message_bus.subscribe(kind, self._handle_agent_message)

    async def _handle_agent_message(self, message: AgentMessage) -> None:
        """Record one trace event per bus message."""
        await self.track(
            event_type="agent_message_sent",
            actor=message.sender,
            data={
                "message_id": message.id,
                "recipient": message.recipient,
                "kind": message.kind.value,
                "priority": message.priority.value,
                "payload_summary": str(message.payload)[:100],
            },
        )

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        await self._storage.save_trace_event(trace_event)
