"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single observability event for the dashboard."""

    id: str
    event_type: str  # e.g. "task_completed", "agent_message_sent"
    actor: str  # who created this event
    data: dict  # full self-contained data for display
    timestamp: datetime
