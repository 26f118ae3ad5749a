"""SQLite audit storage implementation."""

import json
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import AgentMessage, AgentTask, TaskStatus, TaskType, TraceEvent


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class IStorage(Protocol):
    """Persistent audit log for messages, task transitions and trace events."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # AgentMessages
    async def save_agent_message(self, message: AgentMessage) -> None:
        """Save an agent message."""
        ...

    async def get_agent_messages(
        self, recipient: str | None = None, limit: int = 100
    ) -> list[dict]:
        """Get agent messages (newest first) as plain records."""
        ...

    # Tasks
    async def save_task(self, task: AgentTask) -> None:
        """Insert or update the latest snapshot of a task."""
        ...

    async def get_task(self, task_id: str) -> AgentTask | None:
        """Get the latest snapshot of a task."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # AgentMessages
    async def save_agent_message(self, message: AgentMessage) -> None:
        """Save an agent message."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO agent_messages
            (id, sender, recipient, kind, priority, payload, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.id or str(uuid.uuid4()),
                message.sender,
                message.recipient,
                message.kind.value,
                message.priority.value,
                json.dumps(asdict(message.payload), default=str),
                message.timestamp.isoformat(),
            ),
        )
        await conn.commit()

    async def get_agent_messages(
        self, recipient: str | None = None, limit: int = 100
    ) -> list[dict]:
        """Get agent messages (newest first) as plain records."""
        conn = self._require_conn()

        if recipient:
            cursor = await conn.execute(
                """
                SELECT id, sender, recipient, kind, priority, payload, timestamp
                FROM agent_messages
                WHERE recipient = ?
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                (recipient, limit),
            )
        else:
            cursor = await conn.execute(
                """
                SELECT id, sender, recipient, kind, priority, payload, timestamp
                FROM agent_messages
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                (limit,),
            )
        rows = await cursor.fetchall()

        return [
            {
                "id": row[0],
                "sender": row[1],
                "recipient": row[2],
                "kind": row[3],
                "priority": row[4],
                "payload": json.loads(row[5]),
                "timestamp": _parse_ts(row[6]),
            }
            for row in rows
        ]

    # Tasks
    async def save_task(self, task: AgentTask) -> None:
        """Insert or update the latest snapshot of a task."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO task_records
            (id, type, status, input, output, error, assigned_agent,
             created_at, completed_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (
                task.id,
                task.type.value,
                task.status.value,
                json.dumps(task.input, default=str),
                json.dumps(task.output, default=str) if task.output is not None else None,
                task.error,
                task.assigned_agent,
                task.created_at.isoformat(),
                task.completed_at.isoformat() if task.completed_at else None,
            ),
        )
        await conn.commit()

    async def get_task(self, task_id: str) -> AgentTask | None:
        """Get the latest snapshot of a task."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, type, status, input, output, error, assigned_agent,
                   created_at, completed_at
            FROM task_records
            WHERE id = ?
            """,
            (task_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return AgentTask(
            id=row[0],
            type=TaskType(row[1]),
            status=TaskStatus(row[2]),
            input=json.loads(row[3]),
            output=json.loads(row[4]) if row[4] is not None else None,
            error=row[5],
            assigned_agent=row[6],
            created_at=_parse_ts(row[7]),
            completed_at=_parse_ts(row[8]),
        )

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, default=str),
                event.timestamp.isoformat(),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if after:
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        for table in ("agent_messages", "task_records", "trace_events"):
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
