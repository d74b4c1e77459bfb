"""Core data models for the observability store.

All enums and dataclasses live here. Entities are frozen: the store
replaces a value on update instead of mutating it, so anything handed
out by a read accessor stays exactly as it was when it was read.
"""
from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SubagentStatus(str, Enum):
    """Subagent lifecycle states. See lifecycle.py for transition rules."""
    SPAWNING = "spawning"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class TodoStatus(str, Enum):
    """Todo lifecycle states. See lifecycle.py for transition rules."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ToolCallStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class LogType(str, Enum):
    """Closed set of activity log categories."""
    INFO = "info"
    TOOL = "tool"
    SUBAGENT = "subagent"
    MESSAGE = "message"
    ERROR = "error"


class RunStatus(str, Enum):
    """Overall agent run status shown in the header."""
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SubagentInfo:
    """One delegated sub-task of the orchestrating agent."""
    id: str
    name: str
    task: str
    status: SubagentStatus = SubagentStatus.SPAWNING
    progress: str = ""
    started_at: int = field(default_factory=now_ms)
    ended_at: int | None = None


@dataclass(frozen=True)
class TodoItem:
    """One planned unit of work, kept in plan order."""
    id: str
    content: str
    status: TodoStatus = TodoStatus.PENDING

    @classmethod
    def from_payload(cls, index: int, payload: Any) -> TodoItem:
        """Build an item from a ``write_todos`` payload entry.

        The entry may be a dict or an object with ``content`` (and
        optionally ``id``/``status``) attributes. Payloads usually carry
        no ids, so the position in the list is used. Missing or
        unrecognised statuses fall back to pending.

        Raises:
            TypeError: the entry is neither a mapping nor carries ``content``.
        """
        if isinstance(payload, Mapping):
            get = payload.get
        elif hasattr(payload, "content"):
            def get(name: str, default: Any = None) -> Any:
                return getattr(payload, name, default)
        else:
            raise TypeError(
                f"todo entry {index} is a {type(payload).__name__}, "
                "expected a mapping or an object with 'content'"
            )

        raw_status = get("status") or TodoStatus.PENDING.value
        try:
            status = TodoStatus(raw_status)
        except (ValueError, TypeError):
            status = TodoStatus.PENDING
        return cls(
            id=str(get("id") or f"todo-{index}"),
            content=str(get("content", "") or ""),
            status=status,
        )


@dataclass(frozen=True)
class LogEntry:
    """Immutable activity log record."""
    id: int
    timestamp: int
    type: LogType
    content: str


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation made by the main agent."""
    id: str
    name: str
    status: ToolCallStatus = ToolCallStatus.RUNNING
    args: str = ""
    result: str | None = None
    started_at: int = field(default_factory=now_ms)
    ended_at: int | None = None


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent read of every store slice, taken under one lock."""
    status: RunStatus
    current_message: str
    subagents: tuple[SubagentInfo, ...]
    todos: tuple[TodoItem, ...]
    logs: tuple[LogEntry, ...]
    tool_calls: tuple[ToolCall, ...]
    total_skills_generated: int
