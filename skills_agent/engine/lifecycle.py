"""Status state machines for subagents, todos, and tool calls.

Defines valid transitions and enforces them. Invalid transitions
raise InvalidTransitionError rather than silently proceeding.

Subagents:

    SPAWNING ──> RUNNING ──┬──> COMPLETED
        │                  │
        │                  └──> ERROR
        └──> ERROR  (spawn failed before running)

Todos:

    PENDING ──> IN_PROGRESS ──┬──> COMPLETED
        │                     │
        │                     └──> CANCELLED
        └──> CANCELLED  (abandoned before starting)

Tool calls:

    RUNNING ──> COMPLETED | ERROR

No state loops back to itself. Progress notes on an active subagent
are updated without a status change (see
``AgentObservabilityStore.update_subagent_progress``).
"""
from __future__ import annotations

from enum import Enum

from .errors import InvalidTransitionError
from .models import SubagentStatus, TodoStatus, ToolCallStatus

SUBAGENT_TRANSITIONS: dict[SubagentStatus, frozenset[SubagentStatus]] = {
    SubagentStatus.SPAWNING: frozenset({
        SubagentStatus.RUNNING,
        SubagentStatus.ERROR,
    }),
    SubagentStatus.RUNNING: frozenset({
        SubagentStatus.COMPLETED,
        SubagentStatus.ERROR,
    }),
    SubagentStatus.COMPLETED: frozenset(),
    SubagentStatus.ERROR: frozenset(),
}

TODO_TRANSITIONS: dict[TodoStatus, frozenset[TodoStatus]] = {
    TodoStatus.PENDING: frozenset({
        TodoStatus.IN_PROGRESS,
        TodoStatus.CANCELLED,
    }),
    TodoStatus.IN_PROGRESS: frozenset({
        TodoStatus.COMPLETED,
        TodoStatus.CANCELLED,
    }),
    TodoStatus.COMPLETED: frozenset(),
    TodoStatus.CANCELLED: frozenset(),
}

TOOL_CALL_TRANSITIONS: dict[ToolCallStatus, frozenset[ToolCallStatus]] = {
    ToolCallStatus.RUNNING: frozenset({
        ToolCallStatus.COMPLETED,
        ToolCallStatus.ERROR,
    }),
    ToolCallStatus.COMPLETED: frozenset(),
    ToolCallStatus.ERROR: frozenset(),
}

_TABLES: dict[type[Enum], dict] = {
    SubagentStatus: SUBAGENT_TRANSITIONS,
    TodoStatus: TODO_TRANSITIONS,
    ToolCallStatus: TOOL_CALL_TRANSITIONS,
}


def is_terminal(status: SubagentStatus | TodoStatus | ToolCallStatus) -> bool:
    """Return True when no transition leaves *status*."""
    return not _TABLES[type(status)][status]


def validate_transition(
    operation: str,
    entity_id: str,
    current: SubagentStatus | TodoStatus | ToolCallStatus,
    target: SubagentStatus | TodoStatus | ToolCallStatus,
) -> None:
    """Validate a status change. Raises InvalidTransitionError if invalid."""
    allowed = _TABLES[type(current)][current]
    if target in allowed:
        return
    raise InvalidTransitionError(
        operation,
        entity_id,
        current.value,
        target.value,
        sorted(s.value for s in allowed),
    )
