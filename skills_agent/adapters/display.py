"""Display helpers — icons, colors, and text formatting for the views.

Engine models are the single source of truth (skills_agent.engine.models).
This module only adds presentation logic shared by the dashboard panels.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from skills_agent.engine.models import (
    LogType,
    RunStatus,
    SubagentInfo,
    SubagentStatus,
    TodoItem,
    TodoStatus,
)

# Tokyo Night palette
MUTED = "#565f89"
TEXT = "#c0caf5"
BLUE = "#7aa2f7"
PURPLE = "#bb9af7"
GREEN = "#9ece6a"
YELLOW = "#e0af68"
RED = "#f7768e"
ERROR_BACKGROUND = "#2d1f1f"


# ── Status display: icon + color ──

SUBAGENT_ICONS: dict[SubagentStatus, tuple[str, str]] = {
    SubagentStatus.SPAWNING: ("◐", YELLOW),
    SubagentStatus.RUNNING: ("●", BLUE),
    SubagentStatus.COMPLETED: ("✓", GREEN),
    SubagentStatus.ERROR: ("✗", RED),
}

TODO_ICONS: dict[TodoStatus, tuple[str, str]] = {
    TodoStatus.PENDING: ("○", MUTED),
    TodoStatus.IN_PROGRESS: ("◐", BLUE),
    TodoStatus.COMPLETED: ("✓", GREEN),
    TodoStatus.CANCELLED: ("✗", RED),
}

LOG_COLORS: dict[LogType, str] = {
    LogType.INFO: BLUE,
    LogType.TOOL: PURPLE,
    LogType.SUBAGENT: YELLOW,
    LogType.MESSAGE: TEXT,
    LogType.ERROR: RED,
}

_ACTIVE_SUBAGENT_STATES = frozenset({
    SubagentStatus.SPAWNING,
    SubagentStatus.RUNNING,
})


def run_status_color(status: RunStatus) -> str:
    return GREEN if status == RunStatus.RUNNING else RED


# ── Text formatting ──

def truncate(text: str, limit: int = 80) -> str:
    """Cut *text* to *limit* characters, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def tail(text: str, limit: int = 500) -> str:
    """Keep only the last *limit* characters."""
    if limit <= 0:
        return ""
    return text[-limit:]


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as ``MM:SS``."""
    secs = max(0, int(seconds))
    mins, secs = divmod(secs, 60)
    return f"{mins:02d}:{secs:02d}"


def format_clock(timestamp_ms: int) -> str:
    """Local 24-hour wall clock time of an epoch-milliseconds timestamp."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M:%S")


# ── Counters ──

def subagent_counts(subagents: Iterable[SubagentInfo]) -> tuple[int, int]:
    """Return ``(active, completed)`` counts."""
    active = completed = 0
    for subagent in subagents:
        if subagent.status in _ACTIVE_SUBAGENT_STATES:
            active += 1
        elif subagent.status == SubagentStatus.COMPLETED:
            completed += 1
    return active, completed


def todo_counts(todos: Iterable[TodoItem]) -> tuple[int, int, int]:
    """Return ``(total, in_progress, done)`` counts."""
    total = in_progress = done = 0
    for todo in todos:
        total += 1
        if todo.status == TodoStatus.IN_PROGRESS:
            in_progress += 1
        elif todo.status == TodoStatus.COMPLETED:
            done += 1
    return total, in_progress, done
