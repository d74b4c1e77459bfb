"""Observability store — single source of truth for agent execution state.

The agent-driving code mutates the store through its methods; views
subscribe and re-read whatever slice they render. Every mutator applies
its change, then notifies every registered subscriber synchronously
before returning.

Usage::

    store = AgentObservabilityStore()
    unsubscribe = store.subscribe(view.refresh)
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", "running")
    ...
    unsubscribe()
    store.close()
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import replace

from .errors import (
    DuplicateIdError,
    InvalidTransitionError,
    NotFoundError,
    SubscriberError,
)
from .lifecycle import is_terminal, validate_transition
from .models import (
    LogEntry,
    LogType,
    RunStatus,
    StoreSnapshot,
    SubagentInfo,
    SubagentStatus,
    TodoItem,
    TodoStatus,
    ToolCall,
    ToolCallStatus,
    now_ms,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


class AgentObservabilityStore:
    """In-memory state of one agent run with synchronous change notification.

    One re-entrant lock guards each mutate-then-notify sequence and every
    read, so subscribers may read the store from inside their callback and
    always observe the state the triggering mutation produced.

    Args:
        max_retained_logs: Keep only this many log entries (oldest evicted
            first). ``None`` retains the full history.
    """

    def __init__(self, max_retained_logs: int | None = None) -> None:
        if max_retained_logs is not None and max_retained_logs < 1:
            raise ValueError("max_retained_logs must be positive or None")
        self._lock = threading.RLock()
        self._subscribers: dict[int, Subscriber] = {}
        self._next_token = 0

        self._status = RunStatus.INITIALIZING
        self._current_message = ""
        self._subagents: dict[str, SubagentInfo] = {}
        self._tool_calls: dict[str, ToolCall] = {}
        self._todos: list[TodoItem] = []
        self._logs: deque[LogEntry] = deque(maxlen=max_retained_logs)
        self._next_log_id = 1
        self._last_timestamp = 0
        self._total_skills_generated = 0

    # ── subscription ─────────────────────────────────────────────────

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that deregisters it.

        The returned function is safe to call more than once.
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def close(self) -> None:
        """Drop every subscription. Mutators keep working but notify no one."""
        with self._lock:
            dropped = len(self._subscribers)
            self._subscribers.clear()
        logger.debug("Store closed, dropped %d subscriber(s)", dropped)

    def _notify(self) -> None:
        # Caller holds the lock. Iterate a copy so callbacks may
        # (un)subscribe; changes take effect on the next round.
        for callback in list(self._subscribers.values()):
            try:
                callback()
            except Exception as exc:
                logger.exception("%s", SubscriberError(callback, exc))

    # ── subagents ────────────────────────────────────────────────────

    def spawn_subagent(self, id: str, name: str, task: str) -> None:
        """Register a new subagent in the ``spawning`` state.

        Also records a ``subagent`` log entry; both land in one
        notification round.

        Raises:
            DuplicateIdError: *id* is already registered. The existing
                entry is left untouched.
        """
        with self._lock:
            if id in self._subagents:
                raise DuplicateIdError("spawn_subagent", id)
            self._subagents[id] = SubagentInfo(id=id, name=name, task=task)
            self._append_log_locked(
                LogType.SUBAGENT, f"Spawned subagent: {name} - {task}"
            )
            logger.debug("Subagent %s spawned (%s)", id, name)
            self._notify()

    def update_subagent_status(
        self,
        id: str,
        status: SubagentStatus | str,
        progress: str | None = None,
    ) -> None:
        """Move subagent *id* to *status*, overwriting progress if given.

        Raises:
            NotFoundError: unknown *id*.
            InvalidTransitionError: the edge is not in the state machine
                (including any move out of ``completed`` or ``error``).
        """
        target = SubagentStatus(status)
        with self._lock:
            existing = self._subagents.get(id)
            if existing is None:
                raise NotFoundError("update_subagent_status", id)
            validate_transition(
                "update_subagent_status", id, existing.status, target
            )
            changes: dict = {"status": target}
            if progress is not None:
                changes["progress"] = progress
            if is_terminal(target):
                changes["ended_at"] = now_ms()
            self._subagents[id] = replace(existing, **changes)
            logger.debug(
                "Subagent %s: %s -> %s", id, existing.status.value, target.value
            )
            self._notify()

    def update_subagent_progress(self, id: str, progress: str) -> None:
        """Overwrite the progress note of a subagent that is still active.

        Raises:
            NotFoundError: unknown *id*.
            InvalidTransitionError: the subagent already ended.
        """
        with self._lock:
            existing = self._subagents.get(id)
            if existing is None:
                raise NotFoundError("update_subagent_progress", id)
            if is_terminal(existing.status):
                raise InvalidTransitionError(
                    "update_subagent_progress",
                    id,
                    existing.status.value,
                    existing.status.value,
                    [],
                )
            self._subagents[id] = replace(existing, progress=progress)
            self._notify()

    @property
    def subagents(self) -> tuple[SubagentInfo, ...]:
        """All subagents in spawn order."""
        with self._lock:
            return tuple(self._subagents.values())

    def recent_subagents(self, n: int) -> tuple[SubagentInfo, ...]:
        """The *n* most recently spawned subagents."""
        if n <= 0:
            return ()
        with self._lock:
            return tuple(self._subagents.values())[-n:]

    def get_subagent(self, id: str) -> SubagentInfo | None:
        with self._lock:
            return self._subagents.get(id)

    # ── todos ────────────────────────────────────────────────────────

    def set_todos(self, items: Iterable[TodoItem]) -> None:
        """Replace the whole todo list, keeping the given (plan) order.

        Raises:
            DuplicateIdError: two items share an id. The previous list is
                kept.
        """
        new_todos = list(items)
        seen: set[str] = set()
        for item in new_todos:
            if item.id in seen:
                raise DuplicateIdError("set_todos", item.id)
            seen.add(item.id)
        with self._lock:
            self._todos = new_todos
            logger.debug("Todo list replaced (%d items)", len(new_todos))
            self._notify()

    def update_todo_status(self, id: str, status: TodoStatus | str) -> None:
        """Move todo *id* to *status*.

        Raises:
            NotFoundError: unknown *id*.
            InvalidTransitionError: the edge is not in the state machine.
        """
        target = TodoStatus(status)
        with self._lock:
            for index, item in enumerate(self._todos):
                if item.id == id:
                    break
            else:
                raise NotFoundError("update_todo_status", id)
            validate_transition("update_todo_status", id, item.status, target)
            self._todos[index] = replace(item, status=target)
            self._notify()

    @property
    def todos(self) -> tuple[TodoItem, ...]:
        with self._lock:
            return tuple(self._todos)

    def get_todo(self, id: str) -> TodoItem | None:
        with self._lock:
            for item in self._todos:
                if item.id == id:
                    return item
            return None

    # ── tool calls ───────────────────────────────────────────────────

    def add_tool_call(self, id: str, name: str, args: str = "") -> None:
        """Track a main-agent tool call and log it as a ``tool`` entry."""
        with self._lock:
            if id in self._tool_calls:
                raise DuplicateIdError("add_tool_call", id)
            self._tool_calls[id] = ToolCall(id=id, name=name, args=args)
            self._append_log_locked(
                LogType.TOOL, f"Tool: {name} - {args[:100]}..."
            )
            self._notify()

    def complete_tool_call(
        self, id: str, result: str, is_error: bool = False
    ) -> None:
        """Finish a running tool call with its result."""
        target = ToolCallStatus.ERROR if is_error else ToolCallStatus.COMPLETED
        with self._lock:
            existing = self._tool_calls.get(id)
            if existing is None:
                raise NotFoundError("complete_tool_call", id)
            validate_transition(
                "complete_tool_call", id, existing.status, target
            )
            self._tool_calls[id] = replace(
                existing, status=target, result=result, ended_at=now_ms()
            )
            self._notify()

    @property
    def tool_calls(self) -> tuple[ToolCall, ...]:
        with self._lock:
            return tuple(self._tool_calls.values())

    # ── log ──────────────────────────────────────────────────────────

    def _append_log_locked(self, type: LogType, content: str) -> LogEntry:
        # Timestamps never go backwards even if the wall clock does.
        timestamp = max(now_ms(), self._last_timestamp)
        entry = LogEntry(
            id=self._next_log_id,
            timestamp=timestamp,
            type=type,
            content=content,
        )
        self._next_log_id += 1
        self._last_timestamp = timestamp
        self._logs.append(entry)
        return entry

    def append_log(self, type: LogType | str, content: str) -> LogEntry:
        """Append an immutable log entry and return it."""
        log_type = LogType(type)
        with self._lock:
            entry = self._append_log_locked(log_type, content)
            self._notify()
            return entry

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        """Every retained log entry, oldest first."""
        with self._lock:
            return tuple(self._logs)

    def recent_logs(self, n: int) -> tuple[LogEntry, ...]:
        """The last *n* entries. Does not touch the retained history."""
        if n <= 0:
            return ()
        with self._lock:
            return tuple(self._logs)[-n:]

    # ── streaming buffer ─────────────────────────────────────────────

    def set_current_message(self, text: str) -> None:
        """Overwrite the streaming buffer, discarding anything buffered."""
        with self._lock:
            self._current_message = text
            self._notify()

    def append_to_current_message(self, delta: str) -> None:
        with self._lock:
            self._current_message += delta
            self._notify()

    def clear_current_message(self) -> None:
        """Discard the streaming buffer without logging it."""
        self.set_current_message("")

    def flush_current_message(self) -> LogEntry | None:
        """Finalize the streaming buffer into a ``message`` log entry.

        The buffer is cleared in the same mutation, so the text is never
        visible in both places. An empty buffer is a no-op and does not
        notify.
        """
        with self._lock:
            if not self._current_message:
                return None
            entry = self._append_log_locked(
                LogType.MESSAGE, self._current_message
            )
            self._current_message = ""
            self._notify()
            return entry

    @property
    def current_message(self) -> str:
        with self._lock:
            return self._current_message

    # ── scalars ──────────────────────────────────────────────────────

    def set_status(self, status: RunStatus | str) -> None:
        new_status = RunStatus(status)
        with self._lock:
            logger.debug(
                "Run status: %s -> %s", self._status.value, new_status.value
            )
            self._status = new_status
            self._notify()

    @property
    def status(self) -> RunStatus:
        with self._lock:
            return self._status

    def increment_skills_generated(self) -> None:
        with self._lock:
            self._total_skills_generated += 1
            self._notify()

    @property
    def total_skills_generated(self) -> int:
        with self._lock:
            return self._total_skills_generated

    # ── snapshot ─────────────────────────────────────────────────────

    def snapshot(self) -> StoreSnapshot:
        """Read every slice at once under the lock."""
        with self._lock:
            return StoreSnapshot(
                status=self._status,
                current_message=self._current_message,
                subagents=tuple(self._subagents.values()),
                todos=tuple(self._todos),
                logs=tuple(self._logs),
                tool_calls=tuple(self._tool_calls.values()),
                total_skills_generated=self._total_skills_generated,
            )
