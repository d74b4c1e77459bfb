"""Stream router — translates deep-agent stream chunks into store mutations.

The agent is streamed with ``stream_mode=["updates", "messages"]`` and
yields ``(mode, data)`` tuples:

- ``("messages", (message, metadata))``: a message chunk. Chunks whose
  ``checkpoint_ns`` starts with ``tools:<task_id>`` come from a subagent.
- ``("updates", {node_name: update})``: a graph node finished.

Messages may be LangChain message objects or plain dicts. Store errors
raised while routing are logged and dropped: a confused producer must
never take the agent run down with it.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass
from typing import Any

from skills_agent.engine.errors import StoreError
from skills_agent.engine.models import (
    LogType,
    RunStatus,
    SubagentStatus,
    TodoItem,
)
from skills_agent.engine.store import AgentObservabilityStore

logger = logging.getLogger(__name__)

# "tools:<task_id>|<node>:<node_id>" -> <task_id>
_CHECKPOINT_NS_RE = re.compile(r"^tools:([a-f0-9-]+)")

_SUBAGENT_TOOL = "task"
_TODOS_TOOL = "write_todos"
_MODEL_NODES = frozenset({"model", "model_request"})


def extract_subagent_task_id(checkpoint_ns: str | None) -> str | None:
    """Return the subagent task id encoded in a checkpoint namespace."""
    if not checkpoint_ns:
        return None
    match = _CHECKPOINT_NS_RE.match(checkpoint_ns)
    return match.group(1) if match else None


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def message_text(message: Any) -> str:
    """Plain text of a message whose content is a string or content blocks."""
    content = _field(message, "content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif _field(block, "type") == "text" and isinstance(_field(block, "text"), str):
                parts.append(_field(block, "text"))
        return "".join(parts)
    return ""


def _is_ai_message(message: Any) -> bool:
    kind = _field(message, "type") or _field(message, "role")
    return kind in {"ai", "AIMessageChunk", "assistant"}


def _parse_args(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {"raw": raw}
        return parsed if isinstance(parsed, dict) else {"value": parsed}
    return {}


def looks_like_error(message: Any, content: str) -> bool:
    """Tool results count as failed on an error status or error-ish text."""
    if _field(message, "status") == "error":
        return True
    lowered = content.lower()
    return "error:" in lowered or "failed" in lowered


def describe_error(exc: BaseException) -> str:
    """Error message plus any exit code, stderr, stdout, and cause."""
    details = str(exc) or type(exc).__name__
    exit_code = getattr(exc, "exit_code", getattr(exc, "returncode", None))
    if exit_code is not None:
        details += f" (exit code: {exit_code})"
    stderr = getattr(exc, "stderr", None)
    if stderr:
        details += f"\nStderr: {str(stderr)[:500]}"
    stdout = getattr(exc, "stdout", None)
    if stdout:
        details += f"\nStdout: {str(stdout)[:500]}"
    if exc.__cause__ is not None:
        details += f"\nCause: {exc.__cause__}"
    return details


@dataclass
class _PendingTask:
    """A ``task`` tool call whose subagent has not streamed anything yet."""
    tool_call_id: str
    subagent_type: str
    description: str


@dataclass
class _ActiveSubagent:
    store_id: str
    tool_call_id: str | None
    description: str


class StreamRouter:
    """Routes stream chunks of one agent run into an observability store."""

    def __init__(
        self, store: AgentObservabilityStore, progress_chars: int = 100
    ) -> None:
        self._store = store
        self._progress_chars = progress_chars
        self._pending_tasks: list[_PendingTask] = []
        self._active: dict[str, _ActiveSubagent] = {}
        self._finished: set[str] = set()
        self._seen_tool_calls: set[str] = set()
        self._open_tool_calls: set[str] = set()

    def _safe(self, mutator: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return mutator(*args, **kwargs)
        except StoreError as exc:
            logger.warning("Ignoring store error while routing: %s", exc)
            return None

    def _log(self, type: LogType, content: str) -> None:
        self._safe(self._store.append_log, type, content)

    # ── dispatch ─────────────────────────────────────────────────────

    def handle_chunk(self, chunk: tuple[str, Any]) -> None:
        mode, data = chunk
        if mode == "messages":
            message, metadata = data
            self._handle_message(message, metadata or {})
        elif mode == "updates":
            for node_name, update in (data or {}).items():
                self._handle_update(node_name, update)
        else:
            logger.debug("Ignoring stream mode %r", mode)

    # ── messages ─────────────────────────────────────────────────────

    def _handle_message(self, message: Any, metadata: dict[str, Any]) -> None:
        task_id = extract_subagent_task_id(metadata.get("checkpoint_ns"))
        text = message_text(message)

        if task_id is not None:
            self._track_subagent(task_id)
            active = self._active.get(task_id)
            if active is not None and text:
                self._safe(
                    self._store.update_subagent_progress,
                    active.store_id,
                    text[: self._progress_chars],
                )

        if _is_ai_message(message):
            for tool_call in _field(message, "tool_calls") or []:
                self._handle_tool_call(tool_call, in_subagent=task_id is not None)
            if task_id is None and text:
                self._safe(self._store.append_to_current_message, text)

    def _handle_tool_call(self, tool_call: Any, in_subagent: bool) -> None:
        tool_call_id = _field(tool_call, "id")
        if not tool_call_id or tool_call_id in self._seen_tool_calls:
            return
        self._seen_tool_calls.add(tool_call_id)
        name = _field(tool_call, "name") or "tool"
        args = _parse_args(_field(tool_call, "args"))

        if name == _SUBAGENT_TOOL:
            description = str(
                args.get("description")
                or args.get("prompt")
                or args.get("task")
                or "Processing task..."
            )
            self._pending_tasks.append(_PendingTask(
                tool_call_id=tool_call_id,
                subagent_type=str(args.get("subagent_type") or "general-purpose"),
                description=description,
            ))
            self._log(LogType.INFO, f"Task delegated: {description[:80]}")
        elif not in_subagent:
            self._safe(
                self._store.add_tool_call,
                tool_call_id,
                name,
                json.dumps(args, default=str)[:200],
            )
            self._open_tool_calls.add(tool_call_id)

    def _track_subagent(self, task_id: str) -> None:
        if task_id in self._active or task_id in self._finished:
            return
        pending = self._pending_tasks.pop(0) if self._pending_tasks else None
        store_id = f"subagent-{task_id}"
        active = _ActiveSubagent(
            store_id=store_id,
            tool_call_id=pending.tool_call_id if pending else None,
            description=pending.description if pending else task_id[:8],
        )
        self._active[task_id] = active
        self._safe(
            self._store.spawn_subagent,
            store_id,
            pending.subagent_type if pending else _SUBAGENT_TOOL,
            pending.description if pending else "Subagent executing...",
        )
        self._safe(
            self._store.update_subagent_status, store_id, SubagentStatus.RUNNING
        )
        self._log(LogType.INFO, f"Subagent started: {task_id[:8]}...")

    # ── updates ──────────────────────────────────────────────────────

    def _handle_update(self, node_name: str, update: Any) -> None:
        if node_name == "__interrupt__":
            self._log(
                LogType.INFO,
                f"Interrupt: {json.dumps(update, default=str)[:100]}",
            )
        elif node_name == "tools":
            self._handle_tools_update(update or {})
        elif node_name in _MODEL_NODES:
            self._safe(self._store.flush_current_message)

    def _handle_tools_update(self, update: Any) -> None:
        todos = _field(update, "todos")
        if isinstance(todos, list):
            items = []
            for index, entry in enumerate(todos):
                try:
                    items.append(TodoItem.from_payload(index, entry))
                except TypeError as exc:
                    logger.warning("Skipping malformed todo entry: %s", exc)
            self._safe(self._store.set_todos, items)
            self._log(LogType.INFO, f"Todo list updated: {len(items)} items")

        for message in _field(update, "messages") or []:
            kwargs = _field(message, "additional_kwargs") or {}
            tool_name = _field(message, "name") or kwargs.get("name") or "tool"
            tool_call_id = _field(message, "tool_call_id") or _field(message, "id")
            content = message_text(message) or str(_field(message, "content") or "")
            is_error = looks_like_error(message, content)

            if tool_name == _SUBAGENT_TOOL and tool_call_id:
                self._finish_subagent(tool_call_id, content, is_error)
            elif tool_name != _TODOS_TOOL:
                if tool_call_id in self._open_tool_calls:
                    self._open_tool_calls.discard(tool_call_id)
                    self._safe(
                        self._store.complete_tool_call,
                        tool_call_id,
                        content[:500],
                        is_error,
                    )
                if is_error:
                    self._log(LogType.ERROR, f"{tool_name} failed: {content[:500]}")
                else:
                    self._log(LogType.TOOL, f"{tool_name}: {content[:150]}...")

    def _finish_subagent(self, tool_call_id: str, content: str, is_error: bool) -> None:
        pending = next(
            (p for p in self._pending_tasks if p.tool_call_id == tool_call_id), None
        )
        if pending is not None:
            self._pending_tasks.remove(pending)

        match = next(
            (t for t, a in self._active.items() if a.tool_call_id == tool_call_id),
            None,
        )
        if match is None:
            match = next(
                (t for t, a in self._active.items() if a.tool_call_id is None),
                None,
            )

        description = pending.description if pending else tool_call_id[:8]
        if match is not None:
            active = self._active.pop(match)
            self._finished.add(match)
            description = pending.description if pending else active.description
            self._safe(
                self._store.update_subagent_status,
                active.store_id,
                SubagentStatus.ERROR if is_error else SubagentStatus.COMPLETED,
                content[: self._progress_chars],
            )

        if is_error:
            self._log(
                LogType.ERROR,
                f"Subagent failed: {description[:60]}\n{content[:300]}",
            )
        else:
            self._log(LogType.INFO, f"Subagent completed: {description[:60]}")

    def abort(self, reason: str) -> None:
        """Settle in-flight state after the stream died.

        Subagents still running are marked ``error``, open tool calls are
        failed, and undelegated tasks are dropped.
        """
        for task_id, active in list(self._active.items()):
            self._active.pop(task_id)
            self._finished.add(task_id)
            self._safe(
                self._store.update_subagent_status,
                active.store_id,
                SubagentStatus.ERROR,
                f"Aborted: {reason[: self._progress_chars]}",
            )
        for tool_call_id in sorted(self._open_tool_calls):
            self._safe(
                self._store.complete_tool_call,
                tool_call_id,
                f"Aborted: {reason[:500]}",
                True,
            )
        self._open_tool_calls.clear()
        self._pending_tasks.clear()


async def run_stream(
    store: AgentObservabilityStore,
    stream: AsyncIterable[tuple[str, Any]],
    router: StreamRouter | None = None,
) -> bool:
    """Drive one agent run: route every chunk and record the outcome.

    Returns True when the stream finished cleanly. Failures of the stream
    itself are recorded in the store rather than raised: partial assistant
    text is flushed to the log, in-flight subagents and tool calls are
    marked failed, and the run ends in ``error``. Cancellation still
    propagates.
    """
    router = router or StreamRouter(store)
    store.append_log(LogType.INFO, "Beginning documentation exploration...")
    store.set_status(RunStatus.RUNNING)
    try:
        async for chunk in stream:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("[%s]: %s", chunk[0], json.dumps(chunk[1], default=str))
            router.handle_chunk(chunk)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.exception("Agent run failed")
        details = describe_error(exc)
        store.flush_current_message()
        router.abort(details)
        store.set_status(RunStatus.ERROR)
        store.append_log(LogType.ERROR, f"Error: {details}")
        return False

    store.flush_current_message()
    store.set_status(RunStatus.COMPLETED)
    store.append_log(
        LogType.INFO,
        f"Agent completed. Generated {store.total_skills_generated} skill files.",
    )
    return True
