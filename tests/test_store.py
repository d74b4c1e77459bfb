"""Observability store tests — uniqueness, state machines, notification."""

from __future__ import annotations

import dataclasses

import pytest

from skills_agent.engine.errors import (
    DuplicateIdError,
    InvalidTransitionError,
    NotFoundError,
)
from skills_agent.engine.models import (
    LogType,
    RunStatus,
    SubagentStatus,
    TodoItem,
    TodoStatus,
    ToolCallStatus,
)
from skills_agent.engine.store import AgentObservabilityStore


@pytest.fixture
def store() -> AgentObservabilityStore:
    return AgentObservabilityStore()


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


# ── subagents ──


def test_spawn_subagent_starts_in_spawning(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")

    subagents = store.subagents
    assert len(subagents) == 1
    assert subagents[0].id == "a1"
    assert subagents[0].name == "Writer"
    assert subagents[0].task == "Write skill X"
    assert subagents[0].status == SubagentStatus.SPAWNING
    assert subagents[0].progress == ""


def test_spawn_subagent_records_subagent_log_entry(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")

    (entry,) = store.logs
    assert entry.type == LogType.SUBAGENT
    assert entry.content == "Spawned subagent: Writer - Write skill X"


def test_duplicate_spawn_raises_and_keeps_original(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", "running", "halfway")

    with pytest.raises(DuplicateIdError) as excinfo:
        store.spawn_subagent("a1", "Impostor", "Something else")

    assert excinfo.value.entity_id == "a1"
    assert excinfo.value.operation == "spawn_subagent"
    (subagent,) = store.subagents
    assert subagent.name == "Writer"
    assert subagent.status == SubagentStatus.RUNNING
    assert subagent.progress == "halfway"
    assert len(store.logs) == 1


def test_subagent_completes_and_cannot_be_resurrected(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", "running")
    store.update_subagent_status("a1", "completed")
    assert store.get_subagent("a1").status == SubagentStatus.COMPLETED
    assert store.get_subagent("a1").ended_at is not None

    with pytest.raises(InvalidTransitionError):
        store.update_subagent_status("a1", "running")

    assert store.get_subagent("a1").status == SubagentStatus.COMPLETED


def test_subagent_can_fail_before_running(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", SubagentStatus.ERROR, "spawn failed")

    subagent = store.get_subagent("a1")
    assert subagent.status == SubagentStatus.ERROR
    assert subagent.progress == "spawn failed"


def test_subagent_cannot_skip_running(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")

    with pytest.raises(InvalidTransitionError):
        store.update_subagent_status("a1", "completed")
    assert store.get_subagent("a1").status == SubagentStatus.SPAWNING


def test_error_is_terminal(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", "error")

    for target in ("running", "completed", "error"):
        with pytest.raises(InvalidTransitionError):
            store.update_subagent_status("a1", target)
    assert store.get_subagent("a1").status == SubagentStatus.ERROR


def test_progress_is_overwritten_not_accumulated(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", "running", "reading docs")
    store.update_subagent_progress("a1", "writing file")
    store.update_subagent_progress("a1", "almost done")

    info = store.get_subagent("a1")
    assert info.progress == "almost done"
    assert info.status == SubagentStatus.RUNNING


@pytest.mark.parametrize("status", ["spawning", "running"])
def test_subagent_same_state_update_raises(store, status):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    if status == "running":
        store.update_subagent_status("a1", "running")
    calls = _Counter()
    store.subscribe(calls)

    with pytest.raises(InvalidTransitionError):
        store.update_subagent_status("a1", status, "again")
    assert store.get_subagent("a1").status == SubagentStatus(status)
    assert calls.calls == 0


def test_progress_update_rejected_after_completion(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    store.update_subagent_status("a1", "running")
    store.update_subagent_status("a1", "completed", "done")

    with pytest.raises(InvalidTransitionError):
        store.update_subagent_progress("a1", "late chunk")
    assert store.get_subagent("a1").progress == "done"


def test_update_unknown_subagent_raises_not_found(store):
    with pytest.raises(NotFoundError) as excinfo:
        store.update_subagent_status("ghost", "running")
    assert excinfo.value.entity_id == "ghost"
    assert excinfo.value.operation == "update_subagent_status"


def test_recent_subagents_is_a_projection(store):
    for i in range(20):
        store.spawn_subagent(f"a{i}", f"Agent {i}", "task")

    recent = store.recent_subagents(15)
    assert [s.id for s in recent] == [f"a{i}" for i in range(5, 20)]
    assert len(store.subagents) == 20


# ── todos ──


def test_todo_lifecycle(store):
    store.set_todos([TodoItem(id="t1", content="Explore docs")])
    store.update_todo_status("t1", "in_progress")
    store.update_todo_status("t1", "completed")

    (todo,) = store.todos
    assert todo.id == "t1"
    assert todo.status == TodoStatus.COMPLETED


def test_todo_can_be_cancelled_before_starting(store):
    store.set_todos([TodoItem(id="t1", content="Explore docs")])
    store.update_todo_status("t1", "cancelled")

    assert store.get_todo("t1").status == TodoStatus.CANCELLED
    with pytest.raises(InvalidTransitionError):
        store.update_todo_status("t1", "in_progress")


def test_todo_cannot_jump_from_pending_to_completed(store):
    store.set_todos([TodoItem(id="t1", content="Explore docs")])

    with pytest.raises(InvalidTransitionError):
        store.update_todo_status("t1", "completed")
    assert store.get_todo("t1").status == TodoStatus.PENDING


def test_todo_same_state_update_raises(store):
    store.set_todos([TodoItem(id="t1", content="Explore docs")])

    with pytest.raises(InvalidTransitionError):
        store.update_todo_status("t1", "pending")

    store.update_todo_status("t1", "in_progress")
    with pytest.raises(InvalidTransitionError):
        store.update_todo_status("t1", "in_progress")
    assert store.get_todo("t1").status == TodoStatus.IN_PROGRESS


def test_update_unknown_todo_raises_not_found(store):
    store.set_todos([TodoItem(id="t1", content="Explore docs")])
    with pytest.raises(NotFoundError):
        store.update_todo_status("t2", "in_progress")


def test_set_todos_keeps_plan_order_and_replaces(store):
    store.set_todos([TodoItem(id="t1", content="first")])
    store.set_todos([
        TodoItem(id="b", content="second"),
        TodoItem(id="a", content="third"),
    ])

    assert [t.id for t in store.todos] == ["b", "a"]


def test_set_todos_with_duplicate_ids_keeps_previous_list(store):
    store.set_todos([TodoItem(id="t1", content="keep me")])
    counter = _Counter()
    store.subscribe(counter)

    with pytest.raises(DuplicateIdError):
        store.set_todos([
            TodoItem(id="x", content="one"),
            TodoItem(id="x", content="two"),
        ])

    assert [t.content for t in store.todos] == ["keep me"]
    assert counter.calls == 0


# ── log ──


def test_log_is_append_only_and_ordered(store):
    entries = [store.append_log("info", f"line {i}") for i in range(10)]

    logs = store.logs
    assert [e.content for e in logs] == [f"line {i}" for i in range(10)]
    assert len({e.id for e in logs}) == 10
    assert [e.id for e in logs] == sorted(e.id for e in logs)
    assert all(a.timestamp <= b.timestamp for a, b in zip(logs, logs[1:]))
    assert list(logs) == entries


def test_log_entries_are_immutable(store):
    entry = store.append_log(LogType.INFO, "started")

    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.content = "changed"
    assert store.logs[0].content == "started"


def test_truncated_read_does_not_drop_history(store):
    for i in range(1, 26):
        store.append_log("info", f"entry {i}")

    recent = store.recent_logs(20)
    assert [e.content for e in recent] == [f"entry {i}" for i in range(6, 26)]
    assert len(store.logs) == 25


def test_append_log_rejects_unknown_type(store):
    with pytest.raises(ValueError):
        store.append_log("debug", "nope")
    assert store.logs == ()


def test_bounded_retention_keeps_latest_window():
    store = AgentObservabilityStore(max_retained_logs=3)
    for i in range(5):
        store.append_log("info", f"entry {i}")

    logs = store.logs
    assert [e.content for e in logs] == ["entry 2", "entry 3", "entry 4"]
    assert [e.id for e in logs] == [3, 4, 5]


def test_invalid_retention_bound_rejected():
    with pytest.raises(ValueError):
        AgentObservabilityStore(max_retained_logs=0)


# ── streaming buffer ──


def test_streaming_buffer_appends_and_overwrites(store):
    store.append_to_current_message("Hello")
    store.append_to_current_message(", world")
    assert store.current_message == "Hello, world"

    store.set_current_message("fresh stream")
    assert store.current_message == "fresh stream"


def test_flush_moves_buffer_into_message_entry(store):
    store.append_to_current_message("Exploring ")
    store.append_to_current_message("docs.")
    seen = []
    store.subscribe(lambda: seen.append((store.current_message, store.logs)))

    entry = store.flush_current_message()

    assert entry.type == LogType.MESSAGE
    assert entry.content == "Exploring docs."
    assert store.current_message == ""
    # One notification, and the text is never in both places at once.
    assert len(seen) == 1
    message, logs = seen[0]
    assert message == ""
    assert logs[-1].content == "Exploring docs."


def test_flush_of_empty_buffer_is_noop(store):
    counter = _Counter()
    store.subscribe(counter)

    assert store.flush_current_message() is None
    assert store.logs == ()
    assert counter.calls == 0


def test_clear_discards_buffer_without_logging(store):
    store.append_to_current_message("abandoned")
    store.clear_current_message()

    assert store.current_message == ""
    assert store.logs == ()


# ── tool calls ──


def test_tool_call_tracking(store):
    store.add_tool_call("call-1", "search_langchain_docs", '{"query": "agents"}')
    store.complete_tool_call("call-1", "Found 3 pages")

    (call,) = store.tool_calls
    assert call.status == ToolCallStatus.COMPLETED
    assert call.result == "Found 3 pages"
    assert store.logs[0].type == LogType.TOOL
    assert store.logs[0].content.startswith("Tool: search_langchain_docs - ")

    with pytest.raises(InvalidTransitionError):
        store.complete_tool_call("call-1", "again", is_error=True)


def test_tool_call_errors(store):
    store.add_tool_call("call-1", "fetch_webpage")
    store.complete_tool_call("call-1", "404", is_error=True)
    assert store.tool_calls[0].status == ToolCallStatus.ERROR

    with pytest.raises(DuplicateIdError):
        store.add_tool_call("call-1", "fetch_webpage")
    with pytest.raises(NotFoundError):
        store.complete_tool_call("call-2", "ok")


# ── scalars ──


def test_status_and_skill_counter(store):
    assert store.status == RunStatus.INITIALIZING
    store.set_status("running")
    store.increment_skills_generated()
    store.increment_skills_generated()

    assert store.status == RunStatus.RUNNING
    assert store.total_skills_generated == 2


def test_snapshot_is_consistent_and_detached(store):
    store.spawn_subagent("a1", "Writer", "Write skill X")
    snapshot = store.snapshot()

    store.update_subagent_status("a1", "running")
    store.append_log("info", "later")

    assert snapshot.subagents[0].status == SubagentStatus.SPAWNING
    assert len(snapshot.logs) == 1
    assert store.snapshot().subagents[0].status == SubagentStatus.RUNNING


# ── notification ──


def test_subscriber_sees_post_mutation_state(store):
    observed = []

    def subscriber() -> None:
        observed.append([e.content for e in store.logs])

    store.subscribe(subscriber)
    store.append_log("info", "started")

    assert observed == [["started"]]


def test_every_mutator_notifies_each_subscriber_once(store):
    first, second = _Counter(), _Counter()
    store.subscribe(first)
    store.subscribe(second)

    mutations = [
        lambda: store.spawn_subagent("a1", "Writer", "task"),
        lambda: store.update_subagent_status("a1", "running"),
        lambda: store.update_subagent_progress("a1", "progress"),
        lambda: store.set_todos([TodoItem(id="t1", content="todo")]),
        lambda: store.update_todo_status("t1", "in_progress"),
        lambda: store.append_log("info", "hello"),
        lambda: store.set_current_message("abc"),
        lambda: store.append_to_current_message("def"),
        lambda: store.flush_current_message(),
        lambda: store.add_tool_call("c1", "tool"),
        lambda: store.complete_tool_call("c1", "ok"),
        lambda: store.set_status("running"),
        lambda: store.increment_skills_generated(),
    ]
    for expected, mutate in enumerate(mutations, start=1):
        mutate()
        assert first.calls == expected
        assert second.calls == expected


def test_failed_mutation_does_not_notify(store):
    counter = _Counter()
    store.subscribe(counter)

    with pytest.raises(NotFoundError):
        store.update_subagent_status("ghost", "running")
    assert counter.calls == 0


def test_raising_subscriber_is_isolated(store, caplog):
    before, after = _Counter(), _Counter()

    def broken() -> None:
        raise RuntimeError("view exploded")

    store.subscribe(before)
    store.subscribe(broken)
    store.subscribe(after)

    store.append_log("info", "still works")

    assert before.calls == 1
    assert after.calls == 1
    assert store.logs[-1].content == "still works"
    assert "view exploded" in caplog.text


def test_unsubscribe_stops_notifications_and_is_idempotent(store):
    counter = _Counter()
    unsubscribe = store.subscribe(counter)
    store.append_log("info", "one")

    unsubscribe()
    unsubscribe()
    store.append_log("info", "two")

    assert counter.calls == 1
    assert store.subscriber_count == 0


def test_subscribing_during_notification_takes_effect_next_round(store):
    late = _Counter()
    registered = []

    def registrar() -> None:
        if not registered:
            registered.append(store.subscribe(late))

    store.subscribe(registrar)
    store.append_log("info", "first")
    assert late.calls == 0

    store.append_log("info", "second")
    assert late.calls == 1


def test_subscriber_may_mutate_store(store):
    def echo() -> None:
        if store.logs[-1].content == "ping":
            store.append_log("info", "pong")

    store.subscribe(echo)
    store.append_log("info", "ping")

    assert [e.content for e in store.logs] == ["ping", "pong"]


def test_close_drops_all_subscriptions(store):
    counter = _Counter()
    store.subscribe(counter)
    store.subscribe(_Counter())

    store.close()
    store.append_log("info", "after close")

    assert store.subscriber_count == 0
    assert counter.calls == 0
    assert len(store.logs) == 1


def test_concurrent_writers_keep_ids_unique():
    import threading

    store = AgentObservabilityStore()
    seen = []
    store.subscribe(lambda: seen.append(len(store.logs)))

    def writer(n: int) -> None:
        for i in range(100):
            store.append_log("info", f"{n}-{i}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    logs = store.logs
    assert len(logs) == 400
    assert [e.id for e in logs] == list(range(1, 401))
    # Each notification observed exactly the state its own mutation produced.
    assert seen == list(range(1, 401))
