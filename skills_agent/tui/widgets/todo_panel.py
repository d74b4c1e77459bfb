"""Todo panel — the full plan, in order."""

from __future__ import annotations

from rich.text import Text

from skills_agent.adapters.display import (
    MUTED,
    TEXT,
    TODO_ICONS,
    todo_counts,
    truncate,
)
from skills_agent.engine.models import StoreSnapshot, TodoStatus
from skills_agent.tui.widgets.base import StoreView


def build_todo_panel(snapshot: StoreSnapshot, truncate_chars: int = 80) -> Text:
    total, in_progress, done = todo_counts(snapshot.todos)
    body = Text()
    body.append(
        f"Total: {total} | In Progress: {in_progress} | Done: {done}\n\n",
        style=MUTED,
    )
    if not snapshot.todos:
        body.append("No todos yet...", style=MUTED)
        return body

    lines = []
    for todo in snapshot.todos:
        icon, color = TODO_ICONS[todo.status]
        line = Text()
        line.append(f"{icon} ", style=color)
        line.append(
            truncate(todo.content, truncate_chars),
            style=MUTED if todo.status == TodoStatus.COMPLETED else TEXT,
        )
        lines.append(line)
    body.append_text(Text("\n").join(lines))
    return body


class TodoPanel(StoreView):
    DEFAULT_CSS = """
    TodoPanel {
        width: 1fr;
        border: round #565f89;
        border-title-align: left;
        padding: 0 1;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Todo List"

    def build(self, snapshot: StoreSnapshot) -> Text:
        return build_todo_panel(snapshot, self.config.truncate_chars)
