"""Subagent panel — most recent subagents with status icons."""

from __future__ import annotations

from rich.text import Text

from skills_agent.adapters.display import (
    BLUE,
    MUTED,
    SUBAGENT_ICONS,
    TEXT,
    subagent_counts,
    truncate,
)
from skills_agent.engine.models import StoreSnapshot
from skills_agent.tui.widgets.base import StoreView


def build_subagent_panel(
    snapshot: StoreSnapshot, limit: int = 15, truncate_chars: int = 80
) -> Text:
    """Counts line followed by the last *limit* subagents."""
    active, completed = subagent_counts(snapshot.subagents)
    body = Text()
    body.append(f"Active: {active} | Completed: {completed}\n\n", style=MUTED)

    if not snapshot.subagents:
        body.append("No subagents spawned yet...", style=MUTED)
        return body

    for subagent in snapshot.subagents[-limit:]:
        icon, color = SUBAGENT_ICONS[subagent.status]
        body.append(f"{icon} ", style=color)
        body.append(subagent.name, style=f"bold {TEXT}")
        body.append("\n  ")
        body.append(truncate(subagent.task, truncate_chars), style=MUTED)
        if subagent.progress:
            body.append("\n  ")
            body.append(subagent.progress, style=BLUE)
        body.append("\n\n")
    body.rstrip()
    return body


class SubagentPanel(StoreView):
    DEFAULT_CSS = """
    SubagentPanel {
        width: 40%;
        border: round #565f89;
        border-title-align: left;
        padding: 0 1;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Subagents"

    def build(self, snapshot: StoreSnapshot) -> Text:
        return build_subagent_panel(
            snapshot,
            self.config.subagent_display_limit,
            self.config.truncate_chars,
        )
