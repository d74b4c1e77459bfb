"""Activity log — recent log entries plus the streaming assistant text."""

from __future__ import annotations

from rich.text import Text

from skills_agent.adapters.display import (
    BLUE,
    ERROR_BACKGROUND,
    LOG_COLORS,
    MUTED,
    RED,
    TEXT,
    format_clock,
    tail,
)
from skills_agent.engine.models import LogEntry, LogType, StoreSnapshot
from skills_agent.tui.widgets.base import StoreView


def _entry_line(entry: LogEntry) -> Text:
    clock = f"[{format_clock(entry.timestamp)}]"
    line = Text()
    if entry.type == LogType.ERROR:
        block = f"on {ERROR_BACKGROUND}"
        line.append("✗ ERROR", style=f"bold {RED} {block}")
        line.append(f" {clock}\n", style=f"{MUTED} {block}")
        line.append(entry.content, style=f"{RED} {block}")
        return line
    line.append(clock, style=MUTED)
    line.append(" ")
    line.append(entry.content, style=LOG_COLORS[entry.type])
    return line


def build_activity_log(
    snapshot: StoreSnapshot, limit: int = 20, tail_chars: int = 500
) -> Text:
    """Last *limit* entries, then the in-flight assistant message."""
    entries = snapshot.logs[-limit:] if limit > 0 else ()
    lines = [_entry_line(entry) for entry in entries]
    if snapshot.current_message:
        message = Text()
        message.append("AI: ", style=BLUE)
        message.append(tail(snapshot.current_message, tail_chars), style=TEXT)
        lines.append(Text())
        lines.append(message)
    return Text("\n").join(lines)


class ActivityLog(StoreView):
    DEFAULT_CSS = """
    ActivityLog {
        height: 1fr;
        border: round #565f89;
        border-title-align: left;
        padding: 0 1;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Activity Log"

    def build(self, snapshot: StoreSnapshot) -> Text:
        return build_activity_log(
            snapshot,
            self.config.log_display_limit,
            self.config.message_tail_chars,
        )
