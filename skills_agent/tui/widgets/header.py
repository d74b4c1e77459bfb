"""Dashboard header — title, skill count, elapsed time, and run status."""

from __future__ import annotations

import time

from rich.text import Text

from skills_agent.adapters.display import (
    GREEN,
    MUTED,
    PURPLE,
    format_elapsed,
    run_status_color,
)
from skills_agent.engine.models import StoreSnapshot
from skills_agent.tui.widgets.base import StoreView

TITLE = "LangChain Skills Agent"


def build_header(snapshot: StoreSnapshot, elapsed_seconds: float) -> Text:
    header = Text()
    header.append(TITLE, style=f"bold {PURPLE}")
    header.append(" │ ", style=MUTED)
    header.append(f"Skills: {snapshot.total_skills_generated}", style=GREEN)
    header.append("    ")
    header.append(f"Elapsed: {format_elapsed(elapsed_seconds)}", style=MUTED)
    header.append(" │ ", style=MUTED)
    header.append(
        snapshot.status.value.upper(), style=run_status_color(snapshot.status)
    )
    return header


class DashboardHeader(StoreView):
    """One-line header; the elapsed clock ticks once a second."""

    DEFAULT_CSS = """
    DashboardHeader {
        height: 3;
        border: round #7aa2f7;
        padding: 0 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._started_at = time.monotonic()

    def on_mount(self) -> None:
        self.set_interval(1.0, self.refresh)

    def build(self, snapshot: StoreSnapshot) -> Text:
        return build_header(snapshot, time.monotonic() - self._started_at)
