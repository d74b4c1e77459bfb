"""Dashboard screen — header, subagents, todos, activity log, hints."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.screen import Screen

from skills_agent.engine.config import DashboardConfig
from skills_agent.engine.store import AgentObservabilityStore
from skills_agent.tui.widgets import (
    ActivityLog,
    DashboardHeader,
    HintBar,
    SubagentPanel,
    TodoPanel,
)


class DashboardScreen(Screen):
    """Single screen of the dashboard. Every panel shares one store."""

    DEFAULT_CSS = """
    DashboardScreen {
        layout: vertical;
    }
    #panels {
        height: 1fr;
        margin-top: 1;
    }
    #activity-log {
        height: 1fr;
        margin-top: 1;
    }
    """

    def __init__(
        self, store: AgentObservabilityStore, config: DashboardConfig
    ) -> None:
        super().__init__()
        self.store = store
        self.config = config

    def compose(self) -> ComposeResult:
        yield DashboardHeader(self.store, self.config, id="header")
        with Horizontal(id="panels"):
            yield SubagentPanel(self.store, self.config, id="subagents")
            yield TodoPanel(self.store, self.config, id="todos")
        yield ActivityLog(self.store, self.config, id="activity-log")
        yield HintBar(id="hints")
