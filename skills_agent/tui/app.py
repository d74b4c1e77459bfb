"""Skills agent TUI — Textual application class."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Callable
from typing import Any

from textual.app import App

from skills_agent.adapters.stream_router import run_stream
from skills_agent.engine.config import DashboardConfig
from skills_agent.engine.models import LogType
from skills_agent.engine.store import AgentObservabilityStore
from skills_agent.tui.screens.dashboard import DashboardScreen

logger = logging.getLogger(__name__)

StreamFactory = Callable[[AgentObservabilityStore], AsyncIterable[tuple[str, Any]]]


class SkillsAgentApp(App):
    """Terminal dashboard for one agent run.

    The app owns nothing but a handle to the store: the producer (the
    stream worker) and every panel share the same instance. Whoever
    constructed the store closes it after the app exits.
    """

    TITLE = "LangChain Skills Agent"

    BINDINGS = [
        ("escape", "quit", "Quit"),
        ("ctrl+c", "quit", "Quit"),
    ]

    def __init__(
        self,
        store: AgentObservabilityStore,
        config: DashboardConfig | None = None,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        super().__init__()
        self.store = store
        self.config = config or DashboardConfig()
        self._stream_factory = stream_factory
        self.run_succeeded: bool | None = None

    def on_mount(self) -> None:
        self.push_screen(DashboardScreen(self.store, self.config))
        self.store.append_log(LogType.INFO, "Starting LangChain Skills Agent...")
        if self._stream_factory is not None:
            self.run_worker(self._run_agent(), name="agent-run", exclusive=True)

    async def _run_agent(self) -> None:
        stream = self._stream_factory(self.store)
        self.run_succeeded = await run_stream(self.store, stream)
        logger.info("Agent run finished (success=%s)", self.run_succeeded)
