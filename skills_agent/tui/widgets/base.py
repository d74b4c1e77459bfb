"""StoreView — base widget bound to the observability store.

Subscribes on mount, unsubscribes exactly once on unmount, and repaints
on every store notification. Subclasses build their renderable from a
fresh snapshot in ``build()``.
"""

from __future__ import annotations

from collections.abc import Callable

from rich.console import RenderableType
from textual.widget import Widget

from skills_agent.engine.config import DashboardConfig
from skills_agent.engine.models import StoreSnapshot
from skills_agent.engine.store import AgentObservabilityStore


class StoreView(Widget):
    """Widget that re-renders whenever the store changes."""

    def __init__(
        self,
        store: AgentObservabilityStore,
        config: DashboardConfig | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.config = config or DashboardConfig()
        self._unsubscribe: Callable[[], None] | None = None

    def on_mount(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_store_changed)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_changed(self) -> None:
        self.refresh()

    def build(self, snapshot: StoreSnapshot) -> RenderableType:
        raise NotImplementedError

    def render(self) -> RenderableType:
        return self.build(self.store.snapshot())
