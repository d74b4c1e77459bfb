"""Hint bar — exit keys and version label."""

from __future__ import annotations

from rich.text import Text
from textual.widget import Widget

from skills_agent import __version__
from skills_agent.adapters.display import BLUE, MUTED


class HintBar(Widget):
    DEFAULT_CSS = """
    HintBar {
        height: 3;
        border: round #565f89;
        padding: 0 1;
    }
    """

    def render(self) -> Text:
        bar = Text(style=MUTED)
        bar.append("Press ")
        bar.append("ESC", style=BLUE)
        bar.append(" or ")
        bar.append("Ctrl+C", style=BLUE)
        bar.append(" to exit")
        bar.append(f"    LangChain Skills Generator v{__version__}")
        return bar
