"""Adapters package - bridge between the agent stream and the dashboard.

Contains the stream router (producer side), the demo stream, and the
display helpers shared by the views.
"""
from __future__ import annotations

__all__ = [
    "StreamRouter",
    "demo_stream",
    "run_stream",
]

from skills_agent.adapters.demo_stream import demo_stream
from skills_agent.adapters.stream_router import StreamRouter, run_stream
