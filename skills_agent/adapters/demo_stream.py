"""Scripted demo stream for running the dashboard without model access.

Yields chunks in the same ``(mode, data)`` shape the deep agent streams,
so the whole producer path (router, store, views) is exercised.
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from skills_agent.engine.skill_files import write_skill_file
from skills_agent.engine.store import AgentObservabilityStore

_TASK_ID = "8b255c2f-3248-5ba7-a69e-98daef12e11e"

_TOPICS = [
    ("langchain-chat-models", "Chat models and providers"),
    ("langchain-tools", "Defining and binding tools"),
    ("langgraph-persistence", "Checkpointers and memory"),
]


def _ai(text: str = "", tool_calls: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {"type": "ai", "content": text, "tool_calls": tool_calls or []}


def _tool_result(name: str, tool_call_id: str, content: str) -> dict[str, Any]:
    return {"type": "tool", "name": name, "tool_call_id": tool_call_id, "content": content}


def demo_script() -> list[tuple[str, Any]]:
    """The full scripted run as a list of stream chunks."""
    todos = [{"content": f"Write skill: {title}", "status": "pending"} for _, title in _TOPICS]
    chunks: list[tuple[str, Any]] = []

    for word in ["Exploring ", "the LangChain ", "documentation ", "navigation."]:
        chunks.append(("messages", (_ai(word), {"checkpoint_ns": "model:1"})))
    chunks.append(("updates", {"model": {}}))
    chunks.append(("updates", {"tools": {"todos": todos}}))

    chunks.append(("messages", (
        _ai(tool_calls=[{
            "id": "call-search",
            "name": "search_langchain_docs",
            "args": {"query": "overview"},
        }]),
        {},
    )))
    chunks.append(("updates", {"tools": {"messages": [
        _tool_result("search_langchain_docs", "call-search", "Found 12 pages"),
    ]}}))

    for index, (slug, title) in enumerate(_TOPICS):
        todos[index]["status"] = "in_progress"
        chunks.append(("updates", {"tools": {"todos": [dict(t) for t in todos]}}))
        chunks.append(("messages", (
            _ai(tool_calls=[{
                "id": f"call-task-{index}",
                "name": "task",
                "args": {"subagent_type": "skill-writer", "description": f"Write {slug}"},
            }]),
            {},
        )))
        task_id = _TASK_ID[:-1] + str(index)
        ns = {"checkpoint_ns": f"tools:{task_id}|model:1"}
        chunks.append(("messages", (_ai(f"Reading docs for {title}"), ns)))
        chunks.append(("messages", (_ai(f"Drafting SKILL.md for {slug}"), ns)))
        chunks.append(("updates", {"tools": {"messages": [
            _tool_result("task", f"call-task-{index}", f"Wrote {slug}/SKILL.md"),
        ]}}))
        todos[index]["status"] = "completed"
        chunks.append(("updates", {"tools": {"todos": [dict(t) for t in todos]}}))

    chunks.append(("messages", (_ai("All skills written."), {})))
    chunks.append(("updates", {"model": {}}))
    return chunks


async def demo_stream(
    store: AgentObservabilityStore,
    delay: float = 0.4,
    skills_dir: str | Path | None = None,
) -> AsyncIterator[tuple[str, Any]]:
    """Yield the demo script with a pause between chunks.

    Every finished subagent counts as one generated skill. With
    *skills_dir* set, a sample skill file is written there too, the way
    the skill-file tool of a real run would.
    """
    slugs = iter(_TOPICS)
    for mode, data in demo_script():
        await asyncio.sleep(delay)
        yield mode, data
        if mode != "updates" or "tools" not in data:
            continue
        for message in data["tools"].get("messages", []):
            if message["name"] != "task":
                continue
            slug, title = next(slugs)
            if skills_dir is None:
                store.increment_skills_generated()
            else:
                write_skill_file(
                    store,
                    skills_dir,
                    name=slug,
                    description=title,
                    content=f"## Overview\n\nDemo skill for {title}.\n",
                    language="python",
                    output_path=f"/{slug}/SKILL.md",
                )
