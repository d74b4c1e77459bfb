"""Skill file writer used by the agent's ``generate_skill_file`` tool.

Writes one language-specific SKILL.md (YAML frontmatter + heading +
body) under the skills directory and bumps the store's skill counter.
"""
from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

import yaml

from .errors import SkillFileError
from .store import AgentObservabilityStore

logger = logging.getLogger(__name__)

SKILL_NAME_RE = re.compile(r"^[a-z0-9-]+$")
MAX_NAME_CHARS = 64
MAX_DESCRIPTION_CHARS = 1024

LANGUAGE_LABELS: dict[str, str] = {
    "js": "JavaScript/TypeScript",
    "python": "Python",
}


def validate_skill_metadata(name: str, description: str, language: str) -> None:
    """Raise SkillFileError when metadata breaks the Agent Skills rules."""
    if not name or len(name) > MAX_NAME_CHARS or not SKILL_NAME_RE.match(name):
        raise SkillFileError(
            f"Invalid skill name {name!r}: use at most {MAX_NAME_CHARS} "
            "lowercase alphanumeric characters and hyphens"
        )
    if len(description) > MAX_DESCRIPTION_CHARS:
        raise SkillFileError(
            f"Description of {name!r} is {len(description)} chars "
            f"(max {MAX_DESCRIPTION_CHARS})"
        )
    if language not in LANGUAGE_LABELS:
        raise SkillFileError(
            f"Unsupported language {language!r}; "
            f"expected one of: {', '.join(LANGUAGE_LABELS)}"
        )


def resolve_skill_path(skills_dir: Path, output_path: str, language: str) -> Path:
    """Map ``/<skill>/SKILL.md`` to ``<skills_dir>/<skill>/<language>/SKILL.md``.

    Paths are always relative to *skills_dir*; escaping it is an error.
    """
    relative = output_path.lstrip("/")
    if relative.endswith("/SKILL.md"):
        relative = relative[: -len("/SKILL.md")] + f"/{language}/SKILL.md"
    root = skills_dir.resolve()
    target = (root / relative).resolve()
    if root != target and root not in target.parents:
        raise SkillFileError(f"Output path {output_path!r} escapes {skills_dir}")
    return target


def render_skill_file(name: str, description: str, content: str, language: str) -> str:
    frontmatter = yaml.safe_dump(
        {"name": name, "description": description, "language": language},
        sort_keys=False,
        allow_unicode=True,
    )
    label = LANGUAGE_LABELS[language]
    return f"---\n{frontmatter}---\n\n# {name} ({label})\n\n{content}"


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_skill_file(
    store: AgentObservabilityStore,
    skills_dir: str | Path,
    name: str,
    description: str,
    content: str,
    language: str = "js",
    output_path: str | None = None,
) -> str:
    """Write a skill file and return the tool's success message.

    Raises:
        SkillFileError: invalid metadata, or the file could not be written.
    """
    language = language or "js"
    validate_skill_metadata(name, description, language)
    target = resolve_skill_path(
        Path(skills_dir), output_path or f"/{name}/SKILL.md", language
    )
    text = render_skill_file(name, description, content, language)
    try:
        _write_atomic(target, text)
    except OSError as exc:
        raise SkillFileError(f"Failed to write file {target}: {exc}") from exc

    store.increment_skills_generated()
    logger.info("Wrote skill %s (%s) to %s", name, language, target)
    return (
        f"Successfully wrote {LANGUAGE_LABELS[language]} skill file "
        f"to {target} ({len(text.encode('utf-8'))} bytes)"
    )
