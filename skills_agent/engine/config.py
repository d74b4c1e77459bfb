"""Configuration loaded from environment variables or a YAML file.

All settings have sensible defaults. Override via SKILLS_AGENT_* env
vars, or a YAML file with a ``dashboard:`` section.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def _optional_int(value: str | None) -> int | None:
    if value is None or value.strip() in {"", "0", "none"}:
        return None
    return int(value)


@dataclass
class DashboardConfig:
    """Dashboard and agent-run configuration."""

    # Agent run
    model: str = "claude-sonnet-4-5-20250929"
    recursion_limit: int = 200
    skills_dir: str = "skills"

    # Logging (the terminal belongs to the TUI, so logs go to a file)
    log_level: str = "INFO"
    log_file: str = "agent.log"

    # Display projections (never affect what the store retains)
    log_display_limit: int = 20
    subagent_display_limit: int = 15
    truncate_chars: int = 80
    message_tail_chars: int = 500

    # Store retention. None keeps the full log history.
    max_retained_logs: int | None = None

    @classmethod
    def from_env(cls) -> DashboardConfig:
        """Load configuration from SKILLS_AGENT_* environment variables."""
        overrides = {
            k: v for k, v in os.environ.items() if k.startswith("SKILLS_AGENT_")
        }
        if overrides:
            logger.info(
                "DashboardConfig.from_env: env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(overrides.items())),
            )

        config = cls(
            model=os.getenv("SKILLS_AGENT_MODEL", cls.model),
            recursion_limit=int(os.getenv(
                "SKILLS_AGENT_RECURSION_LIMIT", str(cls.recursion_limit)
            )),
            skills_dir=os.getenv("SKILLS_AGENT_SKILLS_DIR", cls.skills_dir),
            log_level=os.getenv("SKILLS_AGENT_LOG_LEVEL", cls.log_level).upper(),
            log_file=os.getenv("SKILLS_AGENT_LOG_FILE", cls.log_file),
            log_display_limit=int(os.getenv(
                "SKILLS_AGENT_LOG_DISPLAY_LIMIT", str(cls.log_display_limit)
            )),
            subagent_display_limit=int(os.getenv(
                "SKILLS_AGENT_SUBAGENT_DISPLAY_LIMIT",
                str(cls.subagent_display_limit),
            )),
            truncate_chars=int(os.getenv(
                "SKILLS_AGENT_TRUNCATE_CHARS", str(cls.truncate_chars)
            )),
            message_tail_chars=int(os.getenv(
                "SKILLS_AGENT_MESSAGE_TAIL_CHARS", str(cls.message_tail_chars)
            )),
            max_retained_logs=_optional_int(
                os.getenv("SKILLS_AGENT_MAX_RETAINED_LOGS")
            ),
        )
        logger.debug("DashboardConfig.from_env: %s", config)
        return config


def load_yaml_config(
    path: str | Path, base: DashboardConfig | None = None
) -> DashboardConfig:
    """Apply the ``dashboard:`` section of a YAML file over *base*.

    *base* defaults to ``DashboardConfig.from_env()``. Unknown keys are
    logged and ignored.
    """
    path = Path(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("load_yaml_config: config file not found at %s", path)
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise

    if base is None:
        base = DashboardConfig.from_env()

    section = raw.get("dashboard") or {}
    if not isinstance(section, dict):
        raise ValueError(f"{path}: 'dashboard' must be a mapping")

    known = {f.name for f in fields(DashboardConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        logger.warning(
            "load_yaml_config: ignoring unknown keys in %s: %s",
            path.name, ", ".join(unknown),
        )
    updates = {k: v for k, v in section.items() if k in known}
    if "log_level" in updates:
        updates["log_level"] = str(updates["log_level"]).upper()
    config = replace(base, **updates)
    logger.info(
        "load_yaml_config: loaded %s (%d override(s))", path, len(updates)
    )
    return config
