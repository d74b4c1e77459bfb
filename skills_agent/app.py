"""Skills agent CLI — main application entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from logging.handlers import RotatingFileHandler
from pathlib import Path


def _configure_logging(log_file: str, log_level: str) -> None:
    """Send all logging to a rotating file; the terminal belongs to the TUI."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()
    handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    ))
    root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skills-agent",
        description="Terminal dashboard for the LangChain skills agent.",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Replay a scripted agent run (no model access needed)",
    )
    parser.add_argument(
        "--config",
        help="YAML file with a 'dashboard:' section",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level for the log file (default: INFO)",
    )
    parser.add_argument(
        "--skills-dir",
        help="Directory generated skill files are written to",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    from skills_agent.engine.config import DashboardConfig, load_yaml_config

    args = build_parser().parse_args(argv)

    try:
        config = (
            load_yaml_config(args.config) if args.config
            else DashboardConfig.from_env()
        )
    except (OSError, ValueError) as exc:
        print(f"Could not load config: {exc}", file=sys.stderr)
        return 1
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.skills_dir:
        config.skills_dir = args.skills_dir

    if not args.demo:
        print(
            "No agent stream source configured. Run with --demo to replay "
            "a scripted run, or embed SkillsAgentApp with a stream factory.",
            file=sys.stderr,
        )
        return 2

    _configure_logging(config.log_file, config.log_level)
    logger = logging.getLogger(__name__)
    logger.info(
        "Starting dashboard cwd=%s skills_dir=%s demo=%s",
        Path.cwd(), config.skills_dir, args.demo,
    )

    from skills_agent.adapters.demo_stream import demo_stream
    from skills_agent.engine.store import AgentObservabilityStore
    from skills_agent.tui.app import SkillsAgentApp

    store = AgentObservabilityStore(max_retained_logs=config.max_retained_logs)
    stream_factory = (
        partial(demo_stream, skills_dir=args.skills_dir) if args.skills_dir
        else demo_stream
    )
    app = SkillsAgentApp(store, config, stream_factory=stream_factory)
    try:
        app.run()
    finally:
        store.close()
    return 0 if app.run_succeeded is not False else 1


if __name__ == "__main__":
    sys.exit(main())
