"""Shared CLI utilities."""

import click
import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_engine_context():
    """Build the engine context from the config loaded by the root command.

    The context is closed when the click context ends.
    """
    from orchestrator.context import build_context

    click_ctx = click.get_current_context()
    engine_ctx = build_context(click_ctx.obj["config"])
    click_ctx.call_on_close(engine_ctx.close)
    return engine_ctx


def confidence_str(value: float) -> str:
    return f"{value:.0%}"


def outcome_markup(outcome: str) -> str:
    if outcome == "WIN":
        return f"[green]{outcome}[/]"
    if outcome == "LOSS":
        return f"[red]{outcome}[/]"
    return f"[yellow]{outcome}[/]"
