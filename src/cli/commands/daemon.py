"""Scheduler and single-cycle commands."""

import sys
import time

import click
from rich.console import Console

from cli.utils import get_engine_context

console = Console()


@click.command("run")
@click.option("--fetch-every", type=int, default=None, help="Fetch cycle interval (seconds)")
@click.option("--verify-every", type=int, default=None, help="Verify cycle interval (seconds)")
@click.option("--no-warm-up", is_flag=True, help="Skip the initial fetch + training pass")
@click.pass_context
def daemon(click_ctx: click.Context, fetch_every, verify_every, no_warm_up):
    """Run the fetch/predict and verify cycles until interrupted."""
    from orchestrator.scheduler import ForecastScheduler

    schedule = click_ctx.obj["config"].schedule
    scheduler = ForecastScheduler(
        get_engine_context(),
        fetch_interval=fetch_every or schedule.fetch_interval_seconds,
        verify_interval=verify_every or schedule.verify_interval_seconds,
    )
    scheduler.start(warm_up=schedule.warm_up and not no_warm_up)

    console.print(
        f"[green]Started[/] fetch every {scheduler.fetch_interval}s, "
        f"verify every {scheduler.verify_interval}s"
    )
    console.print("Press Ctrl+C to stop")

    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        scheduler.stop()
        console.print("\n[yellow]Stopped[/]")


@click.command("fetch")
@click.option("--train-all", is_flag=True, help="Train on stored history even with no new draws")
def fetch(train_all: bool):
    """Run one fetch → train → predict cycle."""
    from orchestrator.cycles import run_fetch_cycle, train

    ctx = get_engine_context()
    if train_all:
        train(ctx)
    result = run_fetch_cycle(ctx)

    if "error" in result:
        console.print(f"[red]Fetch failed:[/] {result['error']}")
        sys.exit(1)

    console.print(f"Appended {result['appended']} new draws")
    if result["training"]:
        trained = ", ".join(result["training"]["trained"]) or "none"
        console.print(f"Trained tiers: {trained}")
    if result["forecast"]:
        console.print(f"[green]Forecast created:[/] {result['forecast']}")
    else:
        console.print("[dim]No new forecast (already recorded)[/]")


@click.command("verify")
def verify():
    """Run one verification cycle against stored history."""
    from orchestrator.cycles import run_verify_cycle

    result = run_verify_cycle(get_engine_context())
    console.print(
        f"Resolved {result['resolved']} of {result['pending']} pending "
        f"([green]{result['wins']} won[/], [red]{result['losses']} lost[/])"
    )
