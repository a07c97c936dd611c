"""Forecast ledger and model inspection commands."""

import math

import click
from rich.console import Console
from rich.table import Table

from cli.utils import confidence_str, get_engine_context, outcome_markup

console = Console()


@click.command("predict")
@click.option("--no-train", is_flag=True, help="Skip training on stored history first")
def predict(no_train: bool):
    """Show the forecast for the next issue without saving it."""
    from history.store import QueryOrder
    from orchestrator.cycles import train

    ctx = get_engine_context()
    if not no_train:
        with console.status("Training..."):
            train(ctx)

    history = ctx.history.query(limit=ctx.retain_limit, order=QueryOrder.OLDEST_FIRST)
    try:
        draft = ctx.forecaster.predict(history)
    except ValueError as e:
        raise click.ClickException(str(e))

    console.print(f"\n[bold]Next issue:[/] {draft.issue_id}")
    console.print(f"  Value: [cyan]{draft.predicted_value}[/] ({draft.predicted_category})")
    console.print(f"  Confidence: {confidence_str(draft.confidence)}")
    console.print(f"  Source: {draft.model_tier}")


@click.command("forecasts")
@click.option(
    "--status",
    type=click.Choice(["PENDING", "WIN", "LOSS", "all"], case_sensitive=False),
    default="all",
)
@click.option("--limit", "-n", default=20)
def forecasts(status: str, limit: int):
    """List recorded forecasts."""
    from shared_types import Outcome

    ctx = get_engine_context()
    outcome = Outcome(status.upper()) if status.lower() != "all" else None
    rows = ctx.forecasts.query(outcome=outcome, limit=limit)

    if not rows:
        console.print("[yellow]No forecasts found.[/]")
        return

    table = Table(show_header=True, title="Forecasts")
    table.add_column("Issue", style="cyan")
    table.add_column("Pred", justify="right")
    table.add_column("Size")
    table.add_column("Conf", justify="right")
    table.add_column("Tier", style="dim")
    table.add_column("Actual", justify="right")
    table.add_column("Outcome")

    for r in rows:
        actual = "" if r.actual_value is None else f"{r.actual_value} ({r.actual_category})"
        table.add_row(
            r.issue_id,
            str(r.predicted_value),
            str(r.predicted_category),
            confidence_str(r.confidence),
            r.model_tier,
            actual,
            outcome_markup(str(r.outcome)),
        )

    console.print(table)


@click.command("history")
@click.option("--limit", "-n", default=20)
def history(limit: int):
    """Show the most recent observed draws."""
    ctx = get_engine_context()
    records = ctx.history.query(limit=limit)

    if not records:
        console.print("[yellow]No draws stored yet.[/]")
        return

    table = Table(show_header=True, title=f"Latest draws ({ctx.history.count()} stored)")
    table.add_column("Issue", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Size")
    table.add_column("Observed", style="dim")
    for r in records:
        table.add_row(r.issue_id, str(r.value), str(r.category), r.observed_at[:19])
    console.print(table)


@click.command("stats")
def stats():
    """Show session win/loss counters and ledger accuracy."""
    ctx = get_engine_context()
    session = ctx.stats.get()
    ledger = ctx.forecasts.accuracy()

    console.print(f"\n[bold]Session:[/] {session.wins} won / {session.losses} lost ({session.total} total)")
    if session.win_rate is not None:
        console.print(f"[bold]Session win rate:[/] {session.win_rate:.2%}")
    console.print(f"[bold]Pending forecasts:[/] {ledger['pending']}")
    if ledger["accuracy"] is not None:
        console.print(f"[bold]Ledger accuracy:[/] {ledger['accuracy']:.2%} of {ledger['total']}")


@click.command("models")
@click.option("--train", "do_train", is_flag=True, help="Train on stored history before listing")
def models(do_train: bool):
    """Show model tiers, thresholds and training state."""
    from orchestrator.cycles import train

    ctx = get_engine_context()
    if do_train:
        with console.status("Training..."):
            train(ctx)
    n = min(ctx.history.count(), ctx.retain_limit)

    table = Table(show_header=True, title=f"Model tiers (history: {n})")
    table.add_column("Tier", style="cyan")
    table.add_column("Threshold", justify="right")
    table.add_column("Eligible")
    table.add_column("Trained")
    table.add_column("Loss", justify="right")
    table.add_column("Val loss", justify="right")

    eligible_tiers = {tier.value for tier in ctx.registry.eligible_tiers(n)}
    for row in ctx.registry.snapshot():
        eligible = "[green]yes[/]" if row["tier"] in eligible_tiers else "[dim]no[/]"
        loss = "-" if math.isinf(row["loss"]) else f"{row['loss']:.4f}"
        val = "-" if row["val_loss"] is None else f"{row['val_loss']:.4f}"
        table.add_row(
            row["tier"],
            str(row["threshold"]),
            eligible,
            "yes" if row["trained"] else "no",
            loss,
            val,
        )
    console.print(table)
