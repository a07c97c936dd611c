"""CLI entry point for drawcast."""

import sys
from pathlib import Path

import click

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import daemon, fetch, forecasts, history, models, predict, stats, verify
from cli.config import load_config
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Config file (default: ./drawcast.yaml or ~/.drawcast/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool, config_path: Path | None):
    """drawcast - draw history forecasting engine."""
    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))

    setup_logging(
        json_mode=json_logs or config.logging.json_mode,
        level="DEBUG" if verbose else config.logging.level,
        log_file=config.paths.log_file,
    )
    ctx.obj = {"config": config}


for command in (daemon, fetch, verify, predict, forecasts, history, stats, models):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
