"""CLI command tests using Click CliRunner.

Strategy: patch get_engine_context at each command module's import point so
commands run against a temp-database EngineContext with a fake draw source.
"""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cli.main import cli
from conftest import SMALL_THRESHOLDS, issue_id
from history.store import OutcomeRecord
from predictions.store import ForecastRecord
from shared_types import Category, Outcome


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "drawcast.yaml"
    path.write_text(f"paths:\n  db: {tmp_path / 'cli.db'}\n")
    return path


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("cli.main.setup_logging"):
        yield


def _invoke(runner, config_file, ctx, args):
    with patch("cli.commands.daemon.get_engine_context", return_value=ctx), patch(
        "cli.commands.forecasts.get_engine_context", return_value=ctx
    ):
        return runner.invoke(cli, ["-c", str(config_file), *args])


class TestRoot:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("run", "fetch", "verify", "predict", "forecasts", "history", "stats", "models"):
            assert name in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert "0.1.0" in result.output

    def test_bad_config_reported(self, runner, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("schedule:\n  fetch_interval_seconds: 0\n")
        result = runner.invoke(cli, ["-c", str(bad), "stats"])
        assert result.exit_code != 0
        assert "Config validation failed" in result.output


class TestFetchCommand:
    def test_fetch_creates_forecast(self, runner, config_file, engine_ctx, fake_source, make_records):
        fake_source.batch = make_records(8)
        result = _invoke(runner, config_file, engine_ctx, ["fetch"])

        assert result.exit_code == 0, result.output
        assert "Appended 8 new draws" in result.output
        assert issue_id(9) in result.output

    def test_fetch_failure_exits_nonzero(self, runner, config_file, engine_ctx, fake_source):
        fake_source.error = "HTTP 502 from draw source"
        result = _invoke(runner, config_file, engine_ctx, ["fetch"])

        assert result.exit_code == 1
        assert "Fetch failed" in result.output


class TestVerifyCommand:
    def test_verify_reports_counts(self, runner, config_file, engine_ctx):
        engine_ctx.forecasts.create_if_absent(
            ForecastRecord(
                issue_id=issue_id(1),
                predicted_value=3,
                predicted_category=Category.LOW,
                confidence=0.6,
            )
        )
        engine_ctx.history.append_if_absent(OutcomeRecord(issue_id=issue_id(1), value=3))

        result = _invoke(runner, config_file, engine_ctx, ["verify"])
        assert result.exit_code == 0, result.output
        assert "Resolved 1 of 1 pending" in result.output
        assert engine_ctx.forecasts.find_by_id(issue_id(1)).outcome == Outcome.WIN


class TestReadCommands:
    def _seed(self, ctx, make_records):
        for record in make_records(6):
            ctx.history.append_if_absent(record)

    def test_predict_does_not_persist(self, runner, config_file, engine_ctx, make_records):
        self._seed(engine_ctx, make_records)
        result = _invoke(runner, config_file, engine_ctx, ["predict", "--no-train"])

        assert result.exit_code == 0, result.output
        assert issue_id(7) in result.output
        assert engine_ctx.forecasts.query() == []

    def test_forecasts_empty(self, runner, config_file, engine_ctx):
        result = _invoke(runner, config_file, engine_ctx, ["forecasts"])
        assert "No forecasts found" in result.output

    def test_forecasts_listing(self, runner, config_file, engine_ctx):
        engine_ctx.forecasts.create_if_absent(
            ForecastRecord(
                issue_id=issue_id(4),
                predicted_value=8,
                predicted_category=Category.HIGH,
                confidence=0.81,
                model_tier="fallback",
            )
        )
        result = _invoke(runner, config_file, engine_ctx, ["forecasts", "--status", "pending"])
        assert result.exit_code == 0, result.output
        assert issue_id(4) in result.output
        assert "PENDING" in result.output

    def test_history(self, runner, config_file, engine_ctx, make_records):
        self._seed(engine_ctx, make_records)
        result = _invoke(runner, config_file, engine_ctx, ["history", "-n", "3"])

        assert result.exit_code == 0, result.output
        assert issue_id(6) in result.output
        assert issue_id(1) not in result.output

    def test_stats(self, runner, config_file, engine_ctx):
        engine_ctx.stats.increment(wins_delta=3, losses_delta=1)
        result = _invoke(runner, config_file, engine_ctx, ["stats"])

        assert result.exit_code == 0, result.output
        assert "3 won / 1 lost (4 total)" in result.output
        assert "75.00%" in result.output

    def test_models(self, runner, config_file, build_ctx, make_records):
        ctx = build_ctx(thresholds=SMALL_THRESHOLDS)
        for record in make_records(45):
            ctx.history.append_if_absent(record)

        result = _invoke(runner, config_file, ctx, ["models", "--train"])
        assert result.exit_code == 0, result.output
        assert "ultra" in result.output
        assert "ensemble" in result.output


class TestEngineContextLifetime:
    def test_source_closed_when_command_ends(self, tmp_path):
        import click

        from cli.config_models import DrawcastConfig
        from cli.utils import get_engine_context

        config = DrawcastConfig.from_dict({"paths": {"db": str(tmp_path / "ctx.db")}})
        click_ctx = click.Context(click.Command("stats"), obj={"config": config})
        with click_ctx:
            engine_ctx = get_engine_context()
            assert not engine_ctx.source.client.is_closed

        assert engine_ctx.source.client.is_closed

    def test_fetch_command_closes_source(self, runner, config_file, fake_source):
        from cli.config import load_config
        from orchestrator.context import build_context

        ctx = build_context(load_config(config_file), source=fake_source)
        with patch("orchestrator.context.build_context", return_value=ctx):
            result = runner.invoke(cli, ["-c", str(config_file), "fetch"])

        assert result.exit_code == 0, result.output
        assert fake_source.closed


class TestRunCommand:
    def test_run_starts_and_stops_scheduler(self, runner, config_file, engine_ctx):
        scheduler = MagicMock(fetch_interval=5, verify_interval=9)
        with patch(
            "orchestrator.scheduler.ForecastScheduler", return_value=scheduler
        ) as sched_cls, patch("cli.commands.daemon.time.sleep", side_effect=KeyboardInterrupt):
            result = _invoke(
                runner, config_file, engine_ctx, ["run", "--fetch-every", "5", "--no-warm-up"]
            )

        assert result.exit_code == 0, result.output
        assert sched_cls.call_args.kwargs["fetch_interval"] == 5
        assert sched_cls.call_args.kwargs["verify_interval"] == 45
        scheduler.start.assert_called_once_with(warm_up=False)
        scheduler.stop.assert_called_once()
        assert "Stopped" in result.output
