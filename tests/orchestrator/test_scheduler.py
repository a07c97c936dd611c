"""Tests for ForecastScheduler."""

from unittest.mock import MagicMock, patch

from orchestrator.scheduler import ForecastScheduler


@patch("orchestrator.scheduler.BackgroundScheduler")
class TestForecastScheduler:
    def test_start_registers_both_jobs(self, mock_sched_cls, engine_ctx):
        scheduler = ForecastScheduler(engine_ctx, fetch_interval=30, verify_interval=45)
        scheduler.start(warm_up=False)

        mock_sched = mock_sched_cls.return_value
        job_ids = [c.kwargs["id"] for c in mock_sched.add_job.call_args_list]
        assert job_ids == ["fetch_predict", "verify"]
        for call in mock_sched.add_job.call_args_list:
            assert call.kwargs["max_instances"] == 1
            assert call.kwargs["coalesce"] is True
        mock_sched.add_listener.assert_called_once()
        mock_sched.start.assert_called_once()

    def test_intervals(self, mock_sched_cls, engine_ctx):
        scheduler = ForecastScheduler(engine_ctx, fetch_interval=10, verify_interval=20)
        scheduler.start(warm_up=False)

        triggers = [c.kwargs["trigger"] for c in mock_sched_cls.return_value.add_job.call_args_list]
        assert triggers[0].interval.total_seconds() == 10
        assert triggers[1].interval.total_seconds() == 20

    def test_warm_up_fetches_and_trains(self, mock_sched_cls, engine_ctx, fake_source, make_records):
        fake_source.batch = make_records(12)
        scheduler = ForecastScheduler(engine_ctx)
        scheduler.start(warm_up=True)

        assert fake_source.calls == 1
        assert engine_ctx.history.count() == 12

    def test_warm_up_survives_fetch_failure(self, mock_sched_cls, engine_ctx, fake_source):
        fake_source.error = "unreachable"
        summary = ForecastScheduler(engine_ctx).warm_up()

        assert summary["trained"] == {}
        assert engine_ctx.history.count() == 0

    def test_stop_shuts_down_and_closes_source(self, mock_sched_cls, engine_ctx, fake_source):
        scheduler = ForecastScheduler(engine_ctx)
        scheduler.start(warm_up=False)
        scheduler.stop()
        mock_sched_cls.return_value.shutdown.assert_called_once()
        assert fake_source.closed

    def test_error_handler_calls_callback(self, mock_sched_cls, engine_ctx):
        on_error = MagicMock()
        scheduler = ForecastScheduler(engine_ctx, on_error=on_error)
        event = MagicMock(job_id="verify", exception=RuntimeError("db locked"), traceback="tb")

        scheduler._default_error_handler(event)
        on_error.assert_called_once_with(event)

    def test_error_callback_failure_swallowed(self, mock_sched_cls, engine_ctx):
        scheduler = ForecastScheduler(engine_ctx, on_error=MagicMock(side_effect=ValueError("x")))
        scheduler._default_error_handler(MagicMock(job_id="fetch_predict"))

    def test_run_now_helpers(self, mock_sched_cls, engine_ctx, fake_source, make_records):
        fake_source.batch = make_records(3)
        scheduler = ForecastScheduler(engine_ctx)

        assert scheduler.run_fetch_now()["appended"] == 3
        assert scheduler.run_verify_now()["pending"] == 1
