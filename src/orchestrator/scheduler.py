"""Interval scheduling of the fetch and verify cycles."""

from datetime import datetime
from typing import Callable, Optional

import structlog
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from errors import FetchError
from observability import log_run_summary

from .context import EngineContext
from .cycles import ingest, run_fetch_cycle, run_verify_cycle, train

logger = structlog.get_logger()


class ForecastScheduler:
    """Runs the two cycles on fixed cadences.

    Each job has max_instances=1, so a slow run of one cycle delays its own
    next tick but never overlaps itself; the two cycles may overlap each other.
    """

    def __init__(
        self,
        ctx: EngineContext,
        fetch_interval: int = 30,
        verify_interval: int = 45,
        on_error: Optional[Callable] = None,
    ):
        self.ctx = ctx
        self.fetch_interval = fetch_interval
        self.verify_interval = verify_interval
        self.on_error = on_error
        self.scheduler = BackgroundScheduler()

    def run_fetch_now(self) -> dict:
        return run_fetch_cycle(self.ctx)

    def run_verify_now(self) -> dict:
        return run_verify_cycle(self.ctx)

    def warm_up(self) -> dict:
        """Initial load: fetch what is available and train on the stored history."""
        try:
            appended = ingest(self.ctx)
        except FetchError as e:
            logger.warning("warm_up_fetch_failed", error=str(e))
            appended = 0
        summary = train(self.ctx)
        logger.info("warm_up_complete", appended=appended, trained=list(summary["trained"]))
        return summary

    def _default_error_handler(self, event):
        """Log job failures escaping a cycle; the next tick retries."""
        logger.error(
            "job_error",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )
        if self.on_error:
            try:
                self.on_error(event)
            except Exception as e:
                logger.error("on_error_callback_failed", error=str(e))

    def start(self, warm_up: bool = True):
        """Start both interval jobs; the fetch job fires immediately."""
        if warm_up:
            self.warm_up()

        self.scheduler.add_job(
            self.run_fetch_now,
            trigger=IntervalTrigger(seconds=self.fetch_interval),
            id="fetch_predict",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            next_run_time=datetime.now(),
        )
        self.scheduler.add_job(
            self.run_verify_now,
            trigger=IntervalTrigger(seconds=self.verify_interval),
            id="verify",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.add_listener(self._default_error_handler, EVENT_JOB_ERROR)
        self.scheduler.start()
        logger.info(
            "scheduler_started",
            fetch_interval=self.fetch_interval,
            verify_interval=self.verify_interval,
        )

    def stop(self):
        """Stop scheduler, waiting for running cycles to finish."""
        self.scheduler.shutdown()
        self.ctx.close()
        log_run_summary(self.ctx.metrics)
