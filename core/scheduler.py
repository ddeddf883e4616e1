"""
Scheduler - Fires the processing run on a fixed interval.
"""

import time
import logging
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

JOB_ID = 'process-entities'


class IntervalScheduler:
    """APScheduler wrapper that hands each tick a run deadline."""

    def __init__(self, blocking: bool = False, scheduler=None):
        """
        Args:
            blocking: Use a BlockingScheduler (for a foreground daemon)
            scheduler: Pre-built APScheduler instance, mainly for tests
        """
        self.logger = logging.getLogger('IntervalScheduler')
        if scheduler is None:
            scheduler_class = BlockingScheduler if blocking else BackgroundScheduler
            # Overlap is decided by the run guard, so allow extra instances
            scheduler = scheduler_class(job_defaults={'coalesce': True, 'max_instances': 3})
        self.scheduler = scheduler

    def make_tick(self, timeout_seconds: float, run_fn: Callable[[float], object]) -> Callable[[], None]:
        """Wrap run_fn so each call gets a time.monotonic() deadline."""

        def tick() -> None:
            started = time.monotonic()
            run_fn(started + timeout_seconds)
            elapsed = time.monotonic() - started
            if elapsed > timeout_seconds:
                self.logger.warning(f"Run took {elapsed:.1f}s, over its {timeout_seconds}s timeout")

        return tick

    def schedule(
        self,
        interval_minutes: int,
        timeout_seconds: float,
        run_fn: Callable[[float], object],
        run_immediately: bool = True
    ) -> None:
        """
        Register run_fn to be called every interval_minutes.

        Args:
            interval_minutes: Period between ticks
            timeout_seconds: Deadline given to each run
            run_fn: Called with the deadline of the run
            run_immediately: Also fire once as soon as the scheduler starts
        """
        job_kwargs = {}
        if run_immediately:
            job_kwargs['next_run_time'] = datetime.now()

        self.scheduler.add_job(
            self.make_tick(timeout_seconds, run_fn),
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=JOB_ID,
            name='Catalog webhook run',
            replace_existing=True,
            **job_kwargs
        )
        self.logger.debug(f"Scheduled {JOB_ID} every {interval_minutes} minutes")

    def start(self) -> None:
        """Start firing ticks. Blocks when the scheduler is blocking."""
        self.scheduler.start()

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

