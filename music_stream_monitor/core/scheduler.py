"""Scheduler for polling cycles."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger


class PollScheduler:
    """Runs polling cycles one at a time on a single worker thread.

    Each cycle is a one-shot job; the cycle itself decides when the next one
    runs by calling schedule_next().
    """

    def __init__(
        self,
        logger: logging.Logger,
        cycle_function: Callable[[], None]
    ):
        """Initialize scheduler.

        Args:
            logger: Logger instance
            cycle_function: Function running one polling cycle (no args)
        """
        self.logger = logger
        self.cycle_function = cycle_function

        self.scheduler = BackgroundScheduler(
            executors={'default': ThreadPoolExecutor(max_workers=1)},
            job_defaults={'max_instances': 1, 'misfire_grace_time': None}
        )
        self._job_id = "poll_cycle"

    def start(self) -> None:
        """Start the scheduler and run the first cycle immediately."""
        try:
            self.scheduler.start()
            self.schedule_next(0)
            self.logger.debug("Poll scheduler started")
        except Exception as e:
            self.logger.error(f"Failed to start poll scheduler: {e}")
            raise

    def schedule_next(self, delay_seconds: float) -> None:
        """Schedule the next cycle.

        Args:
            delay_seconds: Delay from now before the cycle runs
        """
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        self.scheduler.add_job(
            self.cycle_function,
            trigger=DateTrigger(run_date=run_date),
            id=self._job_id,
            name="Poll Cycle",
            replace_existing=True
        )

    def cancel_pending(self) -> bool:
        """Drop the next cycle if it has not started yet.

        Returns:
            True if a pending cycle was removed
        """
        try:
            self.scheduler.remove_job(self._job_id)
            return True
        except JobLookupError:
            return False

    def stop(self, wait: bool = False) -> None:
        """Stop the scheduler.

        Args:
            wait: Block until a running cycle has finished. Must be False
                when called from within a cycle.
        """
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=wait)
                self.logger.debug("Poll scheduler stopped")
        except Exception as e:
            self.logger.error(f"Error stopping poll scheduler: {e}")
