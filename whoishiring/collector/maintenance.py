"""Maintenance loop that re-runs the sync on a fixed interval."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from whoishiring.collector.sync import SyncProcess, SyncResult
from whoishiring.config import Config

logger = logging.getLogger(__name__)


class MaintenanceRunner:
    """
    Runner for scheduled sync runs.

    Each cycle runs the sync once; a failed cycle is logged and counted and the
    loop carries on with the next one.
    """

    def __init__(
        self,
        config: Config,
        sync_process: SyncProcess,
        prometheus_exporter=None,
    ):
        """
        Initialize the maintenance runner.

        Args:
            config: Application configuration
            sync_process: Sync process to run each cycle
            prometheus_exporter: Optional Prometheus metrics exporter
        """
        self.config = config
        self.sync_process = sync_process
        self.prometheus_exporter = prometheus_exporter
        self.running = False
        self._stop_event = asyncio.Event()
        self.last_sync_time = 0.0
        self.last_story_id: Optional[int] = None
        self.stats: Dict[str, int] = {
            "runs_completed": 0,
            "runs_failed": 0,
            "stories_created": 0,
            "jobs_created": 0,
            "jobs_failed": 0,
        }

    async def run_once(self) -> SyncResult:
        """
        Run a single sync cycle and update the stats.

        Returns:
            Result of the sync run

        Raises:
            Whatever the sync process raises; the failure is counted first
        """
        cycle_start = time.time()
        logger.info(f"Starting sync cycle at {datetime.fromtimestamp(cycle_start, tz=timezone.utc)}")

        try:
            result = await self.sync_process.run()
        except Exception:
            self.stats["runs_failed"] += 1
            if self.prometheus_exporter:
                self.prometheus_exporter.record_sync_run("failed")
            raise

        self.last_sync_time = time.time()
        self.last_story_id = result.story_id
        self.stats["runs_completed"] += 1
        self.stats["jobs_created"] += result.jobs_created
        self.stats["jobs_failed"] += result.jobs_failed
        if result.story_created:
            self.stats["stories_created"] += 1

        if self.prometheus_exporter:
            self.prometheus_exporter.record_sync_run("success")
            self.prometheus_exporter.set_last_sync_age(0.0)

        logger.info(
            f"Sync cycle completed in {self.last_sync_time - cycle_start:.2f}s, "
            f"added {result.jobs_created} jobs to story {result.story_id}"
        )
        return result

    async def run_daemon(self) -> None:
        """Run the sync loop until stopped or cancelled."""
        self.running = True
        self._stop_event.clear()
        interval = self.config.sync.sync_interval_sec

        logger.info(f"Starting sync daemon, interval: {interval}s")

        try:
            while self.running:
                cycle_start = time.time()

                try:
                    await self.run_once()
                except Exception as e:
                    logger.error(f"Error in sync cycle: {str(e)}")

                if not self.running:
                    break

                elapsed = time.time() - cycle_start
                sleep_time = max(0, interval - elapsed)

                if sleep_time > 0:
                    logger.info(f"Sleeping for {sleep_time:.2f}s until next cycle")
                    try:
                        await asyncio.wait_for(self._stop_event.wait(), timeout=sleep_time)
                    except asyncio.TimeoutError:
                        pass

        except asyncio.CancelledError:
            logger.info("Sync daemon cancelled")
            self.running = False
            raise
        finally:
            logger.info(
                f"Sync daemon stopped after {self.stats['runs_completed']} successful cycles "
                f"({self.stats['runs_failed']} failed), added {self.stats['jobs_created']} jobs"
            )

    def stop(self) -> None:
        """Stop the loop after the current cycle, waking it if it is sleeping."""
        logger.info("Stopping sync daemon")
        self.running = False
        self._stop_event.set()

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get current metrics for monitoring.

        Returns:
            Dictionary of metrics
        """
        now = time.time()
        last_sync_age = now - self.last_sync_time if self.last_sync_time > 0 else None

        if self.prometheus_exporter and last_sync_age is not None:
            self.prometheus_exporter.set_last_sync_age(last_sync_age)

        return {
            **self.stats,
            "last_story_id": self.last_story_id,
            "last_sync_age_sec": last_sync_age,
            "last_sync_time": (
                datetime.fromtimestamp(self.last_sync_time, tz=timezone.utc).isoformat()
                if self.last_sync_time > 0
                else None
            ),
            "is_running": self.running,
        }
