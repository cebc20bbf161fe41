"""Tests for the maintenance module."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from whoishiring.collector.maintenance import MaintenanceRunner
from whoishiring.collector.sync import SyncProcess, SyncResult
from whoishiring.config import Config
from whoishiring.exceptions import RemoteFetchError


class TestMaintenanceRunner(unittest.TestCase):
    """Tests for the MaintenanceRunner class."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = Config()
        self.config.sync.sync_interval_sec = 0

        self.sync_process = MagicMock(spec=SyncProcess)
        self.sync_process.run = AsyncMock(
            return_value=SyncResult(story_id=101, story_created=True, jobs_created=5, jobs_failed=1)
        )
        self.prometheus_exporter = MagicMock()

        self.runner = MaintenanceRunner(
            config=self.config,
            sync_process=self.sync_process,
            prometheus_exporter=self.prometheus_exporter,
        )

    def test_run_once_updates_stats(self):
        """Test that a successful cycle updates stats and metrics."""
        result = asyncio.run(self.runner.run_once())

        self.assertEqual(result.story_id, 101)
        self.assertEqual(self.runner.stats["runs_completed"], 1)
        self.assertEqual(self.runner.stats["stories_created"], 1)
        self.assertEqual(self.runner.stats["jobs_created"], 5)
        self.assertEqual(self.runner.stats["jobs_failed"], 1)
        self.assertEqual(self.runner.last_story_id, 101)
        self.assertGreater(self.runner.last_sync_time, 0)
        self.prometheus_exporter.record_sync_run.assert_called_once_with("success")

    def test_run_once_failure_is_counted_and_raised(self):
        """Test that a failed cycle is counted and re-raised."""
        self.sync_process.run.side_effect = RemoteFetchError("get whoishiring user")

        with self.assertRaises(RemoteFetchError):
            asyncio.run(self.runner.run_once())

        self.assertEqual(self.runner.stats["runs_failed"], 1)
        self.assertEqual(self.runner.stats["runs_completed"], 0)
        self.prometheus_exporter.record_sync_run.assert_called_once_with("failed")

    def test_run_daemon_survives_failed_cycle(self):
        """Test that the daemon logs a failed cycle and keeps going until stopped."""
        outcomes = [
            RemoteFetchError("get whoishiring user", message="timeout"),
            SyncResult(story_id=101, jobs_created=2),
        ]

        async def run_sync():
            outcome = outcomes.pop(0)
            if not outcomes:
                self.runner.stop()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        self.sync_process.run.side_effect = run_sync

        asyncio.run(self.runner.run_daemon())

        self.assertEqual(self.sync_process.run.await_count, 2)
        self.assertEqual(self.runner.stats["runs_failed"], 1)
        self.assertEqual(self.runner.stats["runs_completed"], 1)
        self.assertFalse(self.runner.running)

    def test_run_daemon_cancellation(self):
        """Test that cancelling the daemon task propagates CancelledError."""
        self.config.sync.sync_interval_sec = 3600

        async def run_and_cancel():
            task = asyncio.ensure_future(self.runner.run_daemon())
            # Let the first cycle finish and the loop reach its sleep
            for _ in range(5):
                await asyncio.sleep(0)
            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task

        asyncio.run(run_and_cancel())

        self.assertEqual(self.runner.stats["runs_completed"], 1)
        self.assertFalse(self.runner.running)

    def test_stop_wakes_sleeping_daemon(self):
        """Test that stop() ends the loop without waiting out the interval."""
        self.config.sync.sync_interval_sec = 3600

        async def run_and_stop():
            task = asyncio.ensure_future(self.runner.run_daemon())
            for _ in range(5):
                await asyncio.sleep(0)
            self.runner.stop()
            await asyncio.wait_for(task, timeout=2)

        asyncio.run(run_and_stop())

        self.assertEqual(self.sync_process.run.await_count, 1)
        self.assertFalse(self.runner.running)

    def test_get_metrics(self):
        """Test metrics before and after a cycle."""
        metrics = self.runner.get_metrics()
        self.assertIsNone(metrics["last_sync_age_sec"])
        self.assertIsNone(metrics["last_sync_time"])
        self.assertFalse(metrics["is_running"])

        asyncio.run(self.runner.run_once())
        metrics = self.runner.get_metrics()

        self.assertEqual(metrics["runs_completed"], 1)
        self.assertEqual(metrics["last_story_id"], 101)
        self.assertIsNotNone(metrics["last_sync_time"])
        self.assertGreaterEqual(metrics["last_sync_age_sec"], 0)


if __name__ == "__main__":
    unittest.main()
