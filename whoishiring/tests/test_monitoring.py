"""Tests for the monitoring module."""

import unittest
from unittest.mock import patch

from whoishiring.monitoring.metrics import PrometheusExporter, RequestTimer


class TestPrometheusExporter(unittest.TestCase):
    """Test cases for the PrometheusExporter class."""

    def setUp(self):
        """Set up test environment."""
        self.exporter = PrometheusExporter()

    def test_init(self):
        """Test initialization of the exporter."""
        self.assertEqual(self.exporter.port, 8000)
        self.assertFalse(self.exporter.server_started)

    def test_record_job_created(self):
        """Test recording a stored job by status."""
        with patch("whoishiring.monitoring.metrics.JOBS_CREATED") as mock_counter:
            self.exporter.record_job_created("dead")

            mock_counter.labels.assert_called_once_with(status="dead")
            mock_counter.labels.return_value.inc.assert_called_once()

    def test_record_job_failure(self):
        """Test recording a failed job by stage."""
        with patch("whoishiring.monitoring.metrics.JOB_FAILURES") as mock_counter:
            self.exporter.record_job_failure("fetch")

            mock_counter.labels.assert_called_once_with(stage="fetch")
            mock_counter.labels.return_value.inc.assert_called_once()

    def test_record_story_created(self):
        """Test recording a new story."""
        with patch("whoishiring.monitoring.metrics.STORIES_CREATED") as mock_counter:
            self.exporter.record_story_created()

            mock_counter.inc.assert_called_once()

    def test_record_api_error(self):
        """Test recording API errors."""
        with patch("whoishiring.monitoring.metrics.API_ERRORS") as mock_counter:
            self.exporter.record_api_error("timeout")

            mock_counter.labels.assert_called_once_with(error_type="timeout")
            mock_counter.labels.return_value.inc.assert_called_once()

    def test_record_fetch_operation(self):
        """Test recording fetch operations."""
        with patch("whoishiring.monitoring.metrics.FETCH_OPERATIONS") as mock_counter:
            self.exporter.record_fetch_operation("job")

            mock_counter.labels.assert_called_once_with(operation_type="job")
            mock_counter.labels.return_value.inc.assert_called_once()

    def test_gauges(self):
        """Test setting the gauges."""
        with patch("whoishiring.monitoring.metrics.KNOWN_JOBS") as known_jobs, \
                patch("whoishiring.monitoring.metrics.LAST_SYNC_AGE") as last_sync_age:
            self.exporter.set_known_jobs(42)
            self.exporter.set_last_sync_age(12.5)

            known_jobs.set.assert_called_once_with(42)
            last_sync_age.set.assert_called_once_with(12.5)

    def test_time_request(self):
        """Test that the request timer observes a duration."""
        with patch("whoishiring.monitoring.metrics.REQUEST_DURATION") as mock_histogram:
            timer = self.exporter.time_request()
            self.assertIsInstance(timer, RequestTimer)

            with timer:
                pass

            mock_histogram.observe.assert_called_once()
            self.assertGreaterEqual(mock_histogram.observe.call_args.args[0], 0)

    @patch("whoishiring.monitoring.metrics.start_http_server")
    def test_start_server(self, mock_start_http_server):
        """Test that the metrics server is started only once."""
        self.exporter.start_server()
        self.exporter.start_server()

        mock_start_http_server.assert_called_once_with(8000)
        self.assertTrue(self.exporter.server_started)

    @patch("whoishiring.monitoring.metrics.start_http_server", side_effect=OSError("address in use"))
    def test_start_server_port_in_use(self, mock_start_http_server):
        """Test that a busy port is logged and not raised."""
        self.exporter.start_server()

        self.assertFalse(self.exporter.server_started)


if __name__ == "__main__":
    unittest.main()
