"""Hacker News API client."""

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, List, Optional

import aiohttp
from aiohttp.client_exceptions import ClientResponseError
from pydantic import ValidationError

from whoishiring.config import HackerNewsConfig
from whoishiring.exceptions import RemoteFetchError
from whoishiring.models.item import ApiJob, ApiStory, ApiUser

logger = logging.getLogger(__name__)


class HackerNewsClient:
    """Read-only client for the Hacker News Firebase API.

    Every call is bounded by ``request_timeout_sec`` and is never retried;
    any failure surfaces as ``RemoteFetchError``.
    """

    def __init__(self, config: HackerNewsConfig, prometheus_exporter=None):
        """
        Initialize the client with configuration.

        Args:
            config: Hacker News API configuration
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.prometheus_exporter = prometheus_exporter
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Open the underlying HTTP session."""
        if self._session is None:
            logger.info(f"Initializing Hacker News client for {self.base_url}")
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout_sec),
                headers={"Accept": "application/json"},
            )

    async def close(self) -> None:
        """Close the HTTP session and release resources."""
        if self._session is not None:
            logger.info("Closing Hacker News client")
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HackerNewsClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _record_error(self, error_type: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_api_error(error_type)

    async def _get_json(
        self,
        path: str,
        operation: str,
        operation_type: str,
        item_id: Optional[int] = None,
    ) -> Any:
        """
        GET ``path`` relative to the base URL and decode the JSON body.

        Args:
            path: Path starting with '/'
            operation: Human readable operation for error messages
            operation_type: Metrics label ('user', 'story', 'job')
            item_id: Item id for error context

        Raises:
            RemoteFetchError: On any transport, HTTP or decode failure
        """
        if self._session is None:
            raise ValueError("Hacker News client not initialized")

        url = f"{self.base_url}{path}"

        if self.prometheus_exporter:
            self.prometheus_exporter.record_fetch_operation(operation_type)
            timer = self.prometheus_exporter.time_request()
        else:
            timer = None

        try:
            with timer if timer else nullcontext():
                async with self._session.get(url) as response:
                    response.raise_for_status()
                    return await response.json(content_type=None)
        except ClientResponseError as e:
            self._record_error("5xx" if 500 <= e.status < 600 else str(e.status))
            raise RemoteFetchError(operation, item_id, f"HTTP {e.status} from {url}") from e
        except asyncio.TimeoutError as e:
            self._record_error("timeout")
            raise RemoteFetchError(
                operation, item_id, f"request timed out after {self.config.request_timeout_sec}s"
            ) from e
        except aiohttp.ClientError as e:
            self._record_error("connection")
            raise RemoteFetchError(operation, item_id, str(e)) from e
        except ValueError as e:
            self._record_error("decode")
            raise RemoteFetchError(operation, item_id, f"invalid JSON: {e}") from e

    async def get_submission_ids(self, username: Optional[str] = None) -> List[int]:
        """
        Fetch the ids a user has submitted, newest first.

        Args:
            username: Hacker News user (defaults to the configured user)

        Returns:
            Ordered list of item ids
        """
        username = username or self.config.username
        operation = f"get {username} user"
        payload = await self._get_json(f"/user/{username}.json", operation, "user")

        try:
            user = ApiUser.model_validate(payload)
        except ValidationError as e:
            self._record_error("decode")
            raise RemoteFetchError(operation, message=f"unexpected payload: {e}") from e

        return user.submitted

    async def get_story(self, story_id: int) -> ApiStory:
        """Fetch an item and project it as a story (title and kids)."""
        payload = await self._get_json(f"/item/{story_id}.json", "get story", "story", story_id)

        try:
            return ApiStory.model_validate(payload)
        except ValidationError as e:
            self._record_error("decode")
            raise RemoteFetchError("decode story", story_id, str(e)) from e

    async def get_job(self, job_id: int) -> ApiJob:
        """Fetch an item and project it as a job (text and dead/deleted flags)."""
        payload = await self._get_json(f"/item/{job_id}.json", "get job", "job", job_id)

        try:
            return ApiJob.model_validate(payload)
        except ValidationError as e:
            self._record_error("decode")
            raise RemoteFetchError("decode job", job_id, str(e)) from e
