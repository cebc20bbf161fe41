"""Synchronization of the current "Who is hiring?" story and its jobs."""

import asyncio
import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import List, Optional

from whoishiring.exceptions import RemoteFetchError, ThreadNotFoundError
from whoishiring.hn_client import HackerNewsClient
from whoishiring.models.item import ApiStory, JobStatus
from whoishiring.models.mapping import job_to_record, story_to_record
from whoishiring.storage.repository import StoryJobRepository

logger = logging.getLogger(__name__)

WHO_IS_HIRING_TITLE_PREFIX = "Ask HN: Who is hiring?"

# The whoishiring user posts three stories at the start of each month:
# "Who is hiring?", "Who wants to be hired?" and "Freelancer? Seeking freelancer?".
# The current hiring story is assumed to be one of the three newest submissions.
SUBMISSION_WINDOW = 3


@dataclass
class SyncResult:
    """Outcome of a successful sync run."""

    story_id: int
    story_created: bool = False
    jobs_created: int = 0
    jobs_failed: int = 0
    jobs_skipped: int = 0


class SyncProcess:
    """Fetch and save the latest "Who is hiring?" story and its jobs.

    Running it again with unchanged remote data writes nothing.
    """

    def __init__(
        self,
        repository: StoryJobRepository,
        client: HackerNewsClient,
        max_concurrency: Optional[int] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the sync process.

        Args:
            repository: Story/job repository
            client: Initialized Hacker News client
            max_concurrency: Optional cap on concurrent job fetches (None for no cap)
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.repository = repository
        self.client = client
        self.max_concurrency = max_concurrency
        self.prometheus_exporter = prometheus_exporter

    async def run(self) -> SyncResult:
        """
        Resolve the current hiring story and store any jobs not stored yet.

        Returns:
            SyncResult with the story id and per-run counts

        Raises:
            RemoteFetchError: If the submissions or the story cannot be fetched
            ThreadNotFoundError: If no candidate submission is a hiring story
            RepositoryError: If the story cannot be read, created or its job ids listed
        """
        logger.info("Starting data sync")

        submission_ids = await self.client.get_submission_ids()
        candidate_ids = submission_ids[:SUBMISSION_WINDOW]

        existing_story = await self.repository.get_latest_story()

        if existing_story is not None and existing_story["hn_id"] in candidate_ids:
            logger.info(f"Found existing 'Who is hiring?' story: {existing_story['hn_id']}")
            return await self._sync_jobs(existing_story["hn_id"], story_created=False)

        new_story = await self._find_who_is_hiring_story(candidate_ids)
        await self.repository.create_story(story_to_record(new_story))

        if self.prometheus_exporter:
            self.prometheus_exporter.record_story_created()
        logger.info(f"New 'Who is hiring?' story found and created: {new_story.id} ({new_story.title})")

        return await self._sync_jobs(new_story.id, story_created=True)

    async def _find_who_is_hiring_story(self, candidate_ids: List[int]) -> ApiStory:
        """Return the first candidate whose title starts with the hiring prefix."""
        for story_id in candidate_ids:
            try:
                story = await self.client.get_story(story_id)
            except RemoteFetchError as e:
                logger.warning(f"Failed to get candidate story {story_id}: {e}")
                continue

            if story.title.startswith(WHO_IS_HIRING_TITLE_PREFIX):
                return story

            logger.debug(f"Candidate story {story_id} is not a hiring story: {story.title!r}")

        raise ThreadNotFoundError(candidate_ids)

    async def _sync_jobs(self, story_id: int, story_created: bool) -> SyncResult:
        """Fetch and save jobs of ``story_id`` that are not stored yet."""
        logger.info(f"Processing jobs for 'Who is hiring?' story {story_id}")

        story = await self.client.get_story(story_id)
        saved_ids = await self.repository.get_job_ids_by_story_id(story_id)

        result = SyncResult(story_id=story_id, story_created=story_created)
        new_ids = []
        for job_id in story.kids:
            if job_id in saved_ids:
                continue

            # The API occasionally lists placeholder ids among the kids
            if job_id < 1:
                logger.info(f"Skipping invalid hiring job id: {job_id}")
                result.jobs_skipped += 1
                continue

            new_ids.append(job_id)

        logger.info(
            f"Story {story_id} has {len(story.kids)} jobs, {len(saved_ids)} already stored, "
            f"{len(new_ids)} to fetch"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        outcomes = await asyncio.gather(
            *(self._save_job(job_id, story_id, semaphore) for job_id in new_ids)
        )

        result.jobs_created = sum(1 for saved in outcomes if saved)
        result.jobs_failed = len(outcomes) - result.jobs_created

        if self.prometheus_exporter:
            self.prometheus_exporter.set_known_jobs(len(saved_ids) + result.jobs_created)

        logger.info(
            f"Sync complete for story {story_id}: {result.jobs_created} jobs added, "
            f"{result.jobs_failed} failed, {result.jobs_skipped} skipped"
        )
        return result

    async def _save_job(
        self,
        job_id: int,
        story_id: int,
        semaphore: Optional[asyncio.Semaphore],
    ) -> bool:
        """Fetch and store one job. Errors are logged and reported as False."""
        async with semaphore if semaphore else nullcontext():
            try:
                job = await self.client.get_job(job_id)
            except Exception as e:
                logger.error(f"Failed to get job {job_id}: {e}")
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_job_failure("fetch")
                return False

            record = job_to_record(job)
            try:
                await self.repository.create_job(record, story_id)
            except Exception as e:
                logger.error(f"Failed to create job {job_id}: {e}")
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_job_failure("persist")
                return False

        if self.prometheus_exporter:
            self.prometheus_exporter.record_job_created(JobStatus(record["status"]).name.lower())
        logger.debug(f"Added new hiring job {job_id}")
        return True
