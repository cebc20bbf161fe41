"""
Story/Job repository.

``StoryJobRepository`` is the capability set the sync process and the read
side depend on. ``SQLAlchemyRepository`` implements it on top of an async
SQLAlchemy session factory; any other store implementing the same methods
can be substituted.
"""

import logging
from typing import Dict, Optional, Protocol, Set, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from whoishiring.exceptions import DuplicateRecordError, JobNotFoundError, RepositoryError
from whoishiring.models.item import JobStatus
from whoishiring.models.mapping import job_row_to_record, story_row_to_record
from whoishiring.models.story import HiringJobORM, HiringStoryORM, JobRecord, StoryRecord
from whoishiring.storage.database import session_scope

logger = logging.getLogger(__name__)


class StoryJobRepository(Protocol):
    """Persistence operations for hiring stories and jobs."""

    async def get_latest_story(self) -> Optional[StoryRecord]:
        """Return the story with the greatest time, or None if no story is stored."""
        ...

    async def create_story(self, story: StoryRecord) -> None:
        """Insert a story; raises DuplicateRecordError if the id already exists."""
        ...

    async def get_job_ids_by_story_id(self, story_id: int) -> Set[int]:
        """Return the ids of all jobs stored for a story (empty set if none)."""
        ...

    async def create_job(self, job: JobRecord, story_id: int) -> None:
        """Insert a job under the given story."""
        ...

    async def get_min_max_job_ids(self, story_id: int) -> Tuple[Optional[int], Optional[int]]:
        """Return the lowest and highest ok job ids of a story, or (None, None) if it has none."""
        ...

    async def get_first_job(self, story_id: int) -> Optional[JobRecord]:
        """Return the ok job with the highest id, or None."""
        ...

    async def get_next_job_by_id(self, story_id: int, job_id: int) -> Optional[JobRecord]:
        """Return the ok job with the greatest id below ``job_id``, or None."""
        ...

    async def get_previous_job_by_id(self, story_id: int, job_id: int) -> Optional[JobRecord]:
        """Return the ok job with the smallest id above ``job_id``, or None."""
        ...

    async def set_job_as_seen(self, job_id: int) -> None:
        """Set the job's seen flag; raises JobNotFoundError if no job has this id."""
        ...

    async def count_jobs(self, story_id: int) -> Dict[JobStatus, int]:
        """Return the number of stored jobs of a story per status (0 for absent statuses)."""
        ...


class SQLAlchemyRepository:
    """StoryJobRepository backed by SQLAlchemy async sessions.

    Every call opens its own session from the pooled factory, so the
    repository can be shared by concurrent tasks.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_latest_story(self) -> Optional[StoryRecord]:
        stmt = select(HiringStoryORM).order_by(HiringStoryORM.time.desc()).limit(1)
        try:
            async with session_scope(self.session_factory, read_only=True) as session:
                row = (await session.execute(stmt)).scalars().first()
        except SQLAlchemyError as e:
            raise RepositoryError("get latest hiring story", message=str(e)) from e

        if row is None:
            return None
        return story_row_to_record(row)

    async def create_story(self, story: StoryRecord) -> None:
        try:
            async with session_scope(self.session_factory) as session:
                session.add(
                    HiringStoryORM(hn_id=story["hn_id"], title=story["title"], time=story["time"])
                )
        except IntegrityError as e:
            raise DuplicateRecordError("create hiring story", story["hn_id"], str(e.orig)) from e
        except SQLAlchemyError as e:
            raise RepositoryError("create hiring story", story["hn_id"], str(e)) from e

        logger.debug(f"Created hiring story {story['hn_id']}")

    async def get_job_ids_by_story_id(self, story_id: int) -> Set[int]:
        stmt = select(HiringJobORM.hn_id).where(HiringJobORM.hiring_story_hn_id == story_id)
        try:
            async with session_scope(self.session_factory, read_only=True) as session:
                result = await session.execute(stmt)
                return set(result.scalars().all())
        except SQLAlchemyError as e:
            raise RepositoryError("select hiring job ids for story", story_id, str(e)) from e

    async def create_job(self, job: JobRecord, story_id: int) -> None:
        try:
            async with session_scope(self.session_factory) as session:
                session.add(
                    HiringJobORM(
                        hn_id=job["hn_id"],
                        hiring_story_hn_id=story_id,
                        text=job["text"],
                        time=job["time"],
                        status=int(job["status"]),
                    )
                )
        except IntegrityError as e:
            raise DuplicateRecordError("create hiring job", job["hn_id"], str(e.orig)) from e
        except SQLAlchemyError as e:
            raise RepositoryError("create hiring job", job["hn_id"], str(e)) from e

    async def get_min_max_job_ids(self, story_id: int) -> Tuple[Optional[int], Optional[int]]:
        """Return the lowest and highest ids of the story's ok jobs, or (None, None)."""
        stmt = select(func.min(HiringJobORM.hn_id), func.max(HiringJobORM.hn_id)).where(
            HiringJobORM.hiring_story_hn_id == story_id,
            HiringJobORM.status == int(JobStatus.OK),
        )
        try:
            async with session_scope(self.session_factory, read_only=True) as session:
                min_id, max_id = (await session.execute(stmt)).one()
        except SQLAlchemyError as e:
            raise RepositoryError("get min/max hiring job ids for story", story_id, str(e)) from e

        return min_id, max_id

    async def _get_one_job(self, stmt, operation: str, item_id: int) -> Optional[JobRecord]:
        try:
            async with session_scope(self.session_factory, read_only=True) as session:
                row = (await session.execute(stmt.limit(1))).scalars().first()
        except SQLAlchemyError as e:
            raise RepositoryError(operation, item_id, str(e)) from e

        return job_row_to_record(row) if row is not None else None

    def _ok_jobs(self, story_id: int):
        return select(HiringJobORM).where(
            HiringJobORM.hiring_story_hn_id == story_id,
            HiringJobORM.status == int(JobStatus.OK),
        )

    async def get_first_job(self, story_id: int) -> Optional[JobRecord]:
        """Newest ok job of the story (highest id)."""
        stmt = self._ok_jobs(story_id).order_by(HiringJobORM.hn_id.desc())
        return await self._get_one_job(stmt, "select first hiring job for story", story_id)

    async def get_next_job_by_id(self, story_id: int, job_id: int) -> Optional[JobRecord]:
        """The ok job just older than ``job_id`` (greatest id below it)."""
        stmt = (
            self._ok_jobs(story_id)
            .where(HiringJobORM.hn_id < job_id)
            .order_by(HiringJobORM.hn_id.desc())
        )
        return await self._get_one_job(stmt, "select next hiring job after", job_id)

    async def get_previous_job_by_id(self, story_id: int, job_id: int) -> Optional[JobRecord]:
        """The ok job just newer than ``job_id`` (smallest id above it)."""
        stmt = (
            self._ok_jobs(story_id)
            .where(HiringJobORM.hn_id > job_id)
            .order_by(HiringJobORM.hn_id.asc())
        )
        return await self._get_one_job(stmt, "select previous hiring job before", job_id)

    async def set_job_as_seen(self, job_id: int) -> None:
        """
        Mark a job as seen.

        Raises:
            JobNotFoundError: If no job has this id
        """
        stmt = update(HiringJobORM).where(HiringJobORM.hn_id == job_id).values(seen=True)
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(stmt)
                updated = result.rowcount
        except SQLAlchemyError as e:
            raise RepositoryError("set hiring job as seen", job_id, str(e)) from e

        if updated == 0:
            raise JobNotFoundError("set hiring job as seen", job_id, "zero rows updated")

    async def count_jobs(self, story_id: int) -> Dict[JobStatus, int]:
        """Return the number of stored jobs per status for a story."""
        stmt = (
            select(HiringJobORM.status, func.count())
            .where(HiringJobORM.hiring_story_hn_id == story_id)
            .group_by(HiringJobORM.status)
        )
        try:
            async with session_scope(self.session_factory, read_only=True) as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise RepositoryError("count hiring jobs for story", story_id, str(e)) from e

        counts = {status: 0 for status in JobStatus}
        for status, count in rows:
            counts[JobStatus(status)] = count
        return counts
