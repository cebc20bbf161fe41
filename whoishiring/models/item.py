"""Pydantic models for Hacker News API payloads."""

from enum import IntEnum
from typing import List

from pydantic import BaseModel, Field


class JobStatus(IntEnum):
    """Stored job status, derived from the source flags at ingestion time."""

    OK = 1
    DEAD = 2
    DELETED = 3


class ApiUser(BaseModel):
    """Hacker News user response (only the fields we consume)."""

    id: str
    submitted: List[int] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class ApiStory(BaseModel):
    """Hacker News item projected as a story."""

    id: int
    title: str = ""
    time: int
    kids: List[int] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class ApiJob(BaseModel):
    """Hacker News item projected as a job post (a reply to the story)."""

    id: int
    text: str = ""
    time: int
    dead: bool = False
    deleted: bool = False

    model_config = {"extra": "ignore"}

    def status_to_db_value(self) -> JobStatus:
        """Return the stored status; dead takes precedence over deleted."""
        if self.dead:
            return JobStatus.DEAD

        if self.deleted:
            return JobStatus.DELETED

        return JobStatus.OK
