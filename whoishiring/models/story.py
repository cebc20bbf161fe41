"""ORM tables and record types for hiring stories and jobs."""

from typing import TypedDict

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, SmallInteger, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression


class Base(DeclarativeBase):
    pass


class HiringStoryORM(Base):
    """
    A monthly "Ask HN: Who is hiring?" story.

    Schema:
      hn_id   BIGINT PRIMARY KEY,  -- Hacker News item id
      title   TEXT NOT NULL,
      time    BIGINT NOT NULL      -- seconds since epoch, source assigned
    """
    __tablename__ = "hiring_story"

    hn_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    time: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<HiringStoryORM(hn_id={self.hn_id}, title='{self.title}', time={self.time})>"


class HiringJobORM(Base):
    """
    A job post, i.e. a top-level reply to a hiring story.

    Rows are immutable after insert except for the ``seen`` flag.
    """
    __tablename__ = "hiring_job"

    hn_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    hiring_story_hn_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("hiring_story.hn_id"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=expression.false())
    saved: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=expression.false())

    __table_args__ = (
        Index("ix_hiring_job_story_status_hn_id", "hiring_story_hn_id", "status", "hn_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<HiringJobORM(hn_id={self.hn_id}, story={self.hiring_story_hn_id}, "
            f"status={self.status}, seen={self.seen})>"
        )


class StoryRecord(TypedDict):
    """A hiring story as handed across the repository boundary."""
    hn_id: int
    title: str
    time: int


class JobRecord(TypedDict):
    """A hiring job as handed across the repository boundary."""
    hn_id: int
    text: str
    time: int
    status: int  # JobStatus value
    seen: bool
    saved: bool
