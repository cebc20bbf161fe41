"""Mapping functions to convert API payloads and ORM rows to records."""

from whoishiring.models.item import ApiJob, ApiStory
from whoishiring.models.story import HiringJobORM, HiringStoryORM, JobRecord, StoryRecord


def story_to_record(story: ApiStory) -> StoryRecord:
    """
    Convert an API story to a StoryRecord.

    Args:
        story: Story item from the Hacker News API

    Returns:
        A StoryRecord with the story's id, title and time
    """
    return {
        "hn_id": story.id,
        "title": story.title,
        "time": story.time,
    }


def job_to_record(job: ApiJob) -> JobRecord:
    """
    Convert an API job to a JobRecord, deriving its status.

    Args:
        job: Job item from the Hacker News API

    Returns:
        A JobRecord ready to be persisted (not seen, not saved)
    """
    return {
        "hn_id": job.id,
        "text": job.text,
        "time": job.time,
        "status": int(job.status_to_db_value()),
        "seen": False,
        "saved": False,
    }


def story_row_to_record(row: HiringStoryORM) -> StoryRecord:
    return {"hn_id": row.hn_id, "title": row.title, "time": row.time}


def job_row_to_record(row: HiringJobORM) -> JobRecord:
    return {
        "hn_id": row.hn_id,
        "text": row.text,
        "time": row.time,
        "status": row.status,
        "seen": bool(row.seen),
        "saved": bool(row.saved),
    }
