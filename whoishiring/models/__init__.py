from whoishiring.models.item import ApiJob, ApiStory, ApiUser, JobStatus
from whoishiring.models.story import Base, HiringJobORM, HiringStoryORM, JobRecord, StoryRecord

__all__ = [
    "ApiJob",
    "ApiStory",
    "ApiUser",
    "JobStatus",
    "Base",
    "HiringJobORM",
    "HiringStoryORM",
    "JobRecord",
    "StoryRecord",
]
