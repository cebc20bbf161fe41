"""Exception hierarchy for the sync service."""

from typing import Iterable, List, Optional


class WhoIsHiringError(Exception):
    """Base class for all errors raised by this package."""


class RemoteFetchError(WhoIsHiringError):
    """Network, transport or decode failure talking to the Hacker News API."""

    def __init__(self, operation: str, item_id: Optional[int] = None, message: str = ""):
        self.operation = operation
        self.item_id = item_id
        target = f" {item_id}" if item_id is not None else ""
        detail = f": {message}" if message else ""
        super().__init__(f"failed to {operation}{target}{detail}")


class ThreadNotFoundError(WhoIsHiringError):
    """None of the candidate submissions is a "Who is hiring?" story."""

    def __init__(self, candidate_ids: Iterable[int]):
        self.candidate_ids: List[int] = list(candidate_ids)
        super().__init__(
            f"no 'Who is hiring?' story found in submission ids {self.candidate_ids}"
        )


class RepositoryError(WhoIsHiringError):
    """Store unavailable, constraint violation or similar persistence failure."""

    def __init__(self, operation: str, item_id: Optional[int] = None, message: str = ""):
        self.operation = operation
        self.item_id = item_id
        target = f" {item_id}" if item_id is not None else ""
        detail = f": {message}" if message else ""
        super().__init__(f"failed to {operation}{target}{detail}")


class DuplicateRecordError(RepositoryError):
    """A row with the same Hacker News id already exists."""


class JobNotFoundError(RepositoryError):
    """A job update matched zero rows."""


class ConfigError(WhoIsHiringError):
    """Configuration failed validation."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("invalid configuration: " + "; ".join(self.errors))
