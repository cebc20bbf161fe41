from whoishiring.storage.database import create_session_factory, init_db, session_scope
from whoishiring.storage.repository import SQLAlchemyRepository, StoryJobRepository

__all__ = [
    "create_session_factory",
    "init_db",
    "session_scope",
    "SQLAlchemyRepository",
    "StoryJobRepository",
]
