from santa_ring.db.models import (
    AssignmentRecord,
    Base,
    Exclusion,
    Group,
    GroupStatus,
    Participant,
)
from santa_ring.db.session import SessionLocal, get_session, init_engine

__all__ = [
    "AssignmentRecord",
    "Base",
    "Exclusion",
    "Group",
    "GroupStatus",
    "Participant",
    "SessionLocal",
    "get_session",
    "init_engine",
]
