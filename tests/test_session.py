import pytest
from sqlalchemy import text

from santa_ring.db import Base, GroupStatus, SessionLocal, get_session, init_engine, repo


@pytest.fixture
def engine(tmp_path):
    engine = init_engine(f"sqlite+pysqlite:///{tmp_path / 'santa.db'}")
    Base.metadata.create_all(engine)
    yield engine
    SessionLocal.configure(bind=None)
    engine.dispose()


def test_session_requires_engine():
    SessionLocal.configure(bind=None)
    with pytest.raises(RuntimeError):
        with get_session():
            pass


def test_session_commits(engine):
    with get_session() as session:
        group = repo.create_group(session, -42, "Family")
        repo.add_participant(session, group.id, "Alice")

    with get_session() as session:
        group = repo.get_group_by_telegram_id(session, -42)
        assert [p.name for p in repo.list_participants(session, group.id)] == ["Alice"]


def test_session_rolls_back_on_error(engine):
    with pytest.raises(ValueError):
        with get_session() as session:
            repo.create_group(session, -7, "Doomed")
            raise ValueError("boom")

    with get_session() as session:
        assert repo.get_group_by_telegram_id(session, -7) is None


def test_sqlite_enforces_cascades(engine):
    with get_session() as session:
        assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1
        group = repo.create_group(session, -9, "Cascade")
        alice = repo.add_participant(session, group.id, "Alice")
        bob = repo.add_participant(session, group.id, "Bob")
        repo.add_exclusion(session, group.id, alice.id, bob.id)
        group_id, alice_id = group.id, alice.id

    with get_session() as session:
        session.execute(text("DELETE FROM participants WHERE id = :id"), {"id": alice_id})

    with get_session() as session:
        assert repo.list_exclusions(session, group_id) == []


def test_status_stored_as_migration_values(engine):
    with get_session() as session:
        repo.create_group(session, -11, "Stored")
        session.execute(text("INSERT INTO groups (telegram_id, title) VALUES (-12, 'Defaulted')"))

    with get_session() as session:
        stored = session.execute(text("SELECT status FROM groups WHERE telegram_id = -11")).scalar()
        assert stored == "open"
        defaulted = repo.get_group_by_telegram_id(session, -12)
        assert defaulted.status == GroupStatus.OPEN
        assert defaulted.revealed_count == 0
