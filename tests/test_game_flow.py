import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from santa_ring.db import GroupStatus, repo
from santa_ring.db.models import Base
from santa_ring.services import game_flow
from santa_ring.services.game_flow import AssignmentError
from santa_ring.services.validation import RosterError


def create_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)()


def create_group(session, names=()):
    group = game_flow.get_or_create_group(session, telegram_id=-100, title="Office")
    for name in names:
        game_flow.add_participant(session, group, name)
    return group


def test_get_or_create_group_reuses_chat():
    session = create_session()
    first = game_flow.get_or_create_group(session, -100, "Office")
    second = game_flow.get_or_create_group(session, -100, "Office party")
    assert first.id == second.id
    assert second.title == "Office party"
    assert second.status == GroupStatus.OPEN


def test_add_participant_strips_name():
    session = create_session()
    group = create_group(session)
    participant = game_flow.add_participant(session, group, "  Alice  ")
    assert participant.name == "Alice"
    assert len(participant.id) == 36


@pytest.mark.parametrize("name", ["", "   ", "Alice", "Smith, John"])
def test_add_participant_rejects_invalid_names(name):
    session = create_session()
    group = create_group(session, ["Alice"])
    with pytest.raises(RosterError):
        game_flow.add_participant(session, group, name)


def test_remove_participant_drops_their_exclusions():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")
    game_flow.add_exclusion(session, group, "Bob", "Carol")
    game_flow.add_exclusion(session, group, "Alice", "Carol")

    game_flow.remove_participant(session, group, "Bob")

    names = {participant.name for participant in game_flow.list_participants(session, group)}
    assert names == {"Alice", "Carol"}
    exclusions = game_flow.list_exclusions(session, group)
    assert len(exclusions) == 1


def test_remove_unknown_participant():
    session = create_session()
    group = create_group(session, ["Alice"])
    with pytest.raises(RosterError):
        game_flow.remove_participant(session, group, "Zed")


def test_exclusion_validation():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")

    with pytest.raises(RosterError):
        game_flow.add_exclusion(session, group, "Bob", "Alice")
    with pytest.raises(RosterError):
        game_flow.add_exclusion(session, group, "Alice", "Alice")
    with pytest.raises(RosterError):
        game_flow.add_exclusion(session, group, "Alice", "Zed")


def test_remove_exclusion_in_either_order():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")
    game_flow.remove_exclusion(session, group, "Bob", "Alice")
    assert game_flow.list_exclusions(session, group) == []

    with pytest.raises(RosterError):
        game_flow.remove_exclusion(session, group, "Alice", "Bob")


def test_check_group_reports_too_few():
    session = create_session()
    group = create_group(session, ["Alice", "Bob"])
    report = game_flow.check_group(session, group)
    assert report.too_few
    assert not report.possible


def test_check_group_reports_stranded():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")
    game_flow.add_exclusion(session, group, "Alice", "Carol")
    report = game_flow.check_group(session, group)
    assert not report.possible
    assert report.stranded == ["Alice"]


def test_check_group_possible():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol", "Dave"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")
    report = game_flow.check_group(session, group)
    assert report.possible
    assert report.stranded == []


def test_draw_group_stores_single_cycle():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol", "Dave", "Eve"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")

    result = game_flow.draw_group(session, group, seed=42)

    assert group.status == GroupStatus.ASSIGNED
    assert group.last_assignment_seed == 42
    assert result.seed == 42
    records = repo.list_assignments(session, group.id)
    assert len(records) == 5
    assert sorted(record.reveal_position for record in records) == [1, 2, 3, 4, 5]

    receivers = {giver.name: receiver.name for giver, receiver in result.pairs}
    assert receivers["Alice"] != "Bob"
    assert receivers["Bob"] != "Alice"
    current, visited = "Alice", []
    for _ in range(5):
        visited.append(current)
        current = receivers[current]
    assert current == "Alice"
    assert sorted(visited) == ["Alice", "Bob", "Carol", "Dave", "Eve"]


def test_draw_group_twice_fails():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    game_flow.draw_group(session, group, seed=1)
    with pytest.raises(AssignmentError):
        game_flow.draw_group(session, group, seed=2)


def test_draw_group_too_few():
    session = create_session()
    group = create_group(session, ["Alice", "Bob"])
    with pytest.raises(AssignmentError):
        game_flow.draw_group(session, group)
    assert group.status == GroupStatus.OPEN


def test_draw_group_infeasible():
    session = create_session()
    group = create_group(session, ["Hub", "Bob", "Carol", "Dave"])
    game_flow.add_exclusion(session, group, "Bob", "Carol")
    game_flow.add_exclusion(session, group, "Bob", "Dave")
    game_flow.add_exclusion(session, group, "Carol", "Dave")

    assert game_flow.check_group(session, group).possible
    with pytest.raises(AssignmentError):
        game_flow.draw_group(session, group, seed=3)
    assert group.status == GroupStatus.OPEN
    assert repo.count_assignments(session, group.id) == 0


def test_roster_change_clears_draw():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    game_flow.draw_group(session, group, seed=7)

    game_flow.add_participant(session, group, "Dave")

    assert group.status == GroupStatus.OPEN
    assert repo.count_assignments(session, group.id) == 0


def test_exclusion_change_clears_draw():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol", "Dave"])
    game_flow.draw_group(session, group, seed=7)

    game_flow.add_exclusion(session, group, "Alice", "Bob")

    assert group.status == GroupStatus.OPEN
    assert repo.count_assignments(session, group.id) == 0


def test_reveal_sequence():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol", "Dave"])
    game_flow.draw_group(session, group, seed=9)

    steps = []
    step = game_flow.reveal_next(session, group)
    while step is not None:
        steps.append(step)
        step = game_flow.reveal_next(session, group)

    assert [step.position for step in steps] == [1, 2, 3, 4]
    assert all(step.total == 4 for step in steps)
    assert steps[-1].is_last
    assert sorted(step.giver_name for step in steps) == ["Alice", "Bob", "Carol", "Dave"]
    assert group.revealed_count == 4


def test_reveal_escapes_names():
    session = create_session()
    group = create_group(session, ["<b>Alice</b>", "Bob", "Carol"])
    game_flow.draw_group(session, group, seed=5)
    givers = [giver for giver, _ in game_flow.list_matches(session, group)]
    assert "&lt;b&gt;Alice&lt;/b&gt;" in givers


def test_reveal_before_draw_fails():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol"])
    with pytest.raises(AssignmentError):
        game_flow.reveal_next(session, group)
    with pytest.raises(AssignmentError):
        game_flow.list_matches(session, group)


def test_reset_keeps_roster():
    session = create_session()
    group = create_group(session, ["Alice", "Bob", "Carol", "Dave"])
    game_flow.add_exclusion(session, group, "Alice", "Bob")
    game_flow.draw_group(session, group, seed=2)
    game_flow.reveal_next(session, group)

    game_flow.reset_group(session, group)

    assert group.status == GroupStatus.OPEN
    assert group.revealed_count == 0
    assert group.last_assignment_seed is None
    assert repo.count_assignments(session, group.id) == 0
    assert len(game_flow.list_participants(session, group)) == 4
    assert len(game_flow.list_exclusions(session, group)) == 1


def test_describe_feasibility_follows_precheck():
    session = create_session()
    group = create_group(session, ["Alice", "Bob"])
    assert "at least 3" in game_flow.describe_feasibility(game_flow.check_group(session, group))

    game_flow.add_participant(session, group, "<Carol>")
    game_flow.add_exclusion(session, group, "Alice", "Bob")
    game_flow.add_exclusion(session, group, "Alice", "<Carol>")
    message = game_flow.describe_feasibility(game_flow.check_group(session, group))
    assert "excluded from everyone else: Alice." in message

    game_flow.remove_exclusion(session, group, "Alice", "Bob")
    game_flow.add_participant(session, group, "Dave")
    report = game_flow.check_group(session, group)
    assert report.possible
    assert game_flow.describe_feasibility(report).startswith("Looks good!")


def test_describe_feasibility_escapes_names():
    report = game_flow.FeasibilityReport(participant_count=3, possible=False, stranded=["<b>Eve</b>"])
    assert "&lt;b&gt;Eve&lt;/b&gt;" in game_flow.describe_feasibility(report)
