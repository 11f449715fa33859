from __future__ import annotations

import datetime
import html
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy.exc import IntegrityError

from santa_ring.db import Exclusion, Group, GroupStatus, Participant, repo
from santa_ring.services.assignment import (
    MIN_PARTICIPANTS,
    build_adjacency,
    generate_assignments,
    is_assignment_possible,
)
from santa_ring.services.validation import (
    RosterError,
    validate_exclusion,
    validate_participant_name,
)


class AssignmentError(RuntimeError):
    pass


@dataclass(frozen=True)
class FeasibilityReport:
    participant_count: int
    possible: bool
    stranded: List[str]

    @property
    def too_few(self) -> bool:
        return self.participant_count < MIN_PARTICIPANTS


@dataclass(frozen=True)
class DrawResult:
    group: Group
    pairs: List[Tuple[Participant, Participant]]
    seed: int


@dataclass(frozen=True)
class RevealStep:
    giver_name: str
    receiver_name: str
    position: int
    total: int

    @property
    def is_last(self) -> bool:
        return self.position == self.total


def format_name(participant: Participant) -> str:
    return html.escape(participant.name)


def get_or_create_group(session, telegram_id: int, title: Optional[str]) -> Group:
    return repo.get_or_create_group(session, telegram_id, title)


def list_participants(session, group: Group) -> List[Participant]:
    return repo.list_participants(session, group.id)


def list_exclusions(session, group: Group) -> List[Exclusion]:
    return repo.list_exclusions(session, group.id)


def _clear_draw(session, group: Group) -> None:
    cleared = repo.clear_assignments(session, group.id)
    repo.update_group_status(session, group, GroupStatus.OPEN, assigned_at=None)
    repo.update_group_revealed_count(session, group, 0)
    if cleared:
        logger.bind(group_id=group.id, cleared=cleared).info("Assignments cleared")


def _require_participant(session, group: Group, name: str) -> Participant:
    participant = repo.get_participant_by_name(session, group.id, name.strip())
    if not participant:
        raise RosterError(f"No participant named {name.strip()!r}")
    return participant


def add_participant(session, group: Group, name: str) -> Participant:
    existing = [participant.name for participant in repo.list_participants(session, group.id)]
    error = validate_participant_name(name, existing)
    if error:
        raise RosterError(error)

    participant = repo.add_participant(session, group.id, name.strip())
    _clear_draw(session, group)
    return participant


def remove_participant(session, group: Group, name: str) -> Participant:
    participant = _require_participant(session, group, name)
    _clear_draw(session, group)
    repo.delete_participant(session, participant)
    return participant


def add_exclusion(session, group: Group, first_name: str, second_name: str) -> Exclusion:
    first = _require_participant(session, group, first_name)
    second = _require_participant(session, group, second_name)

    participant_ids = {participant.id for participant in repo.list_participants(session, group.id)}
    existing_pairs = [exclusion.as_pair() for exclusion in repo.list_exclusions(session, group.id)]
    error = validate_exclusion(first.id, second.id, participant_ids, existing_pairs)
    if error:
        raise RosterError(error)

    exclusion = repo.add_exclusion(session, group.id, first.id, second.id)
    _clear_draw(session, group)
    return exclusion


def remove_exclusion(session, group: Group, first_name: str, second_name: str) -> None:
    first = _require_participant(session, group, first_name)
    second = _require_participant(session, group, second_name)
    exclusion = repo.find_exclusion(session, group.id, first.id, second.id)
    if not exclusion:
        raise RosterError("These participants are not excluded from each other")
    repo.delete_exclusion(session, exclusion)
    _clear_draw(session, group)


def _draw_inputs(session, group: Group) -> Tuple[List[Participant], List[Tuple[str, str]]]:
    participants = repo.list_participants(session, group.id)
    exclusions = [exclusion.as_pair() for exclusion in repo.list_exclusions(session, group.id)]
    return participants, exclusions


def check_group(session, group: Group) -> FeasibilityReport:
    participants, exclusions = _draw_inputs(session, group)
    participant_ids = [participant.id for participant in participants]
    adjacency = build_adjacency(participant_ids, exclusions)
    stranded = [participant.name for participant in participants if not adjacency[participant.id]]
    return FeasibilityReport(
        participant_count=len(participants),
        possible=is_assignment_possible(participant_ids, exclusions),
        stranded=stranded,
    )


def describe_feasibility(report: FeasibilityReport) -> str:
    if report.possible:
        return "Looks good! An admin can /draw the matches."
    if report.too_few:
        return (
            f"Add at least {MIN_PARTICIPANTS} participants to draw matches "
            f"(currently {report.participant_count})."
        )
    names = ", ".join(html.escape(name) for name in report.stranded)
    return (
        f"These participants are excluded from everyone else: {names}. "
        "Remove some exclusions or add more participants."
    )


def draw_group(session, group: Group, seed: Optional[int] = None) -> DrawResult:
    if group.status == GroupStatus.ASSIGNED:
        raise AssignmentError("Matches have already been drawn for this group. Use /reset to draw again.")

    participants, exclusions = _draw_inputs(session, group)
    if len(participants) < MIN_PARTICIPANTS:
        raise AssignmentError(f"At least {MIN_PARTICIPANTS} participants are required to draw matches.")

    if seed is None:
        seed = random.randint(1, 2**31 - 1)

    assignments = generate_assignments(
        [participant.id for participant in participants],
        exclusions=exclusions,
        seed=seed,
    )
    if assignments is None:
        logger.bind(group_id=group.id, seed=seed, participants=len(participants)).info(
            "Draw is infeasible"
        )
        raise AssignmentError(
            "Cannot draw matches with the current exclusions. "
            "Add more participants or remove some exclusions."
        )

    reveal_order = list(range(1, len(assignments) + 1))
    random.Random(seed).shuffle(reveal_order)
    rows = [
        (assignment.giver_id, assignment.receiver_id, position)
        for assignment, position in zip(assignments, reveal_order)
    ]

    try:
        repo.create_assignments(session, group.id, rows)
    except IntegrityError as exc:
        raise AssignmentError("Matches already exist for this group.") from exc

    repo.update_group_status(
        session,
        group,
        GroupStatus.ASSIGNED,
        assigned_at=datetime.datetime.now(datetime.timezone.utc),
    )
    repo.update_group_assignment_seed(session, group, seed)
    repo.update_group_revealed_count(session, group, 0)
    logger.bind(group_id=group.id, seed=seed, participants=len(participants)).info("Assignments generated")

    by_id: Dict[str, Participant] = {participant.id: participant for participant in participants}
    pairs = [(by_id[assignment.giver_id], by_id[assignment.receiver_id]) for assignment in assignments]
    return DrawResult(group=group, pairs=pairs, seed=seed)


def _require_drawn(session, group: Group) -> int:
    total = repo.count_assignments(session, group.id)
    if group.status != GroupStatus.ASSIGNED or not total:
        raise AssignmentError("No matches drawn yet. Use /draw first.")
    return total


def reveal_next(session, group: Group) -> Optional[RevealStep]:
    """Advance the reveal sequence by one match.

    Matches are revealed in the shuffled order stored at draw time. Returns
    None once every match has been shown.
    """
    total = _require_drawn(session, group)
    position = (group.revealed_count or 0) + 1
    if position > total:
        return None

    record = repo.get_assignment_at(session, group.id, position)
    repo.update_group_revealed_count(session, group, position)
    return RevealStep(
        giver_name=format_name(record.giver),
        receiver_name=format_name(record.receiver),
        position=position,
        total=total,
    )


def list_matches(session, group: Group) -> List[Tuple[str, str]]:
    _require_drawn(session, group)
    return [
        (format_name(record.giver), format_name(record.receiver))
        for record in repo.list_assignments(session, group.id)
    ]


def reset_group(session, group: Group) -> None:
    _clear_draw(session, group)
    repo.update_group_assignment_seed(session, group, None)
