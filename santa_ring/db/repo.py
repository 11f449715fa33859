from __future__ import annotations

import datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_, delete, func, or_, select

from santa_ring.db.models import (
    AssignmentRecord,
    Exclusion,
    Group,
    GroupStatus,
    Participant,
)


def get_group_by_telegram_id(session, telegram_id: int) -> Optional[Group]:
    return session.scalar(select(Group).where(Group.telegram_id == telegram_id))


def create_group(session, telegram_id: int, title: Optional[str]) -> Group:
    group = Group(telegram_id=telegram_id, title=title, status=GroupStatus.OPEN, revealed_count=0)
    session.add(group)
    session.flush()
    return group


def get_or_create_group(session, telegram_id: int, title: Optional[str]) -> Group:
    group = get_group_by_telegram_id(session, telegram_id)
    if group:
        if title and group.title != title:
            group.title = title
        return group
    return create_group(session, telegram_id, title)


def list_participants(session, group_id: int) -> List[Participant]:
    return list(
        session.scalars(
            select(Participant)
            .where(Participant.group_id == group_id)
            .order_by(Participant.created_at, Participant.name)
        ).all()
    )


def count_participants(session, group_id: int) -> int:
    return session.scalar(
        select(func.count()).select_from(Participant).where(Participant.group_id == group_id)
    )


def get_participant_by_name(session, group_id: int, name: str) -> Optional[Participant]:
    return session.scalar(
        select(Participant).where(and_(Participant.group_id == group_id, Participant.name == name))
    )


def add_participant(session, group_id: int, name: str) -> Participant:
    participant = Participant(group_id=group_id, name=name)
    session.add(participant)
    session.flush()
    return participant


def delete_participant(session, participant: Participant) -> None:
    session.execute(
        delete(Exclusion).where(
            or_(
                Exclusion.participant1_id == participant.id,
                Exclusion.participant2_id == participant.id,
            )
        )
    )
    session.delete(participant)
    session.flush()


def list_exclusions(session, group_id: int) -> List[Exclusion]:
    return list(
        session.scalars(
            select(Exclusion).where(Exclusion.group_id == group_id).order_by(Exclusion.created_at)
        ).all()
    )


def find_exclusion(session, group_id: int, participant1_id: str, participant2_id: str) -> Optional[Exclusion]:
    return session.scalar(
        select(Exclusion).where(
            and_(
                Exclusion.group_id == group_id,
                or_(
                    and_(
                        Exclusion.participant1_id == participant1_id,
                        Exclusion.participant2_id == participant2_id,
                    ),
                    and_(
                        Exclusion.participant1_id == participant2_id,
                        Exclusion.participant2_id == participant1_id,
                    ),
                ),
            )
        )
    )


def add_exclusion(session, group_id: int, participant1_id: str, participant2_id: str) -> Exclusion:
    exclusion = Exclusion(
        group_id=group_id,
        participant1_id=participant1_id,
        participant2_id=participant2_id,
    )
    session.add(exclusion)
    session.flush()
    return exclusion


def delete_exclusion(session, exclusion: Exclusion) -> None:
    session.delete(exclusion)
    session.flush()


def update_group_status(
    session,
    group: Group,
    status: GroupStatus,
    assigned_at: Optional[datetime.datetime] = None,
) -> None:
    group.status = status
    group.assigned_at = assigned_at


def update_group_assignment_seed(session, group: Group, seed: Optional[int]) -> None:
    group.last_assignment_seed = seed


def update_group_revealed_count(session, group: Group, revealed_count: int) -> None:
    group.revealed_count = revealed_count


def create_assignments(session, group_id: int, rows: Iterable[tuple[str, str, int]]) -> None:
    session.add_all(
        [
            AssignmentRecord(
                group_id=group_id,
                giver_id=giver_id,
                receiver_id=receiver_id,
                reveal_position=reveal_position,
            )
            for giver_id, receiver_id, reveal_position in rows
        ]
    )
    session.flush()


def list_assignments(session, group_id: int) -> List[AssignmentRecord]:
    return list(
        session.scalars(
            select(AssignmentRecord)
            .where(AssignmentRecord.group_id == group_id)
            .order_by(AssignmentRecord.reveal_position)
        ).all()
    )


def get_assignment_at(session, group_id: int, reveal_position: int) -> Optional[AssignmentRecord]:
    return session.scalar(
        select(AssignmentRecord).where(
            and_(
                AssignmentRecord.group_id == group_id,
                AssignmentRecord.reveal_position == reveal_position,
            )
        )
    )


def count_assignments(session, group_id: int) -> int:
    return session.scalar(
        select(func.count()).select_from(AssignmentRecord).where(AssignmentRecord.group_id == group_id)
    )


def clear_assignments(session, group_id: int) -> int:
    result = session.execute(delete(AssignmentRecord).where(AssignmentRecord.group_id == group_id))
    return result.rowcount or 0
