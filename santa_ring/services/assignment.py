from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Set, Tuple

from loguru import logger

MIN_PARTICIPANTS = 3

ParticipantId = Hashable
AdjacencyMap = Dict[ParticipantId, Set[ParticipantId]]


@dataclass(frozen=True)
class Assignment:
    giver_id: ParticipantId
    receiver_id: ParticipantId


def _exclusion_lookup(
    exclusions: Optional[Iterable[Tuple[ParticipantId, ParticipantId]]],
) -> Set[Tuple[ParticipantId, ParticipantId]]:
    lookup: Set[Tuple[ParticipantId, ParticipantId]] = set()
    for first, second in exclusions or []:
        lookup.add((first, second))
        lookup.add((second, first))
    return lookup


def build_adjacency(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Iterable[Tuple[ParticipantId, ParticipantId]]] = None,
) -> AdjacencyMap:
    """Map every participant to the set of participants they may give to."""
    excluded = _exclusion_lookup(exclusions)
    return {
        giver: {
            receiver
            for receiver in participant_ids
            if receiver != giver and (giver, receiver) not in excluded
        }
        for giver in participant_ids
    }


def _has_stranded_giver(adjacency: AdjacencyMap) -> bool:
    return any(not receivers for receivers in adjacency.values())


def is_assignment_possible(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Iterable[Tuple[ParticipantId, ParticipantId]]] = None,
) -> bool:
    """Cheap necessary check for whether a draw can be attempted.

    Only the minimum group size and empty receiver sets are looked at, so a
    True answer does not promise that ``generate_assignments`` will succeed.
    """
    if len(participant_ids) < MIN_PARTICIPANTS:
        return False
    return not _has_stranded_giver(build_adjacency(participant_ids, exclusions))


def find_cycle(
    participant_ids: Sequence[ParticipantId],
    adjacency: AdjacencyMap,
    rng: random.Random,
) -> Optional[List[ParticipantId]]:
    """Search for a Hamiltonian cycle over ``adjacency``.

    Returns the cycle as a path starting at a random participant, or None
    when the whole search space from that start is exhausted. Hamiltonicity
    does not depend on the start, so None means no cycle exists at all.
    """
    if not participant_ids:
        return None

    total = len(participant_ids)
    start = rng.choice(list(participant_ids))
    path: List[ParticipantId] = [start]
    visited: Set[ParticipantId] = {start}

    def backtrack(current: ParticipantId) -> bool:
        if len(path) == total:
            return start in adjacency[current]

        # Roster order, not set order, so a seed replays across processes.
        choices = [receiver for receiver in participant_ids if receiver in adjacency[current]]
        rng.shuffle(choices)
        for receiver in choices:
            if receiver in visited:
                continue
            path.append(receiver)
            visited.add(receiver)
            if backtrack(receiver):
                return True
            visited.remove(receiver)
            path.pop()
        return False

    if backtrack(start):
        return path
    return None


def cycle_to_assignments(cycle: Sequence[ParticipantId]) -> List[Assignment]:
    return [
        Assignment(giver_id=giver, receiver_id=cycle[(index + 1) % len(cycle)])
        for index, giver in enumerate(cycle)
    ]


def generate_assignments(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Iterable[Tuple[ParticipantId, ParticipantId]]] = None,
    seed: Optional[int] = None,
) -> Optional[List[Assignment]]:
    """Draw a single gift-giving cycle through every participant.

    Returns one assignment per participant, or None when the group is too
    small or the exclusions leave no valid cycle.
    """
    participants = list(participant_ids)
    if len(participants) < MIN_PARTICIPANTS:
        logger.bind(participants=len(participants)).debug("Too few participants to draw")
        return None

    adjacency = build_adjacency(participants, exclusions)
    if _has_stranded_giver(adjacency):
        logger.bind(participants=len(participants)).debug("Participant without legal receiver")
        return None

    cycle = find_cycle(participants, adjacency, random.Random(seed))
    if cycle is None:
        logger.bind(participants=len(participants)).debug("No gift cycle exists")
        return None

    return cycle_to_assignments(cycle)
