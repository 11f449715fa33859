from __future__ import annotations

from typing import Collection, Iterable, Optional, Tuple


class RosterError(ValueError):
    pass


def validate_participant_name(name: Optional[str], existing_names: Collection[str]) -> Optional[str]:
    if not name or not name.strip():
        return "Participant name cannot be empty"
    if "," in name:
        return "Participant name cannot contain commas"
    if name.strip() in existing_names:
        return "A participant with this name already exists"
    return None


def validate_exclusion(
    participant1_id: str,
    participant2_id: str,
    participant_ids: Collection[str],
    existing_pairs: Iterable[Tuple[str, str]],
) -> Optional[str]:
    if participant1_id == participant2_id:
        return "A participant cannot be excluded from themselves"
    if participant1_id not in participant_ids or participant2_id not in participant_ids:
        return "Both participants must be in the roster"
    for first, second in existing_pairs:
        if {first, second} == {participant1_id, participant2_id}:
            return "These participants are already excluded from each other"
    return None


def parse_name_pair(text: Optional[str]) -> Tuple[str, str]:
    """Split ``"Alice, Bob"`` into two stripped participant names."""
    parts = [part.strip() for part in (text or "").split(",")]
    if len(parts) != 2 or not all(parts):
        raise RosterError("Name two participants separated by a comma, e.g. Alice, Bob")
    return parts[0], parts[1]
