from santa_ring.services.assignment import Assignment, generate_assignments, is_assignment_possible
from santa_ring.services.game_flow import AssignmentError
from santa_ring.services.validation import RosterError

__all__ = [
    "Assignment",
    "AssignmentError",
    "RosterError",
    "generate_assignments",
    "is_assignment_possible",
]
