"""Application status state machine.

Main chain: pending -> reviewing -> shortlisted -> interview_scheduled ->
interviewed -> offered -> hired. Any non-terminal status may also move to
rejected or withdrawn.

The graph is deliberately permissive: a non-terminal application may move to
any other status, including backwards along the main chain (e.g. offered ->
reviewing to undo a mistaken advance). Only terminal statuses and same-status
moves are refused.
"""

from database.models.applications import ApplicationStatus


MAIN_CHAIN: tuple[ApplicationStatus, ...] = (
    ApplicationStatus.PENDING,
    ApplicationStatus.REVIEWING,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW_SCHEDULED,
    ApplicationStatus.INTERVIEWED,
    ApplicationStatus.OFFERED,
    ApplicationStatus.HIRED,
)

TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.HIRED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }
)

# Allowed next statuses per current status
VALID_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    status: (
        frozenset()
        if status in TERMINAL_STATUSES
        else frozenset(ApplicationStatus) - {status}
    )
    for status in ApplicationStatus
}


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus | None:
    """Return the matching status, or ``None`` for an unrecognized value."""
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(value)
    except ValueError:
        return None


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def validate_transition(
    current_status: ApplicationStatus, next_status: str | ApplicationStatus
) -> tuple[bool, str | None]:
    """
    Validate if a status transition is allowed.

    Returns:
        Tuple of (is_valid, error_message)
    """
    target = parse_status(next_status)
    if target is None:
        return False, f"Unknown status: {next_status}"

    if current_status in TERMINAL_STATUSES:
        return (
            False,
            f"Application is {current_status.value}; no further status changes are allowed",
        )

    if target == current_status:
        return False, f"Application is already {current_status.value}"

    if target not in VALID_TRANSITIONS[current_status]:
        return (
            False,
            f"Invalid transition from {current_status.value} to {target.value}",
        )

    return True, None
