"""
Tests for the application status state machine.
Run with: pytest tests/unit/core/test_application_status.py -v
"""

import pytest

from core.application_status import (
    MAIN_CHAIN,
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    is_terminal,
    parse_status,
    validate_transition,
)
from database.models.applications import ApplicationStatus

NON_TERMINAL = [s for s in ApplicationStatus if s not in TERMINAL_STATUSES]


class TestStatusGraph:
    """Shape of the transition graph."""

    def test_main_chain_order(self):
        assert [s.value for s in MAIN_CHAIN] == [
            "pending",
            "reviewing",
            "shortlisted",
            "interview_scheduled",
            "interviewed",
            "offered",
            "hired",
        ]

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {
            ApplicationStatus.HIRED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.WITHDRAWN,
        }

    def test_terminal_statuses_have_no_exits(self):
        for status in TERMINAL_STATUSES:
            assert VALID_TRANSITIONS[status] == frozenset()

    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(ApplicationStatus)

    @pytest.mark.parametrize("status", NON_TERMINAL)
    def test_non_terminal_reaches_every_other_status(self, status):
        assert VALID_TRANSITIONS[status] == frozenset(ApplicationStatus) - {status}


class TestValidateTransition:
    """Test validate_transition."""

    def test_forward_along_main_chain(self):
        for current, nxt in zip(MAIN_CHAIN, MAIN_CHAIN[1:]):
            assert validate_transition(current, nxt) == (True, None)

    def test_backwards_move_allowed(self):
        assert validate_transition(ApplicationStatus.OFFERED, ApplicationStatus.REVIEWING) == (
            True,
            None,
        )

    def test_skip_ahead_allowed(self):
        is_valid, _ = validate_transition(ApplicationStatus.PENDING, ApplicationStatus.HIRED)
        assert is_valid is True

    @pytest.mark.parametrize("status", NON_TERMINAL)
    def test_reject_and_withdraw_from_any_non_terminal(self, status):
        assert validate_transition(status, ApplicationStatus.REJECTED)[0] is True
        assert validate_transition(status, ApplicationStatus.WITHDRAWN)[0] is True

    def test_same_status_refused(self):
        is_valid, error = validate_transition(
            ApplicationStatus.REVIEWING, ApplicationStatus.REVIEWING
        )
        assert is_valid is False
        assert error == "Application is already reviewing"

    def test_hired_to_rejected_refused(self):
        is_valid, error = validate_transition(ApplicationStatus.HIRED, ApplicationStatus.REJECTED)
        assert is_valid is False
        assert "hired" in error

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_refuses_everything(self, terminal):
        for target in ApplicationStatus:
            assert validate_transition(terminal, target)[0] is False

    def test_unknown_status(self):
        is_valid, error = validate_transition(ApplicationStatus.PENDING, "archived")
        assert is_valid is False
        assert error == "Unknown status: archived"

    def test_accepts_string_values(self):
        assert validate_transition(ApplicationStatus.PENDING, "reviewing") == (True, None)


class TestHelpers:
    def test_parse_status(self):
        assert parse_status("offered") is ApplicationStatus.OFFERED
        assert parse_status(ApplicationStatus.HIRED) is ApplicationStatus.HIRED
        assert parse_status("OFFERED") is None
        assert parse_status("") is None

    def test_is_terminal(self):
        assert is_terminal(ApplicationStatus.WITHDRAWN) is True
        assert is_terminal(ApplicationStatus.INTERVIEWED) is False
