"""Payroll batch state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class PayrollBatchStatus(str, Enum):
    """Payroll batch status values."""

    DRAFT = "draft"
    PROCESSED = "processed"
    PAID = "paid"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


def _value(status: str) -> str:
    return status.value if isinstance(status, PayrollBatchStatus) else str(status)


class PayrollBatchStateMachine:
    """State machine for payroll batch status transitions.

    Allowed transitions:
    - draft → paid

    ``processed`` is a recognised status with no edges in or out. Paid is
    terminal; nothing un-pays a batch.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollBatchStatus.DRAFT.value: [PayrollBatchStatus.PAID.value],
        PayrollBatchStatus.PROCESSED.value: [],
        PayrollBatchStatus.PAID.value: [],  # Terminal state
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_value(from_status), [])
        return _value(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(_value(from_status), _value(to_status))

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return list(cls.VALID_TRANSITIONS.get(_value(current_status), []))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.get_next_statuses(status)
