"""Tests for payroll batch state machine."""

import pytest

from staffing_engine.services.state_machine import (
    InvalidTransitionError,
    PayrollBatchStateMachine,
    PayrollBatchStatus,
)


class TestPayrollBatchStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Draft batches can be paid."""
        assert PayrollBatchStateMachine.can_transition("draft", "paid") is True
        assert (
            PayrollBatchStateMachine.can_transition(
                PayrollBatchStatus.DRAFT, PayrollBatchStatus.PAID
            )
            is True
        )

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # No reverse transition
        assert PayrollBatchStateMachine.can_transition("paid", "draft") is False

        # Processed has no edges
        assert PayrollBatchStateMachine.can_transition("draft", "processed") is False
        assert PayrollBatchStateMachine.can_transition("processed", "paid") is False

        # Paid twice
        assert PayrollBatchStateMachine.can_transition("paid", "paid") is False

        # Unknown statuses
        assert PayrollBatchStateMachine.can_transition("voided", "paid") is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollBatchStateMachine.validate_transition("paid", PayrollBatchStatus.PAID)

        assert exc_info.value.from_status == "paid"
        assert exc_info.value.to_status == "paid"
        assert "Invalid transition from 'paid' to 'paid'" in str(exc_info.value)

    def test_next_statuses(self):
        assert PayrollBatchStateMachine.get_next_statuses("draft") == ["paid"]
        assert PayrollBatchStateMachine.get_next_statuses("paid") == []

    def test_terminal_states(self):
        assert PayrollBatchStateMachine.is_terminal("paid") is True
        assert PayrollBatchStateMachine.is_terminal("processed") is True
        assert PayrollBatchStateMachine.is_terminal("draft") is False
