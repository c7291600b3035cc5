"""Tests for the work-order state machine."""

import pytest

from obras.domain import (
    ExecutionMode,
    IllegalTransitionError,
    WorkOrderStatus,
    allowed_next,
    plan_transition,
    validate_work_order_transition,
)

WB = ExecutionMode.WITH_BUDGET
DE = ExecutionMode.DIRECT_EXECUTION


class TestAllowedNext:
    """Tests for the mode-aware adjacency."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (WorkOrderStatus.DRAFT, {WorkOrderStatus.BUDGETED, WorkOrderStatus.IN_PROGRESS}),
            (
                WorkOrderStatus.BUDGETED,
                {WorkOrderStatus.APPROVED, WorkOrderStatus.REJECTED, WorkOrderStatus.DRAFT},
            ),
            (WorkOrderStatus.APPROVED, {WorkOrderStatus.IN_PROGRESS}),
            (WorkOrderStatus.REJECTED, {WorkOrderStatus.DRAFT}),
            (WorkOrderStatus.IN_PROGRESS, {WorkOrderStatus.DONE}),
            (WorkOrderStatus.DONE, {WorkOrderStatus.INVOICED}),
            (WorkOrderStatus.INVOICED, set()),
        ],
    )
    def test_with_budget_graph(self, status, expected) -> None:
        assert allowed_next(status, WB) == expected

    def test_direct_execution_draft_only_starts(self) -> None:
        assert allowed_next(WorkOrderStatus.DRAFT, DE) == {WorkOrderStatus.IN_PROGRESS}

    @pytest.mark.parametrize(
        "status",
        [s for s in WorkOrderStatus if s != WorkOrderStatus.DRAFT],
    )
    def test_direct_execution_matches_generic_graph_outside_draft(self, status) -> None:
        assert allowed_next(status, DE) == allowed_next(status, WB)

    def test_invoiced_is_terminal(self) -> None:
        assert WorkOrderStatus.INVOICED.is_terminal()
        assert not WorkOrderStatus.DONE.is_terminal()

    def test_allowed_transitions_in_lifecycle_order(self) -> None:
        assert WorkOrderStatus.BUDGETED.allowed_transitions(WB) == [
            WorkOrderStatus.DRAFT,
            WorkOrderStatus.APPROVED,
            WorkOrderStatus.REJECTED,
        ]

    def test_only_draft_is_deletable(self) -> None:
        assert [s for s in WorkOrderStatus if s.is_deletable()] == [WorkOrderStatus.DRAFT]

    def test_only_invoiced_is_locked(self) -> None:
        assert [s for s in WorkOrderStatus if s.is_locked()] == [WorkOrderStatus.INVOICED]


class TestValidateTransition:
    """Tests for transition validation errors."""

    def test_legal_transition_passes(self) -> None:
        validate_work_order_transition(1, WorkOrderStatus.APPROVED, WorkOrderStatus.IN_PROGRESS, WB)

    def test_illegal_transition_lists_allowed(self) -> None:
        with pytest.raises(IllegalTransitionError) as exc_info:
            validate_work_order_transition(
                1, WorkOrderStatus.DRAFT, WorkOrderStatus.DONE, WB
            )

        error = exc_info.value
        assert error.error_code == "ILLEGAL_TRANSITION"
        assert error.details["current_status"] == "DRAFT"
        assert error.details["target_status"] == "DONE"
        assert error.allowed_transitions == ["BUDGETED", "IN_PROGRESS"]

    def test_self_transition_is_illegal(self) -> None:
        with pytest.raises(IllegalTransitionError):
            validate_work_order_transition(
                1, WorkOrderStatus.DRAFT, WorkOrderStatus.DRAFT, WB
            )

    def test_nothing_leaves_invoiced(self) -> None:
        for target in WorkOrderStatus:
            with pytest.raises(IllegalTransitionError) as exc_info:
                validate_work_order_transition(1, WorkOrderStatus.INVOICED, target, WB)
            assert exc_info.value.allowed_transitions == []

    def test_direct_execution_cannot_budget(self) -> None:
        with pytest.raises(IllegalTransitionError) as exc_info:
            validate_work_order_transition(
                1, WorkOrderStatus.DRAFT, WorkOrderStatus.BUDGETED, DE
            )

        assert "DIRECT_EXECUTION" in exc_info.value.message
        assert exc_info.value.allowed_transitions == ["IN_PROGRESS"]


class TestPlanTransition:
    """Tests for timestamp side effects."""

    def test_start_stamps_actual_start_once(self) -> None:
        plan = plan_transition(
            1, WorkOrderStatus.APPROVED, WorkOrderStatus.IN_PROGRESS, WB,
            has_actual_start=False, has_actual_end=False,
        )
        assert plan.stamp_actual_start
        assert not plan.stamp_actual_end

        again = plan_transition(
            1, WorkOrderStatus.APPROVED, WorkOrderStatus.IN_PROGRESS, WB,
            has_actual_start=True, has_actual_end=False,
        )
        assert not again.stamp_actual_start

    def test_finish_stamps_actual_end(self) -> None:
        plan = plan_transition(
            1, WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.DONE, WB,
            has_actual_start=True, has_actual_end=False,
        )
        assert plan.stamp_actual_end
        assert plan.from_state == WorkOrderStatus.IN_PROGRESS
        assert plan.to_state == WorkOrderStatus.DONE

    def test_invoice_stamps_invoice_date(self) -> None:
        plan = plan_transition(
            1, WorkOrderStatus.DONE, WorkOrderStatus.INVOICED, WB,
            has_actual_start=True, has_actual_end=True,
        )
        assert plan.stamp_invoice_date

    def test_rejected_plan_raises(self) -> None:
        with pytest.raises(IllegalTransitionError):
            plan_transition(
                1, WorkOrderStatus.REJECTED, WorkOrderStatus.APPROVED, WB,
                has_actual_start=False, has_actual_end=False,
            )
