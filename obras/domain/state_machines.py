"""State machine for the work-order lifecycle.

Deterministic state machine that defines valid status transitions for
work orders. The adjacency table is the generic graph; the execution
mode narrows it for DRAFT only, through `allowed_next`.
"""

from dataclasses import dataclass
from enum import Enum

from obras.domain.exceptions import IllegalTransitionError


class ExecutionMode(str, Enum):
    """How a work order reaches execution.

    WITH_BUDGET requires an approved budget before work starts;
    DIRECT_EXECUTION skips budgeting entirely.
    """

    WITH_BUDGET = "WITH_BUDGET"
    DIRECT_EXECUTION = "DIRECT_EXECUTION"


class WorkOrderStatus(str, Enum):
    """Work-order lifecycle states.

    State diagram:
        DRAFT ───────────────────────────────┐
          │  ▲  ▲                            │
          │  │  │ reopen                     │ start (direct execution)
          ▼  │  │                            │
        BUDGETED ──────► REJECTED            │
          │                                  │
          │ approve                          │
          ▼                                  ▼
        APPROVED ─────────────────────► IN_PROGRESS
                                             │
                                             │ finish
                                             ▼
                                           DONE
                                             │
                                             │ invoice
                                             ▼
                                          INVOICED
    """

    DRAFT = "DRAFT"
    BUDGETED = "BUDGETED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    INVOICED = "INVOICED"

    def can_transition_to(
        self,
        target: "WorkOrderStatus",
        mode: ExecutionMode = ExecutionMode.WITH_BUDGET,
    ) -> bool:
        """Check if transition to target state is valid for the mode.

        Args:
            target: Target state to transition to.
            mode: Execution mode of the work order.

        Returns:
            True if transition is valid.
        """
        return target in allowed_next(self, mode)

    def allowed_transitions(
        self,
        mode: ExecutionMode = ExecutionMode.WITH_BUDGET,
    ) -> list["WorkOrderStatus"]:
        """Get list of valid target states in lifecycle order.

        Returns:
            List of states that can be transitioned to.
        """
        allowed = allowed_next(self, mode)
        return [s for s in WorkOrderStatus if s in allowed]

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state."""
        return len(_WORK_ORDER_TRANSITIONS.get(self, frozenset())) == 0

    def is_deletable(self) -> bool:
        """Only drafts may be deleted."""
        return self == WorkOrderStatus.DRAFT

    def is_locked(self) -> bool:
        """Invoiced work orders accept no edits other than rollup writes."""
        return self == WorkOrderStatus.INVOICED


# Work-order transitions (defined outside enum to avoid Enum restrictions)
_WORK_ORDER_TRANSITIONS: dict[WorkOrderStatus, frozenset[WorkOrderStatus]] = {
    WorkOrderStatus.DRAFT: frozenset({WorkOrderStatus.BUDGETED, WorkOrderStatus.IN_PROGRESS}),
    WorkOrderStatus.BUDGETED: frozenset(
        {WorkOrderStatus.APPROVED, WorkOrderStatus.REJECTED, WorkOrderStatus.DRAFT}
    ),
    WorkOrderStatus.APPROVED: frozenset({WorkOrderStatus.IN_PROGRESS}),
    WorkOrderStatus.REJECTED: frozenset({WorkOrderStatus.DRAFT}),
    WorkOrderStatus.IN_PROGRESS: frozenset({WorkOrderStatus.DONE}),
    WorkOrderStatus.DONE: frozenset({WorkOrderStatus.INVOICED}),
    WorkOrderStatus.INVOICED: frozenset(),  # Terminal state
}

_DIRECT_EXECUTION_FROM_DRAFT = frozenset({WorkOrderStatus.IN_PROGRESS})


def allowed_next(status: WorkOrderStatus, mode: ExecutionMode) -> frozenset[WorkOrderStatus]:
    """Return the statuses reachable from `status` under `mode`.

    DIRECT_EXECUTION work orders skip budgeting: from DRAFT the only
    target is IN_PROGRESS. Every other state uses the generic table.
    """
    if mode == ExecutionMode.DIRECT_EXECUTION and status == WorkOrderStatus.DRAFT:
        return _DIRECT_EXECUTION_FROM_DRAFT
    return _WORK_ORDER_TRANSITIONS.get(status, frozenset())


# ============================================================================
# State Transition Result
# ============================================================================


@dataclass(frozen=True)
class StateTransition:
    """An accepted status change, before it is persisted.

    Attributes:
        from_state: Previous state.
        to_state: New state.
        stamp_actual_start: Whether actual start date must be set.
        stamp_actual_end: Whether actual end date must be set.
        stamp_invoice_date: Whether invoice date must be set.
    """

    from_state: WorkOrderStatus
    to_state: WorkOrderStatus
    stamp_actual_start: bool = False
    stamp_actual_end: bool = False
    stamp_invoice_date: bool = False


def validate_work_order_transition(
    work_order_id: int,
    current_status: WorkOrderStatus,
    target_status: WorkOrderStatus,
    mode: ExecutionMode,
) -> None:
    """Validate and raise if a work-order transition is illegal.

    Args:
        work_order_id: Work order identifier for error message.
        current_status: Current status.
        target_status: Requested status.
        mode: Execution mode of the work order.

    Raises:
        IllegalTransitionError: If the target is not reachable.
    """
    if current_status.can_transition_to(target_status, mode):
        return

    allowed = [s.value for s in current_status.allowed_transitions(mode)]
    reason = None
    if (
        mode == ExecutionMode.DIRECT_EXECUTION
        and current_status == WorkOrderStatus.DRAFT
        and target_status in _WORK_ORDER_TRANSITIONS[WorkOrderStatus.DRAFT]
    ):
        reason = (
            "In DIRECT_EXECUTION mode a work order can only move "
            f"from {WorkOrderStatus.DRAFT.value} to {WorkOrderStatus.IN_PROGRESS.value}"
        )
    raise IllegalTransitionError(
        work_order_id=work_order_id,
        current_status=current_status.value,
        target_status=target_status.value,
        allowed_transitions=allowed,
        reason=reason,
    )


def plan_transition(
    work_order_id: int,
    current_status: WorkOrderStatus,
    target_status: WorkOrderStatus,
    mode: ExecutionMode,
    has_actual_start: bool,
    has_actual_end: bool,
) -> StateTransition:
    """Validate a transition and work out its timestamp side effects.

    Pure: nothing is mutated. Guards that need the budget are checked
    separately before the plan is applied.
    """
    validate_work_order_transition(work_order_id, current_status, target_status, mode)
    return StateTransition(
        from_state=current_status,
        to_state=target_status,
        stamp_actual_start=target_status == WorkOrderStatus.IN_PROGRESS and not has_actual_start,
        stamp_actual_end=target_status == WorkOrderStatus.DONE and not has_actual_end,
        stamp_invoice_date=target_status == WorkOrderStatus.INVOICED,
    )
