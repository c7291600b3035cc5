"""Transition guards.

Guards are predicates evaluated before a transition is committed. Each
guard targets one status and receives a read-only view of the budget,
so the state machine itself stays free of budget internals.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from obras.domain.exceptions import BudgetNotReadyError
from obras.domain.state_machines import WorkOrderStatus


@dataclass(frozen=True)
class BudgetReadiness:
    """Read-only facts about the current budget version.

    Attributes:
        work_order_id: Owning work order.
        version_id: Current version id, or None if none exists yet.
        quantities: Quantities of the items in the current version.
    """

    work_order_id: int
    version_id: int | None
    quantities: Sequence[Decimal] = field(default_factory=tuple)

    @property
    def priced_item_count(self) -> int:
        return sum(1 for q in self.quantities if q > 0)


TransitionGuard = Callable[[BudgetReadiness], None]


def require_priced_budget(readiness: BudgetReadiness) -> None:
    """Entering BUDGETED needs at least one item with quantity > 0.

    Raises:
        BudgetNotReadyError: If the current version has no such item.
    """
    if readiness.version_id is None or readiness.priced_item_count == 0:
        raise BudgetNotReadyError(
            work_order_id=readiness.work_order_id,
            version_id=readiness.version_id,
            item_count=readiness.priced_item_count,
        )


TRANSITION_GUARDS: dict[WorkOrderStatus, tuple[TransitionGuard, ...]] = {
    WorkOrderStatus.BUDGETED: (require_priced_budget,),
}


def guards_for(target: WorkOrderStatus) -> tuple[TransitionGuard, ...]:
    """Guards that must pass before entering `target`."""
    return TRANSITION_GUARDS.get(target, ())


def needs_budget(target: WorkOrderStatus) -> bool:
    """Whether entering `target` requires reading the budget."""
    return bool(guards_for(target))


def check_guards(target: WorkOrderStatus, readiness: BudgetReadiness) -> None:
    """Run every guard registered for `target`, raising on the first failure."""
    for guard in guards_for(target):
        guard(readiness)
