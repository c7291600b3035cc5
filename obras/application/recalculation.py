"""Budget recalculation.

Rolls line item subtotals up into the version totals and, for the
current version, into the work order's budgeted amount. This is the
only code path that writes `WorkOrderModel.budgeted_amount`.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from obras.application.event_log import publish
from obras.domain import BudgetRecalculated, Money, WorkOrderNotFoundError, sum_money
from obras.infrastructure.models import BudgetVersionModel, WorkOrderModel
from obras.infrastructure.repositories import LineItemRepository, WorkOrderRepository


class BudgetRecalculator:
    """Recomputes version totals inside the caller's transaction.

    Example usage:
        recalculator = BudgetRecalculator(session)
        total = await recalculator.recalculate(version)
    """

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize recalculator.

        Args:
            session: Async SQLAlchemy session (the caller's transaction).
            request_id: Request ID for correlation.
        """
        self.session = session
        self.request_id = request_id
        self.items = LineItemRepository(session)
        self.work_orders = WorkOrderRepository(session)

    def _total_from_subtotal(self, subtotal: Money) -> Money:
        """Version total from its subtotal.

        There is no tax or discount layer; any such step belongs here.
        """
        return subtotal

    async def recalculate(
        self,
        version: BudgetVersionModel,
        work_order: WorkOrderModel | None = None,
    ) -> Money:
        """Recalculate a version and roll its total into the work order.

        Args:
            version: Version whose items changed.
            work_order: Owning work order, if the caller already holds it.

        Returns:
            The new version total.
        """
        subtotal = sum_money(Money.of(s) for s in await self.items.subtotals(version.id))
        total = self._total_from_subtotal(subtotal)

        version.subtotal = subtotal.amount
        version.total = total.amount

        rolled_up = False
        if version.is_current:
            if work_order is None:
                work_order = await self.work_orders.get(version.work_order_id)
                if work_order is None:
                    raise WorkOrderNotFoundError(version.work_order_id)
            if work_order.budgeted_amount != total.amount:
                work_order.budgeted_amount = total.amount
            rolled_up = True

        await self.session.flush()

        publish(
            BudgetRecalculated(
                aggregate_id=str(version.work_order_id),
                version_id=version.id,
                subtotal=str(subtotal),
                total=str(total),
                budgeted_amount_updated=rolled_up,
            ),
            request_id=self.request_id,
        )
        return total
