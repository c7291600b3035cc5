"""Budget Version Store.

Owns the set of budget versions of a work order and the single-current
invariant: every operation that changes which version is current runs
here, under a row lock on the owning work order, inside the caller's
transaction.
"""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from obras.application.dtos import BudgetVersionSnapshot, LineItemSnapshot, VersionSummary
from obras.application.event_log import publish
from obras.application.recalculation import BudgetRecalculator
from obras.catalog import CatalogService
from obras.domain import (
    BudgetCurrentVersionSwitched,
    BudgetReadiness,
    BudgetVersionCreated,
    ConcurrentVersionConflictError,
    NotOwnedByWorkOrderError,
    VersionNotFoundError,
    WorkOrderNotEditableError,
    WorkOrderNotFoundError,
    WorkOrderStatus,
)
from obras.infrastructure.models import BudgetVersionModel, LineItemModel, WorkOrderModel
from obras.infrastructure.repositories import (
    BudgetVersionRepository,
    LineItemRepository,
    WorkOrderRepository,
)

logger = structlog.get_logger()


class BudgetVersionStore:
    """Application service for budget versions.

    Handles:
    - Lazy, idempotent creation of version 1
    - Creating the next version as a deep copy of the current one
    - Switching the current version
    - Read projections of versions and their items
    """

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize store.

        Args:
            session: Async SQLAlchemy session (the caller's transaction).
            request_id: Request ID for correlation.
        """
        self.session = session
        self.request_id = request_id
        self.work_orders = WorkOrderRepository(session)
        self.versions = BudgetVersionRepository(session)
        self.items = LineItemRepository(session)
        self.catalog = CatalogService(session)
        self.recalculator = BudgetRecalculator(session, request_id)

    # ------------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------------

    async def _load_work_order(self, work_order_id: int, for_update: bool = False) -> WorkOrderModel:
        work_order = await self.work_orders.get(work_order_id, for_update=for_update)
        if work_order is None:
            raise WorkOrderNotFoundError(work_order_id)
        return work_order

    async def get_owned_version(self, work_order_id: int, version_id: int) -> BudgetVersionModel:
        """Get a version and check it belongs to the work order.

        Raises:
            VersionNotFoundError: If the version does not exist.
            NotOwnedByWorkOrderError: If it belongs to another work order.
        """
        version = await self.versions.get(version_id)
        if version is None:
            raise VersionNotFoundError(version_id, work_order_id)
        if version.work_order_id != work_order_id:
            raise NotOwnedByWorkOrderError(version_id, work_order_id, version.work_order_id)
        return version

    async def get_current_or_create(self, work_order_id: int) -> BudgetVersionModel:
        """Return the current version, creating version 1 on first access.

        Concurrent first callers all end up with the same row: the insert
        is skipped when (work_order_id, 1) already exists.

        Raises:
            ConcurrentVersionConflictError: If versions exist but none is
                current, which only happens mid-switch in another transaction.
        """
        current = await self.versions.get_current(work_order_id)
        if current is not None:
            return current

        if await self.versions.count(work_order_id) > 0:
            raise ConcurrentVersionConflictError(work_order_id, "get_current_or_create")

        await self.versions.insert_first_if_absent(work_order_id)
        current = await self.versions.get_current(work_order_id)
        if current is None:
            raise ConcurrentVersionConflictError(work_order_id, "get_current_or_create")

        logger.info(
            "Budget version initialized",
            work_order_id=work_order_id,
            version_id=current.id,
            number=current.number,
            request_id=self.request_id,
        )
        return current

    async def readiness(self, work_order_id: int) -> BudgetReadiness:
        """Read-only budget facts for transition guards.

        Never creates a version.
        """
        current = await self.versions.get_current(work_order_id)
        if current is None:
            return BudgetReadiness(work_order_id=work_order_id, version_id=None)
        return BudgetReadiness(
            work_order_id=work_order_id,
            version_id=current.id,
            quantities=tuple(await self.items.quantities(current.id)),
        )

    # ------------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------------

    async def snapshot(
        self,
        version: BudgetVersionModel,
        work_order: WorkOrderModel,
    ) -> BudgetVersionSnapshot:
        """Project a version with its items and today's catalog prices."""
        items = await self.items.list_for_version(version.id)
        prices = await self.catalog.current_prices([i.material_id for i in items])
        editable = version.is_current and not WorkOrderStatus(work_order.status).is_locked()
        return BudgetVersionSnapshot.from_model(
            version,
            items=[
                LineItemSnapshot.from_model(item, prices.get(item.material_id))
                for item in items
            ],
            editable=editable,
        )

    async def get_version(
        self,
        work_order_id: int,
        version_id: int | None = None,
    ) -> BudgetVersionSnapshot:
        """Get a specific version, or the current one (created if missing).

        Args:
            work_order_id: Owning work order.
            version_id: Version to read; None means the current version.

        Returns:
            Version snapshot with items.
        """
        work_order = await self._load_work_order(work_order_id)
        if version_id is not None:
            version = await self.get_owned_version(work_order_id, version_id)
        else:
            version = await self.get_current_or_create(work_order_id)
        return await self.snapshot(version, work_order)

    async def list_versions(self, work_order_id: int) -> list[VersionSummary]:
        """All versions of a work order, newest first, with item counts."""
        await self._load_work_order(work_order_id)
        rows = await self.versions.list_with_item_counts(work_order_id)
        return [VersionSummary.from_model(version, count) for version, count in rows]

    # ------------------------------------------------------------------------
    # Current Version Changes
    # ------------------------------------------------------------------------

    def _ensure_not_invoiced(self, work_order: WorkOrderModel) -> None:
        if WorkOrderStatus(work_order.status).is_locked():
            raise WorkOrderNotEditableError(work_order.id, work_order.status)

    async def _flush_current_change(self, work_order_id: int, operation: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(
                "Budget version change lost a race",
                work_order_id=work_order_id,
                operation=operation,
                error=str(e.orig),
                request_id=self.request_id,
            )
            raise ConcurrentVersionConflictError(work_order_id, operation) from e

    async def create_next_version(
        self,
        work_order_id: int,
        notes: str | None = None,
    ) -> BudgetVersionSnapshot:
        """Create a new current version as a copy of the current one.

        The new version takes number max + 1 and starts with the prior
        current version's totals; every prior item is copied into a new
        row. All prior versions become read-only.

        Args:
            work_order_id: Owning work order.
            notes: Optional notes for the new version.

        Returns:
            The new version with its copied items.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            WorkOrderNotEditableError: If the work order is invoiced.
            ConcurrentVersionConflictError: If another caller created or
                switched a version at the same time.
        """
        work_order = await self._load_work_order(work_order_id, for_update=True)
        self._ensure_not_invoiced(work_order)

        prior = await self.versions.get_current(work_order_id)
        if prior is None and await self.versions.count(work_order_id) > 0:
            raise ConcurrentVersionConflictError(work_order_id, "create_next_version")
        prior_items = await self.items.list_for_version(prior.id) if prior else []
        next_number = await self.versions.max_number(work_order_id) + 1

        await self.versions.clear_current(work_order_id)
        version = BudgetVersionModel(
            work_order_id=work_order_id,
            number=next_number,
            is_current=True,
            subtotal=prior.subtotal if prior else 0,
            total=prior.total if prior else 0,
            notes=notes,
        )
        self.session.add(version)
        await self._flush_current_change(work_order_id, "create_next_version")

        copies = [
            LineItemModel(
                version_id=version.id,
                kind=item.kind,
                position=item.position,
                description=item.description,
                quantity=item.quantity,
                unit=item.unit,
                unit_cost=item.unit_cost,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                material_id=item.material_id,
            )
            for item in prior_items
        ]
        if copies:
            await self.items.add_all(copies)

        await self.recalculator.recalculate(version, work_order)

        publish(
            BudgetVersionCreated(
                aggregate_id=str(work_order_id),
                version_id=version.id,
                number=version.number,
                copied_from_version_id=prior.id if prior else None,
                copied_item_count=len(copies),
            ),
            request_id=self.request_id,
        )
        logger.info(
            "Budget version created",
            work_order_id=work_order_id,
            version_id=version.id,
            number=version.number,
            copied_items=len(copies),
            request_id=self.request_id,
        )
        return await self.snapshot(version, work_order)

    async def switch_current(self, work_order_id: int, version_id: int) -> BudgetVersionSnapshot:
        """Make an existing version the current one.

        The work order's budgeted amount follows the newly current
        version.

        Raises:
            VersionNotFoundError: If the version does not exist.
            NotOwnedByWorkOrderError: If it belongs to another work order.
            WorkOrderNotEditableError: If the work order is invoiced.
            ConcurrentVersionConflictError: On a concurrent switch.
        """
        work_order = await self._load_work_order(work_order_id, for_update=True)
        self._ensure_not_invoiced(work_order)
        version = await self.get_owned_version(work_order_id, version_id)

        if version.is_current:
            return await self.snapshot(version, work_order)

        previous = await self.versions.get_current(work_order_id)
        await self.versions.clear_current(work_order_id)
        version.is_current = True
        await self._flush_current_change(work_order_id, "switch_current")

        await self.recalculator.recalculate(version, work_order)

        publish(
            BudgetCurrentVersionSwitched(
                aggregate_id=str(work_order_id),
                previous_version_id=previous.id if previous else None,
                version_id=version.id,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "Budget current version switched",
            work_order_id=work_order_id,
            from_version_id=previous.id if previous else None,
            to_version_id=version.id,
            request_id=self.request_id,
        )
        return await self.snapshot(version, work_order)
