"""Line Item Ledger.

CRUD over the line items of a budget version. Every write is gated on
the version being current and the work order not being invoiced, and
every change to quantities or prices is followed by a recalculation in
the same transaction.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from obras.application.dtos import LineItemData, LineItemSnapshot
from obras.application.recalculation import BudgetRecalculator
from obras.catalog import CatalogService
from obras.domain import (
    InvalidLineItemError,
    InvalidQuantityOrPriceError,
    ItemNotFoundError,
    LineItemKind,
    Quantity,
    VersionNotEditableError,
    VersionNotFoundError,
    WorkOrderNotFoundError,
    WorkOrderStatus,
    line_subtotal,
    unit_amount,
)
from obras.infrastructure.models import BudgetVersionModel, LineItemModel, WorkOrderModel
from obras.infrastructure.repositories import (
    BudgetVersionRepository,
    LineItemRepository,
    WorkOrderRepository,
)

logger = structlog.get_logger()

_UPDATABLE_FIELDS = frozenset(
    {"kind", "position", "description", "quantity", "unit", "unit_cost", "unit_price"}
)


def _required_text(field: str, value: str | None) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidLineItemError(field, "must not be empty")
    return text


def _line_item_kind(value: LineItemKind | str) -> LineItemKind:
    try:
        return LineItemKind(value)
    except ValueError as e:
        raise InvalidLineItemError("kind", f"unknown kind '{value}'") from e


class LineItemLedger:
    """Application service for budget line items.

    Example usage:
        ledger = LineItemLedger(session)
        item = await ledger.add_item(
            version_id,
            LineItemData(kind=LineItemKind.LABOR, description="Painting",
                         quantity=2, unit="h", unit_cost=80, unit_price=100),
        )
    """

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize ledger.

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

    async def _editable_version(
        self,
        version_id: int,
        work_order_id: int | None = None,
    ) -> tuple[BudgetVersionModel, WorkOrderModel]:
        """Load a version for writing, locking its work order.

        Raises:
            VersionNotFoundError: If the version does not exist, or does
                not belong to `work_order_id` when one is given.
            VersionNotEditableError: If the version is not current or the
                work order is invoiced.
        """
        version = await self.versions.get(version_id)
        if version is None or (
            work_order_id is not None and version.work_order_id != work_order_id
        ):
            raise VersionNotFoundError(version_id, work_order_id)

        work_order = await self.work_orders.get(version.work_order_id, for_update=True)
        if work_order is None:
            raise WorkOrderNotFoundError(version.work_order_id)
        # The current flag may have moved before the lock was taken.
        await self.session.refresh(version)

        if WorkOrderStatus(work_order.status).is_locked():
            raise VersionNotEditableError(version.id, f"work order is {work_order.status}")
        if not version.is_current:
            raise VersionNotEditableError(version.id, "version is not current")
        return version, work_order

    async def _owned_item(self, item_id: int, work_order_id: int | None) -> LineItemModel:
        item = await self.items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if work_order_id is not None:
            version = await self.versions.get(item.version_id)
            if version is None or version.work_order_id != work_order_id:
                raise ItemNotFoundError(item_id, item.version_id)
        return item

    async def _project(self, item: LineItemModel) -> LineItemSnapshot:
        prices = await self.catalog.current_prices([item.material_id])
        return LineItemSnapshot.from_model(item, prices.get(item.material_id))

    async def add_item(
        self,
        version_id: int,
        data: LineItemData,
        work_order_id: int | None = None,
    ) -> LineItemSnapshot:
        """Add a line item to a current version.

        When `material_id` is given, missing description, unit and prices
        are copied from the catalog as they are right now.

        Args:
            version_id: Target version.
            data: Item data.
            work_order_id: If given, the version must belong to it.

        Returns:
            The created item.

        Raises:
            VersionNotEditableError: If the version is historical or the
                work order is invoiced.
            InvalidQuantityOrPriceError: If quantity <= 0 or a price < 0.
            InvalidLineItemError: If description or unit is empty.
            ReferenceNotFoundError: If the material does not exist.
        """
        version, work_order = await self._editable_version(version_id, work_order_id)

        description, unit = data.description, data.unit
        unit_cost, unit_price = data.unit_cost, data.unit_price
        if data.material_id is not None:
            defaults = await self.catalog.defaults_for(data.material_id)
            description = description or defaults.description
            unit = unit or defaults.unit
            unit_cost = defaults.unit_cost if unit_cost is None else unit_cost
            unit_price = defaults.unit_price if unit_price is None else unit_price

        if unit_price is None:
            raise InvalidQuantityOrPriceError("unit_price", None, "is required")
        quantity = Quantity.of(data.quantity)
        price = unit_amount(unit_price, "unit_price")
        cost = unit_amount(0 if unit_cost is None else unit_cost, "unit_cost")
        position = data.position
        if position is None:
            position = await self.items.max_position(version.id) + 1

        item = LineItemModel(
            version_id=version.id,
            kind=_line_item_kind(data.kind).value,
            position=position,
            description=_required_text("description", description),
            quantity=quantity.value,
            unit=_required_text("unit", unit),
            unit_cost=cost.amount,
            unit_price=price.amount,
            subtotal=line_subtotal(quantity, price).amount,
            material_id=data.material_id,
        )
        await self.items.add(item)
        await self.recalculator.recalculate(version, work_order)

        logger.info(
            "Line item added",
            work_order_id=work_order.id,
            version_id=version.id,
            item_id=item.id,
            subtotal=str(item.subtotal),
            request_id=self.request_id,
        )
        return await self._project(item)

    async def update_item(
        self,
        item_id: int,
        changes: dict[str, Any],
        work_order_id: int | None = None,
    ) -> LineItemSnapshot:
        """Partially update a line item.

        The subtotal is always recomputed from the merged quantity and
        unit price, never from the deltas.

        Args:
            item_id: Item to update.
            changes: Field -> new value, only for fields being changed.
            work_order_id: If given, the item must belong to it.

        Returns:
            The updated item.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidLineItemError(sorted(unknown)[0], "cannot be updated")

        item = await self._owned_item(item_id, work_order_id)
        version, work_order = await self._editable_version(item.version_id)

        quantity = Quantity.of(changes.get("quantity", item.quantity))
        price = unit_amount(changes.get("unit_price", item.unit_price), "unit_price")
        cost = unit_amount(changes.get("unit_cost", item.unit_cost), "unit_cost")

        if "kind" in changes:
            item.kind = _line_item_kind(changes["kind"]).value
        if "description" in changes:
            item.description = _required_text("description", changes["description"])
        if "unit" in changes:
            item.unit = _required_text("unit", changes["unit"])
        if "position" in changes and changes["position"] is not None:
            item.position = int(changes["position"])
        item.quantity = quantity.value
        item.unit_price = price.amount
        item.unit_cost = cost.amount
        item.subtotal = line_subtotal(quantity, price).amount

        await self.session.flush()
        await self.recalculator.recalculate(version, work_order)

        logger.info(
            "Line item updated",
            work_order_id=work_order.id,
            version_id=version.id,
            item_id=item.id,
            fields=sorted(changes),
            request_id=self.request_id,
        )
        return await self._project(item)

    async def delete_item(self, item_id: int, work_order_id: int | None = None) -> None:
        """Remove a line item and recalculate its version."""
        item = await self._owned_item(item_id, work_order_id)
        version, work_order = await self._editable_version(item.version_id)

        await self.items.delete(item)
        await self.recalculator.recalculate(version, work_order)

        logger.info(
            "Line item deleted",
            work_order_id=work_order.id,
            version_id=version.id,
            item_id=item_id,
            request_id=self.request_id,
        )

    async def reorder_items(
        self,
        version_id: int,
        assignments: list[tuple[int, int]],
        work_order_id: int | None = None,
    ) -> list[LineItemSnapshot]:
        """Assign new display positions to items of one version.

        Every item id is validated against the version before any
        position is changed. Totals are unaffected.

        Args:
            version_id: Version whose items are reordered.
            assignments: (item_id, new_position) pairs.
            work_order_id: If given, the version must belong to it.

        Returns:
            The version's items in their new order.

        Raises:
            ItemNotFoundError: If any id is not an item of the version.
        """
        version, work_order = await self._editable_version(version_id, work_order_id)
        items = {item.id: item for item in await self.items.list_for_version(version.id)}

        for item_id, _ in assignments:
            if item_id not in items:
                raise ItemNotFoundError(item_id, version.id)

        for item_id, position in assignments:
            items[item_id].position = position
        await self.session.flush()

        logger.info(
            "Line items reordered",
            work_order_id=work_order.id,
            version_id=version.id,
            count=len(assignments),
            request_id=self.request_id,
        )
        ordered = await self.items.list_for_version(version.id)
        prices = await self.catalog.current_prices([i.material_id for i in ordered])
        return [LineItemSnapshot.from_model(i, prices.get(i.material_id)) for i in ordered]
