"""Repositories for work orders and their budgets.

Thin query helpers over the ORM models. Repositories only flush; the
request session decides when to commit.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from obras.infrastructure.models import (
    BudgetVersionModel,
    ClientModel,
    LineItemModel,
    SiteModel,
    StatusHistoryModel,
    TicketModel,
    WorkOrderCommentModel,
    WorkOrderFileModel,
    WorkOrderModel,
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


# ============================================================================
# Reference Data
# ============================================================================


class ReferenceRepository:
    """Existence checks against the client, site and ticket registries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_client(self, client_id: int) -> ClientModel | None:
        return await self.session.get(ClientModel, client_id)

    async def get_site(self, site_id: int) -> SiteModel | None:
        return await self.session.get(SiteModel, site_id)

    async def get_ticket(self, ticket_id: int) -> TicketModel | None:
        return await self.session.get(TicketModel, ticket_id)


# ============================================================================
# Work Orders
# ============================================================================


class WorkOrderRepository:
    """Repository for WorkOrder database operations.

    Example usage:
        repo = WorkOrderRepository(session)
        work_order = await repo.get(42, for_update=True)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get(self, work_order_id: int, for_update: bool = False) -> WorkOrderModel | None:
        """Get a work order by ID.

        Args:
            work_order_id: Work order ID.
            for_update: Lock the row until the transaction ends. The
                row is re-read even if it is already in the session.

        Returns:
            Work order if found, None otherwise.
        """
        query = select(WorkOrderModel).where(WorkOrderModel.id == work_order_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_ticket(self, ticket_id: int) -> WorkOrderModel | None:
        """Get the work order linked to a ticket, if any."""
        result = await self.session.execute(
            select(WorkOrderModel).where(WorkOrderModel.ticket_id == ticket_id)
        )
        return result.scalar_one_or_none()

    async def last_code(self, prefix: str) -> str | None:
        """Highest code issued under a prefix.

        Shorter codes sort first, so a number that outgrows the padding
        width still sorts above the padded ones.
        """
        result = await self.session.execute(
            select(WorkOrderModel.code)
            .where(WorkOrderModel.code.like(f"{prefix}-%"))
            .order_by(func.length(WorkOrderModel.code).desc(), WorkOrderModel.code.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    def _filter_conditions(
        self,
        search: str | None,
        status: str | None,
        kind: str | None,
        client_id: int | None,
    ) -> list:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    WorkOrderModel.code.ilike(pattern),
                    WorkOrderModel.title.ilike(pattern),
                )
            )
        if status is not None:
            conditions.append(WorkOrderModel.status == status)
        if kind is not None:
            conditions.append(WorkOrderModel.kind == kind)
        if client_id is not None:
            conditions.append(WorkOrderModel.client_id == client_id)
        return conditions

    async def find_all(
        self,
        search: str | None = None,
        status: str | None = None,
        kind: str | None = None,
        client_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Sequence[WorkOrderModel]:
        """Find work orders, newest first.

        Args:
            search: Case-insensitive fragment of code or title.
            status: Filter by status.
            kind: Filter by kind.
            client_id: Filter by client.
            limit: Maximum results.
            offset: Result offset for pagination.

        Returns:
            Sequence of matching work orders.
        """
        query = select(WorkOrderModel)
        conditions = self._filter_conditions(search, status, kind, client_id)
        if conditions:
            query = query.where(and_(*conditions))
        query = (
            query.order_by(WorkOrderModel.created_at.desc(), WorkOrderModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(
        self,
        search: str | None = None,
        status: str | None = None,
        kind: str | None = None,
        client_id: int | None = None,
    ) -> int:
        """Count work orders matching the same filters as `find_all`."""
        query = select(func.count(WorkOrderModel.id))
        conditions = self._filter_conditions(search, status, kind, client_id)
        if conditions:
            query = query.where(and_(*conditions))
        result = await self.session.execute(query)
        return result.scalar_one()

    async def delete_cascade(self, work_order: WorkOrderModel) -> None:
        """Delete a work order with everything hanging off it.

        Children are removed with explicit statements so the cascade does
        not depend on database-side ON DELETE support.
        """
        version_ids = select(BudgetVersionModel.id).where(
            BudgetVersionModel.work_order_id == work_order.id
        )
        await self.session.execute(
            delete(LineItemModel).where(LineItemModel.version_id.in_(version_ids))
        )
        await self.session.execute(
            delete(BudgetVersionModel).where(BudgetVersionModel.work_order_id == work_order.id)
        )
        await self.session.execute(
            delete(StatusHistoryModel).where(StatusHistoryModel.work_order_id == work_order.id)
        )
        await self.session.execute(
            delete(WorkOrderFileModel).where(WorkOrderFileModel.work_order_id == work_order.id)
        )
        await self.session.execute(
            delete(WorkOrderCommentModel).where(
                WorkOrderCommentModel.work_order_id == work_order.id
            )
        )
        await self.session.delete(work_order)
        await self.session.flush()


# ============================================================================
# Budget Versions
# ============================================================================


class BudgetVersionRepository:
    """Repository for BudgetVersion database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, version_id: int) -> BudgetVersionModel | None:
        return await self.session.get(BudgetVersionModel, version_id)

    async def get_current(self, work_order_id: int) -> BudgetVersionModel | None:
        """Get the current version of a work order."""
        result = await self.session.execute(
            select(BudgetVersionModel)
            .where(
                BudgetVersionModel.work_order_id == work_order_id,
                BudgetVersionModel.is_current.is_(True),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def count(self, work_order_id: int) -> int:
        result = await self.session.execute(
            select(func.count(BudgetVersionModel.id)).where(
                BudgetVersionModel.work_order_id == work_order_id
            )
        )
        return result.scalar_one()

    async def max_number(self, work_order_id: int) -> int:
        """Highest version number for a work order, 0 if it has none."""
        result = await self.session.execute(
            select(func.max(BudgetVersionModel.number)).where(
                BudgetVersionModel.work_order_id == work_order_id
            )
        )
        return result.scalar_one() or 0

    async def insert_first_if_absent(self, work_order_id: int) -> None:
        """Insert version 1 as current unless the work order already has one.

        Relies on the (work_order_id, number) unique constraint, so
        concurrent callers create at most one row.
        """
        dialect = self.session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT[dialect]
        stmt = (
            insert(BudgetVersionModel)
            .values(
                work_order_id=work_order_id,
                number=1,
                is_current=True,
                subtotal=Decimal("0"),
                total=Decimal("0"),
                created_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing()
        )
        await self.session.execute(stmt)

    async def clear_current(self, work_order_id: int) -> None:
        """Mark every version of the work order as not current."""
        await self.session.execute(
            update(BudgetVersionModel)
            .where(
                BudgetVersionModel.work_order_id == work_order_id,
                BudgetVersionModel.is_current.is_(True),
            )
            .values(is_current=False)
            .execution_options(synchronize_session="fetch")
        )

    async def detach_document(self, file_id: int) -> None:
        await self.session.execute(
            update(BudgetVersionModel)
            .where(BudgetVersionModel.document_file_id == file_id)
            .values(document_file_id=None)
            .execution_options(synchronize_session="fetch")
        )

    async def list_with_item_counts(
        self, work_order_id: int
    ) -> list[tuple[BudgetVersionModel, int]]:
        """All versions of a work order, newest number first, with item counts."""
        item_count = func.count(LineItemModel.id).label("item_count")
        result = await self.session.execute(
            select(BudgetVersionModel, item_count)
            .outerjoin(LineItemModel, LineItemModel.version_id == BudgetVersionModel.id)
            .where(BudgetVersionModel.work_order_id == work_order_id)
            .group_by(BudgetVersionModel.id)
            .order_by(BudgetVersionModel.number.desc())
        )
        return [(row[0], row[1]) for row in result.all()]


# ============================================================================
# Line Items
# ============================================================================


class LineItemRepository:
    """Repository for LineItem database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, item: LineItemModel) -> LineItemModel:
        self.session.add(item)
        await self.session.flush()
        return item

    async def add_all(self, items: list[LineItemModel]) -> list[LineItemModel]:
        self.session.add_all(items)
        await self.session.flush()
        return items

    async def get(self, item_id: int) -> LineItemModel | None:
        return await self.session.get(LineItemModel, item_id)

    async def list_for_version(self, version_id: int) -> list[LineItemModel]:
        """Items of a version in display order."""
        result = await self.session.execute(
            select(LineItemModel)
            .where(LineItemModel.version_id == version_id)
            .order_by(LineItemModel.position.asc(), LineItemModel.id.asc())
        )
        return list(result.scalars().all())

    async def max_position(self, version_id: int) -> int:
        result = await self.session.execute(
            select(func.max(LineItemModel.position)).where(LineItemModel.version_id == version_id)
        )
        return result.scalar_one() or 0

    async def subtotals(self, version_id: int) -> list[Decimal]:
        result = await self.session.execute(
            select(LineItemModel.subtotal).where(LineItemModel.version_id == version_id)
        )
        return list(result.scalars().all())

    async def quantities(self, version_id: int) -> list[Decimal]:
        result = await self.session.execute(
            select(LineItemModel.quantity).where(LineItemModel.version_id == version_id)
        )
        return list(result.scalars().all())

    async def delete(self, item: LineItemModel) -> None:
        await self.session.delete(item)
        await self.session.flush()


# ============================================================================
# Status History & Files
# ============================================================================


class StatusHistoryRepository:
    """Append-only access to the status history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(self, entry: StatusHistoryModel) -> StatusHistoryModel:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_for_work_order(self, work_order_id: int) -> list[StatusHistoryModel]:
        """History entries, newest first."""
        result = await self.session.execute(
            select(StatusHistoryModel)
            .where(StatusHistoryModel.work_order_id == work_order_id)
            .order_by(StatusHistoryModel.created_at.desc(), StatusHistoryModel.id.desc())
        )
        return list(result.scalars().all())


class WorkOrderFileRepository:
    """Repository for work-order file records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, file: WorkOrderFileModel) -> WorkOrderFileModel:
        self.session.add(file)
        await self.session.flush()
        return file

    async def get(self, file_id: int) -> WorkOrderFileModel | None:
        return await self.session.get(WorkOrderFileModel, file_id)

    async def list_for_work_order(self, work_order_id: int) -> list[WorkOrderFileModel]:
        """Files attached to a work order, newest first."""
        result = await self.session.execute(
            select(WorkOrderFileModel)
            .where(WorkOrderFileModel.work_order_id == work_order_id)
            .order_by(WorkOrderFileModel.created_at.desc(), WorkOrderFileModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, file: WorkOrderFileModel) -> None:
        await self.session.delete(file)
        await self.session.flush()


class CommentRepository:
    """Repository for work-order comments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, comment: WorkOrderCommentModel) -> WorkOrderCommentModel:
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def get(self, comment_id: int) -> WorkOrderCommentModel | None:
        return await self.session.get(WorkOrderCommentModel, comment_id)

    async def list_for_work_order(self, work_order_id: int) -> list[WorkOrderCommentModel]:
        """Comments on a work order, newest first."""
        result = await self.session.execute(
            select(WorkOrderCommentModel)
            .where(WorkOrderCommentModel.work_order_id == work_order_id)
            .order_by(WorkOrderCommentModel.created_at.desc(), WorkOrderCommentModel.id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, comment: WorkOrderCommentModel) -> None:
        await self.session.delete(comment)
        await self.session.flush()
