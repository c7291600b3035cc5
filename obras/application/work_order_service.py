"""Work order application service.

Orchestrates the work-order aggregate:
- Creating, updating and deleting work orders
- Requesting status transitions through the state machine and guards
- Read projections: aggregate snapshot, listing, history, files
"""

from datetime import date, datetime, timezone
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from obras.application.budget_versions import BudgetVersionStore
from obras.application.dtos import (
    StatusHistoryEntry,
    WorkOrderCreateData,
    WorkOrderFileDTO,
    WorkOrderFilter,
    WorkOrderSnapshot,
)
from obras.application.event_log import publish
from obras.catalog import PaginatedResult, PaginationParams
from obras.domain import (
    ConcurrentUpdateError,
    DuplicateTicketLinkError,
    ExecutionMode,
    InvalidWorkOrderFieldError,
    ReferenceNotFoundError,
    WorkOrderCode,
    WorkOrderCreated,
    WorkOrderDeleted,
    WorkOrderKind,
    WorkOrderNotDeletableError,
    WorkOrderNotEditableError,
    WorkOrderNotFoundError,
    WorkOrderStatus,
    WorkOrderStatusChanged,
    check_guards,
    needs_budget,
    plan_transition,
)
from obras.infrastructure.config import settings
from obras.infrastructure.models import StatusHistoryModel, WorkOrderModel
from obras.infrastructure.repositories import (
    ReferenceRepository,
    StatusHistoryRepository,
    WorkOrderFileRepository,
    WorkOrderRepository,
)

logger = structlog.get_logger()

# Attributes a caller may change after creation. Status, code and the
# rollup amounts are never set through an update.
_EDITABLE_FIELDS = frozenset(
    {
        "kind",
        "execution_mode",
        "title",
        "description",
        "request_date",
        "estimated_start_date",
        "estimated_end_date",
        "actual_start_date",
        "actual_end_date",
        "client_id",
        "site_id",
        "ticket_id",
        "payment_terms",
        "validity_days",
        "invoice_number",
        "invoice_date",
    }
)

# Editable attributes backed by NOT NULL columns.
_REQUIRED_FIELDS = frozenset(
    {"kind", "execution_mode", "title", "client_id", "request_date", "validity_days"}
)


def _is_ticket_conflict(error: IntegrityError) -> bool:
    return "ticket_id" in str(error.orig)


class WorkOrderService:
    """Application service for the work-order aggregate.

    Every public method runs inside the caller's session; nothing is
    committed here, so each call is one atomic unit.

    Example usage:
        service = WorkOrderService(session, request_id="req-1")
        snapshot = await service.request_transition(
            work_order_id, WorkOrderStatus.BUDGETED, actor_id=7
        )
    """

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session (the caller's transaction).
            request_id: Request ID for correlation.
        """
        self.session = session
        self.request_id = request_id
        self.work_orders = WorkOrderRepository(session)
        self.references = ReferenceRepository(session)
        self.history = StatusHistoryRepository(session)
        self.files = WorkOrderFileRepository(session)
        self.budget = BudgetVersionStore(session, request_id)

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    async def get_model(self, work_order_id: int, for_update: bool = False) -> WorkOrderModel:
        """Load a work order row, optionally locked for the transaction."""
        work_order = await self.work_orders.get(work_order_id, for_update=for_update)
        if work_order is None:
            raise WorkOrderNotFoundError(work_order_id)
        return work_order

    async def _next_code(self) -> str:
        prefix = settings.work_order_code_prefix
        width = settings.work_order_code_width
        last = await self.work_orders.last_code(prefix)
        parsed = WorkOrderCode.parse(last, width) if last else None
        code = parsed.next() if parsed else WorkOrderCode.first(prefix, width)
        return str(code)

    async def _check_references(
        self,
        client_id: int | None,
        site_id: int | None,
        ticket_id: int | None,
        work_order_id: int | None = None,
    ) -> None:
        if client_id is not None and await self.references.get_client(client_id) is None:
            raise ReferenceNotFoundError("Client", client_id)
        if site_id is not None and await self.references.get_site(site_id) is None:
            raise ReferenceNotFoundError("Site", site_id)
        if ticket_id is not None:
            if await self.references.get_ticket(ticket_id) is None:
                raise ReferenceNotFoundError("Ticket", ticket_id)
            linked = await self.work_orders.get_by_ticket(ticket_id)
            if linked is not None and linked.id != work_order_id:
                raise DuplicateTicketLinkError(ticket_id, linked.id)

    async def _flush(self, work_order_id: int | None, operation: str, ticket_id: int | None) -> None:
        """Flush, translating lost races into domain errors."""
        try:
            await self.session.flush()
        except StaleDataError as e:
            raise ConcurrentUpdateError(work_order_id, operation) from e
        except IntegrityError as e:
            if ticket_id is not None and _is_ticket_conflict(e):
                raise DuplicateTicketLinkError(ticket_id, None) from e
            raise ConcurrentUpdateError(work_order_id, operation) from e

    # ------------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------------

    async def create_work_order(
        self,
        data: WorkOrderCreateData,
        actor_id: int | None = None,
    ) -> WorkOrderSnapshot:
        """Create a work order in DRAFT.

        Work orders with a budget get an empty current version 1 in the
        same transaction.

        Args:
            data: Work order data.
            actor_id: Acting user.

        Returns:
            Snapshot of the new work order.

        Raises:
            ReferenceNotFoundError: If client, site or ticket is unknown.
            DuplicateTicketLinkError: If the ticket is already linked.
        """
        await self._check_references(data.client_id, data.site_id, data.ticket_id)

        mode = ExecutionMode(data.execution_mode)
        work_order = WorkOrderModel(
            code=await self._next_code(),
            kind=WorkOrderKind(data.kind).value,
            execution_mode=mode.value,
            status=WorkOrderStatus.DRAFT.value,
            title=data.title,
            description=data.description,
            request_date=data.request_date or date.today(),
            estimated_start_date=data.estimated_start_date,
            estimated_end_date=data.estimated_end_date,
            client_id=data.client_id,
            site_id=data.site_id,
            ticket_id=data.ticket_id,
            payment_terms=data.payment_terms,
            validity_days=data.validity_days or settings.default_validity_days,
            created_by=actor_id,
        )
        self.session.add(work_order)
        await self._flush(None, "create", data.ticket_id)

        if mode == ExecutionMode.WITH_BUDGET:
            await self.budget.get_current_or_create(work_order.id)

        publish(
            WorkOrderCreated(
                aggregate_id=str(work_order.id),
                code=work_order.code,
                execution_mode=mode.value,
                client_id=work_order.client_id,
                ticket_id=work_order.ticket_id,
                created_by=actor_id,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "Work order created",
            work_order_id=work_order.id,
            code=work_order.code,
            execution_mode=mode.value,
            actor_id=actor_id,
            request_id=self.request_id,
        )
        return await self.get_work_order(work_order.id)

    async def update_work_order(
        self,
        work_order_id: int,
        changes: dict[str, Any],
        actor_id: int | None = None,
    ) -> WorkOrderSnapshot:
        """Partially update a work order's editable attributes.

        Args:
            work_order_id: Work order to update.
            changes: Field -> new value, only for fields being changed.
            actor_id: Acting user.

        Raises:
            WorkOrderNotEditableError: If the work order is invoiced.
            DuplicateTicketLinkError: If the new ticket is already linked.
            InvalidWorkOrderFieldError: If a field is not editable or a
                required field is set to null.
        """
        unknown = sorted(set(changes) - _EDITABLE_FIELDS)
        if unknown:
            raise InvalidWorkOrderFieldError(unknown[0], "cannot be updated")
        for field in sorted(_REQUIRED_FIELDS & set(changes)):
            if changes[field] is None:
                raise InvalidWorkOrderFieldError(field, "cannot be null")

        work_order = await self.get_model(work_order_id, for_update=True)
        if WorkOrderStatus(work_order.status).is_locked():
            raise WorkOrderNotEditableError(work_order_id, work_order.status)

        ticket_id = changes.get("ticket_id")
        await self._check_references(
            changes.get("client_id"),
            changes.get("site_id"),
            ticket_id if ticket_id != work_order.ticket_id else None,
            work_order_id=work_order_id,
        )

        for field, value in changes.items():
            if field == "kind" and value is not None:
                value = WorkOrderKind(value).value
            elif field == "execution_mode" and value is not None:
                value = ExecutionMode(value).value
            setattr(work_order, field, value)

        await self._flush(work_order_id, "update", ticket_id)

        logger.info(
            "Work order updated",
            work_order_id=work_order_id,
            fields=sorted(changes),
            actor_id=actor_id,
            request_id=self.request_id,
        )
        return await self.get_work_order(work_order_id)

    async def delete_work_order(self, work_order_id: int, actor_id: int | None = None) -> None:
        """Delete a DRAFT work order with its budget, history and files.

        Raises:
            WorkOrderNotDeletableError: If the work order has left DRAFT.
        """
        work_order = await self.get_model(work_order_id, for_update=True)
        if not WorkOrderStatus(work_order.status).is_deletable():
            raise WorkOrderNotDeletableError(work_order_id, work_order.status)

        code = work_order.code
        await self.work_orders.delete_cascade(work_order)

        publish(
            WorkOrderDeleted(aggregate_id=str(work_order_id), code=code),
            request_id=self.request_id,
        )
        logger.info(
            "Work order deleted",
            work_order_id=work_order_id,
            code=code,
            actor_id=actor_id,
            request_id=self.request_id,
        )

    async def apply_transition(
        self,
        work_order: WorkOrderModel,
        target_status: WorkOrderStatus,
        actor_id: int | None = None,
        note: str | None = None,
    ) -> WorkOrderStatus:
        """Validate, guard and apply a transition on a locked work order.

        Status, timestamps and the history entry are written together;
        on any failure nothing is changed.

        Returns:
            The previous status.
        """
        current = WorkOrderStatus(work_order.status)
        plan = plan_transition(
            work_order.id,
            current,
            target_status,
            ExecutionMode(work_order.execution_mode),
            has_actual_start=work_order.actual_start_date is not None,
            has_actual_end=work_order.actual_end_date is not None,
        )
        if needs_budget(target_status):
            check_guards(target_status, await self.budget.readiness(work_order.id))

        now = datetime.now(timezone.utc)
        work_order.status = plan.to_state.value
        if plan.stamp_actual_start:
            work_order.actual_start_date = now
        if plan.stamp_actual_end:
            work_order.actual_end_date = now
        if plan.stamp_invoice_date:
            work_order.invoice_date = now

        await self._flush(work_order.id, "transition", None)
        await self.history.append(
            StatusHistoryModel(
                work_order_id=work_order.id,
                from_status=plan.from_state.value,
                to_status=plan.to_state.value,
                actor_id=actor_id,
                note=note,
                created_at=now,
            )
        )

        publish(
            WorkOrderStatusChanged(
                aggregate_id=str(work_order.id),
                from_status=plan.from_state.value,
                to_status=plan.to_state.value,
                actor_id=actor_id,
                note=note,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "Work order status transitioned",
            work_order_id=work_order.id,
            from_status=plan.from_state.value,
            to_status=plan.to_state.value,
            actor_id=actor_id,
            request_id=self.request_id,
        )
        return current

    async def request_transition(
        self,
        work_order_id: int,
        target_status: WorkOrderStatus,
        actor_id: int | None = None,
        note: str | None = None,
    ) -> WorkOrderSnapshot:
        """Move a work order to a new status.

        Args:
            work_order_id: Work order identifier.
            target_status: Requested status.
            actor_id: Acting user.
            note: Optional note for the history entry.

        Returns:
            Snapshot after the transition.

        Raises:
            IllegalTransitionError: If the target is not reachable under
                the work order's execution mode.
            BudgetNotReadyError: If entering BUDGETED without a priced item.
        """
        work_order = await self.get_model(work_order_id, for_update=True)
        await self.apply_transition(work_order, WorkOrderStatus(target_status), actor_id, note)
        return await self.get_work_order(work_order_id)

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    async def get_work_order(self, work_order_id: int) -> WorkOrderSnapshot:
        """Get the aggregate snapshot of a work order."""
        work_order = await self.get_model(work_order_id)
        current = await self.budget.versions.get_current(work_order_id)
        return WorkOrderSnapshot.from_model(
            work_order,
            allowed_next_statuses=self._allowed_next(work_order),
            current_version=await self.budget.snapshot(current, work_order) if current else None,
            versions=await self.budget.list_versions(work_order_id),
        )

    def _allowed_next(self, work_order: WorkOrderModel) -> list[str]:
        status = WorkOrderStatus(work_order.status)
        mode = ExecutionMode(work_order.execution_mode)
        return [s.value for s in status.allowed_transitions(mode)]

    async def allowed_next_statuses(self, work_order_id: int) -> list[str]:
        """Statuses the work order may move to next, in lifecycle order."""
        return self._allowed_next(await self.get_model(work_order_id))

    async def list_work_orders(
        self,
        filters: WorkOrderFilter,
        pagination: PaginationParams,
    ) -> PaginatedResult[WorkOrderSnapshot]:
        """List work orders, newest first.

        Args:
            filters: Search and filter parameters.
            pagination: Pagination parameters.

        Returns:
            Paginated snapshots (without budget details).
        """
        criteria = {
            "search": filters.search,
            "status": filters.status,
            "kind": filters.kind,
            "client_id": filters.client_id,
        }
        rows = await self.work_orders.find_all(
            **criteria, limit=pagination.limit, offset=pagination.offset
        )
        total = await self.work_orders.count(**criteria)
        return PaginatedResult(
            items=[
                WorkOrderSnapshot.from_model(wo, allowed_next_statuses=self._allowed_next(wo))
                for wo in rows
            ],
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def list_status_history(self, work_order_id: int) -> list[StatusHistoryEntry]:
        """Status history, newest first."""
        await self.get_model(work_order_id)
        entries = await self.history.list_for_work_order(work_order_id)
        return [StatusHistoryEntry.from_model(e) for e in entries]

    async def list_files(self, work_order_id: int) -> list[WorkOrderFileDTO]:
        """Files attached to a work order, newest first."""
        await self.get_model(work_order_id)
        files = await self.files.list_for_work_order(work_order_id)
        return [WorkOrderFileDTO.from_model(f) for f in files]
