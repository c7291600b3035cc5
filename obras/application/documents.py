"""Budget document generation.

Assembles the printable projection of a budget version, hands it to the
document renderer, stores the result and attaches it to the work order.
Generating the document for the current budget of a DRAFT work order
also moves it to BUDGETED when the transition guards allow it.
"""

from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from obras.application.budget_versions import BudgetVersionStore
from obras.application.dtos import BudgetDocumentResult, WorkOrderFileDTO
from obras.application.event_log import publish
from obras.application.work_order_service import WorkOrderService
from obras.domain import (
    BudgetDocumentGenerated,
    BudgetNotReadyError,
    ExecutionMode,
    FileKind,
    WorkOrderStatus,
    check_guards,
)
from obras.infrastructure.document_client import BinaryStorage, DocumentRenderer
from obras.infrastructure.models import (
    BudgetVersionModel,
    LineItemModel,
    WorkOrderFileModel,
    WorkOrderModel,
)
from obras.infrastructure.repositories import (
    LineItemRepository,
    ReferenceRepository,
    WorkOrderFileRepository,
)

logger = structlog.get_logger()
PDF_MIME_TYPE = "application/pdf"


def _amount(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"


def budget_file_name(code: str, version_number: int) -> str:
    """File name of a generated budget, e.g. Budget_OBR-00001_v2.pdf."""
    return f"Budget_{code}_v{version_number}.pdf"


def build_projection(
    work_order: WorkOrderModel,
    version: BudgetVersionModel,
    items: list[LineItemModel],
    client_name: str | None,
    site_name: str | None,
    issued_on: date,
) -> dict[str, Any]:
    """Data the renderer needs to print one budget version.

    Amounts are strings with two decimals so no binary float ever
    reaches the renderer.
    """
    return {
        "code": work_order.code,
        "title": work_order.title,
        "client_name": client_name,
        "site_name": site_name,
        "date": issued_on.isoformat(),
        "validity_days": work_order.validity_days,
        "version_number": version.number,
        "items": [
            {
                "position": item.position,
                "kind": item.kind,
                "description": item.description,
                "quantity": f"{Decimal(item.quantity).normalize():f}",
                "unit": item.unit,
                "unit_price": _amount(item.unit_price),
                "subtotal": _amount(item.subtotal),
            }
            for item in items
        ],
        "subtotal": _amount(version.subtotal),
        "total": _amount(version.total),
        "payment_terms": work_order.payment_terms,
    }


class BudgetDocumentService:
    """Application service for budget documents.

    Example usage:
        service = BudgetDocumentService(session, renderer, storage)
        result = await service.generate(work_order_id, actor_id=7)
    """

    def __init__(
        self,
        session: AsyncSession,
        renderer: DocumentRenderer,
        storage: BinaryStorage,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session (the caller's transaction).
            renderer: Document renderer.
            storage: Binary storage.
            request_id: Request ID for correlation.
        """
        self.session = session
        self.renderer = renderer
        self.storage = storage
        self.request_id = request_id
        self.work_orders = WorkOrderService(session, request_id)
        self.budget = BudgetVersionStore(session, request_id)
        self.items = LineItemRepository(session)
        self.references = ReferenceRepository(session)
        self.files = WorkOrderFileRepository(session)

    async def _advances_to_budgeted(
        self,
        work_order: WorkOrderModel,
        version: BudgetVersionModel,
    ) -> bool:
        if work_order.status != WorkOrderStatus.DRAFT.value:
            return False
        if work_order.execution_mode != ExecutionMode.WITH_BUDGET.value:
            return False
        if not version.is_current:
            return False
        try:
            check_guards(WorkOrderStatus.BUDGETED, await self.budget.readiness(work_order.id))
        except BudgetNotReadyError:
            return False
        return True

    async def generate(
        self,
        work_order_id: int,
        version_id: int | None = None,
        actor_id: int | None = None,
    ) -> BudgetDocumentResult:
        """Render, store and attach the budget document of a version.

        The document is uploaded before the file record is written; if the
        transaction later rolls back, the stored object is left orphaned.

        Args:
            work_order_id: Work order identifier.
            version_id: Version to print; None means the current version.
            actor_id: Acting user.

        Returns:
            The stored file and the work order status before and after.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            VersionNotFoundError: If the version does not exist.
            NotOwnedByWorkOrderError: If it belongs to another work order.
            DocumentServiceError: If rendering or upload fails.
        """
        work_order = await self.work_orders.get_model(work_order_id, for_update=True)
        if version_id is not None:
            version = await self.budget.get_owned_version(work_order_id, version_id)
        else:
            version = await self.budget.get_current_or_create(work_order_id)

        advance = await self._advances_to_budgeted(work_order, version)

        client = await self.references.get_client(work_order.client_id)
        site = await self.references.get_site(work_order.site_id) if work_order.site_id else None
        items = await self.items.list_for_version(version.id)
        projection = build_projection(
            work_order,
            version,
            items,
            client_name=client.name if client else None,
            site_name=site.name if site else None,
            issued_on=date.today(),
        )

        content = await self.renderer.render_budget(projection)
        filename = budget_file_name(work_order.code, version.number)
        stored = await self.storage.upload(
            filename,
            content,
            PDF_MIME_TYPE,
            folder=f"work-orders/{work_order_id}",
        )

        file = await self.files.add(
            WorkOrderFileModel(
                work_order_id=work_order_id,
                kind=FileKind.BUDGET_PDF.value,
                original_name=filename,
                storage_key=stored.key,
                mime_type=PDF_MIME_TYPE,
                size_bytes=stored.size,
                url=stored.url,
            )
        )
        version.document_file_id = file.id
        await self.session.flush()

        status_before = work_order.status
        if advance:
            await self.work_orders.apply_transition(
                work_order,
                WorkOrderStatus.BUDGETED,
                actor_id=actor_id,
                note=f"Budget document {filename} generated",
            )

        publish(
            BudgetDocumentGenerated(
                aggregate_id=str(work_order_id),
                version_id=version.id,
                file_id=file.id,
                storage_key=stored.key,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "Budget document generated",
            work_order_id=work_order_id,
            version_id=version.id,
            file_id=file.id,
            size_bytes=stored.size,
            advanced=advance,
            request_id=self.request_id,
        )
        return BudgetDocumentResult(
            file=WorkOrderFileDTO.from_model(file),
            version_id=version.id,
            version_number=version.number,
            status_before=status_before,
            status_after=work_order.status,
        )
