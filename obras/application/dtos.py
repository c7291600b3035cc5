"""Data transfer objects for the work-order engine.

Input DTOs carry validated caller intent into the services; snapshot
DTOs are the read projections handed back after every operation.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from obras.catalog import has_price_drift
from obras.domain import ExecutionMode, LineItemKind, WorkOrderKind
from obras.infrastructure.models import (
    BudgetVersionModel,
    LineItemModel,
    StatusHistoryModel,
    WorkOrderCommentModel,
    WorkOrderFileModel,
    WorkOrderModel,
)


# ============================================================================
# Input DTOs
# ============================================================================


@dataclass
class WorkOrderCreateData:
    """Data for creating a work order."""

    kind: WorkOrderKind
    title: str
    client_id: int
    execution_mode: ExecutionMode = ExecutionMode.WITH_BUDGET
    description: str | None = None
    request_date: date | None = None
    estimated_start_date: date | None = None
    estimated_end_date: date | None = None
    site_id: int | None = None
    ticket_id: int | None = None
    payment_terms: str | None = None
    validity_days: int | None = None


@dataclass
class LineItemData:
    """Data for a new line item.

    Unit, prices and description may be omitted when `material_id` is
    given; they are then taken from the catalog.
    """

    kind: LineItemKind
    quantity: Decimal | int | float | str
    description: str | None = None
    unit: str | None = None
    unit_cost: Decimal | int | float | str | None = None
    unit_price: Decimal | int | float | str | None = None
    material_id: int | None = None
    position: int | None = None


@dataclass
class WorkOrderFilter:
    """Filter parameters for work order listing."""

    search: str | None = None
    status: str | None = None
    kind: str | None = None
    client_id: int | None = None


# ============================================================================
# Snapshot DTOs
# ============================================================================


@dataclass
class LineItemSnapshot:
    """Line item as seen by callers, with catalog drift."""

    id: int
    version_id: int
    kind: str
    position: int
    description: str
    quantity: Decimal
    unit: str
    unit_cost: Decimal
    unit_price: Decimal
    subtotal: Decimal
    material_id: int | None = None
    catalog_unit_price: Decimal | None = None
    price_drift: bool = False

    @classmethod
    def from_model(
        cls,
        item: LineItemModel,
        catalog_unit_price: Decimal | None = None,
    ) -> "LineItemSnapshot":
        return cls(
            id=item.id,
            version_id=item.version_id,
            kind=item.kind,
            position=item.position,
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            unit_cost=item.unit_cost,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
            material_id=item.material_id,
            catalog_unit_price=catalog_unit_price,
            price_drift=has_price_drift(item.unit_price, catalog_unit_price),
        )


@dataclass
class BudgetVersionSnapshot:
    """A budget version with its items in display order."""

    id: int
    work_order_id: int
    number: int
    is_current: bool
    editable: bool
    subtotal: Decimal
    total: Decimal
    created_at: datetime
    notes: str | None = None
    document_file_id: int | None = None
    items: list[LineItemSnapshot] = field(default_factory=list)

    @classmethod
    def from_model(
        cls,
        version: BudgetVersionModel,
        items: list[LineItemSnapshot],
        editable: bool,
    ) -> "BudgetVersionSnapshot":
        return cls(
            id=version.id,
            work_order_id=version.work_order_id,
            number=version.number,
            is_current=version.is_current,
            editable=editable,
            subtotal=version.subtotal,
            total=version.total,
            created_at=version.created_at,
            notes=version.notes,
            document_file_id=version.document_file_id,
            items=items,
        )


@dataclass
class VersionSummary:
    """One row of a work order's version list."""

    id: int
    number: int
    is_current: bool
    subtotal: Decimal
    total: Decimal
    item_count: int
    created_at: datetime
    notes: str | None = None
    document_file_id: int | None = None

    @classmethod
    def from_model(cls, version: BudgetVersionModel, item_count: int) -> "VersionSummary":
        return cls(
            id=version.id,
            number=version.number,
            is_current=version.is_current,
            subtotal=version.subtotal,
            total=version.total,
            item_count=item_count,
            created_at=version.created_at,
            notes=version.notes,
            document_file_id=version.document_file_id,
        )


@dataclass
class StatusHistoryEntry:
    """Status history entry."""

    id: int
    from_status: str
    to_status: str
    created_at: datetime
    actor_id: int | None = None
    note: str | None = None

    @classmethod
    def from_model(cls, entry: StatusHistoryModel) -> "StatusHistoryEntry":
        return cls(
            id=entry.id,
            from_status=entry.from_status,
            to_status=entry.to_status,
            created_at=entry.created_at,
            actor_id=entry.actor_id,
            note=entry.note,
        )


@dataclass
class WorkOrderFileDTO:
    """File attached to a work order."""

    id: int
    work_order_id: int
    kind: str
    original_name: str
    storage_key: str
    mime_type: str
    size_bytes: int
    created_at: datetime
    url: str | None = None

    @classmethod
    def from_model(cls, file: WorkOrderFileModel) -> "WorkOrderFileDTO":
        return cls(
            id=file.id,
            work_order_id=file.work_order_id,
            kind=file.kind,
            original_name=file.original_name,
            storage_key=file.storage_key,
            mime_type=file.mime_type,
            size_bytes=file.size_bytes,
            created_at=file.created_at,
            url=file.url,
        )


@dataclass
class CommentDTO:
    """Comment left on a work order."""

    id: int
    work_order_id: int
    body: str
    created_at: datetime
    author_id: int | None = None

    @classmethod
    def from_model(cls, comment: WorkOrderCommentModel) -> "CommentDTO":
        return cls(
            id=comment.id,
            work_order_id=comment.work_order_id,
            body=comment.body,
            created_at=comment.created_at,
            author_id=comment.author_id,
        )


@dataclass
class WorkOrderSnapshot:
    """Work order aggregate as returned after every operation."""

    id: int
    code: str
    kind: str
    execution_mode: str
    status: str
    title: str
    client_id: int
    request_date: date
    validity_days: int
    budgeted_amount: Decimal
    spent_amount: Decimal
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    site_id: int | None = None
    ticket_id: int | None = None
    payment_terms: str | None = None
    estimated_start_date: date | None = None
    estimated_end_date: date | None = None
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None
    invoice_number: str | None = None
    invoice_date: datetime | None = None
    created_by: int | None = None
    allowed_next_statuses: list[str] = field(default_factory=list)
    current_version: BudgetVersionSnapshot | None = None
    versions: list[VersionSummary] = field(default_factory=list)

    @classmethod
    def from_model(cls, work_order: WorkOrderModel, **extra: Any) -> "WorkOrderSnapshot":
        return cls(
            id=work_order.id,
            code=work_order.code,
            kind=work_order.kind,
            execution_mode=work_order.execution_mode,
            status=work_order.status,
            title=work_order.title,
            client_id=work_order.client_id,
            request_date=work_order.request_date,
            validity_days=work_order.validity_days,
            budgeted_amount=work_order.budgeted_amount,
            spent_amount=work_order.spent_amount,
            created_at=work_order.created_at,
            updated_at=work_order.updated_at,
            description=work_order.description,
            site_id=work_order.site_id,
            ticket_id=work_order.ticket_id,
            payment_terms=work_order.payment_terms,
            estimated_start_date=work_order.estimated_start_date,
            estimated_end_date=work_order.estimated_end_date,
            actual_start_date=work_order.actual_start_date,
            actual_end_date=work_order.actual_end_date,
            invoice_number=work_order.invoice_number,
            invoice_date=work_order.invoice_date,
            created_by=work_order.created_by,
            **extra,
        )


@dataclass
class BudgetDocumentResult:
    """Outcome of generating a budget document."""

    file: WorkOrderFileDTO
    version_id: int
    version_number: int
    status_before: str
    status_after: str

    @property
    def advanced(self) -> bool:
        """Whether the work order moved to BUDGETED as a result."""
        return self.status_before != self.status_after
