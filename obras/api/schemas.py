"""API schemas for the Obras API.

Pydantic models for request/response validation and serialization.
Money and quantities are Decimal and serialize as strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from obras.domain import ExecutionMode, LineItemKind, WorkOrderKind, WorkOrderStatus


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class PaginatedResponse(BaseModel):
    """Base paginated response."""

    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    has_more: bool = Field(..., description="Whether there are more pages")


# ============================================================================
# Work Order Schemas
# ============================================================================


class WorkOrderCreateRequest(BaseModel):
    """Request to create a work order."""

    kind: WorkOrderKind = Field(..., description="Kind of job")
    execution_mode: ExecutionMode = Field(
        default=ExecutionMode.WITH_BUDGET, description="Budgeted or direct execution"
    )
    title: str = Field(..., min_length=1, max_length=200, description="Short title")
    description: str | None = Field(default=None, description="Long description")
    client_id: int = Field(..., description="Client the work is for")
    site_id: int | None = Field(default=None, description="Client site")
    ticket_id: int | None = Field(default=None, description="Originating ticket")
    request_date: date | None = Field(default=None, description="Defaults to today")
    estimated_start_date: date | None = None
    estimated_end_date: date | None = None
    payment_terms: str | None = Field(default=None, description="Payment terms text")
    validity_days: int | None = Field(
        default=None, ge=1, le=365, description="Budget validity window in days"
    )


class WorkOrderUpdateRequest(BaseModel):
    """Partial update of a work order. Only sent fields are changed.

    Required attributes (kind, execution mode, title, client, request date,
    validity) may be omitted but not sent as null.
    """

    model_config = ConfigDict(extra="forbid")

    kind: WorkOrderKind | None = None
    execution_mode: ExecutionMode | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    client_id: int | None = None
    site_id: int | None = None
    ticket_id: int | None = None
    request_date: date | None = None
    estimated_start_date: date | None = None
    estimated_end_date: date | None = None
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None
    payment_terms: str | None = None
    validity_days: int | None = Field(default=None, ge=1, le=365)
    invoice_number: str | None = Field(default=None, max_length=50)
    invoice_date: datetime | None = None


class TransitionRequest(BaseModel):
    """Request to change a work order's status."""

    status: WorkOrderStatus = Field(..., description="Target status")
    note: str | None = Field(default=None, max_length=1000, description="History note")


class LineItemResponse(BaseModel):
    """Line item with catalog drift information."""

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
    catalog_unit_price: Decimal | None = Field(
        default=None, description="Current catalog sale price of the material"
    )
    price_drift: bool = Field(
        default=False, description="Whether the item's price differs from the catalog"
    )


class BudgetVersionResponse(BaseModel):
    """Budget version with its items."""

    id: int
    work_order_id: int
    number: int
    is_current: bool
    editable: bool
    subtotal: Decimal
    total: Decimal
    notes: str | None = None
    document_file_id: int | None = None
    created_at: datetime
    items: list[LineItemResponse] = Field(default_factory=list)


class VersionSummaryResponse(BaseModel):
    """One version in a version list."""

    id: int
    number: int
    is_current: bool
    subtotal: Decimal
    total: Decimal
    item_count: int
    notes: str | None = None
    document_file_id: int | None = None
    created_at: datetime


class WorkOrderResponse(BaseModel):
    """Work order aggregate snapshot."""

    id: int
    code: str
    kind: str
    execution_mode: str
    status: str
    title: str
    description: str | None = None
    client_id: int
    site_id: int | None = None
    ticket_id: int | None = None
    request_date: date
    estimated_start_date: date | None = None
    estimated_end_date: date | None = None
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None
    payment_terms: str | None = None
    validity_days: int
    budgeted_amount: Decimal
    spent_amount: Decimal
    invoice_number: str | None = None
    invoice_date: datetime | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime
    allowed_next_statuses: list[str] = Field(default_factory=list)
    current_version: BudgetVersionResponse | None = None
    versions: list[VersionSummaryResponse] = Field(default_factory=list)


class WorkOrdersListResponse(PaginatedResponse):
    """Paginated list of work orders."""

    items: list[WorkOrderResponse]


class StatusHistoryResponse(BaseModel):
    """One accepted status transition."""

    id: int
    from_status: str
    to_status: str
    actor_id: int | None = None
    note: str | None = None
    created_at: datetime


class CommentCreateRequest(BaseModel):
    """Request to post a comment."""

    body: str = Field(..., min_length=1, max_length=5000, description="Comment text")


class CommentResponse(BaseModel):
    """Comment on a work order."""

    id: int
    work_order_id: int
    author_id: int | None = None
    body: str
    created_at: datetime


class WorkOrderFileResponse(BaseModel):
    """File attached to a work order."""

    id: int
    work_order_id: int
    kind: str
    original_name: str
    storage_key: str
    mime_type: str
    size_bytes: int
    url: str | None = None
    created_at: datetime


# ============================================================================
# Budget Schemas
# ============================================================================


class CreateVersionRequest(BaseModel):
    """Request to create the next budget version."""

    notes: str | None = Field(default=None, max_length=2000)


class LineItemCreateRequest(BaseModel):
    """Request to add a line item.

    Description, unit and prices may be omitted when `material_id` is
    set; they are copied from the catalog.
    """

    kind: LineItemKind
    description: str | None = Field(default=None, max_length=2000)
    quantity: Decimal = Field(..., description="Must be greater than zero")
    unit: str | None = Field(default=None, max_length=20)
    unit_cost: Decimal | None = None
    unit_price: Decimal | None = None
    material_id: int | None = None
    position: int | None = Field(default=None, description="Defaults to last")


class LineItemUpdateRequest(BaseModel):
    """Partial update of a line item. Only sent fields are changed."""

    model_config = ConfigDict(extra="forbid")

    kind: LineItemKind | None = None
    description: str | None = Field(default=None, max_length=2000)
    quantity: Decimal | None = None
    unit: str | None = Field(default=None, max_length=20)
    unit_cost: Decimal | None = None
    unit_price: Decimal | None = None
    position: int | None = None


class ItemPosition(BaseModel):
    """New display position for one item."""

    id: int
    position: int


class ReorderItemsRequest(BaseModel):
    """Positions to assign, all within the same version."""

    items: list[ItemPosition] = Field(..., min_length=1)


class BudgetDocumentResponse(BaseModel):
    """Generated budget document."""

    file: WorkOrderFileResponse
    version_id: int
    version_number: int
    status_before: str
    status_after: str


# ============================================================================
# Catalog Schemas
# ============================================================================


class MaterialResponse(BaseModel):
    """Catalog material with its current prices."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str | None = None
    unit: str
    cost_price: Decimal
    sale_price: Decimal
    updated_at: datetime


class MaterialsListResponse(PaginatedResponse):
    """Paginated list of catalog materials."""

    items: list[MaterialResponse]
