"""Budget API endpoints.

Provides endpoints for budget versions, line items and budget
documents of a work order.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from obras.api.dependencies import ActorDep, DocumentServiceDep, LedgerDep, VersionStoreDep
from obras.api.schemas import (
    BudgetDocumentResponse,
    BudgetVersionResponse,
    CreateVersionRequest,
    ErrorResponse,
    LineItemCreateRequest,
    LineItemResponse,
    LineItemUpdateRequest,
    ReorderItemsRequest,
    VersionSummaryResponse,
)
from obras.application.dtos import LineItemData

router = APIRouter(prefix="/work-orders/{work_order_id}/budget", tags=["Budgets"])

NOT_FOUND_OR_CONFLICT = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


# ============================================================================
# Versions
# ============================================================================


@router.get(
    "",
    response_model=BudgetVersionResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get budget version",
)
async def get_budget(
    work_order_id: int,
    store: VersionStoreDep,
    version_id: Annotated[int | None, Query(description="Defaults to the current version")] = None,
) -> BudgetVersionResponse:
    """Get a budget version with its items.

    Without `version_id` the current version is returned, creating an
    empty version 1 on first access.
    """
    snapshot = await store.get_version(work_order_id, version_id)
    return BudgetVersionResponse.model_validate(asdict(snapshot))


@router.get(
    "/versions",
    response_model=list[VersionSummaryResponse],
    responses={404: {"model": ErrorResponse}},
    summary="List budget versions",
)
async def list_versions(work_order_id: int, store: VersionStoreDep) -> list[VersionSummaryResponse]:
    """All versions, newest first, with item counts."""
    versions = await store.list_versions(work_order_id)
    return [VersionSummaryResponse.model_validate(asdict(v)) for v in versions]


@router.post(
    "/versions",
    response_model=BudgetVersionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND_OR_CONFLICT,
    summary="Create next budget version",
)
async def create_version(
    work_order_id: int,
    store: VersionStoreDep,
    request: CreateVersionRequest | None = None,
) -> BudgetVersionResponse:
    """Create a new current version copying the items of the current one."""
    snapshot = await store.create_next_version(
        work_order_id,
        notes=request.notes if request else None,
    )
    return BudgetVersionResponse.model_validate(asdict(snapshot))


@router.post(
    "/versions/{version_id}/current",
    response_model=BudgetVersionResponse,
    responses=NOT_FOUND_OR_CONFLICT,
    summary="Make a version current",
)
async def switch_current(
    work_order_id: int,
    version_id: int,
    store: VersionStoreDep,
) -> BudgetVersionResponse:
    """Make an existing version current; the budgeted amount follows it."""
    snapshot = await store.switch_current(work_order_id, version_id)
    return BudgetVersionResponse.model_validate(asdict(snapshot))


# ============================================================================
# Line Items
# ============================================================================


@router.post(
    "/items",
    response_model=LineItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND_OR_CONFLICT,
    summary="Add line item",
)
async def add_item(
    work_order_id: int,
    request: LineItemCreateRequest,
    store: VersionStoreDep,
    ledger: LedgerDep,
    version_id: Annotated[int | None, Query(description="Defaults to the current version")] = None,
) -> LineItemResponse:
    """Add an item to the current version (or to `version_id`, which must be current)."""
    if version_id is None:
        version = await store.get_current_or_create(work_order_id)
    else:
        version = await store.get_owned_version(work_order_id, version_id)

    item = await ledger.add_item(
        version.id,
        LineItemData(**request.model_dump()),
        work_order_id=work_order_id,
    )
    return LineItemResponse.model_validate(asdict(item))


@router.put(
    "/items/order",
    response_model=list[LineItemResponse],
    responses=NOT_FOUND_OR_CONFLICT,
    summary="Reorder line items",
)
async def reorder_items(
    work_order_id: int,
    request: ReorderItemsRequest,
    store: VersionStoreDep,
    ledger: LedgerDep,
) -> list[LineItemResponse]:
    """Assign display positions to items of the current version."""
    version = await store.get_current_or_create(work_order_id)
    items = await ledger.reorder_items(
        version.id,
        [(entry.id, entry.position) for entry in request.items],
        work_order_id=work_order_id,
    )
    return [LineItemResponse.model_validate(asdict(i)) for i in items]


@router.patch(
    "/items/{item_id}",
    response_model=LineItemResponse,
    responses=NOT_FOUND_OR_CONFLICT,
    summary="Update line item",
)
async def update_item(
    work_order_id: int,
    item_id: int,
    request: LineItemUpdateRequest,
    ledger: LedgerDep,
) -> LineItemResponse:
    """Update the fields sent in the body; the subtotal is recomputed."""
    item = await ledger.update_item(
        item_id,
        request.model_dump(exclude_unset=True),
        work_order_id=work_order_id,
    )
    return LineItemResponse.model_validate(asdict(item))


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND_OR_CONFLICT,
    summary="Delete line item",
)
async def delete_item(work_order_id: int, item_id: int, ledger: LedgerDep) -> Response:
    """Remove a line item from the current version."""
    await ledger.delete_item(item_id, work_order_id=work_order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Documents
# ============================================================================


@router.post(
    "/document",
    response_model=BudgetDocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND_OR_CONFLICT, 502: {"model": ErrorResponse}},
    summary="Generate budget document",
)
async def generate_document(
    work_order_id: int,
    service: DocumentServiceDep,
    actor_id: ActorDep,
    version_id: Annotated[int | None, Query(description="Defaults to the current version")] = None,
) -> BudgetDocumentResponse:
    """Render and store the budget PDF.

    For the current budget of a DRAFT work order with at least one
    priced item, the work order also moves to BUDGETED.
    """
    result = await service.generate(work_order_id, version_id=version_id, actor_id=actor_id)
    return BudgetDocumentResponse(
        file=asdict(result.file),
        version_id=result.version_id,
        version_number=result.version_number,
        status_before=result.status_before,
        status_after=result.status_after,
    )
