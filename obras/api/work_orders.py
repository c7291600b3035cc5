"""Work order API endpoints.

Provides endpoints for creating, updating, listing and transitioning
work orders, plus their status history, comments and attached files.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Query, Request, Response, status

from obras.api.dependencies import (
    ActorDep,
    AttachmentServiceDep,
    CommentServiceDep,
    WorkOrderServiceDep,
)
from obras.api.schemas import (
    CommentCreateRequest,
    CommentResponse,
    ErrorResponse,
    StatusHistoryResponse,
    TransitionRequest,
    WorkOrderCreateRequest,
    WorkOrderFileResponse,
    WorkOrderResponse,
    WorkOrdersListResponse,
    WorkOrderUpdateRequest,
)
from obras.application.dtos import WorkOrderCreateData, WorkOrderFilter, WorkOrderSnapshot
from obras.catalog import PaginationParams
from obras.domain import FileKind, WorkOrderKind, WorkOrderStatus

router = APIRouter(prefix="/work-orders", tags=["Work Orders"])


def to_response(snapshot: WorkOrderSnapshot) -> WorkOrderResponse:
    """Convert a work order snapshot to its response schema."""
    return WorkOrderResponse.model_validate(asdict(snapshot))


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=WorkOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Create work order",
)
async def create_work_order(
    request: WorkOrderCreateRequest,
    service: WorkOrderServiceDep,
    actor_id: ActorDep,
) -> WorkOrderResponse:
    """Create a work order in DRAFT.

    Work orders with execution mode WITH_BUDGET start with an empty
    current budget version 1.
    """
    snapshot = await service.create_work_order(
        WorkOrderCreateData(**request.model_dump()),
        actor_id=actor_id,
    )
    return to_response(snapshot)


@router.get(
    "",
    response_model=WorkOrdersListResponse,
    summary="List work orders",
)
async def list_work_orders(
    service: WorkOrderServiceDep,
    search: Annotated[str | None, Query(description="Code or title fragment")] = None,
    status_filter: Annotated[WorkOrderStatus | None, Query(alias="status")] = None,
    kind: Annotated[WorkOrderKind | None, Query()] = None,
    client_id: Annotated[int | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> WorkOrdersListResponse:
    """List work orders, newest first."""
    result = await service.list_work_orders(
        WorkOrderFilter(
            search=search,
            status=status_filter.value if status_filter else None,
            kind=kind.value if kind else None,
            client_id=client_id,
        ),
        PaginationParams(page=page, page_size=page_size),
    )
    return WorkOrdersListResponse(
        items=[to_response(s) for s in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        has_more=result.has_next,
    )


@router.get(
    "/{work_order_id}",
    response_model=WorkOrderResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get work order",
)
async def get_work_order(work_order_id: int, service: WorkOrderServiceDep) -> WorkOrderResponse:
    """Get a work order with its current budget and version list."""
    return to_response(await service.get_work_order(work_order_id))


@router.patch(
    "/{work_order_id}",
    response_model=WorkOrderResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Update work order",
)
async def update_work_order(
    work_order_id: int,
    request: WorkOrderUpdateRequest,
    service: WorkOrderServiceDep,
    actor_id: ActorDep,
) -> WorkOrderResponse:
    """Update the fields sent in the body. Invoiced work orders are locked."""
    snapshot = await service.update_work_order(
        work_order_id,
        request.model_dump(exclude_unset=True),
        actor_id=actor_id,
    )
    return to_response(snapshot)


@router.delete(
    "/{work_order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Delete work order",
)
async def delete_work_order(
    work_order_id: int,
    service: WorkOrderServiceDep,
    actor_id: ActorDep,
) -> Response:
    """Delete a DRAFT work order with its budget versions, history and files."""
    await service.delete_work_order(work_order_id, actor_id=actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{work_order_id}/status",
    response_model=WorkOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Change work order status",
)
async def request_transition(
    work_order_id: int,
    request: TransitionRequest,
    service: WorkOrderServiceDep,
    actor_id: ActorDep,
) -> WorkOrderResponse:
    """Move the work order to a new status.

    Illegal targets fail with 409 ILLEGAL_TRANSITION and list the
    allowed statuses in `details.allowed_transitions`.
    """
    snapshot = await service.request_transition(
        work_order_id,
        request.status,
        actor_id=actor_id,
        note=request.note,
    )
    return to_response(snapshot)


@router.get(
    "/{work_order_id}/history",
    response_model=list[StatusHistoryResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Get status history",
)
async def list_status_history(
    work_order_id: int,
    service: WorkOrderServiceDep,
) -> list[StatusHistoryResponse]:
    """Accepted transitions, newest first."""
    entries = await service.list_status_history(work_order_id)
    return [StatusHistoryResponse.model_validate(asdict(e)) for e in entries]


@router.get(
    "/{work_order_id}/files",
    response_model=list[WorkOrderFileResponse],
    responses={404: {"model": ErrorResponse}},
    summary="List attached files",
)
async def list_files(
    work_order_id: int,
    service: WorkOrderServiceDep,
) -> list[WorkOrderFileResponse]:
    """Files attached to the work order, newest first."""
    files = await service.list_files(work_order_id)
    return [WorkOrderFileResponse.model_validate(asdict(f)) for f in files]


@router.post(
    "/{work_order_id}/files",
    response_model=WorkOrderFileResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Upload a file",
)
async def upload_file(
    work_order_id: int,
    request: Request,
    service: AttachmentServiceDep,
    file_name: Annotated[str, Query(min_length=1, max_length=255)],
    kind: Annotated[FileKind, Query()] = FileKind.OTHER,
) -> WorkOrderFileResponse:
    """Attach a file sent as the raw request body.

    The MIME type is taken from the Content-Type header. Images, PDF and
    Office documents up to the configured size limit are accepted.
    """
    mime_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    content = await request.body()
    file = await service.upload_file(
        work_order_id,
        file_name,
        content,
        mime_type,
        kind=kind.value,
    )
    return WorkOrderFileResponse.model_validate(asdict(file))


@router.delete(
    "/{work_order_id}/files/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Delete a file",
)
async def delete_file(
    work_order_id: int,
    file_id: int,
    service: AttachmentServiceDep,
) -> Response:
    """Delete the file record and its stored object."""
    await service.delete_file(work_order_id, file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{work_order_id}/comments",
    response_model=list[CommentResponse],
    responses={404: {"model": ErrorResponse}},
    summary="List comments",
)
async def list_comments(
    work_order_id: int,
    service: CommentServiceDep,
) -> list[CommentResponse]:
    """Comments on the work order, newest first."""
    comments = await service.list_comments(work_order_id)
    return [CommentResponse.model_validate(asdict(c)) for c in comments]


@router.post(
    "/{work_order_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Add a comment",
)
async def add_comment(
    work_order_id: int,
    request: CommentCreateRequest,
    service: CommentServiceDep,
    actor_id: ActorDep,
) -> CommentResponse:
    """Post a comment as the acting user."""
    comment = await service.add_comment(work_order_id, request.body, author_id=actor_id)
    return CommentResponse.model_validate(asdict(comment))


@router.delete(
    "/{work_order_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a comment",
)
async def delete_comment(
    work_order_id: int,
    comment_id: int,
    service: CommentServiceDep,
) -> Response:
    await service.delete_comment(work_order_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
