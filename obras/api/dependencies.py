"""FastAPI dependencies.

Services are built per request on top of the request's database
session, so everything a request does commits or rolls back together.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from obras.application import (
    AttachmentService,
    BudgetDocumentService,
    BudgetVersionStore,
    CommentService,
    LineItemLedger,
    WorkOrderService,
)
from obras.catalog import CatalogService
from obras.infrastructure.database import get_session
from obras.infrastructure.document_client import (
    BinaryStorage,
    DocumentRenderer,
    get_binary_storage,
    get_document_renderer,
)

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_request_id(request: Request) -> str | None:
    """Request ID set by the request-id middleware."""
    return getattr(request.state, "request_id", None)


RequestIdDep = Annotated[str | None, Depends(get_request_id)]


def get_actor_id(
    x_actor_id: Annotated[int | None, Header(description="Acting user ID")] = None,
) -> int | None:
    """Acting user, as asserted by the authentication layer."""
    return x_actor_id


ActorDep = Annotated[int | None, Depends(get_actor_id)]


def get_work_order_service(session: SessionDep, request_id: RequestIdDep) -> WorkOrderService:
    return WorkOrderService(session, request_id=request_id)


def get_version_store(session: SessionDep, request_id: RequestIdDep) -> BudgetVersionStore:
    return BudgetVersionStore(session, request_id=request_id)


def get_ledger(session: SessionDep, request_id: RequestIdDep) -> LineItemLedger:
    return LineItemLedger(session, request_id=request_id)


async def get_renderer(request_id: RequestIdDep) -> AsyncGenerator[DocumentRenderer, None]:
    """Renderer client, closed after the request."""
    renderer = get_document_renderer(request_id)
    try:
        yield renderer
    finally:
        await renderer.close()


async def get_storage(request_id: RequestIdDep) -> AsyncGenerator[BinaryStorage, None]:
    """Storage client, closed after the request."""
    storage = get_binary_storage(request_id)
    try:
        yield storage
    finally:
        await storage.close()


def get_document_service(
    session: SessionDep,
    request_id: RequestIdDep,
    renderer: Annotated[DocumentRenderer, Depends(get_renderer)],
    storage: Annotated[BinaryStorage, Depends(get_storage)],
) -> BudgetDocumentService:
    return BudgetDocumentService(session, renderer, storage, request_id=request_id)


def get_comment_service(session: SessionDep, request_id: RequestIdDep) -> CommentService:
    return CommentService(session, request_id=request_id)


def get_attachment_service(
    session: SessionDep,
    request_id: RequestIdDep,
    storage: Annotated[BinaryStorage, Depends(get_storage)],
) -> AttachmentService:
    return AttachmentService(session, storage, request_id=request_id)


def get_catalog_service(session: SessionDep) -> CatalogService:
    return CatalogService(session)


WorkOrderServiceDep = Annotated[WorkOrderService, Depends(get_work_order_service)]
VersionStoreDep = Annotated[BudgetVersionStore, Depends(get_version_store)]
LedgerDep = Annotated[LineItemLedger, Depends(get_ledger)]
DocumentServiceDep = Annotated[BudgetDocumentService, Depends(get_document_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
AttachmentServiceDep = Annotated[AttachmentService, Depends(get_attachment_service)]
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
