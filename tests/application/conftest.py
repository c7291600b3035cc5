"""Fixtures for application service tests."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from factories import work_order_data
from obras.application import (
    AttachmentService,
    BudgetDocumentService,
    BudgetVersionStore,
    CommentService,
    LineItemLedger,
    WorkOrderService,
)
from obras.domain import ExecutionMode


@pytest.fixture
def service(session: AsyncSession) -> WorkOrderService:
    return WorkOrderService(session, request_id="test-request")


@pytest.fixture
def store(session: AsyncSession) -> BudgetVersionStore:
    return BudgetVersionStore(session, request_id="test-request")


@pytest.fixture
def ledger(session: AsyncSession) -> LineItemLedger:
    return LineItemLedger(session, request_id="test-request")


@pytest.fixture
def documents(session: AsyncSession, renderer, storage) -> BudgetDocumentService:
    return BudgetDocumentService(session, renderer, storage, request_id="test-request")


@pytest.fixture
def comments(session: AsyncSession) -> CommentService:
    return CommentService(session, request_id="test-request")


@pytest.fixture
def attachments(session: AsyncSession, storage) -> AttachmentService:
    return AttachmentService(session, storage, request_id="test-request")


@pytest.fixture
async def work_order(service: WorkOrderService):
    """A DRAFT WITH_BUDGET work order with its empty version 1."""
    return await service.create_work_order(work_order_data(), actor_id=7)


@pytest.fixture
async def direct_work_order(service: WorkOrderService):
    """A DRAFT DIRECT_EXECUTION work order."""
    return await service.create_work_order(
        work_order_data(execution_mode=ExecutionMode.DIRECT_EXECUTION, title="Emergency fix"),
        actor_id=7,
    )
