"""Test data builders and collaborator fakes."""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from obras.application.dtos import LineItemData, WorkOrderCreateData
from obras.catalog.models import MaterialModel
from obras.domain import ExecutionMode, LineItemKind, WorkOrderKind, WorkOrderStatus
from obras.infrastructure.database import Base
from obras.infrastructure.document_client import DocumentServiceError, StoredObject
from obras.infrastructure.models import ClientModel, SiteModel, TicketModel

# Reference data ids used across the suite
CLIENT_ID = 1
OTHER_CLIENT_ID = 2
SITE_ID = 1
TICKET_ID = 1
OTHER_TICKET_ID = 2
MATERIAL_ID = 1
MISSING_ID = 999


async def prepare_database(engine: AsyncEngine) -> None:
    """Create all tables and insert the reference data."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with engine.begin() as conn:
        await conn.execute(
            ClientModel.__table__.insert(),
            [
                {"id": CLIENT_ID, "name": "Supermercados Norte"},
                {"id": OTHER_CLIENT_ID, "name": "Banco Central"},
            ],
        )
        await conn.execute(
            SiteModel.__table__.insert(),
            [{"id": SITE_ID, "client_id": CLIENT_ID, "name": "Sucursal 12", "address": "Av. Mitre 450"}],
        )
        await conn.execute(
            TicketModel.__table__.insert(),
            [
                {"id": TICKET_ID, "code": "TCK-100", "description": "Roof leak"},
                {"id": OTHER_TICKET_ID, "code": "TCK-101", "description": "Broken door"},
            ],
        )
        await conn.execute(
            MaterialModel.__table__.insert(),
            [
                {
                    "id": MATERIAL_ID,
                    "code": "CEM-50",
                    "name": "Cemento portland 50kg",
                    "unit": "u",
                    "cost_price": Decimal("7.80"),
                    "sale_price": Decimal("10.50"),
                },
            ],
        )


# ============================================================================
# Data Builders
# ============================================================================


def work_order_data(**overrides: Any) -> WorkOrderCreateData:
    """Create-work-order data with sensible defaults."""
    data: dict[str, Any] = {
        "kind": WorkOrderKind.MINOR_SERVICE,
        "title": "Repair storefront",
        "client_id": CLIENT_ID,
        "execution_mode": ExecutionMode.WITH_BUDGET,
        "request_date": date(2026, 3, 2),
    }
    data.update(overrides)
    return WorkOrderCreateData(**data)


def labor_item(quantity: str = "2", unit_price: str = "100", **overrides: Any) -> LineItemData:
    """Labor line item data."""
    data: dict[str, Any] = {
        "kind": LineItemKind.LABOR,
        "description": "Painting",
        "quantity": quantity,
        "unit": "h",
        "unit_cost": "60",
        "unit_price": unit_price,
    }
    data.update(overrides)
    return LineItemData(**data)


# ============================================================================
# Document Collaborator Fakes
# ============================================================================


class FakeRenderer:
    """Renderer that records projections and returns fixed bytes."""

    content = b"%PDF-1.4 budget"

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.projections: list[dict[str, Any]] = []

    async def render_budget(self, projection: dict[str, Any]) -> bytes:
        if self.fail:
            raise DocumentServiceError("renderer", "Renderer unavailable", 503)
        self.projections.append(projection)
        return self.content

    async def close(self) -> None:
        pass


class FakeStorage:
    """Storage that keeps uploads in memory."""

    def __init__(self) -> None:
        self.uploads: list[dict[str, Any]] = []
        self.deleted: list[str] = []

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        folder: str,
    ) -> StoredObject:
        key = f"{folder}/{filename}"
        self.uploads.append(
            {"filename": filename, "content": content, "content_type": content_type, "key": key}
        )
        return StoredObject(key=key, url=f"https://files.test/{key}", size=len(content))

    async def delete(self, key: str) -> None:
        self.deleted.append(key)

    async def close(self) -> None:
        pass


async def advance(service: Any, work_order_id: int, *statuses: str, actor_id: int = 7) -> Any:
    """Walk a work order through a sequence of statuses."""
    snapshot = None
    for status in statuses:
        snapshot = await service.request_transition(
            work_order_id, WorkOrderStatus(status), actor_id=actor_id
        )
    return snapshot
