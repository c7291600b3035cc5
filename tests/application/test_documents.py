"""Tests for budget document generation."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from factories import SITE_ID, advance, labor_item, work_order_data
from obras.application import BudgetDocumentService
from obras.application.documents import budget_file_name, build_projection
from obras.domain import VersionNotFoundError
from obras.infrastructure.document_client import DocumentServiceError


class TestGenerate:
    """Tests for BudgetDocumentService.generate."""

    @pytest.mark.asyncio
    async def test_draft_with_priced_budget_advances(
        self, service, ledger, documents, storage, work_order
    ) -> None:
        await ledger.add_item(work_order.current_version.id, labor_item())

        result = await documents.generate(work_order.id, actor_id=9)

        assert result.advanced
        assert result.status_before == "DRAFT"
        assert result.status_after == "BUDGETED"
        assert result.version_number == 1
        assert result.file.kind == "BUDGET_PDF"
        assert result.file.original_name == "Budget_OBR-00001_v1.pdf"
        assert result.file.mime_type == "application/pdf"
        assert result.file.storage_key == f"work-orders/{work_order.id}/Budget_OBR-00001_v1.pdf"
        assert storage.uploads[0]["content"] == b"%PDF-1.4 budget"

        history = await service.list_status_history(work_order.id)
        assert history[0].to_status == "BUDGETED"
        assert history[0].actor_id == 9

        snapshot = await service.get_work_order(work_order.id)
        assert snapshot.current_version.document_file_id == result.file.id
        assert [f.id for f in await service.list_files(work_order.id)] == [result.file.id]

    @pytest.mark.asyncio
    async def test_empty_budget_does_not_advance(self, service, documents, work_order) -> None:
        result = await documents.generate(work_order.id)

        assert not result.advanced
        assert result.status_after == "DRAFT"
        assert await service.list_status_history(work_order.id) == []
        assert len(await service.list_files(work_order.id)) == 1

    @pytest.mark.asyncio
    async def test_past_version_does_not_advance(self, store, ledger, documents, work_order) -> None:
        v1 = work_order.current_version
        await ledger.add_item(v1.id, labor_item())
        await store.create_next_version(work_order.id)

        result = await documents.generate(work_order.id, version_id=v1.id)

        assert result.version_number == 1
        assert result.status_after == "DRAFT"

    @pytest.mark.asyncio
    async def test_already_budgeted_stays(self, service, ledger, documents, work_order) -> None:
        await ledger.add_item(work_order.current_version.id, labor_item())
        await advance(service, work_order.id, "BUDGETED")

        result = await documents.generate(work_order.id)

        assert result.status_before == "BUDGETED"
        assert result.status_after == "BUDGETED"
        assert len(await service.list_status_history(work_order.id)) == 1

    @pytest.mark.asyncio
    async def test_direct_execution_never_advances(self, documents, direct_work_order) -> None:
        result = await documents.generate(direct_work_order.id)

        assert result.status_after == "DRAFT"
        assert result.version_number == 1

    @pytest.mark.asyncio
    async def test_projection_sent_to_renderer(self, service, ledger, documents, renderer) -> None:
        snapshot = await service.create_work_order(
            work_order_data(site_id=SITE_ID, payment_terms="50% upfront")
        )
        await ledger.add_item(
            snapshot.current_version.id, labor_item(quantity="1.5", unit_price="19.99")
        )

        await documents.generate(snapshot.id)

        projection = renderer.projections[0]
        assert projection["code"] == snapshot.code
        assert projection["client_name"] == "Supermercados Norte"
        assert projection["site_name"] == "Sucursal 12"
        assert projection["payment_terms"] == "50% upfront"
        assert projection["items"][0]["quantity"] == "1.5"
        assert projection["items"][0]["subtotal"] == "29.99"
        assert projection["total"] == "29.99"

    @pytest.mark.asyncio
    async def test_renderer_failure_propagates(
        self, session, service, ledger, failing_renderer, storage, work_order
    ) -> None:
        await ledger.add_item(work_order.current_version.id, labor_item())
        documents = BudgetDocumentService(session, failing_renderer, storage)

        with pytest.raises(DocumentServiceError):
            await documents.generate(work_order.id)

        assert storage.uploads == []
        assert await service.list_files(work_order.id) == []
        assert (await service.get_work_order(work_order.id)).status == "DRAFT"

    @pytest.mark.asyncio
    async def test_unknown_version(self, documents, work_order) -> None:
        with pytest.raises(VersionNotFoundError):
            await documents.generate(work_order.id, version_id=999)


class TestProjectionHelpers:
    """Tests for pure helpers."""

    def test_budget_file_name(self) -> None:
        assert budget_file_name("OBR-00042", 3) == "Budget_OBR-00042_v3.pdf"

    def test_build_projection_formats_amounts(self) -> None:
        work_order = SimpleNamespace(
            code="OBR-00001", title="Roof", validity_days=15, payment_terms=None
        )
        version = SimpleNamespace(number=2, subtotal=Decimal("100"), total=Decimal("100"))
        item = SimpleNamespace(
            position=1,
            kind="LABOR",
            description="Roofer",
            quantity=Decimal("2.000"),
            unit="h",
            unit_price=Decimal("50"),
            subtotal=Decimal("100"),
        )

        projection = build_projection(
            work_order, version, [item], "ACME", None, issued_on=date(2026, 5, 1)
        )

        assert projection["date"] == "2026-05-01"
        assert projection["version_number"] == 2
        assert projection["items"][0]["quantity"] == "2"
        assert projection["items"][0]["unit_price"] == "50.00"
        assert projection["total"] == "100.00"
