"""Tests for the budget version store."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from factories import MISSING_ID, advance, labor_item, work_order_data
from obras.domain import (
    ConcurrentVersionConflictError,
    NotOwnedByWorkOrderError,
    VersionNotFoundError,
    WorkOrderNotEditableError,
    WorkOrderNotFoundError,
)
from obras.infrastructure.models import BudgetVersionModel


async def current_count(session, work_order_id: int) -> int:
    result = await session.execute(
        select(func.count(BudgetVersionModel.id)).where(
            BudgetVersionModel.work_order_id == work_order_id,
            BudgetVersionModel.is_current.is_(True),
        )
    )
    return result.scalar_one()


class TestLazyCreation:
    """Tests for get-current-or-create."""

    @pytest.mark.asyncio
    async def test_creates_version_one_once(self, store, direct_work_order) -> None:
        first = await store.get_current_or_create(direct_work_order.id)
        second = await store.get_current_or_create(direct_work_order.id)

        assert first.id == second.id
        assert first.number == 1
        assert first.is_current
        assert await store.versions.count(direct_work_order.id) == 1

    @pytest.mark.asyncio
    async def test_returns_existing_current(self, store, work_order) -> None:
        current = await store.get_current_or_create(work_order.id)
        assert current.id == work_order.current_version.id

    @pytest.mark.asyncio
    async def test_get_version_defaults_to_current(self, store, direct_work_order) -> None:
        snapshot = await store.get_version(direct_work_order.id)

        assert snapshot.number == 1
        assert snapshot.editable
        assert snapshot.total == Decimal("0")

    @pytest.mark.asyncio
    async def test_versions_without_current_is_a_conflict(self, store, work_order) -> None:
        await store.versions.clear_current(work_order.id)

        with pytest.raises(ConcurrentVersionConflictError):
            await store.get_current_or_create(work_order.id)

    @pytest.mark.asyncio
    async def test_missing_work_order(self, store) -> None:
        with pytest.raises(WorkOrderNotFoundError):
            await store.get_version(MISSING_ID)


class TestCreateNextVersion:
    """Tests for creating a new version from the current one."""

    @pytest.mark.asyncio
    async def test_copies_items_and_totals(self, session, store, ledger, work_order) -> None:
        v1 = work_order.current_version
        first = await ledger.add_item(v1.id, labor_item())
        await ledger.add_item(v1.id, labor_item(quantity="1.5", unit_price="19.99", description="Primer"))

        v2 = await store.create_next_version(work_order.id, notes="Client asked for primer")

        assert v2.number == 2
        assert v2.is_current
        assert v2.editable
        assert v2.notes == "Client asked for primer"
        assert v2.total == Decimal("229.99")
        assert [i.description for i in v2.items] == ["Painting", "Primer"]
        assert first.id not in {i.id for i in v2.items}
        assert all(i.version_id == v2.id for i in v2.items)
        assert await current_count(session, work_order.id) == 1

        old = await store.get_version(work_order.id, v1.id)
        assert not old.is_current
        assert not old.editable
        assert [i.id for i in old.items][0] == first.id
        assert old.total == Decimal("229.99")

    @pytest.mark.asyncio
    async def test_numbers_keep_increasing(self, store, work_order) -> None:
        await store.create_next_version(work_order.id)
        await store.switch_current(work_order.id, work_order.current_version.id)

        v3 = await store.create_next_version(work_order.id)

        assert v3.number == 3
        summaries = await store.list_versions(work_order.id)
        assert [s.number for s in summaries] == [3, 2, 1]
        assert [s.is_current for s in summaries] == [True, False, False]

    @pytest.mark.asyncio
    async def test_copy_is_independent(self, store, ledger, work_order) -> None:
        v1 = work_order.current_version
        original = await ledger.add_item(v1.id, labor_item())
        v2 = await store.create_next_version(work_order.id)

        await ledger.update_item(v2.items[0].id, {"quantity": "10"})

        old = await store.get_version(work_order.id, v1.id)
        assert old.items[0].id == original.id
        assert old.items[0].quantity == Decimal("2")
        assert old.total == Decimal("200")

    @pytest.mark.asyncio
    async def test_first_version_for_direct_execution(self, store, direct_work_order) -> None:
        v1 = await store.create_next_version(direct_work_order.id)
        assert v1.number == 1
        assert v1.items == []

    @pytest.mark.asyncio
    async def test_invoiced_work_order(self, service, store, direct_work_order) -> None:
        await advance(service, direct_work_order.id, "IN_PROGRESS", "DONE", "INVOICED")

        with pytest.raises(WorkOrderNotEditableError):
            await store.create_next_version(direct_work_order.id)


class TestSwitchCurrent:
    """Tests for switching the current version."""

    @pytest.mark.asyncio
    async def test_budgeted_amount_follows_current(self, service, store, ledger, work_order) -> None:
        v1 = work_order.current_version
        await ledger.add_item(v1.id, labor_item())
        v2 = await store.create_next_version(work_order.id)
        await ledger.add_item(v2.id, labor_item(quantity="1", unit_price="50", description="Cleanup"))

        assert (await service.get_work_order(work_order.id)).budgeted_amount == Decimal("250")

        switched = await store.switch_current(work_order.id, v1.id)

        assert switched.is_current
        snapshot = await service.get_work_order(work_order.id)
        assert snapshot.budgeted_amount == Decimal("200")
        assert snapshot.current_version.id == v1.id

    @pytest.mark.asyncio
    async def test_switch_to_current_is_a_no_op(self, session, store, work_order) -> None:
        v1 = work_order.current_version
        snapshot = await store.switch_current(work_order.id, v1.id)

        assert snapshot.id == v1.id
        assert await current_count(session, work_order.id) == 1

    @pytest.mark.asyncio
    async def test_unknown_version(self, store, work_order) -> None:
        with pytest.raises(VersionNotFoundError):
            await store.switch_current(work_order.id, MISSING_ID)

    @pytest.mark.asyncio
    async def test_version_of_another_work_order(self, service, store, work_order) -> None:
        other = await service.create_work_order(work_order_data(title="Other"))

        with pytest.raises(NotOwnedByWorkOrderError):
            await store.switch_current(work_order.id, other.current_version.id)
        with pytest.raises(NotOwnedByWorkOrderError):
            await store.get_version(work_order.id, other.current_version.id)


class TestDatabaseInvariants:
    """The schema itself rejects duplicate numbers and a second current version."""

    @pytest.mark.asyncio
    async def test_duplicate_number_rejected(self, session, work_order) -> None:
        session.add(BudgetVersionModel(work_order_id=work_order.id, number=1, is_current=False))
        with pytest.raises(IntegrityError):
            await session.flush()

    @pytest.mark.asyncio
    async def test_second_current_rejected(self, session, work_order) -> None:
        session.add(BudgetVersionModel(work_order_id=work_order.id, number=2, is_current=True))
        with pytest.raises(IntegrityError):
            await session.flush()
