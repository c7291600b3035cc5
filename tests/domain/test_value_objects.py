"""Tests for domain value objects."""

from decimal import Decimal

import pytest

from obras.domain import (
    InvalidQuantityOrPriceError,
    Money,
    Quantity,
    WorkOrderCode,
    line_subtotal,
    sum_money,
    unit_amount,
)


class TestMoney:
    """Tests for Money value object."""

    def test_rounds_half_up_to_cents(self) -> None:
        assert Money.of("10.005").amount == Decimal("10.01")
        assert Money.of("10.004").amount == Decimal("10.00")

    def test_float_input_uses_shortest_repr(self) -> None:
        assert Money.of(0.1) + Money.of(0.2) == Money.of("0.30")

    def test_zero(self) -> None:
        assert Money.zero().is_zero()
        assert str(Money.zero()) == "0.00"

    def test_multiply_by_quantity_rounds_product(self) -> None:
        assert Money.of("0.01") * Quantity.of("0.5") == Money.of("0.01")
        assert Money.of("10") * Quantity.of("0.333") == Money.of("3.33")
        assert Quantity.of(3) * Money.of("33.34") == Money.of("100.02")

    def test_immutable(self) -> None:
        money = Money.of("1")
        with pytest.raises(AttributeError):
            money.amount = Decimal("2")  # type: ignore[misc]

    def test_rejects_non_numbers(self) -> None:
        with pytest.raises(InvalidQuantityOrPriceError):
            Money.of("abc")
        with pytest.raises(InvalidQuantityOrPriceError):
            Money.of("NaN")

    def test_rejects_booleans(self) -> None:
        with pytest.raises(InvalidQuantityOrPriceError):
            Money.of(True)


class TestQuantity:
    """Tests for Quantity value object."""

    def test_keeps_three_decimals(self) -> None:
        assert Quantity.of("1.2345").value == Decimal("1.235")

    @pytest.mark.parametrize("value", ["0", "-1", 0, -0.5, "0.0004"])
    def test_must_be_positive(self, value) -> None:
        with pytest.raises(InvalidQuantityOrPriceError) as exc_info:
            Quantity.of(value)
        assert exc_info.value.details["field"] == "quantity"

    def test_smallest_positive_after_rounding(self) -> None:
        assert Quantity.of("0.0005").value == Decimal("0.001")

    def test_str_drops_trailing_zeros(self) -> None:
        assert str(Quantity.of("2.500")) == "2.5"


class TestArithmetic:
    """Tests for subtotal and sum helpers."""

    def test_line_subtotal(self) -> None:
        assert line_subtotal(Quantity.of("2"), Money.of("100")) == Money.of("200")
        assert line_subtotal(Quantity.of("1.5"), Money.of("19.99")) == Money.of("29.99")

    def test_sum_money_empty_is_zero(self) -> None:
        assert sum_money([]) == Money.zero()

    def test_sum_money(self) -> None:
        assert sum_money([Money.of("0.10")] * 10) == Money.of("1.00")

    def test_unit_amount_allows_zero(self) -> None:
        assert unit_amount("0", "unit_price").is_zero()

    def test_unit_amount_rejects_negative(self) -> None:
        with pytest.raises(InvalidQuantityOrPriceError) as exc_info:
            unit_amount("-0.01", "unit_cost")
        assert exc_info.value.details["field"] == "unit_cost"


class TestWorkOrderCode:
    """Tests for WorkOrderCode value object."""

    def test_format(self) -> None:
        assert str(WorkOrderCode(prefix="OBR", number=42)) == "OBR-00042"

    def test_first_and_next(self) -> None:
        first = WorkOrderCode.first("OBR")
        assert str(first) == "OBR-00001"
        assert str(first.next()) == "OBR-00002"

    def test_parse_round_trip(self) -> None:
        code = WorkOrderCode.parse("OBR-00099")
        assert code is not None
        assert code.number == 99
        assert str(code.next()) == "OBR-00100"

    @pytest.mark.parametrize("value", ["OBR", "OBR-", "-0001", "OBR-12a"])
    def test_parse_invalid(self, value) -> None:
        assert WorkOrderCode.parse(value) is None

    def test_number_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            WorkOrderCode(prefix="OBR", number=0)
