"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. This module holds the decimal-safe money and
quantity arithmetic used for line-item subtotals and version totals,
plus the small enumerations that classify work orders and items.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Self

from obras.domain.base import ValueObject
from obras.domain.exceptions import InvalidQuantityOrPriceError

CENTS = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")


def to_decimal(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """Coerce a number to Decimal without binary float arithmetic.

    Floats go through their shortest string representation, so 0.1
    becomes Decimal('0.1') rather than 0.1000000000000000055...

    Raises:
        InvalidQuantityOrPriceError: If the value is not a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidQuantityOrPriceError(field, value, "not a number")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise InvalidQuantityOrPriceError(field, value, "not a number") from e
    if not result.is_finite():
        raise InvalidQuantityOrPriceError(field, value, "must be finite")
    return result


# ============================================================================
# Classification Enums
# ============================================================================


class WorkOrderKind(str, Enum):
    """Kind of job."""

    MAJOR_WORK = "MAJOR_WORK"
    MINOR_SERVICE = "MINOR_SERVICE"


class FileKind(str, Enum):
    """Kind of work order attachment."""

    BUDGET_PDF = "BUDGET_PDF"
    PHOTO = "PHOTO"
    DOCUMENT = "DOCUMENT"
    OTHER = "OTHER"


class LineItemKind(str, Enum):
    """Kind of budget line."""

    MATERIAL = "MATERIAL"
    LABOR = "LABOR"
    THIRD_PARTY = "THIRD_PARTY"
    OTHER = "OTHER"


# ============================================================================
# Money Value Object
# ============================================================================


@dataclass(frozen=True)
class Money(ValueObject):
    """Monetary amount with two decimal places.

    Amounts are Decimal, quantized half-up to cents on construction.
    There is a single operating currency, so no currency code is carried.

    Attributes:
        amount: Decimal amount in major units.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        """Normalize to cents."""
        amount = to_decimal(self.amount)
        object.__setattr__(self, "amount", amount.quantize(CENTS, rounding=ROUND_HALF_UP))

    @classmethod
    def zero(cls) -> Self:
        """Create zero amount money."""
        return cls(amount=Decimal("0"))

    @classmethod
    def of(cls, value: Decimal | int | float | str) -> Self:
        """Create money from any numeric representation."""
        return cls(amount=to_decimal(value))

    def __add__(self, other: "Money") -> "Money":
        return Money(amount=self.amount + other.amount)

    def __sub__(self, other: "Money") -> "Money":
        return Money(amount=self.amount - other.amount)

    def __mul__(self, factor: "Quantity | Decimal | int") -> "Money":
        """Multiply by a quantity, rounding only the final product."""
        multiplier = factor.value if isinstance(factor, Quantity) else to_decimal(factor)
        return Money(amount=self.amount * multiplier)

    def __rmul__(self, factor: "Quantity | Decimal | int") -> "Money":
        return self.__mul__(factor)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"

    def is_zero(self) -> bool:
        """Check if amount is zero."""
        return self.amount == 0

    def is_negative(self) -> bool:
        """Check if amount is below zero."""
        return self.amount < 0


# ============================================================================
# Quantity Value Object
# ============================================================================


@dataclass(frozen=True)
class Quantity(ValueObject):
    """Strictly positive quantity with up to three decimal places."""

    value: Decimal

    def __post_init__(self) -> None:
        """Validate and normalize quantity."""
        value = to_decimal(self.value, field="quantity")
        rounded = value.quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)
        if rounded <= 0:
            raise InvalidQuantityOrPriceError("quantity", value, "must be greater than zero")
        object.__setattr__(self, "value", rounded)

    @classmethod
    def of(cls, value: Decimal | int | float | str) -> Self:
        return cls(value=to_decimal(value, field="quantity"))

    def __str__(self) -> str:
        return f"{self.value.normalize():f}"


# ============================================================================
# Arithmetic Helpers
# ============================================================================


def unit_amount(value: Decimal | int | float | str, field: str) -> Money:
    """Validate a unit cost or unit price.

    Raises:
        InvalidQuantityOrPriceError: If the amount is negative.
    """
    amount = to_decimal(value, field=field)
    if amount < 0:
        raise InvalidQuantityOrPriceError(field, amount, "must be zero or greater")
    return Money(amount=amount)


def line_subtotal(quantity: Quantity, unit_price: Money) -> Money:
    """Compute quantity x unit price in fixed point."""
    return unit_price * quantity


def sum_money(amounts: Iterable[Money]) -> Money:
    """Sum money amounts, starting from zero."""
    total = Money.zero()
    for amount in amounts:
        total = total + amount
    return total


# ============================================================================
# Work Order Code
# ============================================================================


@dataclass(frozen=True)
class WorkOrderCode(ValueObject):
    """Human-readable sequential code, e.g. OBR-00042."""

    prefix: str
    number: int
    width: int = 5

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError("Work order code number must be positive")
        if not self.prefix:
            raise ValueError("Work order code prefix cannot be empty")

    @classmethod
    def first(cls, prefix: str, width: int = 5) -> Self:
        return cls(prefix=prefix, number=1, width=width)

    @classmethod
    def parse(cls, value: str, width: int = 5) -> Self | None:
        """Parse a code string, returning None when it does not match."""
        prefix, sep, digits = value.rpartition("-")
        if not sep or not prefix or not digits.isdigit():
            return None
        return cls(prefix=prefix, number=int(digits), width=width)

    def next(self) -> "WorkOrderCode":
        return WorkOrderCode(prefix=self.prefix, number=self.number + 1, width=self.width)

    def __str__(self) -> str:
        return f"{self.prefix}-{self.number:0{self.width}d}"
