"""SQLAlchemy models for the materials catalog.

Defines the Material table that budget line items may reference.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from obras.infrastructure.database import Base


class MaterialModel(Base):
    """Material available for budgeting.

    Prices here move over time. Line items copy them at creation and
    are never rewritten when the catalog changes.

    Attributes:
        id: Material identifier.
        code: Internal material code (unique).
        name: Material name.
        description: Optional long description.
        unit: Unit of measure (e.g. "m2", "u", "kg").
        cost_price: Purchase cost per unit.
        sale_price: Sale price per unit.
        updated_at: Last price update timestamp.
    """

    __tablename__ = "materials"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="u")
    cost_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    sale_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Material(id={self.id}, code={self.code}, name={self.name[:30]})>"

    @property
    def label(self) -> str:
        """Default line item description for this material."""
        return f"{self.code} - {self.name}"
