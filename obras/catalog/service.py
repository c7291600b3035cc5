"""Catalog service for material operations.

High-level service that combines repository operations with the
pricing rules line items follow when they reference a material.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from obras.catalog.models import MaterialModel
from obras.catalog.repository import MaterialRepository
from obras.domain.exceptions import ReferenceNotFoundError

T = TypeVar("T")


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
    """

    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Total count.
        page: Current page.
        page_size: Items per page.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1


@dataclass(frozen=True)
class MaterialDefaults:
    """Values a new line item inherits from its material.

    Attributes:
        description: "<code> - <name>".
        unit: Catalog unit of measure.
        unit_cost: Catalog cost price at lookup time.
        unit_price: Catalog sale price at lookup time.
    """

    description: str
    unit: str
    unit_cost: Decimal
    unit_price: Decimal


def has_price_drift(snapshot_price: Decimal, catalog_price: Decimal | None) -> bool:
    """Whether a line item's frozen price differs from today's catalog price."""
    if catalog_price is None:
        return False
    return Decimal(snapshot_price) != Decimal(catalog_price)


class CatalogService:
    """Service for material catalog operations.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogService(session)
            defaults = await service.defaults_for(material_id=7)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session
        self.repository = MaterialRepository(session)

    async def get_material(self, material_id: int) -> MaterialModel:
        """Get material by ID.

        Raises:
            ReferenceNotFoundError: If the material does not exist.
        """
        material = await self.repository.get_by_id(material_id)
        if material is None:
            raise ReferenceNotFoundError("Material", material_id)
        return material

    async def defaults_for(self, material_id: int) -> MaterialDefaults:
        """Look up the snapshot values for a new line item.

        Args:
            material_id: Referenced material.

        Returns:
            Description, unit and prices as of now.

        Raises:
            ReferenceNotFoundError: If the material does not exist.
        """
        material = await self.get_material(material_id)
        return MaterialDefaults(
            description=material.label,
            unit=material.unit,
            unit_cost=material.cost_price,
            unit_price=material.sale_price,
        )

    async def current_prices(self, material_ids: list[int | None]) -> dict[int, Decimal]:
        """Today's sale prices for the given materials, keyed by ID."""
        materials = await self.repository.get_many(i for i in material_ids if i is not None)
        return {material_id: m.sale_price for material_id, m in materials.items()}

    async def search_materials(
        self,
        search: str | None,
        pagination: PaginationParams,
    ) -> PaginatedResult[MaterialModel]:
        """Search materials with pagination.

        Args:
            search: Fragment of code or name.
            pagination: Pagination parameters.

        Returns:
            Paginated material results.
        """
        materials = await self.repository.find_all(
            search=search,
            limit=pagination.limit,
            offset=pagination.offset,
        )
        total = await self.repository.count(search=search)

        return PaginatedResult(
            items=list(materials),
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def seed_catalog(self, rows: list[dict[str, Any]]) -> dict[str, Any]:
        """Insert materials that are not in the catalog yet.

        Rows whose code already exists are left untouched.

        Args:
            rows: Dicts with code, name, unit, cost_price and sale_price.

        Returns:
            Seeding result with counts.
        """
        created = []
        for row in rows:
            if await self.repository.get_by_code(row["code"]) is not None:
                continue
            created.append(
                MaterialModel(
                    code=row["code"],
                    name=row["name"],
                    unit=row.get("unit", "u"),
                    cost_price=Decimal(str(row.get("cost_price", "0"))),
                    sale_price=Decimal(str(row.get("sale_price", "0"))),
                )
            )
        await self.repository.save_all(created)
        return {"materials_created": len(created), "skipped": len(rows) - len(created)}
