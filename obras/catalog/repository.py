"""Material repository for database operations.

Provides lookups and search over the materials catalog.
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from obras.catalog.models import MaterialModel


class MaterialRepository:
    """Repository for Material database operations.

    Example usage:
        async with async_session_factory() as session:
            repo = MaterialRepository(session)
            materials = await repo.find_all(search="cement", limit=20)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save_all(self, materials: list[MaterialModel]) -> list[MaterialModel]:
        """Save multiple materials to database."""
        self.session.add_all(materials)
        await self.session.flush()
        return materials

    async def get_by_id(self, material_id: int) -> MaterialModel | None:
        """Get material by ID.

        Args:
            material_id: Material ID.

        Returns:
            Material if found, None otherwise.
        """
        return await self.session.get(MaterialModel, material_id)

    async def get_by_code(self, code: str) -> MaterialModel | None:
        """Get material by its catalog code."""
        result = await self.session.execute(
            select(MaterialModel).where(MaterialModel.code == code)
        )
        return result.scalar_one_or_none()

    async def get_many(self, material_ids: Iterable[int]) -> dict[int, MaterialModel]:
        """Get several materials at once, keyed by ID.

        Unknown IDs are simply absent from the result.
        """
        ids = {i for i in material_ids if i is not None}
        if not ids:
            return {}
        result = await self.session.execute(
            select(MaterialModel).where(MaterialModel.id.in_(ids))
        )
        return {m.id: m for m in result.scalars().all()}

    def _search_conditions(self, search: str | None) -> list:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    MaterialModel.code.ilike(pattern),
                    MaterialModel.name.ilike(pattern),
                )
            )
        return conditions

    async def find_all(
        self,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[MaterialModel]:
        """Find materials by code or name, ordered by code.

        Args:
            search: Case-insensitive fragment of code or name.
            limit: Maximum results.
            offset: Result offset for pagination.

        Returns:
            Sequence of matching materials.
        """
        query = select(MaterialModel)
        conditions = self._search_conditions(search)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(MaterialModel.code.asc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self, search: str | None = None) -> int:
        """Count materials matching the search."""
        query = select(func.count(MaterialModel.id))
        conditions = self._search_conditions(search)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.session.execute(query)
        return result.scalar_one()
