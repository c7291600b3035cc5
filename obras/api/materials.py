"""Material catalog API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from obras.api.dependencies import CatalogServiceDep
from obras.api.schemas import MaterialResponse, MaterialsListResponse
from obras.catalog import PaginationParams

router = APIRouter(prefix="/materials", tags=["Materials"])


@router.get(
    "",
    response_model=MaterialsListResponse,
    summary="Search materials",
)
async def search_materials(
    service: CatalogServiceDep,
    search: Annotated[str | None, Query(description="Code or name fragment")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> MaterialsListResponse:
    """Search the catalog by code or name, ordered by code."""
    result = await service.search_materials(
        search, PaginationParams(page=page, page_size=page_size)
    )
    return MaterialsListResponse(
        items=[MaterialResponse.model_validate(m) for m in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        has_more=result.has_next,
    )
