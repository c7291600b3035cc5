"""Materials Catalog.

Provides material lookups and the price snapshot rules that budget
line items follow when they reference a catalog material.
"""

from obras.catalog.models import MaterialModel
from obras.catalog.repository import MaterialRepository
from obras.catalog.service import (
    CatalogService,
    MaterialDefaults,
    PaginatedResult,
    PaginationParams,
    has_price_drift,
)

__all__ = [
    # Models
    "MaterialModel",
    # Repository
    "MaterialRepository",
    # Service
    "CatalogService",
    "MaterialDefaults",
    "PaginatedResult",
    "PaginationParams",
    "has_price_drift",
]
