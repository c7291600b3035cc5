"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from obras.api.budgets import router as budgets_router
from obras.api.health import router as health_router
from obras.api.work_orders import router as work_orders_router

__all__ = [
    "budgets_router",
    "health_router",
    "work_orders_router",
]
