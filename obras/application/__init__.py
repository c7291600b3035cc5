"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from obras.application.attachments import AttachmentService
from obras.application.budget_versions import BudgetVersionStore
from obras.application.comments import CommentService
from obras.application.documents import BudgetDocumentService
from obras.application.line_items import LineItemLedger
from obras.application.recalculation import BudgetRecalculator
from obras.application.work_order_service import WorkOrderService

__all__ = [
    "AttachmentService",
    "BudgetDocumentService",
    "BudgetRecalculator",
    "BudgetVersionStore",
    "CommentService",
    "LineItemLedger",
    "WorkOrderService",
]
