"""Domain exceptions.

All domain-level errors that represent business rule violations.
These are expected, caller-recoverable conditions: they carry enough
context (current status, allowed next states, conflicting ids) for the
caller to retry or present the problem to a user.
"""

from typing import Any, ClassVar


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code: ClassVar[str] = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# State Machine Errors
# ============================================================================


class IllegalTransitionError(DomainError):
    """Raised when a status transition is outside the allowed graph.

    Also raised for execution-mode violations, e.g. a DIRECT_EXECUTION
    work order asked to leave DRAFT for anything but IN_PROGRESS.
    """

    error_code = "ILLEGAL_TRANSITION"

    def __init__(
        self,
        work_order_id: int,
        current_status: str,
        target_status: str,
        allowed_transitions: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize illegal transition error.

        Args:
            work_order_id: ID of the work order.
            current_status: Current status of the work order.
            target_status: Attempted target status.
            allowed_transitions: Statuses reachable from the current one.
            reason: Specific explanation overriding the generic message.
        """
        allowed = allowed_transitions or []
        message = reason or (
            f"Cannot transition WorkOrder({work_order_id}) "
            f"from '{current_status}' to '{target_status}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "work_order_id": work_order_id,
                "current_status": current_status,
                "target_status": target_status,
                "allowed_transitions": allowed,
            },
        )
        self.allowed_transitions = allowed


class BudgetNotReadyError(DomainError):
    """Raised when entering BUDGETED without a priced current version."""

    error_code = "BUDGET_NOT_READY"

    def __init__(self, work_order_id: int, version_id: int | None, item_count: int = 0) -> None:
        """Initialize budget not ready error.

        Args:
            work_order_id: ID of the work order.
            version_id: ID of the current budget version, if any.
            item_count: Number of items with positive quantity.
        """
        super().__init__(
            f"WorkOrder {work_order_id} has no budget items with quantity > 0",
            details={
                "work_order_id": work_order_id,
                "version_id": version_id,
                "item_count": item_count,
            },
        )


class ConcurrentUpdateError(DomainError):
    """Raised when another caller changed the work order first."""

    error_code = "CONCURRENT_UPDATE"

    def __init__(self, work_order_id: int | None, operation: str = "update") -> None:
        target = f"WorkOrder {work_order_id}" if work_order_id is not None else "Work order"
        super().__init__(
            f"{target} was modified concurrently during {operation}; reload and retry",
            details={"work_order_id": work_order_id, "operation": operation},
        )


# ============================================================================
# Work Order Errors
# ============================================================================


class WorkOrderError(DomainError):
    """Base class for work-order errors."""

    pass


class WorkOrderNotFoundError(WorkOrderError):
    """Raised when a work order does not exist."""

    error_code = "WORK_ORDER_NOT_FOUND"

    def __init__(self, work_order_id: int) -> None:
        super().__init__(
            f"WorkOrder {work_order_id} not found",
            details={"work_order_id": work_order_id},
        )


class WorkOrderNotEditableError(WorkOrderError):
    """Raised when modifying an invoiced work order."""

    error_code = "WORK_ORDER_NOT_EDITABLE"

    def __init__(self, work_order_id: int, current_status: str) -> None:
        super().__init__(
            f"WorkOrder {work_order_id} is not editable in status '{current_status}'",
            details={"work_order_id": work_order_id, "current_status": current_status},
        )


class WorkOrderNotDeletableError(WorkOrderError):
    """Raised when deleting a work order that has left DRAFT."""

    error_code = "WORK_ORDER_NOT_DELETABLE"

    def __init__(self, work_order_id: int, current_status: str) -> None:
        super().__init__(
            f"WorkOrder {work_order_id} can only be deleted in DRAFT, "
            f"current status is '{current_status}'",
            details={"work_order_id": work_order_id, "current_status": current_status},
        )


class DuplicateTicketLinkError(WorkOrderError):
    """Raised when a ticket is already bound to another work order."""

    error_code = "DUPLICATE_TICKET_LINK"

    def __init__(self, ticket_id: int, linked_work_order_id: int | None) -> None:
        super().__init__(
            f"Ticket {ticket_id} is already linked to WorkOrder {linked_work_order_id}",
            details={"ticket_id": ticket_id, "linked_work_order_id": linked_work_order_id},
        )


class ReferenceNotFoundError(WorkOrderError):
    """Raised when a referenced client, site, ticket or material is unknown."""

    error_code = "REFERENCE_NOT_FOUND"

    def __init__(self, reference_type: str, reference_id: int) -> None:
        super().__init__(
            f"{reference_type} {reference_id} not found",
            details={"reference_type": reference_type, "reference_id": reference_id},
        )


class InvalidWorkOrderFieldError(WorkOrderError):
    """Raised when an update names a field that cannot be changed or nulls a required one."""

    error_code = "INVALID_WORK_ORDER_FIELD"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid value for {field}: {reason}",
            details={"field": field, "reason": reason},
        )


class CommentNotFoundError(WorkOrderError):
    """Raised when a comment does not exist on the work order."""

    error_code = "COMMENT_NOT_FOUND"

    def __init__(self, comment_id: int, work_order_id: int) -> None:
        super().__init__(
            f"Comment {comment_id} not found on WorkOrder {work_order_id}",
            details={"comment_id": comment_id, "work_order_id": work_order_id},
        )


class AttachmentNotFoundError(WorkOrderError):
    """Raised when an attached file does not exist on the work order."""

    error_code = "FILE_NOT_FOUND"

    def __init__(self, file_id: int, work_order_id: int) -> None:
        super().__init__(
            f"File {file_id} not found on WorkOrder {work_order_id}",
            details={"file_id": file_id, "work_order_id": work_order_id},
        )


class InvalidAttachmentError(WorkOrderError):
    """Raised when an uploaded file is rejected (size, type or kind)."""

    error_code = "INVALID_ATTACHMENT"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid {field}: {reason}",
            details={"field": field, "reason": reason},
        )


class InvalidCommentError(WorkOrderError):
    """Raised when a comment body is empty."""

    error_code = "INVALID_COMMENT"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid comment: {reason}", details={"field": "body", "reason": reason})


# ============================================================================
# Budget Errors
# ============================================================================


class BudgetError(DomainError):
    """Base class for budget version and line item errors."""

    pass


class VersionNotFoundError(BudgetError):
    """Raised when a budget version does not exist."""

    error_code = "VERSION_NOT_FOUND"

    def __init__(self, version_id: int | None, work_order_id: int | None = None) -> None:
        super().__init__(
            f"Budget version {version_id} not found",
            details={"version_id": version_id, "work_order_id": work_order_id},
        )


class NotOwnedByWorkOrderError(BudgetError):
    """Raised when a version belongs to a different work order."""

    error_code = "NOT_OWNED_BY_WORK_ORDER"

    def __init__(self, version_id: int, work_order_id: int, owner_id: int) -> None:
        super().__init__(
            f"Budget version {version_id} does not belong to WorkOrder {work_order_id}",
            details={
                "version_id": version_id,
                "work_order_id": work_order_id,
                "owner_work_order_id": owner_id,
            },
        )


class VersionNotEditableError(BudgetError):
    """Raised when mutating items of a historical version or an invoiced work order."""

    error_code = "VERSION_NOT_EDITABLE"

    def __init__(self, version_id: int, reason: str) -> None:
        super().__init__(
            f"Budget version {version_id} is not editable: {reason}",
            details={"version_id": version_id, "reason": reason},
        )


class ConcurrentVersionConflictError(BudgetError):
    """Raised when two callers race to change the current version.

    The loser must reload the current state and retry; nothing
    was overwritten.
    """

    error_code = "CONCURRENT_VERSION_CONFLICT"

    def __init__(self, work_order_id: int, operation: str) -> None:
        super().__init__(
            f"Concurrent budget version change on WorkOrder {work_order_id} ({operation})",
            details={"work_order_id": work_order_id, "operation": operation},
        )


class ItemNotFoundError(BudgetError):
    """Raised when a line item is not found."""

    error_code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: int, version_id: int | None = None) -> None:
        super().__init__(
            f"Line item {item_id} not found",
            details={"item_id": item_id, "version_id": version_id},
        )


class InvalidQuantityOrPriceError(BudgetError):
    """Raised when a quantity or price is out of range."""

    error_code = "INVALID_QUANTITY_OR_PRICE"

    def __init__(self, field: str, value: object, reason: str) -> None:
        """Initialize invalid quantity or price error.

        Args:
            field: Name of the offending field.
            value: The rejected value.
            reason: Explanation of why the value is invalid.
        """
        super().__init__(
            f"Invalid {field} {value}: {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class InvalidLineItemError(BudgetError):
    """Raised when a line item is missing required text fields."""

    error_code = "INVALID_LINE_ITEM"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid {field}: {reason}",
            details={"field": field, "reason": reason},
        )
