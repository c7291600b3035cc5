"""Domain layer - State machine, money arithmetic, guards, domain events.

This module exports the core domain building blocks:

- **State Machine**: Work-order statuses and the mode-aware `allowed_next`
- **Value Objects**: Decimal-safe Money and Quantity, work order codes
- **Guards**: Predicates evaluated before a transition is committed
- **Domain Events**: Represent significant domain occurrences
- **Exceptions**: The domain error taxonomy

Example usage:
    from obras.domain import ExecutionMode, Money, Quantity, WorkOrderStatus, allowed_next

    allowed_next(WorkOrderStatus.DRAFT, ExecutionMode.DIRECT_EXECUTION)
    # frozenset({WorkOrderStatus.IN_PROGRESS})

    Money.of("100") * Quantity.of(2)  # Money(amount=Decimal('200.00'))
"""

# Base classes
from obras.domain.base import DomainEvent, ValueObject

# Domain Events
from obras.domain.events import (
    BudgetCurrentVersionSwitched,
    BudgetDocumentGenerated,
    BudgetRecalculated,
    BudgetVersionCreated,
    WorkOrderCommentAdded,
    WorkOrderCreated,
    WorkOrderDeleted,
    WorkOrderFileAttached,
    WorkOrderFileRemoved,
    WorkOrderStatusChanged,
)

# Exceptions
from obras.domain.exceptions import (
    AttachmentNotFoundError,
    BudgetError,
    BudgetNotReadyError,
    CommentNotFoundError,
    ConcurrentUpdateError,
    ConcurrentVersionConflictError,
    DomainError,
    DuplicateTicketLinkError,
    IllegalTransitionError,
    InvalidAttachmentError,
    InvalidCommentError,
    InvalidLineItemError,
    InvalidQuantityOrPriceError,
    InvalidWorkOrderFieldError,
    ItemNotFoundError,
    NotOwnedByWorkOrderError,
    ReferenceNotFoundError,
    VersionNotEditableError,
    VersionNotFoundError,
    WorkOrderError,
    WorkOrderNotDeletableError,
    WorkOrderNotEditableError,
    WorkOrderNotFoundError,
)

# Guards
from obras.domain.guards import BudgetReadiness, check_guards, needs_budget

# State Machine
from obras.domain.state_machines import (
    ExecutionMode,
    StateTransition,
    WorkOrderStatus,
    allowed_next,
    plan_transition,
    validate_work_order_transition,
)

# Value Objects
from obras.domain.value_objects import (
    FileKind,
    LineItemKind,
    Money,
    Quantity,
    WorkOrderCode,
    WorkOrderKind,
    line_subtotal,
    sum_money,
    unit_amount,
)

__all__ = [
    # Base
    "DomainEvent",
    "ValueObject",
    # Events
    "BudgetCurrentVersionSwitched",
    "BudgetDocumentGenerated",
    "BudgetRecalculated",
    "BudgetVersionCreated",
    "WorkOrderCommentAdded",
    "WorkOrderCreated",
    "WorkOrderDeleted",
    "WorkOrderFileAttached",
    "WorkOrderFileRemoved",
    "WorkOrderStatusChanged",
    # Exceptions
    "AttachmentNotFoundError",
    "BudgetError",
    "BudgetNotReadyError",
    "CommentNotFoundError",
    "ConcurrentUpdateError",
    "ConcurrentVersionConflictError",
    "DomainError",
    "DuplicateTicketLinkError",
    "IllegalTransitionError",
    "InvalidAttachmentError",
    "InvalidCommentError",
    "InvalidLineItemError",
    "InvalidQuantityOrPriceError",
    "InvalidWorkOrderFieldError",
    "ItemNotFoundError",
    "NotOwnedByWorkOrderError",
    "ReferenceNotFoundError",
    "VersionNotEditableError",
    "VersionNotFoundError",
    "WorkOrderError",
    "WorkOrderNotDeletableError",
    "WorkOrderNotEditableError",
    "WorkOrderNotFoundError",
    # Guards
    "BudgetReadiness",
    "check_guards",
    "needs_budget",
    # State Machine
    "ExecutionMode",
    "StateTransition",
    "WorkOrderStatus",
    "allowed_next",
    "plan_transition",
    "validate_work_order_transition",
    # Value Objects
    "FileKind",
    "LineItemKind",
    "Money",
    "Quantity",
    "WorkOrderCode",
    "WorkOrderKind",
    "line_subtotal",
    "sum_money",
    "unit_amount",
]
