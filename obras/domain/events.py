"""Domain events for the work-order engine.

Domain events represent significant occurrences in the domain. The
application services emit them after each accepted mutation; they are
published to the structured log for audit and downstream consumers.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from obras.domain.base import DomainEvent


# ============================================================================
# Work Order Events
# ============================================================================


@dataclass(frozen=True)
class WorkOrderCreated(DomainEvent):
    """Event raised when a work order is created."""

    event_type: ClassVar[str] = "work_order.created"

    code: str = ""
    execution_mode: str = ""
    client_id: int = 0
    ticket_id: int | None = None
    created_by: int | None = None

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "code": self.code,
            "execution_mode": self.execution_mode,
            "client_id": self.client_id,
            "ticket_id": self.ticket_id,
            "created_by": self.created_by,
        }


@dataclass(frozen=True)
class WorkOrderDeleted(DomainEvent):
    """Event raised when a draft work order is deleted."""

    event_type: ClassVar[str] = "work_order.deleted"

    code: str = ""

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {"code": self.code}


@dataclass(frozen=True)
class WorkOrderStatusChanged(DomainEvent):
    """Event raised when a status transition is accepted."""

    event_type: ClassVar[str] = "work_order.status_changed"

    from_status: str = ""
    to_status: str = ""
    actor_id: int | None = None
    note: str | None = None

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "from_status": self.from_status,
            "to_status": self.to_status,
            "actor_id": self.actor_id,
            "note": self.note,
        }


# ============================================================================
# Budget Events
# ============================================================================


@dataclass(frozen=True)
class BudgetVersionCreated(DomainEvent):
    """Event raised when a new current version is created."""

    event_type: ClassVar[str] = "budget.version_created"

    version_id: int = 0
    number: int = 0
    copied_from_version_id: int | None = None
    copied_item_count: int = 0

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "version_id": self.version_id,
            "number": self.number,
            "copied_from_version_id": self.copied_from_version_id,
            "copied_item_count": self.copied_item_count,
        }


@dataclass(frozen=True)
class BudgetCurrentVersionSwitched(DomainEvent):
    """Event raised when another existing version becomes current."""

    event_type: ClassVar[str] = "budget.current_switched"

    previous_version_id: int | None = None
    version_id: int = 0

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "previous_version_id": self.previous_version_id,
            "version_id": self.version_id,
        }


@dataclass(frozen=True)
class BudgetRecalculated(DomainEvent):
    """Event raised when a version's totals are rolled up."""

    event_type: ClassVar[str] = "budget.recalculated"

    version_id: int = 0
    subtotal: str = "0.00"
    total: str = "0.00"
    budgeted_amount_updated: bool = False

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "version_id": self.version_id,
            "subtotal": self.subtotal,
            "total": self.total,
            "budgeted_amount_updated": self.budgeted_amount_updated,
        }


@dataclass(frozen=True)
class BudgetDocumentGenerated(DomainEvent):
    """Event raised when a budget document is rendered and stored."""

    event_type: ClassVar[str] = "budget.document_generated"

    version_id: int = 0
    file_id: int = 0
    storage_key: str = ""

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "version_id": self.version_id,
            "file_id": self.file_id,
            "storage_key": self.storage_key,
        }


# ============================================================================
# Collaboration Events
# ============================================================================


@dataclass(frozen=True)
class WorkOrderCommentAdded(DomainEvent):
    """Event raised when a comment is posted on a work order."""

    event_type: ClassVar[str] = "work_order.comment_added"

    comment_id: int = 0
    author_id: int | None = None

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {"comment_id": self.comment_id, "author_id": self.author_id}


@dataclass(frozen=True)
class WorkOrderFileAttached(DomainEvent):
    """Event raised when a file is uploaded to a work order."""

    event_type: ClassVar[str] = "work_order.file_attached"

    file_id: int = 0
    kind: str = ""
    storage_key: str = ""
    size_bytes: int = 0

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {
            "file_id": self.file_id,
            "kind": self.kind,
            "storage_key": self.storage_key,
            "size_bytes": self.size_bytes,
        }


@dataclass(frozen=True)
class WorkOrderFileRemoved(DomainEvent):
    """Event raised when an attached file is deleted."""

    event_type: ClassVar[str] = "work_order.file_removed"

    file_id: int = 0
    storage_key: str = ""

    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload."""
        return {"file_id": self.file_id, "storage_key": self.storage_key}
