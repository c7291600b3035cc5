"""Domain event publishing.

Events are written to the structured log, where audit and downstream
consumers pick them up.
"""

import structlog

from obras.domain import DomainEvent

logger = structlog.get_logger()


def publish(event: DomainEvent, request_id: str | None = None) -> None:
    """Publish a domain event to the structured log."""
    logger.info("Domain event", request_id=request_id, **event.to_dict())
