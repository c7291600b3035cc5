"""Work order comments."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from obras.application.dtos import CommentDTO
from obras.application.event_log import publish
from obras.application.work_order_service import WorkOrderService
from obras.domain import CommentNotFoundError, InvalidCommentError, WorkOrderCommentAdded
from obras.infrastructure.models import WorkOrderCommentModel
from obras.infrastructure.repositories import CommentRepository

logger = structlog.get_logger()


class CommentService:
    """Application service for the comment thread of a work order."""

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        self.session = session
        self.request_id = request_id
        self.work_orders = WorkOrderService(session, request_id)
        self.comments = CommentRepository(session)

    async def list_comments(self, work_order_id: int) -> list[CommentDTO]:
        """Comments of a work order, newest first."""
        await self.work_orders.get_model(work_order_id)
        comments = await self.comments.list_for_work_order(work_order_id)
        return [CommentDTO.from_model(comment) for comment in comments]

    async def add_comment(
        self,
        work_order_id: int,
        body: str,
        author_id: int | None = None,
    ) -> CommentDTO:
        """Post a comment.

        Comments are accepted in every status, invoiced work orders included.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            InvalidCommentError: If the body is empty or only whitespace.
        """
        await self.work_orders.get_model(work_order_id)
        text = body.strip()
        if not text:
            raise InvalidCommentError("must not be empty")

        comment = await self.comments.add(
            WorkOrderCommentModel(work_order_id=work_order_id, author_id=author_id, body=text)
        )

        publish(
            WorkOrderCommentAdded(
                aggregate_id=str(work_order_id),
                comment_id=comment.id,
                author_id=author_id,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "Comment added",
            work_order_id=work_order_id,
            comment_id=comment.id,
            request_id=self.request_id,
        )
        return CommentDTO.from_model(comment)

    async def delete_comment(self, work_order_id: int, comment_id: int) -> None:
        """Delete a comment.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            CommentNotFoundError: If the comment is missing or belongs to
                another work order.
        """
        await self.work_orders.get_model(work_order_id)
        comment = await self.comments.get(comment_id)
        if comment is None or comment.work_order_id != work_order_id:
            raise CommentNotFoundError(comment_id, work_order_id)

        await self.comments.delete(comment)
        logger.info(
            "Comment deleted",
            work_order_id=work_order_id,
            comment_id=comment_id,
            request_id=self.request_id,
        )
