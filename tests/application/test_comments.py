"""Tests for work order comments."""

import pytest

from factories import MISSING_ID, advance, work_order_data
from obras.domain import CommentNotFoundError, InvalidCommentError, WorkOrderNotFoundError


class TestAddComment:
    """Tests for CommentService.add_comment."""

    @pytest.mark.asyncio
    async def test_adds_comment(self, comments, work_order) -> None:
        comment = await comments.add_comment(work_order.id, "  Client asked for a Monday start ", author_id=7)

        assert comment.id is not None
        assert comment.work_order_id == work_order.id
        assert comment.body == "Client asked for a Monday start"
        assert comment.author_id == 7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["", "   ", "\n\t"])
    async def test_rejects_empty_body(self, comments, work_order, body) -> None:
        with pytest.raises(InvalidCommentError) as exc_info:
            await comments.add_comment(work_order.id, body)

        assert exc_info.value.details["field"] == "body"
        assert await comments.list_comments(work_order.id) == []

    @pytest.mark.asyncio
    async def test_unknown_work_order(self, comments) -> None:
        with pytest.raises(WorkOrderNotFoundError):
            await comments.add_comment(MISSING_ID, "hello")

    @pytest.mark.asyncio
    async def test_allowed_on_invoiced_work_order(self, service, comments, direct_work_order) -> None:
        await advance(service, direct_work_order.id, "IN_PROGRESS", "DONE", "INVOICED")

        comment = await comments.add_comment(direct_work_order.id, "Invoice sent by mail")

        assert comment.body == "Invoice sent by mail"


class TestListComments:
    """Tests for CommentService.list_comments."""

    @pytest.mark.asyncio
    async def test_newest_first(self, comments, work_order) -> None:
        first = await comments.add_comment(work_order.id, "first")
        second = await comments.add_comment(work_order.id, "second")

        listed = await comments.list_comments(work_order.id)

        assert [c.id for c in listed] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_scoped_to_work_order(self, service, comments, work_order) -> None:
        other = await service.create_work_order(work_order_data(title="Other job"))
        await comments.add_comment(other.id, "elsewhere")

        assert await comments.list_comments(work_order.id) == []

    @pytest.mark.asyncio
    async def test_unknown_work_order(self, comments) -> None:
        with pytest.raises(WorkOrderNotFoundError):
            await comments.list_comments(MISSING_ID)


class TestDeleteComment:
    """Tests for CommentService.delete_comment."""

    @pytest.mark.asyncio
    async def test_deletes_comment(self, comments, work_order) -> None:
        comment = await comments.add_comment(work_order.id, "typo")

        await comments.delete_comment(work_order.id, comment.id)

        assert await comments.list_comments(work_order.id) == []

    @pytest.mark.asyncio
    async def test_missing_comment(self, comments, work_order) -> None:
        with pytest.raises(CommentNotFoundError) as exc_info:
            await comments.delete_comment(work_order.id, MISSING_ID)

        assert exc_info.value.error_code == "COMMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_comment_of_another_work_order(self, service, comments, work_order) -> None:
        """A comment cannot be deleted through a different work order."""
        other = await service.create_work_order(work_order_data(title="Other job"))
        comment = await comments.add_comment(other.id, "keep me")

        with pytest.raises(CommentNotFoundError):
            await comments.delete_comment(work_order.id, comment.id)

        assert len(await comments.list_comments(other.id)) == 1

    @pytest.mark.asyncio
    async def test_removed_with_work_order(self, service, comments, work_order) -> None:
        await comments.add_comment(work_order.id, "draft note")

        await service.delete_work_order(work_order.id)

        assert await comments.comments.list_for_work_order(work_order.id) == []
