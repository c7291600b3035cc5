"""Manual file attachments of a work order.

Uploaded files are handed to the binary storage and recorded next to the
generated budget documents. Budget documents themselves are produced by
BudgetDocumentService and cannot be uploaded by hand.
"""

from pathlib import PurePath
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from obras.application.dtos import WorkOrderFileDTO
from obras.application.event_log import publish
from obras.application.work_order_service import WorkOrderService
from obras.domain import (
    AttachmentNotFoundError,
    FileKind,
    InvalidAttachmentError,
    WorkOrderFileAttached,
    WorkOrderFileRemoved,
)
from obras.infrastructure.config import settings
from obras.infrastructure.document_client import BinaryStorage
from obras.infrastructure.models import WorkOrderFileModel
from obras.infrastructure.repositories import BudgetVersionRepository, WorkOrderFileRepository

logger = structlog.get_logger()

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)


def storage_file_name(original_name: str) -> str:
    """Unique name under which an upload is stored, keeping its extension."""
    return f"obra-{uuid4().hex}{PurePath(original_name).suffix.lower()}"


class AttachmentService:
    """Application service for uploading and removing work order files.

    Example usage:
        service = AttachmentService(session, storage)
        file = await service.upload_file(work_order_id, "site.jpg", data, "image/jpeg")
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: BinaryStorage,
        request_id: str | None = None,
    ) -> None:
        self.session = session
        self.storage = storage
        self.request_id = request_id
        self.work_orders = WorkOrderService(session, request_id)
        self.files = WorkOrderFileRepository(session)
        self.versions = BudgetVersionRepository(session)

    def _validate(self, original_name: str, content: bytes, mime_type: str, kind: str) -> FileKind:
        try:
            file_kind = FileKind(kind)
        except ValueError:
            raise InvalidAttachmentError("kind", f"unknown file kind {kind!r}") from None
        if file_kind is FileKind.BUDGET_PDF:
            raise InvalidAttachmentError("kind", "budget documents are generated, not uploaded")
        if not original_name.strip():
            raise InvalidAttachmentError("file_name", "must not be empty")
        if not content:
            raise InvalidAttachmentError("content", "file is empty")
        if len(content) > settings.max_attachment_bytes:
            raise InvalidAttachmentError(
                "content", f"file exceeds {settings.max_attachment_bytes} bytes"
            )
        if mime_type not in ALLOWED_MIME_TYPES:
            raise InvalidAttachmentError("mime_type", f"{mime_type} is not allowed")
        return file_kind

    async def upload_file(
        self,
        work_order_id: int,
        original_name: str,
        content: bytes,
        mime_type: str,
        kind: str = FileKind.OTHER.value,
    ) -> WorkOrderFileDTO:
        """Store a file and attach it to a work order.

        Like generated documents, the object is uploaded before the file
        record is written and stays orphaned if the transaction rolls back.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            InvalidAttachmentError: If kind, size or MIME type is rejected.
            DocumentServiceError: If the storage upload fails.
        """
        await self.work_orders.get_model(work_order_id)
        file_kind = self._validate(original_name, content, mime_type, kind)

        stored = await self.storage.upload(
            storage_file_name(original_name),
            content,
            mime_type,
            folder=f"work-orders/{work_order_id}",
        )
        file = await self.files.add(
            WorkOrderFileModel(
                work_order_id=work_order_id,
                kind=file_kind.value,
                original_name=original_name.strip(),
                storage_key=stored.key,
                mime_type=mime_type,
                size_bytes=stored.size,
                url=stored.url,
            )
        )

        publish(
            WorkOrderFileAttached(
                aggregate_id=str(work_order_id),
                file_id=file.id,
                kind=file.kind,
                storage_key=file.storage_key,
                size_bytes=file.size_bytes,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "File attached",
            work_order_id=work_order_id,
            file_id=file.id,
            kind=file.kind,
            size_bytes=file.size_bytes,
            request_id=self.request_id,
        )
        return WorkOrderFileDTO.from_model(file)

    async def delete_file(self, work_order_id: int, file_id: int) -> None:
        """Remove a file record and its stored object.

        Works for generated budget documents too; versions pointing at the
        file lose their document reference. The stored object is deleted
        after the record, so a storage failure aborts the whole request.

        Raises:
            WorkOrderNotFoundError: If the work order does not exist.
            AttachmentNotFoundError: If the file is missing or belongs to
                another work order.
            DocumentServiceError: If the storage delete fails.
        """
        await self.work_orders.get_model(work_order_id)
        file = await self.files.get(file_id)
        if file is None or file.work_order_id != work_order_id:
            raise AttachmentNotFoundError(file_id, work_order_id)

        storage_key = file.storage_key
        await self.versions.detach_document(file_id)
        await self.files.delete(file)
        await self.storage.delete(storage_key)

        publish(
            WorkOrderFileRemoved(
                aggregate_id=str(work_order_id),
                file_id=file_id,
                storage_key=storage_key,
            ),
            request_id=self.request_id,
        )
        logger.info(
            "File deleted",
            work_order_id=work_order_id,
            file_id=file_id,
            request_id=self.request_id,
        )
