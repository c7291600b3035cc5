"""HTTP clients for document rendering and binary storage.

The engine never renders or stores documents itself. It hands a budget
projection to a renderer and the resulting bytes to a storage service,
both reached over HTTP.
"""

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from obras.infrastructure.config import settings

logger = structlog.get_logger()


class DocumentServiceError(Exception):
    """Error from the renderer or storage service."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        self.service = service
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{service}] {message}")


@dataclass(frozen=True)
class StoredObject:
    """Result of an upload.

    Attributes:
        key: Storage key to retrieve the object later.
        url: Public or signed URL, if the storage provides one.
        size: Stored size in bytes.
    """

    key: str
    url: str | None
    size: int

    @classmethod
    def from_api_response(cls, data: dict[str, Any], fallback_size: int) -> "StoredObject":
        return cls(
            key=data["key"],
            url=data.get("url"),
            size=int(data.get("size", fallback_size)),
        )


# ============================================================================
# Collaborator Interfaces
# ============================================================================


class DocumentRenderer(Protocol):
    """Turns a budget projection into a binary document."""

    async def render_budget(self, projection: dict[str, Any]) -> bytes: ...


class BinaryStorage(Protocol):
    """Stores binary documents and returns where they live."""

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        folder: str,
    ) -> StoredObject: ...

    async def delete(self, key: str) -> None: ...


# ============================================================================
# HTTP Implementations
# ============================================================================


class _HttpService:
    """Shared lazy httpx client handling."""

    service_name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        request_id: str | None = None,
    ) -> None:
        """Initialize client.

        Args:
            base_url: Service base URL.
            timeout: Request timeout in seconds.
            request_id: Optional request ID for correlation.
        """
        self.base_url = base_url
        self.timeout = timeout
        self.request_id = request_id
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {}
            if self.request_id:
                headers["X-Request-ID"] = self.request_id
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class HttpDocumentRenderer(_HttpService):
    """Renderer reached at `POST /render/budget`."""

    service_name = "renderer"

    async def render_budget(self, projection: dict[str, Any]) -> bytes:
        """Render a budget document.

        Args:
            projection: Budget data (code, title, client, items, totals...).

        Returns:
            PDF bytes.

        Raises:
            DocumentServiceError: On transport failure or non-200 response.
        """
        try:
            client = await self._get_client()
            response = await client.post("/render/budget", json=projection)

            if response.status_code != 200:
                raise DocumentServiceError(
                    self.service_name,
                    f"Failed to render budget: {response.text}",
                    response.status_code,
                )
            return response.content

        except httpx.RequestError as e:
            logger.error(
                "Budget render request failed",
                code=projection.get("code"),
                error=str(e),
            )
            raise DocumentServiceError(
                self.service_name, f"Render request failed: {str(e)}"
            ) from e


class HttpBinaryStorage(_HttpService):
    """Storage reached at `POST /objects` with a multipart upload."""

    service_name = "storage"

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        folder: str,
    ) -> StoredObject:
        """Upload a document.

        Args:
            filename: Original file name.
            content: File bytes.
            content_type: MIME type.
            folder: Logical folder the key is created under.

        Returns:
            Where the object was stored.

        Raises:
            DocumentServiceError: On transport failure or non-2xx response.
        """
        try:
            client = await self._get_client()
            response = await client.post(
                "/objects",
                data={"folder": folder},
                files={"file": (filename, content, content_type)},
            )

            if response.status_code not in (200, 201):
                raise DocumentServiceError(
                    self.service_name,
                    f"Failed to upload {filename}: {response.text}",
                    response.status_code,
                )
            return StoredObject.from_api_response(response.json(), fallback_size=len(content))

        except httpx.RequestError as e:
            logger.error("Storage upload failed", filename=filename, error=str(e))
            raise DocumentServiceError(
                self.service_name, f"Upload request failed: {str(e)}"
            ) from e

    async def delete(self, key: str) -> None:
        """Delete a stored object. A key the storage no longer knows is ignored.

        Raises:
            DocumentServiceError: On transport failure or an unexpected status.
        """
        try:
            client = await self._get_client()
            response = await client.delete(f"/objects/{key}")

            if response.status_code not in (200, 204, 404):
                raise DocumentServiceError(
                    self.service_name,
                    f"Failed to delete {key}: {response.text}",
                    response.status_code,
                )

        except httpx.RequestError as e:
            logger.error("Storage delete failed", key=key, error=str(e))
            raise DocumentServiceError(
                self.service_name, f"Delete request failed: {str(e)}"
            ) from e


def get_document_renderer(request_id: str | None = None) -> HttpDocumentRenderer:
    """Get a renderer client configured from settings."""
    return HttpDocumentRenderer(
        settings.document_renderer_url,
        timeout=settings.http_timeout_seconds,
        request_id=request_id,
    )


def get_binary_storage(request_id: str | None = None) -> HttpBinaryStorage:
    """Get a storage client configured from settings."""
    return HttpBinaryStorage(
        settings.storage_url,
        timeout=settings.http_timeout_seconds,
        request_id=request_id,
    )
