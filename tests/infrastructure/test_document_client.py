"""Tests for the renderer and storage HTTP clients."""

import json

import httpx
import pytest

from obras.infrastructure.document_client import (
    DocumentServiceError,
    HttpBinaryStorage,
    HttpDocumentRenderer,
    StoredObject,
)


def mock_client(handler, request_id: str | None = None) -> httpx.AsyncClient:
    headers = {"X-Request-ID": request_id} if request_id else {}
    return httpx.AsyncClient(
        base_url="http://service.test",
        transport=httpx.MockTransport(handler),
        headers=headers,
    )


class TestHttpDocumentRenderer:
    """Tests for HttpDocumentRenderer."""

    @pytest.mark.asyncio
    async def test_render_budget(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["request_id"] = request.headers.get("X-Request-ID")
            return httpx.Response(200, content=b"%PDF-1.4")

        renderer = HttpDocumentRenderer("http://service.test", request_id="req-1")
        renderer._client = mock_client(handler, "req-1")

        content = await renderer.render_budget({"code": "OBR-00001", "total": "10.00"})

        assert content == b"%PDF-1.4"
        assert seen["path"] == "/render/budget"
        assert seen["body"]["total"] == "10.00"
        assert seen["request_id"] == "req-1"
        await renderer.close()

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        renderer = HttpDocumentRenderer("http://service.test")
        renderer._client = mock_client(lambda request: httpx.Response(500, text="template missing"))

        with pytest.raises(DocumentServiceError) as exc_info:
            await renderer.render_budget({"code": "OBR-00001"})

        assert exc_info.value.service == "renderer"
        assert exc_info.value.status_code == 500
        await renderer.close()

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        renderer = HttpDocumentRenderer("http://service.test")
        renderer._client = mock_client(handler)

        with pytest.raises(DocumentServiceError) as exc_info:
            await renderer.render_budget({"code": "OBR-00001"})

        assert exc_info.value.status_code is None
        await renderer.close()

    @pytest.mark.asyncio
    async def test_client_sends_request_id(self) -> None:
        renderer = HttpDocumentRenderer("http://service.test", request_id="req-9")

        client = await renderer._get_client()

        assert client.headers["X-Request-ID"] == "req-9"
        assert await renderer._get_client() is client
        await renderer.close()
        assert renderer._client is None


class TestHttpBinaryStorage:
    """Tests for HttpBinaryStorage."""

    @pytest.mark.asyncio
    async def test_upload(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(
                201, json={"key": "work-orders/1/Budget.pdf", "url": "https://files.test/x"}
            )

        storage = HttpBinaryStorage("http://service.test")
        storage._client = mock_client(handler)

        stored = await storage.upload("Budget.pdf", b"%PDF", "application/pdf", folder="work-orders/1")

        assert stored == StoredObject(
            key="work-orders/1/Budget.pdf", url="https://files.test/x", size=4
        )
        assert seen["path"] == "/objects"
        assert b"Budget.pdf" in seen["body"]
        assert b"work-orders/1" in seen["body"]
        await storage.close()

    @pytest.mark.asyncio
    async def test_upload_rejected(self) -> None:
        storage = HttpBinaryStorage("http://service.test")
        storage._client = mock_client(lambda request: httpx.Response(413, text="too large"))

        with pytest.raises(DocumentServiceError) as exc_info:
            await storage.upload("Budget.pdf", b"%PDF", "application/pdf", folder="f")

        assert exc_info.value.service == "storage"
        assert exc_info.value.status_code == 413
        await storage.close()

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(204)

        storage = HttpBinaryStorage("http://service.test")
        storage._client = mock_client(handler)

        await storage.delete("work-orders/1/photo.png")

        assert seen == {"method": "DELETE", "path": "/objects/work-orders/1/photo.png"}
        await storage.close()

    @pytest.mark.asyncio
    async def test_delete_missing_object_is_ignored(self) -> None:
        storage = HttpBinaryStorage("http://service.test")
        storage._client = mock_client(lambda request: httpx.Response(404))

        await storage.delete("gone")
        await storage.close()

    @pytest.mark.asyncio
    async def test_delete_failure(self) -> None:
        storage = HttpBinaryStorage("http://service.test")
        storage._client = mock_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(DocumentServiceError) as exc_info:
            await storage.delete("k")

        assert exc_info.value.status_code == 500
        await storage.close()


class TestStoredObject:
    """Tests for StoredObject parsing."""

    def test_size_falls_back_to_content_length(self) -> None:
        stored = StoredObject.from_api_response({"key": "k"}, fallback_size=12)
        assert stored == StoredObject(key="k", url=None, size=12)
