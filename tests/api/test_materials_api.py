"""Tests for material catalog endpoints."""

from decimal import Decimal

from fastapi.testclient import TestClient


class TestSearchMaterials:
    """Tests for GET /materials."""

    def test_lists_catalog(self, auth_client: TestClient) -> None:
        response = auth_client.get("/materials")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["has_more"] is False
        material = data["items"][0]
        assert material["code"] == "CEM-50"
        assert Decimal(material["sale_price"]) == Decimal("10.50")

    def test_search_by_name_fragment(self, auth_client: TestClient) -> None:
        response = auth_client.get("/materials", params={"search": "portland"})

        assert [m["code"] for m in response.json()["items"]] == ["CEM-50"]

    def test_no_match(self, auth_client: TestClient) -> None:
        response = auth_client.get("/materials", params={"search": "ladrillo"})

        assert response.json()["items"] == []
        assert response.json()["total"] == 0

    def test_page_size_is_bounded(self, auth_client: TestClient) -> None:
        response = auth_client.get("/materials", params={"page_size": 500})

        assert response.status_code == 422
