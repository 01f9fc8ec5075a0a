"""
Tests for the sales API endpoints.

The lifecycle service is swapped for one backed by InMemorySaleRepository via
`app.dependency_overrides`, so no Supabase credentials are needed.
"""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_sale_service
from api.main import app
from domain.errors import StoreError
from repositories.memory_sale_repository import InMemorySaleRepository
from services.sale_lifecycle_service import SaleLifecycleService

BASE = "/api/v1"


@pytest.fixture
def client(service):
    app.dependency_overrides[get_sale_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _create_listing(client, vehicle_id="veh-1", price="150000"):
    response = client.post(
        f"{BASE}/listings",
        json={"vehicle_id": vehicle_id, "brand": "Fiat", "model": "Toro", "price": price},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_path_is_not_served(client) -> None:
    assert client.get("/").status_code == 404


def test_create_listing(client) -> None:
    body = _create_listing(client)

    assert body["status"] == "AVAILABLE"
    assert body["sale_id"]
    assert body["created_at"]


def test_create_listing_validation_error_is_400(client) -> None:
    response = client.post(
        f"{BASE}/listings",
        json={"vehicle_id": "", "brand": "Fiat", "model": "Toro", "price": "0"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "vehicle_id cannot be empty"


def test_create_listing_malformed_body_is_422(client) -> None:
    response = client.post(f"{BASE}/listings", json={"vehicle_id": "veh-1"})
    assert response.status_code == 422


def test_update_listing(client) -> None:
    _create_listing(client)

    response = client.put(
        f"{BASE}/listings/vehicle/veh-1",
        json={"brand": "Fiat", "model": "Toro Ranch", "price": "155000"},
    )
    assert response.status_code == 200

    items = client.get(f"{BASE}/sales/available").json()
    assert items[0]["model"] == "Toro Ranch"


def test_update_listing_unknown_vehicle_is_404(client) -> None:
    response = client.put(
        f"{BASE}/listings/vehicle/missing",
        json={"brand": "Fiat", "model": "Toro", "price": "1"},
    )
    assert response.status_code == 404


def test_purchase_flow_and_duplicate_webhook(client) -> None:
    sale_id = _create_listing(client)["sale_id"]

    purchase = client.post(f"{BASE}/sales/{sale_id}/purchase", json={"buyer_cpf": "12345678900"})
    assert purchase.status_code == 202
    payment_id = purchase.json()["payment_id"]

    webhook = client.post(f"{BASE}/webhooks/payments", json={"payment_id": payment_id, "status": "APPROVED"})
    assert webhook.status_code == 204

    sold = client.get(f"{BASE}/sales/sold").json()
    assert [item["sale_id"] for item in sold] == [sale_id]

    duplicate = client.post(f"{BASE}/webhooks/payments", json={"payment_id": payment_id, "status": "CANCELED"})
    assert duplicate.status_code == 409
    assert client.get(f"{BASE}/sales/sold").json()[0]["sale_id"] == sale_id


def test_second_purchase_is_409(client) -> None:
    sale_id = _create_listing(client)["sale_id"]
    client.post(f"{BASE}/sales/{sale_id}/purchase", json={"buyer_cpf": "12345678900"})

    response = client.post(f"{BASE}/sales/{sale_id}/purchase", json={"buyer_cpf": "98765432100"})

    assert response.status_code == 409
    assert response.json()["detail"] == "sale is not available for purchase"


def test_purchase_invalid_sale_id_is_400(client) -> None:
    response = client.post(f"{BASE}/sales/not-a-uuid/purchase", json={"buyer_cpf": "123"})
    assert response.status_code == 400


def test_purchase_unknown_sale_is_404(client) -> None:
    response = client.post(f"{BASE}/sales/{uuid4()}/purchase", json={"buyer_cpf": "123"})
    assert response.status_code == 404


def test_webhook_invalid_status_is_400(client) -> None:
    sale_id = _create_listing(client)["sale_id"]
    payment_id = client.post(f"{BASE}/sales/{sale_id}/purchase", json={"buyer_cpf": "1"}).json()["payment_id"]

    response = client.post(f"{BASE}/webhooks/payments", json={"payment_id": payment_id, "status": "maybe"})

    assert response.status_code == 400
    assert response.json()["detail"] == "invalid payment status"


def test_webhook_unknown_payment_is_404(client) -> None:
    response = client.post(f"{BASE}/webhooks/payments", json={"payment_id": "nope", "status": "APPROVED"})
    assert response.status_code == 404


def test_list_available_sorted_and_empty(client) -> None:
    assert client.get(f"{BASE}/sales/available").json() == []

    _create_listing(client, "veh-b", "99000")
    _create_listing(client, "veh-a", "45000.90")

    items = client.get(f"{BASE}/sales/available").json()
    assert [item["vehicle_id"] for item in items] == ["veh-a", "veh-b"]
    assert set(items[0]) == {"sale_id", "vehicle_id", "brand", "model", "price"}


def test_store_error_is_500() -> None:
    class BrokenStore(InMemorySaleRepository):
        def list_by_status(self, status):
            raise StoreError("Failed to list sales: timeout")

    app.dependency_overrides[get_sale_service] = lambda: SaleLifecycleService(BrokenStore())
    try:
        response = TestClient(app).get(f"{BASE}/sales/available")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "timeout" in response.json()["detail"]
