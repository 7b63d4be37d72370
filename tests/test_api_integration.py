"""
API Integration Tests
End-to-end testing of API endpoints with real HTTP requests
"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from typing import Dict

from tests.conftest import OTHER_TENANT

API = "/api/v1"


def dec(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
def flour(client: TestClient, tenant_headers: Dict[str, str]) -> Dict:
    response = client.post(f"{API}/stock/products", headers=tenant_headers, json={
        "product_id": "P001",
        "product_name": "Flour",
        "opening_stock": "100",
        "opening_cost": "10",
        "reorder_level": "20",
        "lead_time_days": 5,
    })
    assert response.status_code == 201
    return response.json()


class TestSystemAPI:

    def test_health_check(self, client: TestClient):
        """Test health check endpoint"""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ["healthy", "degraded"]
        assert "version" in data

    def test_error_bodies_documented(self, client: TestClient):
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        assert "HealthResponse" in schema["components"]["schemas"]
        responses = schema["paths"][f"{API}/purchase-orders/{{order_id}}/transition"]["post"]["responses"]
        assert responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")

    def test_tenant_header_required(self, client: TestClient):
        response = client.get(f"{API}/stock/products")

        assert response.status_code == 400
        assert response.json()["error"] == "HTTPException"
        assert "X-Tenant-ID" in response.json()["detail"]


class TestProductsAPI:
    """Test product stock endpoints"""

    def test_register_and_get(self, client: TestClient, tenant_headers, flour):
        assert dec(flour["current_stock"]) == Decimal("100")
        assert dec(flour["total_value"]) == Decimal("1000")
        assert flour["unit"] == "kg"

        response = client.get(f"{API}/stock/products/P001", headers=tenant_headers)
        assert response.status_code == 200
        assert response.json()["product_name"] == "Flour"

    def test_duplicate_registration(self, client: TestClient, tenant_headers, flour):
        response = client.post(f"{API}/stock/products", headers=tenant_headers, json={"product_id": "P001"})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_unknown_product(self, client: TestClient, tenant_headers):
        response = client.get(f"{API}/stock/products/NOPE", headers=tenant_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "NotFound", "detail": "Product NOPE not found"}

    def test_products_are_tenant_scoped(self, client: TestClient, flour):
        response = client.get(f"{API}/stock/products/P001", headers={"X-Tenant-ID": OTHER_TENANT})

        assert response.status_code == 404

    def test_patch_settings(self, client: TestClient, tenant_headers, flour):
        response = client.patch(f"{API}/stock/products/P001", headers=tenant_headers,
                                json={"reorder_level": "150"})

        assert response.status_code == 200
        assert dec(response.json()["reorder_level"]) == Decimal("150")

        status = client.get(f"{API}/stock/products/status", headers=tenant_headers).json()
        assert status["products"][0]["product_id"] == "P001"
        assert status["products"][0]["stock_status"] == "low_stock"

    def test_patch_cannot_set_stock(self, client: TestClient, tenant_headers, flour):
        response = client.patch(f"{API}/stock/products/P001", headers=tenant_headers,
                                json={"current_stock": "5"})

        assert response.status_code == 422


class TestMovementsAPI:
    """Test stock movement endpoints"""

    def test_inbound_then_history(self, client: TestClient, tenant_headers, flour):
        response = client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "50", "unit_price": "20", "direction": "inbound",
            "reference": "INV-1",
        })

        assert response.status_code == 200
        data = response.json()
        assert dec(data["new_stock"]) == Decimal("150")
        assert dec(data["new_average_cost"]) == Decimal("13.3333")

        history = client.get(f"{API}/stock/products/P001/movements", headers=tenant_headers).json()
        assert [e["kind"] for e in history] == ["opening", "inbound"]
        assert history[1]["product_id"] == "P001"
        assert history[1]["reference"] == "INV-1"

    def test_insufficient_stock_is_conflict(self, client: TestClient, tenant_headers, flour):
        response = client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "101", "direction": "outbound",
        })

        assert response.status_code == 409
        assert response.json()["error"] == "InsufficientStock"

    def test_inbound_without_price(self, client: TestClient, tenant_headers, flour):
        response = client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "1", "direction": "inbound",
        })

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_zero_quantity_rejected(self, client: TestClient, tenant_headers, flour):
        response = client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "0", "unit_price": "1", "direction": "inbound",
        })

        assert response.status_code == 422

    def test_correct_and_void(self, client: TestClient, tenant_headers, flour):
        inbound = client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "50", "unit_price": "16", "direction": "inbound",
        }).json()

        corrected = client.put(f"{API}/stock/movements/{inbound['movement_id']}", headers=tenant_headers,
                               json={"unit_price": "20"})
        assert corrected.status_code == 200
        assert dec(corrected.json()["new_average_cost"]) == Decimal("13.3333")

        voided = client.delete(f"{API}/stock/movements/{corrected.json()['movement_id']}", headers=tenant_headers)
        assert voided.status_code == 200
        assert dec(voided.json()["new_stock"]) == Decimal("100")

    def test_reverse(self, client: TestClient, tenant_headers, flour):
        client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "30", "direction": "outbound",
        })

        response = client.post(f"{API}/stock/movements/reverse", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "30", "direction": "outbound",
        })

        assert response.status_code == 200
        assert dec(response.json()["new_stock"]) == Decimal("100")


class TestPurchaseOrdersAPI:
    """Test purchase order and reorder endpoints"""

    def test_order_lifecycle(self, client: TestClient, tenant_headers, flour):
        created = client.post(f"{API}/purchase-orders", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "50", "unit_price": "16",
        })
        assert created.status_code == 201
        order = created.json()
        assert order["status"] == "pending"
        assert dec(order["total_amount"]) == Decimal("800")

        for target in ("approved", "ordered", "received"):
            response = client.post(f"{API}/purchase-orders/{order['id']}/transition",
                                   headers=tenant_headers, json={"status": target})
            assert response.status_code == 200
            assert response.json()["status"] == target

        product = client.get(f"{API}/stock/products/P001", headers=tenant_headers).json()
        assert dec(product["current_stock"]) == Decimal("150")
        assert dec(product["average_cost"]) == Decimal("12")

        stats = client.get(f"{API}/purchase-orders/stats", headers=tenant_headers).json()
        assert stats["by_status"]["received"] == 1

    def test_invalid_transition_is_conflict(self, client: TestClient, tenant_headers, flour):
        order = client.post(f"{API}/purchase-orders", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "5",
        }).json()

        response = client.post(f"{API}/purchase-orders/{order['id']}/transition",
                               headers=tenant_headers, json={"status": "received"})

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    def test_stale_expected_status_is_conflict(self, client: TestClient, tenant_headers, flour):
        order = client.post(f"{API}/purchase-orders", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "5",
        }).json()
        url = f"{API}/purchase-orders/{order['id']}/transition"
        client.post(url, headers=tenant_headers, json={"status": "approved"})

        response = client.post(url, headers=tenant_headers,
                               json={"status": "cancelled", "expected_status": "pending"})

        assert response.status_code == 409
        assert response.json()["error"] == "ConcurrencyConflict"

    def test_edit_after_ordering_is_conflict(self, client: TestClient, tenant_headers, flour):
        order = client.post(f"{API}/purchase-orders", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "5", "status": "ordered",
        }).json()

        response = client.patch(f"{API}/purchase-orders/{order['id']}", headers=tenant_headers,
                                json={"quantity": "6"})

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidState"

    def test_reorder_scan(self, client: TestClient, tenant_headers, flour):
        client.post(f"{API}/stock/movements", headers=tenant_headers, json={
            "product_id": "P001", "quantity": "85", "direction": "outbound",
        })

        candidates = client.get(f"{API}/reorder/candidates", headers=tenant_headers).json()
        assert dec(candidates[0]["suggested_quantity"]) == Decimal("35")

        result = client.post(f"{API}/reorder/scan", headers=tenant_headers).json()
        assert result["scanned"] == 1
        assert result["orders_created"][0]["product_id"] == "P001"

        again = client.post(f"{API}/reorder/scan", headers=tenant_headers).json()
        assert again["orders_created"] == []
        assert again["skipped"][0]["product_id"] == "P001"

        orders = client.get(f"{API}/purchase-orders", headers=tenant_headers,
                            params={"auto_generated": "true"}).json()
        assert len(orders) == 1


class TestInventoryChecksAPI:
    """Test inventory check endpoints"""

    def test_check_workflow(self, client: TestClient, tenant_headers, flour):
        created = client.post(f"{API}/inventory-checks", headers=tenant_headers, json={
            "lines": [{"product_id": "P001", "actual_stock": "97", "reason": "damaged bags"}],
        })
        assert created.status_code == 201
        check = created.json()
        assert check["check_code"].startswith("KK-")
        assert dec(check["lines"][0]["difference"]) == Decimal("-3")

        completed = client.post(f"{API}/inventory-checks/{check['id']}/complete", headers=tenant_headers)
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"

        product = client.get(f"{API}/stock/products/P001", headers=tenant_headers).json()
        assert dec(product["current_stock"]) == Decimal("97")
        assert dec(product["average_cost"]) == Decimal("10")

        deleted = client.delete(f"{API}/inventory-checks/{check['id']}", headers=tenant_headers)
        assert deleted.status_code == 409
        assert deleted.json()["error"] == "InvalidState"

    def test_empty_check_rejected(self, client: TestClient, tenant_headers, flour):
        response = client.post(f"{API}/inventory-checks", headers=tenant_headers, json={"lines": []})

        assert response.status_code == 422

    def test_cancel_and_delete(self, client: TestClient, tenant_headers, flour):
        check = client.post(f"{API}/inventory-checks", headers=tenant_headers, json={
            "lines": [{"product_id": "P001", "actual_stock": "100"}],
        }).json()

        cancelled = client.post(f"{API}/inventory-checks/{check['id']}/cancel", headers=tenant_headers)
        assert cancelled.json()["status"] == "cancelled"

        deleted = client.delete(f"{API}/inventory-checks/{check['id']}", headers=tenant_headers)
        assert deleted.status_code == 200
        assert deleted.json()["success"] is True

        listing = client.get(f"{API}/inventory-checks", headers=tenant_headers).json()
        assert listing == []
