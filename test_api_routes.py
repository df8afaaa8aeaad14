"""
API route tests.

The NetSuite connector dependency is overridden with the in-memory fake, so
every request runs the real sync service without a network.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_connector, get_settings
from api.server import create_app
from conftest import FakeNetSuite, build_order_data
from core.models import SyncSettings


@pytest.fixture
def netsuite() -> FakeNetSuite:
    fake = FakeNetSuite()
    fake.add_item("101", "SKU1")
    return fake


@pytest.fixture
def client(netsuite):
    app = create_app()

    async def fake_connector():
        yield netsuite

    app.dependency_overrides[get_connector] = fake_connector
    app.dependency_overrides[get_settings] = lambda: SyncSettings()
    return TestClient(app)


class TestHealth:

    def test_health(self, client, monkeypatch):
        monkeypatch.setenv("NETSUITE_ENVIRONMENT", "Production")

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["environment"] == "production"

    def test_metrics(self, client):
        data = client.get("/metrics").json()
        assert set(data) == {"orders", "api_calls", "timings"}


class TestOrders:

    def test_sync_order(self, client, netsuite):
        response = client.post("/orders/sync", json=build_order_data())

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["order_id"] == "5001"
        assert data["sales_order_id"] == netsuite.sales_orders[-1].id
        assert data["reconciliation"]["matches"] is True

    def test_failed_order_is_still_200(self, client):
        response = client.post("/orders/sync", json=build_order_data(OrderItemList=[]))

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "OrderValidationError"

    def test_unparsable_amount_is_rejected(self, client, netsuite):
        response = client.post("/orders/sync", json=build_order_data(OrderAmount="N/A"))

        assert response.status_code == 422
        assert netsuite.calls == []

    def test_sync_order_skips_synced(self, client, netsuite):
        netsuite.add_sales_order("5001", "9001")

        data = client.post("/orders/sync", params={"skip_synced": "true"}, json=build_order_data()).json()

        assert data["skipped"] is True
        assert data["sales_order_id"] == "9001"
        assert netsuite.submitted_orders == []

    def test_sync_batch(self, client):
        payload = {
            "orders": [build_order_data(), build_order_data(OrderID="bad")],
            "delay_seconds": 0,
        }

        data = client.post("/orders/sync-batch", json=payload).json()

        assert data["total"] == 2
        assert data["succeeded"] == 1
        assert data["failed"] == 1
        assert data["batch_id"].startswith("batch-")

    def test_sync_batch_rejects_empty_and_long_delays(self, client):
        assert client.post("/orders/sync-batch", json={"orders": []}).status_code == 422
        payload = {"orders": [build_order_data()], "delay_seconds": 60}
        assert client.post("/orders/sync-batch", json=payload).status_code == 422

    def test_sync_status(self, client, netsuite):
        netsuite.add_sales_order("5001", "9001")

        data = client.post("/orders/sync-status", json={"order_ids": ["5001", "5002"]}).json()

        assert data["total"] == 2
        assert data["synced_count"] == 1
        assert data["statuses"]["5001"]["netsuite_id"] == "9001"
        assert data["statuses"]["5002"]["synced"] is False


class TestConnectors:

    def test_list_connectors(self, client):
        assert "netsuite" in client.get("/connectors").json()

    def test_connection_test(self, client):
        data = client.post("/connectors/netsuite/test").json()
        assert data["success"] is True
        assert data["message"] == "Connection successful"
        assert data["latency_ms"] == 12.5

    def test_environment(self, client, monkeypatch):
        monkeypatch.setenv("NETSUITE_ENVIRONMENT", "sandbox")
        monkeypatch.setenv("NETSUITE_SANDBOX_ACCOUNT_ID", "1234567_SB1")
        monkeypatch.setenv("NETSUITE_SANDBOX_CONSUMER_KEY", "ck")
        monkeypatch.setenv("NETSUITE_SANDBOX_CONSUMER_SECRET", "cs")
        monkeypatch.setenv("NETSUITE_SANDBOX_TOKEN_ID", "tk")
        monkeypatch.setenv("NETSUITE_SANDBOX_TOKEN_SECRET", "ts")
        monkeypatch.setenv("NETSUITE_SANDBOX_BASE_URL", "https://1234567-sb1.suitetalk.api.netsuite.com")

        data = client.get("/connectors/netsuite/environment").json()

        assert data["environment"] == "sandbox"
        assert data["is_sandbox"] is True
        assert data["valid"] is True
        assert data["issues"] == []
        assert "consumer_secret" not in data


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
