"""
API tests for ingestion, store management, inventory and health routes.

Uses FastAPI TestClient with HS256 bearer tokens and a per-test SQLite
database; Shopify is served by httpx.MockTransport.
"""

import jwt
import pytest
from fastapi.testclient import TestClient

from storesync.api.routes.ingestion import get_sync_orchestrator
from storesync.config.settings import AuthSettings, SyncSettings
from storesync.main import create_app
from storesync.services.sync_orchestrator import SyncOrchestrator
from storesync.tests.helpers import client_factory_for, shopify_transport

JWT_SECRET = "test-jwt-secret"


def auth_headers(user_id: str, email: str = None) -> dict:
    claims = {"id": user_id}
    if email:
        claims["email"] = email
    token = jwt.encode(claims, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def app(database):
    return create_app(
        database=database,
        auth_settings=AuthSettings(jwt_secret=JWT_SECRET),
        sync_settings=SyncSettings(),
    )


@pytest.fixture
def client(app):
    return TestClient(app)


def use_shopify(app, database, fake_sleep, collections=None, status_code=200):
    transport = shopify_transport(collections or {}, status_code=status_code)
    orchestrator = SyncOrchestrator(
        database,
        settings=SyncSettings(),
        client_factory=client_factory_for(transport),
        sleep=fake_sleep,
    )
    app.dependency_overrides[get_sync_orchestrator] = lambda: orchestrator


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.get("/api/stores")
        assert response.status_code == 401

    def test_invalid_signature(self, client):
        token = jwt.encode({"id": "user-1"}, "wrong-secret", algorithm="HS256")
        response = client.get("/api/stores", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_sub_claim_is_accepted(self, client):
        token = jwt.encode({"sub": "user-1"}, JWT_SECRET, algorithm="HS256")
        response = client.get("/api/stores", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json() == {"stores": []}


class TestStoreRoutes:

    def test_add_list_update_delete(self, client):
        headers = auth_headers("user-1", email="owner@example.com")

        created = client.post(
            "/api/stores",
            json={
                "storeName": "My Shop",
                "shopifyDomain": "https://My-Shop.myshopify.com/",
                "accessToken": "shpat_secret",
            },
            headers=headers,
        )
        assert created.status_code == 201
        store = created.json()["store"]
        assert store["shopifyDomain"] == "my-shop.myshopify.com"
        assert "accessToken" not in store

        listed = client.get("/api/stores", headers=headers).json()["stores"]
        assert [s["id"] for s in listed] == [store["id"]]

        updated = client.put(
            f"/api/stores/{store['id']}", json={"storeName": "Renamed"}, headers=headers
        )
        assert updated.status_code == 200
        assert updated.json()["store"]["storeName"] == "Renamed"

        deleted = client.delete(f"/api/stores/{store['id']}", headers=headers)
        assert deleted.status_code == 200
        assert client.get("/api/stores", headers=headers).json() == {"stores": []}

    def test_duplicate_domain(self, client):
        headers = auth_headers("user-1")
        body = {
            "storeName": "My Shop",
            "shopifyDomain": "my-shop.myshopify.com",
            "accessToken": "shpat_secret",
        }
        assert client.post("/api/stores", json=body, headers=headers).status_code == 201

        response = client.post("/api/stores", json=body, headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "You have already added this store"

    def test_other_users_store_is_404(self, client, make_user, make_tenant):
        tenant = make_tenant(make_user())
        headers = auth_headers("intruder")

        assert client.put(
            f"/api/stores/{tenant.id}", json={"storeName": "Mine now"}, headers=headers
        ).status_code == 404
        assert client.delete(f"/api/stores/{tenant.id}", headers=headers).status_code == 404


class TestIngestionRoutes:

    def test_sync_store(self, app, client, database, make_user, make_tenant, fake_sleep):
        user = make_user()
        tenant = make_tenant(user)
        use_shopify(app, database, fake_sleep, {
            "products": [{"id": 1}],
            "orders": [{"id": 2}, {"id": 3}],
            "customers": [],
            "checkouts": [{"id": 4}],
        })

        response = client.post(
            "/api/ingestion/sync", json={"storeId": tenant.id}, headers=auth_headers(user.id)
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Sync completed successfully",
            "stats": {"products": 1, "orders": 2, "customers": 0, "abandonedCheckouts": 1},
        }

    def test_sync_unknown_store(self, app, client, database, make_user, fake_sleep):
        user = make_user()
        use_shopify(app, database, fake_sleep)

        response = client.post(
            "/api/ingestion/sync", json={"storeId": "missing"}, headers=auth_headers(user.id)
        )
        assert response.status_code == 404

    def test_sync_missing_token(self, app, client, database, make_user, make_tenant, fake_sleep):
        user = make_user()
        tenant = make_tenant(user, access_token=None)
        use_shopify(app, database, fake_sleep)

        response = client.post(
            "/api/ingestion/sync", json={"storeId": tenant.id}, headers=auth_headers(user.id)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing access token"

    def test_sync_shopify_failure(self, app, client, database, make_user, make_tenant, fake_sleep):
        user = make_user()
        tenant = make_tenant(user)
        use_shopify(app, database, fake_sleep, status_code=500)

        response = client.post(
            "/api/ingestion/sync", json={"storeId": tenant.id}, headers=auth_headers(user.id)
        )
        assert response.status_code == 502

    def test_sync_requires_store_id(self, app, client, database, make_user, fake_sleep):
        use_shopify(app, database, fake_sleep)
        response = client.post("/api/ingestion/sync", json={}, headers=auth_headers("user-1"))
        assert response.status_code == 422

    def test_sync_all(self, app, client, database, make_user, make_tenant, fake_sleep):
        user = make_user()
        make_tenant(user, store_name="Alpha")
        make_tenant(user, store_name="Bravo", access_token=None)
        use_shopify(app, database, fake_sleep)

        response = client.post("/api/ingestion/sync-all", headers=auth_headers(user.id))

        assert response.status_code == 200
        body = response.json()
        assert body["totalStores"] == 2
        assert body["successCount"] == 1
        assert body["failCount"] == 1
        results = {r["storeName"]: r for r in body["results"]}
        assert results["Alpha"] == {"storeName": "Alpha", "status": "success"}
        assert results["Bravo"]["error"] == "Missing access token"

    def test_sync_all_without_stores(self, app, client, database, make_user, fake_sleep):
        user = make_user()
        use_shopify(app, database, fake_sleep)

        response = client.post("/api/ingestion/sync-all", headers=auth_headers(user.id))
        assert response.status_code == 400
        assert response.json()["detail"] == "No stores found to sync"


class TestInventoryRoute:

    def test_status(self, app, client, database, make_user, make_tenant, fake_sleep):
        user = make_user()
        tenant = make_tenant(user)
        use_shopify(app, database, fake_sleep, {"products": [
            {"id": 1, "title": "Gone", "variants": [{"title": "A", "inventory_quantity": 0}]},
            {"id": 2, "title": "Few", "product_type": "Mugs",
             "variants": [{"title": "B", "inventory_quantity": 3, "sku": "MUG-1"}]},
            {"id": 3, "title": "Plenty", "variants": [{"title": "C", "inventory_quantity": 40}]},
        ]})
        headers = auth_headers(user.id)
        client.post("/api/ingestion/sync", json={"storeId": tenant.id}, headers=headers)

        response = client.get(f"/api/inventory/status?storeId={tenant.id}", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert [p["name"] for p in body["outOfStock"]] == ["Gone"]
        assert body["outOfStock"][0]["type"] == "N/A"
        assert body["outOfStock"][0]["variants"][0]["sku"] == "N/A"
        low = body["lowStock"]
        assert [p["name"] for p in low] == ["Few"]
        assert low[0]["totalInventory"] == 3
        assert low[0]["variants"] == [{"title": "B", "inventory": 3, "sku": "MUG-1"}]

    def test_unknown_store(self, client, make_user):
        user = make_user()
        response = client.get(
            "/api/inventory/status?storeId=missing", headers=auth_headers(user.id)
        )
        assert response.status_code == 404

    def test_user_without_stores(self, client):
        response = client.get("/api/inventory/status", headers=auth_headers("nobody"))
        assert response.json() == {"outOfStock": [], "lowStock": []}


class TestHealth:

    def test_healthy(self, client):
        response = client.get("/health")
        assert response.json() == {"status": "healthy", "database": True}

    def test_unhealthy_without_database(self):
        app = create_app(auth_settings=AuthSettings(jwt_secret=JWT_SECRET))
        response = TestClient(app).get("/health")
        assert response.json() == {"status": "unhealthy", "database": False}
