"""Tests for products, the public storefront and stock batches."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.models.inventory import Product, Stock
from backend.app.models.notification import Notification, NotificationType
from backend.tests.conftest import auth

PRODUCT_PAYLOAD = {
    "category": "Vitamins",
    "name": "Vitamin C 1000mg",
    "price": "45.50",
    "notes": "Effervescent tablets",
    "product_code": "VITC-1000",
    "quantity": 120,
    "expiry_date": (date.today() + timedelta(days=400)).isoformat(),
}


class TestProductAccess:
    def test_every_role_can_list(
        self,
        client: TestClient,
        product_a: Product,
        admin_token: str,
        salesperson_token: str,
        storekeeper_token: str,
    ) -> None:
        for token in (admin_token, salesperson_token, storekeeper_token):
            resp = client.get("/api/products", headers=auth(token))
            assert resp.status_code == 200
            assert [p["name"] for p in resp.json()["products"]] == ["Paracetamol 500mg"]

    def test_anonymous_cannot_list(self, client: TestClient) -> None:
        assert client.get("/api/products").status_code == 401

    def test_salesperson_cannot_create(
        self, client: TestClient, salesperson_token: str
    ) -> None:
        resp = client.post("/api/products", json=PRODUCT_PAYLOAD, headers=auth(salesperson_token))
        assert resp.status_code == 403

    def test_storekeeper_cannot_delete(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        resp = client.delete(f"/api/products/{product_a.id}", headers=auth(storekeeper_token))
        assert resp.status_code == 403


class TestProductCrud:
    def test_create_product(self, client: TestClient, storekeeper_token: str) -> None:
        resp = client.post("/api/products", json=PRODUCT_PAYLOAD, headers=auth(storekeeper_token))
        assert resp.status_code == 201
        product = resp.json()["product"]
        assert product["name"] == "Vitamin C 1000mg"
        assert product["price"] == 45.5
        assert product["quantity"] == 120
        assert product["publish_status"] == "yes"

    def test_missing_required_field_is_400(
        self, client: TestClient, storekeeper_token: str
    ) -> None:
        payload = {k: v for k, v in PRODUCT_PAYLOAD.items() if k != "notes"}
        resp = client.post("/api/products", json=payload, headers=auth(storekeeper_token))
        assert resp.status_code == 400
        assert "notes" in resp.json()["error"]

    def test_duplicate_product_code_is_409(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        payload = {**PRODUCT_PAYLOAD, "product_code": "PARA-500"}
        resp = client.post("/api/products", json=payload, headers=auth(storekeeper_token))
        assert resp.status_code == 409

    def test_partial_update(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        resp = client.patch(
            f"/api/products/{product_a.id}",
            json={"price": "120.00", "quantity": 60},
            headers=auth(storekeeper_token),
        )
        assert resp.status_code == 200
        product = resp.json()["product"]
        assert product["price"] == 120.0
        assert product["quantity"] == 60
        assert product["name"] == "Paracetamol 500mg"

    def test_empty_update_is_400(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        resp = client.patch(
            f"/api/products/{product_a.id}", json={}, headers=auth(storekeeper_token)
        )
        assert resp.status_code == 400

    def test_null_on_required_field_is_ignored(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        resp = client.patch(
            f"/api/products/{product_a.id}",
            json={"name": None, "quantity": 12},
            headers=auth(storekeeper_token),
        )
        assert resp.status_code == 200
        assert resp.json()["product"]["name"] == "Paracetamol 500mg"

    def test_unknown_product_is_404(self, client: TestClient, admin_token: str) -> None:
        resp = client.get(f"/api/products/{uuid4()}", headers=auth(admin_token))
        assert resp.status_code == 404
        assert resp.json() == {"error": "Product not found"}

    def test_admin_deletes_product_and_its_stock(
        self, client: TestClient, db: Session, admin_token: str, product_a: Product
    ) -> None:
        db.add(
            Stock(
                product_id=product_a.id,
                stock_code="AB12",
                quantity=10,
                price=product_a.price,
                total=product_a.price * 10,
                date=datetime.now(timezone.utc),
                supplier="Acme Pharma",
                notes="Batch",
            )
        )
        db.flush()
        product_id = product_a.id
        resp = client.delete(f"/api/products/{product_id}", headers=auth(admin_token))
        assert resp.status_code == 200
        assert resp.json() == {"message": "Product deleted"}
        assert db.query(Product).filter(Product.id == product_id).first() is None
        assert db.query(Stock).filter(Stock.product_id == product_id).count() == 0

    def test_deleting_product_drops_alerts_and_detaches_order_lines(
        self, client: TestClient, db: Session, admin_token: str, product_a: Product
    ) -> None:
        db.add(
            Notification(
                type=NotificationType.LOW_STOCK,
                message="Paracetamol 500mg is low on stock",
                product_id=product_a.id,
                product_name=product_a.name,
            )
        )
        db.flush()
        order_id = client.post(
            "/api/orders", json={"items": [{"id": str(product_a.id), "quantity": 1}]}
        ).json()["order"]["id"]

        resp = client.delete(f"/api/products/{product_a.id}", headers=auth(admin_token))
        assert resp.status_code == 200

        assert db.query(Notification).count() == 0
        order = client.get(f"/api/orders/{order_id}", headers=auth(admin_token)).json()["order"]
        assert order["items"][0]["product_id"] is None
        assert order["items"][0]["name"] == "Paracetamol 500mg"


class TestProductAlerts:
    def test_low_stock_product_raises_alert_on_create(
        self, client: TestClient, db: Session, storekeeper_token: str
    ) -> None:
        payload = {**PRODUCT_PAYLOAD, "quantity": 3}
        resp = client.post("/api/products", json=payload, headers=auth(storekeeper_token))
        product_id = resp.json()["product"]["id"]
        alerts = db.query(Notification).all()
        assert [(str(n.product_id), n.type) for n in alerts] == [
            (product_id, NotificationType.LOW_STOCK)
        ]

    def test_update_into_expiry_window_raises_alert(
        self, client: TestClient, db: Session, storekeeper_token: str, product_a: Product
    ) -> None:
        soon = (date.today() + timedelta(days=5)).isoformat()
        client.patch(
            f"/api/products/{product_a.id}",
            json={"expiry_date": soon},
            headers=auth(storekeeper_token),
        )
        types = {n.type for n in db.query(Notification).all()}
        assert types == {NotificationType.EXPIRING}


class TestStorefront:
    def test_public_listing(
        self, client: TestClient, db: Session, product_a: Product, product_b: Product
    ) -> None:
        product_b.quantity = 0
        db.flush()

        resp = client.get("/api/storefront/products")
        assert resp.status_code == 200
        assert len(resp.json()["products"]) == 2

        resp = client.get("/api/storefront/products", params={"in_stock_only": "true"})
        assert [p["name"] for p in resp.json()["products"]] == ["Paracetamol 500mg"]

    def test_public_detail(self, client: TestClient, product_a: Product) -> None:
        resp = client.get(f"/api/storefront/products/{product_a.id}")
        assert resp.status_code == 200
        assert resp.json()["product"]["product_code"] == "PARA-500"

    def test_public_detail_unknown(self, client: TestClient) -> None:
        assert client.get(f"/api/storefront/products/{uuid4()}").status_code == 404


class TestStock:
    def _payload(self, product: Product) -> dict:
        return {
            "product_id": str(product.id),
            "quantity": 25,
            "price": "80.00",
            "total": "2000.00",
            "date": "2026-03-01T10:00:00Z",
            "supplier": "Acme Pharma",
            "notes": "Quarterly restock",
        }

    def test_storekeeper_records_batch(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        resp = client.post(
            "/api/stocks", json=self._payload(product_a), headers=auth(storekeeper_token)
        )
        assert resp.status_code == 201
        stock = resp.json()["stock"]
        assert len(stock["stock_code"]) == 4
        assert stock["stock_code"].isalnum()
        assert stock["total"] == 2000.0

    def test_batch_does_not_change_product_quantity(
        self, client: TestClient, db: Session, storekeeper_token: str, product_a: Product
    ) -> None:
        client.post("/api/stocks", json=self._payload(product_a), headers=auth(storekeeper_token))
        db.refresh(product_a)
        assert product_a.quantity == 50

    def test_unknown_product_is_400(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        payload = {**self._payload(product_a), "product_id": str(uuid4())}
        resp = client.post("/api/stocks", json=payload, headers=auth(storekeeper_token))
        assert resp.status_code == 400

    def test_salesperson_has_no_access(
        self, client: TestClient, salesperson_token: str
    ) -> None:
        assert client.get("/api/stocks", headers=auth(salesperson_token)).status_code == 403

    def test_update_and_delete(
        self,
        client: TestClient,
        storekeeper_token: str,
        admin_token: str,
        product_a: Product,
    ) -> None:
        stock_id = client.post(
            "/api/stocks", json=self._payload(product_a), headers=auth(storekeeper_token)
        ).json()["stock"]["id"]

        resp = client.patch(
            f"/api/stocks/{stock_id}",
            json={"supplier": "Beta Meds"},
            headers=auth(storekeeper_token),
        )
        assert resp.json()["stock"]["supplier"] == "Beta Meds"

        assert (
            client.delete(f"/api/stocks/{stock_id}", headers=auth(storekeeper_token)).status_code
            == 403
        )
        resp = client.delete(f"/api/stocks/{stock_id}", headers=auth(admin_token))
        assert resp.json() == {"message": "Stock deleted"}
        assert client.get(f"/api/stocks/{stock_id}", headers=auth(admin_token)).status_code == 404
