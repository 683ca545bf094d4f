"""Tests for counter sales: checkout, refund, listing and stats."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationError
from backend.app.models.inventory import Product
from backend.app.models.sales import PaymentMethod, Sale, SaleItem, SalePaymentStatus
from backend.app.models.user import User
from backend.app.services import sales as sales_service
from backend.app.services.sales import daily_sales, generate_sale_number, sales_stats
from backend.tests.conftest import auth


def _checkout(client: TestClient, token: str, items: list[dict], **extra):
    return client.post("/api/sales", json={"items": items, **extra}, headers=auth(token))


def _past_sale(
    db: Session, product: Product, cashier: User, *, when: datetime, quantity: int = 1
) -> Sale:
    total = Decimal(str(product.price)) * quantity
    sale = Sale(
        sale_number=f"SALE-{when:%Y%m%d}-{uuid4().hex[:4]}",
        subtotal=total,
        discount=Decimal("0"),
        total_amount=total,
        payment_method=PaymentMethod.CASH,
        payment_status=SalePaymentStatus.COMPLETED,
        cashier_id=cashier.id,
        created_at=when,
        items=[
            SaleItem(
                position=0,
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.price,
                total_price=total,
            )
        ],
    )
    db.add(sale)
    db.flush()
    return sale


class TestCheckout:
    def test_sale_deducts_stock_and_prices_from_catalogue(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        salesperson_user: User,
        product_a: Product,
        product_b: Product,
    ) -> None:
        resp = _checkout(
            client,
            salesperson_token,
            [{"product_id": str(product_a.id), "quantity": 2}, {"id": str(product_b.id), "quantity": 1}],
            payment_method="card",
            discount="50",
            customer_name="Fatmata",
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Sale completed successfully"
        sale = body["sale"]
        assert sale["subtotal"] == 400.0
        assert sale["discount"] == 50.0
        assert sale["total_amount"] == 350.0
        assert sale["payment_method"] == "card"
        assert sale["payment_status"] == "completed"
        assert sale["cashier"]["username"] == "test_sales"
        assert [i["total_price"] for i in sale["items"]] == [200.0, 200.0]
        assert sale["sale_number"].startswith(
            f"SALE-{datetime.now(timezone.utc):%Y%m%d}-"
        )

        db.refresh(product_a)
        db.refresh(product_b)
        assert product_a.quantity == 48
        assert product_b.quantity == 29

    def test_insufficient_stock_leaves_inventory_untouched(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        product_a: Product,
        product_b: Product,
    ) -> None:
        resp = _checkout(
            client,
            salesperson_token,
            [{"product_id": str(product_a.id), "quantity": 1}, {"product_id": str(product_b.id), "quantity": 31}],
        )
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Insufficient stock for Amoxicillin 250mg. Available: 30, Requested: 31"
        }
        db.refresh(product_a)
        assert product_a.quantity == 50
        assert db.query(Sale).count() == 0

    def test_repeated_lines_are_checked_together(
        self, client: TestClient, salesperson_token: str, product_b: Product
    ) -> None:
        line = {"product_id": str(product_b.id), "quantity": 20}
        resp = _checkout(client, salesperson_token, [line, line])
        assert resp.status_code == 400
        assert "Requested: 40" in resp.json()["error"]

    def test_expired_product_cannot_be_sold(
        self, client: TestClient, salesperson_token: str, expired_product: Product
    ) -> None:
        resp = _checkout(
            client, salesperson_token, [{"product_id": str(expired_product.id), "quantity": 1}]
        )
        assert resp.status_code == 400
        assert "expired" in resp.json()["error"]

    def test_unknown_product_is_400(self, client: TestClient, salesperson_token: str) -> None:
        resp = _checkout(client, salesperson_token, [{"product_id": str(uuid4()), "quantity": 1}])
        assert resp.status_code == 400

    def test_empty_cart_is_400(self, client: TestClient, salesperson_token: str) -> None:
        assert _checkout(client, salesperson_token, []).status_code == 400

    def test_discount_above_subtotal_is_400(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        resp = _checkout(
            client,
            salesperson_token,
            [{"product_id": str(product_a.id), "quantity": 1}],
            discount="150",
        )
        assert resp.status_code == 400

    def test_storekeeper_cannot_sell(
        self, client: TestClient, storekeeper_token: str, product_a: Product
    ) -> None:
        resp = _checkout(
            client, storekeeper_token, [{"product_id": str(product_a.id), "quantity": 1}]
        )
        assert resp.status_code == 403

    def test_sale_numbers_increment_within_the_day(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        numbers = [
            _checkout(
                client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
            ).json()["sale"]["sale_number"]
            for _ in range(2)
        ]
        assert [n[-4:] for n in numbers] == ["0001", "0002"]


class TestRefund:
    def _sale_id(self, client: TestClient, token: str, product: Product) -> str:
        resp = _checkout(client, token, [{"product_id": str(product.id), "quantity": 5}])
        return resp.json()["sale"]["id"]

    def test_refund_restores_stock(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        admin_token: str,
        product_a: Product,
    ) -> None:
        sale_id = self._sale_id(client, salesperson_token, product_a)
        resp = client.delete(f"/api/sales/{sale_id}", headers=auth(admin_token))
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Sale refunded successfully"
        assert body["sale"]["payment_status"] == "refunded"
        db.refresh(product_a)
        assert product_a.quantity == 50

    def test_double_refund_is_rejected(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        admin_token: str,
        product_a: Product,
    ) -> None:
        sale_id = self._sale_id(client, salesperson_token, product_a)
        client.delete(f"/api/sales/{sale_id}", headers=auth(admin_token))
        resp = client.delete(f"/api/sales/{sale_id}", headers=auth(admin_token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Sale already refunded"}
        db.refresh(product_a)
        assert product_a.quantity == 50

    def test_salesperson_cannot_refund(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        sale_id = self._sale_id(client, salesperson_token, product_a)
        resp = client.delete(f"/api/sales/{sale_id}", headers=auth(salesperson_token))
        assert resp.status_code == 403

    def test_unknown_sale_is_404(self, client: TestClient, admin_token: str) -> None:
        assert client.delete(f"/api/sales/{uuid4()}", headers=auth(admin_token)).status_code == 404


class TestTransactionalSales:
    @pytest.fixture(autouse=True)
    def _transactions_on(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "SALES_USE_TRANSACTIONS", True)

    def test_checkout_deducts_stock(
        self, client: TestClient, db: Session, salesperson_token: str, product_a: Product
    ) -> None:
        resp = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 5}]
        )
        assert resp.status_code == 201
        db.refresh(product_a)
        assert product_a.quantity == 45

    def test_rejected_cart_leaves_every_product_untouched(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        product_a: Product,
        product_b: Product,
    ) -> None:
        resp = _checkout(
            client,
            salesperson_token,
            [
                {"product_id": str(product_a.id), "quantity": 5},
                {"product_id": str(product_b.id), "quantity": 500},
            ],
        )
        assert resp.status_code == 400
        assert "Available: 30" in resp.json()["error"]
        db.refresh(product_a)
        db.refresh(product_b)
        assert product_a.quantity == 50
        assert product_b.quantity == 30
        assert db.query(Sale).count() == 0

    def test_refund_restores_exact_quantities(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        admin_token: str,
        product_a: Product,
        product_b: Product,
    ) -> None:
        resp = _checkout(
            client,
            salesperson_token,
            [
                {"product_id": str(product_a.id), "quantity": 5},
                {"product_id": str(product_b.id), "quantity": 3},
                {"product_id": str(product_a.id), "quantity": 2},
            ],
        )
        sale_id = resp.json()["sale"]["id"]
        db.refresh(product_a)
        assert product_a.quantity == 43

        resp = client.delete(f"/api/sales/{sale_id}", headers=auth(admin_token))
        assert resp.status_code == 200
        db.refresh(product_a)
        db.refresh(product_b)
        assert product_a.quantity == 50
        assert product_b.quantity == 30

    def test_failed_insert_rolls_back_deductions(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        product_a: Product,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        first = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 5}]
        ).json()["sale"]["sale_number"]
        monkeypatch.setattr(sales_service, "generate_sale_number", lambda db, now=None: first)

        resp = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 4}]
        )
        assert resp.status_code == 409
        db.refresh(product_a)
        assert product_a.quantity == 45
        assert db.query(Sale).count() == 1


class TestSaleNumberClash:
    def test_taken_sale_number_is_409(
        self,
        client: TestClient,
        db: Session,
        salesperson_token: str,
        product_a: Product,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        first = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        ).json()["sale"]["sale_number"]
        monkeypatch.setattr(sales_service, "generate_sale_number", lambda db, now=None: first)

        resp = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        )
        assert resp.status_code == 409
        assert "error" in resp.json()
        db.refresh(product_a)
        assert product_a.quantity == 49


class TestSaleUpdate:
    def test_update_notes_and_status(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        sale_id = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        ).json()["sale"]["id"]
        resp = client.patch(
            f"/api/sales/{sale_id}",
            json={"notes": "Paid later", "payment_status": "pending"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 200
        assert resp.json()["sale"]["notes"] == "Paid later"
        assert resp.json()["sale"]["payment_status"] == "pending"

    def test_setting_refunded_via_patch_is_rejected(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        sale_id = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        ).json()["sale"]["id"]
        resp = client.patch(
            f"/api/sales/{sale_id}",
            json={"payment_status": "refunded"},
            headers=auth(salesperson_token),
        )
        assert resp.status_code == 400

    def test_empty_update_is_400(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        sale_id = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        ).json()["sale"]["id"]
        resp = client.patch(f"/api/sales/{sale_id}", json={}, headers=auth(salesperson_token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "No updates provided"}


class TestListing:
    def test_pagination_and_filters(
        self,
        client: TestClient,
        salesperson_token: str,
        product_a: Product,
    ) -> None:
        for method in ("cash", "cash", "card"):
            _checkout(
                client,
                salesperson_token,
                [{"product_id": str(product_a.id), "quantity": 1}],
                payment_method=method,
                customer_phone="0788000111",
            )

        resp = client.get(
            "/api/sales", params={"page": 1, "limit": 2}, headers=auth(salesperson_token)
        )
        body = resp.json()
        assert len(body["sales"]) == 2
        assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "total_pages": 2}

        resp = client.get(
            "/api/sales", params={"payment_method": "card"}, headers=auth(salesperson_token)
        )
        assert resp.json()["pagination"]["total"] == 1

        resp = client.get(
            "/api/sales", params={"search": "0788000"}, headers=auth(salesperson_token)
        )
        assert resp.json()["pagination"]["total"] == 3

    def test_get_single_sale(
        self, client: TestClient, salesperson_token: str, product_a: Product
    ) -> None:
        sale_id = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        ).json()["sale"]["id"]
        resp = client.get(f"/api/sales/{sale_id}", headers=auth(salesperson_token))
        assert resp.status_code == 200
        assert resp.json()["sale"]["id"] == sale_id


class TestStats:
    def test_today_stats(
        self,
        client: TestClient,
        salesperson_token: str,
        product_a: Product,
        product_b: Product,
    ) -> None:
        _checkout(
            client,
            salesperson_token,
            [{"product_id": str(product_a.id), "quantity": 3}],
        )
        _checkout(
            client,
            salesperson_token,
            [{"product_id": str(product_b.id), "quantity": 1}],
            payment_method="mobile_money",
        )

        resp = client.get(
            "/api/sales/stats", params={"period": "today"}, headers=auth(salesperson_token)
        )
        assert resp.status_code == 200
        stats = resp.json()
        assert stats["period"] == "today"
        assert stats["total_sales"] == 500.0
        assert stats["total_transactions"] == 2
        assert stats["total_items_sold"] == 4
        assert stats["average_transaction"] == 250.0
        assert stats["top_products"][0]["name"] == "Paracetamol 500mg"
        assert stats["top_products"][0]["revenue"] == 300.0
        assert stats["payment_methods"] == {"cash": 1, "mobile_money": 1}

    def test_refunded_sales_are_excluded(
        self,
        client: TestClient,
        salesperson_token: str,
        admin_token: str,
        product_a: Product,
    ) -> None:
        sale_id = _checkout(
            client, salesperson_token, [{"product_id": str(product_a.id), "quantity": 1}]
        ).json()["sale"]["id"]
        client.delete(f"/api/sales/{sale_id}", headers=auth(admin_token))
        resp = client.get("/api/sales/daily", headers=auth(salesperson_token))
        assert resp.json()["total_transactions"] == 0

    def test_unknown_period_is_400(self, client: TestClient, salesperson_token: str) -> None:
        resp = client.get(
            "/api/sales/stats", params={"period": "decade"}, headers=auth(salesperson_token)
        )
        assert resp.status_code == 400

    def test_week_trend_against_previous_week(
        self, db: Session, salesperson_user: User, product_a: Product
    ) -> None:
        now = datetime.now(timezone.utc)
        _past_sale(db, product_a, salesperson_user, when=now - timedelta(days=10))
        _past_sale(db, product_a, salesperson_user, when=now - timedelta(days=2), quantity=2)

        stats = sales_stats(db, "week")
        assert stats["total_sales"] == 200.0
        assert stats["sales_trend"] == 100.0

    def test_service_rejects_unknown_period(self, db: Session) -> None:
        with pytest.raises(ValidationError):
            sales_stats(db, "fortnight")

    def test_daily_trend_is_100_without_yesterday(
        self, db: Session, salesperson_user: User, product_a: Product
    ) -> None:
        _past_sale(db, product_a, salesperson_user, when=datetime.now(timezone.utc))
        daily = daily_sales(db)
        assert daily["total_sales"] == 100.0
        assert daily["sales_trend"] == 100.0
        assert daily["items_sold"] == 1

    def test_daily_with_no_sales(self, db: Session) -> None:
        assert daily_sales(db) == {
            "total_sales": 0.0,
            "total_transactions": 0,
            "items_sold": 0,
            "average_transaction": 0.0,
            "sales_trend": 0.0,
        }

    def test_sale_number_format(self, db: Session) -> None:
        when = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        assert generate_sale_number(db, when) == "SALE-20260315-0001"
