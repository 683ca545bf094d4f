"""Tests for low-stock/expiry alerts, their endpoints and the periodic tasks."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.models.inventory import Product
from backend.app.models.notification import Notification, NotificationType
from backend.app.services.notifications import (
    check_all_products,
    check_product,
    evaluate_product,
    purge_read_notifications,
    unread_count,
)
from backend.tests.conftest import auth

TODAY = date(2026, 6, 1)


def _product(**overrides) -> Product:
    fields = dict(
        category="General",
        name="Test Item",
        price=Decimal("10"),
        notes="-",
        quantity=100,
        expiry_date=None,
    )
    fields.update(overrides)
    return Product(**fields)


class TestEvaluateProduct:
    def test_healthy_product_has_no_alerts(self) -> None:
        assert evaluate_product(_product(expiry_date=TODAY + timedelta(days=90)), TODAY) == []

    def test_low_stock_below_threshold(self) -> None:
        alerts = evaluate_product(_product(quantity=9), TODAY)
        assert [a[0] for a in alerts] == [NotificationType.LOW_STOCK]
        assert alerts[0][2] == {"quantity": 9}

    def test_threshold_itself_is_not_low(self) -> None:
        assert evaluate_product(_product(quantity=10), TODAY) == []

    def test_untracked_quantity_is_not_low(self) -> None:
        assert evaluate_product(_product(quantity=None), TODAY) == []

    def test_expiring_within_window(self) -> None:
        alerts = evaluate_product(_product(expiry_date=TODAY + timedelta(days=30)), TODAY)
        assert [a[0] for a in alerts] == [NotificationType.EXPIRING]
        assert alerts[0][2]["days_until_expiry"] == 30

    def test_singular_day_wording(self) -> None:
        alerts = evaluate_product(_product(expiry_date=TODAY + timedelta(days=1)), TODAY)
        assert "in 1 day " in alerts[0][1]

    def test_expires_today_is_expiring(self) -> None:
        alerts = evaluate_product(_product(expiry_date=TODAY), TODAY)
        assert [a[0] for a in alerts] == [NotificationType.EXPIRING]

    def test_past_expiry_is_expired(self) -> None:
        alerts = evaluate_product(_product(quantity=2, expiry_date=TODAY - timedelta(days=1)), TODAY)
        assert [a[0] for a in alerts] == [NotificationType.LOW_STOCK, NotificationType.EXPIRED]


class TestCoalescing:
    def test_repeat_check_refreshes_unread_alert(self, db: Session) -> None:
        product = _product(quantity=5)
        db.add(product)
        db.flush()

        check_product(db, product, TODAY)
        product.quantity = 3
        check_product(db, product, TODAY)

        alerts = db.query(Notification).all()
        assert len(alerts) == 1
        assert alerts[0].details == {"quantity": 3}
        assert "3 remaining" in alerts[0].message

    def test_read_alert_is_not_reused(self, db: Session) -> None:
        product = _product(quantity=5)
        db.add(product)
        db.flush()

        first = check_product(db, product, TODAY)
        db.query(Notification).update({Notification.is_read: True})
        check_product(db, product, TODAY)

        assert first == 1
        assert db.query(Notification).count() == 2
        assert unread_count(db) == 1

    def test_scan_covers_all_products(self, db: Session) -> None:
        db.add_all([
            _product(name="Low", quantity=1),
            _product(name="Old", expiry_date=TODAY - timedelta(days=5)),
            _product(name="Fine"),
        ])
        db.flush()
        assert check_all_products(db, TODAY) == 2


class TestPurge:
    def test_only_old_read_alerts_are_removed(self, db: Session) -> None:
        product = _product(quantity=1)
        db.add(product)
        db.flush()
        now = datetime.now(timezone.utc)
        db.add_all([
            Notification(
                type=NotificationType.LOW_STOCK,
                message="old read",
                product_id=product.id,
                product_name=product.name,
                is_read=True,
                read_at=now - timedelta(days=45),
            ),
            Notification(
                type=NotificationType.LOW_STOCK,
                message="recent read",
                product_id=product.id,
                product_name=product.name,
                is_read=True,
                read_at=now - timedelta(days=2),
            ),
            Notification(
                type=NotificationType.EXPIRED,
                message="unread",
                product_id=product.id,
                product_name=product.name,
            ),
        ])
        db.flush()

        assert purge_read_notifications(db, older_than_days=30) == 1
        assert sorted(n.message for n in db.query(Notification).all()) == ["recent read", "unread"]


class TestNotificationEndpoints:
    def _seed(self, db: Session) -> Product:
        product = _product(name="Insulin", quantity=2, expiry_date=date.today() - timedelta(days=5))
        db.add(product)
        db.flush()
        check_product(db, product)
        return product

    def test_list_and_count(
        self, client: TestClient, db: Session, storekeeper_token: str
    ) -> None:
        self._seed(db)
        resp = client.get("/api/notifications", headers=auth(storekeeper_token))
        assert resp.status_code == 200
        notifications = resp.json()["notifications"]
        assert {n["type"] for n in notifications} == {"low_stock", "expired"}
        low = next(n for n in notifications if n["type"] == "low_stock")
        assert low["metadata"] == {"quantity": 2}
        assert low["product_name"] == "Insulin"

        resp = client.get("/api/notifications/count", headers=auth(storekeeper_token))
        assert resp.json() == {"count": 2}

    def test_mark_one_read(
        self, client: TestClient, db: Session, storekeeper_token: str
    ) -> None:
        self._seed(db)
        target = db.query(Notification).first()
        resp = client.patch(
            f"/api/notifications/{target.id}/read", headers=auth(storekeeper_token)
        )
        assert resp.status_code == 200
        assert resp.json()["notification"]["is_read"] is True
        assert resp.json()["notification"]["read_at"] is not None

        resp = client.get(
            "/api/notifications", params={"is_read": "false"}, headers=auth(storekeeper_token)
        )
        assert len(resp.json()["notifications"]) == 1

    def test_mark_all_read(
        self, client: TestClient, db: Session, storekeeper_token: str
    ) -> None:
        self._seed(db)
        resp = client.patch("/api/notifications/read-all", headers=auth(storekeeper_token))
        assert resp.status_code == 200
        assert resp.json()["updated"] == 2
        count = client.get("/api/notifications/count", headers=auth(storekeeper_token))
        assert count.json() == {"count": 0}

    def test_salesperson_has_no_access(
        self, client: TestClient, salesperson_token: str
    ) -> None:
        resp = client.get("/api/notifications", headers=auth(salesperson_token))
        assert resp.status_code == 403

    def test_delete_is_admin_only(
        self,
        client: TestClient,
        db: Session,
        storekeeper_token: str,
        admin_token: str,
    ) -> None:
        self._seed(db)
        target = db.query(Notification).first()
        url = f"/api/notifications/{target.id}"
        assert client.delete(url, headers=auth(storekeeper_token)).status_code == 403
        resp = client.delete(url, headers=auth(admin_token))
        assert resp.json() == {"message": "Notification deleted"}
        assert client.delete(url, headers=auth(admin_token)).status_code == 404


class TestTasks:
    def test_scan_task_commits_through_its_own_session(self, db: Session) -> None:
        from backend.app.workers.tasks.notifications import scan_products

        db.add(_product(name="Low", quantity=1))
        db.flush()
        with patch("backend.app.core.database.SessionLocal", return_value=db), patch.object(
            db, "close"
        ):
            result = scan_products.run()
        assert result == {"raised": 1}

    def test_cleanup_task(self, db: Session) -> None:
        from backend.app.workers.tasks.cleanup import cleanup_sessions

        with patch("backend.app.core.database.SessionLocal", return_value=db), patch.object(
            db, "close"
        ):
            assert cleanup_sessions.run() == {"removed": 0}
