"""Shared test fixtures.

Each test runs inside a nested DB transaction that is rolled back after the
test completes, so tests never pollute each other. The suite runs against an
in-memory SQLite database unless DATABASE_URL is already set.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("LOGIN_RATE_LIMIT_ATTEMPTS", "1000")
os.environ.setdefault("COOKIE_SECURE", "false")

from datetime import date, timedelta
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.orm import Session

from backend.app.core.database import Base, engine, get_db
from backend.app.core.security import create_access_token, get_password_hash
from backend.app.main import app
from backend.app.models.inventory import Product
from backend.app.models.registry import RoleEnum, User, UserStatus
from backend.app.services.auth_sessions import create_session

TEST_PASSWORD = "Passw0rd!"


@pytest.fixture(scope="session", autouse=True)
def _schema() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


# ─── DB session that rolls back after every test ──────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Yield a DB session wrapped in a SAVEPOINT; rolled back after the test."""
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection)

    # Commits inside endpoints release the savepoint; open a fresh one
    nested = connection.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(session: Session, trans: object) -> None:
        nonlocal nested
        if not nested.is_active:
            nested = connection.begin_nested()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the transactional test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Users ───────────────────────────────────────────────────────────────────


def make_user(
    db: Session,
    username: str,
    role: RoleEnum,
    *,
    status: UserStatus = UserStatus.ACTIVE,
    password: str = TEST_PASSWORD,
) -> User:
    user = User(
        name=username.replace("_", " ").title(),
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
        status=status,
    )
    db.add(user)
    db.flush()
    return user


def token_for(db: Session, user: User) -> str:
    """Open a server-side session for *user* and return its bearer token."""
    session = create_session(db, user)
    db.flush()
    return create_access_token(
        subject=str(user.id), role=user.role.value, session_id=session.session_id
    )


@pytest.fixture()
def admin_user(db: Session) -> User:
    return make_user(db, "test_admin", RoleEnum.ADMIN)


@pytest.fixture()
def salesperson_user(db: Session) -> User:
    return make_user(db, "test_sales", RoleEnum.SALESPERSON)


@pytest.fixture()
def storekeeper_user(db: Session) -> User:
    return make_user(db, "test_store", RoleEnum.STOREKEEPER)


@pytest.fixture()
def admin_token(db: Session, admin_user: User) -> str:
    return token_for(db, admin_user)


@pytest.fixture()
def salesperson_token(db: Session, salesperson_user: User) -> str:
    return token_for(db, salesperson_user)


@pytest.fixture()
def storekeeper_token(db: Session, storekeeper_user: User) -> str:
    return token_for(db, storekeeper_user)


def auth(token: str) -> dict[str, str]:
    """Return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}


# ─── Inventory fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def product_a(db: Session) -> Product:
    p = Product(
        category="Analgesics",
        name="Paracetamol 500mg",
        price=Decimal("100.0000"),
        notes="Box of 20",
        product_code="PARA-500",
        expiry_date=date.today() + timedelta(days=365),
        quantity=50,
    )
    db.add(p)
    db.flush()
    return p


@pytest.fixture()
def product_b(db: Session) -> Product:
    p = Product(
        category="Antibiotics",
        name="Amoxicillin 250mg",
        price=Decimal("200.0000"),
        notes="Capsules",
        product_code="AMOX-250",
        expiry_date=date.today() + timedelta(days=200),
        quantity=30,
    )
    db.add(p)
    db.flush()
    return p


@pytest.fixture()
def expired_product(db: Session) -> Product:
    p = Product(
        category="Syrups",
        name="Cough Syrup",
        price=Decimal("50.0000"),
        notes="100ml",
        expiry_date=date.today() - timedelta(days=3),
        quantity=40,
    )
    db.add(p)
    db.flush()
    return p
