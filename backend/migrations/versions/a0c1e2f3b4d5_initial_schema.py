"""Initial pharmacy schema.

Revision ID: a0c1e2f3b4d5
Revises:
Create Date: 2026-10-01 09:00:00.000000+00:00
"""

from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "a0c1e2f3b4d5"
down_revision: Union[str, None] = None
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None

MONEY = sa.Numeric(precision=20, scale=4)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # Enums store member names, matching SQLAlchemy's Enum(PyEnum) mapping
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(150), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("ADMIN", "SALESPERSON", "STOREKEEPER", name="roleenum"),
            nullable=False,
            server_default="SALESPERSON",
        ),
        sa.Column(
            "status",
            sa.Enum("ACTIVE", "INACTIVE", name="userstatus"),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("balance", MONEY, nullable=False, server_default="0"),
        sa.Column("branch", sa.String(255), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_status", "users", ["status"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("session_id", sa.String(128), nullable=False, unique=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "role",
            postgresql.ENUM(
                "ADMIN", "SALESPERSON", "STOREKEEPER", name="roleenum", create_type=False
            ),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column(
            "last_activity",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_sessions_user", "sessions", ["user_id"])
    op.create_index("ix_sessions_is_active", "sessions", ["is_active"])
    op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"])

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("category", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("product_code", sa.String(100), nullable=True, unique=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column(
            "publish_status",
            sa.Enum("YES", "NO", name="publishstatus"),
            nullable=False,
            server_default="YES",
        ),
        sa.Column("image", sa.String(1024), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        sa.CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"),
    )
    op.create_index("ix_products_category", "products", ["category"])
    op.create_index("ix_products_expiry_date", "products", ["expiry_date"])

    op.create_table(
        "stocks",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column(
            "product_id",
            sa.Uuid(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stock_code", sa.String(4), nullable=False, unique=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("total", MONEY, nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("image", sa.String(1024), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        sa.CheckConstraint("price >= 0", name="ck_stock_price_non_negative"),
        sa.CheckConstraint("total >= 0", name="ck_stock_total_non_negative"),
    )
    op.create_index("ix_stocks_product", "stocks", ["product_id"])
    op.create_index("ix_stocks_created_at", "stocks", ["created_at"])

    op.create_table(
        "sales",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("sale_number", sa.String(32), nullable=False, unique=True),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("discount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column(
            "payment_method",
            sa.Enum("CASH", "CARD", "MOBILE_MONEY", "DEBT", name="paymentmethod"),
            nullable=False,
            server_default="CASH",
        ),
        sa.Column(
            "payment_status",
            sa.Enum("COMPLETED", "PENDING", "REFUNDED", name="salepaymentstatus"),
            nullable=False,
            server_default="COMPLETED",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column(
            "cashier_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint("subtotal >= 0", name="ck_sale_subtotal_non_negative"),
        sa.CheckConstraint("discount >= 0", name="ck_sale_discount_non_negative"),
        sa.CheckConstraint("total_amount >= 0", name="ck_sale_total_non_negative"),
    )
    op.create_index("ix_sales_cashier", "sales", ["cashier_id"])
    op.create_index("ix_sales_created_at", "sales", ["created_at"])
    op.create_index("ix_sales_payment_method", "sales", ["payment_method"])
    op.create_index("ix_sales_payment_status", "sales", ["payment_status"])

    op.create_table(
        "sale_items",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column(
            "sale_id",
            sa.Uuid(),
            sa.ForeignKey("sales.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "product_id",
            sa.Uuid(),
            sa.ForeignKey("products.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_sale_item_quantity_positive"),
    )
    op.create_index("ix_sale_items_sale", "sale_items", ["sale_id"])
    op.create_index("ix_sale_items_product", "sale_items", ["product_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("order_number", sa.String(100), nullable=True, unique=True),
        sa.Column("receipt_code", sa.String(100), nullable=False, unique=True),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("discount", MONEY, nullable=False, server_default="0"),
        sa.Column("total", MONEY, nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "PROCESSING", "COMPLETED", "CANCELLED", name="orderstatus"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column(
            "payment_status",
            sa.Enum("PENDING", "PAID", "REFUNDED", "CANCELLED", name="orderpaymentstatus"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("shipping_address", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "inventory_adjusted", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        *_timestamps(),
        sa.CheckConstraint("subtotal >= 0", name="ck_order_subtotal_non_negative"),
        sa.CheckConstraint("discount >= 0", name="ck_order_discount_non_negative"),
        sa.CheckConstraint("total >= 0", name="ck_order_total_non_negative"),
    )
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_payment_status", "orders", ["payment_status"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column(
            "order_id",
            sa.Uuid(),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "product_id",
            sa.Uuid(),
            sa.ForeignKey("products.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("image", sa.String(1024), nullable=True),
        sa.CheckConstraint("price >= 0", name="ck_order_item_price_non_negative"),
        sa.CheckConstraint("quantity >= 1", name="ck_order_item_quantity_positive"),
    )
    op.create_index("ix_order_items_order", "order_items", ["order_id"])
    op.create_index("ix_order_items_product", "order_items", ["product_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column(
            "type",
            sa.Enum("LOW_STOCK", "EXPIRING", "EXPIRED", name="notificationtype"),
            nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "product_id",
            sa.Uuid(),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_product", "notifications", ["product_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("business_address", sa.String(512), nullable=False),
        sa.Column("contact", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_customers_name", "customers", ["name"])
    op.create_index("ix_customers_email", "customers", ["email"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(50), nullable=False),
        sa.Column("address", sa.String(512), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_suppliers_name", "suppliers", ["name"])

    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(512), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(50), nullable=False),
        sa.Column("position", sa.String(255), nullable=False),
        sa.Column("branch", sa.String(255), nullable=False),
        sa.Column("education_level", sa.String(255), nullable=False),
        sa.Column("department", sa.String(255), nullable=False),
        sa.Column("gender", sa.String(50), nullable=False),
        sa.Column("nationality", sa.String(100), nullable=False),
        sa.Column("cv", sa.String(1024), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("salary", MONEY, nullable=False),
        *_timestamps(),
        sa.CheckConstraint("salary >= 0", name="ck_employee_salary_non_negative"),
    )
    op.create_index("ix_employees_email", "employees", ["email"])
    op.create_index("ix_employees_department", "employees", ["department"])

    op.create_table(
        "salaries",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column(
            "employee_id",
            sa.Uuid(),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("month", sa.String(20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column(
            "payment_status",
            sa.Enum("PAID", "UNPAID", name="salarypaymentstatus"),
            nullable=False,
            server_default="UNPAID",
        ),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("transaction_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "employee_id", "month", "year", name="uq_salary_employee_month_year"
        ),
    )
    op.create_index("ix_salaries_employee", "salaries", ["employee_id"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(), nullable=False, primary_key=True),
        sa.Column("item", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("submitted_by", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_expense_amount_non_negative"),
    )
    op.create_index("ix_expenses_date", "expenses", ["date"])


def downgrade() -> None:
    for table in (
        "expenses",
        "salaries",
        "employees",
        "suppliers",
        "customers",
        "notifications",
        "order_items",
        "orders",
        "sale_items",
        "sales",
        "stocks",
        "products",
        "sessions",
        "users",
    ):
        op.drop_table(table)

    for enum_name in (
        "salarypaymentstatus",
        "notificationtype",
        "orderpaymentstatus",
        "orderstatus",
        "salepaymentstatus",
        "paymentmethod",
        "publishstatus",
        "userstatus",
        "roleenum",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
