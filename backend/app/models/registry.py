# Imports every model module so that Base.metadata knows about all tables
# before create_all() or Alembic autogenerate run.

from backend.app.models.user import RoleEnum, User, UserStatus
from backend.app.models.session import UserSession
from backend.app.models.inventory import Product, PublishStatus, Stock
from backend.app.models.sales import PaymentMethod, Sale, SaleItem, SalePaymentStatus
from backend.app.models.order import Order, OrderItem, OrderPaymentStatus, OrderStatus
from backend.app.models.notification import Notification, NotificationType
from backend.app.models.customer import Customer
from backend.app.models.supplier import Supplier
from backend.app.models.employee import Employee, Salary, SalaryPaymentStatus
from backend.app.models.expense import Expense

__all__ = [
    "RoleEnum",
    "User",
    "UserStatus",
    "UserSession",
    "Product",
    "PublishStatus",
    "Stock",
    "PaymentMethod",
    "Sale",
    "SaleItem",
    "SalePaymentStatus",
    "Order",
    "OrderItem",
    "OrderPaymentStatus",
    "OrderStatus",
    "Notification",
    "NotificationType",
    "Customer",
    "Supplier",
    "Employee",
    "Salary",
    "SalaryPaymentStatus",
    "Expense",
]
