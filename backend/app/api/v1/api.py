from fastapi import APIRouter

from backend.app.api.v1.endpoints import (
    auth,
    customers,
    employees,
    expenses,
    notifications,
    orders,
    products,
    salaries,
    sales,
    stock,
    storefront,
    suppliers,
    users,
)

api_router = APIRouter(prefix="/api")

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(storefront.router, prefix="/storefront", tags=["storefront"])
api_router.include_router(stock.router, prefix="/stocks", tags=["stock"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(suppliers.router, prefix="/supplier", tags=["suppliers"])
api_router.include_router(salaries.router, prefix="/salaries", tags=["salaries"])
api_router.include_router(expenses.router, prefix="/expense", tags=["expenses"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
