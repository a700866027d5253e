from fastapi import APIRouter
from goryl.api.__init__ import version_prefix
from goryl.auth.routes import auth_router
from goryl.audit.routes import audit_admin_router
from goryl.categories.routes import categories_router, categories_admin_router
from goryl.chat.routes import chat_router
from goryl.common.routes import home_router
from goryl.dashboards.routes import dashboard_router, stats_admin_router
from goryl.finance.routes import finance_admin_router
from goryl.kyc.routes import kyc_router, kyc_admin_router
from goryl.orders.routes import orders_router, orders_admin_router
from goryl.payments.routes import payments_router, payments_admin_router
from goryl.products.routes import prods_public_router, prods_admin_router
from goryl.profiles.routes import profiles_router
from goryl.users.routes import user_router, user_admin_router


public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(auth_router, prefix="/auth",tags=["auth"])
public_routers.include_router(user_router, prefix="/users",tags=["users"])
public_routers.include_router(categories_router, prefix="/categories",tags=["categories"])
public_routers.include_router(prods_public_router, prefix="/products",tags=["products-public"])
public_routers.include_router(orders_router, prefix="/orders",tags=["orders"])
public_routers.include_router(kyc_router, prefix="/kyc",tags=["kyc"])
public_routers.include_router(payments_router, prefix="/payments",tags=["payments"])
public_routers.include_router(chat_router, prefix="/chats",tags=["chat"])
public_routers.include_router(profiles_router, prefix="/profiles",tags=["profiles"])
public_routers.include_router(dashboard_router, prefix="/dashboard",tags=["dashboard"])
public_routers.include_router(home_router,tags=["home"])

#--------------------------------------------------------------------------------------------------------

admin_routers = APIRouter(prefix=f"{version_prefix}/admin")

admin_routers.include_router(user_admin_router, prefix="/users",tags=["users-admin"])
admin_routers.include_router(categories_admin_router, prefix="/categories",tags=["categories-admin"])
admin_routers.include_router(prods_admin_router, prefix="/products",tags=["products-admin"])
admin_routers.include_router(orders_admin_router, prefix="/orders",tags=["orders-admin"])
admin_routers.include_router(kyc_admin_router, prefix="/kyc",tags=["kyc-admin"])
admin_routers.include_router(payments_admin_router, prefix="/payments",tags=["payments-admin"])
admin_routers.include_router(finance_admin_router, prefix="/finance",tags=["finance-admin"])
admin_routers.include_router(audit_admin_router, prefix="/audit",tags=["audit-admin"])
admin_routers.include_router(stats_admin_router,tags=["stats-admin"])
