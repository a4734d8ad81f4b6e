"""
API routers. ``api_router`` mounts every resource under ``/api/v1``.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .categories import router as categories_router
from .menu import router as menu_router
from .orders import router as orders_router
from .products import router as products_router
from .qr import router as qr_router
from .restaurants import router as restaurants_router
from .tables import router as tables_router
from .users import router as users_router

API_PREFIX = "/api/v1"

api_router = APIRouter(prefix=API_PREFIX)
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(restaurants_router)
api_router.include_router(categories_router)
api_router.include_router(products_router)
api_router.include_router(tables_router)
api_router.include_router(orders_router)
api_router.include_router(menu_router)
api_router.include_router(qr_router)

__all__ = ["api_router", "API_PREFIX"]
