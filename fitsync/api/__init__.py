"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from fitsync.api.admin import router as admin_router
from fitsync.api.categories import router as categories_router
from fitsync.api.fit_terms import router as fit_terms_router
from fitsync.api.fitments import router as fitments_router
from fitsync.api.health import router as health_router
from fitsync.api.product_categories import router as product_categories_router
from fitsync.api.public import router as public_router

__all__ = [
    "admin_router",
    "categories_router",
    "fit_terms_router",
    "fitments_router",
    "health_router",
    "product_categories_router",
    "public_router",
]
