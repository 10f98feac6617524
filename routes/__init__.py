"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.products import router as products_router
from routes.learning import router as learning_router
from routes.imports import router as imports_router

__all__ = [
    "products_router",
    "learning_router",
    "imports_router",
]
