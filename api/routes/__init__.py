# Routes module
from .articles import router as articles_router
from .trends import router as trends_router
from .products import router as products_router

__all__ = ["articles_router", "trends_router", "products_router"]
