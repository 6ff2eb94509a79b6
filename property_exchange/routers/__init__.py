"""
API route handlers for the Property Exchange API.
"""

from .users import router as users_router
from .listings import router as listings_router
from .requests import router as requests_router
from .transactions import router as transactions_router
from .favorites import router as favorites_router

__all__ = [
    "users_router",
    "listings_router",
    "requests_router",
    "transactions_router",
    "favorites_router"
]
