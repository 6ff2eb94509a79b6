"""
Repository layer for data access operations.
Provides database operations with proper error handling and row locking where the workflow needs it.
"""

from property_exchange.repositories.base import BaseRepository
from property_exchange.repositories.user import UserRepository
from property_exchange.repositories.listing import ListingRepository
from property_exchange.repositories.request import RequestRepository
from property_exchange.repositories.transaction import TransactionRepository
from property_exchange.repositories.favorite import FavoriteRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ListingRepository",
    "RequestRepository",
    "TransactionRepository",
    "FavoriteRepository",
]
