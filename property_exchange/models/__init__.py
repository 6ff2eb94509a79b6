"""
Database models for the Property Exchange API.
Includes User, Listing, ListingRequest, Transaction and Favorite.
"""

from property_exchange.models.user import User, UserRole
from property_exchange.models.listing import Listing, ListingKind, Availability
from property_exchange.models.request import ListingRequest, RequestType, RequestStatus
from property_exchange.models.transaction import Transaction, TransactionType
from property_exchange.models.favorite import Favorite

# Export all models for easy importing
__all__ = [
    "User",
    "UserRole",
    "Listing",
    "ListingKind",
    "Availability",
    "ListingRequest",
    "RequestType",
    "RequestStatus",
    "Transaction",
    "TransactionType",
    "Favorite",
]
