"""
Pydantic schemas for request/response validation and serialization.
"""

from property_exchange.schemas.user import UserCreate, UserResponse
from property_exchange.schemas.listing import ListingCreate, ListingResponse
from property_exchange.schemas.request import RequestContact, RequestCreate, RequestResponse
from property_exchange.schemas.transaction import TransactionResponse, CascadeReportResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "ListingCreate",
    "ListingResponse",
    "RequestContact",
    "RequestCreate",
    "RequestResponse",
    "TransactionResponse",
    "CascadeReportResponse",
]
