"""
Pydantic schemas for transactions and cascade reports.
"""

from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
import uuid

from property_exchange.models.transaction import TransactionType


class TransactionResponse(BaseModel):
    """Schema for transaction responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    listing_id: uuid.UUID
    buyer_renter_id: uuid.UUID
    transaction_date: datetime
    transaction_type: TransactionType
    amount: Decimal
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    buyer_phone: Optional[str] = None
    buyer_address: Optional[str] = None


class CascadeReportResponse(BaseModel):
    """Outcome of a cascading deletion."""

    model_config = ConfigDict(from_attributes=True)

    root: str
    deleted: Dict[str, int]
    released_images: List[str]
    failed_images: List[str]
