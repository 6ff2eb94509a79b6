"""
Pydantic schemas for listing requests and responses.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
import uuid

from property_exchange.models.listing import ListingKind, Availability


class ListingCreate(BaseModel):
    """Schema for creating a new listing."""

    title: str = Field(
        ...,
        min_length=3,
        max_length=200,
        description="Listing title",
        examples=["Sunny 2BR flat near the park"]
    )

    description: Optional[str] = Field(
        None,
        max_length=1000,
        description="Free-form description"
    )

    address: str = Field(
        ...,
        min_length=3,
        max_length=300,
        description="Property address",
        examples=["12 Harbour Road, Alexandria"]
    )

    price: Decimal = Field(
        ...,
        gt=0,
        max_digits=12,
        decimal_places=2,
        description="Asking price, or rent per period",
        examples=[100000]
    )

    kind: ListingKind = Field(
        ...,
        description="for_sale or for_rent",
        examples=["for_sale"]
    )

    @field_validator('title', 'address')
    @classmethod
    def strip_required_text(cls, v):
        """Validate and clean required text fields."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class ListingResponse(BaseModel):
    """Schema for listing responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    address: str
    price: Decimal
    kind: ListingKind
    availability: Availability
    owner_id: uuid.UUID
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
