"""
Pydantic schemas for buy/rent requests.
Contact fields are free-form and carry no business logic beyond length and email format checks.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
import uuid

from property_exchange.models.request import RequestType, RequestStatus


class RequestContact(BaseModel):
    """Contact details the requester shares with the seller."""

    contact_name: Optional[str] = Field(None, max_length=500, examples=["Jane Doe"])
    contact_email: Optional[EmailStr] = Field(None, examples=["jane@example.com"])
    contact_phone: Optional[str] = Field(None, max_length=20, examples=["+20 100 000 0000"])
    contact_address: Optional[str] = Field(None, max_length=300)
    message: Optional[str] = Field(None, max_length=1000)

    @field_validator('contact_name', 'contact_phone', 'contact_address', 'message')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class RequestCreate(RequestContact):
    """Schema for submitting a request against a listing."""

    request_type: RequestType = Field(..., description="buy or rent", examples=["buy"])


class RequestResponse(BaseModel):
    """Schema for request responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    listing_id: uuid.UUID
    requester_id: uuid.UUID
    seller_id: uuid.UUID
    request_type: RequestType
    status: RequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_address: Optional[str] = None
    message: Optional[str] = None
