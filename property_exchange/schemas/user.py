"""
Pydantic schemas for user registration and responses.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime
import uuid

from property_exchange.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for registering a user known to the identity provider."""

    email: EmailStr = Field(..., examples=["owner@example.com"])
    full_name: str = Field(..., min_length=1, max_length=255, examples=["Ahmed Ali"])
    role: UserRole = Field(UserRole.USER)

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
