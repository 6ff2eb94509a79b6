"""
Buy/rent request model.
A request expresses a user's interest in a listing and is resolved by the listing's seller.
"""

from sqlalchemy import String, Text, DateTime, Enum as SQLEnum, Index, ForeignKey, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column
from property_exchange.database import Base
from datetime import datetime
import enum
import uuid
from typing import Optional


class RequestType(str, enum.Enum):
    """Type of interest expressed in a listing."""
    BUY = "buy"
    RENT = "rent"


class RequestStatus(str, enum.Enum):
    """Request status. PENDING is the only non-terminal state."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


ONE_PENDING_INDEX = "uq_listing_requests_one_pending"


class ListingRequest(Base):
    """
    Request to buy or rent a listing.

    ``seller_id`` is copied from the listing owner when the request is created
    and the contact fields are free-form values typed by the requester.
    """

    __tablename__ = "listing_requests"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="User asking to buy or rent"
    )

    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Listing owner at the time the request was made"
    )

    request_type: Mapped[RequestType] = mapped_column(
        SQLEnum(RequestType),
        nullable=False
    )

    status: Mapped[RequestStatus] = mapped_column(
        SQLEnum(RequestStatus),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True
    )

    responded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    contact_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    contact_address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        # One open request per requester and listing
        Index(
            ONE_PENDING_INDEX,
            'listing_id',
            'requester_id',
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<ListingRequest(id={self.id}, type={self.request_type}, status={self.status})>"

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
