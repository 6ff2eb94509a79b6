"""
Listing model for properties offered for sale or rent.
Carries the availability state the request workflow transitions and the owned image reference.
"""

from sqlalchemy import String, Text, Integer, Numeric, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from property_exchange.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Optional


class ListingKind(str, enum.Enum):
    """Whether a listing is offered for sale or for rent."""
    FOR_SALE = "for_sale"
    FOR_RENT = "for_rent"


class Availability(str, enum.Enum):
    """Availability state of a listing. Only AVAILABLE has outgoing transitions."""
    AVAILABLE = "available"
    SOLD = "sold"
    RENTED = "rented"


class Listing(Base):
    """
    Listing model.

    ``version`` is the optimistic concurrency token: SQLAlchemy adds
    ``WHERE version = :old`` to every UPDATE and bumps it, so two writers that
    both read the same availability cannot both commit a transition.
    """

    __tablename__ = "listings"

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Free-form description"
    )

    address: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
        comment="Property address"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Asking price, or rent per period"
    )

    kind: Mapped[ListingKind] = mapped_column(
        SQLEnum(ListingKind),
        nullable=False,
        index=True,
        comment="For sale or for rent"
    )

    availability: Mapped[Availability] = mapped_column(
        SQLEnum(Availability),
        nullable=False,
        default=Availability.AVAILABLE,
        index=True,
        comment="Current availability state"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="ID of the user who listed the property"
    )

    image_ref: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Blob store reference of the listing image"
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Optimistic concurrency version"
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, kind={self.kind}, availability={self.availability})>"

    @property
    def is_available(self) -> bool:
        return self.availability == Availability.AVAILABLE

    def to_dict(self) -> dict:
        """Convert listing to dictionary."""
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "address": self.address,
            "price": float(self.price),
            "kind": self.kind.value,
            "availability": self.availability.value,
            "owner_id": str(self.owner_id),
            "image_ref": self.image_ref,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


owner_availability_index = Index(
    'idx_listings_owner_availability',
    Listing.owner_id,
    Listing.availability
)
