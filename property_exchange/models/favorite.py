"""
Favorite model: a (user, listing) membership marker.
"""

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from property_exchange.database import Base
import uuid


class Favorite(Base):
    __tablename__ = "favorites"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    __table_args__ = (
        UniqueConstraint('user_id', 'listing_id', name='uq_favorites_user_listing'),
    )
