"""
Transaction model: the immutable record of a completed sale or rental.
"""

from sqlalchemy import String, DateTime, Numeric, Enum as SQLEnum, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from property_exchange.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import Optional


class TransactionType(str, enum.Enum):
    SOLD = "sold"
    RENTED = "rented"


class Transaction(Base):
    """
    Completed sale or rental.

    Amount and buyer contact details are copies taken when the request was
    accepted, so the record stays meaningful after the request is gone.
    """

    __tablename__ = "transactions"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    buyer_renter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False
    )

    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType),
        nullable=False,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Listing price at acceptance time"
    )

    buyer_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    buyer_email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    buyer_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    buyer_address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, type={self.transaction_type}, amount={self.amount})>"
