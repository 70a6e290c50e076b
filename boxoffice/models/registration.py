"""Registration model - one ticket order and its payment status."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, Integer, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from boxoffice.database import Base


# Flat price per ticket, in cents
TICKET_PRICE_CENTS = 5000

MIN_TICKETS = 1
MAX_TICKETS = 20


class PaymentStatus(str, Enum):
    """
    Payment status of a registration.
    The only transition is PENDING -> PAID.
    """

    PENDING = "pending"
    PAID = "paid"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Registration(Base):
    """
    A buyer's ticket order.
    Created pending, gets its Stripe session id attached once,
    then flips to paid at most once.
    """

    __tablename__ = "registrations"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Buyer details
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)

    num_tickets: Mapped[int] = mapped_column(Integer, nullable=False)

    # num_tickets * TICKET_PRICE_CENTS
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    # Stripe Checkout session id (cs_...)
    stripe_session_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )

    payment_status: Mapped[str] = mapped_column(
        String(20),
        default=PaymentStatus.PENDING.value,
        server_default=PaymentStatus.PENDING.value,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Registration {self.id} {self.payment_status}>"
