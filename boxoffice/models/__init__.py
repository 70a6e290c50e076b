"""Models package for database models."""

from boxoffice.models.registration import (
    Registration,
    PaymentStatus,
    TICKET_PRICE_CENTS,
    MIN_TICKETS,
    MAX_TICKETS,
)

__all__ = [
    "Registration",
    "PaymentStatus",
    "TICKET_PRICE_CENTS",
    "MIN_TICKETS",
    "MAX_TICKETS",
]
