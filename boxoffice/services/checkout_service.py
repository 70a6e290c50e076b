"""
Checkout Service - order intake.

Saves the registration as pending, opens a Stripe Checkout session for it
and links the two. If Stripe fails after the insert, the pending row stays
behind without a session id; nothing cleans it up.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.config import settings
from boxoffice.models import TICKET_PRICE_CENTS
from boxoffice.schemas import PurchaseRequest
from boxoffice.services.registration_service import RegistrationService
from boxoffice.services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)

# Placeholder Stripe fills in before redirecting back to us
SESSION_ID_TEMPLATE = "{CHECKOUT_SESSION_ID}"


class CheckoutService:
    """Service for turning a purchase form into a Stripe Checkout redirect."""

    def __init__(self, db: AsyncSession, gateway: StripeGateway):
        self.registrations = RegistrationService(db)
        self.gateway = gateway

    async def start_checkout(self, request: PurchaseRequest, base_url: str) -> str:
        """Create the registration and its Checkout session; return the hosted URL."""
        registration = await self.registrations.create_pending(request)

        base_url = base_url.rstrip("/")
        session = await self.gateway.create_checkout_session(
            product_name=settings.ticket_product_name,
            product_description=settings.ticket_product_description,
            unit_amount=TICKET_PRICE_CENTS,
            quantity=request.num_tickets,
            customer_email=request.email,
            success_url=f"{base_url}/success?session_id={SESSION_ID_TEMPLATE}",
            cancel_url=f"{base_url}/cancel",
            metadata={
                "registration_id": str(registration.id),
                "first_name": request.first_name,
                "last_name": request.last_name,
            },
            currency=settings.currency,
        )

        await self.registrations.attach_session_id(registration.id, session.id)
        return session.url
