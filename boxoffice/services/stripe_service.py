"""
Stripe Service - Checkout sessions and webhook verification.

The Stripe SDK is blocking, so every API call runs in a worker thread.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import stripe

from boxoffice.config import settings
from boxoffice.errors import ProviderError, SignatureError

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class CheckoutSession:
    """The parts of a Stripe Checkout session this app reads."""

    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


@dataclass(frozen=True)
class WebhookEvent:
    """A verified Stripe event."""

    id: str
    type: str
    session_id: Optional[str] = None


class StripeGateway:
    """Thin async wrapper around the Stripe Checkout API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )

    async def create_checkout_session(
        self,
        *,
        product_name: str,
        product_description: str,
        unit_amount: int,
        quantity: int,
        customer_email: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        currency: str = "usd",
    ) -> CheckoutSession:
        """Create a hosted Checkout session for a single line item."""
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                customer_email=customer_email,
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "product_data": {
                                "name": product_name,
                                "description": product_description,
                            },
                            "unit_amount": unit_amount,
                        },
                        "quantity": quantity,
                    }
                ],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Failed to create checkout session: {e}")
            raise ProviderError("Could not create checkout session") from e

        logger.info(f"Created checkout session {session.id}", extra={"session_id": session.id})
        return CheckoutSession(
            id=session.id,
            url=session.url,
            payment_status=session.payment_status,
        )

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch the live state of a Checkout session."""
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve,
                session_id,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            raise ProviderError(f"Could not retrieve session {session_id}") from e

        return CheckoutSession(
            id=session.id,
            url=session.url,
            payment_status=session.payment_status,
        )

    def construct_event(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify a webhook delivery against the raw request bytes.
        Raises SignatureError when it cannot be trusted.
        """
        if not self.webhook_secret:
            logger.error("Stripe webhook secret not configured, rejecting webhook")
            raise SignatureError("Webhook secret not configured")

        if not signature:
            raise SignatureError("Webhook Error: missing stripe-signature header")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise SignatureError(f"Webhook Error: {e}") from e
        except ValueError as e:
            logger.error(f"Webhook payload could not be parsed: {e}")
            raise SignatureError(f"Webhook Error: {e}") from e

        session_id = None
        if event.type.startswith("checkout.session."):
            session_id = getattr(event.data.object, "id", None)

        return WebhookEvent(id=getattr(event, "id", ""), type=event.type, session_id=session_id)
