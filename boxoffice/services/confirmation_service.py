"""
Confirmation Service - the two ways a payment becomes known.

The webhook is authoritative. The success-page poll only lets the admin
listing show "paid" before the webhook lands; buyers who close the tab
never trigger it. Both end in the same conditional update, so they can
run in any order or at the same time.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.errors import PersistenceError, ProviderError
from boxoffice.services.registration_service import RegistrationService
from boxoffice.services.stripe_service import (
    CHECKOUT_COMPLETED,
    StripeGateway,
    WebhookEvent,
)

logger = logging.getLogger(__name__)


class ConfirmationService:
    """Service applying payment confirmations to registrations."""

    def __init__(self, db: Optional[AsyncSession], gateway: StripeGateway):
        self.db = db
        self.gateway = gateway

    async def handle_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify and apply a Stripe webhook delivery.
        Raises SignatureError before touching the store if it can't be verified.
        """
        event = self.gateway.construct_event(payload, signature)

        if event.type == CHECKOUT_COMPLETED:
            if not event.session_id:
                logger.warning(f"Event {event.id} has no session id, ignoring")
                return event
            await self._registrations().mark_paid_by_session_id(event.session_id)
            logger.info(
                f"Payment confirmed via webhook for session {event.session_id}",
                extra={"session_id": event.session_id, "event_type": event.type},
            )
        else:
            logger.info(f"Unhandled Stripe event: {event.type}", extra={"event_type": event.type})

        return event

    async def poll_session(self, session_id: Optional[str]) -> bool:
        """
        Check a session's status when the buyer lands on the success page.

        Returns True if Stripe reports it paid. Failures are logged and
        reported as unconfirmed.
        """
        if not session_id:
            return False

        try:
            session = await self.gateway.retrieve_session(session_id)
            if not session.is_paid:
                return False
            if self.db is not None:
                await self._registrations().mark_paid_by_session_id(session_id)
            return True
        except (ProviderError, PersistenceError) as e:
            logger.error(f"Error retrieving session {session_id}: {e}", exc_info=True)
            return False

    def _registrations(self) -> RegistrationService:
        if self.db is None:
            raise PersistenceError("Database not configured")
        return RegistrationService(self.db)
