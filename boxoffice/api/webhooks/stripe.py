"""
Stripe Webhook Handler.
Verifies signatures and confirms completed Checkout sessions.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.api.deps import get_stripe_gateway
from boxoffice.database import get_optional_db
from boxoffice.services.confirmation_service import ConfirmationService
from boxoffice.services.stripe_service import StripeGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: Optional[AsyncSession] = Depends(get_optional_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Handle Stripe webhook events.

    Key events:
    - checkout.session.completed: mark the registration paid

    Everything else is acknowledged and ignored. Unknown sessions are
    acknowledged too, so Stripe doesn't keep redelivering them.
    """
    # Signature is computed over the exact bytes Stripe sent
    body = await request.body()
    signature = request.headers.get("stripe-signature")

    await ConfirmationService(db, gateway).handle_webhook(body, signature)
    return {"received": True}
