"""
Checkout Router.
Purchase page, Checkout session creation and the Stripe return pages.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.api.deps import get_stripe_gateway
from boxoffice.config import settings
from boxoffice.database import get_db, get_optional_db
from boxoffice.models import TICKET_PRICE_CENTS
from boxoffice.schemas import PurchaseRequest
from boxoffice.services.checkout_service import CheckoutService
from boxoffice.services.confirmation_service import ConfirmationService
from boxoffice.services.page_shell import PageShell, get_page_shell
from boxoffice.services.stripe_service import StripeGateway
from boxoffice.templating import render_page

logger = logging.getLogger(__name__)
router = APIRouter()

# Options offered in the purchase form
TICKET_CHOICES = range(1, 11)


def get_base_url(request: Request) -> str:
    """Public base URL for Stripe callbacks, honouring proxy headers."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")

    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"


@router.get("/", response_class=HTMLResponse)
async def purchase_page(request: Request, shell: PageShell = Depends(get_page_shell)):
    """Ticket purchase form."""
    return render_page(
        request,
        "home.html",
        f"{settings.site_name} - {settings.ticket_product_description}",
        shell,
        ticket_price=TICKET_PRICE_CENTS,
        ticket_choices=TICKET_CHOICES,
    )


@router.post("/create-checkout-session")
async def create_checkout_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """Validate the form, open a Checkout session and send the buyer there."""
    form = await request.form()
    purchase = PurchaseRequest.from_form(form)

    checkout_url = await CheckoutService(db, gateway).start_checkout(
        purchase, get_base_url(request)
    )
    return RedirectResponse(url=checkout_url, status_code=303)


@router.get("/success", response_class=HTMLResponse)
async def success_page(
    request: Request,
    session_id: Optional[str] = None,
    db: Optional[AsyncSession] = Depends(get_optional_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    shell: PageShell = Depends(get_page_shell),
):
    """Stripe redirect target. Opportunistically confirms the payment."""
    confirmed = await ConfirmationService(db, gateway).poll_session(session_id)
    return render_page(
        request,
        "success.html",
        f"Payment Successful - {settings.site_name}",
        shell,
        confirmed=confirmed,
    )


@router.get("/cancel", response_class=HTMLResponse)
async def cancel_page(request: Request, shell: PageShell = Depends(get_page_shell)):
    """Stripe cancel target."""
    return render_page(
        request,
        "cancel.html",
        f"Payment Cancelled - {settings.site_name}",
        shell,
    )
