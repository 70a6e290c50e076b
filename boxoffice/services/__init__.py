"""Services package."""

from boxoffice.services.registration_service import RegistrationService, RegistrationStats
from boxoffice.services.stripe_service import StripeGateway, CheckoutSession, WebhookEvent
from boxoffice.services.checkout_service import CheckoutService
from boxoffice.services.confirmation_service import ConfirmationService
from boxoffice.services.page_shell import PageShell, PageShellProvider

__all__ = [
    "RegistrationService",
    "RegistrationStats",
    "StripeGateway",
    "CheckoutSession",
    "WebhookEvent",
    "CheckoutService",
    "ConfirmationService",
    "PageShell",
    "PageShellProvider",
]
