import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from boxoffice.config import settings
from boxoffice.errors import AuthError
from boxoffice.services.stripe_service import StripeGateway

basic_auth = HTTPBasic(auto_error=False, realm=settings.admin_realm)


def get_stripe_gateway() -> StripeGateway:
    """Stripe client configured from settings."""
    return StripeGateway()


async def get_admin_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
) -> str:
    """
    Validate HTTP Basic credentials against the configured admin account.
    Returns the username if valid, raises AuthError otherwise.
    """
    if credentials is None:
        raise AuthError("Authentication required")

    ok_user = secrets.compare_digest(
        credentials.username.encode(), settings.admin_username.encode()
    )
    ok_pass = secrets.compare_digest(
        credentials.password.encode(), settings.admin_password.encode()
    )
    if not (ok_user and ok_pass):
        raise AuthError("Invalid credentials")

    return credentials.username
