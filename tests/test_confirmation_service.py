"""
Tests for ConfirmationService (webhook and success-page paths).
"""

import json

import pytest
import pytest_asyncio

from boxoffice.errors import ProviderError, SignatureError
from boxoffice.models import PaymentStatus
from boxoffice.services.confirmation_service import ConfirmationService
from boxoffice.services.registration_service import RegistrationService
from boxoffice.services.stripe_service import CheckoutSession, StripeGateway


@pytest_asyncio.fixture
async def registration(db, purchase):
    service = RegistrationService(db)
    registration = await service.create_pending(purchase)
    await service.attach_session_id(registration.id, "cs_test_S123")
    return registration


class TestWebhookPath:
    """Tests for the Stripe webhook confirmation."""

    @pytest.mark.asyncio
    async def test_completed_event_marks_paid(self, db, gateway, registration, fetch_registration, sign_payload, stripe_event):
        payload = stripe_event("checkout.session.completed")

        event = await ConfirmationService(db, gateway).handle_webhook(payload, sign_payload(payload))

        assert event.session_id == "cs_test_S123"
        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PAID.value

    @pytest.mark.asyncio
    async def test_bad_signature_changes_nothing(self, db, gateway, registration, fetch_registration, sign_payload, stripe_event):
        payload = stripe_event("checkout.session.completed")
        signature = sign_payload(payload, secret="whsec_wrong")

        with pytest.raises(SignatureError):
            await ConfirmationService(db, gateway).handle_webhook(payload, signature)

        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_reserialized_body_fails_verification(self, db, gateway, registration, sign_payload, stripe_event):
        """Signature covers the raw bytes, not the parsed JSON."""
        payload = stripe_event("checkout.session.completed")
        signature = sign_payload(payload)
        reserialized = json.dumps(json.loads(payload), indent=2).encode()

        with pytest.raises(SignatureError):
            await ConfirmationService(db, gateway).handle_webhook(reserialized, signature)

    @pytest.mark.asyncio
    async def test_missing_signature_header(self, db, gateway, sign_payload, stripe_event):
        with pytest.raises(SignatureError):
            await ConfirmationService(db, gateway).handle_webhook(
                stripe_event("checkout.session.completed"), None
            )

    @pytest.mark.asyncio
    async def test_missing_webhook_secret(self, db, sign_payload, stripe_event):
        gateway = StripeGateway(api_key="sk_test_dummy", webhook_secret="")
        payload = stripe_event("checkout.session.completed")

        with pytest.raises(SignatureError) as exc_info:
            await ConfirmationService(db, gateway).handle_webhook(payload, sign_payload(payload))
        assert exc_info.value.message == "Webhook secret not configured"

    @pytest.mark.asyncio
    async def test_other_event_types_ignored(self, db, gateway, registration, fetch_registration, sign_payload, stripe_event):
        payload = stripe_event("checkout.session.expired")

        event = await ConfirmationService(db, gateway).handle_webhook(payload, sign_payload(payload))

        assert event.type == "checkout.session.expired"
        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_unknown_session_is_acknowledged(self, db, gateway, registration, fetch_registration, sign_payload, stripe_event):
        payload = stripe_event("checkout.session.completed", session_id="cs_unknown")

        event = await ConfirmationService(db, gateway).handle_webhook(payload, sign_payload(payload))

        assert event.session_id == "cs_unknown"
        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PENDING.value


class TestRedirectPath:
    """Tests for the success-page poll."""

    @pytest.mark.asyncio
    async def test_no_session_id_skips_query(self, db, gateway):
        confirmed = await ConfirmationService(db, gateway).poll_session(None)

        assert confirmed is False
        gateway.retrieve_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_paid_session_marks_paid(self, db, gateway, registration, fetch_registration):
        confirmed = await ConfirmationService(db, gateway).poll_session("cs_test_S123")

        assert confirmed is True
        gateway.retrieve_session.assert_awaited_once_with("cs_test_S123")
        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PAID.value

    @pytest.mark.asyncio
    async def test_unpaid_session_stays_pending(self, db, gateway, registration, fetch_registration):
        gateway.retrieve_session.return_value = CheckoutSession(
            id="cs_test_S123", payment_status="unpaid"
        )

        confirmed = await ConfirmationService(db, gateway).poll_session("cs_test_S123")

        assert confirmed is False
        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_provider_error_is_swallowed(self, db, gateway, registration, fetch_registration):
        gateway.retrieve_session.side_effect = ProviderError("Could not retrieve session")

        confirmed = await ConfirmationService(db, gateway).poll_session("cs_test_S123")

        assert confirmed is False
        reloaded = await fetch_registration(registration.id)
        assert reloaded.payment_status == PaymentStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_without_database_still_reports_status(self, gateway):
        confirmed = await ConfirmationService(None, gateway).poll_session("cs_test_S123")

        assert confirmed is True


@pytest.fixture
def transitions(monkeypatch):
    """Records the result of every paid-transition attempt."""
    results = []
    original = RegistrationService.mark_paid_by_session_id

    async def spy(self, session_id):
        result = await original(self, session_id)
        results.append(result)
        return result

    monkeypatch.setattr(RegistrationService, "mark_paid_by_session_id", spy)
    return results


@pytest.mark.asyncio
async def test_poll_then_webhook_is_single_transition(
    db, gateway, registration, fetch_registration, transitions, sign_payload, stripe_event
):
    """Success page arrives first; the later webhook is a no-op."""
    service = ConfirmationService(db, gateway)

    await service.poll_session("cs_test_S123")
    reloaded = await fetch_registration(registration.id)
    assert reloaded.payment_status == PaymentStatus.PAID.value

    payload = stripe_event("checkout.session.completed")
    await service.handle_webhook(payload, sign_payload(payload))

    assert transitions == [True, False]
    reloaded = await fetch_registration(registration.id)
    assert reloaded.payment_status == PaymentStatus.PAID.value


@pytest.mark.asyncio
async def test_webhook_then_poll_is_single_transition(
    db, gateway, registration, fetch_registration, transitions, sign_payload, stripe_event
):
    service = ConfirmationService(db, gateway)
    payload = stripe_event("checkout.session.completed")

    await service.handle_webhook(payload, sign_payload(payload))
    confirmed = await service.poll_session("cs_test_S123")

    assert confirmed is True
    assert transitions == [True, False]
    reloaded = await fetch_registration(registration.id)
    assert reloaded.payment_status == PaymentStatus.PAID.value
