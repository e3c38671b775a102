"""
Tests for order validation and Stripe checkout session creation.
"""

from types import SimpleNamespace

import pytest
import stripe

from payments.checkout import SessionInitiator, parse_order
from payments.checkout_client import StripeCheckoutClient
from payments.errors import ProviderError, ValidationError
from helpers import TEST_CHECKOUT_URL


def _parse(**params):
    return parse_order(
        params,
        min_amount_cents=50,
        default_currency="cad",
        default_description="Directory listing",
    )


@pytest.fixture
def checkout_client():
    return StripeCheckoutClient(
        api_key="sk_test_123",
        success_url="https://example.com/?paid=1",
        cancel_url="https://example.com/?paid=0",
        api_version="2024-06-20",
    )


class TestParseOrder:

    def test_amount_below_minimum_rejected(self):
        with pytest.raises(ValidationError, match="Amount too small"):
            _parse(amount_cents=49)

    def test_amount_at_minimum_accepted(self):
        assert _parse(amount_cents=50).amount_cents == 50

    @pytest.mark.parametrize("raw", [None, "", "abc", "25.5", True, [2500], "nan", "inf"])
    def test_missing_or_non_numeric_amount_rejected(self, raw):
        with pytest.raises(ValidationError):
            _parse(amount_cents=raw)

    def test_numeric_string_amount_accepted(self):
        assert _parse(amount_cents="2500").amount_cents == 2500

    def test_whole_float_amount_accepted(self):
        assert _parse(amount_cents=2500.0).amount_cents == 2500

    @pytest.mark.parametrize("raw", [99_999_999, "99999999", "99999999.0", 99_999_999.0])
    def test_largest_amount_kept_exact(self, raw):
        assert _parse(amount_cents=raw).amount_cents == 99_999_999

    @pytest.mark.parametrize("raw", [100_000_000, 2**53 + 1, str(2**53 + 1), "1e999999999", 1e20])
    def test_amount_above_maximum_rejected(self, raw):
        with pytest.raises(ValidationError, match="Amount too large"):
            _parse(amount_cents=raw)

    def test_maximum_is_configurable(self):
        order = parse_order(
            {"amount_cents": 2**53 + 1},
            min_amount_cents=50,
            default_currency="cad",
            default_description="Directory listing",
            max_amount_cents=2**60,
        )

        assert order.amount_cents == 2**53 + 1

    def test_defaults_applied(self):
        order = _parse(amount_cents=2500)

        assert order.currency == "cad"
        assert order.description == "Directory listing"
        assert order.email is None

    def test_currency_normalised_to_lower_case(self):
        assert _parse(amount_cents=2500, currency="CAD").currency == "cad"

    @pytest.mark.parametrize("currency", ["CA", "cadd", "12$"])
    def test_invalid_currency_rejected(self, currency):
        with pytest.raises(ValidationError, match="currency"):
            _parse(amount_cents=2500, currency=currency)

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError, match="email"):
            _parse(amount_cents=2500, email="not-an-email")

    def test_metadata_passed_through(self):
        order = _parse(amount_cents=2500, businessName="Bakery", contactName="Ada", phone="250")

        assert order.metadata.to_stripe() == {
            "businessName": "Bakery",
            "contactName": "Ada",
            "phone": "250",
        }

    def test_empty_metadata_dropped(self):
        assert _parse(amount_cents=2500, businessName="  ").metadata.to_stripe() == {}


class TestStripeCheckoutClient:

    @pytest.mark.parametrize("amount", [50, 999, 2500, 99_999_999])
    def test_unit_amount_equals_order_amount(self, checkout_client, amount):
        params = checkout_client.build_session_params(_parse(amount_cents=amount))

        line_items = params["line_items"]
        assert len(line_items) == 1
        assert line_items[0]["quantity"] == 1
        assert line_items[0]["price_data"]["unit_amount"] == amount

    def test_session_params(self, checkout_client):
        order = _parse(amount_cents=2500, currency="cad", email="a@b.com", description="Listing")
        params = checkout_client.build_session_params(order)

        assert params["mode"] == "payment"
        assert params["customer_email"] == "a@b.com"
        assert params["line_items"][0]["price_data"]["currency"] == "cad"
        assert params["line_items"][0]["price_data"]["product_data"] == {"name": "Listing"}
        assert params["success_url"] == "https://example.com/?paid=1"
        assert params["cancel_url"] == "https://example.com/?paid=0"

    def test_customer_email_omitted_when_absent(self, checkout_client):
        params = checkout_client.build_session_params(_parse(amount_cents=2500))
        assert "customer_email" not in params

    def test_create_session_passes_credentials_per_request(self, checkout_client, stripe_sessions):
        session = checkout_client.create_session(_parse(amount_cents=2500))

        assert session.url == TEST_CHECKOUT_URL
        assert session.id == "cs_test_123"
        call = stripe_sessions.calls[0]
        assert call["api_key"] == "sk_test_123"
        assert call["stripe_version"] == "2024-06-20"

    def test_stripe_error_becomes_provider_error(self, checkout_client, stripe_sessions):
        stripe_sessions.error = stripe.APIConnectionError("network down")

        with pytest.raises(ProviderError) as exc_info:
            checkout_client.create_session(_parse(amount_cents=2500))

        assert "sk_test_123" not in exc_info.value.message

    def test_response_without_url_is_provider_error(self, checkout_client, stripe_sessions):
        stripe_sessions.response = SimpleNamespace(id="cs_test_123", url=None)

        with pytest.raises(ProviderError, match="redirect URL"):
            checkout_client.create_session(_parse(amount_cents=2500))

    def test_missing_api_key_fails_without_calling_stripe(self, stripe_sessions):
        client = StripeCheckoutClient(api_key="", success_url="s", cancel_url="c")

        with pytest.raises(ProviderError):
            client.create_session(_parse(amount_cents=2500))

        assert stripe_sessions.calls == []


class TestSessionInitiator:

    @pytest.mark.asyncio
    async def test_create_session_returns_url(self, settings, checkout_client, stripe_sessions, metrics):
        initiator = SessionInitiator(checkout_client, settings, metrics=metrics)

        url = await initiator.create_session({"amount_cents": 2500})

        assert url == TEST_CHECKOUT_URL
        assert metrics.counters["checkout_sessions_created"] == 1

    @pytest.mark.asyncio
    async def test_invalid_order_never_reaches_stripe(self, settings, checkout_client, stripe_sessions, metrics):
        initiator = SessionInitiator(checkout_client, settings, metrics=metrics)

        with pytest.raises(ValidationError):
            await initiator.create_session({"amount_cents": 10})

        assert stripe_sessions.calls == []
        assert metrics.counters["checkout_validation_failed"] == 1

    @pytest.mark.asyncio
    async def test_provider_failure_counted(self, settings, checkout_client, stripe_sessions, metrics):
        stripe_sessions.error = stripe.APIConnectionError("network down")
        initiator = SessionInitiator(checkout_client, settings, metrics=metrics)

        with pytest.raises(ProviderError):
            await initiator.create_session({"amount_cents": 2500})

        assert metrics.counters["checkout_provider_failed"] == 1
