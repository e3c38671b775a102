"""
Session initiation: turn caller-supplied order fields into a Stripe checkout URL.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from config.settings import Settings
from payments.checkout_client import StripeCheckoutClient
from payments.errors import ProviderError, ValidationError
from payments.models import CheckoutSession, OrderMetadata, OrderRequest
from monitoring.logger import get_logger
from monitoring.metrics import Metrics, MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

# Largest unit_amount Stripe accepts for a Checkout line item
STRIPE_MAX_AMOUNT_CENTS = 99_999_999


def _parse_amount(raw: Any, minimum: int, maximum: int) -> int:
    if raw is None or raw == "":
        raise ValidationError("amount_cents is required")
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise ValidationError("amount_cents must be a number")

    # exact for integers of any size
    try:
        value = Decimal(raw.strip() if isinstance(raw, str) else raw)
    except InvalidOperation:
        raise ValidationError("amount_cents must be a number")

    if not value.is_finite():
        raise ValidationError("amount_cents must be a number")
    if value < minimum:
        raise ValidationError(f"Amount too small (minimum is {minimum})")
    if value > maximum:
        raise ValidationError(f"Amount too large (maximum is {maximum})")
    if value != value.to_integral_value():
        raise ValidationError("amount_cents must be a whole number of minor units")
    return int(value)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_order(
    params: Mapping[str, Any],
    min_amount_cents: int,
    default_currency: str,
    default_description: str,
    max_amount_cents: int = STRIPE_MAX_AMOUNT_CENTS,
) -> OrderRequest:
    """
    Validate raw order fields from a query string or JSON body.

    Amounts outside [minimum, maximum] are rejected, never clamped, and
    accepted amounts are kept exact. Metadata fields are
    carried through as opaque strings.

    Raises:
        ValidationError: If any attribute is missing or malformed
    """
    amount = _parse_amount(params.get("amount_cents"), min_amount_cents, max_amount_cents)

    try:
        return OrderRequest(
            amount_cents=amount,
            currency=(_clean(params.get("currency")) or default_currency).lower(),
            description=_clean(params.get("description")) or default_description,
            email=_clean(params.get("email")),
            metadata=OrderMetadata(
                businessName=_clean(params.get("businessName")),
                contactName=_clean(params.get("contactName")),
                phone=_clean(params.get("phone")),
            ),
        )
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "request"
        raise ValidationError(f"Invalid {field}: {error['msg']}") from e


class SessionInitiator:
    """Validates order requests and opens Stripe checkout sessions for them."""

    def __init__(
        self,
        client: StripeCheckoutClient,
        settings: Settings,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.client = client
        self.settings = settings
        self.metrics = metrics or get_metrics_collector()

    def parse(self, params: Mapping[str, Any]) -> OrderRequest:
        return parse_order(
            params,
            min_amount_cents=self.settings.checkout_min_amount_cents,
            max_amount_cents=self.settings.checkout_max_amount_cents,
            default_currency=self.settings.checkout_default_currency,
            default_description=self.settings.checkout_default_description,
        )

    async def open_session(self, order: OrderRequest) -> CheckoutSession:
        """Create the session on a worker thread; Stripe's client is blocking."""
        try:
            session = await run_in_threadpool(self.client.create_session, order)
        except ProviderError:
            self.metrics.increment_counter(Metrics.CHECKOUT_PROVIDER_FAILED)
            raise
        self.metrics.increment_counter(Metrics.CHECKOUT_SESSIONS_CREATED)
        return session

    async def create_session(self, params: Mapping[str, Any]) -> str:
        """
        Validate the order fields and return the hosted checkout URL.

        Args:
            params: Raw order fields (``amount_cents``, ``currency``, ``email``,
                ``description``, ``businessName``, ``contactName``, ``phone``)

        Returns:
            Redirect URL of the new checkout session

        Raises:
            ValidationError: Bad or missing order attributes; Stripe is not called
            ProviderError: Stripe failed or returned a malformed session
        """
        try:
            order = self.parse(params)
        except ValidationError as e:
            self.metrics.increment_counter(Metrics.CHECKOUT_VALIDATION_FAILED)
            logger.info("Checkout request rejected", extra={"reason": e.message})
            raise

        session = await self.open_session(order)
        return session.url
