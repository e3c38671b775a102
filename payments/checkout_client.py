"""
Stripe client for creating hosted checkout sessions.
"""

from typing import Any, Dict, Optional
import stripe

from payments.errors import ProviderError
from payments.models import CheckoutSession, OrderRequest
from monitoring.logger import get_logger

logger = get_logger(__name__)


class StripeCheckoutClient:
    """Creates one-time payment Checkout Sessions via Stripe."""

    def __init__(
        self,
        api_key: str,
        success_url: str,
        cancel_url: str,
        api_version: Optional[str] = None,
    ):
        """
        Initialize the checkout client.

        The key is passed on every request instead of being assigned to
        ``stripe.api_key``, so several clients can coexist in one process.

        Args:
            api_key: Stripe secret key
            success_url: URL Stripe redirects to after payment
            cancel_url: URL Stripe redirects to when the buyer backs out
            api_version: Stripe API version to pin (optional)
        """
        self.api_key = api_key
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.api_version = api_version

        if not self.api_key:
            logger.warning("Stripe secret key not configured; checkout sessions will fail")

    def build_session_params(self, order: OrderRequest) -> Dict[str, Any]:
        """
        Build the Checkout Session request for an order.

        A single line item with quantity 1 carries the order amount unchanged.
        """
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": [{
                "price_data": {
                    "currency": order.currency,
                    "unit_amount": order.amount_cents,
                    "product_data": {"name": order.description},
                },
                "quantity": 1,
            }],
            "metadata": order.metadata.to_stripe(),
            "success_url": self.success_url,
            "cancel_url": self.cancel_url,
        }

        if order.email:
            params["customer_email"] = str(order.email)

        return params

    def create_session(self, order: OrderRequest) -> CheckoutSession:
        """
        Create a Checkout Session. Blocking; call it from a worker thread.

        Raises:
            ProviderError: If Stripe fails or answers without a session URL
        """
        if not self.api_key:
            raise ProviderError("Payment provider is not configured")

        params = self.build_session_params(order)
        request_options: Dict[str, Any] = {"api_key": self.api_key}
        if self.api_version:
            request_options["stripe_version"] = self.api_version

        try:
            session = stripe.checkout.Session.create(**params, **request_options)
        except stripe.StripeError as e:
            logger.error(
                "Failed to create checkout session",
                extra={
                    "error_type": type(e).__name__,
                    "error_code": getattr(e, "code", None),
                    "amount": order.amount_cents,
                },
                exc_info=True,
            )
            detail = getattr(e, "user_message", None) or type(e).__name__
            raise ProviderError(f"Checkout session could not be created: {detail}") from e

        session_id = getattr(session, "id", None)
        session_url = getattr(session, "url", None)
        if not session_id or not session_url:
            logger.error(
                "Stripe returned a checkout session without an id or url",
                extra={"session_id": session_id},
            )
            raise ProviderError("Checkout session response was missing a redirect URL")

        logger.info(
            "Checkout session created",
            extra={
                "session_id": session_id,
                "amount": order.amount_cents,
                "currency": order.currency,
            }
        )

        return CheckoutSession(
            id=session_id,
            url=session_url,
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )
