"""
Stripe checkout sessions and verified webhook handling.
"""

from payments.checkout import SessionInitiator
from payments.checkout_client import StripeCheckoutClient
from payments.dispatcher import EventDispatcher
from payments.events import WebhookVerifier
from payments.webhook_processor import WebhookProcessor, acknowledge

__all__ = [
    "SessionInitiator",
    "StripeCheckoutClient",
    "EventDispatcher",
    "WebhookVerifier",
    "WebhookProcessor",
    "acknowledge",
]
