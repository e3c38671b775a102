"""
Shared builders and fakes for the test suite.
"""

import asyncio
import json
import time
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from notifications.errors import SinkError
from notifications.sinks import NotificationSink
from payments.models import PaymentNotification
from payments.signature import generate_signature_header

TEST_WEBHOOK_SECRET = "whsec_test_secret"
TEST_CHECKOUT_URL = "https://checkout.stripe.com/c/pay/cs_test_123"
ALLOWED_ORIGIN = "https://gabrioladirectory.ca"


class RecordingSink(NotificationSink):
    """Keeps every notification it is sent."""

    def __init__(self, name: str = "recording"):
        self.name = name
        self.received: List[PaymentNotification] = []

    async def send(self, notification: PaymentNotification) -> None:
        self.received.append(notification)


class FailingSink(NotificationSink):
    name = "failing"

    def __init__(self):
        self.attempts = 0

    async def send(self, notification: PaymentNotification) -> None:
        self.attempts += 1
        raise SinkError(self.name, "downstream unavailable")


class SlowSink(NotificationSink):
    name = "slow"

    async def send(self, notification: PaymentNotification) -> None:
        await asyncio.sleep(10)


class FakeStripeSessions:
    """Stands in for ``stripe.checkout.Session.create``."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.response: Any = SimpleNamespace(id="cs_test_123", url=TEST_CHECKOUT_URL)

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def make_event(
    event_type: str = "checkout.session.completed",
    data_object: Optional[Dict[str, Any]] = None,
    event_id: str = "evt_test_1",
) -> Dict[str, Any]:
    """Build a Stripe-shaped event."""
    if data_object is None:
        data_object = checkout_session_object()
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": 1700000000,
        "livemode": False,
        "data": {"object": data_object},
    }


def checkout_session_object(**overrides) -> Dict[str, Any]:
    session = {
        "id": "cs_test_123",
        "object": "checkout.session",
        "amount_total": 2500,
        "currency": "cad",
        "customer_email": None,
        "customer_details": {"email": "a@b.com", "name": "Ada Buyer"},
        "payment_status": "paid",
        "created": 1700000000,
        "metadata": {
            "businessName": "Gabriola Bakery",
            "contactName": "Ada",
            "phone": "+12505550100",
        },
    }
    session.update(overrides)
    return session


def encode(event: Dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


def signed_headers(
    body: bytes,
    secret: str = TEST_WEBHOOK_SECRET,
    timestamp: Optional[int] = None,
) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Stripe-Signature": generate_signature_header(body, secret, timestamp=timestamp),
    }


def now() -> int:
    return int(time.time())
