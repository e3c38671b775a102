"""
Turning verified webhook payloads into typed events.
"""

import json

from payments.errors import MalformedEventError
from payments.models import EventType, VerifiedEvent, WebhookEnvelope
from payments.signature import DEFAULT_TOLERANCE, VerifiedPayload, verify_signature


def parse_event(verified: VerifiedPayload) -> VerifiedEvent:
    """
    Decode a verified payload into a ``VerifiedEvent``.

    Raises:
        MalformedEventError: If the body is not a Stripe event object
    """
    try:
        data = json.loads(verified.body)
    except ValueError as e:
        raise MalformedEventError("Webhook body is not valid JSON") from e

    if not isinstance(data, dict):
        raise MalformedEventError("Webhook body is not a JSON object")

    event_id = data.get("id")
    raw_type = data.get("type")
    if not isinstance(event_id, str) or not event_id:
        raise MalformedEventError("Webhook event has no id")
    if not isinstance(raw_type, str) or not raw_type:
        raise MalformedEventError("Webhook event has no type")

    inner = data.get("data")
    data_object = inner.get("object") if isinstance(inner, dict) else None
    created = data.get("created")

    return VerifiedEvent(
        id=event_id,
        type=EventType.from_raw(raw_type),
        raw_type=raw_type,
        created=created if isinstance(created, int) else None,
        livemode=bool(data.get("livemode", False)),
        data_object=data_object if isinstance(data_object, dict) else {},
    )


class WebhookVerifier:
    """Authenticates webhook envelopes with the endpoint signing secret."""

    def __init__(self, secret: str, tolerance: int = DEFAULT_TOLERANCE):
        self.secret = secret
        self.tolerance = tolerance

    @property
    def configured(self) -> bool:
        return bool(self.secret)

    def verify(self, envelope: WebhookEnvelope) -> VerifiedEvent:
        """
        Verify the signature, then parse.

        Raises:
            SignatureError: If the envelope is not authentic
            MalformedEventError: If the authentic body is not an event
        """
        verified = verify_signature(
            envelope.payload,
            envelope.signature,
            self.secret,
            tolerance=self.tolerance,
        )
        return parse_event(verified)
