"""
Stripe webhook signature verification.

Stripe signs ``"<timestamp>.<raw body>"`` with HMAC-SHA256 and sends the result in
the ``Stripe-Signature`` header as ``t=<timestamp>,v1=<hex digest>``. The digest
covers the exact request bytes, so the body must reach this module untouched.
"""

import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Optional

import stripe

from payments.errors import SignatureError

DEFAULT_TOLERANCE = 300


@dataclass(frozen=True)
class VerifiedPayload:
    """Body bytes whose signature checked out. Only ``verify_signature`` builds one."""

    body: bytes


def verify_signature(
    payload: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
    tolerance: int = DEFAULT_TOLERANCE,
) -> VerifiedPayload:
    """
    Check a webhook body against its ``Stripe-Signature`` header.

    Comparison is constant-time (``stripe.WebhookSignature``). Every failure mode,
    including a missing secret, raises ``SignatureError``.

    Args:
        payload: Raw request body
        signature_header: Value of the ``Stripe-Signature`` header
        secret: Endpoint signing secret
        tolerance: Maximum age of the signed timestamp, in seconds

    Returns:
        The verified payload, ready for ``parse_event``
    """
    if not secret:
        raise SignatureError("Webhook signing secret is not configured")
    if not signature_header:
        raise SignatureError("Missing Stripe-Signature header")

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise SignatureError("Webhook body is not valid UTF-8")

    try:
        stripe.WebhookSignature.verify_header(text, signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise SignatureError(str(e) or "Invalid signature") from e

    return VerifiedPayload(body=payload)


def generate_signature_header(
    payload: bytes,
    secret: str,
    timestamp: Optional[int] = None,
) -> str:
    """Sign a body the way Stripe does; used by tests and local tooling."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"
