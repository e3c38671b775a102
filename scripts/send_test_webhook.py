#!/usr/bin/env python3
"""
Script to post a signed test event to a running webhook endpoint.
"""

import argparse
import json
import os
import sys
import time
import uuid

import httpx

from payments.signature import generate_signature_header


def build_checkout_completed_event(amount_cents: int, currency: str, email: str) -> dict:
    """Build a minimal checkout.session.completed event."""
    now = int(time.time())
    return {
        "id": f"evt_test_{uuid.uuid4().hex[:24]}",
        "object": "event",
        "type": "checkout.session.completed",
        "created": now,
        "livemode": False,
        "data": {
            "object": {
                "id": f"cs_test_{uuid.uuid4().hex[:24]}",
                "object": "checkout.session",
                "amount_total": amount_cents,
                "currency": currency,
                "customer_details": {"email": email, "name": "Test Buyer"},
                "payment_status": "paid",
                "created": now,
                "metadata": {
                    "businessName": "Test Business",
                    "contactName": "Test Contact",
                    "phone": "+12505550100",
                },
            }
        },
    }


def send_test_webhook(url: str, secret: str, amount_cents: int, currency: str, email: str) -> int:
    """
    Sign and post a test event.

    Args:
        url: Webhook endpoint URL
        secret: Endpoint signing secret (whsec_...)
        amount_cents: Amount in minor units
        currency: Currency code
        email: Buyer e-mail

    Returns:
        HTTP status code returned by the endpoint
    """
    event = build_checkout_completed_event(amount_cents, currency, email)
    body = json.dumps(event).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "Stripe-Signature": generate_signature_header(body, secret),
    }

    print(f"Posting {event['type']} ({event['id']}) to {url}")
    response = httpx.post(url, content=body, headers=headers, timeout=10.0)
    print(f"Response: {response.status_code} {response.text}")
    return response.status_code


def main():
    parser = argparse.ArgumentParser(description="Send a signed test webhook")
    parser.add_argument("--url", default="http://localhost:8000/api/stripe-webhook")
    parser.add_argument("--secret", default=os.getenv("STRIPE_WEBHOOK_SECRET"))
    parser.add_argument("--amount", type=int, default=2500, help="Amount in cents")
    parser.add_argument("--currency", default="cad")
    parser.add_argument("--email", default="buyer@example.com")

    args = parser.parse_args()

    if not args.secret:
        parser.error("Set STRIPE_WEBHOOK_SECRET or pass --secret")

    status = send_test_webhook(args.url, args.secret, args.amount, args.currency, args.email)
    sys.exit(0 if status == 200 else 1)


if __name__ == "__main__":
    main()
