"""
HTTP-level tests for the checkout and webhook endpoints.
"""

import pytest
import stripe
from fastapi.testclient import TestClient

from main import create_app
from payments import events
from payments.models import EventType
from helpers import (
    ALLOWED_ORIGIN,
    TEST_CHECKOUT_URL,
    FailingSink,
    RecordingSink,
    SlowSink,
    checkout_session_object,
    encode,
    make_event,
    now,
    signed_headers,
)

WEBHOOK_URL = "/api/stripe-webhook"
CHECKOUT_URL = "/api/create-checkout"


def post_event(client, event, **sign_kwargs):
    body = encode(event)
    return client.post(WEBHOOK_URL, content=body, headers=signed_headers(body, **sign_kwargs))


class TestCheckoutEndpoint:

    def test_post_returns_session_url(self, client, stripe_sessions):
        response = client.post(CHECKOUT_URL, json={
            "amount_cents": 2500,
            "currency": "cad",
            "email": "a@b.com",
            "description": "Listing",
            "businessName": "Gabriola Bakery",
        })

        assert response.status_code == 200
        assert response.json() == {"url": TEST_CHECKOUT_URL}
        [call] = stripe_sessions.calls
        assert call["line_items"][0]["price_data"]["unit_amount"] == 2500
        assert call["line_items"][0]["price_data"]["currency"] == "cad"
        assert call["metadata"] == {"businessName": "Gabriola Bakery"}

    def test_get_redirects_to_checkout(self, client, stripe_sessions):
        response = client.get(
            CHECKOUT_URL,
            params={"amount_cents": "2500", "email": "a@b.com"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == TEST_CHECKOUT_URL

    def test_amount_too_small_rejected_without_provider_call(self, client, stripe_sessions):
        response = client.post(CHECKOUT_URL, json={"amount_cents": 10})

        assert response.status_code == 400
        assert "Amount too small" in response.json()["error"]
        assert stripe_sessions.calls == []

    def test_get_with_bad_amount_returns_json_error(self, client, stripe_sessions):
        response = client.get(CHECKOUT_URL, params={"amount_cents": "abc"}, follow_redirects=False)

        assert response.status_code == 400
        assert stripe_sessions.calls == []

    def test_invalid_json_rejected(self, client):
        response = client.post(CHECKOUT_URL, content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400

    def test_json_array_rejected(self, client):
        response = client.post(CHECKOUT_URL, json=[2500])

        assert response.status_code == 400

    def test_provider_failure_is_server_error(self, client, stripe_sessions):
        stripe_sessions.error = stripe.APIConnectionError("network down")

        response = client.post(CHECKOUT_URL, json={"amount_cents": 2500})

        assert response.status_code == 502
        assert "error" in response.json()

    def test_other_methods_not_allowed(self, client):
        assert client.put(CHECKOUT_URL, json={"amount_cents": 2500}).status_code == 405
        assert client.delete(CHECKOUT_URL).status_code == 405

    def test_preflight_for_allowed_origin(self, client):
        response = client.options(CHECKOUT_URL, headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
        assert response.headers["vary"] == "Origin"

    def test_preflight_for_unknown_origin_omits_allow_origin(self, client):
        response = client.options(CHECKOUT_URL, headers={"Origin": "https://evil.example"})

        assert response.status_code == 204
        assert "access-control-allow-origin" not in response.headers
        assert response.headers["vary"] == "Origin"

    def test_cors_headers_on_real_and_error_responses(self, client, stripe_sessions):
        ok = client.post(CHECKOUT_URL, json={"amount_cents": 2500}, headers={"Origin": ALLOWED_ORIGIN})
        bad = client.post(CHECKOUT_URL, json={"amount_cents": 1}, headers={"Origin": ALLOWED_ORIGIN})

        for response in (ok, bad):
            assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
            assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"


class TestWebhookEndpoint:

    def test_completed_checkout_acknowledged_and_fanned_out(self, client, recording_sink):
        response = post_event(client, make_event())

        assert response.status_code == 200
        assert response.json() == {"received": True}
        [notification] = recording_sink.received
        assert notification.amount_total == 2500
        assert notification.amount_display == "25.00"
        assert notification.currency == "CAD"

    def test_checkout_without_metadata_still_fanned_out(self, client, recording_sink):
        event = make_event(data_object=checkout_session_object(metadata=None))

        response = post_event(client, event)

        assert response.json() == {"received": True}
        [notification] = recording_sink.received
        assert notification.business_name == ""

    def test_invalid_signature_rejected_without_parse_or_fanout(self, client, recording_sink, monkeypatch):
        def fail_parse(verified):
            raise AssertionError("parsed an unverified body")

        monkeypatch.setattr(events, "parse_event", fail_parse)

        response = post_event(client, make_event(), secret="whsec_forged")

        assert response.status_code == 400
        assert recording_sink.received == []

    def test_missing_signature_header_rejected(self, client, recording_sink):
        response = client.post(WEBHOOK_URL, content=encode(make_event()))

        assert response.status_code == 400
        assert recording_sink.received == []

    def test_stale_signature_rejected(self, client, recording_sink):
        response = post_event(client, make_event(), timestamp=now() - 3600)

        assert response.status_code == 400
        assert recording_sink.received == []

    def test_malformed_verified_body_rejected(self, client):
        body = b"definitely not json"

        response = client.post(WEBHOOK_URL, content=body, headers=signed_headers(body))

        assert response.status_code == 400

    def test_unrecognized_event_acknowledged(self, client, recording_sink):
        response = post_event(client, make_event("customer.created", {"id": "cus_1"}))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert recording_sink.received == []

    def test_handler_failure_still_acknowledged(self, app, client, recording_sink):
        async def explode(event):
            raise RuntimeError("bug in handler")

        app.state.webhook_processor.dispatcher.register(EventType.CHECKOUT_SESSION_COMPLETED, explode)

        response = post_event(client, make_event())

        assert response.status_code == 200
        assert response.json() == {"received": True, "warn": "handler-error"}
        assert recording_sink.received == []

    def test_duplicate_delivery_acknowledged_each_time(self, client, recording_sink):
        event = make_event()

        first = post_event(client, event)
        second = post_event(client, event)

        assert first.status_code == second.status_code == 200
        assert {n.event_id for n in recording_sink.received} == {"evt_test_1"}

    def test_get_not_allowed(self, client):
        assert client.get(WEBHOOK_URL).status_code == 405

    def test_unconfigured_secret_rejects(self, settings, metrics, recording_sink, stripe_sessions):
        settings.stripe_webhook_secret = ""
        app = create_app(settings, sinks=[recording_sink], metrics=metrics, configure_logging=False)

        response = post_event(TestClient(app), make_event())

        assert response.status_code == 400
        assert recording_sink.received == []

    def test_sink_failures_do_not_affect_ack_or_siblings(self, settings, metrics, stripe_sessions):
        settings.sink_timeout_seconds = 0.05
        failing, survivor = FailingSink(), RecordingSink()
        app = create_app(settings, sinks=[failing, SlowSink(), survivor], metrics=metrics, configure_logging=False)

        response = post_event(TestClient(app), make_event())

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert failing.attempts == 1
        assert len(survivor.received) == 1


def test_checkout_to_webhook_round_trip(client, stripe_sessions, recording_sink):
    checkout = client.post(CHECKOUT_URL, json={
        "amount_cents": 2500,
        "currency": "cad",
        "email": "a@b.com",
        "description": "Listing",
    })
    assert checkout.status_code == 200

    [call] = stripe_sessions.calls
    price = call["line_items"][0]["price_data"]
    assert (price["unit_amount"], price["currency"]) == (2500, "cad")

    session = {
        "id": "cs_test_123",
        "amount_total": price["unit_amount"],
        "currency": price["currency"],
        "customer_email": call["customer_email"],
        "payment_status": "paid",
        "metadata": call["metadata"],
    }
    response = post_event(client, make_event(data_object=session))

    assert response.status_code == 200
    [notification] = recording_sink.received
    assert f"{notification.amount_display} {notification.currency}" == "25.00 CAD"
    assert notification.customer_email == "a@b.com"


@pytest.mark.parametrize("path", ["/health/live", "/health/ready", "/health"])
def test_health_endpoints(client, path):
    assert client.get(path).status_code == 200


def test_readiness_reports_missing_secret(settings, metrics, recording_sink, stripe_sessions):
    settings.stripe_webhook_secret = ""
    app = create_app(settings, sinks=[recording_sink], metrics=metrics, configure_logging=False)

    body = TestClient(app).get("/health/ready").json()

    assert body["ready"] is False
    assert "STRIPE_WEBHOOK_SECRET" in body["message"]
