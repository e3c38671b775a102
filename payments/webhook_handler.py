"""
Webhook endpoint for Stripe payment events.
"""

from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Header, Request
from fastapi.responses import JSONResponse

from payments.models import WebhookEnvelope
from payments.webhook_processor import WebhookProcessor, acknowledge
from monitoring.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["stripe"])


async def capture_raw_body(request: Request) -> bytes:
    """
    Read the request body exactly as sent.

    The signature covers these bytes, so the route must not declare a body
    model; FastAPI would parse and the bytes would be lost.
    """
    return await request.body()


@router.post("/stripe-webhook")
async def handle_stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
) -> JSONResponse:
    """
    Handle Stripe webhook events.

    - 400 when the signature or body is invalid
    - 200 for every authentic event, including ones whose handler failed
    - on checkout.session.completed, notification sinks run after the response
    """
    payload = await capture_raw_body(request)
    envelope = WebhookEnvelope(payload=payload, signature=stripe_signature)

    processor: WebhookProcessor = request.app.state.webhook_processor
    outcome = await processor.process(envelope)

    if outcome.notifications:
        background_tasks.add_task(
            request.app.state.notification_fanout.deliver_all,
            outcome.notifications,
        )

    status_code, body = acknowledge(outcome)
    return JSONResponse(status_code=status_code, content=body)
