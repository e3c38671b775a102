"""
Per-delivery webhook pipeline: verify, parse, dispatch, acknowledge.
"""

from typing import Any, Dict, Optional, Tuple

import structlog

from payments.dispatcher import EventDispatcher
from payments.errors import MalformedEventError, SignatureError
from payments.events import WebhookVerifier
from payments.models import WebhookEnvelope, WebhookOutcome, WebhookState
from monitoring.alerts import AlertManager
from monitoring.logger import get_logger
from monitoring.metrics import Metrics, MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

HANDLER_ERROR_WARNING = "handler-error"


class WebhookProcessor:
    """Runs one webhook delivery from raw bytes to a terminal ``WebhookState``."""

    def __init__(
        self,
        verifier: WebhookVerifier,
        dispatcher: EventDispatcher,
        alerts: Optional[AlertManager] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.verifier = verifier
        self.dispatcher = dispatcher
        self.alerts = alerts or AlertManager()
        self.metrics = metrics or get_metrics_collector()

    async def process(self, envelope: WebhookEnvelope) -> WebhookOutcome:
        """
        Process one delivery.

        Nothing in the body is read before the signature checks out. Once it
        has, the outcome is always an acknowledgement, with a warning if the
        handler failed.
        """
        self.metrics.increment_counter(Metrics.WEBHOOKS_RECEIVED)

        with self.metrics.timer(Metrics.WEBHOOK_PROCESSING):
            try:
                event = self.verifier.verify(envelope)
            except SignatureError as e:
                logger.error(
                    "Webhook signature verification failed",
                    extra={"reason": e.message, "body_bytes": len(envelope.payload)},
                )
                self.alerts.alert_signature_failure(e.message, self.verifier.configured)
                self.metrics.increment_counter(Metrics.WEBHOOKS_REJECTED, labels={"reason": "signature"})
                return WebhookOutcome(state=WebhookState.REJECTED, error=e.message)
            except MalformedEventError as e:
                logger.warning("Verified webhook body is malformed", extra={"reason": e.message})
                self.metrics.increment_counter(Metrics.WEBHOOKS_REJECTED, labels={"reason": "malformed"})
                return WebhookOutcome(state=WebhookState.REJECTED, error=e.message)

            with structlog.contextvars.bound_contextvars(event_id=event.id, event_type=event.raw_type):
                logger.info("Stripe webhook received", extra={"livemode": event.livemode})
                result = await self.dispatcher.dispatch(event)

        self.metrics.increment_counter(Metrics.WEBHOOKS_ACKNOWLEDGED)

        if result.failed:
            return WebhookOutcome(
                state=WebhookState.ACKNOWLEDGED_WITH_WARNING,
                event_id=event.id,
                event_type=event.raw_type,
                warning=HANDLER_ERROR_WARNING,
                error=result.error,
            )

        return WebhookOutcome(
            state=WebhookState.ACKNOWLEDGED,
            event_id=event.id,
            event_type=event.raw_type,
            notifications=result.notifications,
        )


def acknowledge(outcome: WebhookOutcome) -> Tuple[int, Dict[str, Any]]:
    """
    Map an outcome to the HTTP status and body Stripe sees.

    Only a rejected delivery gets a failure status; Stripe retries anything
    that is not 2xx.
    """
    if outcome.state == WebhookState.REJECTED:
        return 400, {"error": f"Webhook Error: {outcome.error or 'invalid signature'}"}

    if outcome.state == WebhookState.ACKNOWLEDGED_WITH_WARNING:
        return 200, {"received": True, "warn": outcome.warning or HANDLER_ERROR_WARNING}

    return 200, {"received": True}
