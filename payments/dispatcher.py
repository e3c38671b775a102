"""
Event routing for verified Stripe webhooks.

Handlers are looked up by ``EventType``; anything without an entry goes to
``handle_unrecognized``, which only logs. Adding support for an event kind is a
matter of adding it to ``EventType`` and ``DEFAULT_HANDLERS``.

Stripe delivers at least once, so every handler must be safe to run again for
an event it has already seen. Handlers here only read the event and describe
notifications; the sinks receive the event ID to deduplicate on.
"""

from typing import Awaitable, Callable, Dict, List, Optional

from payments.errors import HandlerError
from payments.models import DispatchResult, EventType, PaymentNotification, VerifiedEvent
from monitoring.alerts import AlertManager
from monitoring.logger import get_logger
from monitoring.metrics import Metrics, MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

Handler = Callable[[VerifiedEvent], Awaitable[List[PaymentNotification]]]


async def handle_checkout_completed(event: VerifiedEvent) -> List[PaymentNotification]:
    """Describe a completed checkout for the notification sinks."""
    session = event.checkout_session()
    metadata = session.metadata

    notification = PaymentNotification(
        event_id=event.id,
        event_type=event.raw_type,
        session_id=session.id,
        created_unix=session.created,
        amount_total=session.amount_total or 0,
        currency=(session.currency or "cad").upper(),
        customer_email=session.payer_email,
        customer_name=session.payer_name,
        paid=session.payment_status == "paid",
        business_name=metadata.get("businessName") or "",
        contact_name=metadata.get("contactName") or "",
        phone=metadata.get("phone") or "",
    )

    logger.info(
        "Checkout session completed",
        extra={
            "session_id": session.id,
            "amount": notification.amount_total,
            "currency": notification.currency,
            "paid": notification.paid,
            "business_name": notification.business_name,
        }
    )

    return [notification]


async def handle_async_payment_failed(event: VerifiedEvent) -> List[PaymentNotification]:
    session = event.checkout_session()
    logger.warning(
        "Delayed checkout payment failed",
        extra={
            "session_id": session.id,
            "amount": session.amount_total,
            "customer_email": session.payer_email,
        }
    )
    return []


async def handle_payment_succeeded(event: VerifiedEvent) -> List[PaymentNotification]:
    payment_intent = event.payment_intent()
    logger.info(
        "Payment succeeded",
        extra={
            "payment_id": payment_intent.id,
            "amount": payment_intent.amount,
            "currency": payment_intent.currency,
        }
    )
    return []


async def handle_payment_failed(event: VerifiedEvent) -> List[PaymentNotification]:
    payment_intent = event.payment_intent()
    error = payment_intent.last_payment_error or {}
    logger.warning(
        "Payment failed",
        extra={
            "payment_id": payment_intent.id,
            "amount": payment_intent.amount,
            "error": error.get("message"),
        }
    )
    return []


async def handle_unrecognized(event: VerifiedEvent) -> List[PaymentNotification]:
    """Acknowledge without doing anything; Stripe only needs the 2xx."""
    logger.info("Unhandled event type", extra={"event_type": event.raw_type})
    return []


DEFAULT_HANDLERS: Dict[EventType, Handler] = {
    EventType.CHECKOUT_SESSION_COMPLETED: handle_checkout_completed,
    EventType.CHECKOUT_SESSION_ASYNC_PAYMENT_SUCCEEDED: handle_checkout_completed,
    EventType.CHECKOUT_SESSION_ASYNC_PAYMENT_FAILED: handle_async_payment_failed,
    EventType.PAYMENT_INTENT_SUCCEEDED: handle_payment_succeeded,
    EventType.PAYMENT_INTENT_PAYMENT_FAILED: handle_payment_failed,
    EventType.UNKNOWN: handle_unrecognized,
}


class EventDispatcher:
    """Routes verified events to handlers and contains their failures."""

    def __init__(
        self,
        handlers: Optional[Dict[EventType, Handler]] = None,
        alerts: Optional[AlertManager] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.handlers: Dict[EventType, Handler] = dict(
            DEFAULT_HANDLERS if handlers is None else handlers
        )
        self.alerts = alerts or AlertManager()
        self.metrics = metrics or get_metrics_collector()

    def register(self, event_type: EventType, handler: Handler) -> None:
        self.handlers[event_type] = handler

    async def dispatch(self, event: VerifiedEvent) -> DispatchResult:
        """
        Run the handler for ``event``.

        A handler exception is logged, reported, and returned as
        ``DispatchResult.error``; it never propagates, because the event has
        already been authenticated and Stripe must not be asked to resend it.
        """
        handler = self.handlers.get(event.type, handle_unrecognized)

        try:
            notifications = await handler(event)
        except Exception as e:
            failure = HandlerError(f"{type(e).__name__}: {e}", event.id, event.raw_type)
            logger.error(
                "Webhook handler error",
                extra={"event_id": event.id, "event_type": event.raw_type},
                exc_info=True,
            )
            self.metrics.increment_counter(
                Metrics.WEBHOOK_HANDLER_ERRORS, labels={"event_type": event.raw_type}
            )
            self.alerts.alert_handler_failure(failure.event_id, failure.event_type, failure.message)
            return DispatchResult(
                event_id=event.id,
                event_type=event.type,
                error=failure.message,
            )

        return DispatchResult(
            event_id=event.id,
            event_type=event.type,
            handled=handler is not handle_unrecognized,
            notifications=list(notifications or []),
        )
