"""
Alert routing for payment failures.

Alerts are always logged; error and critical alerts are also forwarded to Sentry
when a DSN is configured.
"""

from typing import Optional, Dict, Any
from enum import Enum

import sentry_sdk

from monitoring.logger import get_logger

logger = get_logger(__name__)


class AlertLevel(str, Enum):
    """Alert severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertManager:
    """Logs operational alerts and escalates the serious ones to Sentry."""

    def __init__(
        self,
        sentry_dsn: Optional[str] = None,
        environment: str = "development",
        traces_sample_rate: float = 0.1,
    ):
        self.sentry_enabled = False

        if sentry_dsn:
            sentry_sdk.init(
                dsn=sentry_dsn,
                environment=environment,
                traces_sample_rate=traces_sample_rate,
            )
            self.sentry_enabled = True
            logger.info("Sentry error tracking initialized")

    def send_alert(
        self,
        level: AlertLevel,
        title: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log an alert and, at ERROR or above, report it to Sentry.

        Args:
            level: Alert severity level
            title: Short, stable alert name (used as the Sentry fingerprint)
            message: Human-readable detail
            context: Extra fields for the log line and the Sentry context
        """
        log_method = getattr(logger, level.value, logger.info)
        log_method(
            f"ALERT: {title}",
            extra={
                "alert_level": level.value,
                "message": message,
                **(context or {}),
            }
        )

        if self.sentry_enabled and level in (AlertLevel.ERROR, AlertLevel.CRITICAL):
            with sentry_sdk.new_scope() as scope:
                scope.set_level(level.value)
                # one Sentry issue per alert kind, not per event id
                scope.fingerprint = ["payments-alert", title]
                if context and context.get("event_id"):
                    scope.set_tag("stripe_event_id", context["event_id"])
                scope.set_context("alert", {
                    "title": title,
                    "message": message,
                    **(context or {}),
                })
                sentry_sdk.capture_message(f"{title}: {message}")

    def alert_signature_failure(self, reason: str, secret_configured: bool) -> None:
        """Alert on a webhook that failed authenticity checks."""
        self.send_alert(
            level=AlertLevel.ERROR if secret_configured else AlertLevel.CRITICAL,
            title="Webhook Signature Rejected",
            message=reason,
            context={"secret_configured": secret_configured},
        )

    def alert_handler_failure(self, event_id: str, event_type: str, error: str) -> None:
        """Alert on a verified event whose handler raised."""
        self.send_alert(
            level=AlertLevel.ERROR,
            title="Webhook Handler Failed",
            message=f"Handler for {event_type} failed on event {event_id}",
            context={"event_id": event_id, "event_type": event_type, "error": error},
        )

    def alert_sink_failure(self, sink: str, event_id: str, error: str) -> None:
        """Alert on a notification sink that could not deliver."""
        self.send_alert(
            level=AlertLevel.WARNING,
            title="Notification Delivery Failed",
            message=f"Sink {sink} failed for event {event_id}",
            context={"sink": sink, "event_id": event_id, "error": error},
        )
