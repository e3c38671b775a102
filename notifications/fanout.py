"""
Best-effort fan-out of payment notifications to every configured sink.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional

from notifications.sinks import NotificationSink
from payments.models import PaymentNotification
from monitoring.alerts import AlertManager
from monitoring.logger import get_logger
from monitoring.metrics import Metrics, MetricsCollector, get_metrics_collector

logger = get_logger(__name__)


@dataclass
class SinkResult:
    sink: str
    ok: bool
    error: Optional[str] = None


class NotificationFanout:
    """
    Sends each notification to all sinks concurrently.

    Every sink runs under its own timeout and exception boundary: a slow or
    failing sink is logged and skipped, and never affects the other sinks or
    the caller.
    """

    def __init__(
        self,
        sinks: Iterable[NotificationSink],
        timeout: float = 5.0,
        alerts: Optional[AlertManager] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.sinks: List[NotificationSink] = list(sinks)
        self.timeout = timeout
        self.alerts = alerts or AlertManager()
        self.metrics = metrics or get_metrics_collector()

    async def _deliver_one(self, sink: NotificationSink, notification: PaymentNotification) -> SinkResult:
        try:
            await asyncio.wait_for(sink.send(notification), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = f"timed out after {self.timeout}s"
        except Exception as e:
            error = str(e) or type(e).__name__
        else:
            self.metrics.increment_counter(Metrics.NOTIFICATIONS_SENT, labels={"sink": sink.name})
            return SinkResult(sink=sink.name, ok=True)

        self.metrics.increment_counter(Metrics.NOTIFICATIONS_FAILED, labels={"sink": sink.name})
        self.alerts.alert_sink_failure(sink.name, notification.event_id, error)
        return SinkResult(sink=sink.name, ok=False, error=error)

    async def deliver(self, notification: PaymentNotification) -> List[SinkResult]:
        if not self.sinks:
            logger.debug("No notification sinks configured", extra={"event_id": notification.event_id})
            return []

        results = await asyncio.gather(
            *(self._deliver_one(sink, notification) for sink in self.sinks)
        )

        failed = [r.sink for r in results if not r.ok]
        logger.info(
            "Notification fan-out finished",
            extra={
                "event_id": notification.event_id,
                "delivered": len(results) - len(failed),
                "failed": failed,
            }
        )
        return list(results)

    async def deliver_all(self, notifications: Iterable[PaymentNotification]) -> List[SinkResult]:
        results: List[SinkResult] = []
        for notification in notifications:
            results.extend(await self.deliver(notification))
        return results
