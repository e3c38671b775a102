"""
Monitoring and observability module for the payments service.
"""

from monitoring.logger import get_logger, setup_logging
from monitoring.metrics import Metrics, MetricsCollector, get_metrics_collector
from monitoring.alerts import AlertLevel, AlertManager

__all__ = [
    "get_logger",
    "setup_logging",
    "Metrics",
    "MetricsCollector",
    "get_metrics_collector",
    "AlertLevel",
    "AlertManager",
]
