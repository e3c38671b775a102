"""
Health check endpoints for the payments service.
"""

import psutil
from typing import Dict, Any, List
from fastapi import APIRouter, Request
from datetime import datetime, timezone

from config.settings import Settings
from monitoring.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

USAGE_WARNING_PERCENT = 90


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def missing_stripe_settings(settings: Settings) -> List[str]:
    """Environment variables the payment endpoints cannot work without."""
    required = (
        ("STRIPE_SECRET_KEY", settings.stripe_secret_key),
        ("STRIPE_WEBHOOK_SECRET", settings.stripe_webhook_secret),
    )
    return [name for name, value in required if not value]


@router.get("")
async def health_check(request: Request) -> Dict[str, Any]:
    """
    System usage, configured sinks and request metrics.

    Status is ``degraded`` when CPU, memory or disk is above 90%.
    """
    state = request.app.state
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage("/")
    cpu_percent = psutil.cpu_percent(interval=None)

    warnings = [
        label
        for label, percent in (
            ("High CPU usage", cpu_percent),
            ("High memory usage", memory.percent),
            ("Low disk space", disk.percent),
        )
        if percent > USAGE_WARNING_PERCENT
    ]

    health_data = {
        "status": "degraded" if warnings else "healthy",
        "timestamp": _now(),
        "environment": state.settings.environment,
        "system": {
            "cpu_percent": cpu_percent,
            "memory_percent": memory.percent,
            "disk_percent": disk.percent,
        },
        "sinks": [sink.name for sink in state.notification_fanout.sinks],
        "metrics": state.metrics.get_metrics(),
    }
    if warnings:
        health_data["warnings"] = warnings

    return health_data


@router.get("/ready")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """Ready once both Stripe credentials are configured."""
    missing = missing_stripe_settings(request.app.state.settings)

    if missing:
        logger.warning("Service not ready", extra={"missing": missing})
        return {
            "ready": False,
            "message": f"Missing required environment variables: {', '.join(missing)}",
            "timestamp": _now(),
        }

    return {
        "ready": True,
        "message": "Service is ready to accept requests",
        "timestamp": _now(),
    }


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    return {"alive": "true", "timestamp": _now()}
