"""Payments service: Stripe checkout sessions and verified webhooks (FastAPI)."""
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from monitoring import health_check
from monitoring.alerts import AlertManager
from monitoring.logger import get_logger, setup_logging
from monitoring.metrics import MetricsCollector, get_metrics_collector
from notifications.fanout import NotificationFanout
from notifications.sinks import NotificationSink, build_sinks
from payments import checkout_handler, webhook_handler
from payments.checkout import SessionInitiator
from payments.checkout_client import StripeCheckoutClient
from payments.dispatcher import EventDispatcher
from payments.events import WebhookVerifier
from payments.webhook_processor import WebhookProcessor

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    checkout_client: Optional[StripeCheckoutClient] = None,
    sinks: Optional[List[NotificationSink]] = None,
    metrics: Optional[MetricsCollector] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the application and wire its components from one ``Settings``.

    Args:
        settings: Configuration (defaults to the environment)
        checkout_client: Stripe client override, e.g. a fake in tests
        sinks: Notification sinks override (defaults to ``build_sinks``)
        metrics: Metrics collector (defaults to the process-wide one)
        configure_logging: Set up logging from ``settings``
    """
    settings = settings or get_settings()

    if configure_logging:
        setup_logging(
            log_level=settings.log_level,
            log_file=settings.log_file_path,
            enable_json=settings.log_json,
        )

    metrics = metrics or get_metrics_collector()
    alerts = AlertManager(
        sentry_dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )

    checkout_client = checkout_client or StripeCheckoutClient(
        api_key=settings.stripe_secret_key,
        success_url=settings.checkout_success_url,
        cancel_url=settings.checkout_cancel_url,
        api_version=settings.stripe_api_version,
    )

    missing = health_check.missing_stripe_settings(settings)
    if missing:
        logger.error("Stripe settings missing; payment endpoints will fail", extra={"missing": missing})

    app = FastAPI(title="Directory Payments", version="1.0.0")

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.session_initiator = SessionInitiator(checkout_client, settings, metrics=metrics)
    app.state.webhook_processor = WebhookProcessor(
        verifier=WebhookVerifier(settings.stripe_webhook_secret, settings.stripe_webhook_tolerance),
        dispatcher=EventDispatcher(alerts=alerts, metrics=metrics),
        alerts=alerts,
        metrics=metrics,
    )
    app.state.notification_fanout = NotificationFanout(
        build_sinks(settings) if sinks is None else sinks,
        timeout=settings.sink_timeout_seconds,
        alerts=alerts,
        metrics=metrics,
    )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            extra={"path": request.url.path, "method": request.method},
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    app.include_router(checkout_handler.router)
    app.include_router(webhook_handler.router)
    app.include_router(health_check.router)

    logger.info(
        "Payments service configured",
        extra={
            "environment": settings.environment,
            "allowed_origins": settings.allowed_origins,
            "sinks": [sink.name for sink in app.state.notification_fanout.sinks],
        }
    )
    return app


def main() -> None:
    load_dotenv()
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
