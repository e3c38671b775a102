"""
Notification sinks for completed payments.

Every sink is optional and fails independently. Each delivery carries the
Stripe event ID so a repeated webhook can be recognised downstream.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from config.settings import Settings
from notifications.errors import SinkError
from notifications.sms_client import TwilioSMSClient
from notifications.templates import (
    format_payment_sms,
    format_receipt_html,
    format_receipt_subject,
    format_receipt_text,
)
from payments.models import PaymentNotification
from monitoring.logger import get_logger

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class NotificationSink(ABC):
    """A downstream consumer of payment notifications."""

    name: str = "sink"

    @abstractmethod
    async def send(self, notification: PaymentNotification) -> None:
        """Deliver one notification, raising ``SinkError`` on failure."""


class HTTPSink(NotificationSink):
    """Base for sinks that POST JSON over HTTP."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 5.0):
        self.client = client
        self.timeout = timeout

    async def post_json(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            if self.client is not None:
                response = await self.client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SinkError(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise SinkError(self.name, f"{type(e).__name__}: {e}") from e
        return response


class SpreadsheetSink(HTTPSink):
    """Posts a flat log row to a spreadsheet web hook (e.g. an Apps Script)."""

    name = "spreadsheet"

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 5.0):
        super().__init__(client=client, timeout=timeout)
        self.url = url

    async def send(self, notification: PaymentNotification) -> None:
        await self.post_json(self.url, notification.to_log_row())
        logger.info("Payment logged to spreadsheet", extra={"event_id": notification.event_id})


class ResendEmailSink(HTTPSink):
    """Sends the operator a receipt through the Resend e-mail API."""

    name = "email"

    def __init__(
        self,
        api_key: str,
        sender: str,
        recipient: str,
        site_name: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self.api_key = api_key
        self.sender = sender
        self.recipient = recipient
        self.site_name = site_name

    async def send(self, notification: PaymentNotification) -> None:
        payload = {
            "from": self.sender,
            "to": [self.recipient],
            "subject": format_receipt_subject(notification, self.site_name),
            "text": format_receipt_text(notification),
            "html": format_receipt_html(notification),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            # Resend drops a repeated send carrying the same key
            "Idempotency-Key": f"payment-receipt/{notification.event_id}",
        }
        await self.post_json(RESEND_API_URL, payload, headers=headers)
        logger.info("Payment receipt e-mailed", extra={"event_id": notification.event_id})


class SMSSink(NotificationSink):
    """Texts the operator through Twilio."""

    name = "sms"

    def __init__(self, client: TwilioSMSClient, to: str, site_name: str):
        self.client = client
        self.to = to
        self.site_name = site_name

    async def send(self, notification: PaymentNotification) -> None:
        message = format_payment_sms(notification, self.site_name)
        await run_in_threadpool(self.client.send_sms, self.to, message)


def build_sinks(settings: Settings) -> List[NotificationSink]:
    """Instantiate every sink whose settings are present."""
    sinks: List[NotificationSink] = []
    timeout = settings.sink_timeout_seconds

    if settings.gsheets_webhook_url:
        sinks.append(SpreadsheetSink(settings.gsheets_webhook_url, timeout=timeout))

    if settings.resend_api_key:
        sinks.append(ResendEmailSink(
            api_key=settings.resend_api_key,
            sender=settings.resend_from,
            recipient=settings.resend_to,
            site_name=settings.notify_site_name,
            timeout=timeout,
        ))

    if settings.twilio_configured:
        sms_client = TwilioSMSClient(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
        )
        sinks.append(SMSSink(sms_client, settings.notify_sms_to, settings.notify_site_name))

    logger.info("Notification sinks configured", extra={"sinks": [s.name for s in sinks]})
    return sinks
