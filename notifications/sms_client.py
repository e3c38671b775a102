"""
Twilio SMS client for operator payment alerts.
"""

from typing import Optional
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

from notifications.errors import SinkError
from monitoring.logger import get_logger

logger = get_logger(__name__)

# Twilio rejects bodies longer than this
MAX_BODY_LENGTH = 1600


class TwilioSMSClient:
    """Blocking wrapper around ``Client.messages.create`` with sink-style errors."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: Optional[Client] = None,
    ):
        """
        Args:
            account_sid: Twilio Account SID
            auth_token: Twilio Auth Token
            from_number: Sending number in E.164 form
            client: Prebuilt REST client, e.g. a mock
        """
        if not all([account_sid, auth_token, from_number]):
            raise ValueError(
                "Twilio SMS needs TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER"
            )

        self.from_number = from_number
        self.client = client or Client(account_sid, auth_token)

    def send_sms(self, to: str, message: str) -> str:
        """
        Send one text and return its message SID.

        Raises:
            SinkError: If Twilio refuses the message
        """
        body = message if len(message) <= MAX_BODY_LENGTH else message[: MAX_BODY_LENGTH - 1] + "…"

        try:
            sms = self.client.messages.create(from_=self.from_number, to=to, body=body)
        except TwilioRestException as e:
            logger.error(
                "Twilio rejected payment SMS",
                extra={"to": to, "error_code": e.code, "error_message": e.msg},
            )
            raise SinkError("sms", f"Twilio error {e.code}: {e.msg}") from e

        logger.info("Payment SMS queued", extra={"to": to, "message_sid": sms.sid, "status": sms.status})
        return sms.sid
