"""
Exceptions raised by the checkout and webhook pipeline.
"""


class PaymentError(Exception):
    """Base class for payment pipeline errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PaymentError):
    """Order attributes are missing or invalid."""

    status_code = 400


class ProviderError(PaymentError):
    """Stripe failed to create a session or returned something unusable."""

    status_code = 502


class SignatureError(PaymentError):
    """A webhook could not be authenticated."""

    status_code = 400


class MalformedEventError(PaymentError):
    """A verified webhook body could not be decoded into an event."""

    status_code = 400


class HandlerError(PaymentError):
    """An event handler failed after the event was verified."""

    def __init__(self, message: str, event_id: str, event_type: str):
        super().__init__(message)
        self.event_id = event_id
        self.event_type = event_type
