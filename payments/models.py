"""
Data models for checkout sessions and Stripe webhook events.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class OrderMetadata(BaseModel):
    """Caller-supplied correlation fields, passed to Stripe untouched."""

    model_config = ConfigDict(populate_by_name=True)

    business_name: Optional[str] = Field(None, alias="businessName")
    contact_name: Optional[str] = Field(None, alias="contactName")
    phone: Optional[str] = Field(None, alias="phone")

    def to_stripe(self) -> Dict[str, str]:
        """Metadata keyed by the wire names, dropping empty values."""
        return {
            key: str(value)
            for key, value in self.model_dump(by_alias=True).items()
            if value not in (None, "")
        }


class OrderRequest(BaseModel):
    """A validated request to start a one-time payment."""

    amount_cents: int = Field(..., gt=0, description="Amount in the currency's minor unit")
    currency: str = Field(..., pattern=r"^[a-z]{3}$", description="ISO 4217 code, lower case")
    description: str = Field(..., min_length=1, max_length=500, description="Line item name")
    email: Optional[EmailStr] = Field(None, description="Buyer e-mail for the receipt")
    metadata: OrderMetadata = Field(default_factory=OrderMetadata)


class CheckoutSession(BaseModel):
    """Handle returned by Stripe for a hosted checkout."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stripe checkout session ID")
    url: str = Field(..., description="Hosted checkout URL to redirect the buyer to")
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


class CheckoutURLResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str


class EventType(str, Enum):
    """Stripe event types with dedicated handling."""

    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    CHECKOUT_SESSION_ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
    CHECKOUT_SESSION_ASYNC_PAYMENT_FAILED = "checkout.session.async_payment_failed"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_INTENT_PAYMENT_FAILED = "payment_intent.payment_failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: str) -> "EventType":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class WebhookEnvelope:
    """Raw inbound webhook: exact body bytes plus the signature header."""

    payload: bytes
    signature: Optional[str]


class CustomerDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class CheckoutSessionObject(BaseModel):
    """The ``data.object`` of a checkout session event."""

    model_config = ConfigDict(extra="allow")

    id: str
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    customer_details: Optional[CustomerDetails] = None
    metadata: Dict[str, Optional[str]] = Field(default_factory=dict)
    payment_status: Optional[str] = None
    created: Optional[int] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def null_metadata_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def payer_email(self) -> str:
        if self.customer_details and self.customer_details.email:
            return self.customer_details.email
        return self.customer_email or ""

    @property
    def payer_name(self) -> str:
        if self.customer_details and self.customer_details.name:
            return self.customer_details.name
        return ""


class PaymentIntentObject(BaseModel):
    """The ``data.object`` of a payment intent event."""

    model_config = ConfigDict(extra="allow")

    id: str
    amount: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    metadata: Dict[str, Optional[str]] = Field(default_factory=dict)
    last_payment_error: Optional[Dict[str, Any]] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def null_metadata_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class VerifiedEvent(BaseModel):
    """
    A webhook event whose signature has been checked.

    Only ``payments.events.parse_event`` builds these, from a payload returned by
    ``payments.signature.verify_signature``. The event object stays a plain dict
    until a handler asks for its typed form, so a surprising object shape becomes
    a handler failure rather than a rejected delivery.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: EventType
    raw_type: str
    created: Optional[int] = None
    livemode: bool = False
    data_object: Dict[str, Any] = Field(default_factory=dict)

    def checkout_session(self) -> CheckoutSessionObject:
        return CheckoutSessionObject.model_validate(self.data_object)

    def payment_intent(self) -> PaymentIntentObject:
        return PaymentIntentObject.model_validate(self.data_object)


class PaymentNotification(BaseModel):
    """Record of a completed payment handed to the notification sinks."""

    event_id: str = Field(..., description="Stripe event ID, usable as a dedup key")
    event_type: str
    session_id: str
    created_unix: Optional[int] = None
    amount_total: int = Field(0, description="Amount in minor units")
    currency: str = "CAD"
    customer_email: str = ""
    customer_name: str = ""
    paid: bool = False
    business_name: str = ""
    contact_name: str = ""
    phone: str = ""
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def amount_display(self) -> str:
        """Amount in major units with two decimals, e.g. ``25.00``."""
        return f"{self.amount_total / 100:.2f}"

    def to_log_row(self) -> Dict[str, Any]:
        """Flat record for the spreadsheet log."""
        return {
            "type": self.event_type,
            "event_id": self.event_id,
            "session_id": self.session_id,
            "created_unix": self.created_unix,
            "amount_total": self.amount_total,
            "amount": self.amount_display,
            "currency": self.currency,
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "paid": self.paid,
            "businessName": self.business_name,
            "contactName": self.contact_name,
            "phone": self.phone,
            "received_at": self.received_at.isoformat(),
        }


class WebhookState(str, Enum):
    """States a single webhook delivery passes through."""

    RECEIVED = "received"
    RAW_BODY_CAPTURED = "raw_body_captured"
    SIGNATURE_VERIFIED = "signature_verified"
    EVENT_PARSED = "event_parsed"
    DISPATCHED = "dispatched"
    ACKNOWLEDGED = "acknowledged"
    ACKNOWLEDGED_WITH_WARNING = "acknowledged_with_warning"
    REJECTED = "rejected"


class DispatchResult(BaseModel):
    """What a handler produced for one verified event."""

    event_id: str
    event_type: EventType
    handled: bool = True
    notifications: List[PaymentNotification] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class WebhookOutcome(BaseModel):
    """Terminal result of one webhook delivery."""

    state: WebhookState
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    notifications: List[PaymentNotification] = Field(default_factory=list)
