"""
Message templates for payment notifications.
"""

from html import escape

from payments.models import PaymentNotification


def format_receipt_subject(notification: PaymentNotification, site_name: str) -> str:
    """
    Subject line for the operator e-mail.

    Example: ``Gabriola Directory - Payment received - 25.00 CAD``
    """
    return f"{site_name} - Payment received - {notification.amount_display} {notification.currency}"


def format_receipt_text(notification: PaymentNotification) -> str:
    """
    Plain-text body for the operator e-mail.

    Args:
        notification: Completed payment

    Returns:
        Formatted message
    """
    message = "Payment received\n"
    message += f"Session: {notification.session_id}\n"
    message += f"Amount: {notification.amount_display} {notification.currency}\n"
    message += f"Paid: {'yes' if notification.paid else 'pending'}\n"
    message += f"Email: {notification.customer_email or '-'}\n"
    message += f"Name: {notification.customer_name or '-'}\n"
    message += f"Business: {notification.business_name or '-'}\n"
    message += f"Contact: {notification.contact_name or '-'}\n"
    message += f"Phone: {notification.phone or '-'}\n"
    message += f"Event: {notification.event_id}"
    return message


def format_receipt_html(notification: PaymentNotification) -> str:
    """HTML body for the operator e-mail. Caller-supplied fields are escaped."""
    rows = [
        ("Session", notification.session_id),
        ("Email", notification.customer_email),
        ("Name", notification.customer_name),
        ("Business", notification.business_name),
        ("Contact", notification.contact_name),
        ("Phone", notification.phone),
        ("Total", f"{notification.amount_display} {notification.currency}"),
    ]
    items = "".join(
        f"<li><strong>{label}:</strong> {escape(value or '-')}</li>" for label, value in rows
    )
    return f"<p>Checkout session completed.</p><ul>{items}</ul>"


def format_payment_sms(notification: PaymentNotification, site_name: str) -> str:
    """Short SMS for the operator's phone."""
    message = f"✅ {site_name}\n\n"
    message += f"Payment received: {notification.amount_display} {notification.currency}\n"
    if notification.business_name:
        message += f"Business: {notification.business_name}\n"
    if notification.customer_email:
        message += f"Email: {notification.customer_email}\n"
    if not notification.paid:
        message += "\nPayment is still pending confirmation."
    return message.rstrip("\n")
