"""
Payment notification sinks (spreadsheet log, e-mail, SMS) and their fan-out.
"""

from notifications.errors import SinkError
from notifications.fanout import NotificationFanout, SinkResult
from notifications.sinks import (
    NotificationSink,
    ResendEmailSink,
    SMSSink,
    SpreadsheetSink,
    build_sinks,
)

__all__ = [
    "SinkError",
    "NotificationFanout",
    "SinkResult",
    "NotificationSink",
    "ResendEmailSink",
    "SMSSink",
    "SpreadsheetSink",
    "build_sinks",
]
