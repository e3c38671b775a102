"""
Errors raised by notification sinks.
"""


class SinkError(Exception):
    """A notification sink failed to deliver. Logged by the fan-out, never propagated."""

    def __init__(self, sink: str, message: str):
        super().__init__(f"{sink}: {message}")
        self.sink = sink
        self.message = message
