"""Errors raised while handling a single Pub/Sub push request."""

from typing import Optional


class NotifierError(Exception):
    """Base class. `reason` is the short text returned to the caller."""

    reason = "error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class ReadError(NotifierError):
    """The request body could not be read."""

    reason = "read request"


class DecodeError(NotifierError):
    """The envelope or the embedded build record is malformed."""

    reason = "unmarshal"


class DeliveryError(NotifierError):
    """The chat webhook could not be reached or rejected the message."""

    reason = "post msg"
