"""Exceptions raised across the command pipeline."""
from typing import Optional


class ProgressBotError(Exception):
    """Base class for every error the bot raises on purpose."""


class ConfigError(ProgressBotError):
    pass


class FetchError(ProgressBotError):
    """The stats endpoint could not be reached or answered with a non-2xx status.

    ``status`` is the HTTP status code, or None when no response arrived.
    """

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        super().__init__(message or f"stats request failed (status={status})")


class PayloadError(ProgressBotError):
    """The stats endpoint answered but the body carries no usable rowData."""


class GateBusyError(ProgressBotError):
    pass


class InteractionError(ProgressBotError):
    """A reply to Discord could not be delivered."""


class InteractionStateError(InteractionError):
    """A reply call was made in a state that does not allow it."""


class AcknowledgeError(InteractionError):
    """The deferred acknowledgment missed the platform deadline."""
