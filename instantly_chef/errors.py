"""
Exceptions raised by the planning core and the generation client.

Missing ids on local mutations and unparseable numbers are not errors;
those are handled as no-ops and fallbacks where they happen.
"""

from typing import Optional


class InstantlyChefError(Exception):
    """Base class for application errors."""


class InvalidItemError(InstantlyChefError, ValueError):
    """Inventory or cart input that cannot be accepted."""


class GenerationError(InstantlyChefError):
    """Base class for menu generation submission failures."""


class GenerationConfigError(GenerationError):
    """Webhook or callback address is not configured. Nothing was sent."""


class UpstreamRejectedError(GenerationError):
    """The workflow webhook answered with a non-success status."""

    def __init__(self, status_code: int, details: str = ""):
        self.status_code = status_code
        self.details = details
        super().__init__(f"n8n error {status_code}")


class GenerationTransportError(GenerationError):
    """Network failure while talking to the workflow webhook."""

    def __init__(self, message: str = "Failed to submit generation request", cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class InvalidCallbackError(InstantlyChefError, ValueError):
    """Callback body is missing a correlation id or carries malformed menus."""
