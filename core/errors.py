"""
Error types raised while processing catalog changes.
"""

from typing import Optional


class WebhookError(Exception):
    """Base class for all catalog webhook errors."""


class AuthError(WebhookError):
    """No credential could be obtained for the catalog."""


class RunTimeoutError(WebhookError):
    """The run exceeded its deadline."""


class HTTPFailure(WebhookError):
    """An HTTP exchange failed, either on the network or with a non-2xx status."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ''):
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is not None:
            message = f"{message} (status {self.status})"
        if self.body:
            message = f"{message}: {self.body[:200]}"
        return message


class FetchError(HTTPFailure):
    """A catalog page request failed."""


class DeliveryError(HTTPFailure):
    """A batch could not be delivered to the remote endpoint."""


class ProbeError(HTTPFailure):
    """The remote config probe failed. Never escapes the prober."""
