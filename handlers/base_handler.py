"""
Abstract base handler for all outbound HTTP calls.
"""

import time
import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, Type

import requests

from core.errors import HTTPFailure, RunTimeoutError
from core.settings import WebhookSettings


def seconds_left(deadline: Optional[float]) -> Optional[float]:
    """Seconds until a time.monotonic() deadline, or None when unbounded."""
    if deadline is None:
        return None
    return deadline - time.monotonic()


class BaseHandler(ABC):
    """Shared plumbing for handlers that talk HTTP: session, timeouts, errors."""

    # Exception type raised for failed requests
    error_class: Type[HTTPFailure] = HTTPFailure

    def __init__(self, settings: WebhookSettings, session: requests.Session = None):
        """
        Initialize handler.

        Args:
            settings: Resolved webhook settings
            session: HTTP session to reuse across requests
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def get_method_name(self) -> str:
        """
        Get the name of the call this handler performs.

        Returns:
            String identifier used in logs and errors
        """
        pass

    def _timeout(self, deadline: Optional[float]) -> float:
        """Per-request timeout, clamped to what is left of the run deadline."""
        timeout = self.settings.http_timeout
        remaining = seconds_left(deadline)
        if remaining is None:
            return timeout
        if remaining <= 0:
            raise RunTimeoutError(f"Run deadline exceeded before {self.get_method_name()} request")
        return min(timeout, remaining)

    def request(
        self,
        method: str,
        url: str,
        deadline: Optional[float] = None,
        headers: Dict[str, str] = None,
        **kwargs: Any
    ) -> requests.Response:
        """
        Send a request and return the response if it succeeded.

        Raises:
            RunTimeoutError: if the deadline has already passed
            HTTPFailure: (as error_class) on network errors or non-2xx status
        """
        all_headers = {'User-Agent': self.settings.user_agent}
        all_headers.update(headers or {})

        try:
            response = self.session.request(
                method,
                url,
                headers=all_headers,
                timeout=self._timeout(deadline),
                **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise self.error_class(f"{self.get_method_name()} request to {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise self.error_class(
                f"{self.get_method_name()} request to {url} failed",
                status=response.status_code,
                body=response.text or '',
            )
        return response

