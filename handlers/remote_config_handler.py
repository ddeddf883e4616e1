"""
Remote config handler - Asks the receiver for run-time directives.

The receiver answers GET {endpoint}?config with a JSON object such as
{"resetCache": true, "entityFilter": "[{\"kind\": \"Component\"}]"}.
"""

from typing import Optional

import requests

from core.errors import ProbeError, RunTimeoutError
from core.settings import WebhookSettings
from models.filters import FilterError, parse_filter
from models.remote_config import RemoteConfig
from utils.signing import signature_headers

from .base_handler import BaseHandler


class RemoteConfigHandler(BaseHandler):
    """Fetches per-run directives from the webhook endpoint's config sideband."""

    error_class = ProbeError

    def __init__(self, settings: WebhookSettings, session: requests.Session = None):
        super().__init__(settings, session)
        self.url = f"{settings.remote_endpoint}?config"

    def get_method_name(self) -> str:
        return "remote config probe"

    def fetch(self, deadline: Optional[float] = None) -> RemoteConfig:
        """
        Fetch and parse the remote config.

        Raises:
            ProbeError: on network errors, non-2xx responses or a malformed body
        """
        headers = signature_headers(self.settings.secret, b'')
        response = self.request('GET', self.url, deadline=deadline, headers=headers)

        try:
            data = response.json()
        except ValueError as e:
            raise ProbeError(f"Remote config is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ProbeError(f"Remote config must be a JSON object, got {type(data).__name__}")

        reset_cache = data.get('resetCache') is True
        entity_filter = None
        raw_filter = data.get('entityFilter')
        if raw_filter:
            try:
                entity_filter = parse_filter(raw_filter)
            except FilterError as e:
                self.logger.warning(f"Ignoring invalid remote entity filter {raw_filter!r}: {e}")

        return RemoteConfig(reset_cache=reset_cache, entity_filter=entity_filter)

    def probe(self, deadline: Optional[float] = None) -> RemoteConfig:
        """
        Fetch the remote config, falling back to no directives on any failure.

        Returns:
            RemoteConfig, empty when the probe failed
        """
        try:
            remote_config = self.fetch(deadline)
        except (ProbeError, RunTimeoutError) as e:
            self.logger.warning(f"Failed to get remote config: {e}")
            return RemoteConfig()

        if remote_config.is_empty:
            self.logger.debug("No directives in remote config")
            return remote_config
        if remote_config.reset_cache:
            self.logger.info("Received cache reset signal, clearing local cache")
        if remote_config.entity_filter is not None:
            self.logger.info(f"Applying received entity filter: {remote_config.entity_filter}")
        return remote_config
