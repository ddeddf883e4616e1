"""
Auth handler - Supplies the credential used for catalog requests.
"""

import logging
from typing import Optional

from core.settings import WebhookSettings


class StaticTokenProvider:
    """Hands out a token configured in settings.yaml or the CATALOG_TOKEN variable."""

    def __init__(self, settings: WebhookSettings):
        self.token = settings.catalog_token
        self.logger = logging.getLogger('StaticTokenProvider')

    def get_token(self, target_service: str = 'catalog') -> Optional[str]:
        """
        Get a token for calls to target_service.

        Returns:
            Token string, or None when no credential is configured
        """
        if not self.token:
            self.logger.debug(f"No token configured for {target_service}")
            return None
        return self.token
