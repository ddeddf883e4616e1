"""
Handlers package - Outbound calls to the catalog and the webhook receiver.
"""

from handlers.base_handler import BaseHandler
from handlers.catalog_handler import CatalogHandler
from handlers.webhook_handler import WebhookHandler
from handlers.remote_config_handler import RemoteConfigHandler
from handlers.auth_handler import StaticTokenProvider

__all__ = [
    'BaseHandler',
    'CatalogHandler',
    'WebhookHandler',
    'RemoteConfigHandler',
    'StaticTokenProvider',
]
