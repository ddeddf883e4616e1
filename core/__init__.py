"""
Core package - Contains main business logic.

The processor is imported from core.processor directly; it depends on the
handlers package, which in turn imports from here.
"""

from core.errors import WebhookError, AuthError, FetchError, DeliveryError, RunTimeoutError
from core.guard import RunGuard
from core.settings import WebhookSettings, load_settings
from core.store import KeyValueStore, MemoryStore, JsonFileStore
from core.tag_cache import TagCache

__all__ = [
    'WebhookError',
    'AuthError',
    'FetchError',
    'DeliveryError',
    'RunTimeoutError',
    'RunGuard',
    'WebhookSettings',
    'load_settings',
    'KeyValueStore',
    'MemoryStore',
    'JsonFileStore',
    'TagCache',
]
