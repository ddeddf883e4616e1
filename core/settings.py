"""
Settings - Loads the catalog webhook configuration.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List

import yaml

from models.filters import EntityFilter, parse_filter

logger = logging.getLogger('Settings')

DEFAULT_CATALOG_URL = 'http://localhost:7007/api/catalog'
DEFAULT_USER_AGENT = 'Catalog-Webhook/1.0'


def default_settings_path() -> str:
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_dir, 'config', 'settings.yaml')


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file, returning {} when it is missing."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Config file not found: {path}")
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return data


def _positive_int(value: Any, default: int, name: str) -> int:
    if value is None or value == '':
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if number <= 0:
        # Zero or negative behaves like unset
        return default
    return number


def _allowed_kinds(raw: Any) -> List[str]:
    """Flatten the allow list, e.g. [{kind: [Component, API]}] -> [Component, API]."""
    if not raw:
        return []
    if isinstance(raw, dict):
        raw = [raw]
    kinds: List[str] = []
    for entry in raw:
        if isinstance(entry, str):
            kinds.append(entry)
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid allow entry: {entry!r}")
        value = entry.get('kind') or []
        kinds.extend([value] if isinstance(value, str) else list(value))
    # keep order, drop duplicates
    return list(dict.fromkeys(str(kind) for kind in kinds))


@dataclass
class WebhookSettings:
    """Resolved configuration for the catalog webhook."""

    remote_endpoint: Optional[str] = None
    secret: Optional[str] = None
    interval_minutes: int = 10
    timeout_seconds: int = 30
    entity_request_size: int = 500
    entity_send_size: int = 50
    allow: List[str] = field(default_factory=list)
    entity_filter: EntityFilter = field(default_factory=EntityFilter)
    catalog_url: str = DEFAULT_CATALOG_URL
    catalog_token: Optional[str] = None
    cache_file: Optional[str] = None
    http_timeout: float = 30
    user_agent: str = DEFAULT_USER_AGENT
    logging: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.remote_endpoint)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], env: Dict[str, str] = None) -> 'WebhookSettings':
        """
        Build settings from a parsed settings.yaml document.

        Args:
            data: Parsed YAML mapping
            env: Environment used for secrets (defaults to os.environ)

        Returns:
            WebhookSettings
        """
        env = os.environ if env is None else env
        catalog = data.get('catalog') or {}
        webhook = catalog.get('webhook') or {}
        http = data.get('http') or {}

        endpoint = webhook.get('remoteEndpoint') or env.get('CATALOG_WEBHOOK_ENDPOINT')
        if endpoint:
            endpoint = str(endpoint).rstrip('/')

        # batchSize is the older name of entityRequestSize
        request_size = webhook.get('entityRequestSize', webhook.get('batchSize'))

        return cls(
            remote_endpoint=endpoint or None,
            secret=webhook.get('secret') or env.get('CATALOG_WEBHOOK_SECRET') or None,
            interval_minutes=_positive_int(webhook.get('intervalMinutes'), 10, 'intervalMinutes'),
            timeout_seconds=_positive_int(webhook.get('timeoutSeconds'), 30, 'timeoutSeconds'),
            entity_request_size=_positive_int(request_size, 500, 'entityRequestSize'),
            entity_send_size=_positive_int(webhook.get('entitySendSize'), 50, 'entitySendSize'),
            allow=_allowed_kinds(webhook.get('allow')),
            entity_filter=parse_filter(webhook.get('entityFilter')),
            catalog_url=str(catalog.get('baseUrl') or DEFAULT_CATALOG_URL).rstrip('/'),
            catalog_token=catalog.get('token') or env.get('CATALOG_TOKEN') or None,
            cache_file=webhook.get('cacheFile'),
            http_timeout=float(http.get('timeout', 30)),
            user_agent=http.get('user_agent', DEFAULT_USER_AGENT),
            logging=data.get('logging') or {},
        )


def load_settings(path: str = None, env: Dict[str, str] = None) -> WebhookSettings:
    """Load settings.yaml (default location under config/) into WebhookSettings."""
    return WebhookSettings.from_dict(load_config(path or default_settings_path()), env=env)
