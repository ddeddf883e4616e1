"""
Remote Config model.
"""

from dataclasses import dataclass
from typing import Optional

from models.filters import EntityFilter


@dataclass(frozen=True)
class RemoteConfig:
    """Per-run directives returned by the receiver. Never persisted."""

    reset_cache: bool = False
    entity_filter: Optional[EntityFilter] = None

    @property
    def is_empty(self) -> bool:
        return not self.reset_cache and self.entity_filter is None
