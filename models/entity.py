"""
Entity Record model.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


@dataclass
class EntityRecord:
    """A catalog entity as returned by the catalog API.

    The payload is opaque and delivered unchanged; only the uid and etag
    from its metadata are read.
    """

    payload: Dict[str, Any]

    @property
    def metadata(self) -> Dict[str, Any]:
        metadata = self.payload.get('metadata')
        return metadata if isinstance(metadata, dict) else {}

    @property
    def uid(self) -> Optional[str]:
        uid = self.metadata.get('uid')
        return str(uid) if uid else None

    @property
    def etag(self) -> Optional[str]:
        etag = self.metadata.get('etag')
        return str(etag) if etag else None

    @property
    def ref(self) -> str:
        """Human readable reference, e.g. component:default/my-service."""
        kind = str(self.payload.get('kind', 'unknown')).lower()
        namespace = self.metadata.get('namespace', 'default')
        name = self.metadata.get('name', self.uid or '?')
        return f"{kind}:{namespace}/{name}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EntityRecord':
        return cls(payload=data)

    def to_dict(self) -> Dict[str, Any]:
        return self.payload


@dataclass
class EntityPage:
    """One page of a paginated catalog query."""

    items: List[EntityRecord] = field(default_factory=list)
    offset: int = 0
    # Items the catalog returned, malformed ones included
    received: Optional[int] = None

    def __len__(self) -> int:
        return len(self.items)

    @property
    def count(self) -> int:
        """Number of items the catalog returned for this page."""
        return len(self.items) if self.received is None else self.received
