"""
Tag Cache - Tracks the last seen etag of every catalog entity.
"""

import logging
from typing import Dict, Iterable, Optional

from core.store import KeyValueStore

CACHE_KEY = 'catalog-webhook-etags'


class TagCache:
    """In-memory uid -> etag map, loaded from and saved to a KeyValueStore."""

    def __init__(self, store: KeyValueStore, key: str = CACHE_KEY):
        self.store = store
        self.key = key
        self.logger = logging.getLogger('TagCache')
        self._tags: Dict[str, str] = {}

    def load(self) -> 'TagCache':
        """Replace the in-memory map with the stored one."""
        stored = self.store.get(self.key)
        if stored is None:
            self._tags = {}
        elif isinstance(stored, dict):
            self._tags = {str(uid): str(etag) for uid, etag in stored.items()}
        else:
            self.logger.warning(
                f"Ignoring stored cache under '{self.key}': expected an object, "
                f"got {type(stored).__name__}"
            )
            self._tags = {}
        self.logger.debug(f"Loaded {len(self._tags)} cached etags")
        return self

    def save(self) -> None:
        self.store.set(self.key, dict(self._tags))
        self.logger.debug(f"Saved {len(self._tags)} cached etags")

    def reset(self) -> None:
        """Forget every tag, both in memory and in the store."""
        self._tags = {}
        self.store.delete(self.key)

    def release(self) -> None:
        """Drop the in-memory map so it is not held between runs."""
        self._tags = {}

    def get(self, uid: str) -> Optional[str]:
        return self._tags.get(uid)

    def set(self, uid: str, etag: str) -> None:
        self._tags[uid] = etag

    def discard(self, uids: Iterable[str]) -> None:
        """Forget the given uids so they count as changed next run."""
        for uid in uids:
            self._tags.pop(uid, None)

    def __contains__(self, uid: str) -> bool:
        return uid in self._tags

    def __len__(self) -> int:
        return len(self._tags)
