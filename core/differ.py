"""
Differ - Detects changed entities and groups them into batches.

Changed entities are delivered in batches of a fixed size, all sharing one
batch id per run. Exactly one batch of a completed run is flagged final. The
sequencer holds the latest batch back until it knows whether more follow, so
the flag can be set on the last batch with entities; a run that found no
changes at all closes its stream with an empty final batch.
"""

import time
import logging
from threading import Lock
from typing import Callable, Iterator, List, Optional

from core.tag_cache import TagCache
from models.batch import Batch
from models.entity import EntityPage, EntityRecord

logger = logging.getLogger('Differ')


def diff_entities(items: List[EntityRecord], tag_cache: TagCache) -> List[EntityRecord]:
    """
    Return the entities whose etag differs from the cached one.

    The cache is updated as soon as an entity is found changed, so the same
    version is not sent again next run even if its delivery fails.

    Args:
        items: Entities of one catalog page
        tag_cache: Loaded tag cache, mutated in place

    Returns:
        Changed entities, in catalog order
    """
    changed = []
    for entity in items:
        uid = entity.uid
        if not uid:
            continue

        etag = entity.etag
        if etag is None or tag_cache.get(uid) != etag:
            changed.append(entity)
            logger.debug(f"Changed: {entity.ref} ({tag_cache.get(uid)} -> {etag})")
            if etag is not None:
                tag_cache.set(uid, etag)
    return changed


def split_batches(entities: List[EntityRecord], size: int) -> List[List[EntityRecord]]:
    """Split entities into contiguous groups of at most size."""
    if size <= 0:
        raise ValueError("Batch size must be positive")
    return [entities[i:i + size] for i in range(0, len(entities), size)]


def iter_pages(fetch_page: Callable[[int], EntityPage], page_size: int) -> Iterator[EntityPage]:
    """
    Yield catalog pages until one comes back shorter than page_size.

    Args:
        fetch_page: Called with the offset of each page
        page_size: Requested number of entities per page
    """
    offset = 0
    while True:
        page = fetch_page(offset)
        yield page
        if page.count < page_size:
            return
        offset += page_size


class BatchIdGenerator:
    """Millisecond timestamps, strictly increasing within the process."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = Lock()

    def next_id(self) -> int:
        with self._lock:
            batch_id = max(round(self._clock() * 1000), self._last + 1)
            self._last = batch_id
            return batch_id


class BatchSequencer:
    """Sends batches in order, setting isFinalBatch on the last one of the run."""

    def __init__(self, batch_id: int, batch_size: int, send: Callable[[Batch], None]):
        """
        Args:
            batch_id: Id shared by every batch of the run
            batch_size: Maximum entities per batch
            send: Delivers one batch, raising on failure
        """
        if batch_size <= 0:
            raise ValueError("Batch size must be positive")
        self.batch_id = batch_id
        self.batch_size = batch_size
        self._send = send
        self._held: Optional[List[EntityRecord]] = None
        self._undelivered: List[EntityRecord] = []
        self.sent_entities = 0
        self.sent_batches = 0
        self.finished = False

    def add(self, entities: List[EntityRecord]) -> None:
        """Queue changed entities; every batch but the newest is sent right away."""
        if self.finished:
            raise RuntimeError("Sequencer already finished")
        self._undelivered.extend(entities)
        for group in split_batches(entities, self.batch_size):
            if self._held is not None:
                held, self._held = self._held, None
                self._deliver(held, is_final=False)
            self._held = group

    def finish(self) -> None:
        """Pagination ended: send the held batch (or an empty one) as final."""
        if self.finished:
            return
        held, self._held = self._held, None
        self._deliver(held or [], is_final=True)
        self.finished = True
        logger.debug(f"Batch {self.batch_id} complete after {self.sent_batches} requests")

    def flush(self) -> None:
        """Send the held batch without the final flag. Used when a run is cut short."""
        if self._held:
            held, self._held = self._held, None
            self._deliver(held, is_final=False)

    @property
    def pending(self) -> int:
        return len(self._held) if self._held else 0

    @property
    def undelivered(self) -> List[EntityRecord]:
        """Entities added but not yet in a successfully sent batch, in order."""
        return list(self._undelivered)

    def _deliver(self, entities: List[EntityRecord], is_final: bool) -> None:
        batch = Batch(batch_id=self.batch_id, entities=entities, is_final=is_final)
        self._send(batch)
        del self._undelivered[:len(entities)]
        self.sent_entities += len(entities)
        self.sent_batches += 1
