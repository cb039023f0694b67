"""In-memory mapping of virtual resource keys to origin URLs."""

import logging
import threading
from collections import OrderedDict

logger = logging.getLogger(__name__)


class MappingStore:
    """Table of ``(entity_id, resource_name) -> origin_url``.

    Inserts are insert-if-absent: the first URL stored for a key is kept for
    as long as the entry lives. All access goes through one lock so the
    check-then-set of an insert is a single step.

    ``max_entries`` turns on least-recently-used eviction; by default the
    table grows for the lifetime of the process.
    """

    def __init__(self, max_entries: int | None = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[str, str], str] = OrderedDict()
        self._lock = threading.Lock()

    def insert(self, entity_id: str, resource_name: str, origin_url: str) -> str:
        """Store ``origin_url`` unless the key exists; return the stored URL."""
        key = (entity_id, resource_name)
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                self._touch(key)
                if existing != origin_url:
                    logger.debug("Keeping first mapping for %s/%s", entity_id, resource_name)
                return existing

            self._entries[key] = origin_url
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted mapping %s/%s", *evicted)
            return origin_url

    def lookup(self, entity_id: str, resource_name: str) -> str | None:
        key = (entity_id, resource_name)
        with self._lock:
            url = self._entries.get(key)
            if url is not None:
                self._touch(key)
            return url

    def _touch(self, key: tuple[str, str]):
        if self.max_entries is not None:
            self._entries.move_to_end(key)

    def __contains__(self, key: tuple[str, str]) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
