"""
Conversion cache
Caller-owned LRU of conversion outcomes keyed by source content and options
"""

import hashlib
from collections import OrderedDict
from typing import Dict, Optional

from smartwebp.core.logger import get_logger
from smartwebp.models.entities import ConversionOutcome

logger = get_logger(__name__)


def make_cache_key(
    original: bytes, force: bool = False, quality: Optional[int] = None
) -> str:
    """Content hash of the source plus the requested options"""
    digest = hashlib.sha256(original).hexdigest()
    mode = f"q{quality}" if quality is not None else "auto"
    return f"{digest}:{mode}:force={int(force)}"


class ConversionCache:
    """
    Bounded memory cache of ConversionOutcome

    Never created implicitly: a caller that expects repeated conversions of
    the same asset builds one and passes it to the service.
    """

    def __init__(self, max_entries: int = 128):
        """
        Args:
            max_entries: Maximum outcomes to keep (oldest evicted first)
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, ConversionOutcome] = OrderedDict()
        self.stats: Dict[str, int] = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, key: str) -> Optional[ConversionOutcome]:
        """Get outcome by key, refreshing its recency"""
        outcome = self._entries.get(key)
        if outcome is None:
            self.stats["misses"] += 1
            return None

        self._entries.move_to_end(key)
        self.stats["hits"] += 1
        return outcome

    def put(self, key: str, outcome: ConversionOutcome) -> None:
        """Store outcome, evicting the least recently used entries when full"""
        self._entries[key] = outcome
        self._entries.move_to_end(key)

        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            self.stats["evictions"] += 1

        logger.debug(f"Cached conversion {key[:8]}... ({len(self._entries)}/{self.max_entries})")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
