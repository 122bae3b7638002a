"""Content-addressed cache of line-start offsets.

Detectors report character offsets; the analyzer turns those into 1-based line
numbers. Offsets for a given source text are computed once and shared across
every analysis of the same content, keyed by a SHA-256 digest of the text.
"""

import hashlib
import logging
import threading
from bisect import bisect_right
from collections import OrderedDict

logger = logging.getLogger(__name__)


def content_key(text: str) -> str:
    """Return a collision-resistant cache key for ``text``."""
    return hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()


def build_line_starts(text: str) -> tuple[int, ...]:
    """Offsets at which each line of ``text`` begins (first entry is always 0)."""
    starts = [0]
    pos = text.find("\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = text.find("\n", pos + 1)
    return tuple(starts)


def _clamp(text: str, offset: int) -> int:
    return min(max(offset, 0), len(text))


def scan_line_number(text: str, offset: int) -> int:
    """Linear-scan line lookup used when no cache entry exists."""
    return text.count("\n", 0, _clamp(text, offset)) + 1


class LineIndex:
    """Thread-safe LRU cache of line-start tables."""

    def __init__(self, max_entries: int = 256):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[int, ...]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def prime(self, text: str) -> str:
        """Build the table for ``text`` if missing and return its cache key."""
        key = content_key(text)
        if self.max_entries <= 0:
            return key

        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                return key

        # Built outside the lock; entries are immutable so a duplicate build is harmless.
        starts = build_line_starts(text)

        with self._lock:
            self._entries.setdefault(key, starts)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted line index entry {evicted[:12]}")
        return key

    def line_number_of(self, text: str, offset: int, key: str | None = None) -> int:
        """Return the 1-based line number containing ``offset``."""
        starts = self._entries.get(key or content_key(text))
        if starts is None:
            return scan_line_number(text, offset)
        return bisect_right(starts, _clamp(text, offset))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


DEFAULT_LINE_INDEX = LineIndex()
