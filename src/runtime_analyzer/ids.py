"""Finding identifier allocation."""

import threading
from typing import Protocol


class IdAllocator(Protocol):
    """Issues strictly increasing integer ids."""

    def next(self) -> int: ...


class SequentialIdAllocator:
    """Lock-protected counter.

    Values are never reused, even when the caller throws away the finding the
    id was allocated for.
    """

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value


# Shared by every analyzer that does not ask for call-scoped ids.
PROCESS_ALLOCATOR = SequentialIdAllocator()
