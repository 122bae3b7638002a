"""Time-bounded pattern matching.

All detector patterns are compiled with the ``regex`` package, whose match
methods accept a ``timeout`` in seconds and raise ``TimeoutError`` when the
engine runs past it. That error surfaces here as ``DetectorTimeout`` so the
orchestrator can drop the offending detector invocation and carry on.
"""

from typing import Optional

import regex

from .errors import DetectorTimeout


def compile_pattern(pattern: str, flags: int = 0) -> regex.Pattern:
    """Compile a detector pattern."""
    return regex.compile(pattern, flags)


class BoundedMatcher:
    """Runs compiled patterns under a per-call wall-clock bound."""

    def __init__(self, timeout: float = 1.0):
        self.timeout = timeout

    def finditer(self, rule: str, pattern: regex.Pattern, text: str, pos: int = 0,
                 endpos: Optional[int] = None) -> list[regex.Match]:
        """Return every match of ``pattern`` in ``text``.

        Matches are collected eagerly so the bound covers the whole scan.
        """
        if endpos is None:
            endpos = len(text)
        try:
            return list(pattern.finditer(text, pos, endpos, timeout=self.timeout))
        except TimeoutError as e:
            raise DetectorTimeout(rule, self.timeout) from e

    def search(self, rule: str, pattern: regex.Pattern, text: str, pos: int = 0,
               endpos: Optional[int] = None) -> Optional[regex.Match]:
        """Return the first match of ``pattern`` in ``text`` or None."""
        if endpos is None:
            endpos = len(text)
        try:
            return pattern.search(text, pos, endpos, timeout=self.timeout)
        except TimeoutError as e:
            raise DetectorTimeout(rule, self.timeout) from e

    def contains(self, rule: str, pattern: regex.Pattern, text: str) -> bool:
        return self.search(rule, pattern, text) is not None
