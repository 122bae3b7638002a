"""Shared scanning context and text helpers for detectors."""

from enum import Enum
from functools import cached_property
from typing import Callable, NamedTuple, Optional

import regex

from ..config import AnalyzerConfig
from ..ids import IdAllocator
from ..line_index import LineIndex
from ..matching import BoundedMatcher, compile_pattern
from ..models import (
    EdgeCaseFailure,
    EnvironmentRisk,
    EnvironmentRiskType,
    Finding,
    IssueProof,
    IssueSolution,
    Likelihood,
    RiskMitigation,
    RuntimeIssue,
    RuntimeIssueType,
    Severity,
)


class Phase(str, Enum):
    """The five analysis phases, in execution order."""

    static_review = "static-review"
    runtime_simulation = "runtime-simulation"
    environment = "environment"
    edge_case = "edge-case"
    error_propagation = "error-propagation"


class SourceLine(NamedTuple):
    """One line of source handed to static review rules."""

    number: int
    text: str
    protected: bool


class Detector(NamedTuple):
    """A catalog entry.

    Static review detectors take ``(line, ctx)``; every other phase takes ``(ctx)``.
    """

    name: str
    phase: Phase
    scan: Callable[..., list[Finding]]


class LoopBlock(NamedTuple):
    """A loop header and the span of its body."""

    start: int
    body_start: int
    body_end: int
    variable: Optional[str]
    collection: Optional[str]


_PY_BLOCK_HEADER = compile_pattern(
    r"^[ \t]*(?:async[ \t]+)?(?:def|class|if|elif|else|for|while|try|except|finally|with)\b[^\n{};]*:[ \t]*(?:#[^\n]*)?$",
    regex.MULTILINE,
)
_C_LINE_END = compile_pattern(r"[{};][ \t]*$", regex.MULTILINE)


def is_python_source(text: str) -> bool:
    """True when colon-terminated block headers outnumber brace/semicolon line endings."""
    py_headers = sum(1 for _ in _PY_BLOCK_HEADER.finditer(text))
    return py_headers > 0 and py_headers > sum(1 for _ in _C_LINE_END.finditer(text))


def mask_source(text: str, strings: bool = True, python: Optional[bool] = None) -> str:
    """Blank out comments (and string literals when ``strings``) in ``text``.

    Every masked character becomes a space and newlines are kept, so offsets and
    line numbers in the result match the input. ``#`` starts a comment at the
    start of a line or after whitespace. In Python source (detected unless
    ``python`` is given) ``//`` is floor division and ``/*`` is not a comment.
    """
    if python is None:
        python = is_python_source(text)
    out = list(text)
    n = len(text)
    i = 0
    line_start = True
    while i < n:
        ch = text[i]
        if ch == "\n":
            line_start = True
            i += 1
            continue
        if line_start and ch in " \t":
            i += 1
            continue
        at_line_start = line_start
        line_start = False

        if ch == "#" and (at_line_start or python or text[i - 1] in " \t"):
            end = text.find("\n", i)
            end = n if end == -1 else end
            out[i:end] = " " * (end - i)
            i = end
        elif text.startswith("//", i) and not python:
            end = text.find("\n", i)
            end = n if end == -1 else end
            out[i:end] = " " * (end - i)
            i = end
        elif text.startswith("/*", i) and not python:
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            for j in range(i, end):
                if out[j] != "\n":
                    out[j] = " "
            i = end
        elif text.startswith('"""', i) or text.startswith("'''", i):
            end = text.find(text[i:i + 3], i + 3)
            end = n if end == -1 else end + 3
            if strings:
                for k in range(i, end):
                    if out[k] != "\n":
                        out[k] = " "
            i = end
        elif ch in "\"'`":
            j = i + 1
            while j < n and text[j] != ch:
                if text[j] == "\\":
                    j += 1
                elif text[j] == "\n" and ch != "`":
                    break
                j += 1
            end = min(j + 1, n)
            if strings:
                for k in range(i, end):
                    if out[k] != "\n":
                        out[k] = " "
            i = end
        else:
            i += 1
    return "".join(out)


_PY_TRY = compile_pattern(r"^[ \t]*try\s*:")
_C_TRY = compile_pattern(r"\btry\b")


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def split_lines(masked: str) -> list[tuple[int, bool]]:
    """Return ``(number, protected)`` per line of a masked source.

    A line is protected when any part of it sits inside a brace-delimited ``try``
    block or is indented under a Python ``try:``.
    """
    result: list[tuple[int, bool]] = []
    depth = 0
    try_depths: list[int] = []
    pending_try = False
    py_try_indents: list[int] = []

    for number, line in enumerate(masked.split("\n"), start=1):
        stripped = line.strip()
        if stripped:
            # A dedent to the try's own column (except/finally or any statement) closes it.
            width = _indent_width(line)
            while py_try_indents and width <= py_try_indents[-1]:
                py_try_indents.pop()

        protected = bool(try_depths) or bool(py_try_indents)

        if _PY_TRY.match(line):
            py_try_indents.append(_indent_width(line))
        elif _C_TRY.search(line):
            pending_try = True

        for ch in line:
            if ch == "{":
                depth += 1
                if pending_try:
                    try_depths.append(depth)
                    pending_try = False
                    protected = True
            elif ch == "}":
                if try_depths and try_depths[-1] == depth:
                    try_depths.pop()
                depth = max(depth - 1, 0)

        result.append((number, protected))
    return result


_LOOP_HEADER = compile_pattern(r"\b(?:for|foreach|while)\s*\(")
_C_FOREACH = compile_pattern(r"^\s*(?:(?:var|let|const|final|[\w<>\[\],.?]+)\s+)?(\w+)\s+(?:in|of|:)\s+([\w.]+)\s*$")
_PY_LOOP = compile_pattern(r"^([ \t]*)(?:for\s+(\w+)\s+in\s+([\w.]+)[^\n]*|while\b[^\n]*):[ \t]*$", regex.MULTILINE)


def matching_close(text: str, open_pos: int, opener: str = "(", closer: str = ")") -> int:
    """Index of the bracket closing the one at ``open_pos`` (or len(text))."""
    depth = 0
    for i in range(open_pos, len(text)):
        if text[i] == opener:
            depth += 1
        elif text[i] == closer:
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def block_after(text: str, pos: int) -> tuple[int, int]:
    """Span of the statement or brace block that follows ``pos``."""
    i = pos
    n = len(text)
    while i < n and text[i] in " \t\r\n":
        i += 1
    if i < n and text[i] == "{":
        return i + 1, matching_close(text, i, "{", "}")
    end = text.find(";", i)
    return i, n if end == -1 else end + 1


class ScanContext:
    """Everything a detector needs to scan one source unit and build findings."""

    def __init__(
        self,
        source: str,
        label: Optional[str],
        allocator: IdAllocator,
        line_index: LineIndex,
        matcher: BoundedMatcher,
        config: AnalyzerConfig,
    ):
        self.source = source
        self.label = label
        self.allocator = allocator
        self.line_index = line_index
        self.matcher = matcher
        self.config = config
        self.line_key = line_index.prime(source)

    @cached_property
    def masked(self) -> str:
        """Source with comments and string literals blanked."""
        return mask_source(self.source)

    @cached_property
    def code(self) -> str:
        """Source with comments blanked and string literals kept."""
        return mask_source(self.source, strings=False)

    @cached_property
    def lines(self) -> tuple[SourceLine, ...]:
        raw = self.code.split("\n")
        return tuple(
            SourceLine(number, raw[number - 1], protected)
            for number, protected in split_lines(self.masked)
        )

    def line_of(self, offset: int) -> int:
        return self.line_index.line_number_of(self.source, offset, self.line_key)

    def finditer(self, rule: str, pattern: regex.Pattern, text: Optional[str] = None,
                 pos: int = 0, endpos: Optional[int] = None) -> list[regex.Match]:
        return self.matcher.finditer(rule, pattern, self.source if text is None else text, pos, endpos)

    def search(self, rule: str, pattern: regex.Pattern, text: Optional[str] = None,
               pos: int = 0, endpos: Optional[int] = None) -> Optional[regex.Match]:
        return self.matcher.search(rule, pattern, self.source if text is None else text, pos, endpos)

    def contains(self, rule: str, pattern: regex.Pattern, text: Optional[str] = None) -> bool:
        return self.matcher.contains(rule, pattern, self.source if text is None else text)

    def loops(self, rule: str) -> list[LoopBlock]:
        """Find loop bodies in both brace-delimited and indented sources."""
        masked = self.masked
        blocks: list[LoopBlock] = []

        for m in self.finditer(rule, _LOOP_HEADER, masked):
            open_paren = m.end() - 1
            close_paren = matching_close(masked, open_paren)
            if masked[close_paren + 1:].lstrip(" \t").startswith(":"):
                continue
            header = self.code[open_paren + 1:close_paren]
            parts = self.search(rule, _C_FOREACH, header)
            body_start, body_end = block_after(masked, close_paren + 1)
            blocks.append(LoopBlock(
                start=m.start(),
                body_start=body_start,
                body_end=body_end,
                variable=parts.group(1) if parts else None,
                collection=parts.group(2) if parts else None,
            ))

        for m in self.finditer(rule, _PY_LOOP, masked):
            indent = len(m.group(1))
            body_start = m.end()
            body_end = body_start + 1
            for line in masked[body_start:].split("\n")[1:]:
                if line.strip() and _indent_width(line) <= indent:
                    break
                body_end += len(line) + 1
            blocks.append(LoopBlock(
                start=m.start() + indent,
                body_start=body_start,
                body_end=min(body_end, len(masked)),
                variable=m.group(2),
                collection=m.group(3),
            ))

        blocks.sort(key=lambda b: b.start)
        return blocks

    def issue(
        self,
        rule: str,
        issue_type: RuntimeIssueType,
        severity: Severity,
        description: str,
        line: int,
        proof: tuple[str, str, str],
        solution: tuple[str, str],
    ) -> RuntimeIssue:
        """Build a RuntimeIssue; ``proof`` is (step, trigger, result), ``solution`` is (fix, verification)."""
        step, trigger, result = proof
        fix, verification = solution
        return RuntimeIssue(
            id=self.allocator.next(),
            rule=rule,
            type=issue_type,
            severity=severity,
            description=description,
            file=self.label,
            line=line,
            proof=IssueProof(simulated_step=step, trigger=trigger, observed_result=result),
            solution=IssueSolution(fix=fix, verification=verification),
        )

    def risk(
        self,
        rule: str,
        component: str,
        risk_type: EnvironmentRiskType,
        likelihood: Likelihood,
        description: str,
        impact: str,
        line: int,
        required_changes: list[str],
        monitoring: str,
    ) -> EnvironmentRisk:
        return EnvironmentRisk(
            id=self.allocator.next(),
            rule=rule,
            component=component,
            risk_type=risk_type,
            description=description,
            impact=impact,
            likelihood=likelihood,
            file=self.label,
            line=line,
            mitigation=RiskMitigation(required_changes=tuple(required_changes), monitoring=monitoring),
        )

    def edge_case(
        self,
        rule: str,
        input: str,
        scenario: str,
        expected_failure: str,
        severity: Severity,
        line: int,
        fix: Optional[str] = None,
    ) -> EdgeCaseFailure:
        return EdgeCaseFailure(
            id=self.allocator.next(),
            rule=rule,
            input=input,
            scenario=scenario,
            expected_failure=expected_failure,
            severity=severity,
            file=self.label,
            line=line,
            fix=fix,
        )
