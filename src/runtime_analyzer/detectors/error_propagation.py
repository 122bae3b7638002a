"""Error-propagation analysis: unhandled async paths and silent failures."""

import regex

from ..matching import compile_pattern
from ..models import Finding, RuntimeIssueType, Severity
from .common import ScanContext

UNHANDLED_ASYNC_RULE = "unhandled-async-exception-path"
EMPTY_CATCH_RULE = "empty-catch"

ASYNC_METHOD = compile_pattern(
    r"\basync\s+(?:Task|ValueTask|void)\b|\basync\s+def\b|\basync\s+function\b|\basync\s*\([^)]*\)\s*=>",
)
TRY_BLOCK = compile_pattern(r"\btry\b")

EMPTY_CATCH = compile_pattern(
    r"\bcatch\b(?:\s*\([^)]*\))?\s*\{\s*\}"
    r"|^[ \t]*except\b[^\n]*:\s*(?:pass|\.\.\.)[ \t]*$",
    regex.MULTILINE,
)


def scan_unhandled_async(ctx: ScanContext) -> list[Finding]:
    """Async code in a source that has no try block at all."""
    m = ctx.search(UNHANDLED_ASYNC_RULE, ASYNC_METHOD, ctx.masked)
    if not m or ctx.contains(UNHANDLED_ASYNC_RULE, TRY_BLOCK, ctx.masked):
        return []
    return [ctx.issue(
        UNHANDLED_ASYNC_RULE,
        RuntimeIssueType.crash_risk,
        Severity.high,
        "Async operations have no exception handling anywhere on their path",
        ctx.line_of(m.start()),
        proof=(
            "Let any awaited operation fault",
            "The exception is rethrown at the await point and nothing catches it",
            "Unobserved task exception or an unhandled rejection terminates the request or the process",
        ),
        solution=(
            "Catch expected failures at the async boundary and log or translate them; add a global handler for the rest",
            "Make an awaited dependency throw in a test and assert the caller gets a handled error",
        ),
    )]


def scan_empty_catch(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    for m in ctx.finditer(EMPTY_CATCH_RULE, EMPTY_CATCH, ctx.masked):
        findings.append(ctx.issue(
            EMPTY_CATCH_RULE,
            RuntimeIssueType.incorrect_output,
            Severity.high,
            "Silent failure: the exception handler is empty and discards the error",
            ctx.line_of(m.start()),
            proof=(
                "Make the protected operation throw",
                "The handler catches the exception and does nothing",
                "Execution continues as if it succeeded; callers see wrong or missing data and no log entry",
            ),
            solution=(
                "Log the exception with context and rethrow, return an explicit failure, or remove the handler",
                "Force the failure in a test and assert it is logged and surfaced to the caller",
            ),
        ))
    return findings
