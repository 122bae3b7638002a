"""Runtime simulation: async, memory, concurrency and exception-handling rules."""

import regex

from ..matching import compile_pattern
from ..models import Finding, RuntimeIssueType, Severity
from .common import ScanContext

ASYNC_VOID_RULE = "async-void"
CANCELLATION_RULE = "async-without-cancellation"
UNBOUNDED_GROWTH_RULE = "unbounded-growth-container"
STRING_CONCAT_RULE = "string-concatenation-in-loop"
OVERSIZED_ALLOCATION_RULE = "oversized-allocation"
CONNECTION_POOL_RULE = "connection-pool-exhaustion"
SHARED_STATE_RULE = "mutable-shared-state"
COLLECTION_MUTATION_RULE = "collection-mutated-during-iteration"
BROAD_CATCH_RULE = "broad-catch"

ASYNC_VOID = compile_pattern(r"\basync\s+void\s+(\w+)\s*\(")

# Async method signatures: C# Task/ValueTask, Python async def, JS async function.
ASYNC_SIGNATURE = compile_pattern(
    r"\basync\s+(?:Task|ValueTask)(?:<[^(\n]*?>)?\s+(\w+)\s*\(([^)]*)\)"
    r"|\basync\s+def\s+(\w+)\s*\(([^)]*)\)"
    r"|\basync\s+function\s*\*?\s*(\w+)\s*\(([^)]*)\)",
)
CANCELLATION_PARAM = compile_pattern(r"CancellationToken|\bcancel\w*|\bct\b|AbortSignal|\bsignal\b", regex.IGNORECASE)

GROWTH_CONTAINER = compile_pattern(
    r"\bnew\s+(List|Dictionary|HashSet|StringBuilder|Queue|Stack|ArrayList|HashMap|ConcurrentDictionary)"
    r"\s*(?:<[^(\n]*?>)?\s*\(\s*\)",
)
GROWTH_CALL = compile_pattern(r"\.(?:Add|Append|AppendLine|Enqueue|Push|TryAdd|put|add|append)\s*\(")
CAPACITY_HINT = compile_pattern(r"capacity|EnsureCapacity|TrimExcess|maxlen|MaxSize", regex.IGNORECASE)

STRING_APPEND = compile_pattern(r"\b(\w+)\s*\+=\s*[^;\n]*[\"'`]|\b(\w+)\s*=\s*\2\s*\+\s*[^;\n]*[\"'`]")

FIXED_ALLOCATION = compile_pattern(
    r"\bnew\s+\w+\s*\[\s*(\d[\d_]*)\s*\]"
    r"|\bbytearray\s*\(\s*(\d[\d_]*)\s*\)"
    r"|\[\s*0\s*\]\s*\*\s*(\d[\d_]*)",
)
POOLED_BUFFER = compile_pattern(r"\b(?:ArrayPool|MemoryPool|RecyclableMemoryStream)\b|\.Dispose\s*\(|\bstackalloc\b")

AD_HOC_CLIENT = compile_pattern(
    r"\bnew\s+(HttpClient|WebClient|RestClient|SmtpClient|TcpClient)\s*\("
    r"|\b(requests\.Session|httpx\.(?:Async)?Client)\s*\(",
)
SHARED_DECLARATION = compile_pattern(r"\bstatic\s+readonly\b|\bstatic\s+final\b|^\s*[A-Z_][A-Z0-9_]*\s*=")

STATIC_FIELD = compile_pattern(
    r"(?<!\busing\s+)\bstatic\s+(?!readonly\b|const\b|final\b|class\b|void\b|async\b|extern\b|interface\b|struct\b|enum\b|record\b)"
    r"[\w<>\[\],.?\s]+?\b(\w+)\s*(?:=|;)",
)
MODULE_MUTABLE = compile_pattern(
    r"^(?![A-Z_][A-Z0-9_]*\b)([a-z_]\w*)\s*(?::\s*[\w\[\], .]+)?=\s*(?:\[|\{|dict\(|list\(|set\(|defaultdict\()",
    regex.MULTILINE,
)
SYNCHRONIZATION = compile_pattern(
    r"\block\s*\(|\bInterlocked\.|\bsynchronized\b|\bMonitor\.Enter\b|\bSemaphoreSlim\b|\bMutex\b"
    r"|\bConcurrent\w+|\bthreading\.(?:R?Lock|Semaphore)\b|\basyncio\.Lock\b|\bLock\s*\(",
)

BROAD_CATCH = compile_pattern(
    r"\bcatch\s*\(\s*(?:System\.)?(?:Exception|Throwable)\b"
    r"|^[ \t]*except\s+(?:Exception|BaseException)\b"
    r"|^[ \t]*except\s*:",
    regex.MULTILINE,
)


def scan_async_void(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    for m in ctx.finditer(ASYNC_VOID_RULE, ASYNC_VOID, ctx.masked):
        name = m.group(1)
        findings.append(ctx.issue(
            ASYNC_VOID_RULE,
            RuntimeIssueType.crash_risk,
            Severity.high,
            f"async void method '{name}' cannot be awaited and its exceptions bypass the caller",
            ctx.line_of(m.start()),
            proof=(
                f"Call '{name}' and let the awaited work throw",
                "The exception is raised on the synchronization context, not returned to the caller",
                "Unobserved exception crashes the process",
            ),
            solution=(
                f"Change '{name}' to return Task and await it; keep async void only for top-level event handlers",
                f"Throw from inside '{name}' in a test and assert the caller observes the exception",
            ),
        ))
    return findings


def scan_missing_cancellation(ctx: ScanContext) -> list[Finding]:
    """Async signatures whose parameter lists carry no cancellation token."""
    findings: list[Finding] = []
    for m in ctx.finditer(CANCELLATION_RULE, ASYNC_SIGNATURE, ctx.masked):
        group = next(g for g in (2, 4, 6) if m.group(g) is not None)
        name = m.group(group - 1)
        params = ctx.code[m.start(group):m.end(group)]
        if ctx.contains(CANCELLATION_RULE, CANCELLATION_PARAM, params):
            continue
        findings.append(ctx.issue(
            CANCELLATION_RULE,
            RuntimeIssueType.performance,
            Severity.medium,
            f"Async method '{name}' does not accept a cancellation token, so callers cannot stop it",
            ctx.line_of(m.start()),
            proof=(
                f"Start '{name}' and abandon the request that triggered it",
                "Client disconnects or a shutdown is requested mid-operation",
                "Work continues to completion, holding threads, sockets and memory",
            ),
            solution=(
                f"Add a CancellationToken (or cancel/AbortSignal) parameter to '{name}' and pass it to every awaited call",
                "Cancel the token mid-operation and assert the method stops promptly with a cancellation error",
            ),
        ))
    return findings


def scan_unbounded_growth(ctx: ScanContext) -> list[Finding]:
    if ctx.contains(UNBOUNDED_GROWTH_RULE, CAPACITY_HINT, ctx.code):
        return []
    if not ctx.contains(UNBOUNDED_GROWTH_RULE, GROWTH_CALL, ctx.masked):
        return []

    findings: list[Finding] = []
    for m in ctx.finditer(UNBOUNDED_GROWTH_RULE, GROWTH_CONTAINER, ctx.masked):
        container = m.group(1)
        findings.append(ctx.issue(
            UNBOUNDED_GROWTH_RULE,
            RuntimeIssueType.performance,
            Severity.low,
            f"{container} grows without a capacity hint or bound",
            ctx.line_of(m.start()),
            proof=(
                f"Feed a large input into the code that fills the {container}",
                "Element count grows past each internal buffer size",
                "Repeated reallocation and copying; unbounded memory growth for long-lived instances",
            ),
            solution=(
                f"Pass an initial capacity to the {container} constructor and cap its size where it is long-lived",
                "Profile allocations with a large input and confirm the resize count drops",
            ),
        ))
    return findings


def scan_string_concatenation(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    for loop in ctx.loops(STRING_CONCAT_RULE):
        m = ctx.search(STRING_CONCAT_RULE, STRING_APPEND, ctx.code, loop.body_start, loop.body_end)
        if not m:
            continue
        target = m.group(1) or m.group(2)
        findings.append(ctx.issue(
            STRING_CONCAT_RULE,
            RuntimeIssueType.performance,
            Severity.medium,
            f"String '{target}' is concatenated inside a loop, copying the whole string on every iteration",
            ctx.line_of(m.start()),
            proof=(
                "Run the loop over a large collection",
                "Each += allocates a new string the size of the accumulated result",
                "Quadratic time and heavy garbage collection pressure",
            ),
            solution=(
                "Accumulate with StringBuilder (C#/Java), an array join (JS) or ''.join (Python)",
                "Benchmark the loop with 100k iterations before and after the change",
            ),
        ))
    return findings


def scan_oversized_allocation(ctx: ScanContext) -> list[Finding]:
    threshold = ctx.config.large_allocation_threshold
    if ctx.contains(OVERSIZED_ALLOCATION_RULE, POOLED_BUFFER, ctx.masked):
        return []

    findings: list[Finding] = []
    for m in ctx.finditer(OVERSIZED_ALLOCATION_RULE, FIXED_ALLOCATION, ctx.masked):
        size = int((m.group(1) or m.group(2) or m.group(3)).replace("_", ""))
        if size <= threshold:
            continue
        findings.append(ctx.issue(
            OVERSIZED_ALLOCATION_RULE,
            RuntimeIssueType.performance,
            Severity.medium,
            f"Allocation of {size} elements exceeds the large-object threshold ({threshold})",
            ctx.line_of(m.start()),
            proof=(
                "Execute the allocation on every request",
                f"Buffer of {size} elements lands on the large object heap",
                "Heap fragmentation and expensive full collections under load",
            ),
            solution=(
                "Rent the buffer from ArrayPool (or a pooled/streamed alternative) and return it when done",
                "Watch gen-2 collection counts under sustained load and confirm they stay stable",
            ),
        ))
    return findings


def scan_connection_pool(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    lines = ctx.code.split("\n")
    for m in ctx.finditer(CONNECTION_POOL_RULE, AD_HOC_CLIENT, ctx.masked):
        line = ctx.line_of(m.start())
        if ctx.contains(CONNECTION_POOL_RULE, SHARED_DECLARATION, lines[line - 1]):
            continue
        client = m.group(1) or m.group(2)
        findings.append(ctx.issue(
            CONNECTION_POOL_RULE,
            RuntimeIssueType.performance,
            Severity.medium,
            f"New {client} created per call instead of reusing a shared instance",
            line,
            proof=(
                "Invoke the method many times in quick succession",
                "Each instance opens its own sockets, which linger in TIME_WAIT after disposal",
                "Socket exhaustion and intermittent connection failures under load",
            ),
            solution=(
                f"Share one {client} (static readonly field, IHttpClientFactory, or a module-level session)",
                "Run a load test and confirm the number of open sockets stays bounded",
            ),
        ))
    return findings


def scan_mutable_shared_state(ctx: ScanContext) -> list[Finding]:
    if ctx.contains(SHARED_STATE_RULE, SYNCHRONIZATION, ctx.masked):
        return []

    matches = ctx.finditer(SHARED_STATE_RULE, STATIC_FIELD, ctx.masked)
    matches += ctx.finditer(SHARED_STATE_RULE, MODULE_MUTABLE, ctx.masked)

    findings: list[Finding] = []
    seen: set[str] = set()
    for m in sorted(matches, key=lambda m: m.start()):
        field = m.group(1)
        if field in seen:
            continue
        seen.add(field)
        findings.append(ctx.issue(
            SHARED_STATE_RULE,
            RuntimeIssueType.crash_risk,
            Severity.high,
            f"Shared mutable field '{field}' is modified without synchronization",
            ctx.line_of(m.start()),
            proof=(
                f"Two threads update '{field}' at the same time",
                "Interleaved read-modify-write sequences",
                "Lost updates, corrupted collections, or InvalidOperationException from concurrent modification",
            ),
            solution=(
                f"Make '{field}' readonly/immutable, guard writes with a lock, or use a concurrent collection",
                f"Hammer the code path from parallel threads and assert '{field}' ends in the expected state",
            ),
        ))
    return findings


def scan_collection_mutation(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    for loop in ctx.loops(COLLECTION_MUTATION_RULE):
        if not loop.collection:
            continue
        mutation = compile_pattern(
            rf"(?<![\w.]){regex.escape(loop.collection)}\s*\.\s*"
            r"(?:Add|AddRange|Remove|RemoveAt|RemoveAll|Insert|Clear|append|extend|remove|pop|insert|clear|push|splice|shift)\s*\(",
        )
        m = ctx.search(COLLECTION_MUTATION_RULE, mutation, ctx.masked, loop.body_start, loop.body_end)
        if not m:
            continue
        findings.append(ctx.issue(
            COLLECTION_MUTATION_RULE,
            RuntimeIssueType.crash_risk,
            Severity.high,
            f"Collection '{loop.collection}' is modified while it is being iterated",
            ctx.line_of(m.start()),
            proof=(
                f"Iterate '{loop.collection}' with at least one element that triggers the mutation",
                "The enumerator detects the collection version change",
                "InvalidOperationException (C#), ConcurrentModificationException (Java), "
                "RuntimeError or skipped elements (Python)",
            ),
            solution=(
                f"Iterate over a copy of '{loop.collection}' (ToList()/list(...)) or collect changes and apply them after the loop",
                "Run the loop with elements that trigger the mutation and assert all items are processed once",
            ),
        ))
    return findings


def scan_broad_catch(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    for m in ctx.finditer(BROAD_CATCH_RULE, BROAD_CATCH, ctx.masked):
        findings.append(ctx.issue(
            BROAD_CATCH_RULE,
            RuntimeIssueType.incorrect_output,
            Severity.medium,
            "Catch clause handles the most general exception type and can mask unrelated failures",
            ctx.line_of(m.start()),
            proof=(
                "Raise an unexpected exception (for example a null dereference) inside the try block",
                "The broad handler swallows it alongside the expected failure",
                "Execution continues with partial state and returns a misleading result",
            ),
            solution=(
                "Catch the specific exception types the block can raise and let the rest propagate",
                "Inject an unrelated exception in a test and confirm it reaches the caller",
            ),
        ))
    return findings
