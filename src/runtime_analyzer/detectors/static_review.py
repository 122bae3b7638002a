"""Static review: line rules for risky constructs.

Detects:
- Null-like literals assigned to members without safe navigation
- Async declarations with no awaited or deferred work on the line
- Network calls outside a try block
- Database calls outside a try block
- Disposable resources created without a scoped-release construct
"""

from ..models import Finding, RuntimeIssueType, Severity
from ..matching import compile_pattern
from .common import ScanContext, SourceLine

UNCHECKED_NULL_RULE = "unchecked-null-assignment"
ASYNC_WITHOUT_AWAIT_RULE = "async-without-await"
NETWORK_RULE = "unguarded-network-call"
DATABASE_RULE = "unguarded-database-call"
UNDISPOSED_RULE = "undisposed-resource"

NULL_ASSIGNMENT = compile_pattern(
    r"(?:\b\w+\.\w+|\bstring\s+\w+)\s*(?<![=!<>])=(?!=)\s*(?:null|None|nil|undefined)\b",
)

ASYNC_MARKER = compile_pattern(r"\basync\b")
DEFERRED_WORK = compile_pattern(r"\b(?:await|Task|ValueTask|Promise|IAsyncEnumerable|Awaitable|Coroutine)\b")

NETWORK_CALL = compile_pattern(
    r"\bnew\s+(?:HttpClient|WebClient|RestClient|TcpClient|Socket)\s*\("
    r"|\.(?:GetAsync|PostAsync|PutAsync|PatchAsync|DeleteAsync|SendAsync|GetStringAsync"
    r"|GetByteArrayAsync|GetStreamAsync|DownloadString\w*|UploadString\w*|Execute(?:Get|Post)?Async)\s*\("
    r"|\bWebRequest\.Create\w*\s*\("
    r"|\b(?:requests|httpx)\.(?:get|post|put|patch|delete|head|request)\s*\("
    r"|\burlopen\s*\("
    r"|(?<![\w.])fetch\s*\("
    r"|\baxios(?:\.\w+)?\s*\(",
)

DATABASE_CALL = compile_pattern(
    r"\bnew\s+(?:Sql|Npgsql|MySql|Sqlite|OleDb|Odbc)(?:Connection|Command)\s*\("
    r"|\.Execute(?:Query|NonQuery|Reader|Scalar)?(?:Async)?\s*\("
    r"|\.Open(?:Async)?\s*\(\s*\)"
    r"|\bcursor\.execute(?:many)?\s*\("
    r"|\b(?:sqlite3|psycopg2?|pymysql|mysql\.connector)\.connect\s*\(",
)

DISPOSABLE_CREATION = compile_pattern(
    r"\bnew\s+\w*(?:Stream|Reader|Writer|Connection|Command)\w*\s*\("
    r"|(?<![\w.])open\s*\(",
)
SCOPED_RELEASE = compile_pattern(r"\b(?:using|with|try)\b|\bawait\s+using\b")

STATIC_FIELD = compile_pattern(r"\bstatic\s+readonly\b|\bstatic\s+final\b")
TRY_KEYWORD = compile_pattern(r"\btry\b")


def scan_unchecked_null(line: SourceLine, ctx: ScanContext) -> list[Finding]:
    """Flag null assignments to members on lines with no safe-navigation marker."""
    match = ctx.search(UNCHECKED_NULL_RULE, NULL_ASSIGNMENT, line.text)
    if not match or "?" in line.text:
        return []
    target = match.group(0).split("=")[0].strip()
    return [ctx.issue(
        UNCHECKED_NULL_RULE,
        RuntimeIssueType.crash_risk,
        Severity.high,
        f"'{target}' is assigned a null value and later dereferences will throw",
        line.number,
        proof=(
            f"Line {line.number} stores null into '{target}'",
            "Any later member access on the field",
            "NullReferenceException / AttributeError at the first dereference",
        ),
        solution=(
            f"Use a nullable annotation and safe navigation (?. / ??) for '{target}', or assign a default instance",
            f"Call the code path that reads '{target}' after this assignment and confirm it does not throw",
        ),
    )]


def scan_async_without_await(line: SourceLine, ctx: ScanContext) -> list[Finding]:
    if not ctx.contains(ASYNC_WITHOUT_AWAIT_RULE, ASYNC_MARKER, line.text):
        return []
    if ctx.contains(ASYNC_WITHOUT_AWAIT_RULE, DEFERRED_WORK, line.text):
        return []
    return [ctx.issue(
        ASYNC_WITHOUT_AWAIT_RULE,
        RuntimeIssueType.performance,
        Severity.medium,
        "Async declaration without awaited or deferred work runs synchronously on the caller's thread",
        line.number,
        proof=(
            f"Invoke the async member declared on line {line.number}",
            "The body never yields to the scheduler",
            "Work blocks the calling thread and the state machine adds overhead for nothing",
        ),
        solution=(
            "Return a Task/awaitable and await the I/O inside, or drop the async modifier",
            "Measure the caller's thread while the member runs; it should be released at the first await",
        ),
    )]


def scan_network_call(line: SourceLine, ctx: ScanContext) -> list[Finding]:
    """Network calls fail routinely; flag those that sit outside any try block."""
    if line.protected or ctx.contains(NETWORK_RULE, TRY_KEYWORD, line.text):
        return []
    if ctx.contains(NETWORK_RULE, STATIC_FIELD, line.text):
        return []
    match = ctx.search(NETWORK_RULE, NETWORK_CALL, line.text)
    if not match:
        return []
    call = match.group(0).rstrip("(").strip()
    return [ctx.issue(
        NETWORK_RULE,
        RuntimeIssueType.crash_risk,
        Severity.high,
        f"Network call '{call}' is not wrapped in error handling",
        line.number,
        proof=(
            f"Execute line {line.number} while the remote host is unreachable",
            "DNS failure, connection refused, timeout or a non-success status",
            "HttpRequestException / ConnectionError propagates and terminates the request",
        ),
        solution=(
            "Wrap the call in try/catch, set an explicit timeout and retry transient failures with backoff",
            "Point the endpoint at an unroutable address and confirm the caller receives a handled error",
        ),
    )]


def scan_database_call(line: SourceLine, ctx: ScanContext) -> list[Finding]:
    if line.protected or ctx.contains(DATABASE_RULE, TRY_KEYWORD, line.text):
        return []
    match = ctx.search(DATABASE_RULE, DATABASE_CALL, line.text)
    if not match:
        return []
    call = match.group(0).rstrip("(").strip()
    return [ctx.issue(
        DATABASE_RULE,
        RuntimeIssueType.crash_risk,
        Severity.high,
        f"Database call '{call}' is not wrapped in error handling",
        line.number,
        proof=(
            f"Execute line {line.number} while the database is unavailable",
            "Connection failure, deadlock, or command timeout",
            "SqlException / DatabaseError propagates and the open connection may leak",
        ),
        solution=(
            "Wrap the call in try/catch (or try/except) and release the connection in a finally block",
            "Stop the database during a test run and confirm the error is handled and connections are returned",
        ),
    )]


def scan_undisposed_resource(line: SourceLine, ctx: ScanContext) -> list[Finding]:
    match = ctx.search(UNDISPOSED_RULE, DISPOSABLE_CREATION, line.text)
    if not match or ctx.contains(UNDISPOSED_RULE, SCOPED_RELEASE, line.text):
        return []
    resource = match.group(0).rstrip("(").strip()
    return [ctx.issue(
        UNDISPOSED_RULE,
        RuntimeIssueType.performance,
        Severity.medium,
        f"Resource '{resource}' is created without a using/with block and may never be released",
        line.number,
        proof=(
            f"Run line {line.number} repeatedly under load",
            "An exception or early return skips the release call",
            "File handles or connections accumulate until the process hits its limit",
        ),
        solution=(
            "Create the resource in a using statement (C#), try-with-resources (Java) or a with block (Python)",
            "Run the code in a loop and confirm the open handle count stays flat",
        ),
    )]
