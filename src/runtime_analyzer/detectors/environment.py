"""Environment & dependency checks.

Detects:
- Literal URLs embedded in source
- File system access without path validation
- Indexed configuration lookups with no fallback
- Query calls nested inside loops (N+1)
- Database and external HTTP API dependencies
"""

from urllib.parse import urlparse

from ..matching import compile_pattern
from ..models import EnvironmentRiskType, Finding, Likelihood
from .common import ScanContext

HARDCODED_ENDPOINT_RULE = "hardcoded-endpoint"
FILESYSTEM_RULE = "filesystem-dependency"
CONFIG_ACCESS_RULE = "unchecked-config-access"
N_PLUS_ONE_RULE = "n-plus-one-query"
DATABASE_DEPENDENCY_RULE = "database-dependency"
EXTERNAL_API_RULE = "external-api-dependency"

URL_LITERAL = compile_pattern(r"\b(?:https?|wss?|ftp)://[^\s\"'`<>()\[\]{}]+")

FILE_ACCESS = compile_pattern(
    r"\bFile\.(?:Read\w*|Write\w*|Open\w*|Create\w*|Append\w*|Copy|Move|Delete)\s*\("
    r"|\bnew\s+File(?:Stream|Reader|Writer|InputStream|OutputStream)\s*\("
    r"|(?<![\w.])open\s*\("
    r"|\bfs\.(?:readFile|writeFile|appendFile|readFileSync|writeFileSync|appendFileSync"
    r"|createReadStream|createWriteStream)\s*\(",
)
PATH_VALIDATION = compile_pattern(
    r"\b(?:File|Directory)\.Exists\s*\(|\bPath\.(?:GetFullPath|IsPathRooted)\s*\("
    r"|\bos\.path\.(?:exists|isfile|isdir)\s*\(|\.(?:exists|is_file|is_dir)\s*\(\s*\)"
    r"|\bexistsSync\s*\(|\bFiles\.exists\s*\(",
)

CONFIG_LOOKUP = compile_pattern(
    r"\b\w*(?:Configuration|Config|config|Settings|settings|AppSettings|environ)"
    r"\s*\[\s*[\"']([^\"'\n]+)[\"']\s*\]"
    r"|\bprocess\.env\.(\w+)",
)
CONFIG_FALLBACK = compile_pattern(r"^\s*(?:\?\?|\|\||\bor\b|\?\s)")

QUERY_CALL = compile_pattern(
    r"\.(?:Query\w*|Execute\w*|FromSql\w*|SqlQuery\w*|Find\w*|execute\w*|query\w*|fetch(?:one|all|many)?)\s*\("
    r"|\bnew\s+(?:Sql|Npgsql|MySql|Sqlite)Command\s*\(",
)

DATABASE_MARKER = compile_pattern(
    r"\b(?:SqlConnection|NpgsqlConnection|MySqlConnection|SqliteConnection|DbContext|IDbConnection"
    r"|SqlCommand|ConnectionString|DriverManager|sqlite3|psycopg2?|pymysql|sqlalchemy|mongoose|MongoClient)\b"
    r"|\bcursor\.execute\s*\(",
)
EXTERNAL_API_MARKER = compile_pattern(
    r"\b(?:HttpClient|WebClient|RestClient|WebRequest|HttpURLConnection|requests|httpx|aiohttp|axios)\b"
    r"|(?<![\w.])fetch\s*\(|\burlopen\s*\(",
)


def scan_hardcoded_endpoints(ctx: ScanContext) -> list[Finding]:
    """One risk per distinct URL, located at its first occurrence."""
    findings: list[Finding] = []
    seen: set[str] = set()
    for m in ctx.finditer(HARDCODED_ENDPOINT_RULE, URL_LITERAL, ctx.code):
        url = m.group(0).rstrip(".,;:")
        if url in seen:
            continue
        seen.add(url)
        host = urlparse(url).netloc or url
        findings.append(ctx.risk(
            HARDCODED_ENDPOINT_RULE,
            component=f"Endpoint {url}",
            risk_type=EnvironmentRiskType.dependency,
            likelihood=Likelihood.medium,
            description=f"URL '{url}' is hardcoded in source",
            impact=f"Moving {host} or deploying to another environment requires a code change and redeploy",
            line=ctx.line_of(m.start()),
            required_changes=[
                "Move the URL into configuration (appsettings, environment variable or settings module)",
                "Validate the configured value at startup",
                "Provide per-environment values for development, staging and production",
            ],
            monitoring=f"Alert on connection failures and latency for {host}",
        ))
    return findings


def scan_filesystem_access(ctx: ScanContext) -> list[Finding]:
    if ctx.contains(FILESYSTEM_RULE, PATH_VALIDATION, ctx.masked):
        return []

    findings: list[Finding] = []
    seen_lines: set[int] = set()
    for m in ctx.finditer(FILESYSTEM_RULE, FILE_ACCESS, ctx.masked):
        line = ctx.line_of(m.start())
        if line in seen_lines:
            continue
        seen_lines.add(line)
        call = m.group(0).rstrip("(").strip()
        findings.append(ctx.risk(
            FILESYSTEM_RULE,
            component="File system",
            risk_type=EnvironmentRiskType.dependency,
            likelihood=Likelihood.high,
            description=f"'{call}' touches the file system without validating the path first",
            impact="Missing files, permission differences or read-only containers raise IOError at runtime",
            line=line,
            required_changes=[
                "Check that the path exists and is inside the expected directory before opening it",
                "Handle FileNotFoundException/UnauthorizedAccessException (or OSError) explicitly",
                "Make the base directory configurable per environment",
            ],
            monitoring="Log and count file access failures; alert on disk space and permission errors",
        ))
    return findings


def scan_config_access(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    code = ctx.code
    for m in ctx.finditer(CONFIG_ACCESS_RULE, CONFIG_LOOKUP, code):
        line_end = code.find("\n", m.end())
        rest = code[m.end():len(code) if line_end == -1 else line_end]
        if ctx.contains(CONFIG_ACCESS_RULE, CONFIG_FALLBACK, rest):
            continue
        key = m.group(1) or m.group(2)
        findings.append(ctx.risk(
            CONFIG_ACCESS_RULE,
            component=f"Configuration key '{key}'",
            risk_type=EnvironmentRiskType.configuration,
            likelihood=Likelihood.medium,
            description=f"Configuration value '{key}' is read without a default or presence check",
            impact="A missing key yields null/KeyError and the failure surfaces far from its cause",
            line=ctx.line_of(m.start()),
            required_changes=[
                f"Supply a default for '{key}' (?? / || / .get(key, default))",
                "Validate required configuration at startup and fail fast with a clear message",
            ],
            monitoring=f"Log the effective value source for '{key}' at startup",
        ))
    return findings


def scan_n_plus_one(ctx: ScanContext) -> list[Finding]:
    """Query-shaped calls nested inside a loop body."""
    findings: list[Finding] = []
    for loop in ctx.loops(N_PLUS_ONE_RULE):
        m = ctx.search(N_PLUS_ONE_RULE, QUERY_CALL, ctx.masked, loop.body_start, loop.body_end)
        if not m:
            continue
        call = m.group(0).rstrip("(").strip()
        source = f" over '{loop.collection}'" if loop.collection else ""
        findings.append(ctx.risk(
            N_PLUS_ONE_RULE,
            component="Database",
            risk_type=EnvironmentRiskType.performance,
            likelihood=Likelihood.high,
            description=f"N+1 query pattern: '{call}' runs once per iteration of the loop{source}",
            impact="Query count grows with the data set; latency and database load scale linearly with row count",
            line=ctx.line_of(m.start()),
            required_changes=[
                "Load the related rows in a single query (JOIN, IN clause or eager loading)",
                "Move the query out of the loop and look results up from an in-memory map",
                "Add a test that asserts the number of queries issued for a multi-row input",
            ],
            monitoring="Track queries per request and alert when it grows with result size",
        ))
    return findings


def scan_database_dependency(ctx: ScanContext) -> list[Finding]:
    m = ctx.search(DATABASE_DEPENDENCY_RULE, DATABASE_MARKER, ctx.masked)
    if not m:
        return []
    return [ctx.risk(
        DATABASE_DEPENDENCY_RULE,
        component="Database",
        risk_type=EnvironmentRiskType.dependency,
        likelihood=Likelihood.high,
        description="Code depends on a database connection being available at runtime",
        impact="Outages, connection pool exhaustion or schema drift break every code path that queries",
        line=ctx.line_of(m.start()),
        required_changes=[
            "Load the connection string from configuration and validate it at startup",
            "Configure connection pooling limits and command timeouts",
            "Add retry with backoff for transient failures",
            "Expose a health check that verifies connectivity",
        ],
        monitoring="Monitor connection pool usage, query latency and failed connection attempts",
    )]


def scan_external_api_dependency(ctx: ScanContext) -> list[Finding]:
    m = ctx.search(EXTERNAL_API_RULE, EXTERNAL_API_MARKER, ctx.masked)
    if not m:
        return []
    return [ctx.risk(
        EXTERNAL_API_RULE,
        component="External HTTP API",
        risk_type=EnvironmentRiskType.dependency,
        likelihood=Likelihood.medium,
        description="Code calls an external HTTP service whose availability it does not control",
        impact="Remote latency, rate limits or outages propagate directly to this service",
        line=ctx.line_of(m.start()),
        required_changes=[
            "Set explicit request timeouts",
            "Add retries with exponential backoff and a circuit breaker",
            "Degrade gracefully when the service is unavailable",
        ],
        monitoring="Track response times, error rates and rate-limit responses per external endpoint",
    )]

