"""Input & edge-case simulation: bounds, null, parse and divide-by-zero inputs."""

import regex

from ..matching import compile_pattern
from ..models import Finding, Severity
from .common import ScanContext

INDEX_ACCESS_RULE = "unbounded-index-access"
NULL_PARAMETER_RULE = "missing-null-parameter-guard"
NUMERIC_PARSE_RULE = "unguarded-numeric-parse"
DIVISION_RULE = "unguarded-division"

# Names that precede brackets without being a collection access.
NON_COLLECTIONS = frozenset({
    "new", "string", "int", "long", "short", "byte", "sbyte", "char", "bool", "float", "double",
    "decimal", "object", "var", "let", "const", "uint", "ulong", "ushort", "void", "dynamic",
    "list", "dict", "tuple", "set", "type", "frozenset", "return", "yield", "in", "of", "await",
})

INDEX_ACCESS = compile_pattern(r"(?<![\w.])([a-z_]\w*(?:\.\w+)*)\s*\[\s*([^\]\s][^\]\n]*)\]")
BOUNDS_CHECK = compile_pattern(
    r"\.Length\b|\.Count\b|\.length\b|\.size\b|\blen\s*\(|\.Count\s*\(|\.size\s*\(|\.Any\s*\(|ElementAtOrDefault|TryGetValue",
)

PUBLIC_METHOD = compile_pattern(
    r"\bpublic\s+(?:(?:static|virtual|override|async|sealed|abstract|new)\s+)*"
    r"[\w<>\[\],.?]+\s+(\w+)\s*\(([^)]*)\)",
)
STRING_PARAM = compile_pattern(r"\b(?:string|String)\s+(\w+)")

NUMERIC_PARSE = compile_pattern(
    r"\b(?:int|Int16|Int32|Int64|long|short|uint|ulong|decimal|Decimal|double|Double|float|Single|byte)"
    r"\.Parse\s*\("
    r"|\bConvert\.To(?:Int16|Int32|Int64|Decimal|Double|Single)\s*\("
    r"|\bInteger\.(?:parseInt|valueOf)\s*\(|\bLong\.parseLong\s*\(|\bDouble\.parseDouble\s*\(",
)
SAFE_PARSE = compile_pattern(r"\bTryParse\b|NumberFormatException|\bisNaN\s*\(|\bisnumeric\s*\(|\bisdigit\s*\(")

DIVISION = compile_pattern(r"(?:\b\w+|\)|\])\s*//?(?![/*=])\s*([A-Za-z_][\w.]*|\d+(?:\.\d+)?)")
DIVISION_HANDLED = compile_pattern(r"DivideByZeroException|ZeroDivisionError|ArithmeticException")


def _divisor_guard(divisor: str) -> regex.Pattern:
    d = regex.escape(divisor)
    return compile_pattern(
        rf"(?<![\w.]){d}\s*(?:==|!=|!==|===|>|<|>=|<=)\s*0(?![\w.])"
        rf"|(?<![\w.])0\s*(?:==|!=|!==|===|<|>|<=|>=)\s*{d}(?![\w.])"
        rf"|(?<![\w.]){d}\s+is\s+(?:not\s+)?0\b"
        rf"|\bif\s+(?:not\s+)?{d}\s*:"
        rf"|\bif\s*\(\s*!?\s*{d}\s*\)"
        rf"|\b(?:Math\.)?[Mm]ax\s*\([^)]*{d}",
    )


def scan_index_access(ctx: ScanContext) -> list[Finding]:
    """Indexed access in a source that never checks a length or count."""
    if ctx.contains(INDEX_ACCESS_RULE, BOUNDS_CHECK, ctx.masked):
        return []

    findings: list[Finding] = []
    seen: set[str] = set()
    for m in ctx.finditer(INDEX_ACCESS_RULE, INDEX_ACCESS, ctx.masked):
        collection = m.group(1)
        if collection in NON_COLLECTIONS or collection in seen:
            continue
        seen.add(collection)
        index = m.group(2).strip()
        findings.append(ctx.edge_case(
            INDEX_ACCESS_RULE,
            input=f"Empty or shorter-than-expected '{collection}'",
            scenario=f"'{collection}[{index}]' is read with no length or count check anywhere in scope",
            expected_failure="IndexOutOfRangeException / IndexError: index was outside the bounds of the collection",
            severity=Severity.high,
            line=ctx.line_of(m.start()),
            fix=f"Check '{collection}' length/count before indexing, or use a safe accessor such as ElementAtOrDefault",
        ))
    return findings


def scan_null_parameters(ctx: ScanContext) -> list[Finding]:
    findings: list[Finding] = []
    for m in ctx.finditer(NULL_PARAMETER_RULE, PUBLIC_METHOD, ctx.masked):
        method = m.group(1)
        for param in ctx.finditer(NULL_PARAMETER_RULE, STRING_PARAM, m.group(2)):
            name = regex.escape(param.group(1))
            guard = compile_pattern(
                rf"ArgumentNullException|IsNullOrEmpty\s*\(\s*{name}\s*\)|IsNullOrWhiteSpace\s*\(\s*{name}\s*\)"
                rf"|\b{name}\s*[=!]=\s*null\b|\b{name}\s+is\s+(?:not\s+)?null\b|\b{name}\s*\?\?\s*throw\b"
                rf"|ThrowIfNull\w*\s*\(\s*{name}\b|requireNonNull\s*\(\s*{name}\b",
            )
            if ctx.contains(NULL_PARAMETER_RULE, guard, ctx.masked):
                continue
            findings.append(ctx.edge_case(
                NULL_PARAMETER_RULE,
                input="null string parameter",
                scenario=f"Caller passes null for '{param.group(1)}' to public method '{method}'",
                expected_failure=f"NullReferenceException when '{param.group(1)}' is first dereferenced",
                severity=Severity.medium,
                line=ctx.line_of(m.start()),
                fix=f"Add a guard clause: ArgumentNullException.ThrowIfNull({param.group(1)}) or string.IsNullOrEmpty check",
            ))
            break
    return findings


def scan_numeric_parse(ctx: ScanContext) -> list[Finding]:
    if ctx.contains(NUMERIC_PARSE_RULE, SAFE_PARSE, ctx.masked):
        return []

    findings: list[Finding] = []
    for m in ctx.finditer(NUMERIC_PARSE_RULE, NUMERIC_PARSE, ctx.masked):
        call = m.group(0).rstrip("(").strip()
        findings.append(ctx.edge_case(
            NUMERIC_PARSE_RULE,
            input="Non-numeric string input",
            scenario=f"'{call}' receives text such as \"abc\", an empty string or a value with a thousands separator",
            expected_failure="FormatException (NumberFormatException in Java): input string was not in a correct format",
            severity=Severity.medium,
            line=ctx.line_of(m.start()),
            fix=f"Replace '{call}' with the TryParse variant and handle the false case",
        ))
    return findings


def scan_division(ctx: ScanContext) -> list[Finding]:
    """Division expressions whose divisor is never compared against zero."""
    if ctx.contains(DIVISION_RULE, DIVISION_HANDLED, ctx.masked):
        return []

    findings: list[Finding] = []
    seen: set[tuple[str, int]] = set()
    for m in ctx.finditer(DIVISION_RULE, DIVISION, ctx.masked):
        divisor = m.group(1)
        if divisor[0].isdigit() and float(divisor) != 0:
            continue
        line = ctx.line_of(m.start(1))
        if (divisor, line) in seen:
            continue
        seen.add((divisor, line))
        if not divisor[0].isdigit() and ctx.contains(DIVISION_RULE, _divisor_guard(divisor), ctx.masked):
            continue
        findings.append(ctx.edge_case(
            DIVISION_RULE,
            input="Zero divisor",
            scenario=f"'{divisor}' is 0 when the division on line {line} executes",
            expected_failure="DivideByZeroException / ZeroDivisionError: attempted divide-by-zero",
            severity=Severity.high,
            line=line,
            fix=f"Check '{divisor}' against zero before dividing and return or throw a descriptive error",
        ))
    return findings
