"""Render analysis results as a summary, a structured document, or JSON."""

import json
from typing import Any, Callable, Optional

from .errors import InputValidationError
from .models import (
    EdgeCaseFailure,
    EnvironmentRisk,
    Likelihood,
    RuntimeAnalysisResult,
    RuntimeIssue,
    RuntimeIssueType,
    Severity,
)

CRITICAL_BANNER = "⚠️  CRITICAL ISSUES DETECTED"
PASS_BANNER = "✅ PASS: No critical issues detected"

_QUOTE_TRIGGERS = set(':#[]{},&*!|>%@`"\'')


def _require(result: Optional[RuntimeAnalysisResult]) -> RuntimeAnalysisResult:
    if result is None:
        raise InputValidationError("Result must not be None")
    return result


def _escape_value(value: Any) -> str:
    """Render a scalar, double-quoting it when it would be ambiguous unquoted."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = getattr(value, "value", value)
    text = str(text)
    needs_quotes = (
        text == ""
        or text != text.strip()
        or text.startswith("-")
        or "\n" in text
        or any(ch in _QUOTE_TRIGGERS for ch in text)
    )
    if not needs_quotes:
        return text
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _count(values, levels) -> dict[str, int]:
    counts = {level.value: 0 for level in reversed(list(levels))}
    for value in values:
        counts[value.value] += 1
    return counts


def _format_counts(counts: dict[str, int]) -> str:
    return ", ".join(f"{name}: {count}" for name, count in counts.items())


def _recommendations(result: RuntimeAnalysisResult) -> list[str]:
    recs: list[str] = []
    issue_types = {i.type for i in result.runtime_issues}
    if result.has_critical_issues:
        recs.append("Fix critical-severity issues and high-likelihood environment risks before deploying")
    if RuntimeIssueType.crash_risk in issue_types:
        recs.append("Wrap crash-prone calls in error handling and validate inputs at public boundaries")
    if RuntimeIssueType.incorrect_output in issue_types:
        recs.append("Replace empty and overly broad exception handlers with specific, logged handling")
    if RuntimeIssueType.performance in issue_types:
        recs.append("Profile the flagged hot paths under realistic load and pool or reuse expensive resources")
    if result.environment_risks:
        recs.append("Move environment-specific values into configuration and add monitoring for external dependencies")
    if result.edge_case_failures:
        recs.append("Add tests for the listed edge-case inputs and guard against them")
    return recs


def format_summary(result: RuntimeAnalysisResult) -> str:
    """Human-readable overview with a critical/pass banner and counts."""
    result = _require(result)
    meta = result.metadata
    lines = [
        "Runtime Analysis Summary",
        "========================",
        CRITICAL_BANNER if result.has_critical_issues else PASS_BANNER,
        "",
        f"Total issues: {result.total_issue_count}",
        f"Runtime issues: {len(result.runtime_issues)} "
        f"({_format_counts(_count((i.severity for i in result.runtime_issues), Severity))})",
        f"Environment risks: {len(result.environment_risks)} "
        f"({_format_counts(_count((r.likelihood for r in result.environment_risks), Likelihood))})",
        f"Edge case failures: {len(result.edge_case_failures)} "
        f"({_format_counts(_count((e.severity for e in result.edge_case_failures), Severity))})",
        "",
        f"Analyzed files: {', '.join(meta.analyzed_files) if meta.analyzed_files else '(inline source)'}",
        f"Duration: {meta.duration_ms:.1f} ms",
        f"Analyzer version: {meta.analyzer_version}",
    ]

    recs = _recommendations(result)
    if recs:
        lines.append("")
        lines.append("Recommendations:")
        lines.extend(f"  {n}. {rec}" for n, rec in enumerate(recs, start=1))

    return "\n".join(lines) + "\n"


def _issue_block(issue: RuntimeIssue) -> list[str]:
    return [
        f"ISSUE #{issue.id}:",
        f"  rule: {_escape_value(issue.rule)}",
        f"  type: {_escape_value(issue.type)}",
        f"  severity: {_escape_value(issue.severity)}",
        f"  location: {_escape_value(issue.location)}",
        f"  description: {_escape_value(issue.description)}",
        "  proof:",
        f"    simulated_step: {_escape_value(issue.proof.simulated_step)}",
        f"    trigger: {_escape_value(issue.proof.trigger)}",
        f"    observed_result: {_escape_value(issue.proof.observed_result)}",
        "  solution:",
        f"    fix: {_escape_value(issue.solution.fix)}",
        f"    verification: {_escape_value(issue.solution.verification)}",
    ]


def _risk_block(risk: EnvironmentRisk) -> list[str]:
    lines = [
        f"RISK #{risk.id}:",
        f"  rule: {_escape_value(risk.rule)}",
        f"  component: {_escape_value(risk.component)}",
        f"  risk_type: {_escape_value(risk.risk_type)}",
        f"  likelihood: {_escape_value(risk.likelihood)}",
        f"  location: {_escape_value(risk.location)}",
        f"  description: {_escape_value(risk.description)}",
        f"  impact: {_escape_value(risk.impact)}",
        "  mitigation:",
        "    required_changes:",
    ]
    lines.extend(f"      - {_escape_value(change)}" for change in risk.mitigation.required_changes)
    lines.append(f"    monitoring: {_escape_value(risk.mitigation.monitoring)}")
    return lines


def _edge_case_block(case: EdgeCaseFailure) -> list[str]:
    return [
        f"CASE #{case.id}:",
        f"  rule: {_escape_value(case.rule)}",
        f"  input: {_escape_value(case.input)}",
        f"  scenario: {_escape_value(case.scenario)}",
        f"  expected_failure: {_escape_value(case.expected_failure)}",
        f"  severity: {_escape_value(case.severity)}",
        f"  location: {_escape_value(case.location)}",
        f"  fix: {_escape_value(case.fix)}",
    ]


def format_structured(result: RuntimeAnalysisResult) -> str:
    """Labeled-section document listing every finding with all of its fields."""
    result = _require(result)
    lines: list[str] = ["# 1. Runtime Issues"]
    if not result.runtime_issues:
        lines.append("# (none)")
    for issue in result.runtime_issues:
        lines.extend(_issue_block(issue))

    lines.extend(["", "# 2. Environment Risks"])
    if not result.environment_risks:
        lines.append("# (none)")
    for risk in result.environment_risks:
        lines.extend(_risk_block(risk))

    lines.extend(["", "# 3. Edge Case Failures"])
    if not result.edge_case_failures:
        lines.append("# (none)")
    for case in result.edge_case_failures:
        lines.extend(_edge_case_block(case))

    meta = result.metadata
    lines.extend([
        "",
        "# Analysis Summary",
        f"TOTAL_ISSUES: {result.total_issue_count}",
        f"RUNTIME_ISSUES: {len(result.runtime_issues)}",
        f"ENVIRONMENT_RISKS: {len(result.environment_risks)}",
        f"EDGE_CASE_FAILURES: {len(result.edge_case_failures)}",
        f"HAS_CRITICAL_ISSUES: {_escape_value(result.has_critical_issues)}",
        f"ANALYSIS_TIMESTAMP: {_escape_value(meta.analysis_timestamp.isoformat())}",
        f"DURATION_MS: {round(meta.duration_ms, 3)}",
        f"ANALYZER_VERSION: {_escape_value(meta.analyzer_version)}",
        "ANALYZED_FILES:",
    ])
    lines.extend(f"  - {_escape_value(name)}" for name in meta.analyzed_files)
    return "\n".join(lines) + "\n"


def format_serialized(result: RuntimeAnalysisResult) -> str:
    """Indented JSON with snake_case keys, including the derived counters."""
    result = _require(result)
    return json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False)


FORMATTERS: dict[str, Callable[[RuntimeAnalysisResult], str]] = {
    "summary": format_summary,
    "structured": format_structured,
    "serialized": format_serialized,
}


def format_report(result: RuntimeAnalysisResult, output_format: str = "summary") -> str:
    """Render ``result`` with the formatter registered under ``output_format``."""
    formatter = FORMATTERS.get(output_format)
    if formatter is None:
        raise InputValidationError(
            f"Unknown output format '{output_format}'. Valid formats: {', '.join(sorted(FORMATTERS))}"
        )
    return formatter(result)
