"""Pydantic models for runtime-analyzer results."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class _Ranked(str, Enum):
    """String enum whose comparisons follow declaration order, not the string value."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.rank >= other.rank


class Severity(_Ranked):
    """Severity levels for runtime issues and edge cases."""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class Likelihood(_Ranked):
    """Likelihood levels for environment risks."""

    low = "low"
    medium = "medium"
    high = "high"


class RuntimeIssueType(str, Enum):
    """Kinds of runtime failure an issue points at."""

    crash_risk = "crash-risk"
    performance = "performance"
    incorrect_output = "incorrect-output"
    environment = "environment"


class EnvironmentRiskType(str, Enum):
    """Kinds of environment hazard."""

    dependency = "dependency"
    configuration = "configuration"
    performance = "performance"


def _location(file: Optional[str], line: Optional[int]) -> str:
    if file and line is not None:
        return f"{file}:{line}"
    if line is not None:
        return f"line {line}"
    return file or "unknown"


class IssueProof(BaseModel):
    """Narrative showing how a runtime issue is triggered."""

    model_config = ConfigDict(frozen=True)

    simulated_step: str = Field(description="Simulated execution step where the issue occurs")
    trigger: str = Field(description="Condition that triggers the issue")
    observed_result: str = Field(description="Outcome when the issue occurs")


class IssueSolution(BaseModel):
    """Recommended change and how to verify it."""

    model_config = ConfigDict(frozen=True)

    fix: str = Field(description="Code or configuration change")
    verification: str = Field(description="Test scenario that verifies the fix")


class RuntimeIssue(BaseModel):
    """A code pattern likely to crash, slow down, or corrupt output at runtime."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Unique identifier")
    rule: str = Field(description="Detector that produced the finding")
    type: RuntimeIssueType = Field(description="Kind of runtime failure")
    severity: Severity = Field(description="Severity level")
    description: str = Field(description="What goes wrong at runtime")
    file: Optional[str] = Field(default=None, description="Label of the analyzed source")
    line: Optional[int] = Field(default=None, description="1-based line number")
    proof: IssueProof
    solution: IssueSolution

    @computed_field
    @property
    def location(self) -> str:
        return _location(self.file, self.line)


class RiskMitigation(BaseModel):
    """Ordered remediation steps plus monitoring guidance."""

    model_config = ConfigDict(frozen=True)

    required_changes: tuple[str, ...] = Field(default=(), description="Ordered list of required changes")
    monitoring: str = Field(default="", description="What to monitor in production")


class EnvironmentRisk(BaseModel):
    """A dependency or configuration hazard rather than a code defect."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Unique identifier")
    rule: str = Field(description="Detector that produced the finding")
    component: str = Field(description="Component that poses the risk")
    risk_type: EnvironmentRiskType = Field(description="Kind of environment hazard")
    description: str = Field(description="What might fail at runtime")
    impact: str = Field(default="", description="Consequence when the risk materialises")
    likelihood: Likelihood = Field(description="How likely the risk is to occur")
    file: Optional[str] = Field(default=None, description="Label of the analyzed source")
    line: Optional[int] = Field(default=None, description="1-based line number")
    mitigation: RiskMitigation = Field(default_factory=RiskMitigation)

    @computed_field
    @property
    def location(self) -> str:
        return _location(self.file, self.line)


class EdgeCaseFailure(BaseModel):
    """An input that drives the code into a failure path."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Unique identifier")
    rule: str = Field(description="Detector that produced the finding")
    input: str = Field(description="Input that triggers the edge case")
    scenario: str = Field(description="Situation in which the input arrives")
    expected_failure: str = Field(description="Failure observed in simulation")
    severity: Severity = Field(description="Severity level")
    file: Optional[str] = Field(default=None, description="Label of the analyzed source")
    line: Optional[int] = Field(default=None, description="1-based line number")
    fix: Optional[str] = Field(default=None, description="Concrete fix")

    @computed_field
    @property
    def location(self) -> str:
        return _location(self.file, self.line)


Finding = Union[RuntimeIssue, EnvironmentRisk, EdgeCaseFailure]


class AnalysisMetadata(BaseModel):
    """Facts about one analysis run."""

    model_config = ConfigDict(frozen=True)

    analysis_timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float = Field(default=0.0, description="Wall-clock duration in milliseconds")
    analyzed_files: tuple[str, ...] = Field(default=(), description="Labels of analyzed sources, in order")
    analyzer_version: str = Field(default="1.0.0")


class RuntimeAnalysisResult(BaseModel):
    """Immutable aggregate of all findings from one analysis call."""

    model_config = ConfigDict(frozen=True)

    runtime_issues: tuple[RuntimeIssue, ...] = ()
    environment_risks: tuple[EnvironmentRisk, ...] = ()
    edge_case_failures: tuple[EdgeCaseFailure, ...] = ()
    metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)

    @computed_field
    @property
    def total_issue_count(self) -> int:
        return len(self.runtime_issues) + len(self.environment_risks) + len(self.edge_case_failures)

    @computed_field
    @property
    def has_critical_issues(self) -> bool:
        return any(i.severity == Severity.critical for i in self.runtime_issues) or any(
            r.likelihood == Likelihood.high for r in self.environment_risks
        )

    def findings(self) -> list[Finding]:
        """All findings in report order."""
        return [*self.runtime_issues, *self.environment_risks, *self.edge_case_failures]


class AnalyzeRequest(BaseModel):
    """Request body for analyzing a source snippet."""

    source: str = Field(description="Program text to analyze")
    label: Optional[str] = Field(default=None, description="File name or label reported in locations")
    output_format: Literal["summary", "structured", "serialized"] = Field(
        default="summary",
        description="Report rendering: summary, structured, or serialized",
    )


class AnalyzeResponse(BaseModel):
    """Response from an analysis."""

    scan_id: str = Field(description="Unique identifier for this analysis")
    result: RuntimeAnalysisResult
    report: str = Field(description="Rendered report in the requested format")
