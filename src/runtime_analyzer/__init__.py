"""Heuristic runtime-risk analyzer for program source text."""

__version__ = "1.0.0"

from .analyzer import (
    RuntimeAnalyzer,
    analyze_directory,
    analyze_file,
    analyze_files,
    analyze_source,
)
from .config import AnalyzerConfig
from .errors import (
    AnalysisCancelledError,
    AnalyzerError,
    DetectorTimeout,
    InputValidationError,
    NotFoundError,
)
from .formatter import format_report, format_serialized, format_structured, format_summary
from .models import (
    EdgeCaseFailure,
    EnvironmentRisk,
    Likelihood,
    RuntimeAnalysisResult,
    RuntimeIssue,
    Severity,
)

__all__ = [
    "__version__",
    "RuntimeAnalyzer",
    "AnalyzerConfig",
    "analyze_source",
    "analyze_file",
    "analyze_files",
    "analyze_directory",
    "format_summary",
    "format_structured",
    "format_serialized",
    "format_report",
    "AnalyzerError",
    "InputValidationError",
    "NotFoundError",
    "DetectorTimeout",
    "AnalysisCancelledError",
    "RuntimeAnalysisResult",
    "RuntimeIssue",
    "EnvironmentRisk",
    "EdgeCaseFailure",
    "Severity",
    "Likelihood",
]
