"""Five-phase analysis orchestrator."""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

from .config import DEFAULT_CONFIG, AnalyzerConfig
from .detectors import CATALOG, Detector, Phase, ScanContext, detectors_for
from .errors import AnalysisCancelledError, DetectorTimeout, InputValidationError, NotFoundError
from .ids import PROCESS_ALLOCATOR, IdAllocator, SequentialIdAllocator
from .line_index import DEFAULT_LINE_INDEX, LineIndex
from .matching import BoundedMatcher
from .models import (
    AnalysisMetadata,
    EdgeCaseFailure,
    EnvironmentRisk,
    Finding,
    RuntimeAnalysisResult,
    RuntimeIssue,
)

logger = logging.getLogger(__name__)

DEFAULT_SKIP_DIRS: frozenset[str] = frozenset({
    ".git",
    ".hg",
    ".svn",
    ".vs",
    ".idea",
    "node_modules",
    "bin",
    "obj",
    "dist",
    "build",
    "out",
    "target",
    "packages",
    "__pycache__",
    ".pytest_cache",
    ".venv",
    "venv",
})

PHASE_ORDER: tuple[Phase, ...] = (
    Phase.static_review,
    Phase.runtime_simulation,
    Phase.environment,
    Phase.edge_case,
    Phase.error_propagation,
)


class CancelSignal(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


def _check_cancel(cancel: Optional[CancelSignal], where: str) -> None:
    if cancel is not None and cancel.is_set():
        raise AnalysisCancelledError(f"Analysis cancelled during {where}")


def _validate_source(text: Any) -> str:
    if text is None or not isinstance(text, str):
        raise InputValidationError("Source text must be a string")
    if not text.strip():
        raise InputValidationError("Source text must not be empty")
    return text


def _read_source(path: Path) -> str:
    if not path.is_file():
        raise NotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read()


class _Findings:
    """Call-local accumulator; frozen into a result once the analysis ends."""

    def __init__(self):
        self.runtime_issues: list[RuntimeIssue] = []
        self.environment_risks: list[EnvironmentRisk] = []
        self.edge_case_failures: list[EdgeCaseFailure] = []

    def extend(self, findings: Iterable[Finding]) -> None:
        for finding in findings:
            if isinstance(finding, RuntimeIssue):
                self.runtime_issues.append(finding)
            elif isinstance(finding, EnvironmentRisk):
                self.environment_risks.append(finding)
            elif isinstance(finding, EdgeCaseFailure):
                self.edge_case_failures.append(finding)
            else:
                raise TypeError(f"Unsupported finding type: {type(finding).__name__}")

    def to_result(self, metadata: AnalysisMetadata) -> RuntimeAnalysisResult:
        return RuntimeAnalysisResult(
            runtime_issues=tuple(self.runtime_issues),
            environment_risks=tuple(self.environment_risks),
            edge_case_failures=tuple(self.edge_case_failures),
            metadata=metadata,
        )


class RuntimeAnalyzer:
    """Runs the detector catalog over source text, phase by phase.

    Instances hold no per-call state and may be shared between threads.

    Args:
        config: Tunables; defaults to ``AnalyzerConfig()``.
        allocator: Id allocator to use for every call. When omitted, ids come
            from the process-wide allocator, or from a fresh allocator per call
            if ``config.id_scope == "call"``.
        line_index: Line-offset cache; defaults to the shared process cache.
        matcher: Bounded matcher; defaults to one using ``config.match_timeout_seconds``.
        catalog: Detectors to run, in order.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        allocator: Optional[IdAllocator] = None,
        line_index: Optional[LineIndex] = None,
        matcher: Optional[BoundedMatcher] = None,
        catalog: tuple[Detector, ...] = CATALOG,
    ):
        self.config = config or DEFAULT_CONFIG
        self._allocator = allocator
        if line_index is None:
            if self.config.line_cache_max_entries == DEFAULT_LINE_INDEX.max_entries:
                line_index = DEFAULT_LINE_INDEX
            else:
                line_index = LineIndex(self.config.line_cache_max_entries)
        self.line_index = line_index
        self.matcher = matcher or BoundedMatcher(self.config.match_timeout_seconds)
        self.catalog = catalog

    def _allocator_for_call(self) -> IdAllocator:
        if self._allocator is not None:
            return self._allocator
        if self.config.id_scope == "call":
            return SequentialIdAllocator()
        return PROCESS_ALLOCATOR

    def _metadata(self, started_at: datetime, started: float, files: list[str]) -> AnalysisMetadata:
        return AnalysisMetadata(
            analysis_timestamp=started_at,
            duration_ms=(time.perf_counter() - started) * 1000,
            analyzed_files=tuple(files),
            analyzer_version=self.config.analyzer_version,
        )

    def _run(self, detector: Detector, *args: Any) -> list[Finding]:
        try:
            return detector.scan(*args)
        except DetectorTimeout as e:
            logger.warning(f"Detector '{detector.name}' timed out; skipping its findings: {e}")
            return []

    def _run_phases(
        self,
        text: str,
        label: Optional[str],
        cancel: Optional[CancelSignal],
        allocator: IdAllocator,
        findings: _Findings,
    ) -> None:
        ctx = ScanContext(text, label, allocator, self.line_index, self.matcher, self.config)

        for phase in PHASE_ORDER:
            _check_cancel(cancel, phase.value)
            detectors = detectors_for(phase, self.catalog)
            logger.debug(f"Running {phase.value} ({len(detectors)} detectors) on {label or '<source>'}")

            if phase == Phase.static_review:
                for line in ctx.lines:
                    _check_cancel(cancel, f"{phase.value} line {line.number}")
                    for detector in detectors:
                        findings.extend(self._run(detector, line, ctx))
            else:
                for detector in detectors:
                    findings.extend(self._run(detector, ctx))

    def analyze_source(
        self,
        text: str,
        label: Optional[str] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> RuntimeAnalysisResult:
        """Analyze one source unit.

        Raises:
            InputValidationError: ``text`` is None, empty or whitespace only.
            AnalysisCancelledError: ``cancel`` was set before the analysis finished.
        """
        text = _validate_source(text)
        started_at = datetime.now(timezone.utc)
        started = time.perf_counter()

        findings = _Findings()
        self._run_phases(text, label, cancel, self._allocator_for_call(), findings)

        result = findings.to_result(self._metadata(started_at, started, [label] if label else []))
        logger.debug(f"Analyzed {label or '<source>'}: {result.total_issue_count} findings")
        return result

    def analyze_file(self, path: str | Path, cancel: Optional[CancelSignal] = None) -> RuntimeAnalysisResult:
        """Read a file (UTF-8, undecodable bytes dropped) and analyze it."""
        path = Path(path)
        text = _read_source(path)
        logger.info(f"Analyzing file: {path}")
        return self.analyze_source(text, label=str(path), cancel=cancel)

    def analyze_files(
        self,
        paths: Optional[Iterable[str | Path]],
        cancel: Optional[CancelSignal] = None,
    ) -> RuntimeAnalysisResult:
        """Analyze many files into one merged result.

        A file that cannot be read or analyzed is logged and skipped. When
        ``cancel`` is set the batch stops at the next file boundary and returns
        what it has.
        """
        if paths is None:
            raise InputValidationError("Path collection must not be None")

        started_at = datetime.now(timezone.utc)
        started = time.perf_counter()
        allocator = self._allocator_for_call()
        findings = _Findings()
        analyzed: list[str] = []

        for path in paths:
            if cancel is not None and cancel.is_set():
                logger.info(f"Batch cancelled after {len(analyzed)} file(s)")
                break

            path = Path(path)
            file_findings = _Findings()
            try:
                text = _validate_source(_read_source(path))
                self._run_phases(text, str(path), cancel, allocator, file_findings)
            except AnalysisCancelledError:
                logger.info(f"Batch cancelled while analyzing {path}")
                break
            except Exception as e:
                logger.warning(f"Skipping file due to error: {path}: {e}")
                continue

            findings.runtime_issues.extend(file_findings.runtime_issues)
            findings.environment_risks.extend(file_findings.environment_risks)
            findings.edge_case_failures.extend(file_findings.edge_case_failures)
            analyzed.append(str(path))

        result = findings.to_result(self._metadata(started_at, started, analyzed))
        logger.info(f"Analyzed {len(analyzed)} file(s): {result.total_issue_count} findings")
        return result

    def analyze_directory(
        self,
        root: str | Path,
        pattern: str = "*",
        recursive: bool = True,
        cancel: Optional[CancelSignal] = None,
    ) -> RuntimeAnalysisResult:
        """Analyze every file under ``root`` matching ``pattern``.

        VCS, build output and dependency directories are skipped.
        """
        root = Path(root)
        if not root.is_dir():
            raise NotFoundError(f"Directory not found: {root}")

        return self.analyze_files(list_source_files(root, pattern, recursive), cancel=cancel)


def list_source_files(root: Path, pattern: str = "*", recursive: bool = True) -> list[Path]:
    """Sorted files under ``root`` matching ``pattern``, outside skipped directories."""
    candidates = root.rglob(pattern) if recursive else root.glob(pattern)
    files = []
    for path in candidates:
        if not path.is_file():
            continue
        if any(part in DEFAULT_SKIP_DIRS for part in path.relative_to(root).parts[:-1]):
            continue
        files.append(path)
    return sorted(files)


_default_analyzer = RuntimeAnalyzer()


def analyze_source(text: str, label: Optional[str] = None,
                   cancel: Optional[CancelSignal] = None) -> RuntimeAnalysisResult:
    return _default_analyzer.analyze_source(text, label=label, cancel=cancel)


def analyze_file(path: str | Path, cancel: Optional[CancelSignal] = None) -> RuntimeAnalysisResult:
    return _default_analyzer.analyze_file(path, cancel=cancel)


def analyze_files(paths: Optional[Iterable[str | Path]],
                  cancel: Optional[CancelSignal] = None) -> RuntimeAnalysisResult:
    return _default_analyzer.analyze_files(paths, cancel=cancel)


def analyze_directory(root: str | Path, pattern: str = "*", recursive: bool = True,
                      cancel: Optional[CancelSignal] = None) -> RuntimeAnalysisResult:
    return _default_analyzer.analyze_directory(root, pattern=pattern, recursive=recursive, cancel=cancel)
