"""Exception types raised by the runtime analyzer."""


class AnalyzerError(Exception):
    """Base class for analyzer errors."""


class InputValidationError(AnalyzerError, ValueError):
    """Raised when the caller supplies missing or empty input."""


class NotFoundError(AnalyzerError, FileNotFoundError):
    """Raised when a file or directory to analyze does not exist."""


class DetectorTimeout(AnalyzerError, TimeoutError):
    """Raised when a single pattern match exceeds its time bound.

    The orchestrator recovers from this locally: the detector contributes no
    findings for that invocation.
    """

    def __init__(self, rule: str, timeout: float):
        super().__init__(f"Pattern match for rule '{rule}' exceeded {timeout:.2f}s")
        self.rule = rule
        self.timeout = timeout


class AnalysisCancelledError(AnalyzerError):
    """Raised when a cancellation signal is observed during a single analysis."""
