"""Configuration for the runtime analyzer."""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from . import __version__


class AnalyzerConfig(BaseModel):
    """Tunables for a RuntimeAnalyzer instance.

    The analyzer itself never reads the environment; entrypoints build a config
    with ``from_env()`` and pass it in.
    """

    model_config = ConfigDict(frozen=True)

    match_timeout_seconds: float = Field(
        default=1.0, gt=0, description="Wall-clock bound for a single pattern match"
    )
    large_allocation_threshold: int = Field(
        default=85_000, ge=0, description="Array size above which an allocation is flagged"
    )
    line_cache_max_entries: int = Field(
        default=256, ge=0, description="Distinct sources kept in the line-offset cache (0 disables it)"
    )
    analyzer_version: str = Field(default=__version__, description="Version stamped into metadata")
    id_scope: Literal["process", "call"] = Field(
        default="process",
        description="'process' for ids unique for the process lifetime, 'call' for ids unique per result",
    )

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Create config from environment variables."""
        return cls(
            match_timeout_seconds=float(os.environ.get("RUNTIME_ANALYZER_MATCH_TIMEOUT", "1.0")),
            large_allocation_threshold=int(os.environ.get("RUNTIME_ANALYZER_LARGE_ALLOCATION", "85000")),
            line_cache_max_entries=int(os.environ.get("RUNTIME_ANALYZER_LINE_CACHE", "256")),
            id_scope=os.environ.get("RUNTIME_ANALYZER_ID_SCOPE", "process"),
        )


DEFAULT_CONFIG = AnalyzerConfig()
