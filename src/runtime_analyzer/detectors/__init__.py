"""Rule catalog for runtime-risk detection."""

from .catalog import CATALOG, detectors_for
from .common import Detector, LoopBlock, Phase, ScanContext, SourceLine, mask_source

__all__ = [
    "CATALOG",
    "detectors_for",
    "Detector",
    "LoopBlock",
    "Phase",
    "ScanContext",
    "SourceLine",
    "mask_source",
]
