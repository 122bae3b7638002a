#!/usr/bin/env python3
"""
Sandbox entrypoint for runtime-analyzer.
Reads analysis parameters from stdin JSON, runs the analyzer, outputs JSON to stdout.
"""

import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).parent / "src"))

from runtime_analyzer.analyzer import RuntimeAnalyzer
from runtime_analyzer.config import AnalyzerConfig
from runtime_analyzer.formatter import FORMATTERS, format_report
from runtime_analyzer.models import RuntimeAnalysisResult

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VALID_FORMATS = set(FORMATTERS)


def _run_analysis(input_data: dict[str, Any]) -> RuntimeAnalysisResult:
    """Dispatch to source, file or directory analysis depending on the input keys."""
    analyzer = RuntimeAnalyzer(AnalyzerConfig.from_env())

    if input_data.get("source") is not None:
        return analyzer.analyze_source(input_data["source"], label=input_data.get("label"))

    path = Path(input_data.get("path") or input_data.get("directory"))
    if path.is_dir():
        return analyzer.analyze_directory(
            path,
            pattern=input_data.get("pattern", "*"),
            recursive=bool(input_data.get("recursive", True)),
        )
    return analyzer.analyze_file(path)


def main() -> None:
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError as e:
        print(json.dumps({"error": f"Invalid JSON input: {e}"}))
        sys.exit(1)

    if input_data.get("source") is None and not (input_data.get("path") or input_data.get("directory")):
        print(
            json.dumps(
                {
                    "error": "Missing required input. Provide either 'source' or 'path'/'directory'.",
                    "examples": {
                        "source": {"source": "return a / b;", "label": "Calculator.cs"},
                        "local": {"path": ".", "pattern": "*.cs"},
                    },
                }
            )
        )
        sys.exit(1)

    output_format = input_data.get("format", "serialized")
    if output_format not in VALID_FORMATS:
        print(
            json.dumps(
                {
                    "error": f"Invalid format '{output_format}'",
                    "valid_formats": sorted(VALID_FORMATS),
                }
            )
        )
        sys.exit(1)

    try:
        result = _run_analysis(input_data)
        print(json.dumps({
            "scan_id": str(uuid.uuid4()),
            "result": result.model_dump(mode="json"),
            "report": format_report(result, output_format),
        }))
    except Exception as e:
        print(json.dumps({"error": str(e)}))
        sys.exit(1)


if __name__ == "__main__":
    main()
