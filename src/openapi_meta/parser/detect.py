"""Auto-detect what kind of JSON payload was supplied."""

import json
from pathlib import Path
from typing import Any


def detect_format(data: Any) -> str:
    """Detect the kind of a decoded JSON payload.

    Returns: 'openapi', 'samples' or 'unknown'.
    """
    if isinstance(data, dict):
        if "openapi" in data or "paths" in data:
            return "openapi"
        if "input" in data and "output" in data:
            return "samples"
    return "unknown"


def load_json(file_path: Path) -> Any:
    """Read and decode a JSON file."""
    return json.loads(file_path.read_text(encoding="utf-8"))
