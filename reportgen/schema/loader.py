"""Report loader — YAML/JSON serialization and deserialization for ReportData.

Provides round-trip save/load so an extracted report can be reviewed,
hand-corrected, and rendered again without another model call.  Files
ending in ``.json`` are written as JSON; anything else is YAML.
"""

import json
from pathlib import Path

import yaml

from .models import ReportData, ReportParseError


def save_report(report: ReportData, path: str | Path) -> None:
    """Serialize a ReportData to a YAML (or JSON) file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = report.to_dict()
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(data, f, ensure_ascii=False, indent=2)
        else:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False,
                      allow_unicode=True, width=120)


def load_report(path: str | Path) -> ReportData:
    """Deserialize a ReportData from a YAML (or JSON) file.

    Raises:
        ReportParseError: If the file does not hold a valid report.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ReportParseError(f"Cannot read report file {path}: {exc}") from exc
    return ReportData.from_dict(data)
