"""Safe file I/O, JSON/YAML/CSV helpers."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml


def ensure_dir(path: Union[str, Path]) -> Path:
    """Create directory and parents if needed, return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_json(path: Union[str, Path]) -> Any:
    """Read a JSON file and return parsed contents."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Union[str, Path], data: Any, indent: int = 2) -> Path:
    """Write data to a JSON file."""
    p = Path(path)
    ensure_dir(p.parent)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)
    return p


def write_yaml(path: Union[str, Path], data: Any) -> Path:
    """Write data to a YAML file."""
    p = Path(path)
    ensure_dir(p.parent)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, width=120)
    return p


def csv_columns(rows: List[Dict[str, Any]]) -> List[str]:
    """Union of keys in first-seen order, minus ``_``-prefixed and nested fields."""
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key in columns or key.startswith("_"):
                continue
            if isinstance(row.get(key), (dict, list)):
                continue
            columns.append(key)
    return columns


def rows_to_csv(rows: List[Dict[str, Any]]) -> str:
    """Render records as CSV text; empty input gives an empty string."""
    if not rows:
        return ""
    columns = csv_columns(rows)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow(["" if row.get(c) is None else row.get(c) for c in columns])
    return buf.getvalue()


def write_csv(path: Union[str, Path], rows: List[Dict[str, Any]]) -> Path:
    """Write records to a CSV file."""
    p = Path(path)
    ensure_dir(p.parent)
    with open(p, "w", encoding="utf-8", newline="") as f:
        f.write(rows_to_csv(rows))
    return p
