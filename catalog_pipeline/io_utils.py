# -*- coding: utf-8 -*-
"""File helpers shared by the pipeline stages (JSON files, CSV tables)."""

from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Tuple

import pandas as pd

from .errors import MalformedRecordError


def json_files(directory: Path) -> List[Path]:
    """*.json files of a directory in file name order."""
    return sorted(p for p in Path(directory).iterdir() if p.suffix == ".json" and p.is_file())


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, obj: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def iter_json_dir(directory: Path) -> Iterator[Tuple[Path, Any]]:
    """Yield (path, data) per file; unreadable files yield a MalformedRecordError as data."""
    for path in json_files(directory):
        try:
            yield path, read_json(path)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            yield path, MalformedRecordError(f"invalid JSON: {e}", source=path.name)


def read_csv_table(path: Path, required: Iterable[str] = ()) -> Tuple[List[str], List[Dict[str, str]]]:
    """Read a CSV as text cells. Returns (columns, rows); missing required columns are malformed."""
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=False)
    except pd.errors.EmptyDataError as e:
        raise MalformedRecordError("empty table", source=str(path)) from e
    except pd.errors.ParserError as e:
        raise MalformedRecordError(f"unreadable table: {e}", source=str(path)) from e
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MalformedRecordError(f"missing column(s) {missing}", source=str(path))
    return list(df.columns), df.to_dict(orient="records")


def write_csv_table(path: Path, columns: List[str], rows: Iterable[Dict[str, Any]]) -> int:
    """Write rows with exactly the given columns; returns the row count."""
    df = pd.DataFrame(list(rows), columns=columns)
    df.to_csv(path, index=False)
    return len(df)
