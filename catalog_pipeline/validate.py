#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Check that each raw course file is named after the course it contains.

courses/FEB22002X.json must carry "cursus": "FEB22002X" in its header section.
Exits 0 when every file checks out, 1 otherwise.
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Any, List, Literal, Optional

from pydantic import BaseModel

from .config import PipelineConfig, add_config_argument, load_config
from .course_processor import parse_raw_record
from .errors import MalformedRecordError
from .io_utils import iter_json_dir


class ValidationResult(BaseModel):
    file: str
    status: Literal["OK", "MISMATCH", "ERROR"]
    expected: Optional[str] = None
    actual: Optional[str] = None
    message: Optional[str] = None

    def describe(self) -> str:
        if self.status == "OK":
            return f"✓ {self.file}: {self.actual}"
        if self.status == "MISMATCH":
            return f'✗ {self.file}: Expected "{self.expected}", got "{self.actual}"'
        return f"✗ {self.file}: {self.message}"


def validate_record(file_name: str, data: Any, config: Optional[PipelineConfig] = None) -> ValidationResult:
    config = config or PipelineConfig()
    expected = Path(file_name).stem
    try:
        record = parse_raw_record(data, source=file_name)
    except MalformedRecordError as e:
        return ValidationResult(file=file_name, status="ERROR", expected=expected, message=str(e))

    header = record.sections().get(config.header_section)
    if header is None:
        return ValidationResult(file=file_name, status="ERROR", expected=expected,
                                message=f"No {config.header_section} found")
    field = header.by_key().get(config.id_field)
    if field is None:
        return ValidationResult(file=file_name, status="ERROR", expected=expected,
                                message=f"No {config.id_field} field found in {config.header_section}")

    actual = None if field.value is None else str(field.value)
    status = "OK" if actual == expected else "MISMATCH"
    return ValidationResult(file=file_name, status=status, expected=expected, actual=actual)


def validate_directory(courses_dir: Path, config: PipelineConfig) -> List[ValidationResult]:
    results = []
    for path, data in iter_json_dir(courses_dir):
        if isinstance(data, MalformedRecordError):
            results.append(ValidationResult(file=path.name, status="ERROR", expected=path.stem, message=str(data)))
            continue
        results.append(validate_record(path.name, data, config))
    return results


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Check raw course files against their file names")
    parser.add_argument("--dir", dest="courses_dir", default=None, help="Directory of raw course JSON files")
    add_config_argument(parser)
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    courses_dir = Path(args.courses_dir or config.courses_dir)
    if not courses_dir.is_dir():
        print(f"Error: {courses_dir} not found", file=sys.stderr)
        return 1

    results = validate_directory(courses_dir, config)
    print(f"Checking {len(results)} course files...\n")
    for result in results:
        print(result.describe())

    all_valid = all(r.status == "OK" for r in results)
    print(f"\n{'✓ All files valid!' if all_valid else '✗ Some files have issues'}")
    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
