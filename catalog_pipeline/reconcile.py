#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Migrate a legacy course CSV onto canonical course codes.

The legacy table identifies courses by row-based or numeric ids. Each row is
matched to a processed course by name (exact, then spelling variants, then
substring), after which its id, dependencies and alternative reference are
rewritten in terms of course codes (e.g. FEB22002X).
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .config import FUZZY_STRIP_PREFIXES, SPELLING_VARIANTS, LegacyColumns, add_config_argument, load_config
from .errors import MalformedRecordError
from .io_utils import read_csv_table, write_csv_table, write_json
from .models import CourseRecord, UnresolvedReference
from .programme_processor import load_courses


class NameMatcher:
    """
    Course name -> canonical id, over the canonical courses in the order given.

    The order matters for substring matches: the first canonical name that
    contains (or is contained in) the legacy name wins.
    """

    def __init__(
        self,
        courses: Iterable[CourseRecord],
        spelling_variants: Optional[Mapping[str, str]] = None,
        strip_prefixes: Sequence[str] = (),
    ):
        self.names: Dict[str, str] = {}
        for course in courses:
            if course.id and course.name:
                self.names[course.name.lower().strip()] = course.id
        self.spelling_variants = dict(spelling_variants or {})
        self.strip_prefixes = list(strip_prefixes)

    def normalize(self, name: str) -> str:
        s = name.lower().strip()
        for variant, canonical in self.spelling_variants.items():
            s = s.replace(variant, canonical)
        return s

    def _strip(self, name: str) -> str:
        for prefix in self.strip_prefixes:
            if name.startswith(prefix):
                return name[len(prefix):]
        return name

    def match(self, name: str) -> Optional[str]:
        raw = (name or "").lower().strip()
        normalized = self.normalize(raw)
        found = self.names.get(raw) or self.names.get(normalized)
        if found:
            return found
        if not normalized:
            return None
        for canonical_name, course_id in self.names.items():
            stripped = self._strip(canonical_name)
            if stripped and (normalized in stripped or stripped in normalized):
                return course_id
        return None


class ReconcileResult(BaseModel):
    rows: List[Dict[str, str]] = Field(default_factory=list)
    unresolved: List[UnresolvedReference] = Field(default_factory=list)
    old_to_new: Dict[str, str] = Field(default_factory=dict)
    row_to_new: Dict[str, str] = Field(default_factory=dict)
    log: List[str] = Field(default_factory=list)


def reconcile(
    legacy_rows: Sequence[Mapping[str, str]],
    canonical_courses: Sequence[CourseRecord],
    columns: Optional[LegacyColumns] = None,
    spelling_variants: Optional[Mapping[str, str]] = None,
    strip_prefixes: Optional[Sequence[str]] = None,
) -> ReconcileResult:
    """
    Rewrite legacy rows onto canonical ids. Rows are numbered from 1 in the
    order given; alternative references may use either a legacy id or a row
    number, and may point at any row of the batch.
    """
    columns = columns or LegacyColumns()
    matcher = NameMatcher(
        canonical_courses,
        SPELLING_VARIANTS if spelling_variants is None else spelling_variants,
        FUZZY_STRIP_PREFIXES if strip_prefixes is None else strip_prefixes,
    )
    by_id: Dict[str, CourseRecord] = {c.id: c for c in canonical_courses if c.id}
    result = ReconcileResult()

    # First pass: every match, so alternatives can point anywhere in the batch.
    matches: List[Optional[str]] = []
    for number, row in enumerate(legacy_rows, 1):
        new_id = matcher.match(str(row.get(columns.name) or ""))
        matches.append(new_id)
        if new_id:
            old_id = str(row.get(columns.id) or "")
            if old_id:
                result.old_to_new[old_id] = new_id
            result.row_to_new[str(number)] = new_id

    for number, (row, new_id) in enumerate(zip(legacy_rows, matches), 1):
        out = {k: ("" if v is None else str(v)) for k, v in row.items()}
        old_id = out.get(columns.id, "")
        name = out.get(columns.name, "")
        if not new_id:
            result.unresolved.append(UnresolvedReference(row_number=number, legacy_id=old_id, name=name))
            result.log.append(f"⚠ Could not find ID for: {name}")
            result.rows.append(out)
            continue

        result.log.append(f"{old_id} -> {new_id}: {name}")
        out[columns.id] = new_id

        course = by_id.get(new_id)
        if course is not None and course.dependencies and columns.dependencies in out:
            out[columns.dependencies] = ";".join(course.dependencies)

        alternative = out.get(columns.alternative, "").strip()
        if alternative:
            resolved = result.old_to_new.get(alternative) or result.row_to_new.get(alternative)
            if resolved:
                out[columns.alternative] = resolved
                result.log.append(f"  Alternative: {alternative} -> {resolved}")
        result.rows.append(out)
    return result


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Update legacy course CSV ids to course codes")
    parser.add_argument("--csv", default=None, help="Legacy course CSV to update")
    parser.add_argument("--courses-dir", dest="courses_dir", default=None, help="Directory of processed course JSON")
    parser.add_argument("--out", default=None, help="Where to write the updated CSV (default: overwrite --csv)")
    parser.add_argument("--report", default=None, help="Optional JSON file listing unresolved rows")
    add_config_argument(parser)
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    csv_path = Path(args.csv or config.course_csv)
    courses_dir = Path(args.courses_dir or config.output_dir)
    out_path = Path(args.out) if args.out else csv_path

    if not courses_dir.is_dir():
        print(f"Error: {courses_dir} not found", file=sys.stderr)
        return 1
    if not csv_path.exists():
        print(f"Error: {csv_path} not found", file=sys.stderr)
        return 1

    print("Building course mappings...\n")
    courses, problems = load_courses(courses_dir)
    for problem in problems:
        print(f"✗ {problem}", file=sys.stderr)
    for course in courses:
        print(f"{course.id}: {course.name}")

    print(f"\nReading {csv_path}...\n")
    cols = config.legacy_columns
    try:
        header, rows = read_csv_table(csv_path, required=[cols.id, cols.name])
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Updating CSV rows...\n")
    result = reconcile(rows, courses, cols, config.spelling_variants, config.fuzzy_strip_prefixes)
    for line in result.log:
        print(line)

    count = write_csv_table(out_path, header, result.rows)
    if args.report:
        write_json(Path(args.report), [u.model_dump() for u in result.unresolved])

    print(f"\n✓ Updated {count} courses in {out_path}")
    if result.unresolved:
        print(f"⚠ {len(result.unresolved)} course(s) kept their original id")
    return 0


if __name__ == "__main__":
    sys.exit(main())
