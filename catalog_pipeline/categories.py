#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Build programme requirement sets from the course flag CSV.

Every course flagged "true" in a category column becomes a requirement of that
category. Courses listed together in an alternative group are merged into one
requirement that any of them satisfies.
Writes one programme/<category>.json per category.
"""

from __future__ import annotations
import json
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from .config import AlternativeGroup, add_config_argument, load_config
from .errors import MalformedRecordError
from .io_utils import read_csv_table, read_json, write_json
from .models import Requirement, RequirementSet


def is_flag_set(value: Optional[str]) -> bool:
    return value is not None and str(value).strip().lower() == "true"


def merge_alternatives(requirements: List[Requirement], courses: List[str]) -> bool:
    """
    Collapse the singleton requirements for `courses` into one, in group order,
    at the position of the first course. Only applies when all are present.
    """
    group = list(dict.fromkeys(courses))
    if len(group) < 2:
        return False
    positions: Dict[str, int] = {}
    for i, req in enumerate(requirements):
        if len(req.requirement) == 1 and req.requirement[0] in group:
            positions.setdefault(req.requirement[0], i)
    if len(positions) < len(group):
        return False

    keep = positions[group[0]]
    drop = {i for i in positions.values() if i != keep}
    requirements[keep] = Requirement(requirement=group)
    requirements[:] = [r for i, r in enumerate(requirements) if i not in drop]
    return True


def build_categories(
    flag_rows: Iterable[Mapping[str, str]],
    categories: List[str],
    alternative_groups: Iterable[AlternativeGroup] = (),
    id_column: str = "id",
) -> RequirementSet:
    out: Dict[str, List[Requirement]] = {c: [] for c in categories}
    for row in flag_rows:
        course_id = str(row.get(id_column) or "").strip()
        if not course_id:
            continue
        for category in categories:
            if is_flag_set(row.get(category)):
                out[category].append(Requirement(requirement=[course_id]))

    for group in alternative_groups:
        if group.category in out:
            merge_alternatives(out[group.category], group.courses)
    return out


def write_categories(programme_dir: Path, categories: RequirementSet) -> None:
    programme_dir.mkdir(parents=True, exist_ok=True)
    for name, requirements in categories.items():
        write_json(programme_dir / f"{name}.json", [r.model_dump() for r in requirements])


def load_categories(programme_dir: Path, categories: List[str]) -> RequirementSet:
    """Read programme/<category>.json back; a missing file is an empty category."""
    out: RequirementSet = {}
    for name in categories:
        path = Path(programme_dir) / f"{name}.json"
        if not path.exists():
            out[name] = []
            continue
        try:
            data = read_json(path)
            out[name] = [Requirement.model_validate(r) for r in data]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            raise MalformedRecordError(f"invalid requirement list: {e}", source=str(path)) from e
    return out


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Generate programme category JSON files from the course CSV")
    parser.add_argument("--csv", default=None, help="Course flag CSV (id column plus one true/false column per category)")
    parser.add_argument("--out-dir", dest="out_dir", default=None, help="Directory for <category>.json files")
    add_config_argument(parser)
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    csv_path = Path(args.csv or config.course_csv)
    programme_dir = Path(args.out_dir or config.programme_dir)

    if not csv_path.exists():
        print(f"Error: {csv_path} not found", file=sys.stderr)
        return 1

    print(f"Reading {csv_path}...\n")
    try:
        _, rows = read_csv_table(csv_path, required=[config.flag_id_column])
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    categories = build_categories(rows, config.categories, config.alternative_groups, id_column=config.flag_id_column)
    for group in config.alternative_groups:
        merged = any(r.requirement == list(dict.fromkeys(group.courses)) for r in categories.get(group.category, []))
        if merged:
            print(f"Note: {' and '.join(group.courses)} merged as alternative requirement for {group.category.upper()}\n")

    write_categories(programme_dir, categories)
    for name, requirements in categories.items():
        print(f"✓ {programme_dir / (name + '.json')}: {len(requirements)} courses")
        print(f"  {', '.join('/'.join(r.requirement) for r in requirements)}\n")

    print(f"✓ All category JSON files generated in {programme_dir}/ directory!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
