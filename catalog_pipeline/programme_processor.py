#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Join processed courses with the programme categories into the aggregate CSV.

Reads programme/<category>.json and output/<code>.json, writes one row per
course (sorted by course id) with category membership flags, dependencies and
the alternatives a course can be swapped for.
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from .categories import load_categories
from .config import PipelineConfig, add_config_argument, load_config
from .errors import MalformedRecordError
from .io_utils import iter_json_dir, write_csv_table
from .models import AggregateRow, CourseRecord, Requirement, RequirementSet

BASE_COLUMNS = ["id", "course", "credits", "block_start", "block_end", "premaster"]


def aggregate_columns(config: PipelineConfig) -> List[str]:
    return (
        BASE_COLUMNS
        + list(config.flag_categories)
        + ["dependencies"]
        + [c for c in config.trailing_flag_categories if c not in config.flag_categories]
        + [f"{c}_alternative" for c in config.alternative_categories]
    )


def find_requirement(requirements: List[Requirement], course_id: str) -> Optional[Requirement]:
    for req in requirements:
        if course_id in req:
            return req
    return None


def join(
    courses: Iterable[CourseRecord],
    categories: RequirementSet,
    alternative_categories: Iterable[str] = ("qf", "or"),
) -> List[AggregateRow]:
    """One row per known course id, sorted by id. Later records replace earlier ones with the same id."""
    by_id: Dict[str, CourseRecord] = {}
    for course in courses:
        if course.id:
            by_id[course.id] = course

    alternative_categories = list(alternative_categories)
    rows = []
    for course_id in sorted(by_id):
        course = by_id[course_id]
        memberships = {}
        alternatives = {c: [] for c in alternative_categories}
        for category, requirements in categories.items():
            req = find_requirement(requirements, course_id)
            memberships[category] = req is not None
            if req is not None and category in alternatives and len(req.requirement) > 1:
                alternatives[category] = req.others(course_id)
        rows.append(AggregateRow(
            id=course_id,
            name=course.name,
            credits=course.credits,
            block_start=course.block_start,
            block_end=course.block_end,
            premaster=course.premaster,
            dependencies=list(course.dependencies),
            memberships=memberships,
            alternatives=alternatives,
        ))
    return rows


def load_courses(output_dir: Path) -> Tuple[List[CourseRecord], List[str]]:
    """Processed course records in file order, plus messages for files that couldn't be read."""
    courses, problems = [], []
    for path, data in iter_json_dir(output_dir):
        if isinstance(data, MalformedRecordError):
            problems.append(str(data))
            continue
        if not isinstance(data, dict):
            problems.append(f"{path.name}: expected an object")
            continue
        try:
            courses.append(CourseRecord.from_output(data))
        except ValidationError as e:
            problems.append(f"{path.name}: {e.error_count()} invalid field(s)")
    return courses, problems


def write_aggregate(csv_path: Path, rows: List[AggregateRow], config: PipelineConfig) -> int:
    columns = aggregate_columns(config)
    return write_csv_table(csv_path, columns, (r.to_csv_row() for r in rows))


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Generate the aggregate course CSV from programme and course JSON")
    parser.add_argument("--programme-dir", dest="programme_dir", default=None, help="Directory of <category>.json files")
    parser.add_argument("--courses-dir", dest="courses_dir", default=None, help="Directory of processed course JSON")
    parser.add_argument("--out", default=None, help="Aggregate CSV path")
    add_config_argument(parser)
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    programme_dir = Path(args.programme_dir or config.programme_dir)
    courses_dir = Path(args.courses_dir or config.output_dir)
    csv_path = Path(args.out or config.course_csv)

    for d in (programme_dir, courses_dir):
        if not d.is_dir():
            print(f"Error: {d} not found", file=sys.stderr)
            return 1

    print("Reading programme category files...\n")
    try:
        categories = load_categories(programme_dir, config.categories)
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for name, requirements in categories.items():
        print(f"{name}: {len(requirements)} courses")

    print(f"\nReading course data from {courses_dir}...\n")
    courses, problems = load_courses(courses_dir)
    for problem in problems:
        print(f"✗ {problem}", file=sys.stderr)
    for course in courses:
        if course.id:
            print(f"{course.id}: {course.name}")
        else:
            print(f"⚠ Skipping course without id: {course.name}")

    rows = join(courses, categories, config.alternative_categories)
    print(f"\nTotal courses: {len(rows)}\n")
    for row in rows:
        flags = ", ".join(f"{c}={str(v).lower()}" for c, v in row.memberships.items())
        print(f"{row.id}: {flags}")

    count = write_aggregate(csv_path, rows, config)
    print(f"\n✓ Generated {csv_path} with {count} courses")
    return 0


if __name__ == "__main__":
    sys.exit(main())
