#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Transform raw course export records into processed course JSON.

Reads every <code>.json in the input directory (one export record per course)
and writes the processed record under the same name in the output directory.
"""

from __future__ import annotations
import re
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from bs4 import BeautifulSoup
from pydantic import ValidationError

from .config import PipelineConfig, add_config_argument, load_config
from .errors import MalformedRecordError
from .io_utils import iter_json_dir, write_json
from .models import CourseRecord, RawField, RawRecord, Section

COURSE_CODE_RE = re.compile(r"FEB\d{5}[A-Z\d]")
DIGITS_RE = re.compile(r"(\d+)")
BLOCK_RANGE_RE = re.compile(r"Block\s+(\S+)\s+until\s+Block\s+(\S+)")
BLOCK_SINGLE_RE = re.compile(r"Block\s+(\S+)")

# -------------------------
# Parsing helpers
# -------------------------

def parse_raw_record(data: Any, source: str = "") -> RawRecord:
    """Validate a decoded export record; anything that isn't one is malformed."""
    if not isinstance(data, dict):
        raise MalformedRecordError(f"expected an object, got {type(data).__name__}", source=source)
    try:
        return RawRecord.model_validate(data)
    except ValidationError as e:
        raise MalformedRecordError(f"not a course record ({e.error_count()} errors)", source=source) from e


def find_codes(text: str) -> List[str]:
    """Canonical course codes in text, first occurrence order, no repeats."""
    return list(dict.fromkeys(COURSE_CODE_RE.findall(text or "")))


def html_to_text(html: str) -> str:
    # Tags become a single space so adjacent codes don't run together.
    return BeautifulSoup(html, "html.parser").get_text(" ")


def _scalar(field: Optional[RawField]) -> Optional[str]:
    if field is None:
        return None
    v = field.value
    if isinstance(v, bool) or not isinstance(v, (str, int, float)):
        return None
    s = str(v)
    return s if s.strip() else None

# -------------------------
# Field extraction
# -------------------------

def extract_credits(section: Optional[Section], label: str) -> Optional[int]:
    if section is None:
        return None
    text = _scalar(section.by_label().get(label))
    if text is None:
        return None
    m = DIGITS_RE.search(text)
    return int(m.group(1)) if m else None


def parse_block(description: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """'Block BLOK4 until Block BLOK5' -> (BLOK4, BLOK5); 'Block BLOK2' -> (BLOK2, BLOK2)."""
    if not description:
        return None, None
    m = BLOCK_RANGE_RE.search(description)
    if m:
        return m.group(1), m.group(2)
    m = BLOCK_SINGLE_RE.search(description)
    if m:
        return m.group(1), m.group(1)
    return None, None


def extract_block(section: Optional[Section], key: str) -> Tuple[Optional[str], Optional[str]]:
    if section is None:
        return None, None
    table = section.by_key().get(key)
    if table is None or not isinstance(table.value, list) or not table.value:
        return None, None
    first = table.value[0]
    if not isinstance(first, dict):
        return None, None
    description = first.get("omschrijving")
    return parse_block(description if isinstance(description, str) else None)


def extract_dependencies_text(text: str, markers: List[str]) -> List[str]:
    """
    Prerequisite codes from plain text.

    Codes after "is required for" name the courses that depend on this one,
    so only the text before the first marker is scanned.
    """
    if markers:
        cut = re.compile("|".join(re.escape(m) for m in markers), re.IGNORECASE)
        text = cut.split(text, maxsplit=1)[0]
    return find_codes(text)


def extract_dependencies(section: Optional[Section], key: str, markers: List[str]) -> List[str]:
    if section is None:
        return []
    content = _scalar(section.by_key().get(key))
    if content is None:
        return []
    return extract_dependencies_text(html_to_text(content), markers)


def is_premaster(course_id: Optional[str]) -> bool:
    return bool(course_id) and course_id.endswith("S")


def extract(record: RawRecord, config: Optional[PipelineConfig] = None) -> CourseRecord:
    """Processed course from one export record. Missing pieces come back as None."""
    config = config or PipelineConfig()
    sections = record.sections()

    header = sections.get(config.header_section)
    header_fields = header.by_key() if header is not None else {}
    course_id = _scalar(header_fields.get(config.id_field))

    block_start, block_end = extract_block(sections.get(config.enrollment_section), config.enrollment_field)

    return CourseRecord(
        id=course_id,
        name=_scalar(header_fields.get(config.name_field)),
        credits=extract_credits(sections.get(config.search_section), config.credits_label),
        block_start=block_start,
        block_end=block_end,
        url=_scalar(header_fields.get(config.url_field)),
        dependencies=extract_dependencies(
            sections.get(config.content_section), config.content_field, config.required_for_markers
        ),
        premaster=is_premaster(course_id),
    )


def transform(data: Any, config: Optional[PipelineConfig] = None, source: str = "") -> CourseRecord:
    """Decoded JSON -> processed course; raises MalformedRecordError only for non-records."""
    return extract(parse_raw_record(data, source=source), config)

# -------------------------
# Batch
# -------------------------

def transform_directory(input_dir: Path, output_dir: Path, config: PipelineConfig) -> Tuple[int, int]:
    """Transform every record file; returns (ok, failed)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    ok = failed = 0
    for path, data in iter_json_dir(input_dir):
        try:
            if isinstance(data, MalformedRecordError):
                raise data
            course = transform(data, config, source=path.name)
        except MalformedRecordError as e:
            print(f"✗ {path.name}: {e}", file=sys.stderr)
            failed += 1
            continue
        out = course.to_output()
        write_json(output_dir / path.name, out)
        print(f"✓ {path.name}: {out['id']} - {out['name']}")
        ok += 1
    return ok, failed


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Transform raw course export JSON into processed course JSON")
    parser.add_argument("--input", default=None, help="Directory of raw course JSON files")
    parser.add_argument("--output", default=None, help="Directory for processed course JSON files")
    add_config_argument(parser)
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except MalformedRecordError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    input_dir = Path(args.input or config.input_dir)
    output_dir = Path(args.output or config.output_dir)

    if not input_dir.is_dir():
        print(f"Error: {input_dir} not found", file=sys.stderr)
        return 1

    print(f"Processing course files from {input_dir}...\n")
    ok, failed = transform_directory(input_dir, output_dir, config)
    print(f"\n✓ Generated {ok} transformed files in {output_dir}/" + (f" ({failed} failed)" if failed else ""))
    return 0


if __name__ == "__main__":
    sys.exit(main())
