import json

import pytest

from catalog_pipeline.course_processor import (
    extract,
    extract_dependencies_text,
    find_codes,
    html_to_text,
    is_premaster,
    parse_block,
    parse_raw_record,
    transform,
    transform_directory,
)
from catalog_pipeline.config import PipelineConfig
from catalog_pipeline.errors import MalformedRecordError
from catalog_pipeline.models import CourseRecord, RawRecord, UNKNOWN


def test_extracts_every_field(record):
    raw = record(
        content="<p>Entry requires <b>FEB11001X</b> and FEB11002X.</p>",
        block="Block BLOK4 until Block BLOK5",
        credits="6 EC",
    )
    course = transform(raw)
    assert course == CourseRecord(
        id="FEB22002X",
        name="Econometrics 2",
        credits=6,
        block_start="BLOK4",
        block_end="BLOK5",
        url="https://courses.example.org/FEB22002X",
        dependencies=["FEB11001X", "FEB11002X"],
        premaster=False,
    )


def test_record_without_sections_is_all_unknown():
    course = extract(RawRecord())
    assert course.to_output() == {
        "id": UNKNOWN,
        "name": UNKNOWN,
        "credits": UNKNOWN,
        "blockStart": UNKNOWN,
        "blockEnd": UNKNOWN,
        "url": UNKNOWN,
        "dependencies": [],
        "premaster": False,
    }


def test_empty_object_is_a_record():
    assert transform({}) == CourseRecord()


def test_null_field_lists_are_tolerated():
    course = transform({"items": [{"rubriek": "rubriek-kop", "velden": None}, {"rubriek": None}]})
    assert course.id is None


@pytest.mark.parametrize("section", ["rubriek-kop", "rubriek-zoek", "rubriek-inhoud", "rubriek-inschrijven"])
def test_missing_section_only_affects_its_fields(record, section):
    full = transform(record(content="FEB11001X"))
    partial = transform(record(content="FEB11001X", drop=(section,)))
    changed = {k for k, v in full.model_dump().items() if partial.model_dump()[k] != v}
    expected = {
        "rubriek-kop": {"id", "name", "url"},
        "rubriek-zoek": {"credits"},
        "rubriek-inhoud": {"dependencies"},
        "rubriek-inschrijven": {"block_start", "block_end"},
    }[section]
    assert changed == expected


@pytest.mark.parametrize("section", [
    {"velden": "oops"},
    {"velden": [None]},
    {"velden": [{"veld": "x", "titel": 5}]},
    {"rubriek": 7},
])
def test_broken_section_only_affects_its_fields(record, section):
    raw = record(content="FEB11001X")
    raw["items"][1] = section
    course = transform(raw)
    assert course.id == "FEB22002X"
    assert course.credits is None
    assert course.dependencies == ["FEB11001X"]
    assert course.block_start == "BLOK2"


def test_non_object_sections_are_skipped(record):
    raw = record()
    raw["items"] = ["junk", None] + raw["items"] + [42]
    course = transform(raw)
    assert course.id == "FEB22002X"
    assert course.credits == 4


def test_first_matching_section_and_field_win(record):
    raw = record()
    raw["items"].append({"rubriek": "rubriek-kop", "velden": [{"veld": "cursus", "waarde": "FEB99999X"}]})
    raw["items"][0]["velden"].append({"veld": "cursus", "waarde": "FEB88888X"})
    assert transform(raw).id == "FEB22002X"


@pytest.mark.parametrize("value,expected", [("4 EC", 4), ("12", 12), ("EC 3 or 4", 3), ("n/a", None), ("", None), (5, 5)])
def test_credits(record, value, expected):
    assert transform(record(credits=value)).credits == expected


def test_credits_found_by_label_not_key(record):
    raw = record()
    raw["items"][1]["velden"] = [{"veld": "other", "titel": "Study points", "waarde": "8 EC"}]
    assert transform(raw).credits == 8


@pytest.mark.parametrize("text,expected", [
    ("Block BLOK4 until Block BLOK5", ("BLOK4", "BLOK5")),
    ("Block BLOK2", ("BLOK2", "BLOK2")),
    ("Semester 1", (None, None)),
    (None, (None, None)),
])
def test_parse_block(text, expected):
    assert parse_block(text) == expected


def test_only_first_enrollment_period_counts(record):
    raw = record(block="Block BLOK1")
    raw["items"][3]["velden"][0]["waarde"].append({"omschrijving": "Block BLOK3 until Block BLOK4"})
    course = transform(raw)
    assert (course.block_start, course.block_end) == ("BLOK1", "BLOK1")


@pytest.mark.parametrize("table", [[], "Block BLOK2", [None], [{"startdatum": "2024"}]])
def test_unusable_enrollment_table(record, table):
    raw = record()
    raw["items"][3]["velden"][0]["waarde"] = table
    course = transform(raw)
    assert (course.block_start, course.block_end) == (None, None)


def test_duplicate_codes_collapse():
    assert find_codes("FEB12345X, FEB22222X and again FEB12345X") == ["FEB12345X", "FEB22222X"]


def test_codes_after_required_for_are_dropped():
    text = "... requires FEB12345X and is required for FEB67890X"
    assert extract_dependencies_text(text, PipelineConfig().required_for_markers) == ["FEB12345X"]


def test_required_for_marker_is_case_insensitive():
    text = "Builds on FEB12345X. Is Required For FEB67890X."
    assert extract_dependencies_text(text, ["is required for"]) == ["FEB12345X"]


def test_dependencies_from_html(record):
    content = (
        "<p>Prior knowledge of <a href='/x'>FEB11001X</a> and <em>FEB11003S</em>.</p>"
        "<p>This course is required for FEB33000X.</p>"
    )
    assert transform(record(content=content)).dependencies == ["FEB11001X", "FEB11003S"]


def test_html_tags_become_spaces():
    assert html_to_text("<p>one</p><p>two</p>").split() == ["one", "two"]


def test_lowercase_and_short_codes_are_not_course_codes():
    assert find_codes("feb12345x FEB1234X FEB123456") == ["FEB123456"]


@pytest.mark.parametrize("course_id,expected", [
    ("FEB12345S", True), ("FEB12345X", False), ("Unknown", False), (None, False), ("", False),
])
def test_premaster(course_id, expected):
    assert is_premaster(course_id) is expected


def test_premaster_flag_on_record(record):
    assert transform(record(course_id="FEB11003S")).premaster is True
    assert transform(record(drop=("rubriek-kop",))).premaster is False


@pytest.mark.parametrize("data", [[], "text", 3, {"items": "nope"}, {"items": {"rubriek": "rubriek-kop"}}])
def test_malformed_records(data):
    with pytest.raises(MalformedRecordError):
        parse_raw_record(data, source="bad.json")


def test_transform_directory(tmp_path, record, write_json_file):
    inp, out = tmp_path / "input", tmp_path / "output"
    write_json_file(inp / "FEB22002X.json", record())
    write_json_file(inp / "broken.json", ["not", "a", "record"])
    (inp / "garbage.json").write_text("{not json", encoding="utf-8")
    (inp / "notes.txt").write_text("ignored", encoding="utf-8")

    ok, failed = transform_directory(inp, out, PipelineConfig())

    assert (ok, failed) == (1, 2)
    assert sorted(p.name for p in out.iterdir()) == ["FEB22002X.json"]
    written = json.loads((out / "FEB22002X.json").read_text(encoding="utf-8"))
    assert list(written) == ["id", "name", "credits", "blockStart", "blockEnd", "url", "dependencies", "premaster"]
    assert written["blockStart"] == "BLOK2"
