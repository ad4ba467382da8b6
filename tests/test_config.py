import json

import pytest

from catalog_pipeline.config import PipelineConfig, load_config
from catalog_pipeline.errors import MalformedRecordError


def test_defaults():
    config = load_config(None)
    assert config.categories == ["core", "qf", "or", "econ", "marketing", "extracurricular"]
    assert [(g.category, g.courses) for g in config.alternative_groups] == [("qf", ["FEB22017X", "FEB21020X"])]
    assert config.spelling_variants["optimization"] == "optimisation"


def test_defaults_are_not_shared():
    a, b = PipelineConfig(), PipelineConfig()
    a.alternative_groups[0].courses.append("FEB1")
    a.spelling_variants["x"] = "y"
    assert b.alternative_groups[0].courses == ["FEB22017X", "FEB21020X"]
    assert "x" not in b.spelling_variants


def test_file_overrides_keep_other_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "alternative_groups": [{"category": "or", "courses": ["FEB1", "FEB2"]}],
        "spelling_variants": {"econometrics i": "econometrics 1"},
        "legacy_columns": {"name": "title"},
    }), encoding="utf-8")
    config = load_config(path)
    assert config.alternative_groups[0].category == "or"
    assert config.spelling_variants == {"econometrics i": "econometrics 1"}
    assert (config.legacy_columns.id, config.legacy_columns.name) == ("id", "title")
    assert config.header_section == "rubriek-kop"


@pytest.mark.parametrize("content", ["{", json.dumps({"alternative_groups": [{"category": "qf", "courses": ["A"]}]})])
def test_invalid_config(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(MalformedRecordError):
        load_config(path)
