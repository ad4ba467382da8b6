# -*- coding: utf-8 -*-
"""
Pipeline configuration.

Defaults describe the university export and the degree programme this tool was
written for. Anything that tends to change (alternative course groups, spelling
variants of course names, category columns, paths) can be overridden with a
JSON file passed as --config to any stage.
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import MalformedRecordError

# -------------------------
# Raw record layout
# -------------------------

HEADER_SECTION = "rubriek-kop"
SEARCH_SECTION = "rubriek-zoek"
CONTENT_SECTION = "rubriek-inhoud"
ENROLLMENT_SECTION = "rubriek-inschrijven"

ID_FIELD = "cursus"
NAME_FIELD = "cursus_korte_naam"
URL_FIELD = "deeplink_detailscherm_extern"
CONTENT_FIELD = "item-inhoud-1"
ENROLLMENT_FIELD = "tabel-inschrijfperiodes"
CREDITS_LABEL = "Study points"

# Longest phrase first so "and is required for" is cut as a whole.
REQUIRED_FOR_MARKERS = ["and is required for", "is required for"]

# -------------------------
# Programme categories
# -------------------------

FLAG_CATEGORIES = ["core", "qf", "or", "econ", "marketing"]
TRAILING_FLAG_CATEGORIES = ["extracurricular"]
ALTERNATIVE_CATEGORIES = ["qf", "or"]


class AlternativeGroup(BaseModel):
    """Courses that substitute for each other inside one category."""
    category: str
    courses: List[str] = Field(min_length=2)


DEFAULT_ALTERNATIVE_GROUPS = [
    AlternativeGroup(category="qf", courses=["FEB22017X", "FEB21020X"]),
]

# -------------------------
# Legacy CSV reconciliation
# -------------------------

SPELLING_VARIANTS: Dict[str, str] = {
    "optimization": "optimisation",
    "multivariable stats": "multivariate statistics",
}

FUZZY_STRIP_PREFIXES = ["introduction to "]


class LegacyColumns(BaseModel):
    id: str = "id"
    name: str = "course"
    dependencies: str = "dependencies"
    alternative: str = "alternative"


class PipelineConfig(BaseModel):
    header_section: str = HEADER_SECTION
    search_section: str = SEARCH_SECTION
    content_section: str = CONTENT_SECTION
    enrollment_section: str = ENROLLMENT_SECTION
    id_field: str = ID_FIELD
    name_field: str = NAME_FIELD
    url_field: str = URL_FIELD
    content_field: str = CONTENT_FIELD
    enrollment_field: str = ENROLLMENT_FIELD
    credits_label: str = CREDITS_LABEL
    required_for_markers: List[str] = Field(default_factory=lambda: list(REQUIRED_FOR_MARKERS))

    flag_categories: List[str] = Field(default_factory=lambda: list(FLAG_CATEGORIES))
    trailing_flag_categories: List[str] = Field(default_factory=lambda: list(TRAILING_FLAG_CATEGORIES))
    alternative_categories: List[str] = Field(default_factory=lambda: list(ALTERNATIVE_CATEGORIES))
    alternative_groups: List[AlternativeGroup] = Field(
        default_factory=lambda: [g.model_copy(deep=True) for g in DEFAULT_ALTERNATIVE_GROUPS]
    )
    flag_id_column: str = "id"

    spelling_variants: Dict[str, str] = Field(default_factory=lambda: dict(SPELLING_VARIANTS))
    fuzzy_strip_prefixes: List[str] = Field(default_factory=lambda: list(FUZZY_STRIP_PREFIXES))
    legacy_columns: LegacyColumns = Field(default_factory=LegacyColumns)

    input_dir: str = "input"
    output_dir: str = "output"
    programme_dir: str = "programme"
    courses_dir: str = "courses"
    course_csv: str = "course.csv"

    @property
    def categories(self) -> List[str]:
        """Every category with a flag column, in header order."""
        out = []
        for name in self.flag_categories + self.trailing_flag_categories:
            if name not in out:
                out.append(name)
        return out


def load_config(path: Optional[Path] = None) -> PipelineConfig:
    """Load a JSON config file over the defaults (defaults only if path is None)."""
    if path is None:
        return PipelineConfig()
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return PipelineConfig.model_validate(data)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid JSON: {e}", source=str(path)) from e
    except ValidationError as e:
        raise MalformedRecordError(f"invalid config: {e}", source=str(path)) from e


def add_config_argument(parser) -> None:
    parser.add_argument("--config", default=None, help="JSON file overriding the default pipeline configuration")
