# -*- coding: utf-8 -*-
"""
Shared types for the catalogue pipeline.

Raw records mirror the university export: a list of sections ("rubriek"),
each a list of fields ("veld" / "titel" / "waarde"). Processed records keep
unknown values as None and only turn them into the "Unknown" marker when they
are written out.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN = "Unknown"

# -------------------------
# Raw export records
# -------------------------

def _text_or_none(v):
    return v if isinstance(v, str) else None


def _objects_only(v):
    return [x for x in v if isinstance(x, dict)]


class RawField(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: Optional[str] = Field(default=None, alias="veld")
    label: Optional[str] = Field(default=None, alias="titel")
    value: Any = Field(default=None, alias="waarde")

    @field_validator("key", "label", mode="before")
    @classmethod
    def _text_only(cls, v):
        return _text_or_none(v)


class Section(BaseModel):
    """Unusable fields are dropped; a broken section only loses its own data."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: Optional[str] = Field(default=None, alias="rubriek")
    fields: List[RawField] = Field(default_factory=list, alias="velden")

    @field_validator("kind", mode="before")
    @classmethod
    def _text_only(cls, v):
        return _text_or_none(v)

    @field_validator("fields", mode="before")
    @classmethod
    def _field_objects(cls, v):
        return _objects_only(v) if isinstance(v, list) else []

    def by_key(self) -> Dict[str, RawField]:
        """Field key -> first field carrying it."""
        index: Dict[str, RawField] = {}
        for f in self.fields:
            if f.key is not None:
                index.setdefault(f.key, f)
        return index

    def by_label(self) -> Dict[str, RawField]:
        index: Dict[str, RawField] = {}
        for f in self.fields:
            if f.label is not None:
                index.setdefault(f.label, f)
        return index


class RawRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: List[Section] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _section_objects(cls, v):
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("items must be a list")
        return _objects_only(v)

    def sections(self) -> Dict[str, Section]:
        """Section kind -> first section of that kind."""
        index: Dict[str, Section] = {}
        for s in self.items:
            if s.kind is not None:
                index.setdefault(s.kind, s)
        return index

# -------------------------
# Processed records
# -------------------------

def _known(value: Any) -> Any:
    return None if value == UNKNOWN else value


class CourseRecord(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    credits: Optional[int] = None
    block_start: Optional[str] = None
    block_end: Optional[str] = None
    url: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    premaster: bool = False

    def to_output(self) -> Dict[str, Any]:
        """Per-course JSON layout, unknown values spelled out."""
        return {
            "id": self.id or UNKNOWN,
            "name": self.name or UNKNOWN,
            "credits": self.credits if self.credits is not None else UNKNOWN,
            "blockStart": self.block_start or UNKNOWN,
            "blockEnd": self.block_end or UNKNOWN,
            "url": self.url or UNKNOWN,
            "dependencies": list(self.dependencies),
            "premaster": self.premaster,
        }

    @classmethod
    def from_output(cls, data: Dict[str, Any]) -> "CourseRecord":
        """Inverse of to_output(); "Unknown" reads back as None."""
        return cls(
            id=_known(data.get("id")),
            name=_known(data.get("name")),
            credits=_known(data.get("credits")),
            block_start=_known(data.get("blockStart")),
            block_end=_known(data.get("blockEnd")),
            url=_known(data.get("url")),
            dependencies=data.get("dependencies") or [],
            premaster=data.get("premaster") or False,
        )


class Requirement(BaseModel):
    """One programme obligation; any of the listed courses satisfies it."""
    requirement: List[str] = Field(min_length=1)

    def __contains__(self, course_id: str) -> bool:
        return course_id in self.requirement

    def others(self, course_id: str) -> List[str]:
        return [c for c in self.requirement if c != course_id]


RequirementSet = Dict[str, List[Requirement]]


class AggregateRow(BaseModel):
    id: str
    name: Optional[str] = None
    credits: Optional[int] = None
    block_start: Optional[str] = None
    block_end: Optional[str] = None
    premaster: bool = False
    dependencies: List[str] = Field(default_factory=list)
    memberships: Dict[str, bool] = Field(default_factory=dict)
    alternatives: Dict[str, List[str]] = Field(default_factory=dict)

    def to_csv_row(self) -> Dict[str, str]:
        row = {
            "id": self.id,
            "course": self.name or UNKNOWN,
            "credits": str(self.credits) if self.credits is not None else UNKNOWN,
            "block_start": self.block_start or UNKNOWN,
            "block_end": self.block_end or UNKNOWN,
            "premaster": _bool_cell(self.premaster),
            "dependencies": ";".join(self.dependencies),
        }
        for category, member in self.memberships.items():
            row[category] = _bool_cell(member)
        for category, others in self.alternatives.items():
            row[f"{category}_alternative"] = ";".join(others)
        return row


def _bool_cell(value: bool) -> str:
    return "true" if value else "false"

# -------------------------
# Legacy reconciliation
# -------------------------

class UnresolvedReference(BaseModel):
    row_number: int
    legacy_id: str
    name: str
