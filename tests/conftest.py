import json

import pytest


def make_record(
    course_id="FEB22002X",
    name="Econometrics 2",
    credits="4 EC",
    block="Block BLOK2",
    content=None,
    url="https://courses.example.org/FEB22002X",
    drop=(),
):
    """Raw export record shaped like the university export, minus the noise."""
    items = [
        {
            "rubriek": "rubriek-kop",
            "velden": [
                {"veld": "cursus", "titel": "Course", "waarde": course_id},
                {"veld": "cursus_korte_naam", "titel": "Name", "waarde": name},
                {"veld": "deeplink_detailscherm_extern", "titel": "Link", "waarde": url},
            ],
        },
        {
            "rubriek": "rubriek-zoek",
            "velden": [
                {"veld": "studiepunten", "titel": "Study points", "waarde": credits},
            ],
        },
        {
            "rubriek": "rubriek-inhoud",
            "velden": [
                {"veld": "item-inhoud-1", "titel": "Content", "waarde": content or "<p>No entry requirements.</p>"},
            ],
        },
        {
            "rubriek": "rubriek-inschrijven",
            "velden": [
                {
                    "veld": "tabel-inschrijfperiodes",
                    "titel": "Enrollment",
                    "waarde": [{"omschrijving": block, "startdatum": "2024-01-01"}],
                },
            ],
        },
    ]
    return {"items": [s for s in items if s["rubriek"] not in drop]}


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def write_json_file():
    def _write(path, data):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
