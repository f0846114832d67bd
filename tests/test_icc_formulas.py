"""
Scrape pipeline tests: ID discovery, extraction, resume and checkpoints.
"""

import json

import pytest
import requests

from conftest import FakeResponse, FakeSession
from pmsfinder.data.color_resolution import build_name_index
from pmsfinder.resources.icc_formulas import (
    discover_formula_ids,
    extract_formula_data,
    parse_float,
    seed_family,
)

BASE = "http://icc.test"

LISTING = """
<select name="formula">
  <option value="">Choose a formula</option>
  <option value="12">12</option>
  <option value="3">3</option>
  <option value="12">12 again</option>
  <option value="0">none</option>
</select>
"""

EMBEDDED = """<html><script>
ultramix.formulas.current({"name": "185 C", "lines": [{"part_number": "7500-1", "name": "Red", "percent": 60},
  {"partNumber": "7500-2", "component_name": "White", "percentage": "40", "grams": 8}]})
</script></html>"""

RELAXED = """<script>formulaData = {'name': '286 C', 'lines': [{'part_number': 'A', 'percent': 100,},],};</script>"""

TABLE = """
<h2>Warm <b>Red</b> C</h2>
<table>
  <tr><th>Part</th><th>Name</th><th>%</th></tr>
  <tr><td>7500-01</td><td>Red</td><td>75.5</td><td>12</td><td>base</td><td>1.1</td></tr>
  <tr><td>7500-02</td><td>White</td><td>24.5 %</td></tr>
  <tr><td>x</td><td>y</td><td>0</td></tr>
</table>
"""


def formula_url(formula_id):
    return f"{BASE}/families/7/formulas/{formula_id}"


def test_discover_ids():
    assert discover_formula_ids(LISTING) == [3, 12]


def test_embedded_json():
    data = extract_formula_data(EMBEDDED, 5)
    assert data["name"] == "185 C"
    assert len(data["lines"]) == 2


def test_relaxed_json():
    data = extract_formula_data(RELAXED, 5)
    assert data == {"name": "286 C", "lines": [{"part_number": "A", "percent": 100}]}


def test_table_fallback():
    data = extract_formula_data(TABLE, 5)
    assert data["name"] == "Warm Red C"
    assert [line["percent"] for line in data["lines"]] == [75.5, 24.5]
    assert data["lines"][0]["density"] == 1.1
    assert data["lines"][1]["weight"] == 0.0


def test_table_fallback_default_name():
    assert extract_formula_data("<p>nothing</p>", 9) == {"name": "Formula 9", "lines": []}


@pytest.mark.parametrize("raw, expected", [("12.5 %", 12.5), ("abc", 0.0), (None, 0.0), (7, 7.0), ("-2", -2.0)])
def test_parse_float(raw, expected):
    assert parse_float(raw) == expected


def listing_with(*ids):
    return "<select>" + "".join(f'<option value="{i}">{i}</option>' for i in ids) + "</select>"


def test_seed_resumes_and_counts(tmp_path, tmp_json, swatch_records):
    output = tmp_json([{"id": "1", "code": "Old", "name": "Old", "hex": None, "family": "7500 Coated",
                        "lines": []}], "icc.json")
    session = FakeSession({
        formula_url(1): FakeResponse(text=listing_with(1, 2, 3)),
        formula_url(2): FakeResponse(text=EMBEDDED),
        formula_url(3): FakeResponse(text="down", status_code=500),
    })
    sleeps = []

    stats = seed_family(output, build_name_index(swatch_records), session=session, base_url=BASE,
                        sleep=sleeps.append)

    records = json.loads(output.read_text(encoding="utf-8"))
    assert stats["ids_found"] == 3
    assert (stats["fetched"], stats["skipped"], stats["errors"]) == (1, 1, 1)
    assert [r["id"] for r in records] == ["1", "2"]
    new = records[1]
    assert new["hex"] == "#E4002B"
    assert new["family"] == "7500 Coated"
    assert new["lines"][1] == {"part_number": "7500-2", "name": "White", "percent": 40.0,
                               "weight": 8.0, "category": "", "density": 0.0}
    assert sleeps == [0.1, 0.1]
    assert session.count("GET", formula_url(1)) == 1


def test_crash_leaves_last_checkpoint(tmp_path):
    output = tmp_path / "icc.json"
    session = FakeSession({
        formula_url(1): FakeResponse(text=listing_with(2, 3)),
        formula_url(2): FakeResponse(text=RELAXED),
        formula_url(3): RuntimeError("process killed"),
    })

    with pytest.raises(RuntimeError):
        seed_family(output, {}, session=session, base_url=BASE, checkpoint_interval=1, sleep=lambda s: None)

    records = json.loads(output.read_text(encoding="utf-8"))
    assert [r["id"] for r in records] == ["2"]
    assert records[0]["hex"] is None


def test_discovery_failure(tmp_path):
    session = FakeSession({formula_url(1): requests.ConnectionError("offline")})
    stats = seed_family(tmp_path / "icc.json", {}, session=session, base_url=BASE, sleep=lambda s: None)
    assert stats["ids_found"] == 0
    assert not (tmp_path / "icc.json").exists()


def test_stop_flag_saves_progress(tmp_path):
    output = tmp_path / "icc.json"
    session = FakeSession({
        formula_url(1): FakeResponse(text=listing_with(2, 3)),
        formula_url(2): FakeResponse(text=RELAXED),
        formula_url(3): FakeResponse(text=RELAXED),
    })
    calls = []

    def stop():
        calls.append(1)
        return len(calls) > 1

    stats = seed_family(output, {}, session=session, base_url=BASE, sleep=lambda s: None, stop_flag_callback=stop)

    assert stats["stopped"]
    assert stats["fetched"] == 1
    assert len(json.loads(output.read_text(encoding="utf-8"))) == 1


def test_malformed_page_is_counted_and_batch_continues(tmp_path):
    output = tmp_path / "icc.json"
    session = FakeSession({
        formula_url(1): FakeResponse(text=listing_with(2, 3)),
        formula_url(2): FakeResponse(text='<script>var formula = {"name": "185 C", "lines": 5};</script>'),
        formula_url(3): FakeResponse(text=RELAXED),
    })
    messages = []

    stats = seed_family(output, {}, session=session, base_url=BASE, sleep=lambda s: None,
                        log_callback=lambda msg, status: messages.append((status, msg)))

    assert (stats["fetched"], stats["errors"]) == (1, 1)
    assert [r["id"] for r in json.loads(output.read_text(encoding="utf-8"))] == ["3"]
    assert any(status == "error" and "formula 2" in msg for status, msg in messages)
