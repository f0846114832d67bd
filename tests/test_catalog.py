"""
Local catalog store tests.
"""

import pytest

from pmsfinder.data.catalog import LocalCatalogStore, PartitionSource, is_junk
from pmsfinder.data.sources import SPREADSHEET, get_kind
from pmsfinder.errors import CatalogFileError

PARTITIONS = {
    "301 RC Neo": {"file": "matsui_301.json", "kind": "spreadsheet"},
    "7500 Coated": PartitionSource("icc.json", "scraped"),
    "Empty": {"file": "empty.json", "kind": "spreadsheet"},
}


@pytest.fixture
def store(tmp_path, tmp_json, make_spreadsheet_record, make_scraped_record):
    over = make_spreadsheet_record("OVER")
    over["components"][0]["percentage"] = 90.0
    tmp_json([
        make_spreadsheet_record("485 C", "DA291C"),
        make_spreadsheet_record("COPY: 485 C"),
        make_spreadsheet_record("TEST"),
        over,
        make_spreadsheet_record("Blue Shade", "0033A0"),
    ], "matsui_301.json")
    tmp_json([
        make_scraped_record(1, "185 C", "#E4002B"),
        make_scraped_record(2, "Mystery", None),
    ], "icc.json")
    tmp_json([], "empty.json")
    return LocalCatalogStore(tmp_path, PARTITIONS)


def test_load_filters_junk(store):
    records = store.load("301 RC Neo")
    assert [r.code for r in records] == ["485 C", "Blue Shade"]
    assert records[0].resolved_hex == "#DA291C"
    assert records[0].source == "matsui"
    assert records[0].partition_key == "301 RC Neo"
    assert len(records[0].components) == 2


def test_scraped_partition_keeps_unresolved_records(store):
    records = store.load("7500 Coated")
    assert [r.resolved_hex for r in records] == ["#E4002B", None]
    assert records[0].components[0].component_code == "75-0"
    assert records[0].source == "icc"


def test_missing_partition_is_none_and_empty_is_empty_list(store):
    assert store.load("Unknown") is None
    assert store.load("Empty") == []
    assert not store.has_local_data("Unknown")
    assert store.has_local_data("Empty")


def test_missing_file_is_none(tmp_path):
    store = LocalCatalogStore(tmp_path, {"OW Stretch": {"file": "nope.json", "kind": "spreadsheet"}})
    assert store.load("OW Stretch") is None


@pytest.mark.parametrize("content", ["{broken", '{"not": "an array"}'])
def test_corrupt_file_raises(tmp_path, content):
    (tmp_path / "bad.json").write_text(content, encoding="utf-8")
    store = LocalCatalogStore(tmp_path, {"Bad": {"file": "bad.json", "kind": "spreadsheet"}})
    with pytest.raises(CatalogFileError):
        store.load("Bad")


def test_invalid_records_are_kept(tmp_path, tmp_json, make_spreadsheet_record):
    broken = make_spreadsheet_record("100 C")
    broken["components"][0]["hex"] = None
    tmp_json([broken], "m.json")
    store = LocalCatalogStore(tmp_path, {"M": {"file": "m.json", "kind": "spreadsheet"}})
    assert len(store.load("M")) == 1


def test_cache_until_cleared(store, tmp_json):
    first = store.load("301 RC Neo")
    tmp_json([], "matsui_301.json")
    assert store.load("301 RC Neo") is first
    store.clear("301 RC Neo")
    assert store.load("301 RC Neo") == []


@pytest.mark.parametrize("query, expected", [
    ("", ["485 C", "Blue Shade"]),
    ("485", ["485 C"]),
    ("blue", ["Blue Shade"]),
    ("FORMULA BLUE", ["Blue Shade"]),
    ("zzz", []),
])
def test_search(store, query, expected):
    assert [r.code for r in store.search("301 RC Neo", query)] == expected


def test_search_without_local_data(store):
    assert store.search("Unknown", "x") is None


def test_junk_threshold_is_configurable(make_spreadsheet_record):
    record = make_spreadsheet_record("105")
    record["components"][0]["percentage"] = 65.0
    assert not is_junk(record, SPREADSHEET)
    assert is_junk(record, SPREADSHEET, max_percent_sum=100)


def test_unknown_kind():
    with pytest.raises(ValueError):
        get_kind("csv")


def test_blend_fallback_swatch_is_unresolved(tmp_path, tmp_json, make_spreadsheet_record):
    tmp_json([make_spreadsheet_record("900", "888888")], "matsui_301.json")
    records = LocalCatalogStore(tmp_path, PARTITIONS).load("301 RC Neo")
    assert records[0].resolved_hex is None
