"""
Reference swatch library tests.
"""

import pytest

from pmsfinder.data.swatches import STUB_SWATCHES, SwatchLibrary, find_duplicate_keys


def test_missing_file_uses_stubs(tmp_path):
    library = SwatchLibrary(tmp_path / "pantone_swatches.json")
    swatches = library.all()
    assert library.mode == "stub"
    assert len(swatches) == len(STUB_SWATCHES)


def test_corrupt_file_uses_stubs(tmp_path):
    path = tmp_path / "pantone_swatches.json"
    path.write_text("{not json", encoding="utf-8")
    library = SwatchLibrary(path)
    library.load()
    assert library.mode == "stub"


def test_live_file(tmp_json, swatch_records):
    library = SwatchLibrary(tmp_json(swatch_records, "pantone_swatches.json"))
    assert len(library.all()) == 5
    assert library.mode == "live"


def test_match_by_series(tmp_json, swatch_records):
    library = SwatchLibrary(tmp_json(swatch_records, "pantone_swatches.json"))

    coated = library.match("#E4002B", "C", 10)
    uncoated = library.match("#E4002B", "u", 10)

    assert coated[0].candidate.code == "185"
    assert coated[0].distance == 0
    assert all(m.candidate.series == "C" for m in coated)
    assert [m.candidate.series for m in uncoated] == ["U"]
    assert len(library.match("#E4002B", "BOTH", 10)) == 5


def test_match_rejects_unknown_series(tmp_json, swatch_records):
    library = SwatchLibrary(tmp_json(swatch_records, "pantone_swatches.json"))
    with pytest.raises(ValueError):
        library.match("#E4002B", "X", 10)


def test_invalid_swatches_are_dropped(tmp_json, swatch_records):
    records = swatch_records + [{"pms": "999", "series": "C", "hex": "nope", "name": "Bad", "notes": ""}]
    library = SwatchLibrary(tmp_json(records, "pantone_swatches.json"))
    assert len(library.all()) == 5


def test_code_index_is_lowercase_bare_hex(tmp_json):
    records = [{"pms": "Warm Red", "series": "C", "hex": "#F9423A", "name": "PMS Warm Red C", "notes": ""}]
    library = SwatchLibrary(tmp_json(records, "pantone_swatches.json"))
    assert library.code_index() == {"warm red": "F9423A"}


def test_find_duplicate_keys(swatch_records):
    records = swatch_records + [dict(swatch_records[0])]
    assert find_duplicate_keys(records) == ["185-C"]
