"""
Schema validation tests.
"""

import copy

from pmsfinder.data.schemas import (
    FormulaComponent,
    FormulaRecord,
    ReferenceSwatchRecord,
    ScrapedFormula,
    SpreadsheetFormula,
    record_identifier,
    validate_records,
)


def test_error_list_is_capped_but_count_is_true():
    records = [{"id": str(i), "code": "X"} for i in range(30)]
    result = validate_records(records, ScrapedFormula, "broken")

    assert result.total == 30
    assert result.valid == 0
    assert result.invalid == 30
    assert len(result.errors) == 20
    assert not result.ok


def test_valid_scraped_record_with_null_hex(make_scraped_record):
    record = make_scraped_record(1, "Mystery", hex_value=None)
    result = validate_records([record], ScrapedFormula)
    assert result.ok
    assert result.valid == 1


def test_scraped_record_rejects_shorthand_hex_and_empty_lines(make_scraped_record):
    short_hex = make_scraped_record(1, "A", hex_value="#FFF")
    no_lines = make_scraped_record(2, "B")
    no_lines["lines"] = []

    result = validate_records([short_hex, no_lines], ScrapedFormula)

    assert result.invalid == 2
    assert any(issue.startswith("hex") for issue in result.errors[0].issues)
    assert any(issue.startswith("lines") for issue in result.errors[1].issues)


def test_scraped_percent_must_be_numeric(make_scraped_record):
    record = make_scraped_record(1, "A")
    record["lines"][0]["percent"] = "50"
    result = validate_records([record], ScrapedFormula)
    assert result.invalid == 1
    assert result.errors[0].issues[0].startswith("lines.0.percent")


def test_spreadsheet_component_hex_may_be_empty_but_not_null(make_spreadsheet_record):
    ok = make_spreadsheet_record("100 C")
    ok["components"][0]["hex"] = ""
    bad = make_spreadsheet_record("200 C")
    bad["components"][0]["hex"] = None

    result = validate_records([ok, bad], SpreadsheetFormula)

    assert result.valid == 1
    assert result.invalid == 1
    assert result.errors[0].id == "200 C"
    assert result.errors[0].issues[0].startswith("components.0.hex")


def test_swatch_series_restricted():
    records = [
        {"pms": "185", "series": "C", "hex": "#E4002B", "name": "PMS 185 C", "notes": ""},
        {"pms": "185", "series": "X", "hex": "#E4002B", "name": "PMS 185 X", "notes": ""},
        {"pms": "186", "series": "C", "hex": None, "name": "PMS 186 C", "notes": ""},
    ]
    result = validate_records(records, ReferenceSwatchRecord, "Pantone")
    assert result.valid == 1
    assert result.invalid == 2
    assert [e.id for e in result.errors] == ["185", "186"]


def test_non_object_records_are_reported():
    result = validate_records(["oops", 3], ReferenceSwatchRecord)
    assert result.invalid == 2
    assert "expected an object" in result.errors[0].issues[0]
    assert result.errors[1].id == "index 1"


def test_input_is_not_mutated(make_spreadsheet_record):
    records = [make_spreadsheet_record("100 C"), {"_id": 5}]
    before = copy.deepcopy(records)
    validate_records(records, SpreadsheetFormula)
    assert records == before


def test_record_identifier_fallbacks():
    assert record_identifier({"id": "7", "_id": "x"}, 0) == "7"
    assert record_identifier({"_id": "abc"}, 0) == "abc"
    assert record_identifier({"code": "C1"}, 0) == "C1"
    assert record_identifier({"pms": "185"}, 0) == "185"
    assert record_identifier({}, 3) == "index 3"


def test_formula_record_to_dict():
    record = FormulaRecord(
        id="1", code="185 C", description="Red", partition_key="301 RC Neo",
        resolved_hex="#E4002B",
        components=[FormulaComponent("RED MFB", "Red", 60.0, "#C92A4F"), FormulaComponent("CLR 301C", "", 40.0)],
    )
    data = record.to_dict()
    assert record.percentage_sum() == 100.0
    assert data["partitionKey"] == "301 RC Neo"
    assert data["components"][0]["componentCode"] == "RED MFB"
    assert "extra" not in data
