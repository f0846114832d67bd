"""
Data integrity audit tests.
"""

from pmsfinder.data.integrity import ManifestEntry, format_report, run_audit
from pmsfinder.resources.validate_data import validate_data

SCRAPED = ManifestEntry("ICC", "icc.json", "scraped", 1)
SHEET = ManifestEntry("Matsui", "matsui.json", "spreadsheet", 1)
SWATCHES = ManifestEntry("Pantone", "pantone.json", "swatches", 1)


def test_percentage_sum_is_only_a_warning(tmp_path, tmp_json, make_scraped_record):
    tmp_json([
        make_scraped_record(1, "185 C"),
        make_scraped_record(2, "Thin", percents=(35.0, 35.0)),
    ], "icc.json")

    report = run_audit(tmp_path, [SCRAPED])
    audit = report.files[0]

    assert report.exit_code == 0
    assert audit.result.ok
    assert len(audit.warnings) == 1
    assert "percentage sum" in audit.warnings[0]
    assert "Thin: sum = 70.0%" in audit.warnings[0]


def test_schema_failure_sets_exit_code(tmp_path, tmp_json, make_spreadsheet_record):
    broken = make_spreadsheet_record("100 C")
    broken["components"] = []
    tmp_json([broken, make_spreadsheet_record("200 C")], "matsui.json")

    report = run_audit(tmp_path, [SHEET])

    assert report.exit_code == 1
    assert report.files[0].result.invalid == 1
    assert any("[FAIL] Matsui: 1/2 valid" in line for line in format_report(report))


def test_sum_examples_are_capped(tmp_path, tmp_json, make_spreadsheet_record):
    records = []
    for i in range(8):
        record = make_spreadsheet_record(f"{i} C")
        record["components"][0]["percentage"] = 10.0
        records.append(record)
    tmp_json(records, "matsui.json")

    warning = run_audit(tmp_path, [SHEET]).files[0].warnings[0]

    assert warning.startswith("Matsui: 8 records")
    assert warning.count("sum =") == 5


def test_spreadsheet_tolerance_is_wider(tmp_path, tmp_json, make_spreadsheet_record):
    record = make_spreadsheet_record("1 C")
    record["components"][0]["percentage"] = 64.0
    tmp_json([record], "matsui.json")
    assert run_audit(tmp_path, [SHEET]).files[0].warnings == []


def test_min_records_and_junk(tmp_path, tmp_json, make_spreadsheet_record):
    tmp_json([make_spreadsheet_record("TEST")], "matsui.json")
    report = run_audit(tmp_path, [ManifestEntry("Matsui", "matsui.json", "spreadsheet", 100)])
    audit = report.files[0]

    assert report.exit_code == 0
    assert "only 1 records" in audit.warnings[0]
    assert audit.info == ["1 junk records filtered at runtime (COPY/TEST/bad sums)"]


def test_duplicate_swatches(tmp_path, tmp_json, swatch_records):
    tmp_json(swatch_records + [dict(swatch_records[0])], "pantone.json")
    report = run_audit(tmp_path, [SWATCHES])
    assert report.exit_code == 0
    assert "1 duplicate PMS+series entries" in report.files[0].warnings[0]


def test_missing_file_is_skipped(tmp_path):
    report = run_audit(tmp_path, [SCRAPED])
    assert report.files[0].skipped
    assert report.exit_code == 0


def test_unreadable_file_fails(tmp_path):
    (tmp_path / "icc.json").write_text("{]", encoding="utf-8")
    report = run_audit(tmp_path, [SCRAPED])
    assert report.exit_code == 1


def test_validate_data_uses_default_manifest(tmp_path, tmp_json, make_spreadsheet_record):
    tmp_json([make_spreadsheet_record("1 C")], "matsui_301_rc_neo.json")
    messages = []

    code = validate_data(tmp_path, log_callback=lambda msg, status: messages.append((status, msg)))

    assert code == 0
    assert ("info", "  [PASS] Matsui 301 RC Neo: 1/1 valid") in messages
    assert any(status == "warning" and "pantone_swatches.json not found" in msg for status, msg in messages)
