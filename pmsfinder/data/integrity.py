# pmsfinder/data/integrity.py
"""
Data integrity audit over every JSON file the system serves.

Checks per file:
  - schema validation of every record (failures make the audit fail)
  - minimum expected record count (catches a scrape that broke halfway)
  - component percentage sums around 100% within the kind's tolerance
  - duplicate code+series pairs in the swatch list
  - how many records the catalog's junk filter will drop at runtime

Only schema failures and unreadable files change the exit code; every
other finding is advisory.
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .catalog import JUNK_PERCENT_SUM, is_junk
from .schemas import ReferenceSwatchRecord, ValidationResult, validate_records
from .sources import get_kind, raw_percentage_sum
from .swatches import find_duplicate_keys

logger = logging.getLogger(__name__)

SWATCHES_KIND = "swatches"
MAX_SUM_EXAMPLES = 5


@dataclass(frozen=True)
class ManifestEntry:
    label: str
    file: str
    kind: str
    min_records: int


MANIFEST = [
    ManifestEntry("ICC 7500 Coated", "icc_7500_coated.json", "scraped", 2000),
    ManifestEntry("Matsui 301 RC Neo", "matsui_301_rc_neo.json", "spreadsheet", 100),
    ManifestEntry("Matsui Alpha Discharge", "matsui_alpha_discharge.json", "spreadsheet", 100),
    ManifestEntry("Matsui Brite Discharge", "matsui_brite_discharge.json", "spreadsheet", 100),
    ManifestEntry("Matsui HM Discharge", "matsui_hm_discharge.json", "spreadsheet", 100),
    ManifestEntry("Matsui OW Stretch", "matsui_ow_stretch.json", "spreadsheet", 100),
    ManifestEntry("Pantone Swatches", "pantone_swatches.json", SWATCHES_KIND, 800),
]


@dataclass
class FileAudit:
    label: str
    file: str
    skipped: bool = False
    error: Optional[str] = None
    result: Optional[ValidationResult] = None
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.error is not None or (self.result is not None and not self.result.ok)


@dataclass
class AuditReport:
    files: List[FileAudit] = field(default_factory=list)

    @property
    def schema_failed(self) -> bool:
        return any(f.failed for f in self.files)

    @property
    def warning_count(self) -> int:
        return sum(len(f.warnings) for f in self.files)

    @property
    def exit_code(self) -> int:
        return 1 if self.schema_failed else 0


def check_min_records(data: List, label: str, min_records: int) -> Optional[str]:
    if len(data) < min_records:
        return f"{label} has only {len(data)} records (expected >= {min_records})"
    return None


def check_percentage_sums(data: List, label: str, kind_name: str) -> Optional[str]:
    """One warning listing how many records fall outside 100 +/- tolerance, with examples."""
    kind = get_kind(kind_name)
    out_of_range = 0
    examples = []
    for record in data:
        if not isinstance(record, dict) or not record.get(kind.items_key):
            continue
        total = raw_percentage_sum(record, kind)
        if abs(total - 100) > kind.tolerance:
            out_of_range += 1
            if len(examples) < MAX_SUM_EXAMPLES:
                examples.append(f"{record.get(kind.id_key)}: sum = {round(total, 2)}%")
    if not out_of_range:
        return None
    return (
        f"{label}: {out_of_range} records with percentage sum outside 100 +/- {kind.tolerance:g}% "
        f"(e.g. {'; '.join(examples)})"
    )


def count_junk(data: List, kind_name: str, max_percent_sum: float = JUNK_PERCENT_SUM) -> int:
    kind = get_kind(kind_name)
    return sum(1 for record in data if isinstance(record, dict) and is_junk(record, kind, max_percent_sum))


def check_duplicate_swatches(data: List) -> Optional[str]:
    duplicates = find_duplicate_keys([s for s in data if isinstance(s, dict)])
    if not duplicates:
        return None
    return f"{len(duplicates)} duplicate PMS+series entries (e.g. {', '.join(duplicates[:5])})"


def audit_file(data_dir: Path, entry: ManifestEntry, junk_percent_sum: float = JUNK_PERCENT_SUM) -> FileAudit:
    audit = FileAudit(label=entry.label, file=entry.file)
    path = Path(data_dir) / entry.file
    if not path.exists():
        audit.skipped = True
        audit.warnings.append(f"{entry.file} not found")
        return audit

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        audit.error = f"could not read {entry.file}: {e}"
        return audit
    if not isinstance(data, list):
        audit.error = f"{entry.file} must contain a JSON array, got {type(data).__name__}"
        return audit

    schema = ReferenceSwatchRecord if entry.kind == SWATCHES_KIND else get_kind(entry.kind).schema
    audit.result = validate_records(data, schema, entry.label)

    count_warning = check_min_records(data, entry.label, entry.min_records)
    if count_warning:
        audit.warnings.append(count_warning)

    if entry.kind == SWATCHES_KIND:
        duplicate_warning = check_duplicate_swatches(data)
        if duplicate_warning:
            audit.warnings.append(duplicate_warning)
    else:
        sum_warning = check_percentage_sums(data, entry.label, entry.kind)
        if sum_warning:
            audit.warnings.append(sum_warning)
        junk = count_junk(data, entry.kind, junk_percent_sum)
        if junk:
            audit.info.append(f"{junk} junk records filtered at runtime (COPY/TEST/bad sums)")

    return audit


def run_audit(
    data_dir: Path,
    manifest: Optional[List[ManifestEntry]] = None,
    junk_percent_sum: float = JUNK_PERCENT_SUM,
) -> AuditReport:
    report = AuditReport()
    for entry in manifest or MANIFEST:
        report.files.append(audit_file(data_dir, entry, junk_percent_sum))
    return report


def format_report(report: AuditReport) -> List[str]:
    """Plain-text lines of the report, in manifest order."""
    lines = ["=== Data Validation Report ==="]
    for audit in report.files:
        if audit.skipped:
            lines.append(f"  [SKIP] {audit.label}: {'; '.join(audit.warnings)}")
            continue
        if audit.error:
            lines.append(f"  [FAIL] {audit.label}: {audit.error}")
            continue
        result = audit.result
        status = "PASS" if result.ok else "FAIL"
        lines.append(f"  [{status}] {audit.label}: {result.valid}/{result.total} valid")
        for issue in result.errors:
            lines.append(f"    record {issue.id}: {'; '.join(issue.issues)}")
        if result.invalid > len(result.errors):
            lines.append(f"    ... and {result.invalid - len(result.errors)} more errors")
        for warning in audit.warnings:
            lines.append(f"  WARN: {warning}")
        for note in audit.info:
            lines.append(f"  INFO: {note}")

    lines.append("--- Summary ---")
    if report.schema_failed:
        lines.append("Schema validation FAILED - see errors above.")
    else:
        lines.append("All schema checks passed.")
    if report.warning_count:
        lines.append(f"{report.warning_count} warning(s) - review above.")
    return lines
