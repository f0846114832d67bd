"""
Matsui Spreadsheet Converter

Turns the raw Matsui Excel exports (one row per formula component) into
the JSON catalog files served by the local store.

Step 1: Read every row of the first sheet and group rows by FormulaCode,
 keeping the order in which codes first appear.
Step 2: Give each component a colour from the component-code table and
 flag base / clear / white components.
Step 3: Colour each formula: the matching Pantone swatch when the formula
 code names one (e.g. "485 C" -> PMS 485), otherwise the percentage
 blend of its components.
Step 4: Sort (numeric codes first, then alphabetical), validate and write.

A missing input file is reported and skipped; the other series still run.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from pmsfinder.data.colors import blend
from pmsfinder.data.schemas import SpreadsheetFormula, validate_records
from pmsfinder.infrastructure.logging_setup import make_log
from pmsfinder.state.progress import write_json_atomic

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------
SERIES = [
    {"name": "301 RC Neo", "input": "matsui_301_rc_neo_raw.xlsx", "output": "matsui_301_rc_neo.json"},
    {"name": "Alpha Discharge", "input": "matsui_alpha_discharge_raw.xlsx", "output": "matsui_alpha_discharge.json"},
    {"name": "Brite Discharge", "input": "matsui_brite_discharge_raw.xlsx", "output": "matsui_brite_discharge.json"},
    {"name": "HM Discharge", "input": "matsui_hm_discharge_raw.xlsx", "output": "matsui_hm_discharge.json"},
    {"name": "OW Stretch", "input": "matsui_ow_stretch_raw.xlsx", "output": "matsui_ow_stretch.json"},
]

# Component code -> bare hex (API values plus manual fills)
COMPONENT_HEX = {
    "CLR 301C": "FFFFFF",
    "MAT 301M": "FFFFFF",
    "PNK MB": "CB6597",
    "BLU MB": "0066B0",
    "VLT MFB": "654285",
    "BLU MG": "008EB9",
    "GRN MB": "00A073",
    "YEL M3G": "FADC00",
    "SLVRSM 620": "9F9B92",
    "RED MFB": "C92A4F",
    "ORNG MGD": "F8622C",
    "GLDYEL MFR": "FFBD0D",
    "RED MGD": "E84446",
    "GOLDSM 620": "FADC00",
    "VLT ECGR": "654285",
    "ROSE EC5B": "CB487E",
    "PNK EC5B": "EA1679",
    "ORNG ECR": "F95D4C",
    "YEL ECB": "F8FA00",
    "GRN EC5G": "A8EA16",
    "BLU ECBR": "008EB9",
    "BLK MK": "3E3D39",
    "ROSE MB": "CB6597",
    "RED ECB": "FF888E",
    "YEL ECGG": "F8FA00",
    # bases / clears / whites
    "BRITE DSCHRG BASE": "FFFFFF",
    "BR DSCHRG BASE": "FFFFFF",
    "BRT DSCHRG WHT": "FFFFFF",
    "BRITE DSCHRG WHT": "FFFFFF",
    "ALPHA DSCHRG BASE": "FFFFFF",
    "ALPHA DSCHRG WHT": "FFFFFF",
    "ALPHA TRANS WHITE": "FFFFFF",
    "HM DSCHRG BASE": "FFFFFF",
    "HM DSCHRG WHT": "FFFFFF",
    "EP WHT 301": "FFFFFF",
    "WH301W-B": "FFFFFF",
    "ST CLR 301": "FFFFFF",
    "ST CLR 301-5": "FFFFFF",
    "ST WHT 300": "FFFFFF",
    "ST WHT 301": "FFFFFF",
    "ST WHT 301-5": "FFFFFF",
    "ST WHT 302": "FFFFFF",
    "STRETCH WHITER 301-5": "FFFFFF",
    # manual fills
    "NEO BLACK BK": "000000",
    "Navy B": "1A2355",
    "NEO VIOLET MSGR": "654285",
    "SLVRSM 602": "C0C0C0",
    "GLW VLT ECGR": "654285",
    "ORNG": "F8622C",
    "YEL MFR": "FFBD0D",
}

BASE_CODES = {
    "CLR 301C", "MAT 301M", "EP WHT 301", "WH301W-B",
    "ST CLR 301", "ST CLR 301-5", "ST WHT 300", "ST WHT 301", "ST WHT 301-5", "ST WHT 302",
    "STRETCH WHITER 301-5",
    "BR DSCHRG BASE", "BRITE DSCHRG BASE", "BRITE DSCHRG WHT", "BRT DSCHRG WHT",
    "ALPHA DSCHRG BASE", "ALPHA DSCHRG WHT", "ALPHA TRANS WHITE",
    "HM DSCHRG BASE", "HM DSCHRG WHT",
}

# "485 C", "485 U", "485 C (2)" -> "485"
PMS_SUFFIX_RE = re.compile(r"\s+[CUcu](\s*\(\d+\))?$")
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def cell_text(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def cell_number(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if pd.isna(number) else number


def pms_key(formula_code: str) -> str:
    return PMS_SUFFIX_RE.sub("", formula_code).strip().lower()


def formula_sort_key(formula: Dict):
    """Numeric codes first (by their leading integer), then alphabetical."""
    code = formula["formulaCode"]
    match = LEADING_INT_RE.match(code)
    if match:
        return (0, int(match.group(1)), "")
    return (1, 0, code.casefold())


def group_rows(df: pd.DataFrame) -> Dict[str, Dict]:
    """FormulaCode -> {"desc", "components"} in first-seen order."""
    grouped = {}
    for _, row in df.iterrows():
        code = cell_text(row.get("FormulaCode"))
        if not code:
            continue
        if code not in grouped:
            grouped[code] = {"desc": cell_text(row.get("FormulaDescription")), "components": []}
        comp_code = cell_text(row.get("ComponentCode"))
        grouped[code]["components"].append({
            "componentCode": comp_code,
            "componentDescription": cell_text(row.get("ComponentDescription")),
            "percentage": cell_number(row.get("Percentage")),
            "hex": COMPONENT_HEX.get(comp_code, ""),
            "isBase": comp_code in BASE_CODES,
        })
    return grouped


def build_formulas(grouped: Dict[str, Dict], series_name: str, pms_hex: Dict[str, str]):
    """
    Returns:
        (formulas, stats) where stats counts PMS matches and missing component colours
    """
    formulas = []
    stats = {"pms_matched": 0, "blended": 0, "missing_hex": 0}
    for code, data in grouped.items():
        stats["missing_hex"] += sum(1 for c in data["components"] if not c["hex"])

        swatch_hex = pms_hex.get(pms_key(code))
        if swatch_hex:
            stats["pms_matched"] += 1
        else:
            swatch_hex = blend(data["components"]).lstrip("#")
            stats["blended"] += 1

        formulas.append({
            "_id": code,
            "formulaCode": code,
            "formulaDescription": data["desc"],
            "formulaSeries": series_name,
            "formulaColor": "",
            "formulaSwatchColor": {
                "_id": code,
                "formulaCode": code,
                "formulaColor": swatch_hex,
            },
            "components": data["components"],
        })

    formulas.sort(key=formula_sort_key)
    return formulas, stats


# ---------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------
def convert_series(
    series_name: str,
    input_file: Path,
    output_file: Path,
    pms_hex: Optional[Dict[str, str]] = None,
    log_callback=None,
) -> Dict:
    """
    Convert one raw Excel export to a JSON catalog file.

    Args:
        series_name: Series label written to every record
        input_file: Raw .xlsx export
        output_file: Destination JSON file
        pms_hex: Lowercase PMS code -> bare hex, used to colour formulas named after a swatch
        log_callback: Optional callback function(message, status) for logging

    Returns:
        dict: {"series", "formulas", "skipped", "invalid", "pms_matched", "blended", "missing_hex"}
    """
    log = make_log(logger, log_callback)
    stats = {"series": series_name, "formulas": 0, "skipped": False, "invalid": 0,
             "pms_matched": 0, "blended": 0, "missing_hex": 0}

    input_file = Path(input_file)
    log(f"--- {series_name} --- reading {input_file.name}", "info")
    if not input_file.exists():
        log(f"⚠️ SKIP {series_name}: {input_file.name} not found", "warning")
        stats["skipped"] = True
        return stats

    try:
        df = pd.read_excel(input_file, sheet_name=0)
    except (OSError, ValueError) as e:
        log(f"⚠️ SKIP {series_name}: could not read {input_file.name}: {e}", "warning")
        stats["skipped"] = True
        return stats

    df.columns = [str(c).strip() for c in df.columns]
    log(f"   Rows: {len(df)}", "info")

    formulas, counts = build_formulas(group_rows(df), series_name, pms_hex or {})
    stats.update(counts)
    stats["formulas"] = len(formulas)

    result = validate_records(formulas, SpreadsheetFormula, series_name)
    stats["invalid"] = result.invalid
    if result.invalid:
        log(f"⚠️ Validation: {result.invalid}/{result.total} records failed schema check", "warning")

    write_json_atomic(output_file, formulas)
    log(
        f"✅ Wrote {len(formulas)} formulas to {Path(output_file).name} "
        f"({counts['pms_matched']} PMS matched, {counts['blended']} blended)",
        "success"
    )
    if counts["missing_hex"]:
        log(f"⚠️ {counts['missing_hex']} components had no hex mapping", "warning")
    return stats


def convert_all(
    data_dir: Path,
    pms_hex: Optional[Dict[str, str]] = None,
    series: Optional[List[Dict]] = None,
    log_callback=None,
    stop_flag_callback=None,
    stats_callback=None,
) -> Dict:
    """
    Convert every configured series found in ``data_dir``.

    Returns:
        dict: {"converted", "skipped", "formulas", "invalid", "stopped", "series": [per-series stats]}
    """
    log = make_log(logger, log_callback)
    data_dir = Path(data_dir)
    stats = {"converted": 0, "skipped": 0, "formulas": 0, "invalid": 0, "stopped": False, "series": []}

    for entry in series or SERIES:
        if stop_flag_callback and stop_flag_callback():
            log("⏹️ Conversion stopped by user", "warning")
            stats["stopped"] = True
            break

        result = convert_series(
            entry["name"],
            data_dir / entry["input"],
            data_dir / entry["output"],
            pms_hex,
            log_callback,
        )
        stats["series"].append(result)
        if result["skipped"]:
            stats["skipped"] += 1
        else:
            stats["converted"] += 1
            stats["formulas"] += result["formulas"]
            stats["invalid"] += result["invalid"]
        if stats_callback:
            stats_callback(dict(stats))

    log(f"=== Total: {stats['formulas']} formulas across {stats['converted']} series ===", "success")
    return stats


if __name__ == "__main__":
    from pmsfinder.data.swatches import SwatchLibrary
    from pmsfinder.infrastructure import load_settings, setup_logging

    setup_logging()
    settings = load_settings()
    library = SwatchLibrary(settings.swatches_path)
    convert_all(settings.data_dir, library.code_index())
