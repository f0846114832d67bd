"""
ICC Hex Patcher

Fills in the hex of scraped formulas that were saved with ``hex: null``,
using the current resolution chain:

 1. specialty Pantone names (PROCESS CYAN C, REFLEX BLUE C, COOL GRAY 1 C...)
    that are not part of the numbered swatch set
 2. names carrying a date suffix ("113C - 6-2023") that hid the match

Records that already have a hex are left alone.
"""

import logging
from pathlib import Path
from typing import Dict

from pmsfinder.data.color_resolution import STEP_SPECIALTY, resolve_by_name_with_step
from pmsfinder.infrastructure.logging_setup import make_log
from pmsfinder.state.progress import read_json_list, write_json_atomic

logger = logging.getLogger(__name__)


def patch_records(records, name_index: Dict[str, str]) -> Dict:
    """Patch ``records`` in place and return the counts."""
    stats = {"resolved": 0, "by_specialty": 0, "by_date_strip": 0, "null_before": 0, "null_after": 0}
    stats["null_before"] = sum(1 for r in records if isinstance(r, dict) and r.get("hex") is None)

    for record in records:
        if not isinstance(record, dict) or record.get("hex") is not None:
            continue
        hex_value, step = resolve_by_name_with_step(record.get("name"), name_index)
        if not hex_value:
            continue
        record["hex"] = hex_value
        stats["resolved"] += 1
        if step == STEP_SPECIALTY:
            stats["by_specialty"] += 1
        else:
            stats["by_date_strip"] += 1

    stats["null_after"] = sum(1 for r in records if isinstance(r, dict) and r.get("hex") is None)
    return stats


def patch_file(path: Path, name_index: Dict[str, str], log_callback=None) -> Dict:
    """
    Re-resolve null hex values in a scraped formula file and rewrite it.

    Returns:
        dict: {"resolved", "by_specialty", "by_date_strip", "null_before", "null_after"}

    Raises:
        FileNotFoundError: If the file does not exist
    """
    log = make_log(logger, log_callback)
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{path} not found")

    records = read_json_list(path)
    log(f"Loaded {len(records)} formulas from {path.name}", "info")

    stats = patch_records(records, name_index)
    log(
        f"✅ Resolved {stats['resolved']} ({stats['by_specialty']} specialty, "
        f"{stats['by_date_strip']} date-suffix). Null hex: {stats['null_before']} -> {stats['null_after']}",
        "success"
    )

    write_json_atomic(path, records)
    return stats


if __name__ == "__main__":
    from pmsfinder.data.swatches import SwatchLibrary
    from pmsfinder.infrastructure import load_settings, setup_logging

    setup_logging()
    settings = load_settings()
    library = SwatchLibrary(settings.swatches_path)
    patch_file(settings.data_dir / settings.partitions["7500 Coated"]["file"], library.name_index())
