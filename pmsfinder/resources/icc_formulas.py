"""
ICC UltraMix Formula Downloader

Downloads the formulas of one UltraMix family (7500 Coated by default)
into a local JSON catalog file.

Step 1: Open the first formula page and collect every formula ID from the
 formula <select> dropdown.
Step 2: For each ID, fetch /families/{family}/formulas/{id} and extract
 the embedded formula JSON. When no known embedding is found, fall back to
 reading the lines from the page's table rows.
Step 3: Resolve each formula name to a hex value against the Pantone
 reference index (null when it cannot be resolved).

The process is resumable: IDs already present in the output file are
skipped. Requests are spaced by a fixed delay and the output file is
rewritten in full every CHECKPOINT_INTERVAL processed formulas.
"""

import json
import logging
import re
import time
from pathlib import Path
from typing import Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from pmsfinder.data.color_resolution import resolve_by_name
from pmsfinder.infrastructure.logging_setup import make_log
from pmsfinder.infrastructure.settings import ICC_BASE_URL
from pmsfinder.state.progress import ScrapeProgress

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------
FAMILY_ID = 7
FAMILY_NAME = "7500 Coated"
FORMULA_URL = "{base}/families/{family}/formulas/{id}"
USER_AGENT = "Mozilla/5.0 (compatible; pmsfinder-seed/1.0)"
HEADERS = {"User-Agent": USER_AGENT}
REQUEST_TIMEOUT = 15
DELAY = 0.1
CHECKPOINT_INTERVAL = 50

EMBEDDED_PATTERNS = [
    re.compile(r"ultramix\.formulas\.current\((\{.*?\})\)", re.S),
    re.compile(r"formulaData\s*=\s*(\{.*?\});", re.S),
    re.compile(r"var\s+formula\s*=\s*(\{.*?\});", re.S),
]
TRAILING_COMMA_OBJ_RE = re.compile(r",\s*}")
TRAILING_COMMA_LIST_RE = re.compile(r",\s*]")
LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


# ---------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------
def parse_float(value) -> float:
    """Leading number of a value ("12.5 %" -> 12.5); 0 when there is none."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = LEADING_FLOAT_RE.match(str(value or ""))
    return float(match.group(1)) if match else 0.0


def relaxed_json(text: str):
    """Parse near-JSON: single quotes and trailing commas are tolerated."""
    cleaned = text.replace("'", '"')
    cleaned = TRAILING_COMMA_OBJ_RE.sub("}", cleaned)
    cleaned = TRAILING_COMMA_LIST_RE.sub("]", cleaned)
    return json.loads(cleaned)


def discover_formula_ids(html: str) -> List[int]:
    """Positive numeric <option> values, de-duplicated and sorted."""
    soup = BeautifulSoup(html, "html.parser")
    ids = set()
    for option in soup.find_all("option"):
        value = str(option.get("value", "")).strip()
        if value.isdigit() and int(value) > 0:
            ids.add(int(value))
    return sorted(ids)


def extract_from_table(html: str, formula_id) -> Dict:
    soup = BeautifulSoup(html, "html.parser")

    heading = soup.find(["h1", "h2", "h3", "h4"])
    name = heading.get_text(" ", strip=True) if heading else ""
    if not name:
        name = f"Formula {formula_id}"

    lines = []
    for row in soup.find_all("tr"):
        cells = [td.get_text(strip=True) for td in row.find_all("td")]
        if len(cells) < 3:
            continue
        percent = parse_float(cells[2]) or parse_float(cells[1])
        if percent <= 0:
            continue
        lines.append({
            "part_number": cells[0],
            "name": cells[1] or cells[0],
            "percent": percent,
            "weight": parse_float(cells[3]) if len(cells) > 3 else 0.0,
            "category": cells[4] if len(cells) > 4 else "",
            "density": parse_float(cells[5]) if len(cells) > 5 else 0.0,
        })

    return {"name": name, "lines": lines}


def extract_formula_data(html: str, formula_id) -> Dict:
    """
    Formula data from a detail page.

    Known embedded-JSON patterns are tried in order, each with a relaxed
    re-parse; the table fallback is used when none of them yields JSON.
    """
    for pattern in EMBEDDED_PATTERNS:
        match = pattern.search(html)
        if not match:
            continue
        try:
            parsed = json.loads(match.group(1))
        except json.JSONDecodeError:
            try:
                parsed = relaxed_json(match.group(1))
            except json.JSONDecodeError:
                continue
        if isinstance(parsed, dict):
            return parsed

    return extract_from_table(html, formula_id)


def normalize_line(line: Dict) -> Dict:
    return {
        "part_number": str(line.get("part_number") or line.get("partNumber") or ""),
        "name": str(line.get("name") or line.get("component_name") or ""),
        "percent": parse_float(line.get("percent") or line.get("percentage") or 0),
        "weight": parse_float(line.get("weight") or line.get("grams") or 0),
        "category": str(line.get("category") or line.get("type") or ""),
        "density": parse_float(line.get("density") or 0),
    }


def build_record(formula_id, data: Dict, family_name: str, name_index: Dict[str, str]) -> Dict:
    """
    Raises:
        ValueError: If the formula lines are not a list
    """
    name = str(data.get("name") or data.get("formula_name") or f"Formula {formula_id}")
    lines = data.get("lines") or data.get("formula_lines") or []
    if not isinstance(lines, list):
        raise ValueError(f"unexpected lines value of type {type(lines).__name__}")
    return {
        "id": str(formula_id),
        "code": name,
        "name": name,
        "hex": resolve_by_name(name, name_index),
        "family": family_name,
        "lines": [normalize_line(line) for line in lines if isinstance(line, dict)],
    }


def fetch_html(session: requests.Session, url: str, timeout: float = REQUEST_TIMEOUT) -> str:
    """
    Raises:
        requests.RequestException: On network errors and non-2xx statuses
    """
    response = session.get(url, headers=HEADERS, timeout=timeout)
    response.raise_for_status()
    return response.text


# ---------------------------------------------------------------------
# Seeding (resumable)
# ---------------------------------------------------------------------
def seed_family(
    output_file: Path,
    name_index: Optional[Dict[str, str]] = None,
    session: Optional[requests.Session] = None,
    base_url: str = ICC_BASE_URL,
    family_id: int = FAMILY_ID,
    family_name: str = FAMILY_NAME,
    delay: float = DELAY,
    checkpoint_interval: int = CHECKPOINT_INTERVAL,
    verify: bool = True,
    sleep=time.sleep,
    log_callback=None,
    stop_flag_callback=None,
    stats_callback=None,
) -> Dict:
    """
    Download every formula of a family into ``output_file``.

    Args:
        output_file: JSON file to resume from and write to
        name_index: Reference name index used to resolve formula hex values
        session: Optional requests session
        base_url: Site root
        family_id: Numeric family ID used in the URLs
        family_name: Family label written to every record
        delay: Seconds to wait between formula requests
        checkpoint_interval: Rewrite the output file after this many processed formulas
        verify: Whether to verify TLS certificates
        sleep: Sleep function (tests pass a no-op)
        log_callback: Optional callback function(message, status) for logging
        stop_flag_callback: Optional callback function() that returns True if should stop
        stats_callback: Optional callback function(stats) to update stats in real-time

    Returns:
        dict: {"ids_found", "fetched", "skipped", "errors", "pending", "total", "stopped"}
    """
    log = make_log(logger, log_callback)
    name_index = name_index or {}
    base_url = base_url.rstrip("/")
    if session is None:
        session = requests.Session()
        session.verify = verify

    progress = ScrapeProgress(output_file, checkpoint_interval)
    existing = progress.load_existing()
    if existing:
        log(f"🔄 Resuming: {existing} formulas already downloaded", "info")

    stats = {"ids_found": 0, "stopped": False}

    def update_stats():
        stats.update(progress.stats())
        if stats_callback:
            stats_callback(dict(stats))

    log("🌐 Discovering formula IDs from dropdown...", "info")
    try:
        first_page = fetch_html(session, FORMULA_URL.format(base=base_url, family=family_id, id=1))
    except requests.RequestException as e:
        log(f"❌ Could not load the formula list: {e}", "error")
        update_stats()
        return stats

    formula_ids = discover_formula_ids(first_page)
    stats["ids_found"] = len(formula_ids)
    if not formula_ids:
        log("❌ No formula IDs found. The page format may have changed.", "error")
        update_stats()
        return stats
    log(f"📋 Found {len(formula_ids)} formula IDs", "info")

    pending = progress.plan(formula_ids)
    update_stats()

    for formula_id in pending:
        if stop_flag_callback and stop_flag_callback():
            log("⏹️ Seeding stopped by user", "warning")
            stats["stopped"] = True
            break

        url = FORMULA_URL.format(base=base_url, family=family_id, id=formula_id)
        try:
            html = fetch_html(session, url)
            data = extract_formula_data(html, formula_id)
            progress.mark_done(formula_id, build_record(formula_id, data, family_name, name_index))
        except requests.RequestException as e:
            progress.mark_error(formula_id)
            log(f"⚠️ Error fetching formula {formula_id}: {e}", "error")
        except (TypeError, ValueError, AttributeError) as e:
            progress.mark_error(formula_id)
            log(f"⚠️ Could not parse formula {formula_id}: {e}", "error")

        if progress.should_checkpoint():
            progress.save()
            log(
                f"💾 Progress: {progress.fetched} fetched, {progress.skipped} skipped, "
                f"{progress.errors} errors / {len(formula_ids)} total",
                "info"
            )
        update_stats()

        if delay:
            sleep(delay)

    progress.save()
    update_stats()
    log(
        f"✅ Done! {len(progress.records)} total formulas saved to {Path(output_file).name} "
        f"(fetched {progress.fetched}, skipped {progress.skipped}, errors {progress.errors})",
        "success"
    )
    return stats


if __name__ == "__main__":
    import sys

    from pmsfinder.data.swatches import SwatchLibrary
    from pmsfinder.infrastructure import load_settings, setup_logging

    setup_logging()
    settings = load_settings()
    library = SwatchLibrary(settings.swatches_path)
    result = seed_family(
        settings.data_dir / settings.partitions[FAMILY_NAME]["file"],
        name_index=library.name_index(),
        base_url=settings.icc_base_url,
        delay=settings.scrape_delay,
        checkpoint_interval=settings.checkpoint_interval,
        verify=settings.verify_tls,
    )
    sys.exit(0 if result["ids_found"] else 1)
