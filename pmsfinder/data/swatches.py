# pmsfinder/data/swatches.py
"""
Reference swatch library (Pantone coated / uncoated).

Loaded once from ``pantone_swatches.json``; when the file is missing or
unreadable a small built-in stub set is used instead and ``mode`` is
reported as "stub".
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .color_resolution import build_name_index
from .colors import normalize_hex
from .matching import match
from .schemas import ReferenceSwatch, ReferenceSwatchRecord, ScoredMatch, validate_records

logger = logging.getLogger(__name__)

VALID_SERIES = ("C", "U", "BOTH")

STUB_SWATCHES = [
    {"pms": "Yellow", "series": "C", "hex": "#FEDD00", "name": "PMS Yellow C", "notes": "stub"},
    {"pms": "021", "series": "C", "hex": "#FE5000", "name": "PMS Orange 021 C", "notes": "stub"},
    {"pms": "185", "series": "C", "hex": "#E4002B", "name": "PMS 185 C", "notes": "stub"},
    {"pms": "286", "series": "C", "hex": "#0033A0", "name": "PMS 286 C", "notes": "stub"},
    {"pms": "354", "series": "C", "hex": "#00B140", "name": "PMS 354 C", "notes": "stub"},
    {"pms": "Black", "series": "C", "hex": "#2D2926", "name": "PMS Black C", "notes": "stub"},
    {"pms": "185", "series": "U", "hex": "#F5333F", "name": "PMS 185 U", "notes": "stub"},
    {"pms": "286", "series": "U", "hex": "#0038A8", "name": "PMS 286 U", "notes": "stub"},
]


def swatch_from_record(record: dict) -> Optional[ReferenceSwatch]:
    hex_value = normalize_hex(record.get("hex"))
    if hex_value is None:
        return None
    return ReferenceSwatch(
        code=str(record.get("pms", "")),
        series=str(record.get("series", "")),
        hex=hex_value,
        display_name=record.get("name") or "",
        notes=record.get("notes") or "",
    )


class SwatchLibrary:
    """Read-only reference swatches, populated on first use."""

    def __init__(self, swatches_path: Path):
        self.swatches_path = Path(swatches_path)
        self.mode = "stub"
        self._swatches: Optional[List[ReferenceSwatch]] = None
        self._name_index: Optional[Dict[str, str]] = None

    def _read_records(self) -> List[dict]:
        if self.swatches_path.exists():
            try:
                with open(self.swatches_path, 'r', encoding='utf-8') as f:
                    records = json.load(f)
                if not isinstance(records, list):
                    raise ValueError("expected a JSON array")
                self.mode = "live"
                logger.info(f"Loaded {len(records)} swatches from {self.swatches_path}")
                return records
            except (json.JSONDecodeError, OSError, ValueError) as e:
                logger.error(f"Failed to load {self.swatches_path.name}, falling back to stubs: {e}")

        self.mode = "stub"
        logger.info(f"Using {len(STUB_SWATCHES)} stub swatches (no {self.swatches_path.name} found)")
        return list(STUB_SWATCHES)

    def load(self) -> List[ReferenceSwatch]:
        if self._swatches is not None:
            return self._swatches

        records = self._read_records()
        result = validate_records(records, ReferenceSwatchRecord, "Pantone Swatches")
        if result.invalid:
            logger.warning(f"{result.invalid}/{result.total} swatches failed validation")

        swatches = []
        for record in records:
            if isinstance(record, dict):
                swatch = swatch_from_record(record)
                if swatch:
                    swatches.append(swatch)

        duplicates = find_duplicate_keys(swatches)
        if duplicates:
            logger.warning(f"{len(duplicates)} duplicate code+series swatch entries, e.g. {duplicates[:5]}")

        self._swatches = swatches
        return swatches

    def all(self) -> List[ReferenceSwatch]:
        return list(self.load())

    def match(self, target_hex: str, series: str = "BOTH", limit: int = 10) -> List[ScoredMatch]:
        """
        Closest swatches to a colour.

        Raises:
            ValueError: If series is not C, U or BOTH
        """
        series = (series or "BOTH").upper()
        if series not in VALID_SERIES:
            raise ValueError(f"Invalid series. Expected one of: {', '.join(VALID_SERIES)}")
        pool = self.load()
        if series != "BOTH":
            pool = [s for s in pool if s.series == series]
        return match(target_hex, pool, limit)

    def name_index(self) -> Dict[str, str]:
        if self._name_index is None:
            self._name_index = build_name_index(self.load())
        return self._name_index

    def code_index(self) -> Dict[str, str]:
        """Lowercase PMS code -> bare "RRGGBB" (used for formula-code cross-reference)."""
        index = {}
        for swatch in self.load():
            index[swatch.code.lower()] = swatch.hex.lstrip("#")
        return index


def find_duplicate_keys(swatches) -> List[str]:
    seen = set()
    duplicates = []
    for swatch in swatches:
        if isinstance(swatch, dict):
            key = (swatch.get("pms"), swatch.get("series"))
        else:
            key = swatch.key
        if key in seen:
            duplicates.append(f"{key[0]}-{key[1]}")
        else:
            seen.add(key)
    return duplicates
