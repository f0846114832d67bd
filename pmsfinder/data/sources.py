# pmsfinder/data/sources.py
"""
Local record kinds.

Each kind bundles the schema its files are validated against, the adapter
that maps a raw record to a FormulaRecord and the percentage-sum
tolerance used by the integrity checks.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Type

from pydantic import BaseModel

from .colors import NEUTRAL_FALLBACK_HEX, normalize_hex
from .schemas import FormulaComponent, FormulaRecord, ScrapedFormula, SpreadsheetFormula


def _as_number(value) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def scraped_formula_to_record(raw: Dict, partition_key: Optional[str] = None) -> FormulaRecord:
    components = []
    for line in raw.get("lines") or []:
        if not isinstance(line, dict):
            continue
        components.append(FormulaComponent(
            component_code=str(line.get("part_number", "")),
            component_description=str(line.get("name", "")),
            percentage=_as_number(line.get("percent")),
        ))
    code = str(raw.get("code", ""))
    return FormulaRecord(
        id=str(raw.get("id") or code),
        code=code,
        description=str(raw.get("name", "")),
        partition_key=partition_key or str(raw.get("family", "")),
        resolved_hex=normalize_hex(raw.get("hex")),
        components=components,
        source="icc",
    )


def spreadsheet_hex(raw: Dict) -> Optional[str]:
    """Swatch colour of a spreadsheet / Matsui record, None for the blend fallback."""
    swatch = raw.get("formulaSwatchColor") or {}
    swatch_color = swatch.get("formulaColor") if isinstance(swatch, dict) else None
    hex_value = normalize_hex(swatch_color) or normalize_hex(raw.get("formulaColor"))
    if hex_value == NEUTRAL_FALLBACK_HEX:
        return None
    return hex_value


def matsui_formula_to_record(raw: Dict, partition_key: Optional[str] = None) -> FormulaRecord:
    """Spreadsheet conversions and the Matsui API share this record shape."""
    components = []
    for comp in raw.get("components") or []:
        if not isinstance(comp, dict):
            continue
        components.append(FormulaComponent(
            component_code=str(comp.get("componentCode", "")),
            component_description=str(comp.get("componentDescription", "")),
            percentage=_as_number(comp.get("percentage")),
            hex=normalize_hex(comp.get("hex")),
            is_base=bool(comp.get("isBase", False)),
        ))

    code = str(raw.get("formulaCode", ""))
    return FormulaRecord(
        id=str(raw.get("_id") or code),
        code=code,
        description=str(raw.get("formulaDescription", "")),
        partition_key=partition_key or str(raw.get("formulaSeries", "")),
        resolved_hex=spreadsheet_hex(raw),
        components=components,
        source="matsui",
    )


@dataclass(frozen=True)
class RecordKind:
    name: str
    schema: Type[BaseModel]
    to_record: Callable[..., FormulaRecord]
    # +/- band around 100% for the component percentage sum
    tolerance: float
    id_key: str
    items_key: str
    percent_key: str


SCRAPED = RecordKind(
    name="scraped",
    schema=ScrapedFormula,
    to_record=scraped_formula_to_record,
    tolerance=1.0,
    id_key="code",
    items_key="lines",
    percent_key="percent",
)

SPREADSHEET = RecordKind(
    name="spreadsheet",
    schema=SpreadsheetFormula,
    to_record=matsui_formula_to_record,
    tolerance=5.0,
    id_key="formulaCode",
    items_key="components",
    percent_key="percentage",
)

RECORD_KINDS = {kind.name: kind for kind in (SCRAPED, SPREADSHEET)}


def get_kind(name: str) -> RecordKind:
    """
    Raises:
        ValueError: For an unknown kind name
    """
    try:
        return RECORD_KINDS[name]
    except KeyError:
        raise ValueError(f"Unknown record kind: {name!r}. Expected one of: {', '.join(RECORD_KINDS)}")


def raw_percentage_sum(raw: Dict, kind: RecordKind) -> float:
    """Sum of the component percentages of a raw record; non-numeric values count as 0."""
    items = raw.get(kind.items_key) or []
    if not isinstance(items, list):
        return 0.0
    return sum(_as_number(item.get(kind.percent_key)) for item in items if isinstance(item, dict))
