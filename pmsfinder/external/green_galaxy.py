# pmsfinder/external/green_galaxy.py
"""Green Galaxy Fusion API adapter (REST)."""
from typing import Dict, List
from urllib.parse import quote

from .vendor_client import VendorClient, expect_list
from ..data.colors import normalize_hex, rgb_dict_to_hex
from ..data.schemas import FormulaComponent, FormulaRecord
from ..errors import MalformedUpstreamShape

CATEGORIES = ("UD", "CD")


def normalize_category(category) -> str:
    """
    Raises:
        ValueError: If the category is not UD or CD
    """
    cat = (category or "UD").upper()
    if cat not in CATEGORIES:
        raise ValueError("Invalid category. Expected UD or CD.")
    return cat


def gg_color_to_record(raw: Dict, category: str) -> FormulaRecord:
    # r/g/b channels are authoritative; hex is only a fallback
    resolved = rgb_dict_to_hex(raw) or normalize_hex(raw.get("hex"))
    code = str(raw.get("code", ""))
    return FormulaRecord(
        id=str(raw.get("_id") or code),
        code=code,
        description=str(raw.get("name", "")),
        partition_key=category,
        resolved_hex=resolved,
        source="green_galaxy",
    )


def gg_formula_to_record(raw, code: str, category: str) -> FormulaRecord:
    """
    Map a formula answer. Unexpected payloads still give a record (no
    components) with the payload kept in ``extra``.
    """
    payload = raw
    if isinstance(payload, list):
        payload = next((item for item in payload if isinstance(item, dict)), {})
    if not isinstance(payload, dict):
        payload = {}

    items = payload.get("components") or payload.get("ingredients") or []
    components = []
    for item in items:
        if not isinstance(item, dict):
            continue
        components.append(FormulaComponent(
            component_code=str(item.get("code") or item.get("componentCode") or ""),
            component_description=str(item.get("name") or item.get("description") or ""),
            percentage=float(item.get("percentage") or item.get("percent") or 0),
            hex=normalize_hex(item.get("hex")),
            is_base=bool(item.get("isBase", False)),
        ))
    return FormulaRecord(
        id=str(payload.get("_id") or code),
        code=str(payload.get("code") or code),
        description=str(payload.get("name", "")),
        partition_key=category,
        resolved_hex=rgb_dict_to_hex(payload) or normalize_hex(payload.get("hex")),
        components=components,
        source="green_galaxy",
        extra={"raw": raw},
    )


def _expect_colors(data) -> None:
    expect_list(data, "code")


class GreenGalaxyClient:
    """Client for the Green Galaxy colour/formula API."""

    def __init__(self, client: VendorClient):
        self.client = client

    def get_colors(self, category: str) -> List[Dict]:
        """All colours of a category. Cached."""
        cat = normalize_category(category)
        return self.client.get(f"colors/{cat}", use_cache=True, shape_check=_expect_colors)

    def get_color_records(self, category: str) -> List[FormulaRecord]:
        cat = normalize_category(category)
        data = self.get_colors(cat)
        if not isinstance(data, list):
            raise MalformedUpstreamShape(
                f"GG Fusion colours for {cat} returned {type(data).__name__}, expected an array"
            )
        return [gg_color_to_record(c, cat) for c in data if isinstance(c, dict)]

    def get_formula(self, code: str, category: str):
        """Formula for one colour code. Never cached: too many codes for the hit rate."""
        cat = normalize_category(category)
        return self.client.get(f"formulas/{quote(code, safe='')}/{cat}")
