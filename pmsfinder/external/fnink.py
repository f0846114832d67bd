# pmsfinder/external/fnink.py
"""FN-INK mixing server adapter (GraphQL over POST)."""
import logging
from typing import Dict, List

from .vendor_client import VendorClient, expect_list
from ..data.colors import normalize_hex
from ..data.schemas import FormulaComponent, FormulaRecord
from ..errors import MalformedUpstreamShape, UpstreamUnavailable

logger = logging.getLogger(__name__)

PARTITION = "FN-INK"

COLORS_QUERY = """{
  colors {
    id
    code
    name
    hex
    formula {
      multiplier
      materials {
        amount
        material {
          id
          name
          hex
        }
      }
    }
  }
}"""

MATERIALS_QUERY = """{
  materials {
    id
    name
    hex
  }
}"""


def looks_valid_graphql(data) -> None:
    """Shape check for GraphQL ``data`` blocks before caching."""
    if not isinstance(data, dict):
        raise MalformedUpstreamShape("GraphQL data is not an object")
    if "colors" in data:
        expect_list(data["colors"])
        colors = data["colors"]
        if colors and not isinstance(colors[0].get("code"), str):
            raise MalformedUpstreamShape("first color missing 'code' field")
    if "materials" in data:
        expect_list(data["materials"])


def fnink_color_to_record(raw: Dict) -> FormulaRecord:
    formula = raw.get("formula") or {}
    materials = (formula.get("materials") or []) if isinstance(formula, dict) else []
    total = sum(float(m.get("amount") or 0) for m in materials if isinstance(m, dict))

    components = []
    for item in materials:
        if not isinstance(item, dict):
            continue
        material = item.get("material") or {}
        amount = float(item.get("amount") or 0)
        components.append(FormulaComponent(
            component_code=str(material.get("id", "")),
            component_description=str(material.get("name", "")),
            percentage=round(amount / total * 100, 2) if total else 0.0,
            hex=normalize_hex(material.get("hex")),
        ))

    code = str(raw.get("code", ""))
    return FormulaRecord(
        id=str(raw.get("id") or code),
        code=code,
        description=str(raw.get("name", "")),
        partition_key=PARTITION,
        resolved_hex=normalize_hex(raw.get("hex")),
        components=components,
        source="fnink",
        extra={"formula": formula} if formula else {},
    )


def _field_list(data, name: str) -> List[Dict]:
    """
    Raises:
        MalformedUpstreamShape: If ``data.<name>`` is not an array
    """
    value = data.get(name) if isinstance(data, dict) else None
    if not isinstance(value, list):
        raise MalformedUpstreamShape(f"FN-INK {name} missing from the GraphQL answer")
    return value


class FnInkClient:
    """Client for the FN-INK GraphQL API."""

    def __init__(self, client: VendorClient):
        self.client = client

    def query(self, query: str, cache_key: str = None) -> Dict:
        """
        Run a GraphQL query and return its ``data`` block.

        Raises:
            UpstreamUnavailable: On transport failure or a GraphQL ``errors`` answer
        """
        if cache_key:
            cached = self.client.cache.get(cache_key)
            if cached is not None:
                return cached

        parsed = self.client.post("", {"query": query})
        if not isinstance(parsed, dict):
            raise UpstreamUnavailable("Invalid JSON from FN-INK API", vendor=self.client.name)
        if parsed.get("errors"):
            first = parsed["errors"][0] if isinstance(parsed["errors"], list) else {}
            message = first.get("message") if isinstance(first, dict) else None
            raise UpstreamUnavailable(message or "GraphQL error", vendor=self.client.name)

        data = parsed.get("data")
        if cache_key:
            self.client.admit(cache_key, data, looks_valid_graphql)
        return data

    def get_all_colors(self) -> List[Dict]:
        """All colours with inline formulas. Cached."""
        return _field_list(self.query(COLORS_QUERY, cache_key="fnink:colors"), "colors")

    def get_color_records(self) -> List[FormulaRecord]:
        return [fnink_color_to_record(c) for c in self.get_all_colors() if isinstance(c, dict)]

    def get_materials(self) -> List[Dict]:
        """Base materials. Cached."""
        return _field_list(self.query(MATERIALS_QUERY, cache_key="fnink:materials"), "materials")
