# pmsfinder/external/matsui.py
"""
Matsui formula API adapter (REST).

The API returns the same record shape the spreadsheet conversions write,
so records are mapped with the shared ``matsui_formula_to_record``.
"""
import logging
from typing import Dict, List

from .vendor_client import VendorClient, expect_object_or_list
from ..data.schemas import FormulaRecord
from ..data.sources import matsui_formula_to_record
from ..errors import MalformedUpstreamShape

logger = logging.getLogger(__name__)


class MatsuiClient:
    """Client for the Matsui colour API."""

    def __init__(self, client: VendorClient):
        self.client = client

    def get_series(self):
        return self.client.get("components/GetSeries", use_cache=True, shape_check=expect_object_or_list)

    def get_pigments(self):
        return self.client.get("components/GetPigments", use_cache=True, shape_check=expect_object_or_list)

    def get_formulas(self, series: str, query: str = "") -> List[Dict]:
        """
        Search formulas of a series. Never cached.

        Returns:
            List of raw formula dicts

        Raises:
            MalformedUpstreamShape: If the API answers with anything but a list
        """
        data = self.client.post("components/GetFormulas", {
            "formulaSeries": series,
            "formulaSearchQuery": query or "",
            "userCompany": "",
            "selectedCompany": "",
            "userEmail": "",
        })
        if not isinstance(data, list):
            logger.warning(f"Matsui GetFormulas for {series!r} returned {type(data).__name__}, not a list")
            raise MalformedUpstreamShape(f"Matsui GetFormulas returned {type(data).__name__}, expected an array")
        return data

    def get_formula_records(self, series: str, query: str = "") -> List[FormulaRecord]:
        return [
            matsui_formula_to_record(raw, series)
            for raw in self.get_formulas(series, query)
            if isinstance(raw, dict)
        ]

    def get_closest_colors(self, payload: Dict):
        return self.client.post("components/GetClosestColors", payload)
