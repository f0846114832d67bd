"""
External API integration module.

One adapter per vendor colour API, all sharing the VendorClient transport
and a process-wide ResponseCache.
"""

from .cache import ResponseCache
from .vendor_client import VendorClient, expect_list, expect_object_or_list
from .matsui import MatsuiClient, matsui_formula_to_record
from .green_galaxy import GreenGalaxyClient, gg_color_to_record, gg_formula_to_record
from .fnink import FnInkClient, fnink_color_to_record

__all__ = [
    'ResponseCache',
    'VendorClient',
    'expect_list',
    'expect_object_or_list',
    'MatsuiClient',
    'matsui_formula_to_record',
    'GreenGalaxyClient',
    'gg_color_to_record',
    'gg_formula_to_record',
    'FnInkClient',
    'fnink_color_to_record',
]
