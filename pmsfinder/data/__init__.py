# pmsfinder/data/__init__.py
"""
Data processing and management module.

Handles record schemas and validation, colour maths and name resolution,
the reference swatch library, the local formula catalog, closest-colour
matching and data integrity checks.
"""

from .colors import normalize_hex, hex_to_rgb, rgb_to_hex, rgb_distance, blend, NEUTRAL_FALLBACK_HEX
from .schemas import (
    FormulaComponent,
    FormulaRecord,
    ReferenceSwatch,
    ScoredMatch,
    ValidationResult,
    validate_records
)
from .color_resolution import build_name_index, resolve_by_name, SPECIALTY_HEX
from .matching import match, clamp_limit
from .swatches import SwatchLibrary
from .catalog import LocalCatalogStore

__all__ = [
    'normalize_hex',
    'hex_to_rgb',
    'rgb_to_hex',
    'rgb_distance',
    'blend',
    'NEUTRAL_FALLBACK_HEX',
    'FormulaComponent',
    'FormulaRecord',
    'ReferenceSwatch',
    'ScoredMatch',
    'ValidationResult',
    'validate_records',
    'build_name_index',
    'resolve_by_name',
    'SPECIALTY_HEX',
    'match',
    'clamp_limit',
    'SwatchLibrary',
    'LocalCatalogStore',
]
