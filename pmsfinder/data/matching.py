# pmsfinder/data/matching.py
"""
Closest-colour ranking over an in-memory candidate pool.

Stateless: the pool is an input, nothing is written during a match, so
concurrent matches over the same pool are safe.
"""
from typing import Iterable, List, Optional

from .colors import hex_to_rgb, normalize_hex, rgb_distance
from .schemas import FormulaRecord, ReferenceSwatch, ScoredMatch
from .sources import spreadsheet_hex
from ..errors import InvalidHexError

DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 50


def comparison_hex(candidate) -> Optional[str]:
    """
    Colour a candidate is ranked by, or None to leave it out.

    Spreadsheet-shaped dicts whose swatch colour is the neutral blend
    fallback have no colour: the blend had zero usable signal. For every
    other candidate "#888888" is an ordinary grey.
    """
    if isinstance(candidate, FormulaRecord):
        return normalize_hex(candidate.resolved_hex)
    if isinstance(candidate, ReferenceSwatch):
        return normalize_hex(candidate.hex)
    if isinstance(candidate, dict):
        if "formulaSwatchColor" in candidate or "formulaColor" in candidate:
            return spreadsheet_hex(candidate)
        return normalize_hex(candidate.get("resolvedHex") or candidate.get("hex"))
    return normalize_hex(getattr(candidate, "hex", None))


def match(target_hex: str, pool: Iterable, limit: int) -> List[ScoredMatch]:
    """
    Rank candidates by Euclidean RGB distance to a target colour.

    Distances are rounded to 2 decimals; ties keep input order. ``limit``
    is used as given - clamp it with ``clamp_limit`` before calling.

    Raises:
        InvalidHexError: If target_hex is not a 6-digit hex
    """
    target = normalize_hex(target_hex)
    if target is None:
        raise InvalidHexError("Invalid hex format. Expected #RRGGBB or RRGGBB.")
    target_rgb = hex_to_rgb(target)

    scored = []
    for candidate in pool:
        hex_value = comparison_hex(candidate)
        if hex_value is None:
            continue
        distance = round(rgb_distance(target_rgb, hex_to_rgb(hex_value)), 2)
        scored.append(ScoredMatch(candidate=candidate, hex=hex_value, distance=distance))

    # list.sort is stable
    scored.sort(key=lambda m: m.distance)
    return scored[:limit]


def clamp_limit(raw, minimum: int = MIN_LIMIT, maximum: int = MAX_LIMIT, default: int = DEFAULT_LIMIT) -> int:
    """Parse a user-supplied limit; junk or too-small values give the default."""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return default
    if limit < minimum:
        return default
    return min(limit, maximum)
