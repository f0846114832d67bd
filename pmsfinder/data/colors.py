# pmsfinder/data/colors.py
"""
Colour utilities: hex parsing, RGB distance and component blending.

Every source reports sRGB hex and candidates are ranked by plain
Euclidean distance in that space.
"""
import math
import re
from typing import Dict, Iterable, Optional, Tuple

HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{6})$")
UI_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")

# Returned by blend() when no component carries a usable colour.
NEUTRAL_FALLBACK_HEX = "#888888"


def normalize_hex(value) -> Optional[str]:
    """
    Normalize to "#RRGGBB".

    Exactly six hex digits are required once surrounding whitespace and an
    optional leading "#" are removed. The 3-digit shorthand is rejected
    here even though the UI accepts it (see ``is_ui_hex``).

    Returns:
        Uppercase "#RRGGBB", or None when the input is not a 6-digit hex
    """
    if value is None:
        return None
    match = HEX_RE.match(str(value).strip())
    if not match:
        return None
    return f"#{match.group(1).upper()}"


def is_ui_hex(value) -> bool:
    """
    The presentation layer's looser check (3 or 6 digits).

    Kept only to document the difference; core code always goes through
    ``normalize_hex``, so "#FFF" is valid input for the UI but is rejected
    by every core operation.
    """
    if value is None:
        return False
    return bool(UI_HEX_RE.match(str(value).strip()))


def hex_to_rgb(hex_value: str) -> Tuple[int, int, int]:
    """ "#RRGGBB" or "RRGGBB" -> (r, g, b) ints in 0-255 """
    h = hex_value.strip().lstrip('#')
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def rgb_to_hex(rgb: Iterable[float]) -> str:
    # half-up rounding: 126.5 -> 127
    r, g, b = (max(0, min(255, math.floor(c + 0.5))) for c in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def rgb_distance(a: Tuple[int, int, int], b: Tuple[int, int, int]) -> float:
    """Euclidean RGB distance (0 - ~441.67)."""
    return math.sqrt(
        (a[0] - b[0]) ** 2 +
        (a[1] - b[1]) ** 2 +
        (a[2] - b[2]) ** 2
    )


def _component_value(component, key):
    if isinstance(component, dict):
        return component.get(key)
    return getattr(component, key, None)


def blend(components) -> str:
    """
    Percentage-weighted average colour of a list of components.

    Each component is a dict (or object) with ``hex`` and ``percentage``.
    Components whose hex has fewer than six hex digits are ignored. When
    the usable weight adds up to zero the neutral fallback grey is returned.

    Returns:
        "#RRGGBB"
    """
    r = g = b = 0.0
    total = 0.0
    for component in components:
        raw_hex = _component_value(component, "hex")
        if not raw_hex:
            continue
        digits = str(raw_hex).strip().lstrip("#")
        if len(digits) < 6:
            continue
        hex_value = normalize_hex(digits[:6])
        if not hex_value:
            continue
        pct = float(_component_value(component, "percentage") or 0)
        cr, cg, cb = hex_to_rgb(hex_value)
        r += cr * pct
        g += cg * pct
        b += cb * pct
        total += pct

    if total == 0:
        return NEUTRAL_FALLBACK_HEX

    return rgb_to_hex((r / total, g / total, b / total))


def rgb_dict_to_hex(color: Dict) -> Optional[str]:
    """Build "#RRGGBB" from a dict with r/g/b keys, None if any channel is missing."""
    try:
        return rgb_to_hex((float(color["r"]), float(color["g"]), float(color["b"])))
    except (KeyError, TypeError, ValueError):
        return None
