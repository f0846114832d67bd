# pmsfinder/data/color_resolution.py
"""
Name -> hex resolution for formulas whose source gives only a colour name.

The lookup is an ordered chain of small step functions. Each step takes
the name and the reference index and returns a hex or None; the first hit
wins. Nothing here guesses a "close enough" colour: when every step
fails the result is None and the record stays unresolved.
"""
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .colors import normalize_hex

# Pantone specials that are not part of the numbered swatch set
SPECIALTY_HEX = {
    "BLACK C": "#2D2926",
    "BLACK 2 C": "#332F21",
    "BLACK 3 C": "#212721",
    "BLACK 4 C": "#31261D",
    "BLACK 5 C": "#3E3D2D",
    "BLACK 6 C": "#101820",
    "BLACK 7 C": "#3D3935",
    "BLUE 072 C": "#0018A8",
    "BRIGHT RED C": "#F93822",
    "COOL GRAY 1 C": "#D9D9D6",
    "COOL GRAY 2 C": "#D0D0CE",
    "COOL GRAY 3 C": "#C8C9C7",
    "COOL GRAY 4 C": "#BBBCBC",
    "COOL GRAY 5 C": "#B1B3B3",
    "COOL GRAY 6 C": "#A7A8AA",
    "COOL GRAY 7 C": "#97999B",
    "COOL GRAY 8 C": "#888B8D",
    "COOL GRAY 9 C": "#75787B",
    "COOL GRAY 10 C": "#63666A",
    "COOL GRAY 11 C": "#53565A",
    "DARK BLUE C": "#00239C",
    "GREEN C": "#00AB84",
    "MEDIUM PURPLE C": "#4E008E",
    "ORANGE 021 C": "#FE5000",
    "PINK C": "#D62598",
    "PROCESS BLACK C": "#2D2926",
    "PROCESS BLUE C": "#0085CA",
    "PROCESS CYAN C": "#009FE3",
    "PROCESS MAGENTA C": "#D6006E",
    "PROCESS YELLOW C": "#FFD500",
    "PURPLE C": "#BB29BB",
    "RED 032 C": "#EF3340",
    "REFLEX BLUE C": "#001489",
    "RHODAMINE RED C": "#E10098",
    "RUBINE RED C": "#CE0058",
    "VIOLET C": "#440099",
    "VIOLET V2 C": "#440099",
    "WARM GRAY 1 C": "#D7D2CB",
    "WARM GRAY 2 C": "#CBC4BC",
    "WARM GRAY 3 C": "#BFB8AF",
    "WARM GRAY 4 C": "#B6ADA5",
    "WARM GRAY 5 C": "#ACA39A",
    "WARM GRAY 6 C": "#A59C94",
    "WARM GRAY 7 C": "#968C83",
    "WARM GRAY 8 C": "#8C8279",
    "WARM GRAY 9 C": "#83786F",
    "WARM GRAY 10 C": "#796E65",
    "WARM GRAY 10C": "#796E65",
    "WARM GRAY 11 C": "#6D6662",
    "WARM RED C": "#F9423A",
    "YELLOW C": "#FEDD00",
    "YELLOW 012 C": "#FFD700",
    "YELLOW PY12 C": "#FFD700",
}

# "113C - 6-2023", "282C - 8-2-24", "152C 10-29-24"
DATE_SUFFIX_RE = re.compile(r"\s*-?\s*\d{1,2}-\d{1,2}-?\d{2,4}$")
CODE_SERIES_RE = re.compile(r"(\d)([CU])$")
NAME_PREFIX_RE = re.compile(r"^(PMS|PANTONE)\s*")

STEP_SPECIALTY = "specialty"
STEP_REFERENCE = "reference"
STEP_COATED_SUFFIX = "coated_suffix"


def build_name_index(swatches: Iterable) -> Dict[str, str]:
    """
    Build the uppercase name -> "#RRGGBB" index used by ``resolve_by_name``.

    Accepts ReferenceSwatch objects or raw swatch dicts. Each swatch is
    stored under its display name (or code) and under the same key with
    any "PMS "/"PANTONE " prefix removed.
    """
    index = {}
    for swatch in swatches:
        if isinstance(swatch, dict):
            name, code, hex_value = swatch.get("name"), swatch.get("pms"), swatch.get("hex")
        else:
            name, code, hex_value = swatch.display_name, swatch.code, swatch.hex
        hex_value = normalize_hex(hex_value)
        key = str(name or code or "").upper().strip()
        if not key or not hex_value:
            continue
        index[key] = hex_value
        short = NAME_PREFIX_RE.sub("", key)
        if short:
            index[short] = hex_value
    return index


def clean_name(name: str) -> str:
    """Uppercase, drop a trailing date suffix and space out "<digits><C|U>"."""
    upper = name.upper().strip()
    upper = DATE_SUFFIX_RE.sub("", upper)
    return CODE_SERIES_RE.sub(r"\1 \2", upper)


def _lookup_variants(key: str, index: Dict[str, str]) -> Optional[str]:
    for candidate in (key, f"PMS {key}", f"PANTONE {key}"):
        if candidate in index:
            return index[candidate]
    return None


def from_specialty_table(name: str, index: Dict[str, str]) -> Optional[str]:
    return SPECIALTY_HEX.get(name.upper().strip())


def from_reference_index(name: str, index: Dict[str, str]) -> Optional[str]:
    return _lookup_variants(clean_name(name), index)


def from_coated_suffix(name: str, index: Dict[str, str]) -> Optional[str]:
    cleaned = clean_name(name)
    if cleaned.endswith(" C"):
        return None
    with_c = f"{cleaned} C"
    for candidate in (with_c, f"PMS {with_c}"):
        if candidate in index:
            return index[candidate]
    return None


RESOLUTION_CHAIN: List[Tuple[str, Callable[[str, Dict[str, str]], Optional[str]]]] = [
    (STEP_SPECIALTY, from_specialty_table),
    (STEP_REFERENCE, from_reference_index),
    (STEP_COATED_SUFFIX, from_coated_suffix),
]


def resolve_by_name_with_step(name, index: Dict[str, str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Run the resolution chain and report which step produced the colour.

    Returns:
        (hex, step name) or (None, None)
    """
    if not name or not str(name).strip():
        return None, None
    for step, resolver in RESOLUTION_CHAIN:
        hex_value = resolver(str(name), index)
        if hex_value:
            return normalize_hex(hex_value), step
    return None, None


def resolve_by_name(name, index: Dict[str, str]) -> Optional[str]:
    return resolve_by_name_with_step(name, index)[0]
