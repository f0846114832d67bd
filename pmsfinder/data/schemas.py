"""
Record schemas and validation.

Three on-disk record families are checked with Pydantic models:

- ``ScrapedFormula``: formulas scraped from the mixing site (``lines``)
- ``SpreadsheetFormula``: formulas converted from vendor spreadsheet exports
- ``ReferenceSwatchRecord``: the Pantone reference swatch list

Everything downstream of a source adapter works with the canonical
dataclasses defined at the bottom of this module (``FormulaRecord`` etc.),
so matching code never sees vendor field names.
"""

from dataclasses import asdict, dataclass, field
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

HEX_PATTERN = r"^#[0-9A-Fa-f]{6}$"
BARE_HEX_OR_EMPTY_PATTERN = r"^([0-9A-Fa-f]{6})?$"

MAX_STORED_ERRORS = 20
MAX_ISSUES_PER_RECORD = 10

HexStr = Annotated[str, StringConstraints(pattern=HEX_PATTERN)]


# ---------------------------------------------------------------------
# Scraped formulas (mixing site)
# ---------------------------------------------------------------------
class ScrapedFormulaLine(BaseModel):
    part_number: str
    name: str
    percent: float = Field(..., ge=0, strict=True)
    weight: float = Field(..., strict=True)
    category: str
    density: float = Field(..., strict=True)


class ScrapedFormula(BaseModel):
    id: str
    code: str
    name: str
    hex: Optional[HexStr]
    family: str
    lines: List[ScrapedFormulaLine] = Field(..., min_length=1)


# ---------------------------------------------------------------------
# Spreadsheet formulas (vendor Excel exports)
# ---------------------------------------------------------------------
class SpreadsheetComponent(BaseModel):
    componentCode: str
    componentDescription: str
    percentage: float = Field(..., ge=0, strict=True)
    # Unknown component colours are stored as "" rather than null
    hex: str = Field(..., pattern=BARE_HEX_OR_EMPTY_PATTERN)
    isBase: bool = Field(..., strict=True)


class SpreadsheetSwatchColor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    formulaCode: str
    formulaColor: str


class SpreadsheetFormula(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    formulaCode: str
    formulaDescription: str
    formulaSeries: str
    formulaColor: str
    formulaSwatchColor: SpreadsheetSwatchColor
    components: List[SpreadsheetComponent] = Field(..., min_length=1)


# ---------------------------------------------------------------------
# Reference swatches
# ---------------------------------------------------------------------
class ReferenceSwatchRecord(BaseModel):
    pms: str
    series: Literal["C", "U"]
    hex: str = Field(..., pattern=HEX_PATTERN)
    name: str
    notes: str


# ---------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------
@dataclass
class FormulaComponent:
    component_code: str
    component_description: str = ""
    percentage: float = 0.0
    hex: Optional[str] = None
    is_base: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "componentCode": self.component_code,
            "componentDescription": self.component_description,
            "percentage": self.percentage,
            "hex": self.hex,
            "isBase": self.is_base,
        }


@dataclass
class FormulaRecord:
    """
    Vendor-independent formula.

    ``resolved_hex`` is None when no colour could be derived; such records
    are kept but never ranked.
    """
    id: str
    code: str
    description: str
    partition_key: str
    resolved_hex: Optional[str]
    components: List[FormulaComponent] = field(default_factory=list)
    source: str = ""
    # Vendor payload kept verbatim for display (e.g. FN-INK formula block)
    extra: Dict[str, Any] = field(default_factory=dict)

    def percentage_sum(self) -> float:
        return sum(c.percentage for c in self.components)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "partitionKey": self.partition_key,
            "resolvedHex": self.resolved_hex,
            "components": [c.to_dict() for c in self.components],
            "source": self.source,
        }
        if self.extra:
            data["extra"] = self.extra
        return data


@dataclass
class ReferenceSwatch:
    code: str
    series: str
    hex: str
    display_name: str = ""
    notes: str = ""

    @property
    def key(self):
        return (self.code, self.series)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "series": self.series,
            "hex": self.hex,
            "displayName": self.display_name,
            "notes": self.notes,
        }


@dataclass
class ScoredMatch:
    candidate: Any
    hex: str
    distance: float

    def to_dict(self) -> Dict[str, Any]:
        data = self.candidate.to_dict() if hasattr(self.candidate, "to_dict") else dict(self.candidate)
        data["hex"] = self.hex
        data["distance"] = self.distance
        return data


@dataclass
class RecordIssue:
    index: int
    id: str
    issues: List[str]


@dataclass
class ValidationResult:
    label: str
    total: int
    valid: int
    invalid: int
    errors: List[RecordIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.invalid == 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------
def record_identifier(record: Any, index: int) -> str:
    """Best-effort id for error reports: id, _id, code, pms, then the index."""
    if isinstance(record, dict):
        for key in ("id", "_id", "code", "pms"):
            value = record.get(key)
            if value not in (None, ""):
                return str(value)
    return f"index {index}"


def _format_issues(error: ValidationError, limit: int) -> List[str]:
    issues = []
    for item in error.errors()[:limit]:
        path = ".".join(str(part) for part in item.get("loc", ()))
        issues.append(f"{path}: {item.get('msg', 'invalid')}" if path else item.get("msg", "invalid"))
    return issues


def validate_records(
    records: Sequence[Any],
    schema: Type[BaseModel],
    label: str = "",
    max_errors: int = MAX_STORED_ERRORS,
) -> ValidationResult:
    """
    Validate an array of records against a schema.

    Bad records are data, not program errors: nothing is raised for them.
    Only the first ``max_errors`` failures are kept in ``errors`` but
    ``invalid`` always holds the true count. Input records are not mutated.

    Args:
        records: Raw records (normally dicts parsed from JSON)
        schema: Pydantic model class to validate against
        label: Name used in reports
        max_errors: Maximum number of stored error entries

    Returns:
        ValidationResult
    """
    result = ValidationResult(label=label, total=len(records), valid=0, invalid=0)

    for index, record in enumerate(records):
        if not isinstance(record, dict):
            issues = [f"expected an object, got {type(record).__name__}"]
        else:
            try:
                schema.model_validate(record)
                result.valid += 1
                continue
            except ValidationError as e:
                issues = _format_issues(e, MAX_ISSUES_PER_RECORD)

        result.invalid += 1
        if len(result.errors) < max_errors:
            result.errors.append(RecordIssue(index=index, id=record_identifier(record, index), issues=issues))

    return result
