# pmsfinder/data/catalog.py
"""
Local catalog store.

Serves formula records from the JSON files under the data directory, one
file per partition. Each partition declares the kind of records its file
holds ("scraped" or "spreadsheet"), which decides the schema and the
adapter used to turn raw entries into FormulaRecords.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .schemas import FormulaRecord, validate_records
from .sources import RecordKind, get_kind, raw_percentage_sum
from ..errors import CatalogFileError

logger = logging.getLogger(__name__)

JUNK_CODE_PREFIX = "COPY:"
JUNK_CODE_EXACT = "TEST"
JUNK_PERCENT_SUM = 110.0


@dataclass(frozen=True)
class PartitionSource:
    filename: str
    kind: str


def partition_sources(partitions: Mapping) -> Dict[str, PartitionSource]:
    """
    Accept the settings form ({"file": ..., "kind": ...}) or PartitionSource values.
    """
    sources = {}
    for key, value in partitions.items():
        if isinstance(value, PartitionSource):
            sources[key] = value
        else:
            sources[key] = PartitionSource(filename=value["file"], kind=value.get("kind", "spreadsheet"))
    return sources


def is_junk(raw: Dict, kind: RecordKind, max_percent_sum: float = JUNK_PERCENT_SUM) -> bool:
    """Test entries, copies and formulas whose components add up to more than the cap."""
    code = str(raw.get(kind.id_key) or "")
    if code.startswith(JUNK_CODE_PREFIX) or code == JUNK_CODE_EXACT:
        return True
    return raw_percentage_sum(raw, kind) > max_percent_sum


def read_json_array(path: Path) -> List:
    """
    Raises:
        CatalogFileError: If the file is not valid JSON or not an array
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogFileError(f"Could not parse {path.name}: {e}") from e
    except OSError as e:
        raise CatalogFileError(f"Could not read {path.name}: {e}") from e
    if not isinstance(data, list):
        raise CatalogFileError(f"{path.name} must contain a JSON array, got {type(data).__name__}")
    return data


def filter_records(records: List[FormulaRecord], query: str = "") -> List[FormulaRecord]:
    """Case-insensitive substring match on code and description; an empty query keeps everything."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.code.lower() or needle in r.description.lower()
    ]


class LocalCatalogStore:
    """Formula records from local JSON files, cached per partition."""

    def __init__(self, data_dir: Path, partitions: Mapping, junk_percent_sum: float = JUNK_PERCENT_SUM):
        """
        Args:
            data_dir: Directory holding the partition files
            partitions: Partition key -> {"file", "kind"} (or PartitionSource)
            junk_percent_sum: Percentage sum above which a formula is dropped as junk
        """
        self.data_dir = Path(data_dir)
        self.partitions = partition_sources(partitions)
        self.junk_percent_sum = junk_percent_sum
        self._cache: Dict[str, List[FormulaRecord]] = {}

    def partition_names(self) -> List[str]:
        return list(self.partitions)

    def path_for(self, key: str) -> Optional[Path]:
        source = self.partitions.get(key)
        if source is None:
            return None
        return self.data_dir / source.filename

    def has_local_data(self, key: str) -> bool:
        path = self.path_for(key)
        return path is not None and path.exists()

    def load(self, key: str) -> Optional[List[FormulaRecord]]:
        """
        Records of one partition.

        Returns:
            List of FormulaRecord, or None when the partition has no local file

        Raises:
            CatalogFileError: If the file exists but is not a readable JSON array
        """
        if key in self._cache:
            return self._cache[key]

        source = self.partitions.get(key)
        if source is None:
            return None
        path = self.data_dir / source.filename
        if not path.exists():
            return None

        kind = get_kind(source.kind)
        raw_records = read_json_array(path)

        result = validate_records(raw_records, kind.schema, key)
        if result.invalid:
            logger.warning(f"[{key}] {result.invalid}/{result.total} records failed validation")
            for issue in result.errors[:5]:
                logger.warning(f"  [{issue.index}] {issue.id}: {'; '.join(issue.issues)}")

        records = []
        junk = 0
        for raw in raw_records:
            if not isinstance(raw, dict):
                continue
            if is_junk(raw, kind, self.junk_percent_sum):
                junk += 1
                continue
            records.append(kind.to_record(raw, key))

        if junk:
            logger.info(f"[{key}] Filtered {junk} junk records")
        logger.info(f"[{key}] Loaded {len(records)} records from {path.name}")

        self._cache[key] = records
        return records

    def search(self, key: str, query: str = "") -> Optional[List[FormulaRecord]]:
        """Case-insensitive substring search over code and description."""
        records = self.load(key)
        if records is None:
            return None
        return filter_records(records, query)

    def clear(self, key: Optional[str] = None) -> None:
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)
