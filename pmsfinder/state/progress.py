# pmsfinder/state/progress.py
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from ..errors import SchemaViolation

logger = logging.getLogger(__name__)


def write_json_atomic(path: Path, data) -> None:
    """
    Write ``data`` as pretty JSON, replacing ``path`` in one step.

    The content goes to a temporary file in the same directory which is
    then moved over the target, so readers see either the old file or the
    complete new one.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def read_json_list(path: Path) -> List:
    """
    Existing output records, or [] when the file does not exist.

    Raises:
        SchemaViolation: If the file exists but does not hold a JSON array
    """
    path = Path(path)
    if not path.exists():
        return []
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise SchemaViolation(f"{path.name} must contain a JSON array")
    return data


class ScrapeProgress:
    """
    State of a resumable fetch loop.

    Items move from ``pending`` to ``completed`` (record stored) or are
    counted as errors. The accumulated records are the only thing
    persisted: on restart, completed IDs are rebuilt from the output file.
    """

    def __init__(
        self,
        output_path: Path,
        checkpoint_interval: int = 50,
        id_of: Callable[[Dict], str] = lambda record: str(record.get("id") or record.get("code") or ""),
    ):
        self.output_path = Path(output_path)
        self.checkpoint_interval = max(1, int(checkpoint_interval))
        self.id_of = id_of

        self.records: List[Dict] = []
        self.completed = set()
        self.pending: List[str] = []

        self.fetched = 0
        self.skipped = 0
        self.errors = 0

    def load_existing(self) -> int:
        """Reload previously saved records; returns how many were found."""
        self.records = read_json_list(self.output_path)
        self.completed = {self.id_of(r) for r in self.records if isinstance(r, dict)}
        self.completed.discard("")
        return len(self.records)

    def plan(self, ids: Iterable) -> List[str]:
        """Queue ``ids``; already-completed ones are counted as skipped."""
        self.pending = []
        for item in ids:
            key = str(item)
            if key in self.completed:
                self.skipped += 1
            else:
                self.pending.append(key)
        return list(self.pending)

    def mark_done(self, item_id, record: Dict) -> None:
        key = str(item_id)
        self.records.append(record)
        self.completed.add(key)
        self._drop_pending(key)
        self.fetched += 1

    def mark_error(self, item_id) -> None:
        self._drop_pending(str(item_id))
        self.errors += 1

    def _drop_pending(self, key: str) -> None:
        if key in self.pending:
            self.pending.remove(key)

    @property
    def processed(self) -> int:
        return self.fetched + self.errors

    def should_checkpoint(self) -> bool:
        return self.processed > 0 and self.processed % self.checkpoint_interval == 0

    def save(self) -> None:
        write_json_atomic(self.output_path, self.records)
        logger.debug(f"Checkpoint: {len(self.records)} records written to {self.output_path.name}")

    def stats(self) -> Dict:
        return {
            "fetched": self.fetched,
            "skipped": self.skipped,
            "errors": self.errors,
            "pending": len(self.pending),
            "total": len(self.records),
        }
