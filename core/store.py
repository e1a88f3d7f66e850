import json
import logging
import os
import shutil
from typing import List, Optional

from core.errors import DuplicateNameError
from core.models import CircuitRecord
from core.records import record_from_dict, record_to_dict

logger = logging.getLogger(__name__)

class RecordStore:
    """
    Ordered, append-only sequence of computed boards persisted as a JSON list.
    Records are never edited in place; they can only be added or removed.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.records: List[CircuitRecord] = self.load()

    def load(self) -> List[CircuitRecord]:
        if not self.path or not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
            if not isinstance(raw, list):
                raise ValueError(f"expected a list of records, got {type(raw).__name__}")
            return [record_from_dict(item) for item in raw]
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Could not read record store %s: %s", self.path, e)
            self._backup_unreadable()
            return []

    def _backup_unreadable(self) -> None:
        # Keeps the original file before the next save replaces it
        backup = self.path + ".bak"
        try:
            shutil.copyfile(self.path, backup)
        except OSError as e:
            logger.error("Could not back up %s: %s", self.path, e)
            raise
        logger.warning("Unreadable record store copied to %s", backup)

    def save(self) -> None:
        if not self.path:
            return
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump([record_to_dict(r) for r in self.records], fh, ensure_ascii=False, indent=2)
        logger.info("Saved %d records to %s", len(self.records), self.path)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(list(self.records))

    def name_exists(self, name: str) -> bool:
        key = name.strip().lower()
        return any(r.name.lower() == key for r in self.records)

    def ensure_unique(self, name: str) -> None:
        if self.name_exists(name):
            raise DuplicateNameError(name.strip())

    def append(self, record: CircuitRecord) -> CircuitRecord:
        self.ensure_unique(record.name)
        self.records.append(record)
        self.save()
        return record

    def delete(self, index: int) -> CircuitRecord:
        removed = self.records.pop(index)
        self.save()
        logger.info("Deleted board %s (%s)", removed.label, removed.name)
        return removed

    def clear(self) -> None:
        self.records = []
        self.save()
