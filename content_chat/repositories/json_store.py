"""
JSON file store.

Persists a list of records as a pretty-printed JSON array. Writes go to a
temporary file in the same directory which then replaces the target, so a
crash never leaves a half-written file behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Union

import structlog

from ..domain.exceptions import PersistenceException

logger = structlog.get_logger(__name__)


class JsonFileStore:
    """
    Load and save a JSON array on disk.

    Attributes:
        path: Target file
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[Dict[str, Any]]:
        """
        Read all records.

        A missing or unreadable file yields an empty list; the error is
        logged so a corrupt store does not take the service down.
        """
        if not self.path.exists():
            return []

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load JSON store", path=str(self.path), error=str(e))
            return []

        if not isinstance(data, list):
            logger.warning("JSON store does not contain a list", path=str(self.path))
            return []
        return [item for item in data if isinstance(item, dict)]

    def save(self, records: List[Dict[str, Any]]) -> None:
        """
        Replace the stored records.

        Raises:
            PersistenceException: If the file cannot be written
        """
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error("Failed to save JSON store", path=str(self.path), error=str(e))
            raise PersistenceException(str(self.path), str(e)) from e
