"""
Simple JSON file key-value storage with in-memory caching

- One JSON file per storage key, each holding a single array
- Whole-collection reads and writes (no partial updates)
- In-memory cache with TTL reduces file I/O for repeated reads
- Read failures degrade to an empty collection, write failures raise
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from app.database.cache import TTLCache

logger = logging.getLogger(__name__)


# Fixed storage keys
PATIENTS_KEY = "dentalcare_patients"
APPOINTMENTS_KEY = "dentalcare_appointments"
TREATMENTS_KEY = "dentalcare_treatments"
BACKUP_HISTORY_KEY = "dentalcare_backup_history"


class StorageError(Exception):
    """
    Raised when a collection cannot be written (disk full, permissions, bad data)
    """
    def __init__(self, key: str, message: str = "Failed to save data to local storage"):
        self.key = key
        super().__init__(message)


def write_json(filepath: Union[str, Path], data: List[Dict[str, Any]]) -> str:
    """
    Write data to JSON file, return the serialized text

    The text goes to a sibling temp file first and then replaces the target,
    so a failed write leaves the previous contents intact.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(data, indent=2)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return text


class JsonFileStore:
    """
    Key-value store of JSON arrays under a data directory

    CURRENT: single process, single user; the only writer to these files
    """
    def __init__(self, data_dir: Union[str, Path] = "data", cache_ttl_seconds: int = 60):
        self.data_dir = Path(data_dir)
        self._cache = TTLCache(ttl_seconds=cache_ttl_seconds)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read_text(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error loading {key} from {path}: {e}")
            return None

    def get_item(self, key: str) -> List[Dict[str, Any]]:
        """
        Read the array stored under key, return empty list if missing or unreadable
        """
        text = self._cache.get_or_load(key, lambda: self._read_text(key))
        if text is None:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Error loading {key}: malformed JSON ({e})")
            self._cache.invalidate(key)
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring {key}: expected a JSON array, found {type(data).__name__}")
            return []
        return data

    def set_item(self, key: str, data: List[Dict[str, Any]]):
        """
        Replace the array stored under key

        Raises StorageError if the collection cannot be serialized or written.
        """
        try:
            text = write_json(self.path_for(key), data)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving {key}: {e}")
            self._cache.invalidate(key)
            raise StorageError(key) from e
        self._cache.set(key, text)
        logger.debug(f"Saved {len(data)} records to {key}")

    def remove_item(self, key: str):
        """
        Delete the file for key (no-op if missing) and drop it from cache
        """
        self._cache.invalidate(key)
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            logger.debug(f"Removed {key}")
