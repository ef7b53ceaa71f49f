"""
Flat key-value persistence.

Each key is a namespace holding one JSON blob, mirroring browser local storage.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from storycreator.core.exceptions import StorageError
from storycreator.core.logging_config import get_logger

logger = get_logger("storage.key_value_store")


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal JSON blob store."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process store, values round-tripped through JSON like the file store."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """All namespaces in one JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.error(f"Failed to read state file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"State file {self.path} does not hold a JSON object, ignoring it")
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise StorageError(f"Failed to write state file {self.path}: {e}")

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
