"""Raw key-value primitives the persistence gateway writes through.

The gateway only relies on the four methods of :class:`KeyValueStore`. Any of
them may raise; ``set`` may also report failure by returning ``False``.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal byte-oriented key-value store."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> bool:
        ...

    def delete(self, key: str) -> None:
        ...

    def list_keys(self, prefix: str = "") -> List[str]:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store; contents live as long as the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> bool:
        self._data[key] = bytes(value)
        return True

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self, prefix: str = "") -> List[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)


class FileKeyValueStore:
    """Directory-backed store, one file per key.

    Keys are percent-encoded into file names so any string is a valid key.
    Writes are not atomic: a crash mid-write can leave a truncated value,
    which the gateway then treats as unparsable.
    """

    suffix = ".json"

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"File key-value store at {self.directory}")

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}{self.suffix}"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> bool:
        self._path(key).write_bytes(value)
        return True

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def list_keys(self, prefix: str = "") -> List[str]:
        keys = []
        for path in sorted(self.directory.glob(f"*{self.suffix}")):
            key = unquote(path.name[: -len(self.suffix)])
            if key.startswith(prefix):
                keys.append(key)
        return keys
