"""File-backed key-value store shared by the result cache and the rate-limit tracker."""

import hashlib
import json
import os
import tempfile
from pathlib import Path

from .errors import StorageUnavailable


class Storage:
    """Durable string store, one JSON file per key.

    Each file holds ``{"key": ..., "value": ...}`` so keys can be listed back
    without keeping an index. Writes land in a temp file first and are moved
    into place with ``os.replace``; readers see either the old record or the new
    one, never a partial write.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode()).hexdigest()[:16]
        return self.root / f"{digest}.json"

    def read(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent or unreadable."""
        path = self._path(key)
        try:
            with open(path, encoding="utf-8") as f:
                envelope = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {path}: {e}") from e
        if not isinstance(envelope, dict) or envelope.get("key") != key:
            return None
        value = envelope.get("value")
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump({"key": key, "value": value}, f)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {path}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot remove {path}: {e}") from e

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""
        if not self.root.exists():
            return []
        found = []
        try:
            paths = sorted(self.root.glob("*.json"))
        except OSError as e:
            raise StorageUnavailable(f"Cannot list {self.root}: {e}") from e
        for path in paths:
            if path.name.startswith(".tmp-"):
                continue
            try:
                with open(path, encoding="utf-8") as f:
                    envelope = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError, OSError):
                continue
            key = envelope.get("key") if isinstance(envelope, dict) else None
            if isinstance(key, str) and key.startswith(prefix):
                found.append(key)
        return found
