# src/taskdeck/storage/local_storage.py

from __future__ import annotations

import contextlib
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStorage:
    """
    Directory-backed key-value storage.

    Each key is one file (<dir>/<key>.json) holding the serialized value as-is.
    Writes go through a temp file + os.replace, so a crash never leaves a half-written entry.
    The entries may contain personal notes; files are made private on disk (best-effort).
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        logger.debug("LocalStorage ready dir=%s", self._dir)

    def _path_for(self, key: str) -> Path:
        if not key or not _KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text("utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Failed to read storage entry %s; treating as absent", path, exc_info=True)
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(Exception):
            os.chmod(path, 0o600)
        logger.debug("Storage write key=%s bytes=%d", key, len(value))

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        with contextlib.suppress(FileNotFoundError):
            path.unlink()

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self._dir.glob("*.json"))
