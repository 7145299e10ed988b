"""
Disk-backed key/value cache for API responses.

Each entry is a single JSON file named by the md5 of its key:
    {"key": ..., "kind": ..., "created_at": ..., "payload": [...]}

Entries are written once and never mutated or expired; `clear()` is the only
way to remove them.
"""
import hashlib
import json
import os
import tempfile
import threading
import weakref
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from f1points.config import cfg
from f1points.utils.logger import logger
from f1points.utils.time_utils import parse_iso_timestamp, utc_now


def cache_key(kind: str, params: Optional[dict[str, Any]] = None) -> str:
    """
    Build a deterministic cache key for a logical request.

    >>> cache_key("results", {"season": 2023, "round": 5})
    'results:round=5:season=2023'
    """
    params = params or {}
    parts = [kind] + [f"{name}={params[name]}" for name in sorted(params)]
    return ":".join(parts)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    kind: Optional[str]
    created_at: Optional[datetime]
    payload: Any


class CacheStore:
    """
    JSON file cache keyed by request.

    Safe for concurrent writers of the same key: the first writer wins and
    files are moved into place atomically.
    """

    def __init__(self, cache_dir: Path | None = None) -> None:
        self.cache_dir = Path(cache_dir or cfg.paths.cache)
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _path(self, key: str) -> Path:
        digest = hashlib.md5(key.encode()).hexdigest()
        return self.cache_dir / f"{digest}.json"

    def lock_for(self, key: str) -> threading.RLock:
        """
        Return the in-process lock guarding writes for a key.

        Locks are held weakly and disappear once no caller is using them.
        """
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def _read(self, path: Path) -> Optional[dict]:
        try:
            with open(path) as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache file {path.name}: {e}")
            return None
        if not isinstance(record, dict) or "payload" not in record:
            logger.warning(f"Ignoring malformed cache file {path.name}")
            return None
        return record

    def contains(self, key: str) -> bool:
        return self.entry(key) is not None

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return the full cache entry for a key, or None on a miss."""
        record = self._read(self._path(key))
        if record is None or record.get("key") != key:
            return None
        return CacheEntry(
            key=key,
            kind=record.get("kind"),
            created_at=parse_iso_timestamp(record.get("created_at", "")),
            payload=record["payload"],
        )

    def get(self, key: str) -> Any:
        """Return the cached payload for a key, or None on a miss."""
        entry = self.entry(key)
        if entry is None:
            return None
        logger.debug(f"Cache hit: {key}")
        return entry.payload

    def put(self, key: str, payload: Any, kind: Optional[str] = None) -> bool:
        """
        Store a payload under a key.

        Returns:
            True if the entry was written, False if the key already existed.
        """
        path = self._path(key)
        with self.lock_for(key):
            if self.contains(key):
                logger.debug(f"Cache entry already present, keeping first write: {key}")
                return False

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            record = {
                "key": key,
                "kind": kind,
                "created_at": utc_now().isoformat(),
                "payload": payload,
            }
            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(record, f, default=str)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        logger.debug(f"Cached {key} -> {path.name}")
        return True

    def _iter_records(self) -> Iterator[tuple[Path, dict]]:
        if not self.cache_dir.exists():
            return
        for path in sorted(self.cache_dir.glob("*.json")):
            record = self._read(path)
            if record is not None:
                yield path, record

    def keys(self) -> list[str]:
        return [record["key"] for _, record in self._iter_records() if "key" in record]

    def clear(self, kind: Optional[str] = None) -> int:
        """
        Remove cache entries.

        Args:
            kind: If given, only entries of this data kind are removed.

        Returns:
            Number of entries removed.
        """
        removed = 0
        if kind is None:
            if not self.cache_dir.exists():
                return 0
            for path in self.cache_dir.glob("*.json"):
                path.unlink(missing_ok=True)
                removed += 1
        else:
            for path, record in list(self._iter_records()):
                if record.get("kind") == kind:
                    path.unlink(missing_ok=True)
                    removed += 1
        logger.info(f"Cleared {removed} cache entries" + (f" of kind '{kind}'" if kind else ""))
        return removed
