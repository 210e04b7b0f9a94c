"""On-disk cache for schema describe results.

describes are slow on real backends and rarely change during a working
session, so we keep them in a small json file with a ttl. a ttl of zero (or
less) turns the cache off entirely - nothing read, nothing written.
"""

import json
import os
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()

CACHE_VERSION = 1


class CacheRecord(BaseModel):
    fetched_at: float  # unix seconds
    type: str
    data: Any


class CacheFile(BaseModel):
    version: int = CACHE_VERSION
    entries: dict[str, CacheRecord] = Field(default_factory=dict)


class MetadataCache:
    """TTL cache persisted as a single json file.

    records are tagged with a type so a describe result can never be returned
    to a caller expecting something else under the same key.
    """

    def __init__(
        self,
        ttl_minutes: int,
        path: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.disabled = ttl_minutes <= 0
        self.ttl_seconds = ttl_minutes * 60
        self.path = Path(path)
        self._clock = clock
        self._cache: CacheFile | None = None
        self._lock = threading.Lock()  # source and target describe concurrently

    def get(self, key: str, expected_type: str) -> Any | None:
        if self.disabled:
            return None

        with self._lock:
            record = self._load().entries.get(key)
        if record is None or record.type != expected_type:
            return None
        if not self._is_fresh(record):
            logger.debug("metadata_cache_expired", key=key)
            return None

        logger.debug("metadata_cache_hit", key=key)
        return record.data

    def set(self, key: str, record_type: str, data: Any) -> None:
        if self.disabled:
            return

        with self._lock:
            cache = self._load()
            cache.entries[key] = CacheRecord(
                fetched_at=self._clock(), type=record_type, data=data
            )
            self._persist(cache)

    def _is_fresh(self, record: CacheRecord) -> bool:
        return self._clock() - record.fetched_at <= self.ttl_seconds

    def _load(self) -> CacheFile:
        if self._cache is not None:
            return self._cache

        try:
            cache = CacheFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            cache = CacheFile()
        except (OSError, ValueError) as e:
            # a corrupt cache is just a cold cache
            logger.warning("metadata_cache_unreadable", path=str(self.path), error=str(e))
            cache = CacheFile()

        if cache.version != CACHE_VERSION:
            cache = CacheFile()

        self._cache = cache
        return cache

    def _persist(self, cache: CacheFile) -> None:
        """Write via a temp file + rename so readers never see half a file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp-{os.getpid()}-{time.time_ns()}")
        tmp_path.write_text(json.dumps(cache.model_dump(mode="json")), encoding="utf-8")
        os.replace(tmp_path, self.path)
