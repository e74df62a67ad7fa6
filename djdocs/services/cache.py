"""Per-version persistence of the linked corpus.

The corpus graph has cycles (``a.next.previous is a``), so entries are stored
with their links replaced by URLs and relinked with
:func:`~djdocs.services.linker.link_entries` when read back.  A stored value
is always read and written as a whole.
"""

import json
import logging
import os
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, ValidationError

from djdocs.constants import SEVEN_DAYS_MS
from djdocs.models.entry import DocEntry, RawEntry
from djdocs.services.linker import link_entries

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process store, mostly useful in tests."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileStore:
    """One file per key under *directory*; writes replace the file atomically."""

    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            os.unlink(tmp_path)
            raise


class CacheableEntry(BaseModel):
    url: str
    title: str
    content: str
    parent_url: Optional[str] = None
    previous_url: Optional[str] = None
    next_url: Optional[str] = None


class CachedData(BaseModel):
    entries: List[CacheableEntry]
    last_refresh: int  # epoch milliseconds


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_cache_key(version: str) -> str:
    return f"django-docs-{version}"


def _load(store: KeyValueStore, version: str) -> Optional[CachedData]:
    """Return the parsed cache value, or *None* when absent or unreadable."""
    data = store.get(get_cache_key(version))
    if not data:
        return None
    try:
        return CachedData.model_validate(json.loads(data))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Ignoring unreadable cache for version %s: %s", version, exc)
        return None


def read_cache(store: KeyValueStore, version: str) -> Optional[List[DocEntry]]:
    """Return the cached corpus for *version* with its links rebuilt."""
    cached = _load(store, version)
    if cached is None:
        return None

    return link_entries(
        [
            RawEntry(
                url=c.url,
                title=c.title,
                content=c.content,
                parent_url=c.parent_url,
                prev_url=c.previous_url,
                next_url=c.next_url,
            )
            for c in cached.entries
        ]
    )


def write_cache(
    store: KeyValueStore,
    version: str,
    entries: List[DocEntry],
    now: Optional[int] = None,
) -> None:
    """Replace the cached corpus for *version* with *entries*."""
    cacheable = []
    for entry in entries:
        raw = entry.to_raw()
        cacheable.append(
            CacheableEntry(
                url=raw.url,
                title=raw.title,
                content=raw.content,
                parent_url=raw.parent_url,
                previous_url=raw.prev_url,
                next_url=raw.next_url,
            )
        )

    data = CachedData(entries=cacheable, last_refresh=_now_ms() if now is None else now)
    store.set(get_cache_key(version), data.model_dump_json())


def get_cache_age(store: KeyValueStore, version: str, now: Optional[int] = None) -> Optional[int]:
    """Milliseconds since the cache for *version* was written, or *None*."""
    cached = _load(store, version)
    if cached is None:
        return None
    return (_now_ms() if now is None else now) - cached.last_refresh


def should_refresh(
    store: KeyValueStore,
    version: str,
    max_age_ms: int = SEVEN_DAYS_MS,
    now: Optional[int] = None,
) -> bool:
    age = get_cache_age(store, version, now=now)
    if age is None:
        return True
    return age > max_age_ms


def get_last_refresh_date(store: KeyValueStore, version: str) -> Optional[datetime]:
    cached = _load(store, version)
    if cached is None:
        return None
    return datetime.fromtimestamp(cached.last_refresh / 1000, tz=timezone.utc)
