"""Beacon network content storage backed by SQLite, with an in-memory cache for head updates."""

from __future__ import annotations

import logging
import sqlite3
import threading
from os import PathLike

from .keys import (
    ContentType,
    LightClientFinalityUpdateKey,
    LightClientOptimisticUpdateKey,
    LightClientUpdateKey,
)
from .ssz import SSZError
from .types import (
    ForkedLightClientFinalityUpdate,
    ForkedLightClientOptimisticUpdate,
    ForkedLightClientUpdate,
    decode_update_range,
    encode_update_range,
)

BYTES_IN_MB = 1000 * 1000
MAX_DISTANCE = 2**256 - 1

_CREATE_SCHEMA = """
CREATE TABLE IF NOT EXISTS beacon (
    content_id BLOB PRIMARY KEY,
    content_key BLOB NOT NULL,
    content_value BLOB NOT NULL,
    content_size INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS beacon_content_size_idx ON beacon(content_size);
CREATE TABLE IF NOT EXISTS lc_update (
    period INTEGER PRIMARY KEY,
    value BLOB NOT NULL,
    score INTEGER NOT NULL,
    update_size INTEGER
);
CREATE INDEX IF NOT EXISTS update_size_idx ON lc_update(update_size);
DROP INDEX IF EXISTS period_idx;
"""

_PUT_CONTENT = """INSERT OR REPLACE INTO beacon (content_id, content_key, content_value, content_size)
                  VALUES (?1, ?2, ?3, ?4)"""
_GET_CONTENT = "SELECT content_value FROM beacon WHERE content_id = (?1) LIMIT 1"
_PUT_UPDATE = """INSERT OR REPLACE INTO lc_update (period, value, score, update_size)
                 VALUES (?1, ?2, ?3, ?4)"""
_GET_UPDATE = "SELECT value FROM lc_update WHERE period = (?1) LIMIT 1"


class ContentNotFoundError(LookupError):
    """Raised when the requested content is not held by the storage."""

    def __init__(self, message: str = "content not found") -> None:
        super().__init__(message)


class BeaconStorageCache:
    """Holds the latest optimistic and finality updates in memory."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._optimistic_update: ForkedLightClientOptimisticUpdate | None = None
        self._finality_update: ForkedLightClientFinalityUpdate | None = None

    def get_optimistic_update(self, slot: int) -> ForkedLightClientOptimisticUpdate | None:
        """The cached optimistic update if its signature slot is at least slot."""
        with self._lock:
            update = self._optimistic_update
        if update is not None and update.signature_slot() >= slot:
            return update
        return None

    def set_optimistic_update(self, update: ForkedLightClientOptimisticUpdate) -> None:
        with self._lock:
            self._optimistic_update = update

    def get_finality_update(self, slot: int) -> ForkedLightClientFinalityUpdate | None:
        """The cached finality update if its finalized slot is at least slot."""
        with self._lock:
            update = self._finality_update
        if update is not None and update.beacon_slot() >= slot:
            return update
        return None

    def set_finality_update(self, update: ForkedLightClientFinalityUpdate) -> None:
        with self._lock:
            self._finality_update = update


class BeaconStorage:
    """Stores bootstraps, summaries and per-period updates; caches the head updates."""

    def __init__(
        self,
        path: str | PathLike = ":memory:",
        storage_capacity_mb: int = 1000,
        logger: logging.Logger | None = None,
    ) -> None:
        self.capacity_bytes = storage_capacity_mb * BYTES_IN_MB
        self.cache = BeaconStorageCache()
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._size = 0
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        self._db.executescript(_CREATE_SCHEMA)

    @property
    def size(self) -> int:
        """Bytes of content ids and content put since the storage was opened."""
        with self._lock:
            return self._size

    def __enter__(self) -> BeaconStorage:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _lookup(self, query: str, parameter) -> bytes:
        with self._lock:
            row = self._db.execute(query, (parameter,)).fetchone()
        if row is None:
            raise ContentNotFoundError()
        return bytes(row[0])

    def get(self, content_key: bytes, content_id: bytes) -> bytes | None:
        """Content stored for the key; None for a content type this storage does not hold."""
        content_key = bytes(content_key)
        if not content_key:
            raise SSZError("empty content key")
        try:
            content_type = ContentType(content_key[0])
        except ValueError:
            return None
        body = content_key[1:]

        if content_type in (ContentType.LIGHT_CLIENT_BOOTSTRAP, ContentType.HISTORICAL_SUMMARIES):
            return self._lookup(_GET_CONTENT, bytes(content_id))
        if content_type is ContentType.LIGHT_CLIENT_UPDATE:
            key = LightClientUpdateKey.decode(body)
            updates = [
                ForkedLightClientUpdate.decode(self._lookup(_GET_UPDATE, period))
                for period in range(key.start_period, key.start_period + key.count)
            ]
            return encode_update_range(updates)
        if content_type is ContentType.LIGHT_CLIENT_FINALITY_UPDATE:
            finality_key = LightClientFinalityUpdateKey.decode(body)
            finality = self.cache.get_finality_update(finality_key.finalized_slot)
            if finality is None:
                raise ContentNotFoundError()
            return finality.encode()
        optimistic_key = LightClientOptimisticUpdateKey.decode(body)
        optimistic = self.cache.get_optimistic_update(optimistic_key.optimistic_slot)
        if optimistic is None:
            raise ContentNotFoundError()
        return optimistic.encode()

    def put(self, content_key: bytes, content_id: bytes, content: bytes) -> None:
        """Store content under its key; head updates go to the cache only."""
        content_key = bytes(content_key)
        content_id = bytes(content_id)
        content = bytes(content)
        with self._lock:
            self._size += len(content_id) + len(content)
        if not content_key:
            raise SSZError("empty content key")
        try:
            content_type = ContentType(content_key[0])
        except ValueError:
            return
        body = content_key[1:]

        if content_type in (ContentType.LIGHT_CLIENT_BOOTSTRAP, ContentType.HISTORICAL_SUMMARIES):
            with self._lock, self._db:
                self._db.execute(_PUT_CONTENT, (content_id, content_key, content, len(content)))
        elif content_type is ContentType.LIGHT_CLIENT_UPDATE:
            key = LightClientUpdateKey.decode(body)
            rows = []
            for offset, update in enumerate(decode_update_range(content)):
                encoded = update.encode()
                rows.append((key.start_period + offset, encoded, 0, len(encoded)))
            with self._lock, self._db:
                self._db.executemany(_PUT_UPDATE, rows)
        elif content_type is ContentType.LIGHT_CLIENT_FINALITY_UPDATE:
            self.cache.set_finality_update(ForkedLightClientFinalityUpdate.decode(content))
        else:
            self.cache.set_optimistic_update(ForkedLightClientOptimisticUpdate.decode(content))

    def radius(self) -> int:
        """The beacon network always accepts content at any distance."""
        return MAX_DISTANCE

    def close(self) -> None:
        with self._lock:
            self._db.close()