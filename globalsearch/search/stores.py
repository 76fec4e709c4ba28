"""Store interfaces consumed by the search engine and in-process backends."""

from __future__ import annotations

import asyncio
import copy
import json
import os
import tempfile
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import aiofiles

from globalsearch.search.errors import HistoryPersistenceFailed
from globalsearch.search.models import coerce_datetime
from globalsearch.utils.mixins import LoggerMixin

# Upper bound appended to a prefix to turn it into a range scan.
PREFIX_SENTINEL = "\uf8ff"

Record = dict[str, Any]


class RecordCollection(Protocol):
    """Queryable collection of one entity domain."""

    name: str

    async def prefix_query(self, field: str, prefix: str, limit: int) -> list[Record]:
        """Records whose ``field`` lies in ``[prefix, prefix + sentinel)``."""
        ...

    async def array_contains(self, field: str, value: Any, limit: int) -> list[Record]:
        """Records whose array ``field`` contains ``value``."""
        ...

    async def where_equals(
        self, field: str, value: Any, limit: int | None = None
    ) -> list[Record]:
        """Records whose ``field`` equals ``value``."""
        ...


class HistoryCollection(Protocol):
    """Persisted search-history records."""

    async def add(self, record: Mapping[str, Any]) -> str:
        """Append a record and return its id."""
        ...

    async def query_by_owner(self, owner_id: str, limit: int) -> list[Record]:
        """Owner's records, newest first, at most ``limit``."""
        ...

    async def delete_by_owner(self, owner_id: str) -> int:
        """Delete every record of the owner atomically; return the count."""
        ...


class InMemoryCollection:
    """Dict-backed :class:`RecordCollection`."""

    def __init__(self, name: str, records: Iterable[Mapping[str, Any]] = ()):
        self.name = name
        self._records: dict[str, Record] = {}
        for record in records:
            self.upsert(record)

    def __len__(self) -> int:
        return len(self._records)

    def upsert(self, record: Mapping[str, Any]) -> str:
        record_id = str(record.get("id") or uuid.uuid4())
        self._records[record_id] = {**copy.deepcopy(dict(record)), "id": record_id}
        return record_id

    def remove(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    async def prefix_query(self, field: str, prefix: str, limit: int) -> list[Record]:
        if limit <= 0:
            return []
        upper = prefix + PREFIX_SENTINEL
        matches = [
            record
            for record in self._records.values()
            if isinstance(record.get(field), str) and prefix <= record[field] < upper
        ]
        matches.sort(key=lambda r: (r[field], r["id"]))
        return [copy.deepcopy(r) for r in matches[:limit]]

    async def array_contains(self, field: str, value: Any, limit: int) -> list[Record]:
        if limit <= 0:
            return []
        matches = [
            record
            for record in self._records.values()
            if isinstance(record.get(field), list | tuple) and value in record[field]
        ]
        matches.sort(key=lambda r: r["id"])
        return [copy.deepcopy(r) for r in matches[:limit]]

    async def where_equals(
        self, field: str, value: Any, limit: int | None = None
    ) -> list[Record]:
        matches = [
            record
            for record in self._records.values()
            if field in record and record[field] == value
        ]
        matches.sort(key=lambda r: r["id"])
        if limit is not None:
            matches = matches[:limit]
        return [copy.deepcopy(r) for r in matches]


def _newest_first(records: Iterable[Record]) -> list[Record]:
    # Later inserts win ties on equal timestamps.
    ordered = list(reversed(list(records)))
    ordered.sort(
        key=lambda r: coerce_datetime(r.get("timestamp")) or datetime.min,
        reverse=True,
    )
    return ordered


def _retain_recent(records: list[Record], owner_id: str, retention: int) -> list[Record]:
    owned = [r for r in records if r.get("ownerId") == owner_id]
    if len(owned) <= retention:
        return records
    keep = {id(r) for r in _newest_first(owned)[:retention]}
    return [r for r in records if r.get("ownerId") != owner_id or id(r) in keep]


class InMemoryHistoryCollection:
    """List-backed :class:`HistoryCollection`."""

    def __init__(self, retention: int | None = None):
        self.retention = retention
        self._records: list[Record] = []

    def __len__(self) -> int:
        return len(self._records)

    async def add(self, record: Mapping[str, Any]) -> str:
        stored = {**copy.deepcopy(dict(record))}
        stored["id"] = stored.get("id") or str(uuid.uuid4())
        self._records.append(stored)
        if self.retention is not None:
            self._records = _retain_recent(
                self._records, stored.get("ownerId", ""), self.retention
            )
        return stored["id"]

    async def query_by_owner(self, owner_id: str, limit: int) -> list[Record]:
        owned = [r for r in self._records if r.get("ownerId") == owner_id]
        return [copy.deepcopy(r) for r in _newest_first(owned)[:limit]]

    async def delete_by_owner(self, owner_id: str) -> int:
        remaining = [r for r in self._records if r.get("ownerId") != owner_id]
        deleted = len(self._records) - len(remaining)
        self._records = remaining
        return deleted


class JsonHistoryCollection(LoggerMixin):
    """:class:`HistoryCollection` persisted to a single JSON file.

    Every mutation rewrites the file through a temp file and ``os.replace``,
    so a failed write leaves the previous contents untouched.
    """

    def __init__(self, data_file: Path, retention: int = 100):
        self.data_file = data_file
        self.retention = retention
        self._lock = asyncio.Lock()

    async def add(self, record: Mapping[str, Any]) -> str:
        async with self._lock:
            records = await self._load()
            stored = {**dict(record)}
            stored["id"] = stored.get("id") or str(uuid.uuid4())
            records.append(stored)
            records = _retain_recent(
                records, stored.get("ownerId", ""), self.retention
            )
            await self._write_atomic(records)

        self.logger.debug("History record stored", record_id=stored["id"])
        return stored["id"]

    async def query_by_owner(self, owner_id: str, limit: int) -> list[Record]:
        records = await self._load()
        owned = [r for r in records if r.get("ownerId") == owner_id]
        return _newest_first(owned)[:limit]

    async def delete_by_owner(self, owner_id: str) -> int:
        async with self._lock:
            records = await self._load()
            remaining = [r for r in records if r.get("ownerId") != owner_id]
            deleted = len(records) - len(remaining)
            if deleted:
                await self._write_atomic(remaining)

        self.logger.info("History records deleted", owner_id=owner_id, count=deleted)
        return deleted

    async def _load(self) -> list[Record]:
        """Load history records from the JSON file."""
        if not self.data_file.exists():
            return []

        try:
            async with aiofiles.open(self.data_file, encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            raise HistoryPersistenceFailed(
                f"Cannot read history file {self.data_file}: {e}"
            ) from e

        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise HistoryPersistenceFailed(
                f"History file {self.data_file} is corrupt: {e}"
            ) from e

        if not isinstance(data, list):
            raise HistoryPersistenceFailed(
                f"History file {self.data_file} does not contain a list"
            )
        return [r for r in data if isinstance(r, dict)]

    async def _write_atomic(self, records: list[Record]) -> None:
        """Write history JSON using an atomic file replace."""

        serialized = json.dumps(records, indent=2, ensure_ascii=False, default=str)

        def _write() -> None:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.data_file.parent, prefix="history_", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                    tmp_file.write(serialized)
                    tmp_file.flush()
                    os.fsync(tmp_file.fileno())
                os.replace(temp_path, self.data_file)
            finally:
                if os.path.exists(temp_path):
                    try:
                        os.remove(temp_path)
                    except FileNotFoundError:
                        pass

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise HistoryPersistenceFailed(
                f"Cannot write history file {self.data_file}: {e}"
            ) from e
