"""Persistence utilities for the finance tracker core services."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Type, TypeVar
from uuid import uuid4

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .exceptions import ConstraintViolationError, PersistenceError
from .filters import Predicate
from .models import utcnow

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")

_TIMESTAMP_FIELDS = ("created_at", "updated_at")


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path
        self._base_path.mkdir(parents=True, exist_ok=True)

    def load(self, resource: str) -> List[Dict[str, Any]]:
        path = self._base_path / resource
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(list(records), handle, indent=2)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path


class RecordStore(Generic[RecordT]):
    """Store contract shared by the JSON and relational backends.

    ``save`` assigns an id and timestamps to new records and inserts or
    updates depending on whether the id is already stored. ``delete`` on a
    missing record is silent; callers decide whether that is an error.
    """

    def __init__(self, record_type: Type[RecordT]) -> None:
        self._record_type = record_type
        self._has_timestamps = {f.name for f in fields(record_type)} >= set(_TIMESTAMP_FIELDS)

    def find_all(self, predicate: Optional[Predicate] = None) -> List[RecordT]:
        raise NotImplementedError

    def find_by_id(self, record_id: str) -> Optional[RecordT]:
        raise NotImplementedError

    def save(self, record: RecordT) -> RecordT:
        raise NotImplementedError

    def delete(self, record: RecordT) -> None:
        raise NotImplementedError

    def _prepare(self, record: RecordT) -> RecordT:
        changes: Dict[str, Any] = {}
        if record.id is None:
            changes["id"] = str(uuid4())
        if self._has_timestamps:
            now = utcnow()
            if record.created_at is None:
                changes["created_at"] = now
            if record.updated_at is None:
                changes["updated_at"] = now
        return replace(record, **changes) if changes else record


class JSONRecordStore(RecordStore[RecordT]):
    """Keeps one entity type in a JSON document and filters it in memory."""

    def __init__(self, storage: JSONStorage, resource: str, record_type: Type[RecordT]) -> None:
        super().__init__(record_type)
        self._storage = storage
        self._resource = resource

    def find_all(self, predicate: Optional[Predicate] = None) -> List[RecordT]:
        records = self._load()
        if predicate is None:
            return records
        return predicate.apply(records)

    def find_by_id(self, record_id: str) -> Optional[RecordT]:
        for record in self._load():
            if record.id == record_id:
                return record
        return None

    def save(self, record: RecordT) -> RecordT:
        record = self._prepare(record)
        records = self._load()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)
        self._persist(records)
        return record

    def delete(self, record: RecordT) -> None:
        records = self._load()
        remaining = [existing for existing in records if existing.id != record.id]
        if len(remaining) != len(records):
            self._persist(remaining)

    def _load(self) -> List[RecordT]:
        return [self._record_type.from_dict(payload) for payload in self._storage.load(self._resource)]

    def _persist(self, records: List[RecordT]) -> None:
        self._storage.save(self._resource, [record.to_dict() for record in records])


class SQLRecordStore(RecordStore[RecordT]):
    """Maps one entity type onto a table and pushes predicates down as WHERE clauses."""

    def __init__(self, engine: Engine, table: Table, record_type: Type[RecordT]) -> None:
        super().__init__(record_type)
        self._engine = engine
        self._table = table
        if self._has_timestamps:
            self._order_by = (table.c.created_at, table.c.id)
        else:
            self._order_by = (table.c.id,)

    def find_all(self, predicate: Optional[Predicate] = None) -> List[RecordT]:
        query = select(self._table)
        if predicate is not None:
            query = query.where(predicate.to_sql(self._table))
        query = query.order_by(*self._order_by)
        with self._connect() as conn:
            rows = conn.execute(query).mappings().all()
        return [self._to_record(row) for row in rows]

    def find_by_id(self, record_id: str) -> Optional[RecordT]:
        query = select(self._table).where(self._table.c.id == record_id)
        with self._connect() as conn:
            row = conn.execute(query).mappings().first()
        return self._to_record(row) if row is not None else None

    def save(self, record: RecordT) -> RecordT:
        record = self._prepare(record)
        values = asdict(record)
        with self._connect() as conn:
            exists = conn.execute(
                select(self._table.c.id).where(self._table.c.id == record.id)
            ).first()
            if exists is None:
                conn.execute(insert(self._table).values(**values))
            else:
                conn.execute(
                    update(self._table).where(self._table.c.id == record.id).values(**values)
                )
        return record

    def delete(self, record: RecordT) -> None:
        with self._connect() as conn:
            conn.execute(delete(self._table).where(self._table.c.id == record.id))

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except IntegrityError as exc:
            logger.warning("Constraint violation on %s: %s", self._table.name, exc.orig)
            raise ConstraintViolationError(
                f"{self._table.name} record violates a storage constraint"
            ) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database error while accessing {self._table.name}") from exc

    def _to_record(self, row: Any) -> RecordT:
        values = dict(row)
        for name in _TIMESTAMP_FIELDS:
            value = values.get(name)
            # SQLite hands back naive datetimes; everything is stored as UTC.
            if isinstance(value, datetime) and value.tzinfo is None:
                values[name] = value.replace(tzinfo=timezone.utc)
        return self._record_type(**values)
