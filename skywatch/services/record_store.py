"""
Record store — the key-value table behind the alert tracker.

Records are addressed by (partition_key, row_key). The tracker only needs
point reads, whole-record replace, per-partition listing and delete; the
retention sweep adds a full scan and the race-free claim adds a
conditional replace.

Implementations
---------------
  InMemoryRecordStore     dict + threading.Lock (dev mode, tests)
  SqlAlchemyRecordStore   `sent_alerts` table, one short-lived session per
                          call from an injected sessionmaker

Driver failures surface as StoreError; "not found" is a normal None.
Other implementations should wrap their driver errors the same way. The
tracker also tolerates a bare OSError (TimeoutError, ConnectionError).
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from skywatch.models.sent_alert import SentAlert

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The backing store could not complete an operation."""


@dataclass
class StoredRecord:
    partition_key: str
    row_key: str
    sent_at: datetime
    send_count: int = 1
    properties: dict[str, Any] = field(default_factory=dict)


RecordFilter = Callable[[StoredRecord], bool]


class RecordStore(Protocol):
    def get(self, partition_key: str, row_key: str) -> Optional[StoredRecord]: ...

    def upsert_replace(self, record: StoredRecord) -> None: ...

    def list_by_partition(
        self, partition_key: str, filter: Optional[RecordFilter] = None
    ) -> list[StoredRecord]: ...

    def delete(self, partition_key: str, row_key: str) -> bool: ...

    def scan(self) -> list[StoredRecord]: ...

    def replace_if_stale(self, record: StoredRecord, cutoff: datetime) -> bool: ...


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryRecordStore:
    def __init__(self) -> None:
        self._records: dict[tuple[str, str], StoredRecord] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _copy(record: StoredRecord) -> StoredRecord:
        return replace(record, sent_at=as_utc(record.sent_at), properties=dict(record.properties))

    def get(self, partition_key: str, row_key: str) -> Optional[StoredRecord]:
        with self._lock:
            record = self._records.get((partition_key, row_key))
            return self._copy(record) if record else None

    def upsert_replace(self, record: StoredRecord) -> None:
        with self._lock:
            self._records[(record.partition_key, record.row_key)] = self._copy(record)

    def list_by_partition(
        self, partition_key: str, filter: Optional[RecordFilter] = None
    ) -> list[StoredRecord]:
        with self._lock:
            records = [self._copy(r) for (pk, _), r in self._records.items() if pk == partition_key]
        if filter is not None:
            records = [r for r in records if filter(r)]
        return records

    def delete(self, partition_key: str, row_key: str) -> bool:
        with self._lock:
            return self._records.pop((partition_key, row_key), None) is not None

    def scan(self) -> list[StoredRecord]:
        with self._lock:
            return [self._copy(r) for r in self._records.values()]

    def replace_if_stale(self, record: StoredRecord, cutoff: datetime) -> bool:
        key = (record.partition_key, record.row_key)
        with self._lock:
            existing = self._records.get(key)
            if existing is not None:
                if as_utc(existing.sent_at) >= as_utc(cutoff):
                    return False
                record = replace(record, send_count=existing.send_count + 1)
            self._records[key] = self._copy(record)
            return True


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

def _to_record(row: SentAlert) -> StoredRecord:
    properties: dict[str, Any] = {}
    if row.properties:
        try:
            properties = json.loads(row.properties)
        except ValueError:
            logger.warning(
                "Unreadable properties on %s/%s, ignoring", row.partition_key, row.row_key
            )
    return StoredRecord(
        partition_key=row.partition_key,
        row_key=row.row_key,
        sent_at=as_utc(row.sent_at),
        send_count=row.send_count,
        properties=properties,
    )


def _dump(properties: dict[str, Any]) -> str:
    return json.dumps(properties, default=str)


class SqlAlchemyRecordStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    def get(self, partition_key: str, row_key: str) -> Optional[StoredRecord]:
        try:
            with self._session() as session:
                row = session.get(SentAlert, (partition_key, row_key))
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"get {partition_key}/{row_key} failed") from exc

    def upsert_replace(self, record: StoredRecord) -> None:
        try:
            with self._session() as session:
                session.merge(SentAlert(
                    partition_key=record.partition_key,
                    row_key=record.row_key,
                    sent_at=as_utc(record.sent_at),
                    send_count=record.send_count,
                    properties=_dump(record.properties),
                ))
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"upsert {record.partition_key}/{record.row_key} failed") from exc

    def list_by_partition(
        self, partition_key: str, filter: Optional[RecordFilter] = None
    ) -> list[StoredRecord]:
        try:
            with self._session() as session:
                rows = session.scalars(
                    select(SentAlert).where(SentAlert.partition_key == partition_key)
                ).all()
                records = [_to_record(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StoreError(f"list {partition_key} failed") from exc
        if filter is not None:
            records = [r for r in records if filter(r)]
        return records

    def delete(self, partition_key: str, row_key: str) -> bool:
        try:
            with self._session() as session:
                row = session.get(SentAlert, (partition_key, row_key))
                if row is None:
                    return False
                session.delete(row)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            raise StoreError(f"delete {partition_key}/{row_key} failed") from exc

    def scan(self) -> list[StoredRecord]:
        try:
            with self._session() as session:
                return [_to_record(r) for r in session.scalars(select(SentAlert)).all()]
        except SQLAlchemyError as exc:
            raise StoreError("scan failed") from exc

    def replace_if_stale(self, record: StoredRecord, cutoff: datetime) -> bool:
        """
        Insert the record, or replace an existing one whose sent_at is older
        than `cutoff`. Replacing bumps the stored send_count.
        Returns False when a fresh record already exists.

        The primary key makes the insert race-safe; on conflict the UPDATE
        carries the staleness guard in its WHERE clause so only one of two
        concurrent callers can match.
        """
        values = dict(
            sent_at=as_utc(record.sent_at),
            send_count=record.send_count,
            properties=_dump(record.properties),
        )
        try:
            with self._session() as session:
                session.add(SentAlert(
                    partition_key=record.partition_key, row_key=record.row_key, **values
                ))
                try:
                    session.commit()
                    return True
                except IntegrityError:
                    session.rollback()

                result = session.execute(
                    update(SentAlert)
                    .where(
                        SentAlert.partition_key == record.partition_key,
                        SentAlert.row_key == record.row_key,
                        SentAlert.sent_at < as_utc(cutoff),
                    )
                    .values(
                        sent_at=values["sent_at"],
                        send_count=SentAlert.send_count + 1,
                        properties=values["properties"],
                    )
                    .execution_options(synchronize_session=False)
                )
                session.commit()
                return result.rowcount == 1
        except SQLAlchemyError as exc:
            raise StoreError(f"conditional write {record.partition_key}/{record.row_key} failed") from exc
