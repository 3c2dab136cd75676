"""
Alert deduplication and cooldown tracker.

Decides whether a computed condition may trigger a notification and keeps
a per-user history of what was sent.

Dedup keys
----------
  aurora            aurora_kp{whole Kp level}      5.1 and 5.7 are one event
  weather-warning   warning_{type}_{severity}_{onset date}
  digests           {prefix}_{YYYY-MM-DD}          at most one per day
  anything else     {alert_type}_{YYYY-MM-DDTHH}   at most one per hour

Records live in a RecordStore under (user_id, "{alert_type}_{dedup_key}").
A repeat of the same key after its cooldown replaces the record.

Failure policy
--------------
Store failures (StoreError, or an OSError such as a timeout or dropped
connection from a store that does not wrap them) never block a
notification: the cooldown check answers
"not recently alerted", the claim answers "go ahead", writes are logged
and dropped, history is empty.

is_recently_alerted() followed by record_alert() is not atomic; two
concurrent callers can both send. claim_alert() closes that gap with a
conditional write.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from skywatch.services.record_store import RecordStore, StoredRecord, StoreError
from skywatch.services.samples import to_float, to_time

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_HOURS = 6
DEFAULT_RETENTION_DAYS = 30
DEFAULT_HISTORY_LIMIT = 20

# Third-party stores may leak driver timeouts and socket errors unwrapped
STORE_FAILURES = (StoreError, OSError)

DIGEST_PREFIXES = {
    "daily-forecast": "daily",
    "tonights-sky": "sky",
    "news-digest": "news",
    "crypto-digest": "crypto",
}

DEFAULT_TITLES = {
    "aurora": "Aurora Alert",
    "weather-warning": "Weather Warning",
    "daily-forecast": "Daily Forecast",
    "tonights-sky": "Tonight's Sky",
    "temperature": "Temperature Alert",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_title(alert_type: str) -> str:
    return DEFAULT_TITLES.get(alert_type, "Alert")


def _date_of(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = to_time(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).date()


def dedup_key(
    alert_type: str,
    alert_data: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> str:
    """Coarse identity of "the same underlying event" for cooldown purposes."""
    data = alert_data or {}
    now = (now or utcnow()).astimezone(timezone.utc)

    if alert_type == "aurora":
        kp = to_float(data.get("kp_index", data.get("kpIndex"))) or 0.0
        return f"aurora_kp{math.floor(kp)}"

    if alert_type == "weather-warning":
        warning_type = data.get("type") or data.get("warning_type") or "unknown"
        severity = data.get("severity") or "unknown"
        onset = _date_of(data.get("onset")) or now.date()
        return f"warning_{warning_type}_{severity}_{onset.isoformat()}"

    if alert_type in DIGEST_PREFIXES:
        day = _date_of(data.get("date")) or now.date()
        return f"{DIGEST_PREFIXES[alert_type]}_{day.isoformat()}"

    return f"{alert_type}_{now:%Y-%m-%dT%H}"


def row_key_for(alert_type: str, key: str) -> str:
    return f"{alert_type}_{key}"


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class AlertRecord:
    id: str
    user_id: str
    alert_type: str
    alert_key: str
    sent_at: datetime
    send_count: int = 1
    title: str = "Alert"
    summary: str = ""
    location: str = ""
    score: Optional[float] = None
    severity: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stored(cls, record: StoredRecord) -> "AlertRecord":
        props = record.properties
        details = props.get("details")
        return cls(
            id=record.row_key,
            user_id=record.partition_key,
            alert_type=str(props.get("alert_type") or ""),
            alert_key=str(props.get("alert_key") or ""),
            sent_at=record.sent_at,
            send_count=record.send_count,
            title=_text(props.get("title")) or default_title(str(props.get("alert_type") or "")),
            summary=_text(props.get("summary")) or "",
            location=_text(props.get("location")) or "",
            score=to_float(props.get("score")),
            severity=_text(props.get("severity")),
            details=details if isinstance(details, dict) else {},
        )


class AlertTracker:
    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # Cooldown
    # ------------------------------------------------------------------

    def is_recently_alerted(
        self,
        user_id: str,
        alert_type: str,
        alert_data: Optional[Mapping[str, Any]] = None,
        cooldown_hours: float = DEFAULT_COOLDOWN_HOURS,
    ) -> bool:
        now = self.clock()
        row_key = row_key_for(alert_type, dedup_key(alert_type, alert_data, now))
        try:
            record = self.store.get(user_id, row_key)
        except STORE_FAILURES:
            logger.warning("Cooldown check failed for %s/%s, allowing alert", user_id, row_key, exc_info=True)
            return False
        if record is None:
            return False
        return now - record.sent_at < timedelta(hours=cooldown_hours)

    def record_alert(
        self,
        user_id: str,
        alert_type: str,
        alert_data: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Upsert the send record. Returns False (and logs) if the store failed."""
        now = self.clock()
        record = self._build_record(user_id, alert_type, alert_data, now)
        try:
            existing = self.store.get(user_id, record.row_key)
            if existing is not None:
                record.send_count = existing.send_count + 1
            self.store.upsert_replace(record)
        except STORE_FAILURES:
            logger.error("Failed to record %s alert for %s", alert_type, user_id, exc_info=True)
            return False
        logger.info("Recorded %s alert for %s (%s)", alert_type, user_id, record.row_key)
        return True

    def claim_alert(
        self,
        user_id: str,
        alert_type: str,
        alert_data: Optional[Mapping[str, Any]] = None,
        cooldown_hours: float = DEFAULT_COOLDOWN_HOURS,
    ) -> bool:
        """
        Atomically check the cooldown and record the send.

        Returns True when this caller may send: no record existed, or the
        existing one was past its cooldown. Two concurrent claims for the
        same key cannot both win.
        """
        now = self.clock()
        record = self._build_record(user_id, alert_type, alert_data, now)
        cutoff = now - timedelta(hours=cooldown_hours)
        try:
            won = self.store.replace_if_stale(record, cutoff)
        except STORE_FAILURES:
            logger.warning("Claim failed for %s/%s, allowing alert", user_id, record.row_key, exc_info=True)
            return True
        if not won:
            logger.debug("Suppressed %s for %s: within %sh cooldown", record.row_key, user_id, cooldown_hours)
        return won

    # ------------------------------------------------------------------
    # History and retention
    # ------------------------------------------------------------------

    def history(
        self,
        user_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
        alert_type: Optional[str] = None,
    ) -> list[AlertRecord]:
        """Newest first."""
        def wanted(record: StoredRecord) -> bool:
            return alert_type is None or record.properties.get("alert_type") == alert_type

        try:
            stored = self.store.list_by_partition(user_id, wanted)
        except STORE_FAILURES:
            logger.warning("Could not load alert history for %s", user_id, exc_info=True)
            return []
        stored.sort(key=lambda r: r.sent_at, reverse=True)
        return [AlertRecord.from_stored(r) for r in stored[:max(limit, 0)]]

    def purge_older_than(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        """Delete every record sent before now - retention_days. Returns the count removed."""
        cutoff = self.clock() - timedelta(days=retention_days)
        deleted = 0
        try:
            for record in self.store.scan():
                if record.sent_at < cutoff:
                    if self.store.delete(record.partition_key, record.row_key):
                        deleted += 1
        except STORE_FAILURES:
            logger.error("Alert purge stopped after %d deletions", deleted, exc_info=True)
            return deleted
        logger.info("Purged %d alert records older than %d days", deleted, retention_days)
        return deleted

    # ------------------------------------------------------------------

    def _build_record(
        self,
        user_id: str,
        alert_type: str,
        alert_data: Optional[Mapping[str, Any]],
        now: datetime,
    ) -> StoredRecord:
        data = dict(alert_data or {})
        key = dedup_key(alert_type, data, now)
        return StoredRecord(
            partition_key=user_id,
            row_key=row_key_for(alert_type, key),
            sent_at=now,
            send_count=1,
            properties={
                "alert_type": alert_type,
                "alert_key": key,
                "title": _text(data.get("title")) or default_title(alert_type),
                "summary": _text(data.get("summary")) or "",
                "location": _text(data.get("location")) or "",
                "score": to_float(data.get("score")),
                "severity": _text(data.get("severity")),
                "details": data,
            },
        )
