"""
SentAlert — one live dedup record per (partition_key, row_key).

partition_key: the user id.
row_key:       "{alert_type}_{dedup_key}", e.g. "aurora_aurora_kp5".

Rows are replaced (not appended) when the same key fires again after its
cooldown; send_count tracks how many times that happened. A retention
sweep deletes rows by sent_at regardless of cooldown state.

properties: JSON-encoded dict with display details (title, summary,
location, score, severity, raw alert data).
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from skywatch.db.base import Base


class SentAlert(Base):
    __tablename__ = "sent_alerts"

    partition_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    row_key: Mapped[str] = mapped_column(String(256), primary_key=True)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    send_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    properties: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="JSON-encoded dict with alert display details",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
