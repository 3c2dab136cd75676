"""
Alert history and retention schemas.

GET  /alerts/{user_id}/history → AlertHistoryResponse
POST /alerts/purge             → PurgeResponse
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class AlertRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description='Row key, "{alert_type}_{dedup_key}".')
    alert_type: str
    alert_key: str
    sent_at: datetime
    send_count: int
    title: str
    summary: str
    location: str
    score: Optional[float] = None
    severity: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)


class AlertHistoryResponse(BaseModel):
    user_id: str
    total: int
    items: list[AlertRecordResponse]


class PurgeRequest(BaseModel):
    retention_days: Optional[int] = Field(
        default=None,
        ge=1,
        description="Delete records older than this many days. Defaults to ALERT_HISTORY_DAYS.",
    )


class PurgeResponse(BaseModel):
    deleted: int
    retention_days: int
