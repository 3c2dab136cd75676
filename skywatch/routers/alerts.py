"""
Alert history router.

GET  /alerts/{user_id}/history — sent alerts, newest first
POST /alerts/purge             — retention sweep
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from skywatch.core.config import settings
from skywatch.db.base import SessionLocal
from skywatch.schemas.alerts import (
    AlertHistoryResponse,
    AlertRecordResponse,
    PurgeRequest,
    PurgeResponse,
)
from skywatch.services.alert_tracker import AlertTracker
from skywatch.services.record_store import SqlAlchemyRecordStore

router = APIRouter(prefix="/alerts", tags=["alerts"])


def get_alert_tracker() -> AlertTracker:
    return AlertTracker(SqlAlchemyRecordStore(SessionLocal))


@router.get(
    "/{user_id}/history",
    response_model=AlertHistoryResponse,
    summary="Alert history for a user (newest first)",
)
def alert_history(
    user_id: str,
    limit: int = Query(default=20, ge=1, le=200, description="Max items."),
    alert_type: Optional[str] = Query(
        default=None,
        description="Filter by alert type, e.g. aurora or weather-warning.",
        examples=["aurora"],
    ),
    tracker: AlertTracker = Depends(get_alert_tracker),
):
    """Store failures return an empty list rather than an error."""
    records = tracker.history(user_id, limit=limit, alert_type=alert_type)
    items = [AlertRecordResponse.model_validate(r) for r in records]
    return AlertHistoryResponse(user_id=user_id, total=len(items), items=items)


@router.post("/purge", response_model=PurgeResponse, summary="Delete old alert records")
def purge_alerts(
    body: Optional[PurgeRequest] = Body(default=None),
    tracker: AlertTracker = Depends(get_alert_tracker),
):
    """
    Deletes records sent more than `retention_days` ago, whether or not
    their cooldown has expired.
    """
    days = settings.ALERT_HISTORY_DAYS
    if body is not None and body.retention_days is not None:
        days = body.retention_days
    deleted = tracker.purge_older_than(days)
    return PurgeResponse(deleted=deleted, retention_days=days)
