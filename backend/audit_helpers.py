"""
Activity log writer

Every mutating or security-relevant operation appends one activity_log row.
The caller commits its own work first; the audit row is committed on its own
so a failed audit write can be rolled back without touching the primary
change.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from models import ActivityLog

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "::1"


def device_info(request: Request) -> str:
    return request.headers.get("user-agent") or "Unknown"


def session_context(request: Request) -> dict:
    """Browser and request metadata attached to session events."""
    return {
        "browser_info": {
            "user_agent": device_info(request),
            "accept_language": request.headers.get("accept-language") or "Unknown",
            "referer": request.headers.get("referer") or "Direct",
        },
        "security_context": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_method": request.method,
            "origin": request.headers.get("origin") or "Unknown",
        },
    }


def log_activity(
    db: Session,
    request: Request,
    account_id,
    activity_type: str,
    activity_category: str,
    details: Optional[dict] = None,
    status: str = "success",
    target_table: Optional[str] = "account",
    target_id=None,
    target_name: Optional[str] = None,
    before_state: Optional[dict] = None,
    after_state: Optional[dict] = None,
    notes: Optional[str] = None,
) -> Optional[ActivityLog]:
    """
    Append an activity_log row and commit it.

    Never raises: audit failures are logged and rolled back.
    Returns the written entry, or None if the write failed.
    """
    if activity_category == "session":
        details = {**(details or {}), **session_context(request)}

    try:
        entry = ActivityLog(
            account_id=account_id,
            activity_type=activity_type,
            activity_category=activity_category,
            target_table=target_table,
            target_id=target_id if target_id is not None else account_id,
            target_name=target_name,
            action_details=jsonable_encoder(details) if details is not None else None,
            before_state=jsonable_encoder(before_state) if before_state is not None else None,
            after_state=jsonable_encoder(after_state) if after_state is not None else None,
            ip_address=client_ip(request),
            device_info=device_info(request),
            status=status,
            notes=notes,
        )
        db.add(entry)
        db.commit()
        return entry
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to write activity log ({activity_type}/{activity_category}): {e}")
        return None


def serialize_activity(entry: ActivityLog) -> dict:
    return {
        "log_id": str(entry.log_id),
        "activity_type": entry.activity_type,
        "activity_category": entry.activity_category,
        "target_table": entry.target_table,
        "target_name": entry.target_name,
        "action_details": entry.action_details,
        "before_state": entry.before_state,
        "after_state": entry.after_state,
        "timestamp": entry.timestamp.isoformat() if entry.timestamp else None,
        "ip_address": entry.ip_address,
        "device_info": entry.device_info,
        "status": entry.status,
        "notes": entry.notes,
    }
