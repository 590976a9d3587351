"""
User self-service router

Profile / account edits, password change, the caller's own activity history
and notifications. Every endpoint acts on the account named in the token.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit_helpers import log_activity, serialize_activity
from database import get_db
from jwt_auth import TokenClaims, require_claims
from models import Account, ActivityLog, Notification, as_utc
from routers.auth import load_active_account, hash_password, verify_password
from schemas_auth import ProfileUpdate, AccountUpdate, ChangePasswordRequest

logger = logging.getLogger(__name__)
router = APIRouter()


def _profile_snapshot(profile) -> dict:
    return {
        "firstname": profile.firstname,
        "middlename": profile.middlename,
        "lastname": profile.lastname,
        "phone_number": profile.phone_number,
        "address": profile.address,
        "job_title": profile.job_title,
        "division": profile.division,
        "region": profile.region,
        "province": profile.province,
        "city": profile.city,
        "barangay": profile.barangay,
        "date_of_birth": profile.date_of_birth,
    }


def _parse(model, body: dict):
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


# =============================================================================
# PROFILE / ACCOUNT
# =============================================================================


@router.patch("/profile")
async def update_profile(
    request: Request,
    body: dict = Body(...),
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    """
    Update the caller's profile or account.

    Body carries updateType = "profile" | "account" plus that type's fields.
    """
    payload = dict(body)
    update_type = payload.pop("updateType", None)

    if update_type == "profile":
        data = _parse(ProfileUpdate, payload)
        account = load_active_account(db, claims.user_id)
        profile = account.profile
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")

        before = _profile_snapshot(profile)

        profile.firstname = data.first_name.strip()
        profile.middlename = data.middle_name or None
        profile.lastname = data.last_name.strip()
        profile.phone_number = data.phone_number
        profile.address = data.address
        profile.job_title = data.job_title
        profile.division = data.division or None
        profile.region = data.region
        profile.province = data.province
        profile.city = data.city
        profile.barangay = data.barangay or None
        profile.date_of_birth = data.date_of_birth
        db.commit()

        after = _profile_snapshot(profile)
        profile_id = profile.id

        log_activity(
            db, request, claims.user_id, "update", "user",
            target_table="profile",
            target_id=profile_id,
            target_name=f"{data.first_name} {data.last_name}",
            details={
                "message": "Profile updated",
                "changed_fields": sorted(k for k in after if after[k] != before[k]),
            },
            before_state=before,
            after_state=after,
        )
        return {"message": "Profile updated successfully"}

    if update_type == "account":
        data = _parse(AccountUpdate, payload)
        account = load_active_account(db, claims.user_id)

        username = data.username.strip()
        email = data.email.lower()

        conflict = db.query(Account).filter(
            Account.id != account.id,
            or_(func.lower(Account.email) == email, Account.username == username),
        ).first()
        if conflict:
            raise HTTPException(status_code=409, detail="Username or email already in use")

        before = {"username": account.username, "email": account.email}
        account.username = username
        account.email = email
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=409, detail="Username or email already in use")

        log_activity(
            db, request, claims.user_id, "update", "account",
            target_table="account",
            target_name=username,
            details={"message": "Account details updated"},
            before_state=before,
            after_state={"username": username, "email": email},
        )
        return {"message": "Account updated successfully"}

    raise HTTPException(status_code=400, detail="Invalid update type")


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    request: Request,
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    account = load_active_account(db, claims.user_id)

    if not verify_password(data.current_password, account.password):
        logger.warning(f"Password change with wrong current password: {account.username}")
        log_activity(
            db, request, claims.user_id, "update", "account",
            status="failed",
            details={"message": "Password change failed", "reason": "invalid_current_password"},
        )
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    before = {"last_password_changed_at": as_utc(account.last_password_changed_at)}
    changed_at = datetime.now(timezone.utc)

    account.password = hash_password(data.new_password)
    account.last_password_changed_at = changed_at
    db.commit()

    log_activity(
        db, request, claims.user_id, "update", "account",
        details={"message": "Password changed"},
        before_state=before,
        after_state={"last_password_changed_at": changed_at},
    )
    return {"message": "Password changed successfully"}


# =============================================================================
# ACTIVITY
# =============================================================================


@router.get("/activity")
async def get_activity(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    activity_type: Optional[str] = None,
    activity_category: Optional[str] = None,
    days: int = Query(30, ge=0),
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    """Caller's activity log, newest first. days=0 returns all history."""
    query = db.query(ActivityLog).filter(ActivityLog.account_id == claims.user_id)

    if activity_type:
        query = query.filter(ActivityLog.activity_type == activity_type)
    if activity_category:
        query = query.filter(ActivityLog.activity_category == activity_category)
    if days > 0:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        query = query.filter(ActivityLog.timestamp >= since)

    total = query.count()
    offset = (page - 1) * limit
    rows = query.order_by(ActivityLog.timestamp.desc()).offset(offset).limit(limit).all()

    return {
        "activities": [serialize_activity(r) for r in rows],
        "hasMore": offset + len(rows) < total,
        "total": total,
        "page": page,
        "limit": limit,
    }


# =============================================================================
# NOTIFICATIONS
# =============================================================================


def _serialize_notification(n: Notification) -> dict:
    return {
        "id": str(n.id),
        "type": n.notification_type,
        "title": n.title,
        "message": n.message,
        "data": n.data,
        "priority": n.priority,
        "is_read": bool(n.is_read),
        "read_at": n.read_at.isoformat() if n.read_at else None,
        "expires_at": n.expires_at.isoformat() if n.expires_at else None,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("/notifications")
async def list_notifications(
    unread_only: bool = False,
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    now = datetime.now(timezone.utc)
    query = db.query(Notification).filter(
        Notification.recipient_id == claims.user_id,
        or_(Notification.expires_at.is_(None), Notification.expires_at > now),
    )
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    rows = query.order_by(Notification.created_at.desc()).all()
    return {
        "notifications": [_serialize_notification(n) for n in rows],
        "unread": sum(1 for n in rows if not n.is_read),
    }


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: UUID,
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_id == claims.user_id,
    ).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        db.commit()

    return {"message": "Notification marked as read", "id": str(notification_id)}
