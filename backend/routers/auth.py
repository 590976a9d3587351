"""
Authentication Router

- Login: checks lockout + status, verifies bcrypt hash, issues JWT cookie
- Logout: clears cookie, records the session end
- Me: current account with profile and user level
- Register: profile + account created in one transaction
- Forgot / reset password: e-mailed one-hour reset token

Failures return generic messages; the reason, attempt counts and lock state go
to activity_log instead.
"""

import os
import hashlib
import secrets
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

import bcrypt
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import case, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from audit_helpers import log_activity
from database import get_db
from email_service import send_password_reset
from jwt_auth import (
    TokenClaims,
    create_access_token,
    new_session_id,
    get_optional_claims,
    require_claims,
    set_auth_cookie,
    clear_auth_cookie,
)
from models import Account, Profile, UserLevel, as_utc
from schemas_auth import (
    LoginRequest,
    RegisterRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from settings_helper import get_security_settings

logger = logging.getLogger(__name__)
router = APIRouter()

BCRYPT_SALT_ROUNDS = int(os.environ.get("BCRYPT_SALT_ROUNDS", "10"))
RESET_TOKEN_LIFETIME = timedelta(hours=1)
SECURITY_ALERT_ATTEMPTS = 3

INVALID_CREDENTIALS = "Invalid email/username or password"
RESET_REQUESTED = "If an account exists for that e-mail, a reset link has been sent."


# =============================================================================
# HELPERS
# =============================================================================


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError, AttributeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=BCRYPT_SALT_ROUNDS)).decode('utf-8')


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _now():
    return datetime.now(timezone.utc)


def load_active_account(db: Session, account_id) -> Account:
    """Active account for the token's user id, or 404."""
    account = db.query(Account).options(
        joinedload(Account.profile),
        joinedload(Account.user_level),
    ).filter(
        Account.id == account_id,
        Account.status == 'Active',
    ).first()

    if not account:
        raise HTTPException(status_code=404, detail="User not found or inactive")
    return account


def _find_existing_account(db: Session, email: str, username: str) -> Optional[Account]:
    return db.query(Account).filter(
        or_(func.lower(Account.email) == email.lower(), Account.username == username)
    ).first()


def user_summary(account: Account) -> dict:
    profile = account.profile
    level = account.user_level
    return {
        "id": str(account.id),
        "email": account.email,
        "username": account.username,
        "firstName": profile.firstname if profile else None,
        "lastName": profile.lastname if profile else None,
        "imageUrl": profile.image_url if profile else None,
        "position": level.position if level else None,
        "abbreviation": level.abbreviation if level else None,
    }


def serialize_user(account: Account) -> dict:
    profile = account.profile
    level = account.user_level
    return {
        "id": str(account.id),
        "username": account.username,
        "email": account.email,
        "status": account.status,
        "lastLogin": account.last_login.isoformat() if account.last_login else None,
        "createdAt": account.created_at.isoformat() if account.created_at else None,
        "profile": {
            "firstName": profile.firstname,
            "lastName": profile.lastname,
            "middleName": profile.middlename,
            "nameExtension": profile.name_ext,
            "imageUrl": profile.image_url,
            "region": profile.region,
            "province": profile.province,
            "city": profile.city,
            "barangay": profile.barangay,
            "dateOfBirth": profile.date_of_birth.isoformat() if profile.date_of_birth else None,
            "phoneNumber": profile.phone_number,
            "address": profile.address,
            "jobTitle": profile.job_title,
            "division": profile.division,
        } if profile else None,
        "userLevel": {
            "position": level.position,
            "abbreviation": level.abbreviation,
            "level": level.user_level,
        } if level else None,
    }


# =============================================================================
# LOGIN
# =============================================================================


def _record_failed_attempt(db: Session, account: Account, threshold: int, lock_minutes: int):
    """
    Increment the failed-attempt counter and set the lock in one UPDATE.
    Returns (attempts, locked_until) as stored.
    """
    next_attempts = func.coalesce(Account.failed_login_attempts, 0) + 1
    lock_until = _now() + timedelta(minutes=lock_minutes)

    db.execute(
        update(Account)
        .where(Account.id == account.id)
        .values(
            failed_login_attempts=next_attempts,
            account_locked_until=case((next_attempts >= threshold, lock_until), else_=None),
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(account)
    return account.failed_login_attempts, as_utc(account.account_locked_until)


@router.post("/login")
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    identifier = data.email.strip()

    account = db.query(Account).options(
        joinedload(Account.profile),
        joinedload(Account.user_level),
    ).filter(
        or_(func.lower(Account.email) == identifier.lower(), Account.username == identifier)
    ).first()

    if not account:
        log_activity(
            db, request, None, "failed_login", "session",
            status="failed",
            details={
                "message": "Login attempt with invalid email/username",
                "email_or_username": identifier,
                "reason": "user_not_found",
                "security_concern": "potential_brute_force",
                "attempted_credential": "email" if "@" in identifier else "username",
            },
        )
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    account_id = account.id

    if account.is_locked:
        logger.warning(f"Login attempt on locked account: {account.username}")
        log_activity(
            db, request, account_id, "failed_login", "session",
            status="failed",
            details={
                "message": "Login attempt on locked account",
                "email": account.email,
                "username": account.username,
                "reason": "account_locked",
                "locked_until": as_utc(account.account_locked_until),
            },
        )
        raise HTTPException(status_code=423, detail="Account is temporarily locked. Please try again later.")

    if account.status != 'Active':
        log_activity(
            db, request, account_id, "failed_login", "session",
            status="failed",
            details={
                "message": "Login attempt on inactive account",
                "email": account.email,
                "username": account.username,
                "reason": "account_inactive",
                "account_status": account.status,
            },
        )
        raise HTTPException(status_code=403, detail="Account is not active. Please contact administrator.")

    if not verify_password(data.password, account.password):
        security = get_security_settings(db)
        threshold = security["max_login_attempts"]
        previous_attempts = account.failed_login_attempts or 0

        attempts, locked_until = _record_failed_attempt(
            db, account, threshold, security["lockout_duration_minutes"]
        )
        if locked_until:
            logger.warning(f"Account {account.username} locked until {locked_until.isoformat()} after {attempts} failed attempts")

        log_activity(
            db, request, account_id, "failed_login", "session",
            status="failed",
            details={
                "message": "Login attempt with invalid password",
                "email": account.email,
                "username": account.username,
                "reason": "invalid_password",
                "failed_attempts": attempts,
                "account_locked": locked_until is not None,
                "locked_until": locked_until,
                "security_alert": attempts >= SECURITY_ALERT_ATTEMPTS,
                "lockout_threshold": threshold,
                "previous_failed_attempts": previous_attempts,
            },
        )
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    previous_login = account.last_login
    account.failed_login_attempts = 0
    account.account_locked_until = None
    account.last_login = _now()
    db.commit()

    position = account.user_level.position if account.user_level else None
    session_id = new_session_id()
    token = create_access_token(
        user_id=account.id,
        email=account.email,
        user_level_id=account.user_level_id,
        position=position,
        session_id=session_id,
    )
    summary = user_summary(account)

    log_activity(
        db, request, account_id, "login", "session",
        details={
            "message": "Successful login",
            "email": summary["email"],
            "username": summary["username"],
            "login_method": "password",
            "session_duration": "7_days",
            "session_id": session_id,
            "user_level": position,
            "last_login": previous_login,
            "failed_attempts_reset": True,
            "authentication_flow": "standard_login",
        },
    )

    set_auth_cookie(response, token)
    logger.info(f"Login: {summary['username']}")

    return {"message": "Login successful", "user": summary}


# =============================================================================
# LOGOUT / ME
# =============================================================================


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    claims = get_optional_claims(request)
    if claims:
        log_activity(
            db, request, claims.user_id, "logout", "session",
            details={"message": "User logged out", "session_id": claims.session_id},
        )

    clear_auth_cookie(response)
    return {"message": "Logout successful"}


@router.get("/me")
async def get_current_user(
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    account = load_active_account(db, claims.user_id)
    return {"user": serialize_user(account)}


# =============================================================================
# REGISTER
# =============================================================================


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    email = data.email.lower().strip()
    username = data.username.strip()

    if _find_existing_account(db, email, username):
        raise HTTPException(status_code=400, detail="User with this email or username already exists")

    level = db.query(UserLevel).filter(
        UserLevel.position == data.position,
        UserLevel.status == 'Active',
    ).first()
    if not level:
        raise HTTPException(status_code=400, detail="Invalid position selected")

    password_hash = hash_password(data.password)

    # Profile and account are written together or not at all
    try:
        profile = Profile(
            firstname=data.first_name.strip(),
            middlename=data.middle_initial or None,
            lastname=data.last_name.strip(),
            date_of_birth=data.date_of_birth,
            phone_number=data.phone_number,
            address=data.address,
            job_title=data.job_title,
            division=data.division or None,
            region=data.region or None,
            province=data.province or None,
            city=data.city or None,
            barangay=data.barangay or None,
            status='Active',
        )
        db.add(profile)
        db.flush()

        account = Account(
            username=username,
            email=email,
            password=password_hash,
            status='Active',
            profile_id=profile.id,
            user_level_id=level.id,
            terms_accepted=data.terms_accepted,
            failed_login_attempts=0,
        )
        db.add(account)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Registration conflict for {username}: {e.orig}")
        raise HTTPException(status_code=400, detail="User with this email or username already exists")

    account_id = account.id
    token = create_access_token(
        user_id=account_id,
        email=email,
        user_level_id=level.id,
        position=level.position,
        session_id=new_session_id(),
    )

    log_activity(
        db, request, account_id, "register", "account",
        details={"message": "Account registered", "username": username, "position": data.position},
        after_state={"username": username, "email": email, "position": data.position},
    )

    set_auth_cookie(response, token)
    logger.info(f"Registered account: {username}")

    return {
        "message": "Registration successful",
        "user": {
            "id": str(account_id),
            "email": email,
            "firstName": data.first_name,
            "lastName": data.last_name,
            "position": data.position,
        },
    }


# =============================================================================
# PASSWORD RESET
# =============================================================================


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    account = db.query(Account).filter(
        func.lower(Account.email) == data.email.lower()
    ).first()

    if not account or account.status != 'Active':
        logger.info("Password reset requested for unknown or inactive e-mail")
        return {"message": RESET_REQUESTED}

    token = secrets.token_urlsafe(32)
    account.password_reset_token = hash_reset_token(token)
    account.password_reset_expires = _now() + RESET_TOKEN_LIFETIME
    db.commit()

    user_name = account.profile.firstname if account.profile else account.username
    sent = send_password_reset(account.email, token, user_name)

    log_activity(
        db, request, account.id, "password_reset_request", "account",
        details={"message": "Password reset requested", "email_sent": sent},
    )

    return {"message": RESET_REQUESTED}


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    account = db.query(Account).filter(
        Account.password_reset_token == hash_reset_token(data.token)
    ).first()

    expires = as_utc(account.password_reset_expires) if account else None
    if not account or not expires or expires < _now():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    before = {
        "last_password_changed_at": as_utc(account.last_password_changed_at),
        "failed_login_attempts": account.failed_login_attempts,
        "account_locked_until": as_utc(account.account_locked_until),
    }

    changed_at = _now()
    account.password = hash_password(data.password)
    account.password_reset_token = None
    account.password_reset_expires = None
    account.failed_login_attempts = 0
    account.account_locked_until = None
    account.last_password_changed_at = changed_at
    db.commit()

    log_activity(
        db, request, account.id, "password_reset", "account",
        details={"message": "Password reset via e-mailed token"},
        before_state=before,
        after_state={
            "last_password_changed_at": changed_at,
            "failed_login_attempts": 0,
            "account_locked_until": None,
        },
    )

    return {"message": "Password has been reset successfully"}
