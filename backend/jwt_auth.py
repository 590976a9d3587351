"""
JWT Session Module for DROMIC-IS

Sessions are stateless: a signed JWT carries the account id, e-mail, user
level, position (role) and a per-login session id. Validation is signature +
expiry only (CPU, no DB hit); routes that need the live account load it
themselves.

Delivery:
- Browser: httpOnly cookie named "auth-token", 7-day lifetime, SameSite=strict
- API clients: Authorization: Bearer <token>

DEPENDENCIES: PyJWT
"""

import os
import uuid
import secrets
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt  # PyJWT
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

# JWT signing key. MUST be set in production via environment variable.
# If not set, generates a random key (tokens invalidated on restart, fine for dev).
_default_secret = secrets.token_urlsafe(64)
JWT_SECRET = os.environ.get("JWT_SECRET", _default_secret)
if JWT_SECRET == _default_secret:
    logger.warning(
        "JWT_SECRET not set in environment, using random key. "
        "Tokens will be invalidated on restart."
    )

JWT_ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32
ACCESS_TOKEN_LIFETIME = timedelta(days=7)

ACCESS_COOKIE = "auth-token"


def secret_is_configured() -> bool:
    """True when JWT_SECRET is set in the environment and long enough."""
    return len(os.environ.get("JWT_SECRET", "")) >= MIN_SECRET_LENGTH


def _secure_cookies() -> bool:
    return os.environ.get("ENVIRONMENT", "development") == "production"


# =============================================================================
# TOKEN CREATION
# =============================================================================


def create_access_token(
    user_id,
    email: str,
    user_level_id=None,
    position: Optional[str] = None,
    session_id: Optional[str] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: Account UUID
        email: Account e-mail
        user_level_id: UserLevel UUID
        position: Role name (e.g., "Field Officer")
        session_id: Per-login session identifier, recorded in the activity log

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)

    payload = {
        "user_id": str(user_id),
        "email": email,
        "user_level_id": str(user_level_id) if user_level_id else None,
        "position": position,
        "session_id": session_id,
        "iat": now,
        "exp": now + ACCESS_TOKEN_LIFETIME,
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def new_session_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# TOKEN VALIDATION
# =============================================================================


class TokenClaims:
    """Parsed and validated JWT claims."""

    __slots__ = (
        "user_id",
        "email",
        "user_level_id",
        "position",
        "session_id",
        "exp",
    )

    def __init__(self, payload: dict):
        self.user_id = uuid.UUID(payload["user_id"])
        self.email = payload.get("email")
        self.user_level_id = payload.get("user_level_id")
        self.position = payload.get("position")
        self.session_id = payload.get("session_id")
        self.exp = payload.get("exp")


def validate_access_token(token: str) -> Optional[TokenClaims]:
    """
    Validate a JWT access token by checking its signature and expiration.

    Returns:
        TokenClaims if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return TokenClaims(payload)
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid JWT: {e}")
        return None
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(f"JWT with malformed claims: {e}")
        return None


def extract_token_from_request(request) -> Optional[str]:
    """
    Extract JWT access token from request.

    Priority order:
    1. Authorization: Bearer <token> header (API clients)
    2. auth-token cookie (browser)
    """
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]

    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token

    return None


def get_optional_claims(request: Request) -> Optional[TokenClaims]:
    token = extract_token_from_request(request)
    if not token:
        return None
    return validate_access_token(token)


def require_claims(request: Request) -> TokenClaims:
    """FastAPI dependency: 401 unless the request carries a valid token."""
    token = extract_token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="No authentication token found")

    claims = validate_access_token(token)
    if not claims:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return claims


# =============================================================================
# COOKIE HELPERS
# =============================================================================


def set_auth_cookie(response, access_token: str):
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        max_age=int(ACCESS_TOKEN_LIFETIME.total_seconds()),
        httponly=True,
        secure=_secure_cookies(),
        samesite="strict",
        path="/",
    )


def clear_auth_cookie(response):
    response.delete_cookie(
        key=ACCESS_COOKIE,
        path="/",
        httponly=True,
        secure=_secure_cookies(),
        samesite="strict",
    )
