"""
Health Router - Readiness probe for load balancers and uptime monitors

- unhealthy (503): database unreachable
- degraded (200): database fine but configuration or reference data missing
- healthy (200): everything checks out
"""

import os
import sys
import time
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from jwt_auth import secret_is_configured
from services.location.psgc import get_regions

logger = logging.getLogger(__name__)
router = APIRouter()

APP_VERSION = "1.0.0"
REQUIRED_ENV_VARS = ("DATABASE_URL", "JWT_SECRET")

_started = time.monotonic()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _check_database(db: Session):
    """Returns (ok, error message)."""
    try:
        db.execute(text("SELECT 1")).scalar()
        return True, None
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {e}")
        return False, str(e)


def _check_psgc():
    try:
        return len(get_regions()) > 0
    except (OSError, ValueError) as e:
        logger.error(f"Health check could not load PSGC regions: {e}")
        return False


@router.get("")
async def health(response: Response, db: Session = Depends(get_db)):
    started = time.perf_counter()
    warnings = []

    db_ok, db_error = _check_database(db)

    jwt_ok = secret_is_configured()
    if not jwt_ok:
        warnings.append("JWT_SECRET is missing or shorter than 32 characters")

    missing = [name for name in REQUIRED_ENV_VARS if not os.environ.get(name)]
    env_ok = not missing
    if missing:
        warnings.append(f"Missing environment variables: {', '.join(missing)}")

    psgc_ok = _check_psgc()
    if not psgc_ok:
        warnings.append("PSGC region data unavailable")

    if not db_ok:
        status = "unhealthy"
    elif jwt_ok and env_ok and psgc_ok:
        status = "healthy"
    else:
        status = "degraded"

    metadata = {
        "warnings": warnings,
        "python_version": sys.version.split()[0],
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }
    if db_error:
        metadata["error"] = db_error

    response.status_code = 503 if status == "unhealthy" else 200
    response.headers.update(NO_CACHE_HEADERS)

    return {
        "status": status,
        "environment": os.environ.get("ENVIRONMENT", "development"),
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _started, 1),
        "services": {
            "database": "connected" if db_ok else "disconnected",
            "api": "operational",
            "authentication": "configured" if jwt_ok else "misconfigured",
        },
        "checks": {
            "database_query": db_ok,
            "jwt_secret": jwt_ok,
            "environment_vars": env_ok,
            "psgc_data": psgc_ok,
        },
        "metadata": metadata,
    }
