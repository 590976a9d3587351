"""
Settings Helper - Read system_settings rows
"""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import SystemSetting

logger = logging.getLogger(__name__)

# Defaults used when security_settings is missing or incomplete
DEFAULT_SECURITY_SETTINGS = {
    "password_min_length": 8,
    "max_login_attempts": 5,
    "lockout_duration_minutes": 15,
    "session_timeout_minutes": 30,
}


def get_setting(db: Session, key: str, default: Any = None) -> Any:
    """Get a single setting value (the JSON blob stored under setting_key)"""
    try:
        setting = db.query(SystemSetting).filter(SystemSetting.setting_key == key).first()
    except SQLAlchemyError as e:
        logger.error(f"Error getting setting {key}: {e}")
        db.rollback()
        return default

    if not setting or setting.setting_value is None:
        return default
    return setting.setting_value


def get_public_settings(db: Session) -> dict:
    """All settings flagged is_public, keyed by setting_key"""
    rows = db.query(SystemSetting).filter(SystemSetting.is_public.is_(True)).all()
    return {row.setting_key: row.setting_value for row in rows}


def get_security_settings(db: Session) -> dict:
    """Security settings merged over the built-in defaults"""
    stored = get_setting(db, "security_settings", {})
    merged = dict(DEFAULT_SECURITY_SETTINGS)
    if isinstance(stored, dict):
        for key in DEFAULT_SECURITY_SETTINGS:
            value = stored.get(key)
            if isinstance(value, int) and value > 0:
                merged[key] = value
    return merged
