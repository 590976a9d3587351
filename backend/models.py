"""
SQLAlchemy models for DROMIC-IS

Mirrors the schema created by scripts/migrate.py. Column names keep the
quoted camelCase names used by the database ("profileId", "user_levelId",
"userLevel") while the Python attributes are snake_case.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Boolean, Text, ForeignKey, Date, Numeric, Uuid,
    JSON, CheckConstraint, event,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow():
    return datetime.now(timezone.utc)


def as_utc(value: datetime):
    """Attach UTC to naive datetimes read back from drivers that drop tzinfo."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# USERS
# =============================================================================

class UserLevel(Base):
    """Position / role with a permission-flags blob. Higher user_level = more rank."""
    __tablename__ = "user_level"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    position = Column(String(100), nullable=False, unique=True)
    abbreviation = Column(String(20))
    user_level = Column("userLevel", Integer, nullable=False, default=1)
    permissions = Column(JSONType, default=dict)
    status = Column(String(20), default='Active')
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Inactive')", name="ck_user_level_status"),
    )


class Profile(Base):
    """Personal and location attributes of an account holder"""
    __tablename__ = "profile"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    firstname = Column(String(100), nullable=False)
    middlename = Column(String(100))
    lastname = Column(String(100), nullable=False)
    name_ext = Column(String(10))
    date_of_birth = Column(Date)
    phone_number = Column(String(20))
    address = Column(Text)
    job_title = Column(String(100))
    division = Column(String(100))
    region = Column(String(100))
    province = Column(String(100))
    city = Column(String(100))
    barangay = Column(String(100))
    image_url = Column(Text)
    status = Column(String(20), default='Active')
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Inactive', 'Suspended')", name="ck_profile_status"),
    )

    @property
    def display_name(self):
        return f"{self.firstname} {self.lastname}"


class Account(Base):
    """Login credentials, status and lockout counters"""
    __tablename__ = "account"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)  # bcrypt
    status = Column(String(20), default='Active')
    profile_id = Column("profileId", Uuid, ForeignKey("profile.id", ondelete="CASCADE"))
    user_level_id = Column("user_levelId", Uuid, ForeignKey("user_level.id", ondelete="SET NULL"))

    last_login = Column(TIMESTAMP(timezone=True))
    last_password_changed_at = Column(TIMESTAMP(timezone=True), default=_utcnow)
    failed_login_attempts = Column(Integer, default=0)
    account_locked_until = Column(TIMESTAMP(timezone=True))

    email_verified = Column(Boolean, default=False)
    email_verification_token = Column(String(255))
    password_reset_token = Column(String(255))  # sha256 digest, never the raw token
    password_reset_expires = Column(TIMESTAMP(timezone=True))
    terms_accepted = Column(Boolean, default=False)
    privacy_policy_accepted = Column(Boolean, default=False)

    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    profile = relationship("Profile")
    user_level = relationship("UserLevel")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Active', 'Inactive', 'Suspended', 'Locked')",
            name="ck_account_status",
        ),
    )

    @property
    def is_locked(self):
        locked_until = as_utc(self.account_locked_until)
        return locked_until is not None and locked_until > _utcnow()


# =============================================================================
# ACTIVITY LOG
# =============================================================================

class ActivityLog(Base):
    """
    Append-only audit trail.
    Rows are never updated or deleted by the application (see listeners below).
    """
    __tablename__ = "activity_log"

    log_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Who (NULL for failed logins against unknown credentials)
    account_id = Column(Uuid, ForeignKey("account.id", ondelete="SET NULL"))

    # What
    activity_type = Column(String(50), nullable=False)      # login, logout, failed_login, update, ...
    activity_category = Column(String(50), nullable=False)  # session, account, user
    target_table = Column(String(100))
    target_id = Column(Uuid)
    target_name = Column(String(255))

    # Details
    action_details = Column(JSONType)
    before_state = Column(JSONType)
    after_state = Column(JSONType)

    # Context
    timestamp = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    ip_address = Column(String(45))
    device_info = Column(Text)
    status = Column(String(20), default='success')
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint("status IN ('success', 'failed', 'error')", name="ck_activity_log_status"),
    )


class ImmutableActivityLogError(Exception):
    """Raised when something tries to modify a written activity_log row"""


@event.listens_for(ActivityLog, "before_update")
def _refuse_activity_log_update(mapper, connection, target):
    raise ImmutableActivityLogError(f"activity_log entry {target.log_id} cannot be modified")


@event.listens_for(ActivityLog, "before_delete")
def _refuse_activity_log_delete(mapper, connection, target):
    raise ImmutableActivityLogError(f"activity_log entry {target.log_id} cannot be deleted")


# =============================================================================
# DISASTER RECORDS
# =============================================================================

class Incident(Base):
    """Disaster incident (typhoon, flood, earthquake...)"""
    __tablename__ = "incidents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    incident_code = Column(String(50), unique=True)        # "TY-2024-001"
    incident_type = Column(String(100), nullable=False)
    incident_name = Column(String(255), nullable=False)
    description = Column(Text)
    severity_level = Column(String(20), default='Low')     # Low, Medium, High, Critical
    status = Column(String(20), default='Active')          # Active, Resolved, Monitoring, Closed

    # Location
    region = Column(String(100))
    province = Column(String(100))
    city = Column(String(100))
    barangay = Column(String(100))
    coordinates = Column(JSONType)                         # {"lat": .., "lng": ..}

    reported_by = Column(Uuid, ForeignKey("account.id"))
    assigned_to = Column(Uuid, ForeignKey("account.id"))

    date_occurred = Column(TIMESTAMP(timezone=True))
    date_reported = Column(TIMESTAMP(timezone=True), default=_utcnow)
    date_resolved = Column(TIMESTAMP(timezone=True))

    # Impact
    affected_families = Column(Integer, default=0)
    affected_persons = Column(Integer, default=0)
    casualties = Column(JSONType, default=lambda: {"dead": 0, "injured": 0, "missing": 0})
    damage_assessment = Column(JSONType)
    response_actions = Column(JSONType)
    resources_deployed = Column(JSONType)

    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "severity_level IN ('Low', 'Medium', 'High', 'Critical')",
            name="ck_incidents_severity",
        ),
        CheckConstraint(
            "status IN ('Active', 'Resolved', 'Monitoring', 'Closed')",
            name="ck_incidents_status",
        ),
    )


class EvacuationCenter(Base):
    __tablename__ = "evacuation_centers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    center_name = Column(String(255), nullable=False, unique=True)
    center_type = Column(String(50), default='School')
    capacity = Column(Integer, default=0)
    current_occupancy = Column(Integer, default=0)

    region = Column(String(100))
    province = Column(String(100))
    city = Column(String(100))
    barangay = Column(String(100))
    complete_address = Column(Text)
    coordinates = Column(JSONType)
    facilities = Column(JSONType, default=list)

    contact_person = Column(String(255))
    contact_number = Column(String(20))
    managed_by = Column(Uuid, ForeignKey("account.id"))
    status = Column(String(20), default='Available')
    opened_date = Column(TIMESTAMP(timezone=True))
    closed_date = Column(TIMESTAMP(timezone=True))

    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "center_type IN ('School', 'Barangay Hall', 'Church', 'Gymnasium', 'Other')",
            name="ck_evacuation_centers_type",
        ),
        CheckConstraint(
            "status IN ('Available', 'Full', 'Unavailable', 'Maintenance')",
            name="ck_evacuation_centers_status",
        ),
    )


class AssistanceRecord(Base):
    """Relief distributed to a family, tied to an incident"""
    __tablename__ = "assistance_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    record_code = Column(String(50), unique=True)
    incident_id = Column(Uuid, ForeignKey("incidents.id", ondelete="CASCADE"))
    family_head_name = Column(String(255), nullable=False)
    family_members = Column(Integer, default=1)
    assistance_type = Column(String(100), nullable=False)
    assistance_details = Column(JSONType)
    amount = Column(Numeric(12, 2), default=0)
    quantity = Column(Integer, default=1)
    distribution_date = Column(TIMESTAMP(timezone=True))

    region = Column(String(100))
    province = Column(String(100))
    city = Column(String(100))
    barangay = Column(String(100))
    beneficiary_address = Column(Text)

    distributed_by = Column(Uuid, ForeignKey("account.id"))
    verified_by = Column(Uuid, ForeignKey("account.id"))
    status = Column(String(20), default='Pending')
    remarks = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    incident = relationship("Incident")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Approved', 'Distributed', 'Completed', 'Cancelled')",
            name="ck_assistance_records_status",
        ),
    )


# =============================================================================
# SETTINGS / NOTIFICATIONS
# =============================================================================

class SystemSetting(Base):
    """Key-value runtime configuration stored in database"""
    __tablename__ = "system_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    setting_key = Column(String(100), nullable=False, unique=True)
    setting_value = Column(JSONType)
    description = Column(Text)
    category = Column(String(50), default='general')
    is_public = Column(Boolean, default=False)
    updated_by = Column(Uuid, ForeignKey("account.id"))
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)


class Notification(Base):
    """Per-user alert"""
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id = Column(Uuid, ForeignKey("account.id", ondelete="CASCADE"))
    notification_type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONType)
    is_read = Column(Boolean, default=False)
    read_at = Column(TIMESTAMP(timezone=True))
    priority = Column(String(20), default='Medium')
    expires_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "priority IN ('Low', 'Medium', 'High', 'Critical')",
            name="ck_notifications_priority",
        ),
    )
