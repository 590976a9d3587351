#!/usr/bin/env python3
"""
DROMIC-IS schema migration

Creates every table, index and updated_at trigger used by the backend.
Safe to re-run: all statements use IF NOT EXISTS / OR REPLACE.

Usage:
    python migrate.py migrate     # Create / update schema
    python migrate.py status      # List tables and index count

Connection:
    DATABASE_URL if set, otherwise DB_HOST / DB_PORT / DB_NAME / DB_USER / DB_PASSWORD
"""

import os
import sys

import psycopg2
from psycopg2.extras import RealDictCursor

DB_HOST = os.environ.get("DB_HOST", "localhost")
DB_PORT = int(os.environ.get("DB_PORT", "5432"))
DB_NAME = os.environ.get("DB_NAME", "dromic_staging")
DB_USER = os.environ.get("DB_USER", "postgres")
DB_PASSWORD = os.environ.get("DB_PASSWORD", "password")

TABLES = [
    "user_level",
    "profile",
    "account",
    "activity_log",
    "incidents",
    "evacuation_centers",
    "assistance_records",
    "system_settings",
    "notifications",
]

# Tables with an updated_at column kept current by trigger
TIMESTAMPED_TABLES = [
    "user_level",
    "profile",
    "account",
    "incidents",
    "evacuation_centers",
    "assistance_records",
    "system_settings",
]

SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS "pgcrypto";

CREATE TABLE IF NOT EXISTS user_level (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    position VARCHAR(100) NOT NULL UNIQUE,
    abbreviation VARCHAR(20),
    "userLevel" INTEGER NOT NULL DEFAULT 1,
    permissions JSONB DEFAULT '{}'::jsonb,
    status VARCHAR(20) DEFAULT 'Active' CHECK (status IN ('Active', 'Inactive')),
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS profile (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    firstname VARCHAR(100) NOT NULL,
    middlename VARCHAR(100),
    lastname VARCHAR(100) NOT NULL,
    name_ext VARCHAR(10),
    date_of_birth DATE,
    phone_number VARCHAR(20),
    address TEXT,
    job_title VARCHAR(100),
    division VARCHAR(100),
    region VARCHAR(100),
    province VARCHAR(100),
    city VARCHAR(100),
    barangay VARCHAR(100),
    image_url TEXT,
    status VARCHAR(20) DEFAULT 'Active' CHECK (status IN ('Active', 'Inactive', 'Suspended')),
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS account (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    username VARCHAR(50) NOT NULL UNIQUE,
    email VARCHAR(255) NOT NULL UNIQUE,
    password VARCHAR(255) NOT NULL,
    status VARCHAR(20) DEFAULT 'Active' CHECK (status IN ('Active', 'Inactive', 'Suspended', 'Locked')),
    "profileId" UUID REFERENCES profile(id) ON DELETE CASCADE,
    "user_levelId" UUID REFERENCES user_level(id) ON DELETE SET NULL,
    last_login TIMESTAMPTZ,
    last_password_changed_at TIMESTAMPTZ DEFAULT NOW(),
    failed_login_attempts INTEGER DEFAULT 0,
    account_locked_until TIMESTAMPTZ,
    email_verified BOOLEAN DEFAULT FALSE,
    email_verification_token VARCHAR(255),
    password_reset_token VARCHAR(255),
    password_reset_expires TIMESTAMPTZ,
    terms_accepted BOOLEAN DEFAULT FALSE,
    privacy_policy_accepted BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS activity_log (
    log_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    account_id UUID REFERENCES account(id) ON DELETE SET NULL,
    activity_type VARCHAR(50) NOT NULL,
    activity_category VARCHAR(50) NOT NULL,
    target_table VARCHAR(100),
    target_id UUID,
    target_name VARCHAR(255),
    action_details JSONB,
    before_state JSONB,
    after_state JSONB,
    timestamp TIMESTAMPTZ DEFAULT NOW(),
    ip_address VARCHAR(45),
    device_info TEXT,
    status VARCHAR(20) DEFAULT 'success' CHECK (status IN ('success', 'failed', 'error')),
    notes TEXT
);

CREATE TABLE IF NOT EXISTS incidents (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    incident_code VARCHAR(50) UNIQUE,
    incident_type VARCHAR(100) NOT NULL,
    incident_name VARCHAR(255) NOT NULL,
    description TEXT,
    severity_level VARCHAR(20) DEFAULT 'Low' CHECK (severity_level IN ('Low', 'Medium', 'High', 'Critical')),
    status VARCHAR(20) DEFAULT 'Active' CHECK (status IN ('Active', 'Resolved', 'Monitoring', 'Closed')),
    region VARCHAR(100),
    province VARCHAR(100),
    city VARCHAR(100),
    barangay VARCHAR(100),
    coordinates JSONB,
    reported_by UUID REFERENCES account(id),
    assigned_to UUID REFERENCES account(id),
    date_occurred TIMESTAMPTZ,
    date_reported TIMESTAMPTZ DEFAULT NOW(),
    date_resolved TIMESTAMPTZ,
    affected_families INTEGER DEFAULT 0,
    affected_persons INTEGER DEFAULT 0,
    casualties JSONB DEFAULT '{"dead": 0, "injured": 0, "missing": 0}'::jsonb,
    damage_assessment JSONB,
    response_actions JSONB,
    resources_deployed JSONB,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS evacuation_centers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    center_name VARCHAR(255) NOT NULL UNIQUE,
    center_type VARCHAR(50) DEFAULT 'School'
        CHECK (center_type IN ('School', 'Barangay Hall', 'Church', 'Gymnasium', 'Other')),
    capacity INTEGER DEFAULT 0,
    current_occupancy INTEGER DEFAULT 0,
    region VARCHAR(100),
    province VARCHAR(100),
    city VARCHAR(100),
    barangay VARCHAR(100),
    complete_address TEXT,
    coordinates JSONB,
    facilities JSONB DEFAULT '[]'::jsonb,
    contact_person VARCHAR(255),
    contact_number VARCHAR(20),
    managed_by UUID REFERENCES account(id),
    status VARCHAR(20) DEFAULT 'Available'
        CHECK (status IN ('Available', 'Full', 'Unavailable', 'Maintenance')),
    opened_date TIMESTAMPTZ,
    closed_date TIMESTAMPTZ,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS assistance_records (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    record_code VARCHAR(50) UNIQUE,
    incident_id UUID REFERENCES incidents(id) ON DELETE CASCADE,
    family_head_name VARCHAR(255) NOT NULL,
    family_members INTEGER DEFAULT 1,
    assistance_type VARCHAR(100) NOT NULL,
    assistance_details JSONB,
    amount NUMERIC(12, 2) DEFAULT 0,
    quantity INTEGER DEFAULT 1,
    distribution_date TIMESTAMPTZ,
    region VARCHAR(100),
    province VARCHAR(100),
    city VARCHAR(100),
    barangay VARCHAR(100),
    beneficiary_address TEXT,
    distributed_by UUID REFERENCES account(id),
    verified_by UUID REFERENCES account(id),
    status VARCHAR(20) DEFAULT 'Pending'
        CHECK (status IN ('Pending', 'Approved', 'Distributed', 'Completed', 'Cancelled')),
    remarks TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS system_settings (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    setting_key VARCHAR(100) NOT NULL UNIQUE,
    setting_value JSONB,
    description TEXT,
    category VARCHAR(50) DEFAULT 'general',
    is_public BOOLEAN DEFAULT FALSE,
    updated_by UUID REFERENCES account(id),
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS notifications (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    recipient_id UUID REFERENCES account(id) ON DELETE CASCADE,
    notification_type VARCHAR(50) NOT NULL,
    title VARCHAR(255) NOT NULL,
    message TEXT NOT NULL,
    data JSONB,
    is_read BOOLEAN DEFAULT FALSE,
    read_at TIMESTAMPTZ,
    priority VARCHAR(20) DEFAULT 'Medium' CHECK (priority IN ('Low', 'Medium', 'High', 'Critical')),
    expires_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ DEFAULT NOW()
);
"""

INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_account_email_lower ON account (LOWER(email));
CREATE INDEX IF NOT EXISTS idx_account_status ON account (status);
CREATE INDEX IF NOT EXISTS idx_account_profile ON account ("profileId");
CREATE INDEX IF NOT EXISTS idx_account_user_level ON account ("user_levelId");
CREATE INDEX IF NOT EXISTS idx_account_reset_token ON account (password_reset_token);

CREATE INDEX IF NOT EXISTS idx_activity_log_account_time ON activity_log (account_id, timestamp DESC);
CREATE INDEX IF NOT EXISTS idx_activity_log_type ON activity_log (activity_type);
CREATE INDEX IF NOT EXISTS idx_activity_log_category ON activity_log (activity_category);
CREATE INDEX IF NOT EXISTS idx_activity_log_timestamp ON activity_log (timestamp DESC);

CREATE INDEX IF NOT EXISTS idx_incidents_status ON incidents (status);
CREATE INDEX IF NOT EXISTS idx_incidents_severity ON incidents (severity_level);
CREATE INDEX IF NOT EXISTS idx_incidents_date_reported ON incidents (date_reported DESC);
CREATE INDEX IF NOT EXISTS idx_incidents_location ON incidents (region, province, city);

CREATE INDEX IF NOT EXISTS idx_evacuation_centers_status ON evacuation_centers (status);
CREATE INDEX IF NOT EXISTS idx_evacuation_centers_location ON evacuation_centers (region, province, city);

CREATE INDEX IF NOT EXISTS idx_assistance_records_incident ON assistance_records (incident_id);
CREATE INDEX IF NOT EXISTS idx_assistance_records_status ON assistance_records (status);

CREATE INDEX IF NOT EXISTS idx_notifications_recipient ON notifications (recipient_id, is_read);
"""

TRIGGER_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION set_updated_at()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""


def get_connection():
    url = os.environ.get("DATABASE_URL")
    if url:
        return psycopg2.connect(url)
    return psycopg2.connect(
        host=DB_HOST, port=DB_PORT, dbname=DB_NAME, user=DB_USER, password=DB_PASSWORD
    )


def migrate():
    """Create tables, indexes and updated_at triggers"""
    print("=" * 60)
    print("RUNNING MIGRATION")
    print("=" * 60)

    conn = get_connection()
    cur = conn.cursor()

    try:
        print("Creating tables...")
        cur.execute(SCHEMA_SQL)

        print("Creating indexes...")
        cur.execute(INDEX_SQL)

        print("Creating updated_at triggers...")
        cur.execute(TRIGGER_FUNCTION_SQL)
        for table in TIMESTAMPED_TABLES:
            cur.execute(f"DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table}")
            cur.execute(f"""
                CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION set_updated_at()
            """)
            print(f"  → {table}")

        conn.commit()
        print("\n✓ Migration complete")
        return True
    except psycopg2.Error as e:
        conn.rollback()
        print(f"\n✗ Migration failed: {e}")
        raise
    finally:
        conn.close()


def check_status():
    conn = get_connection()
    cur = conn.cursor(cursor_factory=RealDictCursor)

    try:
        cur.execute("""
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = 'public' AND table_type = 'BASE TABLE'
        """)
        existing = {row['table_name'] for row in cur.fetchall()}

        cur.execute("""
            SELECT COUNT(*) AS n FROM pg_indexes
            WHERE schemaname = 'public' AND indexname LIKE 'idx_%'
        """)
        index_count = cur.fetchone()['n']
    finally:
        conn.close()

    return {
        'tables': {name: name in existing for name in TABLES},
        'index_count': index_count,
    }


def status():
    print("=" * 60)
    print("MIGRATION STATUS")
    print("=" * 60)

    current = check_status()
    for name, present in current['tables'].items():
        print(f"  {'✓' if present else '✗'} {name}")
    print(f"\nIndexes: {current['index_count']}")

    missing = [name for name, present in current['tables'].items() if not present]
    if missing:
        print(f"\n⚠ {len(missing)} table(s) missing. Run 'migrate'.")
    else:
        print("\n✓ Schema up to date")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return

    command = sys.argv[1].lower()

    if command == 'migrate':
        migrate()
    elif command == 'status':
        status()
    else:
        print(f"Unknown command: {command}")
        print(__doc__)


if __name__ == '__main__':
    main()
