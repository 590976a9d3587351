#!/usr/bin/env python3
"""
DROMIC-IS Database Seeder

Populates a freshly migrated database with the role hierarchy, system
settings, a default administrator and a few sample incidents / evacuation
centers / assistance records for staging.

Run after migrate.py:
    python3 seed.py            # skips if user levels already exist
    python3 seed.py --force    # upsert everything again

Credentials created:
    - admin / admin@dromic.dswd.gov.ph / admin123!  (Super Admin)
      Change the password after first login.
"""

import os
import sys
import random
import logging
from datetime import datetime, timezone, timedelta

import psycopg2
from psycopg2.extras import Json
import bcrypt

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DB_HOST = os.environ.get("DB_HOST", "localhost")
DB_PORT = int(os.environ.get("DB_PORT", "5432"))
DB_NAME = os.environ.get("DB_NAME", "dromic_staging")
DB_USER = os.environ.get("DB_USER", "postgres")
DB_PASSWORD = os.environ.get("DB_PASSWORD", "password")

BCRYPT_SALT_ROUNDS = int(os.environ.get("BCRYPT_SALT_ROUNDS", "12"))

ADMIN_USERNAME = "admin"
ADMIN_EMAIL = "admin@dromic.dswd.gov.ph"
ADMIN_PASSWORD = "admin123!"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
log = logging.getLogger("seed")

# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

# (position, abbreviation, userLevel, permissions)
USER_LEVELS = [
    ("Super Admin", "SA", 9, {
        "all": True, "system_admin": True, "user_management": True,
        "incident_management": True, "reports": True, "settings": True,
    }),
    ("Admin", "ADMIN", 8, {
        "user_management": True, "incident_management": True, "evacuation_management": True,
        "assistance_management": True, "reports": True,
    }),
    ("Director", "DIR", 7, {
        "incident_management": True, "evacuation_management": True, "assistance_management": True,
        "reports": True, "approve_assistance": True,
    }),
    ("Regional Director", "RD", 6, {
        "incident_management": True, "evacuation_management": True, "assistance_management": True,
        "reports": True, "regional_oversight": True,
    }),
    ("Secretary", "SEC", 5, {
        "incident_management": True, "evacuation_management": True, "assistance_management": True,
        "reports": True,
    }),
    ("Central Officer", "CO", 4, {
        "incident_management": True, "evacuation_management": True, "assistance_management": True,
        "reports": True,
    }),
    ("Field Officer", "FO", 3, {
        "incident_reporting": True, "evacuation_reporting": True, "assistance_distribution": True,
        "field_reports": True,
    }),
    ("Team Leader", "TL", 2, {
        "incident_reporting": True, "evacuation_reporting": True, "team_management": True,
    }),
    ("Local Government Unit", "LGU", 1, {
        "incident_reporting": True, "local_coordination": True, "evacuation_coordination": True,
    }),
]

# (key, value, description, category, is_public)
SYSTEM_SETTINGS = [
    ("app_name", {"value": "DROMIC-IS"}, "Application name displayed in the UI", "general", True),
    ("app_version", {"value": "1.0.0"}, "Current application version", "general", True),
    ("maintenance_mode", {"enabled": False, "message": "System is under maintenance"},
     "Maintenance mode configuration", "system", False),
    ("notification_settings", {
        "email_enabled": True, "sms_enabled": False, "push_enabled": True, "default_priority": "Medium",
    }, "Global notification settings", "notifications", False),
    ("security_settings", {
        "password_min_length": 8,
        "password_require_uppercase": True,
        "password_require_lowercase": True,
        "password_require_numbers": True,
        "password_require_symbols": False,
        "max_login_attempts": 5,
        "lockout_duration_minutes": 15,
        "session_timeout_minutes": 30,
    }, "Security and authentication settings", "security", False),
    ("incident_types", {"types": [
        "Typhoon", "Flood", "Earthquake", "Landslide", "Fire", "Volcanic Eruption", "Drought",
        "El Niño", "La Niña", "Storm Surge", "Tsunami", "Other Natural Disaster",
        "Man-made Disaster", "Health Emergency", "Transportation Accident",
    ]}, "Available incident types for reporting", "incidents", True),
    ("assistance_types", {"types": [
        "Food Packs", "Relief Goods", "Cash Assistance", "Medical Assistance", "Shelter Materials",
        "Clothing", "Hygiene Kits", "Kitchen Utensils", "Sleeping Materials", "Educational Supplies",
        "Livelihood Assistance", "Psychosocial Support", "Emergency Shelter", "Temporary Shelter",
        "Other Assistance",
    ]}, "Available assistance types for distribution", "assistance", True),
    ("dashboard_refresh_interval", {"seconds": 30}, "Dashboard auto-refresh interval in seconds", "ui", True),
]

SAMPLE_INCIDENTS = [
    {
        "incident_code": "TY-2024-001",
        "incident_type": "Typhoon",
        "incident_name": "Typhoon Kristine",
        "description": "Strong typhoon affecting northern regions with sustained winds of 150 km/h",
        "severity_level": "High",
        "status": "Active",
        "region": "Region I",
        "province": "Ilocos Norte",
        "city": "Laoag City",
        "barangay": "San Lorenzo",
        "coordinates": {"lat": 18.1969, "lng": 120.5936},
        "affected_families": 150,
        "affected_persons": 600,
        "casualties": {"dead": 0, "injured": 5, "missing": 1},
    },
    {
        "incident_code": "FL-2024-002",
        "incident_type": "Flood",
        "incident_name": "Metro Manila Flash Flood",
        "description": "Heavy rainfall causing flash floods in low-lying areas",
        "severity_level": "Medium",
        "status": "Monitoring",
        "region": "NCR",
        "province": "Metro Manila",
        "city": "Quezon City",
        "barangay": "Commonwealth",
        "coordinates": {"lat": 14.6760, "lng": 121.0437},
        "affected_families": 85,
        "affected_persons": 340,
        "casualties": {"dead": 0, "injured": 2, "missing": 0},
    },
    {
        "incident_code": "EQ-2024-003",
        "incident_type": "Earthquake",
        "incident_name": "Mindanao Earthquake",
        "description": "6.2 magnitude earthquake with epicenter in Davao Region",
        "severity_level": "High",
        "status": "Resolved",
        "region": "Region XI",
        "province": "Davao del Sur",
        "city": "Digos City",
        "barangay": "Zone 1",
        "coordinates": {"lat": 6.7496, "lng": 125.3545},
        "affected_families": 200,
        "affected_persons": 800,
        "casualties": {"dead": 1, "injured": 15, "missing": 0},
    },
]

SAMPLE_EVACUATION_CENTERS = [
    {
        "center_name": "Laoag City Central School",
        "center_type": "School",
        "capacity": 500,
        "current_occupancy": 120,
        "region": "Region I",
        "province": "Ilocos Norte",
        "city": "Laoag City",
        "barangay": "San Lorenzo",
        "complete_address": "General Luna St, Laoag City, Ilocos Norte",
        "coordinates": {"lat": 18.1969, "lng": 120.5936},
        "facilities": ["Classrooms", "Restrooms", "Kitchen", "Medical Station"],
        "contact_person": "Maria Santos",
        "contact_number": "09171234567",
    },
    {
        "center_name": "Commonwealth Elementary School",
        "center_type": "School",
        "capacity": 300,
        "current_occupancy": 75,
        "region": "NCR",
        "province": "Metro Manila",
        "city": "Quezon City",
        "barangay": "Commonwealth",
        "complete_address": "Commonwealth Avenue, Quezon City",
        "coordinates": {"lat": 14.6760, "lng": 121.0437},
        "facilities": ["Classrooms", "Restrooms", "Cafeteria"],
        "contact_person": "Juan Cruz",
        "contact_number": "09181234567",
    },
    {
        "center_name": "Digos City Gymnasium",
        "center_type": "Gymnasium",
        "capacity": 800,
        "current_occupancy": 150,
        "region": "Region XI",
        "province": "Davao del Sur",
        "city": "Digos City",
        "barangay": "Zone 1",
        "complete_address": "Rizal Avenue, Digos City, Davao del Sur",
        "coordinates": {"lat": 6.7496, "lng": 125.3545},
        "facilities": ["Basketball Court", "Restrooms", "Stage", "Storage"],
        "contact_person": "Pedro Mendoza",
        "contact_number": "09191234567",
    },
]

SAMPLE_ASSISTANCE_RECORDS = [
    {
        "record_code": "AST-2024-001",
        "family_head_name": "Roberto Dela Cruz",
        "family_members": 5,
        "assistance_type": "Food Packs",
        "assistance_details": {"items": ["Rice", "Canned Goods", "Noodles"], "packs": 2},
        "amount": 0,
        "quantity": 2,
        "region": "Region I",
        "province": "Ilocos Norte",
        "city": "Laoag City",
        "barangay": "San Lorenzo",
        "beneficiary_address": "Purok 1, San Lorenzo, Laoag City",
        "status": "Distributed",
    },
    {
        "record_code": "AST-2024-002",
        "family_head_name": "Maria Garcia",
        "family_members": 3,
        "assistance_type": "Cash Assistance",
        "assistance_details": {"purpose": "Emergency Relief", "category": "Immediate"},
        "amount": 5000.00,
        "quantity": 1,
        "region": "NCR",
        "province": "Metro Manila",
        "city": "Quezon City",
        "barangay": "Commonwealth",
        "beneficiary_address": "Block 5, Commonwealth, Quezon City",
        "status": "Approved",
    },
    {
        "record_code": "AST-2024-003",
        "family_head_name": "Antonio Reyes",
        "family_members": 7,
        "assistance_type": "Relief Goods",
        "assistance_details": {"items": ["Blankets", "Clothing", "Hygiene Kits"]},
        "amount": 0,
        "quantity": 3,
        "region": "Region XI",
        "province": "Davao del Sur",
        "city": "Digos City",
        "barangay": "Zone 1",
        "beneficiary_address": "Rizal Street, Zone 1, Digos City",
        "status": "Completed",
    },
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def db_connect():
    """Return a psycopg2 connection (DATABASE_URL wins over DB_* variables)."""
    url = os.environ.get("DATABASE_URL")
    if url:
        return psycopg2.connect(url)
    return psycopg2.connect(
        host=DB_HOST, port=DB_PORT, dbname=DB_NAME, user=DB_USER, password=DB_PASSWORD
    )


def hash_password(password):
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_SALT_ROUNDS)).decode("utf-8")


def days_ago(max_days):
    """Random timestamp within the last max_days days."""
    return datetime.now(timezone.utc) - timedelta(seconds=random.uniform(0, max_days * 86400))


def count_rows(cur, table):
    cur.execute(f"SELECT COUNT(*) FROM {table}")
    return cur.fetchone()[0]


# ---------------------------------------------------------------------------
# Seed steps
# ---------------------------------------------------------------------------

def seed_user_levels(cur):
    log.info("Seeding user levels...")
    ids = {}
    for position, abbreviation, level, permissions in USER_LEVELS:
        cur.execute("""
            INSERT INTO user_level (position, abbreviation, "userLevel", permissions, status)
            VALUES (%s, %s, %s, %s, 'Active')
            ON CONFLICT (position) DO UPDATE SET
                abbreviation = EXCLUDED.abbreviation,
                "userLevel" = EXCLUDED."userLevel",
                permissions = EXCLUDED.permissions,
                updated_at = NOW()
            RETURNING id
        """, (position, abbreviation, level, Json(permissions)))
        ids[position] = cur.fetchone()[0]
    log.info(f"  {len(ids)} user levels")
    return ids


def create_default_admin(cur, user_level_id):
    """Create the admin account, or reset its password and role if it exists."""
    password_hash = hash_password(ADMIN_PASSWORD)

    cur.execute("SELECT id FROM account WHERE username = %s", (ADMIN_USERNAME,))
    row = cur.fetchone()
    if row:
        cur.execute("""
            UPDATE account SET
                password = %s, "user_levelId" = %s, status = 'Active',
                failed_login_attempts = 0, account_locked_until = NULL
            WHERE id = %s
        """, (password_hash, user_level_id, row[0]))
        log.info(f"  Reset existing admin account ({ADMIN_USERNAME})")
        return row[0]

    cur.execute("""
        INSERT INTO profile (
            firstname, lastname, phone_number, address, job_title,
            region, province, city, barangay, status
        ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, 'Active')
        RETURNING id
    """, (
        "System", "Administrator", "09171234567", "DSWD Central Office",
        "System Administrator", "NCR", "Metro Manila", "Manila", "Ermita",
    ))
    profile_id = cur.fetchone()[0]

    cur.execute("""
        INSERT INTO account (
            username, email, password, status, "profileId", "user_levelId",
            email_verified, terms_accepted, privacy_policy_accepted
        ) VALUES (%s, %s, %s, 'Active', %s, %s, TRUE, TRUE, TRUE)
        RETURNING id
    """, (ADMIN_USERNAME, ADMIN_EMAIL, password_hash, profile_id, user_level_id))
    account_id = cur.fetchone()[0]

    log.info("  Created default admin user:")
    log.info(f"    Username: {ADMIN_USERNAME}")
    log.info(f"    Email: {ADMIN_EMAIL}")
    log.info(f"    Password: {ADMIN_PASSWORD}")
    log.warning("    Change password after first login!")
    return account_id


def seed_system_settings(cur, admin_id):
    log.info("Seeding system settings...")
    for key, value, description, category, is_public in SYSTEM_SETTINGS:
        cur.execute("""
            INSERT INTO system_settings (setting_key, setting_value, description, category, is_public, updated_by)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (setting_key) DO UPDATE SET
                setting_value = EXCLUDED.setting_value,
                description = EXCLUDED.description,
                category = EXCLUDED.category,
                is_public = EXCLUDED.is_public,
                updated_by = EXCLUDED.updated_by,
                updated_at = NOW()
        """, (key, Json(value), description, category, is_public, admin_id))
    log.info(f"  {len(SYSTEM_SETTINGS)} system settings")


def seed_sample_incidents(cur, admin_id):
    log.info("Seeding sample incidents...")
    ids = []
    for incident in SAMPLE_INCIDENTS:
        occurred = days_ago(7)
        cur.execute("""
            INSERT INTO incidents (
                incident_code, incident_type, incident_name, description, severity_level,
                status, region, province, city, barangay, coordinates,
                reported_by, date_occurred, date_reported, affected_families,
                affected_persons, casualties
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (incident_code) DO UPDATE SET updated_at = NOW()
            RETURNING id
        """, (
            incident["incident_code"], incident["incident_type"], incident["incident_name"],
            incident["description"], incident["severity_level"], incident["status"],
            incident["region"], incident["province"], incident["city"], incident["barangay"],
            Json(incident["coordinates"]), admin_id,
            occurred, occurred + timedelta(hours=random.uniform(1, 24)),
            incident["affected_families"], incident["affected_persons"], Json(incident["casualties"]),
        ))
        ids.append(cur.fetchone()[0])
    log.info(f"  {len(ids)} sample incidents")
    return ids


def seed_sample_evacuation_centers(cur, admin_id):
    log.info("Seeding sample evacuation centers...")
    for center in SAMPLE_EVACUATION_CENTERS:
        cur.execute("""
            INSERT INTO evacuation_centers (
                center_name, center_type, capacity, current_occupancy,
                region, province, city, barangay, complete_address,
                coordinates, facilities, contact_person, contact_number,
                managed_by, status, opened_date
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'Available', %s)
            ON CONFLICT (center_name) DO NOTHING
        """, (
            center["center_name"], center["center_type"], center["capacity"], center["current_occupancy"],
            center["region"], center["province"], center["city"], center["barangay"],
            center["complete_address"], Json(center["coordinates"]), Json(center["facilities"]),
            center["contact_person"], center["contact_number"], admin_id, days_ago(5),
        ))
    log.info(f"  {len(SAMPLE_EVACUATION_CENTERS)} sample evacuation centers")


def seed_sample_assistance_records(cur, admin_id, incident_ids):
    log.info("Seeding sample assistance records...")
    for i, record in enumerate(SAMPLE_ASSISTANCE_RECORDS):
        incident_id = incident_ids[i] if i < len(incident_ids) else incident_ids[0]
        distributed = days_ago(3) if record["status"] == "Distributed" else None
        cur.execute("""
            INSERT INTO assistance_records (
                record_code, incident_id, family_head_name, family_members,
                assistance_type, assistance_details, amount, quantity,
                region, province, city, barangay, beneficiary_address,
                distributed_by, status, distribution_date
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (record_code) DO NOTHING
        """, (
            record["record_code"], incident_id, record["family_head_name"], record["family_members"],
            record["assistance_type"], Json(record["assistance_details"]), record["amount"], record["quantity"],
            record["region"], record["province"], record["city"], record["barangay"],
            record["beneficiary_address"], admin_id, record["status"], distributed,
        ))
    log.info(f"  {len(SAMPLE_ASSISTANCE_RECORDS)} sample assistance records")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    force = "--force" in sys.argv[1:]

    log.info("=" * 60)
    log.info("DROMIC-IS Database Seeder")
    log.info("=" * 60)

    conn = db_connect()
    try:
        cur = conn.cursor()

        if count_rows(cur, "user_level") > 0 and not force:
            log.info("Data already exists. Run with --force to reseed.")
            return 0
        if force:
            log.info("Force reseeding...")

        level_ids = seed_user_levels(cur)
        admin_id = create_default_admin(cur, level_ids["Super Admin"])
        seed_system_settings(cur, admin_id)
        incident_ids = seed_sample_incidents(cur, admin_id)
        seed_sample_evacuation_centers(cur, admin_id)
        seed_sample_assistance_records(cur, admin_id, incident_ids)

        conn.commit()

        log.info("Seeding summary:")
        for table in ("user_level", "account", "system_settings", "incidents",
                      "evacuation_centers", "assistance_records"):
            log.info(f"  {table}: {count_rows(cur, table)}")
        log.info("Database seeding completed successfully")
        return 0

    except psycopg2.Error as e:
        conn.rollback()
        log.error(f"Seeding failed: {e}")
        return 1
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
