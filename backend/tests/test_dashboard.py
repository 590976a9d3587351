"""
Dashboard statistics and public settings tests
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from models import AssistanceRecord, EvacuationCenter, Incident, SystemSetting


@pytest.fixture
def records(db_session, account):
    now = datetime.now(timezone.utc)
    typhoon = Incident(
        incident_code='TY-2024-001', incident_type='Typhoon', incident_name='Typhoon Kristine',
        severity_level='High', status='Active', city='City of Laoag',
        affected_families=150, affected_persons=600,
        casualties={'dead': 0, 'injured': 5, 'missing': 1},
        date_reported=now - timedelta(days=1), reported_by=account.id,
    )
    flood = Incident(
        incident_code='FL-2024-002', incident_type='Flood', incident_name='Metro Manila Flash Flood',
        severity_level='Medium', status='Monitoring', city='Quezon City',
        affected_families=85, affected_persons=340,
        casualties={'dead': 0, 'injured': 2, 'missing': 0},
        date_reported=now - timedelta(days=3),
    )
    quake = Incident(
        incident_code='EQ-2024-003', incident_type='Earthquake', incident_name='Mindanao Earthquake',
        severity_level='High', status='Resolved', city='City of Digos',
        affected_families=200, affected_persons=800,
        casualties={'dead': 1, 'injured': 15, 'missing': 0},
        date_reported=now - timedelta(days=20),
    )
    db_session.add_all([typhoon, flood, quake])
    db_session.flush()

    db_session.add_all([
        EvacuationCenter(center_name='Laoag City Central School', capacity=500, current_occupancy=120),
        EvacuationCenter(center_name='Digos City Gymnasium', center_type='Gymnasium',
                         capacity=500, current_occupancy=130, status='Full'),
    ])
    db_session.add_all([
        AssistanceRecord(record_code='AST-2024-001', incident_id=typhoon.id, family_head_name='Roberto Dela Cruz',
                         assistance_type='Food Packs', amount=Decimal('0'), status='Distributed'),
        AssistanceRecord(record_code='AST-2024-002', incident_id=flood.id, family_head_name='Maria Garcia',
                         assistance_type='Cash Assistance', amount=Decimal('5000.00'), status='Approved'),
        AssistanceRecord(record_code='AST-2024-003', incident_id=quake.id, family_head_name='Antonio Reyes',
                         assistance_type='Cash Assistance', amount=Decimal('2500.50'), status='Approved'),
    ])
    db_session.commit()


def test_stats_require_auth(client):
    assert client.get('/api/dashboard/stats').status_code == 401


def test_stats(client, records, auth_headers):
    response = client.get('/api/dashboard/stats', headers=auth_headers)

    assert response.status_code == 200
    data = response.json()

    incidents = data['incidents']
    assert incidents['total'] == 3
    assert incidents['active'] == 1
    assert incidents['by_severity'] == {'High': 2, 'Medium': 1}
    assert incidents['affected_families'] == 435
    assert incidents['affected_persons'] == 1740
    assert incidents['affected_areas'] == 2
    assert incidents['reported_last_7_days'] == 2
    assert incidents['casualties'] == {'dead': 1, 'injured': 22, 'missing': 1}

    centers = data['evacuation_centers']
    assert centers['total'] == 2
    assert centers['by_status'] == {'Available': 1, 'Full': 1}
    assert centers['total_capacity'] == 1000
    assert centers['current_occupancy'] == 250
    assert centers['occupancy_rate'] == 25.0

    assistance = data['assistance']
    assert assistance['by_status'] == {'Distributed': 1, 'Approved': 2}
    assert assistance['total_amount'] == 7500.5


def test_stats_on_empty_database(client, account, auth_headers):
    data = client.get('/api/dashboard/stats', headers=auth_headers).json()

    assert data['incidents']['total'] == 0
    assert data['evacuation_centers']['occupancy_rate'] == 0.0
    assert data['assistance']['total_amount'] == 0.0


def test_recent_incidents(client, records, auth_headers):
    data = client.get('/api/dashboard/recent-incidents?limit=2', headers=auth_headers).json()

    assert [i['incident_code'] for i in data['incidents']] == ['TY-2024-001', 'FL-2024-002']


def test_public_settings(client, db_session):
    db_session.add_all([
        SystemSetting(setting_key='app_name', setting_value={'value': 'DROMIC-IS'}, is_public=True),
        SystemSetting(setting_key='security_settings', setting_value={'max_login_attempts': 5}, is_public=False),
    ])
    db_session.commit()

    response = client.get('/api/settings/public')

    assert response.status_code == 200
    assert response.json()['settings'] == {'app_name': {'value': 'DROMIC-IS'}}
