"""
User self-service endpoint tests
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from models import Account, ActivityLog, Notification
from routers.auth import verify_password

TEST_PASSWORD = 'Secret123'  # make_account default
# 63 characters but 123 UTF-8 bytes
MULTIBYTE_PASSWORD = 'Aa1' + '\u00e9' * 60


def _profile_body(**overrides):
    body = {
        'updateType': 'profile',
        'firstName': 'Juan',
        'lastName': 'Dela Cruz',
        'middleName': 'P',
        'phoneNumber': '09991234567',
        'address': 'Purok 3, Batac',
        'jobTitle': 'Team Lead',
        'division': 'DRMD',
        'region': 'Region I',
        'province': 'Ilocos Norte',
        'city': 'City of Batac',
        'barangay': 'Ablan',
        'dateOfBirth': '1990-05-01',
    }
    body.update(overrides)
    return body


class TestProfileUpdate:

    def test_requires_auth(self, client):
        assert client.patch('/api/user/profile', json=_profile_body()).status_code == 401

    def test_profile_update_with_audit(self, client, db_session, account, auth_headers):
        response = client.patch('/api/user/profile', json=_profile_body(), headers=auth_headers)

        assert response.status_code == 200

        db_session.expire_all()
        profile = db_session.get(Account, account.id).profile
        assert profile.city == 'City of Batac'
        assert profile.middlename == 'P'
        assert profile.division == 'DRMD'

        entry = db_session.query(ActivityLog).filter(ActivityLog.activity_type == 'update').one()
        assert entry.activity_category == 'user'
        assert entry.target_table == 'profile'
        assert entry.before_state['city'] == 'City of Laoag'
        assert entry.after_state['city'] == 'City of Batac'
        assert 'city' in entry.action_details['changed_fields']

    def test_profile_missing_required_field(self, client, account, auth_headers):
        body = _profile_body()
        del body['province']

        response = client.patch('/api/user/profile', json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()['detail'] == 'Validation failed'

    def test_account_update(self, client, db_session, account, auth_headers):
        response = client.patch('/api/user/profile', json={
            'updateType': 'account',
            'username': 'juandc',
            'email': 'Juan.DC@dswd.gov.ph',
        }, headers=auth_headers)

        assert response.status_code == 200

        db_session.expire_all()
        refreshed = db_session.get(Account, account.id)
        assert refreshed.username == 'juandc'
        assert refreshed.email == 'juan.dc@dswd.gov.ph'

        entry = db_session.query(ActivityLog).filter(ActivityLog.activity_category == 'account').one()
        assert entry.before_state == {'username': 'jdelacruz', 'email': 'juan@dswd.gov.ph'}
        assert entry.after_state == {'username': 'juandc', 'email': 'juan.dc@dswd.gov.ph'}

    def test_account_update_conflict(self, client, db_session, make_account, account, auth_headers):
        make_account(username='msantos', email='maria@dswd.gov.ph')

        response = client.patch('/api/user/profile', json={
            'updateType': 'account',
            'username': 'msantos',
            'email': 'juan@dswd.gov.ph',
        }, headers=auth_headers)

        assert response.status_code == 409
        db_session.expire_all()
        assert db_session.get(Account, account.id).username == 'jdelacruz'

    def test_account_update_keeps_own_values(self, client, account, auth_headers):
        response = client.patch('/api/user/profile', json={
            'updateType': 'account',
            'username': 'jdelacruz',
            'email': 'juan@dswd.gov.ph',
        }, headers=auth_headers)

        assert response.status_code == 200

    @pytest.mark.parametrize('update_type', ['password', None, ''])
    def test_invalid_update_type(self, client, account, auth_headers, update_type):
        response = client.patch('/api/user/profile', json={'updateType': update_type}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()['detail'] == 'Invalid update type'


class TestChangePassword:

    def test_wrong_current_password(self, client, db_session, account, auth_headers):
        old_hash = account.password

        response = client.post('/api/user/change-password', json={
            'currentPassword': 'NotMyPass1',
            'newPassword': 'BrandNew1',
            'confirmNewPassword': 'BrandNew1',
        }, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()['detail'] == 'Current password is incorrect'

        db_session.expire_all()
        assert db_session.get(Account, account.id).password == old_hash

        entry = db_session.query(ActivityLog).filter(ActivityLog.activity_category == 'account', ActivityLog.activity_type == 'update').one()
        assert entry.status == 'failed'

    def test_change_password(self, client, db_session, account, auth_headers):
        response = client.post('/api/user/change-password', json={
            'currentPassword': TEST_PASSWORD,
            'newPassword': 'BrandNew1',
            'confirmNewPassword': 'BrandNew1',
        }, headers=auth_headers)

        assert response.status_code == 200

        db_session.expire_all()
        assert verify_password('BrandNew1', db_session.get(Account, account.id).password)

        entry = db_session.query(ActivityLog).filter(ActivityLog.activity_category == 'account', ActivityLog.activity_type == 'update').one()
        assert entry.status == 'success'
        assert set(entry.after_state) == {'last_password_changed_at'}

    def test_change_password_is_listed_as_update(self, client, account, auth_headers):
        client.post('/api/user/change-password', json={
            'currentPassword': TEST_PASSWORD,
            'newPassword': 'BrandNew1',
            'confirmNewPassword': 'BrandNew1',
        }, headers=auth_headers)

        data = client.get('/api/user/activity?activity_type=update&activity_category=account', headers=auth_headers).json()

        assert data['total'] == 1

    @pytest.mark.parametrize('new, confirm', [
        ('BrandNew1', 'BrandNew2'),
        ('brandnew1', 'brandnew1'),
        ('Bn1', 'Bn1'),
        (MULTIBYTE_PASSWORD, MULTIBYTE_PASSWORD),
    ])
    def test_new_password_rules(self, client, account, auth_headers, new, confirm):
        response = client.post('/api/user/change-password', json={
            'currentPassword': TEST_PASSWORD,
            'newPassword': new,
            'confirmNewPassword': confirm,
        }, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()['detail'] == 'Validation failed'


class TestActivity:

    @pytest.fixture
    def history(self, db_session, account, make_account):
        now = datetime.now(timezone.utc)
        for i in range(15):
            db_session.add(ActivityLog(
                account_id=account.id,
                activity_type='login' if i % 3 else 'update',
                activity_category='session' if i % 3 else 'user',
                timestamp=now - timedelta(hours=i),
                status='success',
            ))
        db_session.add(ActivityLog(
            account_id=account.id,
            activity_type='login',
            activity_category='session',
            timestamp=now - timedelta(days=40),
        ))

        other = make_account(username='msantos', email='maria@dswd.gov.ph')
        db_session.add(ActivityLog(account_id=other.id, activity_type='login', activity_category='session'))
        db_session.commit()

    def test_first_page(self, client, history, auth_headers):
        data = client.get('/api/user/activity', headers=auth_headers).json()

        assert data['total'] == 15
        assert data['page'] == 1
        assert data['limit'] == 10
        assert data['hasMore'] is True
        assert len(data['activities']) == 10

        stamps = [a['timestamp'] for a in data['activities']]
        assert stamps == sorted(stamps, reverse=True)

    def test_last_page(self, client, history, auth_headers):
        data = client.get('/api/user/activity?page=2', headers=auth_headers).json()

        assert len(data['activities']) == 5
        assert data['hasMore'] is False

    def test_days_zero_includes_old_entries(self, client, history, auth_headers):
        data = client.get('/api/user/activity?days=0', headers=auth_headers).json()

        assert data['total'] == 16

    def test_filter_by_type_and_category(self, client, history, auth_headers):
        by_type = client.get('/api/user/activity?activity_type=update', headers=auth_headers).json()
        by_category = client.get('/api/user/activity?activity_category=session', headers=auth_headers).json()

        assert by_type['total'] == 5
        assert by_category['total'] == 10

    @pytest.mark.parametrize('query', ['limit=0', 'limit=101', 'page=0'])
    def test_bad_paging(self, client, account, auth_headers, query):
        response = client.get(f'/api/user/activity?{query}', headers=auth_headers)

        assert response.status_code == 400


class TestNotifications:

    @pytest.fixture
    def notifications(self, db_session, account):
        now = datetime.now(timezone.utc)
        fresh = Notification(
            recipient_id=account.id, notification_type='incident', title='New incident',
            message='Typhoon Kristine reported', priority='High',
        )
        expired = Notification(
            recipient_id=account.id, notification_type='system', title='Maintenance',
            message='Old notice', expires_at=now - timedelta(days=1),
        )
        read = Notification(
            recipient_id=account.id, notification_type='system', title='Welcome',
            message='Welcome to DROMIC-IS', is_read=True, read_at=now,
        )
        db_session.add_all([fresh, expired, read])
        db_session.commit()
        return fresh

    def test_list_excludes_expired(self, client, notifications, auth_headers):
        data = client.get('/api/user/notifications', headers=auth_headers).json()

        titles = {n['title'] for n in data['notifications']}
        assert titles == {'New incident', 'Welcome'}
        assert data['unread'] == 1

    def test_unread_only(self, client, notifications, auth_headers):
        data = client.get('/api/user/notifications?unread_only=true', headers=auth_headers).json()

        assert [n['title'] for n in data['notifications']] == ['New incident']

    def test_mark_read(self, client, db_session, notifications, auth_headers):
        response = client.post(f'/api/user/notifications/{notifications.id}/read', headers=auth_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Notification, notifications.id).is_read is True

    def test_mark_read_unknown(self, client, account, auth_headers):
        response = client.post(f'/api/user/notifications/{uuid.uuid4()}/read', headers=auth_headers)

        assert response.status_code == 404
