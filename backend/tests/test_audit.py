"""
Activity log writer tests
"""
import pytest
from starlette.requests import Request

import audit_helpers
from audit_helpers import client_ip, device_info, log_activity
from models import Account, ActivityLog, ImmutableActivityLogError

TEST_PASSWORD = 'Secret123'  # make_account default


def _request(headers=None, client=('10.1.2.3', 5050)):
    scope = {
        'type': 'http',
        'method': 'POST',
        'path': '/api/auth/login',
        'headers': [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        'client': client,
    }
    return Request(scope)


class TestRequestContext:

    def test_forwarded_for_wins(self):
        request = _request({'X-Forwarded-For': '203.0.113.5, 10.0.0.1', 'X-Real-IP': '198.51.100.7'})
        assert client_ip(request) == '203.0.113.5'

    def test_real_ip_next(self):
        assert client_ip(_request({'X-Real-IP': '198.51.100.7'})) == '198.51.100.7'

    def test_client_host_then_loopback(self):
        assert client_ip(_request()) == '10.1.2.3'
        assert client_ip(_request(client=None)) == '::1'

    def test_device_info(self):
        assert device_info(_request({'User-Agent': 'Mozilla/5.0'})) == 'Mozilla/5.0'
        assert device_info(_request()) == 'Unknown'


class TestLogActivity:

    def test_writes_row(self, db_session, account):
        entry = log_activity(
            db_session, _request({'User-Agent': 'pytest'}), account.id, 'update', 'user',
            details={'message': 'changed'},
            before_state={'city': 'A'},
            after_state={'city': 'B'},
        )

        assert entry is not None
        stored = db_session.query(ActivityLog).one()
        assert stored.account_id == account.id
        assert stored.target_id == account.id
        assert stored.ip_address == '10.1.2.3'
        assert stored.device_info == 'pytest'
        assert stored.after_state == {'city': 'B'}
        assert 'browser_info' not in stored.action_details

    def test_session_rows_carry_browser_context(self, db_session, account):
        log_activity(db_session, _request({'Referer': 'http://localhost:3000/login'}), account.id, 'login', 'session')

        details = db_session.query(ActivityLog).one().action_details
        assert details['browser_info']['referer'] == 'http://localhost:3000/login'
        assert details['security_context']['request_method'] == 'POST'

    def test_failure_is_swallowed(self, db_session, account, monkeypatch):
        def broken(**kwargs):
            raise RuntimeError('audit table unavailable')

        monkeypatch.setattr(audit_helpers, 'ActivityLog', broken)

        assert log_activity(db_session, _request(), account.id, 'login', 'session') is None

    def test_failed_audit_does_not_break_login(self, client, db_session, account, monkeypatch):
        def broken(**kwargs):
            raise RuntimeError('audit table unavailable')

        monkeypatch.setattr(audit_helpers, 'ActivityLog', broken)

        response = client.post('/api/auth/login', json={'email': 'jdelacruz', 'password': TEST_PASSWORD})

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Account, account.id).last_login is not None
        assert db_session.query(ActivityLog).count() == 0


class TestImmutability:

    @pytest.fixture
    def entry(self, db_session, account):
        row = ActivityLog(account_id=account.id, activity_type='login', activity_category='session')
        db_session.add(row)
        db_session.commit()
        return row

    def test_update_refused(self, db_session, entry):
        entry.notes = 'tampered'

        with pytest.raises(ImmutableActivityLogError):
            db_session.commit()
        db_session.rollback()

        db_session.expire_all()
        assert db_session.query(ActivityLog).one().notes is None

    def test_delete_refused(self, db_session, entry):
        db_session.delete(entry)

        with pytest.raises(ImmutableActivityLogError):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(ActivityLog).count() == 1
