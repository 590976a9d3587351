"""
DROMIC-IS - Test Configuration and Fixtures
"""
import os
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['JWT_SECRET'] = 'test-jwt-secret-key-for-testing-only-0123456789'
os.environ['BCRYPT_SALT_ROUNDS'] = '4'

from main import app
from database import Base, get_db
from models import Account, Profile, UserLevel
from jwt_auth import create_access_token
from routers.auth import hash_password

TEST_PASSWORD = 'Secret123'

# (position, abbreviation, userLevel)
LEVELS = [
    ('Super Admin', 'SA', 9),
    ('Admin', 'ADMIN', 8),
    ('Director', 'DIR', 7),
    ('Regional Director', 'RD', 6),
    ('Secretary', 'SEC', 5),
    ('Central Officer', 'CO', 4),
    ('Field Officer', 'FO', 3),
    ('Team Leader', 'TL', 2),
    ('Local Government Unit', 'LGU', 1),
]


@pytest.fixture(scope='function')
def db_session():
    """Fresh in-memory database for each test"""
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestSessionLocal()
    yield session
    session.close()

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def client(db_session):
    """Test client with database override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user_levels(db_session):
    levels = {}
    for position, abbreviation, level in LEVELS:
        row = UserLevel(position=position, abbreviation=abbreviation, user_level=level, status='Active')
        db_session.add(row)
        levels[position] = row
    db_session.commit()
    return levels


@pytest.fixture
def make_account(db_session, user_levels):
    """Factory for profile + account rows"""
    def _make(username='jdelacruz', email='juan@dswd.gov.ph', password=TEST_PASSWORD,
              status='Active', position='Field Officer', **account_fields):
        profile = Profile(
            firstname='Juan',
            lastname='Dela Cruz',
            date_of_birth=date(1990, 5, 1),
            phone_number='09171234567',
            address='Purok 1, San Lorenzo',
            job_title='Disaster Officer',
            region='Region I',
            province='Ilocos Norte',
            city='City of Laoag',
            status='Active',
        )
        db_session.add(profile)
        db_session.flush()

        account_fields.setdefault('failed_login_attempts', 0)
        account = Account(
            username=username,
            email=email,
            password=hash_password(password),
            status=status,
            profile_id=profile.id,
            user_level_id=user_levels[position].id,
            **account_fields,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account
    return _make


@pytest.fixture
def account(make_account):
    return make_account()


@pytest.fixture
def auth_headers(account):
    """Bearer header for the default test account"""
    token = create_access_token(
        user_id=account.id,
        email=account.email,
        user_level_id=account.user_level_id,
        position='Field Officer',
        session_id='test-session',
    )
    return {'Authorization': f'Bearer {token}'}
