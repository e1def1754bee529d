import pytest

from attendance_api.accounts import create_account
from attendance_api.core.config import Settings
from attendance_api.database import build_engine, build_session_factory, initialize_database

TEST_ROUNDS = 4
DEMO_PASSWORD = '123456'


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url='sqlite://',
        jwt_secret_key='test-secret',
        bcrypt_rounds=TEST_ROUNDS,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.database_url)
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def accounts(db):
    admin = create_account(
        db,
        email='admin@example.com',
        password=DEMO_PASSWORD,
        name='System Admin',
        role='admin',
        profile={'admin_level': 'system'},
        rounds=TEST_ROUNDS,
    )
    staff = create_account(
        db,
        email='staff@example.com',
        password=DEMO_PASSWORD,
        name='John Staff',
        role='staff',
        profile={'employee_id': 'EMP001', 'department': 'Engineering', 'position': 'Lecturer'},
        rounds=TEST_ROUNDS,
    )
    student = create_account(
        db,
        email='student1@example.com',
        password=DEMO_PASSWORD,
        name='Student 1',
        role='student',
        profile={'student_id': 'STU001', 'class_name': 'A', 'section': 'CS', 'year': '2025'},
        rounds=TEST_ROUNDS,
    )
    return {'admin': admin, 'staff': staff, 'student': student}
