"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import os
import pytest
import tempfile
from datetime import date

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'cabanaclub_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH

# Seeded users (see database/seed.py)
ADMIN_ID = 1
APPROVER_ID = 2
REQUESTER_ID = 3
OTHER_REQUESTER_ID = 4
FULFILLMENT_ID = 5

# Seeded cabanas
CABANA_1 = 1        # concept 'Paquete Oro'
CABANA_2 = 2        # no concept
CABANA_3 = 3        # no concept
CABANA_VIP = 4      # concept 'Paquete Oro'

# Seeded products
PRODUCT_WATER = 1      # 50.0
PRODUCT_FRUIT = 2      # 300.0
PRODUCT_CHAMPAGNE = 3  # 2500.0
PRODUCT_INACTIVE = 4   # 180.0, inactive

CONCEPT_GOLD = 1       # 4 x water + 1 x fruit = 500.0 at general prices

NEXT_YEAR = date.today().year + 2


def day(month_day: str) -> str:
    """Build an ISO date in a year that is always in the future, e.g. day('06-01')."""
    return f'{NEXT_YEAR}-{month_day}'


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    # Ensure test database path is set
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for suffix in ('', '-wal', '-shm'):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def app():
    """
    Create test application with a freshly initialized database.

    No application context stays pushed: every test client request gets its
    own context (and its own Flask-Login user), and model-level tests push
    one explicitly with app.app_context().
    """
    from app import create_app
    from database import init_db

    # Ensure test database path
    os.environ['DATABASE_PATH'] = TEST_DB_PATH

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['DATABASE_PATH'] = TEST_DB_PATH
    app.config['SIDE_EFFECTS_ASYNC'] = False

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _headers(user_id: int) -> dict:
    return {'X-User-Id': str(user_id)}


@pytest.fixture
def requester_headers():
    """Headers of the seeded requester (casino1)."""
    return _headers(REQUESTER_ID)


@pytest.fixture
def other_requester_headers():
    """Headers of a second requester (casino2)."""
    return _headers(OTHER_REQUESTER_ID)


@pytest.fixture
def approver_headers():
    """Headers of the seeded approver (recepcion)."""
    return _headers(APPROVER_ID)


@pytest.fixture
def fulfillment_headers():
    """Headers of the seeded fulfillment user (fnb)."""
    return _headers(FULFILLMENT_ID)


@pytest.fixture
def admin_headers():
    """Headers of the seeded system admin."""
    return _headers(ADMIN_ID)


@pytest.fixture
def make_reservation(app):
    """
    Factory creating a PENDING reservation through the model layer.

    Usage:
        reservation = make_reservation(CABANA_2, day('06-01'), day('06-05'))
    """
    def _make(cabana_id, start_date, end_date, user_id=REQUESTER_ID,
              guest_name='Test Guest', guest_id=None):
        from models.reservation import create_reservation

        payload = {
            'cabana_id': cabana_id,
            'guest_name': guest_name,
            'start_date': start_date,
            'end_date': end_date,
            'notes': 'created by test',
        }
        if guest_id is not None:
            payload['guest_id'] = guest_id
        with app.app_context():
            return create_reservation(payload, user_id)

    return _make


@pytest.fixture
def make_approved(app, make_reservation):
    """Factory creating an APPROVED reservation (manual price unless given None)."""
    def _make(cabana_id, start_date, end_date, total_price=1000, **kwargs):
        from models.reservation import approve_reservation

        reservation = make_reservation(cabana_id, start_date, end_date, **kwargs)
        with app.app_context():
            return approve_reservation(reservation['id'], APPROVER_ID, total_price=total_price)

    return _make
