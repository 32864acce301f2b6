"""
Pytest fixtures for subsidiary hub backend tests.

Provides an in-memory SQLite app, per-test table cleanup, two tenants with
their users and inventory, and login helpers.
"""

import pytest
from subsidiary_hub import create_app
from subsidiary_hub.extensions import db
from subsidiary_hub.models import InventoryItem, Subsidiary, User
from subsidiary_hub.permissions import Role
from subsidiary_hub.services.auth_service import hash_password


TEST_PASSWORD = "secret123"


def make_test_app(tmp_dir, **overrides):
    """Build an app bound to the given temp directory for config and uploads."""
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'DB_ENGINE': 'sqlite',
        'DB_CONFIG_PATH': str(tmp_dir / 'db.config.json'),
        'DB_CONNECT_ATTEMPTS': 1,
        'DB_CONNECT_BACKOFF_SECONDS': 0,
        'BOOTSTRAP_DEFAULT_ADMIN': False,
        'PASSWORD_KDF_ROUNDS': 4,
        'SESSION_STORE': 'database',
        'UPLOAD_FOLDER': str(tmp_dir / 'uploads'),
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = make_test_app(tmp_path_factory.mktemp('hub'))

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before the test; the schema is kept."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def sub_a(db_session):
    """Create Subsidiary A (first tenant)."""
    subsidiary = Subsidiary(
        name="Alpha Retail",
        tax_id="TAX-A-001",
        email="office@alpha.example",
        phone_number="5550100001",
        city="Lisbon",
        status=True,
    )
    db_session.add(subsidiary)
    db_session.commit()
    return subsidiary


@pytest.fixture(scope='function')
def sub_b(db_session):
    """Create Subsidiary B (second tenant)."""
    subsidiary = Subsidiary(
        name="Beta Wholesale",
        tax_id="TAX-B-001",
        email="office@beta.example",
        phone_number="5550100002",
        status=True,
    )
    db_session.add(subsidiary)
    db_session.commit()
    return subsidiary


def _make_user(db_session, username, role, subsidiary_id=None):
    user = User(
        username=username,
        password=hash_password(TEST_PASSWORD),
        role=role.value,
        subsidiary_id=subsidiary_id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def mhc_admin(db_session):
    return _make_user(db_session, "mhc_root", Role.MHC_ADMIN)


@pytest.fixture(scope='function')
def admin_a(db_session, sub_a):
    return _make_user(db_session, "admin_a", Role.SUBSIDIARY_ADMIN, sub_a.id)


@pytest.fixture(scope='function')
def staff_a(db_session, sub_a):
    return _make_user(db_session, "staff_a", Role.STAFF, sub_a.id)


@pytest.fixture(scope='function')
def staff_b(db_session, sub_b):
    return _make_user(db_session, "staff_b", Role.STAFF, sub_b.id)


@pytest.fixture(scope='function')
def item_a(db_session, sub_a):
    """Inventory item in Subsidiary A with 10 units."""
    item = InventoryItem(
        subsidiary_id=sub_a.id,
        sku="ALPHA-001",
        name="Desk Lamp",
        category="Lighting",
        cost_price=12.5,
        sale_price=25.0,
        quantity=10,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def item_b(db_session, sub_b):
    """Inventory item in Subsidiary B with 5 units."""
    item = InventoryItem(
        subsidiary_id=sub_b.id,
        sku="BETA-001",
        name="Office Chair",
        category="Furniture",
        cost_price=80.0,
        sale_price=150.0,
        quantity=5,
    )
    db_session.add(item)
    db_session.commit()
    return item


def get_auth_token(app, username: str, password: str = TEST_PASSWORD) -> str:
    """
    Log in through a throwaway client and return the session token.

    A separate client keeps the session cookie out of the test's own client.
    """
    response = app.test_client().post('/api/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def mhc_headers(app, mhc_admin):
    return auth_headers(get_auth_token(app, mhc_admin.username))


@pytest.fixture(scope='function')
def admin_a_headers(app, admin_a):
    return auth_headers(get_auth_token(app, admin_a.username))


@pytest.fixture(scope='function')
def staff_a_headers(app, staff_a):
    return auth_headers(get_auth_token(app, staff_a.username))


@pytest.fixture(scope='function')
def staff_b_headers(app, staff_b):
    return auth_headers(get_auth_token(app, staff_b.username))
