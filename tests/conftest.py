"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import pytest
import tempfile
import shutil
from unittest.mock import MagicMock

from instantly_chef.config import Settings
from instantly_chef.data.database import DatabaseInterface
from instantly_chef.data.models import Ingredient, MenuItem
from instantly_chef.generation.client import MenuGenerationClient
from instantly_chef.web.app import create_app


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.upsert_profile("user-1", {...})
    """
    return DatabaseInterface(db_dir=temp_db_dir)


@pytest.fixture
def settings(temp_db_dir):
    """Fully configured settings pointing at a fake webhook."""
    return Settings(
        n8n_webhook_url="https://n8n.example.test/webhook/menus",
        public_base_url="https://chef.example.test/",
        webhook_secret=None,
        request_timeout=5.0,
        secret_key="test-secret",
        db_dir=temp_db_dir,
    )


@pytest.fixture
def mock_session():
    """requests.Session stand-in; configure .post per test."""
    session = MagicMock()
    response = MagicMock()
    response.ok = True
    response.status_code = 202
    response.text = "accepted"
    session.post.return_value = response
    return session


@pytest.fixture
def generation_client(settings, db, mock_session):
    return MenuGenerationClient(settings, store=db, session=mock_session)


@pytest.fixture
def sample_menu():
    """Two-portion menu with a single priced ingredient."""
    return MenuItem(
        id="menu-1",
        title="Roast Chicken",
        description="Simple roast chicken",
        hero="/hero.jpg",
        portions=2,
        ingredients=[Ingredient(name="Chicken", qty=1, measure="lb", est_price=5.5)],
    )


@pytest.fixture
def app(settings, db, generation_client):
    """Flask app wired to the temp database and mocked webhook session."""
    flask_app = create_app(settings, db=db, generation_client=generation_client)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    """Test client with a signed-in session."""
    with app.test_client() as client:
        with client.session_transaction() as sess:
            sess["user_id"] = "user-1"
            sess["email"] = "jane.doe@example.com"
        yield client


@pytest.fixture
def anon_client(app):
    """Test client without a session."""
    with app.test_client() as client:
        yield client
