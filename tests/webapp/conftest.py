"""Pytest fixtures for webapp tests."""

import pytest

from blissnexus.webapp import create_app
from blissnexus.webapp.config import TestConfig
from blissnexus.webapp.services import get_engine_runner


@pytest.fixture
def app():
    """Create test application with in-memory storage and silent rulers."""
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        get_engine_runner().shutdown()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def joined(client):
    """Join the default test world and return the viewer id."""
    response = client.post("/api/worlds/test/join", json={"viewer_id": "v_test", "name": "Ada"})
    assert response.status_code == 200
    return "v_test"
