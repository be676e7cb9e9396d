"""
pytest configuration and fixtures.

Loads environment variables from .env file for all tests and provides an
API client wired to an in-memory application context.
"""

from pathlib import Path

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from fakes import TEST_PICTURE, TEST_TOKEN, TEST_USER_ID, InMemoryContext, make_context


def pytest_configure(config):
    """Load .env file before running tests"""
    project_root = Path(__file__).parent.parent
    env_file = project_root / ".env"

    if env_file.exists():
        print(f"Loading environment from {env_file}")
        load_dotenv(env_file)


@pytest.fixture
def context() -> InMemoryContext:
    """In-memory context with one known token for TEST_USER_ID."""
    ctx = make_context()
    ctx.verifier.add(
        TEST_TOKEN,
        sub=TEST_USER_ID,
        email="jane@example.com",
        name="Jane Doe",
        picture=TEST_PICTURE,
    )
    return ctx


@pytest.fixture
def client(context: InMemoryContext):
    """Test client for the API using the in-memory context."""
    from todocal.api.main import app

    app.state.context = context
    try:
        yield TestClient(app)
    finally:
        app.state.context = None
