# tests/conftest.py
"""
Shared pytest fixtures for the restmotor test suite.

Provides:
- An in-process Motor database (mongomock-motor), fresh per test
- A fresh ConnectorRegistry so schema and handle caches never leak
- A strict MotorConnector bound to that database
- Faker for sample data
"""
import pytest
from faker import Faker
from mongomock_motor import AsyncMongoMockClient

from restmotor import ConnectorRegistry, MotorConnector, use_db


# ═══════════════════════════════════════════════════════
# FIXTURES - Storage
# ═══════════════════════════════════════════════════════

@pytest.fixture
def mongo_client():
    """In-memory stand-in for AsyncIOMotorClient."""
    return AsyncMongoMockClient()


@pytest.fixture
def database(mongo_client):
    return mongo_client["restmotor_test"]


@pytest.fixture
def registry():
    return ConnectorRegistry()


@pytest.fixture
def connector(registry, database):
    return MotorConnector(registry=registry, database=database, strict_errors=True)


@pytest.fixture
def default_db(database):
    """Install the test database as the process-wide default connection."""
    use_db(database)
    yield database
    use_db(None)


# ═══════════════════════════════════════════════════════
# FIXTURES - Sample data
# ═══════════════════════════════════════════════════════

@pytest.fixture
def fake():
    return Faker()
