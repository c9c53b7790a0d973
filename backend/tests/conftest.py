"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL.
"""

import os

# Pas de job planifié pendant les tests
os.environ.setdefault("CALENDAR_SYNC_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from sathipasala.database import get_db
from sathipasala.main import app


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Client HTTP de test avec la BDD mockée."""
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
