"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et le registre des checkpoints pour travailler sur une liste en mémoire.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from fleettrack.database import get_db
from fleettrack.main import app
from fleettrack.schemas.checkpoint import CheckpointRef
from fleettrack.services.checkpoint_registry import CheckpointRegistry, get_checkpoint_registry

ADMIN_HEADERS = {"X-User-Name": "alice", "X-User-Role": "admin"}


def make_ref(name, order, aliases=(), is_major=False):
    return CheckpointRef(
        name=name,
        display_name=name.title(),
        sequence_order=order,
        alternative_names=aliases,
        is_major=is_major,
    )


@pytest.fixture
def corridor():
    """Extrait du corridor : assez pour les cas alias / partiel / départage."""
    return [
        make_ref("MOMBASA", 3, ["MOMBASA PORT", "MSA"], is_major=True),
        make_ref("TANGA", 5, ["TANGA TZ"], is_major=True),
        make_ref("MSATA", 11, ["MSATA TZ"]),
        make_ref("DSM", 14, ["DAR ES SALAAM", "DAR", "DSM PORT"], is_major=True),
        make_ref("MOROGORO", 23, ["MOROGORO TZ"], is_major=True),
        make_ref("TUNDUMA BORDER", 40, ["TUNDUMA"], is_major=True),
        make_ref("KOLWEZI", 65, ["KOLWEZI DRC"], is_major=True),
    ]


@pytest.fixture
def registry(corridor):
    return CheckpointRegistry(loader=lambda: list(corridor))


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def client(mock_db, registry):
    """Client HTTP de test avec la BDD mockée, identifié comme admin."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_checkpoint_registry] = lambda: registry
    with TestClient(app, headers=ADMIN_HEADERS) as c:
        yield c
    app.dependency_overrides.clear()
