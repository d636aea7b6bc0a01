"""
Tests d'intégration API pour l'administration des checkpoints.
Testent /api/v1/checkpoints (CRUD, reorder, seed, resolve) et le contrôle des rôles.
"""

import uuid
from datetime import datetime
from unittest.mock import patch

from fleettrack.exceptions import NotFoundError, ValidationError
from fleettrack.schemas.checkpoint import CheckpointResponse, SeedResult

SERVICE = "fleettrack.routers.checkpoints.checkpoint_service"


# --- Helpers ---

def make_checkpoint_response(**kwargs) -> CheckpointResponse:
    return CheckpointResponse(
        id=kwargs.get("id", uuid.uuid4()),
        name=kwargs.get("name", "SEGERA"),
        display_name=kwargs.get("display_name", "Segera"),
        sequence_order=kwargs.get("sequence_order", 9),
        region="TANZANIA_COASTAL",
        country="TZ",
        latitude=None,
        longitude=None,
        route_segment=None,
        is_active=True,
        is_major=False,
        alternative_names=kwargs.get("alternative_names", []),
        fuel_available=False,
        border_crossing=False,
        estimated_distance_from_start=230,
        created_at=datetime.now(),
    )


CREATE_PAYLOAD = {"name": "Segera", "display_name": "Segera", "region": "TANZANIA_COASTAL", "country": "TZ"}


# ============================================================
# Lectures
# ============================================================

def test_list_checkpoints(client):
    with patch(f"{SERVICE}.list_checkpoints") as mock:
        mock.return_value = [make_checkpoint_response(), make_checkpoint_response(name="TANGA", sequence_order=5)]
        response = client.get("/api/v1/checkpoints?includeInactive=true")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["data"]) == 2
    assert mock.call_args.kwargs == {"include_inactive": True}


def test_get_checkpoint_introuvable(client):
    with patch(f"{SERVICE}.get_checkpoint", side_effect=NotFoundError("Checkpoint introuvable.")):
        response = client.get(f"/api/v1/checkpoints/{uuid.uuid4()}")

    assert response.status_code == 404
    assert "introuvable" in response.json()["detail"]


def test_resolve_preview(client):
    response = client.get("/api/v1/checkpoints/resolve", params={"q": "Msa Port"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["normalized"] == "MSA PORT"
    assert data["matched"] is True
    assert data["checkpoint"] == "MOMBASA"
    assert data["tier"] == "PARTIAL"


def test_resolve_sans_correspondance(client):
    response = client.get("/api/v1/checkpoints/resolve", params={"q": "nowhere"})

    data = response.json()["data"]
    assert data["matched"] is False
    assert data["checkpoint"] is None


# ============================================================
# Mutations et invalidation du registre
# ============================================================

def test_create_checkpoint_invalide_le_registre(client, registry):
    registry.load_active()
    with patch(f"{SERVICE}.create_checkpoint", return_value=make_checkpoint_response()) as mock:
        response = client.post("/api/v1/checkpoints", json=CREATE_PAYLOAD)

    assert response.status_code == 201
    assert response.json()["data"]["name"] == "SEGERA"
    assert mock.call_args.kwargs == {"created_by": "alice"}
    assert registry._cache is None


def test_create_checkpoint_doublon(client, registry):
    registry.load_active()
    with patch(f"{SERVICE}.create_checkpoint", side_effect=ValidationError("Le checkpoint SEGERA existe déjà.")):
        response = client.post("/api/v1/checkpoints", json=CREATE_PAYLOAD)

    assert response.status_code == 400
    # Pas d'invalidation sur échec
    assert registry._cache is not None


def test_create_checkpoint_region_invalide(client):
    response = client.post("/api/v1/checkpoints", json={**CREATE_PAYLOAD, "region": "EUROPE"})
    assert response.status_code == 422


def test_update_checkpoint(client):
    with patch(f"{SERVICE}.update_checkpoint", return_value=make_checkpoint_response(display_name="Segera Jct")):
        response = client.put(f"/api/v1/checkpoints/{uuid.uuid4()}", json={"display_name": "Segera Jct"})

    assert response.status_code == 200
    assert response.json()["data"]["display_name"] == "Segera Jct"


def test_reorder_liste_vide(client):
    response = client.post("/api/v1/checkpoints/reorder", json={"checkpoints": []})
    assert response.status_code == 422


def test_reorder_collision(client):
    with patch(f"{SERVICE}.reorder_checkpoints", side_effect=ValidationError("ordre unique")):
        response = client.post(
            "/api/v1/checkpoints/reorder",
            json={"checkpoints": [{"id": str(uuid.uuid4()), "sequence_order": 1}]},
        )
    assert response.status_code == 400


# ============================================================
# Rôles
# ============================================================

def test_sans_role_refuse(client):
    response = client.get("/api/v1/checkpoints", headers={"X-User-Role": ""})
    assert response.status_code == 403


def test_delete_refuse_pour_fuel_order_maker(client):
    response = client.delete(
        f"/api/v1/checkpoints/{uuid.uuid4()}",
        headers={"X-User-Role": "fuel_order_maker"},
    )
    assert response.status_code == 403


def test_delete_admin(client):
    with patch(f"{SERVICE}.delete_checkpoint") as mock:
        response = client.delete(f"/api/v1/checkpoints/{uuid.uuid4()}")

    assert response.status_code == 200
    mock.assert_called_once()


def test_seed_reserve_au_super_admin(client):
    response = client.post("/api/v1/checkpoints/seed")
    assert response.status_code == 403


def test_seed_force(client):
    with patch(f"{SERVICE}.seed_checkpoints", return_value=SeedResult(created=65, removed=3)) as mock:
        response = client.post(
            "/api/v1/checkpoints/seed?force=true",
            headers={"X-User-Role": "super_admin"},
        )

    assert response.status_code == 201
    assert response.json()["data"] == {"created": 65, "removed": 3}
    assert mock.call_args.kwargs == {"force": True, "created_by": "alice"}
