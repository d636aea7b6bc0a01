"""
Router d'administration des checkpoints du corridor.
Chaque mutation réussie invalide le cache du registre utilisé par l'ingestion.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleettrack.database import get_db
from fleettrack.dependencies import Operator, require_checkpoint_admin, require_fleet_role, require_seed_role
from fleettrack.exceptions import FleetTrackingError
from fleettrack.schemas.checkpoint import (
    CheckpointCreate,
    CheckpointReorderRequest,
    CheckpointResolveResponse,
    CheckpointResponse,
    CheckpointUpdate,
    SeedResult,
)
from fleettrack.schemas.common import ApiResponse
from fleettrack.services import checkpoint_service
from fleettrack.services.checkpoint_matcher import normalize_location
from fleettrack.services.checkpoint_registry import CheckpointRegistry, get_checkpoint_registry

router = APIRouter(prefix="/api/v1/checkpoints", tags=["Checkpoints"])


def _http_error(exc: FleetTrackingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


@router.get("", response_model=ApiResponse[List[CheckpointResponse]], summary="Lister les checkpoints")
def list_checkpoints(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    """Checkpoints non supprimés, dans l'ordre de la route."""
    return ApiResponse(data=checkpoint_service.list_checkpoints(db, include_inactive=include_inactive))


@router.get(
    "/resolve",
    response_model=ApiResponse[CheckpointResolveResponse],
    summary="Prévisualiser la résolution d'une position",
)
def resolve_location(
    q: str = Query(..., min_length=1),
    operator: Operator = Depends(require_fleet_role),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
):
    """Applique au texte fourni le même matching que l'ingestion des rapports."""
    match = registry.resolve(q)
    data = CheckpointResolveResponse(
        query=q,
        normalized=normalize_location(q),
        matched=match is not None,
        checkpoint=match.checkpoint.name if match else None,
        sequence_order=match.checkpoint.sequence_order if match else None,
        tier=match.tier if match else None,
    )
    return ApiResponse(data=data)


@router.post(
    "/reorder",
    response_model=ApiResponse[List[CheckpointResponse]],
    summary="Réordonner les checkpoints",
)
def reorder_checkpoints(
    payload: CheckpointReorderRequest,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
):
    """Retourne 400 si un identifiant est inconnu ou si deux checkpoints actifs partagent un ordre."""
    try:
        result = checkpoint_service.reorder_checkpoints(db, payload.checkpoints)
    except FleetTrackingError as e:
        raise _http_error(e)
    registry.invalidate()
    return ApiResponse(message="Checkpoints réordonnés.", data=result)


@router.post("/seed", response_model=ApiResponse[SeedResult], status_code=201, summary="Charger la liste par défaut")
def seed_checkpoints(
    force: bool = False,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_seed_role),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
):
    """Refusé (400) si des checkpoints existent déjà, sauf avec force=true."""
    try:
        result = checkpoint_service.seed_checkpoints(db, force=force, created_by=operator.name)
    except FleetTrackingError as e:
        raise _http_error(e)
    registry.invalidate()
    return ApiResponse(message=f"{result.created} checkpoints créés.", data=result)


@router.get("/{checkpoint_id}", response_model=ApiResponse[CheckpointResponse], summary="Détail d'un checkpoint")
def get_checkpoint(
    checkpoint_id: uuid.UUID,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    try:
        return ApiResponse(data=checkpoint_service.get_checkpoint(db, checkpoint_id))
    except FleetTrackingError as e:
        raise _http_error(e)


@router.post("", response_model=ApiResponse[CheckpointResponse], status_code=201, summary="Créer un checkpoint")
def create_checkpoint(
    data: CheckpointCreate,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
):
    """
    Sans position : ajouté en fin de route.
    Avec sequence_order ou insert_after : les checkpoints suivants sont décalés.
    """
    try:
        result = checkpoint_service.create_checkpoint(db, data, created_by=operator.name)
    except FleetTrackingError as e:
        raise _http_error(e)
    registry.invalidate()
    return ApiResponse(message="Checkpoint créé.", data=result)


@router.put("/{checkpoint_id}", response_model=ApiResponse[CheckpointResponse], summary="Modifier un checkpoint")
def update_checkpoint(
    checkpoint_id: uuid.UUID,
    data: CheckpointUpdate,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
):
    try:
        result = checkpoint_service.update_checkpoint(db, checkpoint_id, data)
    except FleetTrackingError as e:
        raise _http_error(e)
    registry.invalidate()
    return ApiResponse(message="Checkpoint mis à jour.", data=result)


@router.delete("/{checkpoint_id}", response_model=ApiResponse[dict], summary="Supprimer un checkpoint")
def delete_checkpoint(
    checkpoint_id: uuid.UUID,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_checkpoint_admin),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
):
    """Suppression logique ; les snapshots historiques conservent le nom."""
    try:
        checkpoint_service.delete_checkpoint(db, checkpoint_id)
    except FleetTrackingError as e:
        raise _http_error(e)
    registry.invalidate()
    return ApiResponse(message="Checkpoint supprimé.", data={"checkpoint_id": str(checkpoint_id)})
