"""
Router du suivi de flotte.
Upload des rapports (POST /api/v1/fleet-tracking/upload) et lectures
des snapshots pour le tableau de bord.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from fleettrack.database import get_db
from fleettrack.dependencies import Operator, require_fleet_role
from fleettrack.exceptions import FleetTrackingError
from fleettrack.schemas.common import ApiResponse, Pagination
from fleettrack.schemas.fleet import (
    CheckpointTrucks,
    CopyableList,
    CopyFormat,
    Direction,
    DistributionEntry,
    PositionsResult,
    SnapshotDetail,
    SnapshotListItem,
    UploadResult,
)
from fleettrack.services import fleet_query_service
from fleettrack.services.checkpoint_registry import CheckpointRegistry, get_checkpoint_registry
from fleettrack.services.direction_classifier import DirectionClassifier, get_direction_classifier
from fleettrack.services.fleet_upload_service import ingest_fleet_report

router = APIRouter(prefix="/api/v1/fleet-tracking", tags=["Suivi de flotte"])


def _http_error(exc: FleetTrackingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


@router.post(
    "/upload",
    response_model=ApiResponse[UploadResult],
    status_code=201,
    summary="Importer un rapport de flotte (xlsx, xls, csv)",
)
async def upload_fleet_report(
    file: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
    registry: CheckpointRegistry = Depends(get_checkpoint_registry),
    classifier: DirectionClassifier = Depends(get_direction_classifier),
):
    """
    Parse le rapport, résout les positions sur les checkpoints et enregistre
    un nouveau snapshot.

    Un rapport sans camion reste un succès (201) avec l'avertissement
    NO_TRUCKS_FOUND. Retourne 400 si le fichier est absent, vide, illisible ou
    d'une extension refusée, 413 s'il dépasse la taille maximale.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="Aucun fichier fourni.")

    content = await file.read()

    try:
        result = ingest_fleet_report(
            db,
            content,
            file_name=file.filename or "",
            uploaded_by=operator.name,
            registry=registry,
            classifier=classifier,
        )
    except FleetTrackingError as e:
        raise _http_error(e)

    message = f"{result.total_trucks} camions importés."
    if result.warnings:
        message += f" Avertissements : {', '.join(result.warnings)}."
    return ApiResponse(message=message, data=result)


@router.get("/snapshots", response_model=ApiResponse[List[SnapshotListItem]], summary="Lister les snapshots")
def list_snapshots(
    limit: int = Query(default=20, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    """Snapshots du plus récent au plus ancien, sans le détail des groupes."""
    items, total = fleet_query_service.list_snapshots(db, limit=limit, skip=skip)
    return ApiResponse(
        data=items,
        pagination=Pagination(total=total, limit=limit, skip=skip, has_more=skip + len(items) < total),
    )


@router.get("/snapshots/{snapshot_id}", response_model=ApiResponse[SnapshotDetail], summary="Détail d'un snapshot")
def get_snapshot(
    snapshot_id: uuid.UUID,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    try:
        return ApiResponse(data=fleet_query_service.get_snapshot(db, snapshot_id))
    except FleetTrackingError as e:
        raise _http_error(e)


@router.delete("/snapshots/{snapshot_id}", response_model=ApiResponse[dict], summary="Supprimer un snapshot")
def delete_snapshot(
    snapshot_id: uuid.UUID,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    """Suppression logique du snapshot puis suppression de ses positions."""
    try:
        removed = fleet_query_service.delete_snapshot(db, snapshot_id, deleted_by=operator.name)
    except FleetTrackingError as e:
        raise _http_error(e)
    return ApiResponse(
        message="Snapshot supprimé.",
        data={"snapshot_id": str(snapshot_id), "positions_removed": removed},
    )


@router.get("/latest", response_model=ApiResponse[SnapshotDetail], summary="Dernier snapshot")
def get_latest_snapshot(
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    try:
        return ApiResponse(data=fleet_query_service.get_latest_snapshot(db))
    except FleetTrackingError as e:
        raise _http_error(e)


@router.get("/positions", response_model=ApiResponse[PositionsResult], summary="Positions filtrées")
def get_positions(
    snapshot_id: Optional[uuid.UUID] = Query(default=None, alias="snapshotId"),
    checkpoint: Optional[str] = None,
    direction: Optional[Direction] = None,
    fleet_group: Optional[str] = Query(default=None, alias="fleetGroup"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    """Positions du snapshot demandé (ou du dernier), triées par ordre de checkpoint."""
    try:
        result = fleet_query_service.get_positions(
            db,
            snapshot_id=snapshot_id,
            checkpoint=checkpoint,
            direction=direction,
            fleet_group=fleet_group,
            search=search,
        )
    except FleetTrackingError as e:
        raise _http_error(e)
    return ApiResponse(data=result)


@router.get(
    "/checkpoint/{name}",
    response_model=ApiResponse[CheckpointTrucks],
    summary="Camions présents à un checkpoint",
)
def get_trucks_at_checkpoint(
    name: str,
    snapshot_id: Optional[uuid.UUID] = Query(default=None, alias="snapshotId"),
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    """Le nom est insensible à la casse. 404 si aucun camion n'y est positionné."""
    try:
        return ApiResponse(data=fleet_query_service.get_trucks_at_checkpoint(db, name, snapshot_id))
    except FleetTrackingError as e:
        raise _http_error(e)


@router.get(
    "/checkpoint/{name}/copy",
    response_model=ApiResponse[CopyableList],
    summary="Liste de camions prête à copier",
)
def get_copyable_list(
    name: str,
    fmt: CopyFormat = Query(default="comma", alias="format"),
    direction: Optional[Direction] = None,
    snapshot_id: Optional[uuid.UUID] = Query(default=None, alias="snapshotId"),
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    try:
        result = fleet_query_service.get_copyable_list(
            db, name, snapshot_id=snapshot_id, direction=direction, fmt=fmt
        )
    except FleetTrackingError as e:
        raise _http_error(e)
    return ApiResponse(data=result)


@router.get(
    "/stats/distribution",
    response_model=ApiResponse[List[DistributionEntry]],
    summary="Répartition des camions par checkpoint",
)
def get_checkpoint_distribution(
    snapshot_id: Optional[uuid.UUID] = Query(default=None, alias="snapshotId"),
    db: Session = Depends(get_db),
    operator: Operator = Depends(require_fleet_role),
):
    try:
        return ApiResponse(data=fleet_query_service.get_checkpoint_distribution(db, snapshot_id))
    except FleetTrackingError as e:
        raise _http_error(e)
