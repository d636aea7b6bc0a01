"""
Lectures, suppression et agrégats sur les snapshots de flotte (tableau de bord).

Toutes les lectures filtrent sur is_deleted : un snapshot supprimé se comporte
comme un snapshot inexistant, même si des positions orphelines subsistent.
"""

import datetime as dt
import json
import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session, defer

from fleettrack.exceptions import NotFoundError
from fleettrack.models.fleet_snapshot import FleetSnapshot, TruckPosition
from fleettrack.schemas.fleet import (
    CheckpointTrucks,
    CopyableList,
    DirectionSummary,
    DistributionEntry,
    PositionsResult,
    ReconciliationReport,
    SnapshotDetail,
    SnapshotListItem,
    TruckPositionResponse,
)
from fleettrack.services.checkpoint_matcher import UNRESOLVED_CHECKPOINT_ORDER

logger = logging.getLogger(__name__)


def _normalize_name(name: str) -> str:
    return " ".join(name.upper().split())


def _active_snapshot(db: Session, snapshot_id: uuid.UUID) -> FleetSnapshot:
    snapshot = db.get(FleetSnapshot, snapshot_id)
    if snapshot is None or snapshot.is_deleted:
        raise NotFoundError(f"Snapshot {snapshot_id} introuvable.")
    return snapshot


def _latest_snapshot(db: Session) -> FleetSnapshot:
    snapshot = db.execute(
        select(FleetSnapshot)
        .where(FleetSnapshot.is_deleted.is_(False))
        .order_by(FleetSnapshot.timestamp.desc())
        .limit(1)
    ).scalars().first()
    if snapshot is None:
        raise NotFoundError("Aucun snapshot de flotte trouvé.")
    return snapshot


def _target_snapshot(db: Session, snapshot_id: Optional[uuid.UUID]) -> FleetSnapshot:
    """Snapshot demandé, ou le plus récent si aucun identifiant n'est fourni."""
    if snapshot_id is not None:
        return _active_snapshot(db, snapshot_id)
    return _latest_snapshot(db)


def list_snapshots(db: Session, limit: int = 20, skip: int = 0) -> Tuple[List[SnapshotListItem], int]:
    """Snapshots non supprimés, du plus récent au plus ancien, sans fleet_groups."""
    snapshots = db.execute(
        select(FleetSnapshot)
        .options(defer(FleetSnapshot.fleet_groups))
        .where(FleetSnapshot.is_deleted.is_(False))
        .order_by(FleetSnapshot.timestamp.desc())
        .offset(skip)
        .limit(limit)
    ).scalars().all()

    total = db.execute(
        select(func.count())
        .select_from(FleetSnapshot)
        .where(FleetSnapshot.is_deleted.is_(False))
    ).scalar() or 0

    return [SnapshotListItem.model_validate(s) for s in snapshots], total


def get_latest_snapshot(db: Session) -> SnapshotDetail:
    return SnapshotDetail.model_validate(_latest_snapshot(db))


def get_snapshot(db: Session, snapshot_id: uuid.UUID) -> SnapshotDetail:
    return SnapshotDetail.model_validate(_active_snapshot(db, snapshot_id))


def get_positions(
    db: Session,
    snapshot_id: Optional[uuid.UUID] = None,
    checkpoint: Optional[str] = None,
    direction: Optional[str] = None,
    fleet_group: Optional[str] = None,
    search: Optional[str] = None,
) -> PositionsResult:
    """
    Positions d'un snapshot filtrées.
    checkpoint / direction : égalité insensible à la casse.
    fleet_group / search (numéro de camion) : sous-chaîne insensible à la casse.
    """
    snapshot = _target_snapshot(db, snapshot_id)

    query = select(TruckPosition).where(TruckPosition.snapshot_id == snapshot.id)
    if checkpoint:
        query = query.where(func.upper(TruckPosition.current_checkpoint) == _normalize_name(checkpoint))
    if direction:
        query = query.where(TruckPosition.direction == direction.strip().upper())
    if fleet_group:
        query = query.where(func.lower(TruckPosition.fleet_group).contains(fleet_group.lower(), autoescape=True))
    if search:
        query = query.where(func.lower(TruckPosition.truck_no).contains(search.lower(), autoescape=True))

    positions = db.execute(
        query.order_by(TruckPosition.checkpoint_order, TruckPosition.truck_no)
    ).scalars().all()

    return PositionsResult(
        snapshot=SnapshotListItem.model_validate(snapshot),
        positions=[TruckPositionResponse.model_validate(p) for p in positions],
        summary=DirectionSummary(
            total_trucks=len(positions),
            going_trucks=sum(1 for p in positions if p.direction == "GOING"),
            returning_trucks=sum(1 for p in positions if p.direction == "RETURNING"),
        ),
    )


def get_trucks_at_checkpoint(
    db: Session,
    name: str,
    snapshot_id: Optional[uuid.UUID] = None,
) -> CheckpointTrucks:
    """Camions présents à un checkpoint, séparés par direction."""
    snapshot = _target_snapshot(db, snapshot_id)
    checkpoint = _normalize_name(name)

    trucks = db.execute(
        select(TruckPosition)
        .where(
            TruckPosition.snapshot_id == snapshot.id,
            func.upper(TruckPosition.current_checkpoint) == checkpoint,
        )
        .order_by(TruckPosition.direction, TruckPosition.truck_no)
    ).scalars().all()

    if not trucks:
        raise NotFoundError(f"Aucun camion au checkpoint {checkpoint} : checkpoint introuvable dans ce snapshot.")

    by_direction = {"GOING": [], "RETURNING": [], "UNKNOWN": []}
    for truck in trucks:
        by_direction.get(truck.direction, by_direction["UNKNOWN"]).append(
            TruckPositionResponse.model_validate(truck)
        )

    return CheckpointTrucks(
        checkpoint=checkpoint,
        snapshot_id=snapshot.id,
        total_trucks=len(trucks),
        going_trucks=by_direction["GOING"],
        returning_trucks=by_direction["RETURNING"],
        unknown_trucks=by_direction["UNKNOWN"],
        summary={
            "going": len(by_direction["GOING"]),
            "returning": len(by_direction["RETURNING"]),
            "unknown": len(by_direction["UNKNOWN"]),
        },
    )


def format_truck_list(trucks: Sequence[TruckPosition], fmt: str = "comma") -> str:
    """
    Texte prêt à copier :
    comma → "T1, T2" ; line → une ligne par camion ; array → ["T1","T2"] ;
    detailed → "T1 (GOING, LOADED)" par ligne.
    """
    numbers = [t.truck_no for t in trucks]
    if fmt == "line":
        return "\n".join(numbers)
    if fmt == "array":
        return json.dumps(numbers, separators=(",", ":"))
    if fmt == "detailed":
        return "\n".join(f"{t.truck_no} ({t.direction}, {t.status})" for t in trucks)
    return ", ".join(numbers)


def get_copyable_list(
    db: Session,
    name: str,
    snapshot_id: Optional[uuid.UUID] = None,
    direction: Optional[str] = None,
    fmt: str = "comma",
) -> CopyableList:
    snapshot = _target_snapshot(db, snapshot_id)
    checkpoint = _normalize_name(name)

    query = select(TruckPosition).where(
        TruckPosition.snapshot_id == snapshot.id,
        func.upper(TruckPosition.current_checkpoint) == checkpoint,
    )
    if direction:
        query = query.where(TruckPosition.direction == direction.strip().upper())

    trucks = db.execute(query.order_by(TruckPosition.truck_no)).scalars().all()

    return CopyableList(
        checkpoint=checkpoint,
        direction=direction.strip().upper() if direction else "ALL",
        count=len(trucks),
        truck_numbers=[t.truck_no for t in trucks],
        formatted_text=format_truck_list(trucks, fmt),
        format=fmt,
    )


def delete_snapshot(db: Session, snapshot_id: uuid.UUID, deleted_by: str = "") -> int:
    """
    Suppression logique du snapshot puis suppression bulk de ses positions.
    Deux étapes successives : si la seconde échoue, seules des positions
    orphelines subsistent (purgées par la réconciliation).
    Retourne le nombre de positions supprimées.
    """
    snapshot = _active_snapshot(db, snapshot_id)
    snapshot.is_deleted = True
    snapshot.deleted_at = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
    db.commit()

    result = db.execute(delete(TruckPosition).where(TruckPosition.snapshot_id == snapshot_id))
    db.commit()

    logger.info("Snapshot %s supprimé par %s (%s positions)", snapshot_id, deleted_by or "?", result.rowcount)
    return result.rowcount


def get_checkpoint_distribution(
    db: Session,
    snapshot_id: Optional[uuid.UUID] = None,
) -> List[DistributionEntry]:
    """Nombre de camions par checkpoint (aller / retour), dans l'ordre de la route."""
    snapshot = _target_snapshot(db, snapshot_id)

    order = func.min(TruckPosition.checkpoint_order)
    rows = db.execute(
        select(
            TruckPosition.current_checkpoint,
            order.label("checkpoint_order"),
            func.count().label("total"),
            func.sum(case((TruckPosition.direction == "GOING", 1), else_=0)).label("going"),
            func.sum(case((TruckPosition.direction == "RETURNING", 1), else_=0)).label("returning"),
        )
        .where(TruckPosition.snapshot_id == snapshot.id)
        .group_by(TruckPosition.current_checkpoint)
        .order_by(order, TruckPosition.current_checkpoint)
    ).all()

    return [
        DistributionEntry(
            checkpoint=row.current_checkpoint,
            checkpoint_order=row.checkpoint_order,
            resolved=row.checkpoint_order < UNRESOLVED_CHECKPOINT_ORDER,
            total=row.total,
            going=row.going or 0,
            returning=row.returning or 0,
        )
        for row in rows
    ]


def reconcile_positions(db: Session) -> ReconciliationReport:
    """
    Contrôle de cohérence snapshot ↔ positions :
    - supprime les positions des snapshots supprimés logiquement
    - signale les snapshots dont le nombre de positions diffère de total_trucks
    """
    deleted_ids = select(FleetSnapshot.id).where(FleetSnapshot.is_deleted.is_(True))
    purge = db.execute(delete(TruckPosition).where(TruckPosition.snapshot_id.in_(deleted_ids)))
    db.commit()

    counts = db.execute(
        select(
            FleetSnapshot.id,
            FleetSnapshot.total_trucks,
            func.count(TruckPosition.id).label("positions"),
        )
        .outerjoin(TruckPosition, TruckPosition.snapshot_id == FleetSnapshot.id)
        .where(FleetSnapshot.is_deleted.is_(False))
        .group_by(FleetSnapshot.id, FleetSnapshot.total_trucks)
    ).all()

    mismatched = []
    for row in counts:
        if row.positions != row.total_trucks:
            mismatched.append(row.id)
            logger.warning(
                "Snapshot %s incohérent : %d positions pour %d camions",
                row.id, row.positions, row.total_trucks,
            )

    return ReconciliationReport(
        checked_snapshots=len(counts),
        mismatched_snapshots=mismatched,
        orphan_positions_removed=purge.rowcount or 0,
    )
