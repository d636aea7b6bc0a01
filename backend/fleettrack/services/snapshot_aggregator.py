"""
Agrégation des camions résolus en snapshot persisté.

Le snapshot est commité en premier (ses compteurs font foi), puis les positions
sont insérées en bulk. Un échec de l'insertion bulk n'annule pas le snapshot :
il est journalisé et signalé, le job de réconciliation détecte l'écart.
"""

import datetime as dt
import logging
import re
import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleettrack.models.fleet_snapshot import FleetSnapshot, TruckPosition
from fleettrack.schemas.fleet import ResolutionResult, ResolvedTruck, SnapshotSummary

logger = logging.getLogger(__name__)

_TONNAGE = re.compile(r"(\d+)\s*MT", re.IGNORECASE)
_ROUTE = re.compile(
    r"(DSM|MBSA|MOMBASA|TANGA)[\s-]+(KOLWEZI|LIKASI|LUBUMBASHI|COMIKA|TCC|KAMOA)",
    re.IGNORECASE,
)

# Champs d'un camion conservés dans la vue imbriquée fleet_groups
_GROUP_TRUCK_FIELDS = {
    "truck_no", "trailer_no", "current_checkpoint", "checkpoint_order", "status",
    "direction", "vehicle_type", "departure_date", "days_in_journey", "return_info",
}


def describe_group(name: str) -> Dict[str, Optional[object]]:
    """Tonnage et route extraits du titre ("RELOAD 313MT DSM-LIKASI" → 313, DSM-LIKASI)."""
    tonnage = _TONNAGE.search(name)
    route = _ROUTE.search(name)
    return {
        "tonnage": int(tonnage.group(1)) if tonnage else None,
        "route": f"{route.group(1).upper()}-{route.group(2).upper()}" if route else None,
    }


def group_trucks(trucks: List[ResolvedTruck]) -> List[Tuple[str, List[ResolvedTruck]]]:
    """Regroupe par groupe de flotte en conservant l'ordre de première apparition."""
    groups: Dict[str, List[ResolvedTruck]] = {}
    for truck in trucks:
        groups.setdefault(truck.fleet_group, []).append(truck)
    return list(groups.items())


def summarize(resolution: ResolutionResult) -> SnapshotSummary:
    trucks = resolution.trucks

    fleet_groups = [
        {
            "name": name,
            **describe_group(name),
            "trucks": [t.model_dump(mode="json", include=_GROUP_TRUCK_FIELDS) for t in members],
        }
        for name, members in group_trucks(trucks)
    ]

    distribution: Dict[str, int] = {}
    for truck in trucks:
        if truck.resolved:
            distribution[truck.current_checkpoint] = distribution.get(truck.current_checkpoint, 0) + 1

    going = sum(1 for t in trucks if t.direction == "GOING")
    returning = sum(1 for t in trucks if t.direction == "RETURNING")

    return SnapshotSummary(
        fleet_groups=fleet_groups,
        total_trucks=len(trucks),
        going_trucks=going,
        returning_trucks=returning,
        unknown_trucks=len(trucks) - going - returning,
        unresolved_trucks=sum(1 for t in trucks if not t.resolved),
        checkpoint_distribution=distribution,
    )


def persist_snapshot(
    db: Session,
    resolution: ResolutionResult,
    summary: SnapshotSummary,
    uploaded_by: str,
    file_name: str,
    file_size: int,
    skipped_rows: int = 0,
) -> Tuple[FleetSnapshot, bool]:
    """
    Persiste le snapshot puis ses positions.
    Retourne (snapshot, positions_persistées).
    """
    now = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
    snapshot = FleetSnapshot(
        id=uuid.uuid4(),
        timestamp=now,
        report_date=resolution.report_date,
        report_type=resolution.report_type,
        uploaded_by=uploaded_by,
        file_name=file_name,
        file_size=file_size,
        processed_at=now,
        fleet_groups=summary.fleet_groups,
        total_trucks=summary.total_trucks,
        going_trucks=summary.going_trucks,
        returning_trucks=summary.returning_trucks,
        unknown_trucks=summary.unknown_trucks,
        unresolved_trucks=summary.unresolved_trucks,
        skipped_rows=skipped_rows,
        checkpoint_distribution=summary.checkpoint_distribution,
        is_deleted=False,
    )
    db.add(snapshot)
    db.commit()
    db.refresh(snapshot)

    positions = [
        {
            "snapshot_id": snapshot.id,
            "truck_no": t.truck_no,
            "trailer_no": t.trailer_no,
            "current_checkpoint": t.current_checkpoint,
            "checkpoint_order": t.checkpoint_order,
            "status": t.status,
            "direction": t.direction,
            "vehicle_type": t.vehicle_type,
            "departure_date": t.departure_date,
            "days_in_journey": t.days_in_journey,
            "return_info": t.return_info,
            "fleet_group": t.fleet_group,
            "report_date": resolution.report_date,
        }
        for t in resolution.trucks
    ]
    if not positions:
        return snapshot, True

    try:
        db.bulk_insert_mappings(TruckPosition, positions)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Insertion des positions échouée pour le snapshot %s (%d camions) : %s",
            snapshot.id, len(positions), exc,
        )
        return snapshot, False

    return snapshot, True
