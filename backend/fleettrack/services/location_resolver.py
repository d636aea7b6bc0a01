"""
Résolution des positions brutes en checkpoints canoniques et calcul de la direction.
"""

import datetime as dt
import logging
from typing import List, Optional

from fleettrack.schemas.fleet import ParsedReport, RawTruckRecord, ResolutionResult, ResolvedTruck
from fleettrack.services.checkpoint_matcher import UNRESOLVED_CHECKPOINT_ORDER
from fleettrack.services.checkpoint_registry import CheckpointRegistry
from fleettrack.services.direction_classifier import DirectionClassifier

logger = logging.getLogger(__name__)


def days_in_journey(departure_date: Optional[dt.date], report_date: dt.date) -> Optional[int]:
    """Nombre de jours entiers depuis le départ ; None si absent ou postérieur au rapport."""
    if departure_date is None:
        return None
    days = (report_date - departure_date).days
    return days if days >= 0 else None


def resolve_record(
    record: RawTruckRecord,
    report_type: str,
    report_date: dt.date,
    registry: CheckpointRegistry,
    classifier: DirectionClassifier,
) -> ResolvedTruck:
    match = registry.resolve(record.raw_location)
    if match is not None:
        current_checkpoint = match.checkpoint.name
        checkpoint_order = match.checkpoint.sequence_order
        tier = match.tier
    else:
        current_checkpoint = " ".join(record.raw_location.upper().split())
        checkpoint_order = UNRESOLVED_CHECKPOINT_ORDER
        tier = None

    return ResolvedTruck(
        fleet_group=record.fleet_group,
        truck_no=record.truck_no,
        trailer_no=record.trailer_no,
        current_checkpoint=current_checkpoint,
        checkpoint_order=checkpoint_order,
        resolved=match is not None,
        match_tier=tier,
        status=record.raw_status,
        direction=classifier.classify(report_type, record.raw_status, record.raw_journey_text),
        vehicle_type=record.vehicle_type,
        departure_date=record.departure_date,
        days_in_journey=days_in_journey(record.departure_date, report_date),
        return_info=record.raw_journey_text,
    )


def resolve_records(
    parsed: ParsedReport,
    registry: CheckpointRegistry,
    classifier: DirectionClassifier,
) -> ResolutionResult:
    """Résout toutes les lignes d'un rapport ; les positions inconnues restent en texte brut."""
    trucks: List[ResolvedTruck] = []
    unresolved_locations: List[str] = []

    for record in parsed.records:
        truck = resolve_record(record, parsed.report_type, parsed.report_date, registry, classifier)
        if not truck.resolved and truck.current_checkpoint not in unresolved_locations:
            unresolved_locations.append(truck.current_checkpoint)
        trucks.append(truck)

    unresolved_count = sum(1 for t in trucks if not t.resolved)
    if unresolved_count:
        logger.warning(
            "%d camions sans checkpoint reconnu (%s)",
            unresolved_count, ", ".join(unresolved_locations[:10]),
        )

    return ResolutionResult(
        report_type=parsed.report_type,
        report_date=parsed.report_date,
        trucks=trucks,
        unresolved_count=unresolved_count,
        unresolved_locations=unresolved_locations,
    )
