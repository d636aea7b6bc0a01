"""
Ingestion d'un rapport de flotte : parsing → résolution → agrégation → persistance.

Traitement synchrone dans la requête ; chaque upload produit son propre
snapshot et ses propres positions.
"""

import logging
from pathlib import PurePath

from sqlalchemy.orm import Session

from fleettrack.config import settings
from fleettrack.exceptions import FileTooLargeError, ValidationError
from fleettrack.schemas.fleet import (
    WARNING_NO_TRUCKS,
    WARNING_POSITIONS_NOT_PERSISTED,
    WARNING_SKIPPED_ROWS,
    WARNING_UNRESOLVED,
    UploadResult,
)
from fleettrack.services.checkpoint_registry import CheckpointRegistry
from fleettrack.services.direction_classifier import DirectionClassifier
from fleettrack.services.fleet_report_parser import parse_fleet_report
from fleettrack.services.location_resolver import resolve_records
from fleettrack.services.snapshot_aggregator import persist_snapshot, summarize

logger = logging.getLogger(__name__)


def validate_upload(file_name: str, content: bytes) -> str:
    """Contrôles minimaux avant parsing ; retourne l'extension en minuscules."""
    extension = PurePath(file_name or "").suffix.lower().lstrip(".")
    if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise ValidationError(
            f"Format invalide. Extensions acceptées : {', '.join(settings.ALLOWED_UPLOAD_EXTENSIONS)}."
        )
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise FileTooLargeError(
            f"Fichier trop volumineux. Taille maximale : {settings.MAX_UPLOAD_SIZE_MB} Mo."
        )
    if not content:
        raise ValidationError("Le fichier est vide.")
    return extension


def ingest_fleet_report(
    db: Session,
    content: bytes,
    file_name: str,
    uploaded_by: str,
    registry: CheckpointRegistry,
    classifier: DirectionClassifier,
) -> UploadResult:
    extension = validate_upload(file_name, content)

    parsed = parse_fleet_report(content, extension, file_name)
    resolution = resolve_records(parsed, registry, classifier)
    summary = summarize(resolution)
    snapshot, positions_persisted = persist_snapshot(
        db,
        resolution,
        summary,
        uploaded_by=uploaded_by,
        file_name=file_name,
        file_size=len(content),
        skipped_rows=parsed.skipped_rows,
    )

    warnings = []
    if summary.total_trucks == 0:
        warnings.append(WARNING_NO_TRUCKS)
        logger.warning(
            "Rapport %s traité mais aucun camion trouvé : vérifier le format du fichier.", file_name
        )
    if summary.unresolved_trucks:
        warnings.append(WARNING_UNRESOLVED)
    if parsed.rejected:
        warnings.append(WARNING_SKIPPED_ROWS)
    if not positions_persisted:
        warnings.append(WARNING_POSITIONS_NOT_PERSISTED)

    logger.info(
        "Snapshot %s créé par %s : %d camions (%d aller, %d retour, %d inconnus) dans %d groupes",
        snapshot.id, uploaded_by, summary.total_trucks, summary.going_trucks,
        summary.returning_trucks, summary.unknown_trucks, len(summary.fleet_groups),
    )

    return UploadResult(
        snapshot_id=snapshot.id,
        report_date=resolution.report_date,
        report_type=resolution.report_type,
        total_trucks=summary.total_trucks,
        going_trucks=summary.going_trucks,
        returning_trucks=summary.returning_trucks,
        unknown_trucks=summary.unknown_trucks,
        unresolved_trucks=summary.unresolved_trucks,
        fleet_groups=len(summary.fleet_groups),
        skipped_rows=parsed.skipped_rows,
        checkpoint_distribution=summary.checkpoint_distribution,
        unresolved_locations=resolution.unresolved_locations,
        rejected=parsed.rejected,
        warnings=warnings,
    )
