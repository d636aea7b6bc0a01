"""
Schémas Pydantic pour l'ingestion des rapports de flotte et les lectures de snapshots.

Note : datetime importé en module (dt) pour éviter le conflit entre les champs
`*_date` et le type `datetime.date` dans Pydantic v2.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

Direction = Literal["GOING", "RETURNING", "UNKNOWN"]
ReportType = Literal["IMPORT", "NO_ORDER"]
CopyFormat = Literal["comma", "line", "array", "detailed"]

# Codes d'avertissement renvoyés avec un upload réussi
WARNING_NO_TRUCKS = "NO_TRUCKS_FOUND"
WARNING_UNRESOLVED = "UNRESOLVED_CHECKPOINTS"
WARNING_SKIPPED_ROWS = "SKIPPED_ROWS"
WARNING_POSITIONS_NOT_PERSISTED = "POSITIONS_NOT_PERSISTED"


# --- Ingestion ---

class RawTruckRecord(BaseModel):
    """Ligne camion extraite du tableur, position encore non résolue."""
    fleet_group: str
    truck_no: str
    trailer_no: Optional[str] = None
    raw_location: str
    raw_status: Optional[str] = None
    vehicle_type: Optional[str] = None
    departure_date: Optional[dt.date] = None
    raw_journey_text: Optional[str] = None


class SkippedRow(BaseModel):
    """Détail d'une ligne ignorée lors du parsing."""
    row: int
    content: str
    reason: str


class ParsedReport(BaseModel):
    report_type: ReportType
    report_date: dt.date
    records: List[RawTruckRecord]
    skipped_rows: int = 0
    rejected: List[SkippedRow] = []


class ResolvedTruck(BaseModel):
    """Camion après résolution du checkpoint et de la direction."""
    fleet_group: str
    truck_no: str
    trailer_no: Optional[str] = None
    current_checkpoint: str
    checkpoint_order: int
    resolved: bool
    match_tier: Optional[str] = None
    status: Optional[str] = None
    direction: Direction = "UNKNOWN"
    vehicle_type: Optional[str] = None
    departure_date: Optional[dt.date] = None
    days_in_journey: Optional[int] = None
    return_info: Optional[str] = None


class ResolutionResult(BaseModel):
    report_type: ReportType
    report_date: dt.date
    trucks: List[ResolvedTruck]
    unresolved_count: int = 0
    unresolved_locations: List[str] = []


class SnapshotSummary(BaseModel):
    """Statistiques calculées avant persistance."""
    fleet_groups: List[dict]
    total_trucks: int
    going_trucks: int
    returning_trucks: int
    unknown_trucks: int
    unresolved_trucks: int
    checkpoint_distribution: Dict[str, int]


class UploadResult(BaseModel):
    """Rapport retourné après un upload (201, même avec zéro camion)."""
    snapshot_id: uuid.UUID
    report_date: dt.date
    report_type: ReportType
    total_trucks: int
    going_trucks: int
    returning_trucks: int
    unknown_trucks: int
    unresolved_trucks: int
    fleet_groups: int
    skipped_rows: int
    checkpoint_distribution: Dict[str, int]
    unresolved_locations: List[str] = []
    rejected: List[SkippedRow] = []
    warnings: List[str] = []


# --- Lectures ---

class SnapshotListItem(BaseModel):
    """Snapshot sans la structure fleet_groups (vue liste)."""
    id: uuid.UUID
    timestamp: datetime
    report_date: dt.date
    report_type: str
    uploaded_by: str
    file_name: str
    file_size: int
    total_trucks: int
    going_trucks: int
    returning_trucks: int
    unknown_trucks: int
    unresolved_trucks: int
    checkpoint_distribution: Dict[str, int]

    model_config = {"from_attributes": True}


class SnapshotDetail(SnapshotListItem):
    processed_at: datetime
    skipped_rows: int
    fleet_groups: List[dict]


class TruckPositionResponse(BaseModel):
    id: uuid.UUID
    snapshot_id: uuid.UUID
    truck_no: str
    trailer_no: Optional[str]
    current_checkpoint: str
    checkpoint_order: int
    status: Optional[str]
    direction: str
    vehicle_type: Optional[str]
    departure_date: Optional[dt.date]
    days_in_journey: Optional[int]
    return_info: Optional[str]
    fleet_group: str
    report_date: dt.date

    model_config = {"from_attributes": True}


class DirectionSummary(BaseModel):
    total_trucks: int
    going_trucks: int
    returning_trucks: int


class PositionsResult(BaseModel):
    snapshot: SnapshotListItem
    positions: List[TruckPositionResponse]
    summary: DirectionSummary


class CheckpointTrucks(BaseModel):
    checkpoint: str
    snapshot_id: uuid.UUID
    total_trucks: int
    going_trucks: List[TruckPositionResponse]
    returning_trucks: List[TruckPositionResponse]
    unknown_trucks: List[TruckPositionResponse]
    summary: Dict[str, int]


class CopyableList(BaseModel):
    checkpoint: str
    direction: str
    count: int
    truck_numbers: List[str]
    formatted_text: str
    format: CopyFormat


class DistributionEntry(BaseModel):
    checkpoint: str
    checkpoint_order: int
    resolved: bool
    total: int
    going: int
    returning: int


class ReconciliationReport(BaseModel):
    checked_snapshots: int
    mismatched_snapshots: List[uuid.UUID]
    orphan_positions_removed: int
