"""
Modèles SQLAlchemy pour les snapshots de flotte et les positions de camions.

Un upload produit deux vues persistées issues d'une seule passe d'ingestion :
- fleet_snapshots.fleet_groups : structure imbriquée pour l'affichage compact
- truck_positions : lignes à plat pour les filtres et agrégats
"""

import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID

from fleettrack.database import Base

# Seule colonne bornée parmi celles lues dans le fichier ; les autres sont en Text
TRUCK_NO_MAX_LENGTH = 50


class FleetSnapshot(Base):
    """Résultat immuable d'un upload (seule la suppression logique le modifie)."""
    __tablename__ = "fleet_snapshots"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime, nullable=False, index=True)  # heure d'ingestion
    report_date = Column(Date, nullable=False, index=True)
    report_type = Column(String(20), nullable=False)  # IMPORT, NO_ORDER
    uploaded_by = Column(String(100), nullable=False)

    file_name = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=False)
    processed_at = Column(DateTime, nullable=False)

    fleet_groups = Column(JSONB, nullable=False, default=list)

    total_trucks = Column(Integer, nullable=False, default=0)
    going_trucks = Column(Integer, nullable=False, default=0)
    returning_trucks = Column(Integer, nullable=False, default=0)
    unknown_trucks = Column(Integer, nullable=False, default=0)
    unresolved_trucks = Column(Integer, nullable=False, default=0)
    skipped_rows = Column(Integer, nullable=False, default=0)
    checkpoint_distribution = Column(JSONB, nullable=False, default=dict)

    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class TruckPosition(Base):
    """Position d'un camion dans un snapshot. Créée et supprimée en bulk, jamais modifiée."""
    __tablename__ = "truck_positions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    snapshot_id = Column(UUID(as_uuid=True), ForeignKey("fleet_snapshots.id"), nullable=False)

    truck_no = Column(String(TRUCK_NO_MAX_LENGTH), nullable=False, index=True)
    trailer_no = Column(Text, nullable=True)
    current_checkpoint = Column(Text, nullable=False)
    checkpoint_order = Column(Integer, nullable=False)  # sentinelle si non résolu

    status = Column(Text, nullable=True)
    direction = Column(String(10), nullable=False, default="UNKNOWN")  # GOING, RETURNING, UNKNOWN
    vehicle_type = Column(Text, nullable=True)

    departure_date = Column(Date, nullable=True)
    days_in_journey = Column(Integer, nullable=True)
    return_info = Column(Text, nullable=True)

    fleet_group = Column(Text, nullable=False)
    report_date = Column(Date, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_truck_positions_snapshot_checkpoint", "snapshot_id", "current_checkpoint"),
        Index("ix_truck_positions_snapshot_order", "snapshot_id", "checkpoint_order", "truck_no"),
    )
