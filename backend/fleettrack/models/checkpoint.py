"""
Modèle SQLAlchemy pour les checkpoints du corridor (points de passage ordonnés).
Gérés par un administrateur ; jamais modifiés par l'ingestion des rapports.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, func, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from fleettrack.database import Base


class Checkpoint(Base):
    """Point de passage de la route, identifié par un nom canonique en majuscules."""
    __tablename__ = "checkpoints"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(120), nullable=False)
    display_name = Column(String(120), nullable=False)
    sequence_order = Column(Integer, nullable=False, index=True)  # position sur la route

    region = Column(String(40), nullable=False)   # KENYA, TANZANIA_COASTAL, ..., DRC
    country = Column(String(2), nullable=False)   # KE, TZ, ZM, CD
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    route_segment = Column(String(20), nullable=True)  # COASTAL, INTERIOR, BORDER, TRANSIT, DESTINATION

    is_active = Column(Boolean, nullable=False, default=True)
    is_major = Column(Boolean, nullable=False, default=False)
    alternative_names = Column(ARRAY(String(120)), nullable=False, default=list)

    fuel_available = Column(Boolean, nullable=False, default=False)
    border_crossing = Column(Boolean, nullable=False, default=False)
    estimated_distance_from_start = Column(Integer, nullable=False, default=0)  # km

    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Suppression logique : les snapshots historiques référencent le nom
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    # Nom unique parmi les checkpoints non supprimés uniquement
    __table_args__ = (
        Index("uq_checkpoints_name_not_deleted", "name", unique=True, postgresql_where=text("NOT is_deleted")),
    )
