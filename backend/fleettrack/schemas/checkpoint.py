"""
Schémas Pydantic pour les checkpoints du corridor.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, field_validator

ALLOWED_REGIONS = {
    "KENYA",
    "TANZANIA_COASTAL",
    "TANZANIA_INTERIOR",
    "TANZANIA_BORDER",
    "ZAMBIA_NORTH",
    "ZAMBIA_CENTRAL",
    "ZAMBIA_COPPERBELT",
    "ZAMBIA_BORDER",
    "DRC",
}
ALLOWED_COUNTRIES = {"KE", "TZ", "ZM", "CD"}
ALLOWED_ROUTE_SEGMENTS = {"COASTAL", "INTERIOR", "BORDER", "TRANSIT", "DESTINATION"}


def _clean_aliases(values: List[str]) -> List[str]:
    """Majuscules, sans doublons, ordre conservé."""
    cleaned: List[str] = []
    for value in values:
        alias = " ".join(value.split()).upper()
        if alias and alias not in cleaned:
            cleaned.append(alias)
    return cleaned


class CheckpointRef(BaseModel):
    """Vue immuable d'un checkpoint, conservée dans le cache du registre."""
    id: Optional[uuid.UUID] = None
    name: str
    display_name: str
    sequence_order: int
    is_major: bool = False
    alternative_names: Tuple[str, ...] = ()
    region: Optional[str] = None
    country: Optional[str] = None
    border_crossing: bool = False

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("alternative_names", mode="before")
    @classmethod
    def aliases_as_tuple(cls, v) -> Tuple[str, ...]:
        return tuple(v or ())


class CheckpointCreate(BaseModel):
    """Création par un administrateur. Sans ordre ni insert_after : ajout en fin de route."""
    name: str
    display_name: str
    region: str
    country: str
    sequence_order: Optional[int] = None
    insert_after: Optional[str] = None  # nom d'un checkpoint existant
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    route_segment: Optional[str] = None
    is_active: bool = True
    is_major: bool = False
    alternative_names: List[str] = []
    fuel_available: bool = False
    border_crossing: bool = False
    estimated_distance_from_start: int = 0

    @field_validator("name")
    @classmethod
    def name_normalized(cls, v: str) -> str:
        name = " ".join(v.split()).upper()
        if not name:
            raise ValueError("Le nom du checkpoint ne peut pas être vide.")
        return name

    @field_validator("display_name")
    @classmethod
    def display_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom affiché ne peut pas être vide.")
        return v.strip()

    @field_validator("region")
    @classmethod
    def valid_region(cls, v: str) -> str:
        if v.upper() not in ALLOWED_REGIONS:
            raise ValueError(f"Région invalide. Valeurs acceptées : {sorted(ALLOWED_REGIONS)}")
        return v.upper()

    @field_validator("country")
    @classmethod
    def valid_country(cls, v: str) -> str:
        if v.upper() not in ALLOWED_COUNTRIES:
            raise ValueError(f"Pays invalide. Valeurs acceptées : {sorted(ALLOWED_COUNTRIES)}")
        return v.upper()

    @field_validator("route_segment")
    @classmethod
    def valid_route_segment(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.upper() not in ALLOWED_ROUTE_SEGMENTS:
            raise ValueError(f"Segment invalide. Valeurs acceptées : {sorted(ALLOWED_ROUTE_SEGMENTS)}")
        return v.upper() if v else v

    @field_validator("sequence_order")
    @classmethod
    def positive_order(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("L'ordre doit être supérieur ou égal à 1.")
        return v

    @field_validator("alternative_names")
    @classmethod
    def clean_aliases(cls, v: List[str]) -> List[str]:
        return _clean_aliases(v)


class CheckpointUpdate(BaseModel):
    """Mise à jour partielle. Le nom et l'ordre ne se modifient pas ici (voir /reorder)."""
    display_name: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    route_segment: Optional[str] = None
    is_active: Optional[bool] = None
    is_major: Optional[bool] = None
    alternative_names: Optional[List[str]] = None
    fuel_available: Optional[bool] = None
    border_crossing: Optional[bool] = None
    estimated_distance_from_start: Optional[int] = None

    @field_validator("region")
    @classmethod
    def valid_region(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.upper() not in ALLOWED_REGIONS:
            raise ValueError(f"Région invalide. Valeurs acceptées : {sorted(ALLOWED_REGIONS)}")
        return v.upper() if v else v

    @field_validator("country")
    @classmethod
    def valid_country(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.upper() not in ALLOWED_COUNTRIES:
            raise ValueError(f"Pays invalide. Valeurs acceptées : {sorted(ALLOWED_COUNTRIES)}")
        return v.upper() if v else v

    @field_validator("alternative_names")
    @classmethod
    def clean_aliases(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_aliases(v) if v is not None else v


class CheckpointReorderItem(BaseModel):
    id: uuid.UUID
    sequence_order: int


class CheckpointReorderRequest(BaseModel):
    checkpoints: List[CheckpointReorderItem]

    @field_validator("checkpoints")
    @classmethod
    def not_empty(cls, v: List[CheckpointReorderItem]) -> List[CheckpointReorderItem]:
        if not v:
            raise ValueError("La liste des checkpoints est obligatoire.")
        return v


class CheckpointResponse(BaseModel):
    id: uuid.UUID
    name: str
    display_name: str
    sequence_order: int
    region: str
    country: str
    latitude: Optional[float]
    longitude: Optional[float]
    route_segment: Optional[str]
    is_active: bool
    is_major: bool
    alternative_names: List[str]
    fuel_available: bool
    border_crossing: bool
    estimated_distance_from_start: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CheckpointResolveResponse(BaseModel):
    """Prévisualisation de la résolution d'un texte de position."""
    query: str
    normalized: str
    matched: bool
    checkpoint: Optional[str] = None
    sequence_order: Optional[int] = None
    tier: Optional[str] = None


class SeedResult(BaseModel):
    created: int
    removed: int
