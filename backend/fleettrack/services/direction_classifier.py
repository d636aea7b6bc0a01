"""
Classification de la direction d'un camion (GOING / RETURNING / UNKNOWN).

Les règles sont des données (DirectionRules), chargeables depuis un fichier JSON
(settings.DIRECTION_RULES_FILE). Ordre d'évaluation :

1. règles sur le statut (la première qui correspond l'emporte)
2. règles sur le texte de trajet (colonne RETURN du rapport IMPORT)
3. valeur par défaut du type de rapport (NO_ORDER → camions en retour)
4. UNKNOWN

Les mots-clés sont comparés sur des mots entiers après normalisation :
"LOADED" ne correspond pas à "OFFLOADED".

Règles par défaut :
- ENROUTE (sauf vers DAR / DSM / MSA / MOMBASA / TANGA)      → GOING
- TO LOAD, WAITING TO LOAD, LOADING, LOADED                  → GOING
- WAITING CLEARANCE, UNDER CLEARANCE, WAITING TO CROSS        → GOING
- ENROUTE [TO] DAR / DSM / MSA / MOMBASA / TANGA              → RETURNING
- WAITING TO OFFLOAD, WAITING OFFLOAD, OFFLOADING, OFFLOADED  → RETURNING
- RETURN, RETURNING, EMPTY                                    → RETURNING
- texte de trajet RETURN, RETURNING, BACKLOAD, BACK LOAD      → RETURNING
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import Request
from pydantic import BaseModel, field_validator

from fleettrack.schemas.fleet import Direction
from fleettrack.services.checkpoint_matcher import normalize_location

logger = logging.getLogger(__name__)


class DirectionRule(BaseModel):
    direction: Direction
    keywords: List[str]
    exclude: List[str] = []

    @field_validator("keywords", "exclude")
    @classmethod
    def normalize_keywords(cls, v: List[str]) -> List[str]:
        return [k for k in (normalize_location(word) for word in v) if k]

    def matches(self, normalized_text: str) -> bool:
        padded = f" {normalized_text} "
        if any(f" {word} " in padded for word in self.exclude):
            return False
        return any(f" {word} " in padded for word in self.keywords)


class DirectionRules(BaseModel):
    status_rules: List[DirectionRule]
    journey_rules: List[DirectionRule] = []
    report_type_defaults: Dict[str, Direction] = {}


RETURN_PORTS = ["DAR", "DSM", "MSA", "MOMBASA", "TANGA"]
ENROUTE_FORMS = ["ENROUTE", "EN ROUTE", "ENROUTE TO", "EN ROUTE TO"]

DEFAULT_DIRECTION_RULES = DirectionRules(
    status_rules=[
        DirectionRule(direction="GOING", keywords=["ENROUTE", "EN ROUTE"], exclude=RETURN_PORTS),
        DirectionRule(direction="GOING", keywords=["TO LOAD", "WAITING TO LOAD", "LOADING", "LOADED"]),
        DirectionRule(
            direction="GOING",
            keywords=["WAITING CLEARANCE", "UNDER CLEARANCE", "WAITING TO CROSS"],
        ),
        DirectionRule(
            direction="RETURNING",
            keywords=[f"{form} {port}" for form in ENROUTE_FORMS for port in RETURN_PORTS],
        ),
        DirectionRule(
            direction="RETURNING",
            keywords=["WAITING TO OFFLOAD", "WAITING OFFLOAD", "OFFLOADING", "OFFLOADED"],
        ),
        DirectionRule(direction="RETURNING", keywords=["RETURN", "RETURNING", "EMPTY"]),
    ],
    journey_rules=[
        DirectionRule(direction="RETURNING", keywords=["RETURN", "RETURNING", "BACKLOAD", "BACK LOAD"]),
    ],
    report_type_defaults={"NO_ORDER": "RETURNING"},
)


class DirectionClassifier:
    def __init__(self, rules: DirectionRules = DEFAULT_DIRECTION_RULES):
        self.rules = rules

    def classify(
        self,
        report_type: str,
        raw_status: Optional[str],
        raw_journey_text: Optional[str] = None,
    ) -> Direction:
        status = normalize_location(raw_status)
        if status:
            for rule in self.rules.status_rules:
                if rule.matches(status):
                    return rule.direction

        journey = normalize_location(raw_journey_text)
        if journey:
            for rule in self.rules.journey_rules:
                if rule.matches(journey):
                    return rule.direction

        return self.rules.report_type_defaults.get(report_type, "UNKNOWN")


def load_direction_rules(path: Optional[str]) -> DirectionRules:
    """Règles depuis un fichier JSON, ou règles par défaut si aucun chemin n'est configuré."""
    if not path:
        return DEFAULT_DIRECTION_RULES
    rules = DirectionRules.model_validate_json(Path(path).read_text(encoding="utf-8"))
    logger.info(
        "Règles de direction chargées depuis %s (%d règles statut, %d règles trajet)",
        path, len(rules.status_rules), len(rules.journey_rules),
    )
    return rules


def get_direction_classifier(request: Request) -> DirectionClassifier:
    """Dépendance FastAPI : classifieur créé dans le lifespan de l'application."""
    return request.app.state.direction_classifier
