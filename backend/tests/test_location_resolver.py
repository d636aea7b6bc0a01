"""
Tests unitaires de la résolution des lignes camion (checkpoint + direction).
"""

import datetime as dt

import pytest

from fleettrack.schemas.fleet import ParsedReport, RawTruckRecord
from fleettrack.services.checkpoint_matcher import TIER_ALIAS, UNRESOLVED_CHECKPOINT_ORDER
from fleettrack.services.direction_classifier import DirectionClassifier
from fleettrack.services.location_resolver import days_in_journey, resolve_record, resolve_records

REPORT_DATE = dt.date(2025, 1, 23)


def make_record(location, status=None, journey=None, departure=None, truck_no="T 1"):
    return RawTruckRecord(
        fleet_group="CONKEN 4 TRUCKS",
        truck_no=truck_no,
        raw_location=location,
        raw_status=status,
        raw_journey_text=journey,
        departure_date=departure,
    )


@pytest.fixture
def classifier():
    return DirectionClassifier()


@pytest.mark.parametrize("departure, expected", [
    (dt.date(2025, 1, 18), 5),
    (REPORT_DATE, 0),
    (dt.date(2025, 1, 30), None),
    (None, None),
])
def test_days_in_journey(departure, expected):
    assert days_in_journey(departure, REPORT_DATE) == expected


def test_resolution_checkpoint_connu(registry, classifier):
    record = make_record("Dar es Salaam", status="LOADED", departure=dt.date(2025, 1, 20))

    truck = resolve_record(record, "IMPORT", REPORT_DATE, registry, classifier)

    assert truck.current_checkpoint == "DSM"
    assert truck.checkpoint_order == 14
    assert truck.resolved is True
    assert truck.match_tier == TIER_ALIAS
    assert truck.direction == "GOING"
    assert truck.days_in_journey == 3


def test_position_inconnue_conservee_en_texte_brut(registry, classifier):
    record = make_record("  somewhere   far ", status="EMPTY")

    truck = resolve_record(record, "IMPORT", REPORT_DATE, registry, classifier)

    assert truck.current_checkpoint == "SOMEWHERE FAR"
    assert truck.checkpoint_order == UNRESOLVED_CHECKPOINT_ORDER
    assert truck.resolved is False
    assert truck.match_tier is None
    assert truck.direction == "RETURNING"


def test_texte_de_trajet_conserve_comme_return_info(registry, classifier):
    record = make_record("KOLWEZI", journey="BACKLOAD")

    truck = resolve_record(record, "IMPORT", REPORT_DATE, registry, classifier)

    assert truck.return_info == "BACKLOAD"
    assert truck.direction == "RETURNING"


def test_resolve_records_compte_les_non_resolus(registry, classifier):
    parsed = ParsedReport(
        report_type="NO_ORDER",
        report_date=REPORT_DATE,
        records=[
            make_record("TANGA", truck_no="T 1"),
            make_record("YARD X", truck_no="T 2"),
            make_record("yard x", truck_no="T 3"),
        ],
    )

    result = resolve_records(parsed, registry, classifier)

    assert len(result.trucks) == 3
    assert result.unresolved_count == 2
    assert result.unresolved_locations == ["YARD X"]
    assert all(t.direction == "RETURNING" for t in result.trucks)
    assert result.report_type == "NO_ORDER"
