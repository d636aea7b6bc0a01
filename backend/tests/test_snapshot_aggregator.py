"""
Tests unitaires de l'agrégation et de la persistance des snapshots.
"""

import datetime as dt
from unittest.mock import MagicMock

from sqlalchemy.exc import SQLAlchemyError

from fleettrack.models.fleet_snapshot import FleetSnapshot, TruckPosition
from fleettrack.schemas.fleet import ResolutionResult, ResolvedTruck
from fleettrack.services.checkpoint_matcher import UNRESOLVED_CHECKPOINT_ORDER
from fleettrack.services.snapshot_aggregator import describe_group, persist_snapshot, summarize

REPORT_DATE = dt.date(2025, 1, 23)


def make_truck(truck_no, checkpoint="TANGA", order=5, direction="GOING", group="CONKEN 4 TRUCKS", resolved=True):
    return ResolvedTruck(
        fleet_group=group,
        truck_no=truck_no,
        current_checkpoint=checkpoint,
        checkpoint_order=order if resolved else UNRESOLVED_CHECKPOINT_ORDER,
        resolved=resolved,
        direction=direction,
    )


def make_resolution(trucks):
    return ResolutionResult(
        report_type="IMPORT",
        report_date=REPORT_DATE,
        trucks=trucks,
        unresolved_count=sum(1 for t in trucks if not t.resolved),
    )


TRUCKS = [
    make_truck("T 1", "TANGA", 5, "GOING"),
    make_truck("T 2", "DSM", 14, "RETURNING", group="RELOAD 313MT DSM-LIKASI"),
    make_truck("T 3", "TANGA", 5, "UNKNOWN"),
    make_truck("T 4", "YARD X", direction="RETURNING", resolved=False),
]


# ----------------------------------------------------------------
# summarize
# ----------------------------------------------------------------

def test_totaux_coherents():
    summary = summarize(make_resolution(TRUCKS))

    assert summary.total_trucks == 4
    assert summary.going_trucks == 1
    assert summary.returning_trucks == 2
    assert summary.unknown_trucks == 1
    assert summary.total_trucks == summary.going_trucks + summary.returning_trucks + summary.unknown_trucks


def test_distribution_limitee_aux_positions_resolues():
    summary = summarize(make_resolution(TRUCKS))

    assert summary.checkpoint_distribution == {"TANGA": 2, "DSM": 1}
    assert sum(summary.checkpoint_distribution.values()) == 3
    assert summary.unresolved_trucks == 1


def test_groupes_dans_l_ordre_de_premiere_apparition():
    summary = summarize(make_resolution(TRUCKS))

    assert [g["name"] for g in summary.fleet_groups] == ["CONKEN 4 TRUCKS", "RELOAD 313MT DSM-LIKASI"]
    reload_group = summary.fleet_groups[1]
    assert reload_group["tonnage"] == 313
    assert reload_group["route"] == "DSM-LIKASI"
    assert [t["truck_no"] for t in summary.fleet_groups[0]["trucks"]] == ["T 1", "T 3", "T 4"]


def test_rapport_vide():
    summary = summarize(make_resolution([]))

    assert summary.total_trucks == 0
    assert summary.fleet_groups == []
    assert summary.checkpoint_distribution == {}


def test_describe_group_sans_information():
    assert describe_group("CONKEN 4 TRUCKS") == {"tonnage": None, "route": None}


# ----------------------------------------------------------------
# persist_snapshot
# ----------------------------------------------------------------

def test_persistance_snapshot_puis_positions():
    db = MagicMock()
    resolution = make_resolution(TRUCKS)

    snapshot, persisted = persist_snapshot(
        db, resolution, summarize(resolution),
        uploaded_by="alice", file_name="report.xlsx", file_size=2048, skipped_rows=2,
    )

    assert persisted is True
    assert isinstance(snapshot, FleetSnapshot)
    assert snapshot.total_trucks == 4
    assert snapshot.skipped_rows == 2
    db.add.assert_called_once_with(snapshot)
    assert db.commit.call_count == 2

    model, rows = db.bulk_insert_mappings.call_args.args
    assert model is TruckPosition
    assert len(rows) == 4
    assert all(row["snapshot_id"] == snapshot.id for row in rows)
    assert rows[3]["checkpoint_order"] == UNRESOLVED_CHECKPOINT_ORDER


def test_echec_insertion_positions_snapshot_conserve():
    db = MagicMock()
    db.bulk_insert_mappings.side_effect = SQLAlchemyError("boom")
    resolution = make_resolution(TRUCKS)

    snapshot, persisted = persist_snapshot(
        db, resolution, summarize(resolution),
        uploaded_by="alice", file_name="report.xlsx", file_size=2048,
    )

    assert persisted is False
    assert snapshot.total_trucks == 4
    db.rollback.assert_called_once()


def test_aucune_position_pas_d_insertion_bulk():
    db = MagicMock()
    resolution = make_resolution([])

    _, persisted = persist_snapshot(
        db, resolution, summarize(resolution),
        uploaded_by="alice", file_name="empty.csv", file_size=10,
    )

    assert persisted is True
    db.bulk_insert_mappings.assert_not_called()
