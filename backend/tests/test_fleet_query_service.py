"""
Tests unitaires du service de lecture des snapshots (BDD mockée).
Couverture : lectures, filtres, liste à copier, suppression, distribution, réconciliation.
"""

import datetime as dt
import json
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from fleettrack.exceptions import NotFoundError
from fleettrack.models.fleet_snapshot import FleetSnapshot, TruckPosition
from fleettrack.services.checkpoint_matcher import UNRESOLVED_CHECKPOINT_ORDER
from fleettrack.services.fleet_query_service import (
    delete_snapshot,
    format_truck_list,
    get_checkpoint_distribution,
    get_copyable_list,
    get_latest_snapshot,
    get_positions,
    get_snapshot,
    get_trucks_at_checkpoint,
    list_snapshots,
    reconcile_positions,
)


# ----------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------

def make_snapshot(is_deleted=False):
    s = MagicMock(spec=FleetSnapshot)
    s.id = uuid.uuid4()
    s.timestamp = dt.datetime(2025, 1, 23, 9, 0)
    s.processed_at = dt.datetime(2025, 1, 23, 9, 0)
    s.report_date = dt.date(2025, 1, 23)
    s.report_type = "IMPORT"
    s.uploaded_by = "alice"
    s.file_name = "report.xlsx"
    s.file_size = 2048
    s.total_trucks = 2
    s.going_trucks = 1
    s.returning_trucks = 1
    s.unknown_trucks = 0
    s.unresolved_trucks = 0
    s.skipped_rows = 0
    s.checkpoint_distribution = {"TANGA": 2}
    s.fleet_groups = [{"name": "CONKEN 4 TRUCKS", "tonnage": None, "route": None, "trucks": []}]
    s.is_deleted = is_deleted
    return s


def make_position(truck_no, direction="GOING", checkpoint="TANGA", status="LOADED", snapshot_id=None):
    p = MagicMock(spec=TruckPosition)
    p.id = uuid.uuid4()
    p.snapshot_id = snapshot_id or uuid.uuid4()
    p.truck_no = truck_no
    p.trailer_no = None
    p.current_checkpoint = checkpoint
    p.checkpoint_order = 5
    p.status = status
    p.direction = direction
    p.vehicle_type = None
    p.departure_date = None
    p.days_in_journey = None
    p.return_info = None
    p.fleet_group = "CONKEN 4 TRUCKS"
    p.report_date = dt.date(2025, 1, 23)
    return p


def make_db(snapshot=None, rows=None):
    """db.get → snapshot ; db.execute(...).scalars().all() → rows."""
    db = MagicMock()
    db.get.return_value = snapshot
    db.execute.return_value.scalars.return_value.all.return_value = rows or []
    db.execute.return_value.scalars.return_value.first.return_value = snapshot
    return db


# ----------------------------------------------------------------
# Snapshots
# ----------------------------------------------------------------

class TestSnapshots:
    def test_list_snapshots_avec_total(self):
        snapshots = [make_snapshot(), make_snapshot()]
        db = make_db(rows=snapshots)
        db.execute.return_value.scalar.return_value = 7

        items, total = list_snapshots(db, limit=2, skip=0)

        assert total == 7
        assert [i.id for i in items] == [s.id for s in snapshots]

    def test_get_snapshot(self):
        snapshot = make_snapshot()
        detail = get_snapshot(make_db(snapshot), snapshot.id)

        assert detail.id == snapshot.id
        assert detail.fleet_groups[0]["name"] == "CONKEN 4 TRUCKS"

    def test_get_snapshot_introuvable(self):
        with pytest.raises(NotFoundError, match="introuvable"):
            get_snapshot(make_db(None), uuid.uuid4())

    def test_snapshot_supprime_considere_introuvable(self):
        snapshot = make_snapshot(is_deleted=True)
        with pytest.raises(NotFoundError):
            get_snapshot(make_db(snapshot), snapshot.id)

    def test_latest_sans_snapshot(self):
        with pytest.raises(NotFoundError, match="Aucun snapshot"):
            get_latest_snapshot(make_db(None))

    def test_latest(self):
        snapshot = make_snapshot()
        assert get_latest_snapshot(make_db(snapshot)).id == snapshot.id


# ----------------------------------------------------------------
# Positions et checkpoints
# ----------------------------------------------------------------

class TestPositions:
    def test_positions_avec_resume(self):
        snapshot = make_snapshot()
        rows = [
            make_position("T 1", "GOING", snapshot_id=snapshot.id),
            make_position("T 2", "RETURNING", snapshot_id=snapshot.id),
            make_position("T 3", "UNKNOWN", snapshot_id=snapshot.id),
        ]

        result = get_positions(make_db(snapshot, rows), checkpoint="tanga")

        assert result.snapshot.id == snapshot.id
        assert len(result.positions) == 3
        assert result.summary.going_trucks == 1
        assert result.summary.returning_trucks == 1
        assert result.summary.total_trucks == 3

    def test_filtre_checkpoint_insensible_a_la_casse(self):
        snapshot = make_snapshot()
        db = make_db(snapshot, [])

        get_positions(db, snapshot_id=snapshot.id, checkpoint="  tanga ")

        query = db.execute.call_args.args[0]
        compiled = query.compile()
        assert "upper(truck_positions.current_checkpoint)" in str(compiled)
        assert "TANGA" in compiled.params.values()

    def test_trucks_at_checkpoint_separes_par_direction(self):
        snapshot = make_snapshot()
        rows = [
            make_position("T 1", "GOING"),
            make_position("T 2", "RETURNING"),
            make_position("T 3", "RETURNING"),
        ]

        result = get_trucks_at_checkpoint(make_db(snapshot, rows), "Tanga")

        assert result.checkpoint == "TANGA"
        assert result.total_trucks == 3
        assert [t.truck_no for t in result.returning_trucks] == ["T 2", "T 3"]
        assert result.summary == {"going": 1, "returning": 2, "unknown": 0}

    def test_checkpoint_sans_camion(self):
        with pytest.raises(NotFoundError):
            get_trucks_at_checkpoint(make_db(make_snapshot(), []), "NOWHERE")


# ----------------------------------------------------------------
# Liste à copier
# ----------------------------------------------------------------

class TestCopyableList:
    TRUCKS = [make_position("T1", "GOING", status="LOADED"), make_position("T2", "RETURNING", status="EMPTY")]

    def test_format_comma(self):
        assert format_truck_list(self.TRUCKS, "comma") == "T1, T2"

    def test_format_line(self):
        assert format_truck_list(self.TRUCKS, "line") == "T1\nT2"

    def test_format_array(self):
        text = format_truck_list(self.TRUCKS, "array")
        assert text == '["T1","T2"]'
        assert json.loads(text) == ["T1", "T2"]

    def test_format_detailed(self):
        assert format_truck_list(self.TRUCKS, "detailed") == "T1 (GOING, LOADED)\nT2 (RETURNING, EMPTY)"

    def test_get_copyable_list(self):
        result = get_copyable_list(make_db(make_snapshot(), self.TRUCKS), "tanga", direction="going", fmt="comma")

        assert result.checkpoint == "TANGA"
        assert result.direction == "GOING"
        assert result.count == 2
        assert result.truck_numbers == ["T1", "T2"]
        assert result.formatted_text == "T1, T2"

    def test_liste_vide_sans_erreur(self):
        result = get_copyable_list(make_db(make_snapshot(), []), "tanga")

        assert result.count == 0
        assert result.formatted_text == ""
        assert result.direction == "ALL"


# ----------------------------------------------------------------
# Suppression, distribution, réconciliation
# ----------------------------------------------------------------

class TestMaintenance:
    def test_delete_snapshot_logique_puis_positions(self):
        snapshot = make_snapshot()
        db = make_db(snapshot)
        db.execute.return_value.rowcount = 2

        removed = delete_snapshot(db, snapshot.id, deleted_by="alice")

        assert removed == 2
        assert snapshot.is_deleted is True
        assert snapshot.deleted_at is not None
        assert db.commit.call_count == 2

    def test_delete_snapshot_introuvable(self):
        db = make_db(None)
        with pytest.raises(NotFoundError):
            delete_snapshot(db, uuid.uuid4())
        db.commit.assert_not_called()

    def test_distribution_non_resolus_signales(self):
        db = make_db(make_snapshot())
        db.execute.return_value.all.return_value = [
            SimpleNamespace(current_checkpoint="TANGA", checkpoint_order=5, total=2, going=1, returning=1),
            SimpleNamespace(
                current_checkpoint="YARD X", checkpoint_order=UNRESOLVED_CHECKPOINT_ORDER,
                total=1, going=0, returning=None,
            ),
        ]

        entries = get_checkpoint_distribution(db)

        assert [e.checkpoint for e in entries] == ["TANGA", "YARD X"]
        assert entries[0].resolved is True
        assert entries[1].resolved is False
        assert entries[1].returning == 0

    def test_reconcile_positions(self):
        ok_id, bad_id = uuid.uuid4(), uuid.uuid4()
        db = MagicMock()
        db.execute.return_value.rowcount = 4
        db.execute.return_value.all.return_value = [
            SimpleNamespace(id=ok_id, total_trucks=3, positions=3),
            SimpleNamespace(id=bad_id, total_trucks=3, positions=0),
        ]

        report = reconcile_positions(db)

        assert report.checked_snapshots == 2
        assert report.mismatched_snapshots == [bad_id]
        assert report.orphan_positions_removed == 4
