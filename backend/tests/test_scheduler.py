"""
Tests unitaires du job de réconciliation planifié.
"""

import uuid
from unittest.mock import MagicMock, patch

from fleettrack import scheduler
from fleettrack.schemas.fleet import ReconciliationReport


def test_job_ferme_la_session():
    db = MagicMock()
    report = ReconciliationReport(checked_snapshots=3, mismatched_snapshots=[uuid.uuid4()], orphan_positions_removed=2)

    with patch("fleettrack.scheduler.SessionLocal", return_value=db), \
         patch("fleettrack.services.fleet_query_service.reconcile_positions", return_value=report) as mock:
        scheduler._reconcile_scheduled()

    mock.assert_called_once_with(db)
    db.close.assert_called_once()


def test_job_erreur_journalisee_sans_propagation():
    db = MagicMock()

    with patch("fleettrack.scheduler.SessionLocal", return_value=db), \
         patch("fleettrack.services.fleet_query_service.reconcile_positions", side_effect=RuntimeError("boom")):
        scheduler._reconcile_scheduled()

    db.rollback.assert_called_once()
    db.close.assert_called_once()


def test_scheduler_desactive():
    with patch("fleettrack.scheduler.settings.RECONCILIATION_ENABLED", False), \
         patch.object(scheduler, "scheduler") as mock_scheduler:
        scheduler.start_scheduler()

    mock_scheduler.add_job.assert_not_called()
    mock_scheduler.start.assert_not_called()


def test_scheduler_intervalle_configure():
    with patch("fleettrack.scheduler.settings.RECONCILIATION_INTERVAL_MINUTES", 15), \
         patch.object(scheduler, "scheduler") as mock_scheduler:
        scheduler.start_scheduler()

    assert mock_scheduler.add_job.call_args.kwargs["minutes"] == 15
    mock_scheduler.start.assert_called_once()
