"""
Planificateur APScheduler pour la réconciliation snapshots ↔ positions.

Le job purge les positions restées attachées à des snapshots supprimés
(suppression interrompue entre ses deux étapes) et signale les snapshots
dont le nombre de positions ne correspond pas à total_trucks.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from fleettrack.config import settings
from fleettrack.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _reconcile_scheduled() -> None:
    """
    Tâche planifiée : une session dédiée par exécution.
    Import local pour éviter les imports circulaires.
    """
    from fleettrack.services.fleet_query_service import reconcile_positions

    db = SessionLocal()
    try:
        report = reconcile_positions(db)
        logger.info(
            "Réconciliation : %d snapshots vérifiés, %d incohérents, %d positions orphelines supprimées",
            report.checked_snapshots,
            len(report.mismatched_snapshots),
            report.orphan_positions_removed,
        )
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la réconciliation des positions : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.RECONCILIATION_ENABLED:
        logger.info("Réconciliation désactivée : scheduler non démarré.")
        return
    scheduler.add_job(
        _reconcile_scheduled,
        trigger="interval",
        minutes=settings.RECONCILIATION_INTERVAL_MINUTES,
        id="fleet_positions_reconciliation",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré : réconciliation toutes les %d minutes.",
        settings.RECONCILIATION_INTERVAL_MINUTES,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
