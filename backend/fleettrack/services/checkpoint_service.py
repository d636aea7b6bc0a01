"""
Service d'administration des checkpoints : création, modification, suppression
logique, réordonnancement et seed de la liste par défaut.

Ces fonctions ne touchent pas au cache du registre : le router appelle
registry.invalidate() après chaque mutation réussie.
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleettrack.exceptions import NotFoundError, ValidationError
from fleettrack.models.checkpoint import Checkpoint
from fleettrack.schemas.checkpoint import (
    CheckpointCreate,
    CheckpointReorderItem,
    CheckpointResponse,
    CheckpointUpdate,
    SeedResult,
)
from fleettrack.services.checkpoint_seed import default_checkpoint_rows

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _get_active(db: Session, checkpoint_id: uuid.UUID) -> Checkpoint:
    checkpoint = (
        db.query(Checkpoint)
        .filter(Checkpoint.id == checkpoint_id, Checkpoint.is_deleted.is_(False))
        .first()
    )
    if checkpoint is None:
        raise NotFoundError(f"Checkpoint {checkpoint_id} introuvable.")
    return checkpoint


def _shift_orders(db: Session, from_order: int, step: int) -> None:
    """Décale d'un cran les checkpoints situés à partir de from_order."""
    db.query(Checkpoint).filter(
        Checkpoint.sequence_order >= from_order,
        Checkpoint.is_deleted.is_(False),
    ).update(
        {Checkpoint.sequence_order: Checkpoint.sequence_order + step},
        synchronize_session=False,
    )


def list_checkpoints(db: Session, include_inactive: bool = False) -> List[CheckpointResponse]:
    """Checkpoints non supprimés, triés par ordre sur la route."""
    query = db.query(Checkpoint).filter(Checkpoint.is_deleted.is_(False))
    if not include_inactive:
        query = query.filter(Checkpoint.is_active.is_(True))
    return [CheckpointResponse.model_validate(cp) for cp in query.order_by(Checkpoint.sequence_order).all()]


def get_checkpoint(db: Session, checkpoint_id: uuid.UUID) -> CheckpointResponse:
    return CheckpointResponse.model_validate(_get_active(db, checkpoint_id))


def create_checkpoint(db: Session, data: CheckpointCreate, created_by: str = "") -> CheckpointResponse:
    """
    Crée un checkpoint.

    Position : après `insert_after` si fourni, sinon à `sequence_order` si fourni,
    sinon en fin de route. Les checkpoints suivants sont décalés pour garder
    des ordres uniques.
    """
    existing = (
        db.query(Checkpoint)
        .filter(Checkpoint.name == data.name, Checkpoint.is_deleted.is_(False))
        .first()
    )
    if existing is not None:
        raise ValidationError(f"Le checkpoint {data.name} existe déjà.")

    if data.insert_after:
        after_name = " ".join(data.insert_after.split()).upper()
        after = (
            db.query(Checkpoint)
            .filter(Checkpoint.name == after_name, Checkpoint.is_deleted.is_(False))
            .first()
        )
        if after is None:
            raise NotFoundError(f"Checkpoint {after_name} introuvable.")
        order = after.sequence_order + 1
        _shift_orders(db, order, 1)
    elif data.sequence_order is not None:
        order = data.sequence_order
        _shift_orders(db, order, 1)
    else:
        max_order = (
            db.query(func.max(Checkpoint.sequence_order))
            .filter(Checkpoint.is_deleted.is_(False))
            .scalar()
        )
        order = (max_order or 0) + 1

    checkpoint = Checkpoint(
        **data.model_dump(exclude={"insert_after", "sequence_order"}),
        sequence_order=order,
        created_by=created_by or None,
        is_deleted=False,
    )
    db.add(checkpoint)
    db.commit()
    db.refresh(checkpoint)

    logger.info("Checkpoint %s créé en position %d par %s", checkpoint.name, order, created_by or "?")
    return CheckpointResponse.model_validate(checkpoint)


def update_checkpoint(db: Session, checkpoint_id: uuid.UUID, data: CheckpointUpdate) -> CheckpointResponse:
    """
    Met à jour les champs fournis. Le nom et l'ordre ne sont pas modifiables ici.
    Une réactivation est refusée si un checkpoint actif occupe déjà le même ordre.
    """
    checkpoint = _get_active(db, checkpoint_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("is_active") and not checkpoint.is_active:
        conflict = (
            db.query(Checkpoint)
            .filter(
                Checkpoint.id != checkpoint.id,
                Checkpoint.sequence_order == checkpoint.sequence_order,
                Checkpoint.is_active.is_(True),
                Checkpoint.is_deleted.is_(False),
            )
            .first()
        )
        if conflict is not None:
            raise ValidationError(
                f"Réactivation impossible : {conflict.name} occupe déjà l'ordre {checkpoint.sequence_order}."
            )

    for field, value in changes.items():
        setattr(checkpoint, field, value)

    db.commit()
    db.refresh(checkpoint)
    return CheckpointResponse.model_validate(checkpoint)


def delete_checkpoint(db: Session, checkpoint_id: uuid.UUID) -> None:
    """
    Suppression logique : le nom reste référencé par les snapshots historiques.
    Les checkpoints suivants remontent d'un cran.
    """
    checkpoint = _get_active(db, checkpoint_id)
    checkpoint.is_deleted = True
    checkpoint.deleted_at = _utcnow()
    db.flush()

    db.query(Checkpoint).filter(
        Checkpoint.sequence_order > checkpoint.sequence_order,
        Checkpoint.is_deleted.is_(False),
    ).update(
        {Checkpoint.sequence_order: Checkpoint.sequence_order - 1},
        synchronize_session=False,
    )
    db.commit()
    logger.info("Checkpoint %s supprimé (position %d)", checkpoint.name, checkpoint.sequence_order)


def reorder_checkpoints(db: Session, items: List[CheckpointReorderItem]) -> List[CheckpointResponse]:
    """
    Réordonnancement en bulk.
    Rejette les identifiants inconnus et tout résultat avec deux ordres identiques.
    """
    new_orders = {item.id: item.sequence_order for item in items}
    if len(new_orders) != len(items):
        raise ValidationError("Un checkpoint apparaît plusieurs fois dans la liste.")

    checkpoints = db.query(Checkpoint).filter(Checkpoint.is_deleted.is_(False)).all()
    by_id = {cp.id: cp for cp in checkpoints}
    missing = [str(cp_id) for cp_id in new_orders if cp_id not in by_id]
    if missing:
        raise ValidationError(f"Checkpoints introuvables : {', '.join(missing)}")

    final_orders = [new_orders.get(cp.id, cp.sequence_order) for cp in checkpoints if cp.is_active]
    if len(set(final_orders)) != len(final_orders):
        raise ValidationError("Chaque checkpoint actif doit avoir un ordre unique.")

    for cp_id, order in new_orders.items():
        by_id[cp_id].sequence_order = order
    db.commit()

    logger.info("%d checkpoints réordonnés", len(new_orders))
    return [
        CheckpointResponse.model_validate(cp)
        for cp in sorted(checkpoints, key=lambda c: c.sequence_order)
    ]


def seed_checkpoints(db: Session, force: bool = False, created_by: str = "system") -> SeedResult:
    """
    Insère la liste par défaut des checkpoints du corridor.
    Refuse si des checkpoints existent déjà, sauf avec force (suppression logique des existants).
    """
    existing = db.query(Checkpoint).filter(Checkpoint.is_deleted.is_(False)).all()
    if existing and not force:
        raise ValidationError(
            f"Seed impossible : {len(existing)} checkpoints existent déjà. Utiliser force=true."
        )

    now = _utcnow()
    for checkpoint in existing:
        checkpoint.is_deleted = True
        checkpoint.deleted_at = now
    db.flush()

    rows = default_checkpoint_rows(created_by)
    db.bulk_insert_mappings(Checkpoint, rows)
    db.commit()

    logger.info("Seed checkpoints : %d créés, %d supprimés", len(rows), len(existing))
    return SeedResult(created=len(rows), removed=len(existing))
