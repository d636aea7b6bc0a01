"""
Registre des checkpoints : cache en mémoire, lecture seule, rechargé explicitement.

Le cache est rempli au premier accès puis conservé. Toute mutation admin
(création, modification, suppression, réordonnancement, seed) doit appeler
invalidate() ; aucune synchronisation automatique avec la BDD.
"""

import logging
import threading
from typing import Callable, List, Optional

from fastapi import Request
from sqlalchemy import select

from fleettrack.config import settings
from fleettrack.database import session_scope
from fleettrack.models.checkpoint import Checkpoint
from fleettrack.schemas.checkpoint import CheckpointRef
from fleettrack.services.checkpoint_matcher import CheckpointMatch, match_checkpoint, normalize_location

logger = logging.getLogger(__name__)

CheckpointLoader = Callable[[], List[CheckpointRef]]


def load_active_checkpoints() -> List[CheckpointRef]:
    """Loader par défaut : checkpoints actifs et non supprimés, triés par ordre."""
    with session_scope() as db:
        rows = db.execute(
            select(Checkpoint)
            .where(Checkpoint.is_deleted.is_(False), Checkpoint.is_active.is_(True))
            .order_by(Checkpoint.sequence_order)
        ).scalars().all()
        return [CheckpointRef.model_validate(cp) for cp in rows]


class CheckpointRegistry:
    def __init__(
        self,
        loader: CheckpointLoader = load_active_checkpoints,
        min_partial_length: int = settings.MIN_PARTIAL_MATCH_LENGTH,
    ):
        self._loader = loader
        self._min_partial_length = min_partial_length
        self._cache: Optional[List[CheckpointRef]] = None
        self._lock = threading.Lock()

    def load_active(self) -> List[CheckpointRef]:
        """Checkpoints actifs triés par ordre croissant (depuis le cache si présent)."""
        with self._lock:
            if self._cache is None:
                self._cache = self._fetch()
            return list(self._cache)

    def reload(self) -> List[CheckpointRef]:
        """Force le rechargement depuis la source."""
        with self._lock:
            self._cache = self._fetch()
            return list(self._cache)

    def invalidate(self) -> None:
        """Vide le cache ; le prochain accès rechargera la liste."""
        with self._lock:
            self._cache = None
        logger.info("Cache des checkpoints invalidé.")

    def resolve(self, raw_text: Optional[str]) -> Optional[CheckpointMatch]:
        return match_checkpoint(
            normalize_location(raw_text),
            self.load_active(),
            min_partial_length=self._min_partial_length,
        )

    def _fetch(self) -> List[CheckpointRef]:
        checkpoints = sorted(self._loader(), key=lambda cp: cp.sequence_order)
        logger.info("%d checkpoints chargés dans le registre", len(checkpoints))
        return checkpoints


def get_checkpoint_registry(request: Request) -> CheckpointRegistry:
    """Dépendance FastAPI : registre créé dans le lifespan de l'application."""
    return request.app.state.checkpoint_registry
