# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles
# (truck_positions.snapshot_id → fleet_snapshots.id).

from fleettrack.models.checkpoint import Checkpoint  # noqa: F401
from fleettrack.models.fleet_snapshot import FleetSnapshot, TruckPosition  # noqa: F401
