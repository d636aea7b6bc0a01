"""
Point d'entrée principal de l'API FleetTrack.
Démarrage : uvicorn fleettrack.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import fleettrack.models  # noqa: F401 (enregistre tous les modèles dans Base.metadata avant les routers)
from fleettrack.config import settings
from fleettrack.exceptions import FleetTrackingError
from fleettrack.routers import checkpoints, fleet_tracking
from fleettrack.scheduler import start_scheduler, stop_scheduler
from fleettrack.services.checkpoint_registry import CheckpointRegistry
from fleettrack.services.direction_classifier import DirectionClassifier, load_direction_rules

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s : %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Cycle de vie de l'application : crée le registre des checkpoints (chargé au
    premier accès) et le classifieur de direction, puis démarre le scheduler.
    """
    app.state.checkpoint_registry = CheckpointRegistry()
    app.state.direction_classifier = DirectionClassifier(load_direction_rules(settings.DIRECTION_RULES_FILE))
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="FleetTrack API",
    description="API d'ingestion des rapports de flotte et de suivi des camions par checkpoint",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : autorise les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-User-Name", "X-User-Role"],
)


app.include_router(fleet_tracking.router)
app.include_router(checkpoints.router)


@app.exception_handler(FleetTrackingError)
async def fleet_tracking_exception_handler(request: Request, exc: FleetTrackingError) -> JSONResponse:
    """Erreurs métier levées hors des routers (dépendances de rôle notamment)."""
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "FleetTrack API", "version": "0.1.0"}
