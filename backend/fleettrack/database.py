"""
Connexion PostgreSQL et sessions SQLAlchemy.

Deux usages : get_db pour les requêtes HTTP, session_scope pour le code hors
requête (chargement du registre des checkpoints).
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from fleettrack.config import settings

# Traitement synchrone : chaque upload est parsé et persisté dans la requête
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : session BDD liée à la requête, fermée après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session en lecture pour le code hors requête."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
