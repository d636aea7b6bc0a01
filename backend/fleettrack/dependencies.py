"""
Dépendances FastAPI d'identification de l'opérateur.

L'authentification est assurée par la passerelle amont, qui transmet
l'identité dans les headers X-User-Name et X-User-Role.
"""

from typing import List, NamedTuple, Optional

from fastapi import Depends, Header

from fleettrack.config import settings
from fleettrack.exceptions import AuthorizationError


class Operator(NamedTuple):
    name: str
    role: Optional[str]


def get_current_operator(
    x_user_name: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Operator:
    name = (x_user_name or "").strip() or "anonymous"
    role = (x_user_role or "").strip().lower() or None
    return Operator(name=name, role=role)


def require_roles(roles: List[str]):
    """Retourne une dépendance qui refuse tout rôle absent de `roles` (403 via le handler de main)."""
    allowed = {r.lower() for r in roles}

    def _check(operator: Operator = Depends(get_current_operator)) -> Operator:
        if operator.role is None or operator.role not in allowed:
            raise AuthorizationError("Accès refusé : rôle insuffisant.")
        return operator

    return _check


require_fleet_role = require_roles(settings.FLEET_ROLES)
require_checkpoint_admin = require_roles(settings.CHECKPOINT_ADMIN_ROLES)
require_seed_role = require_roles(settings.SEED_ROLES)
