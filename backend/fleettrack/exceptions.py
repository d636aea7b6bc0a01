"""
Exceptions métier du suivi de flotte.

Les services lèvent ces exceptions ; les routers les traduisent en HTTPException.
Les avertissements de parsing (aucun camion, positions non résolues) ne sont
pas des exceptions : ils sont renvoyés dans le rapport d'upload.
"""


class FleetTrackingError(Exception):
    """Classe de base des erreurs métier."""
    status_code = 500


class ValidationError(FleetTrackingError):
    """Fichier manquant, vide, extension refusée ou données invalides."""
    status_code = 400


class FileTooLargeError(ValidationError):
    status_code = 413


class UnreadableReportError(ValidationError):
    """Le classeur ne peut pas être ouvert par le lecteur correspondant à son extension."""


class NotFoundError(FleetTrackingError, LookupError):
    """Snapshot inconnu ou supprimé, checkpoint inconnu ou sans camion."""
    status_code = 404


class AuthorizationError(FleetTrackingError):
    status_code = 403
