"""
Exceptions métier levées par les services.

Elles héritent de ValueError : les routers les interceptent et les traduisent
en HTTPException (404, 409, 422).
"""


class DomainError(ValueError):
    """Base des erreurs métier."""


class DomainValidationError(DomainError):
    """Donnée invalide au regard d'une règle métier (âge hors tranche, score > max...)."""


class NotFoundError(DomainError):
    """Ressource introuvable."""


class DuplicateError(DomainError):
    """Violation d'unicité détectée par l'index de la base."""


class NonClassDayError(DomainError):
    """Date de présence qui n'est ni un dimanche ni un jour de Poya, sans confirmation."""
