"""Taxonomie des erreurs métier du pipeline.

Chaque erreur porte un code stable (exposé dans l'enveloppe JSON) et le statut HTTP associé.
Les adaptateurs lèvent ces erreurs; l'orchestrateur décide, étape par étape, si l'échec est
fatal pour la requête ou s'il dégrade simplement le résultat.
"""

from __future__ import annotations

from typing import Any


class ErrorCodes:
    """Codes d'erreur stables de l'API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppError(Exception):
    """Erreur applicative avec code et statut HTTP."""

    code = ErrorCodes.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialise l'erreur avec un message lisible et des détails optionnels."""
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Entrée absente ou malformée."""

    code = ErrorCodes.VALIDATION_ERROR
    status_code = 400


class InvalidInputError(AppError):
    """Entrée présente mais hors des bornes acceptées."""

    code = ErrorCodes.INVALID_INPUT
    status_code = 400


class PayloadTooLargeError(AppError):
    """Artefact au-delà du plafond configuré."""

    code = ErrorCodes.INVALID_INPUT
    status_code = 413


class UnauthorizedError(AppError):
    code = ErrorCodes.UNAUTHORIZED
    status_code = 401


class ForbiddenError(AppError):
    code = ErrorCodes.FORBIDDEN
    status_code = 403


class NotFoundError(AppError):
    """Identifiant référencé absent du store."""

    code = ErrorCodes.NOT_FOUND
    status_code = 404


class MediaProcessingError(AppError):
    """Échec de transcription, de description d'image ou d'extraction audio."""

    code = ErrorCodes.EXTERNAL_SERVICE_ERROR
    status_code = 422


class ExternalServiceError(AppError):
    """Échec du service d'analyse après épuisement des modèles (ou service non configuré)."""

    code = ErrorCodes.EXTERNAL_SERVICE_ERROR
    status_code = 503


class DatabaseError(AppError):
    """Connexion ou écriture au store de contenus impossible."""

    code = ErrorCodes.DATABASE_ERROR
    status_code = 500


class InternalError(AppError):
    code = ErrorCodes.INTERNAL_ERROR
    status_code = 500
