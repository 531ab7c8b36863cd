"""
Error taxonomy of the catalog.

Every kind is an APIException so the REST layer renders it with the right
status code; services raise them directly.
"""

import logging

from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class NotFound(exceptions.NotFound):
    default_detail = 'Ressource introuvable.'


class Forbidden(exceptions.PermissionDenied):
    default_detail = "Vous n'êtes pas autorisé à effectuer cette action."


class ValidationError(exceptions.ValidationError):
    pass


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflit avec l'état actuel de la ressource."
    default_code = 'conflict'


class InternalError(exceptions.APIException):
    """Wraps a persistence or storage failure, keeping the original error."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Erreur interne.'
    default_code = 'internal_error'

    def __init__(self, detail=None, original=None):
        if detail is None and original is not None:
            detail = str(original)
        super().__init__(detail)
        self.original = original


class ImmutableRecordError(Exception):
    """Raised on any attempt to modify or delete an audit record."""


class StorageError(Exception):
    """Raised by photo storage adapters."""


def catalog_exception_handler(exc, context):
    """DRF exception handler that logs wrapped internal failures."""
    if isinstance(exc, InternalError):
        logger.error(
            "Internal error in %s: %s",
            context.get('view').__class__.__name__ if context.get('view') else '?',
            exc.detail,
            exc_info=exc.original,
        )
    return exception_handler(exc, context)
