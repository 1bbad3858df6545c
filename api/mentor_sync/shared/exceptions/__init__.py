"""
Excepciones de la aplicación.
"""
from .base import AppException, describe_error
from .auth import AuthException, UnauthorizedException, InvalidSignatureException
from .domain import (
    DomainException,
    EntityNotFoundException,
    UnsupportedEntityTypeException,
    OutboxStateException,
)
from .external import AirtableApiError, AirtableConfigError
