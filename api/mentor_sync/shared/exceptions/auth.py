"""
Excepciones relacionadas con autenticación de triggers y webhooks.
"""
from mentor_sync.shared.exceptions.base import AppException


class AuthException(AppException):
    """Excepción base para errores de autenticación."""

    def __init__(self, message: str, error_code: str = "AUTH_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=401,
            error_code=error_code,
            details=details
        )


class UnauthorizedException(AuthException):
    """Excepción para acceso no autorizado."""

    def __init__(self, message: str = "No autorizado"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED"
        )


class InvalidSignatureException(AuthException):
    """Firma de webhook ausente o inválida."""

    def __init__(self, message: str = "Unauthorized: Invalid signature"):
        super().__init__(
            message=message,
            error_code="INVALID_SIGNATURE"
        )
