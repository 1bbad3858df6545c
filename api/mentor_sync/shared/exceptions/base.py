"""
Excepción base para todas las excepciones personalizadas del servicio de sync.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepción base de la aplicación.
    Todas las excepciones personalizadas deben heredar de esta clase.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error descriptivo
            status_code: Código de estado HTTP
            error_code: Código de error personalizado
            details: Detalles adicionales del error
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def as_sync_error(self) -> str:
        """Texto compacto que se persiste como last_error en el outbox."""
        return f"{self.error_code}: {self.message}"

    def to_response(self) -> Dict[str, Any]:
        """Cuerpo JSON estandar de error."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


def describe_error(exc: Exception) -> str:
    """Texto de error para persistir en el outbox o reportar en resultados."""
    if isinstance(exc, AppException):
        return exc.as_sync_error()
    return str(exc) or type(exc).__name__
