"""
Excepciones de integración con servicios externos (Airtable).
"""
from typing import Optional

from mentor_sync.shared.exceptions.base import AppException


class AirtableConfigError(AppException):
    """Configuración de Airtable ausente (token, base, tabla)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="AIRTABLE_NOT_CONFIGURED"
        )


class AirtableApiError(AppException):
    """
    Error de integración con Airtable (red, 4xx, 5xx).

    committed: en operaciones batch, cuántos records quedaron escritos
    antes del chunk que falló (permite reanudar desde ahí).
    """

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        committed: int = 0,
    ):
        super().__init__(
            message=message,
            status_code=502,
            error_code="AIRTABLE_API_ERROR",
            details={"http_status": http_status, "committed": committed}
        )
        self.http_status = http_status
        self.committed = committed
