"""
Excepciones relacionadas con la lógica de dominio.
"""
from typing import Any

from mentor_sync.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class EntityNotFoundException(DomainException):
    """Excepción cuando no se encuentra una entidad."""

    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(
            message=f"{entity_name} con ID {entity_id} no encontrado",
            error_code="ENTITY_NOT_FOUND",
            details={"entity": entity_name, "id": str(entity_id)}
        )
        self.status_code = 404


class UnsupportedEntityTypeException(DomainException):
    """Tipo de entidad sin soporte de sincronización."""

    def __init__(self, entity_type: str):
        super().__init__(
            message=f"Tipo de entidad no soportado: {entity_type}",
            error_code="UNSUPPORTED_ENTITY_TYPE",
            details={"entity_type": entity_type}
        )


class OutboxStateException(DomainException):
    """Transición inválida de un item del outbox."""

    def __init__(self, item_id: str, status: str, expected: str):
        super().__init__(
            message=f"Item {item_id} está en estado '{status}', se esperaba '{expected}'",
            error_code="OUTBOX_INVALID_STATE",
            details={"item_id": item_id, "status": status, "expected": expected}
        )
        self.status_code = 409
