"""
Entidad de dominio: OutboxItem.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from mentor_sync.shared.constants.sync_constants import OutboxAction, OutboxStatus


@dataclass(frozen=True)
class OutboxItem:
    """
    Operacion de push pendiente hacia Airtable.

    Se entrega como snapshot (no objeto ORM) para que un rollback de un item
    no invalide los demas items del mismo batch.
    """

    id: str
    entity_type: str
    entity_id: str
    action: OutboxAction
    status: OutboxStatus
    payload: Dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: Any) -> "OutboxItem":
        return cls(
            id=model.id,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            action=OutboxAction(model.action),
            status=OutboxStatus(model.status),
            payload=dict(model.payload or {}),
            attempts=model.attempts or 0,
            last_error=model.last_error,
            created_at=model.created_at,
            updated_at=model.updated_at,
            processed_at=model.processed_at,
        )
