"""
DTOs del sync con Airtable: respuestas del trigger periodico, del webhook
y de los endpoints operativos del outbox.

Los nombres camelCase son contrato externo (alias); en Python se usan
nombres snake_case.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from mentor_sync.domain.entities.outbox_item import OutboxItem


class DispatchErrorDTO(BaseModel):
    """Error de un item del outbox en una corrida del dispatcher."""
    item_id: str = Field(..., alias="itemId")
    error: str

    class Config:
        populate_by_name = True


class DispatchResultDTO(BaseModel):
    """Resultado de una corrida del dispatcher."""
    success: bool = True
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    recovered: int = 0
    errors: List[DispatchErrorDTO] = Field(default_factory=list)
    message: Optional[str] = None


class WebhookRecordResultDTO(BaseModel):
    """Resultado por record de un webhook."""
    record_id: str = Field(..., alias="recordId")
    status: str
    reason: Optional[str] = None
    error: Optional[str] = None

    class Config:
        populate_by_name = True


class WebhookResponseDTO(BaseModel):
    """Respuesta del receptor de webhooks."""
    success: bool = True
    processed: int = 0
    results: List[WebhookRecordResultDTO] = Field(default_factory=list)
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Payload entrante de Airtable
# ---------------------------------------------------------------------------


class AirtableRecordSnapshotDTO(BaseModel):
    id: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)


class AirtableRecordChangeDTO(BaseModel):
    current: Optional[AirtableRecordSnapshotDTO] = None
    previous: Optional[AirtableRecordSnapshotDTO] = None


class AirtableChangedTableDTO(BaseModel):
    changed_records_by_id: Dict[str, AirtableRecordChangeDTO] = Field(
        default_factory=dict, alias="changedRecordsById"
    )

    class Config:
        populate_by_name = True


class AirtableEventPayloadDTO(BaseModel):
    changed_tables_by_id: Dict[str, AirtableChangedTableDTO] = Field(
        default_factory=dict, alias="changedTablesById"
    )

    class Config:
        populate_by_name = True


class AirtableEventDTO(BaseModel):
    payload: Optional[AirtableEventPayloadDTO] = None


class AirtableRefDTO(BaseModel):
    id: Optional[str] = None


class AirtableWebhookPayloadDTO(BaseModel):
    """
    Cuerpo del webhook:
    {base:{id}, webhook:{id}, event:{payload:{changedTablesById:{...}}}, timestamp}
    Campos desconocidos se ignoran.
    """
    base: Optional[AirtableRefDTO] = None
    webhook: Optional[AirtableRefDTO] = None
    event: Optional[AirtableEventDTO] = None
    timestamp: Optional[str] = None

    def changed_records(self, table_id: str) -> Dict[str, AirtableRecordChangeDTO]:
        """Records cambiados de una tabla (vacio si la tabla no cambio)."""
        if not self.event or not self.event.payload:
            return {}
        table = self.event.payload.changed_tables_by_id.get(table_id)
        return table.changed_records_by_id if table else {}


# ---------------------------------------------------------------------------
# Endpoints operativos
# ---------------------------------------------------------------------------


class OutboxItemDTO(BaseModel):
    """Vista de un item del outbox para operaciones."""
    id: str
    entity_type: str
    entity_id: str
    action: str
    status: str
    attempts: int
    last_error: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, item: OutboxItem) -> "OutboxItemDTO":
        return cls(
            id=item.id,
            entity_type=item.entity_type,
            entity_id=item.entity_id,
            action=item.action.value,
            status=item.status.value,
            attempts=item.attempts,
            last_error=item.last_error,
            payload=item.payload,
            created_at=item.created_at,
            updated_at=item.updated_at,
            processed_at=item.processed_at,
        )


class OutboxStatsDTO(BaseModel):
    """Conteo de items del outbox por estado."""
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class AirtableHealthDTO(BaseModel):
    """Estado de conectividad/configuracion con Airtable."""
    status: str
    message: str
    missing: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    config: Optional[Dict[str, str]] = None


class MentorSyncStatusDTO(BaseModel):
    """Estado de sincronizacion de un mentor."""
    mentor_id: str
    sync_version: int
    synced_version: Optional[int] = None
    airtable_record_id: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    in_sync: bool = False
