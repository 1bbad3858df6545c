"""
Caso de uso del receptor de webhooks de Airtable.

Autentica el body crudo ANTES de parsearlo y aplica los cambios de la
tabla de mentores record por record, cada uno en su transaccion.
Solo actualiza: un record sin mentor vinculado se omite, nunca se crea.
"""
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.application.dto.sync_dto import (
    AirtableRecordChangeDTO,
    AirtableWebhookPayloadDTO,
    WebhookRecordResultDTO,
    WebhookResponseDTO,
)
from mentor_sync.application.services.mentor_write_service import MentorWriteService
from mentor_sync.core.config import settings as default_settings
from mentor_sync.infrastructure.external.airtable.airtable_client import mentors_table_id
from mentor_sync.infrastructure.external.airtable.field_mapper import inbound_map
from mentor_sync.infrastructure.repositories.mentor_repository import MentorRepository
from mentor_sync.infrastructure.repositories.sync_metadata_repository import SyncMetadataRepository
from mentor_sync.infrastructure.security.webhook_signature import WebhookSignatureVerifier
from mentor_sync.shared.constants.sync_constants import (
    EntityType,
    MutationOrigin,
    WebhookRecordStatus,
    WebhookSkipReason,
)
from mentor_sync.shared.exceptions.auth import InvalidSignatureException
from mentor_sync.shared.exceptions.base import describe_error
from mentor_sync.shared.exceptions.domain import DomainException


class AirtableWebhookUseCases:
    """Procesa notificaciones de cambios enviadas por Airtable."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        verifier: Optional[WebhookSignatureVerifier] = None,
        settings: Any = None,
    ):
        self.db = db
        self._settings = settings or default_settings
        self.verifier = verifier or WebhookSignatureVerifier(self._settings.AIRTABLE_WEBHOOK_SECRET)
        self.mentors = MentorRepository(db)
        self.metadata = SyncMetadataRepository(db)
        self.writer = MentorWriteService(db)

    async def handle(self, body: bytes, signature: Optional[str]) -> WebhookResponseDTO:
        """
        Verifica la firma y procesa el webhook.

        Raises:
            InvalidSignatureException: firma ausente o invalida (401).
            DomainException: body que no es un payload de webhook (400).
        """
        if not self.verifier.verify(body, signature):
            logger.warning("Webhook de Airtable rechazado: firma invalida o ausente")
            raise InvalidSignatureException()

        try:
            payload = AirtableWebhookPayloadDTO.model_validate_json(body)
        except ValidationError as e:
            raise DomainException(
                "Payload de webhook invalido", error_code="INVALID_WEBHOOK_PAYLOAD",
                details={"errors": e.error_count()},
            ) from e

        return await self.process(payload)

    async def process(self, payload: AirtableWebhookPayloadDTO) -> WebhookResponseDTO:
        """Aplica los cambios de la tabla de mentores (payload ya autenticado)."""
        changes = payload.changed_records(mentors_table_id(self._settings))
        response = WebhookResponseDTO()
        if not changes:
            response.message = "Sin cambios en la tabla de mentores"
            return response

        for record_id, change in changes.items():
            result = await self._process_record(record_id, change)
            response.results.append(result)
            response.processed += 1

        updated = sum(1 for r in response.results if r.status == WebhookRecordStatus.UPDATED.value)
        logger.info(f"Webhook Airtable: {response.processed} records, {updated} actualizados")
        return response

    async def _process_record(
        self, record_id: str, change: AirtableRecordChangeDTO
    ) -> WebhookRecordResultDTO:
        try:
            mentor_id = await self._resolve_mentor_id(record_id)
            if mentor_id is None:
                logger.info(f"Record Airtable {record_id} sin mentor vinculado; omitido")
                return WebhookRecordResultDTO(
                    record_id=record_id, status=WebhookRecordStatus.SKIPPED.value,
                    reason=WebhookSkipReason.MENTOR_NOT_FOUND.value,
                )

            fields = change.current.fields if change.current else {}
            patch = inbound_map(fields)
            if patch.is_empty():
                logger.debug(f"Record Airtable {record_id} sin campos sincronizables; omitido")
                return WebhookRecordResultDTO(
                    record_id=record_id, status=WebhookRecordStatus.SKIPPED.value,
                    reason=WebhookSkipReason.NO_SYNCABLE_FIELDS.value,
                )

            version, _ = await self.writer.apply_change(
                mentor_id, patch, MutationOrigin.AIRTABLE_WEBHOOK, airtable_record_id=record_id
            )
            await self.db.commit()
            logger.info(f"Mentor {mentor_id} actualizado desde Airtable {record_id} (version={version})")
            return WebhookRecordResultDTO(
                record_id=record_id, status=WebhookRecordStatus.UPDATED.value
            )
        except Exception as e:
            await self.db.rollback()
            error = describe_error(e)
            logger.error(f"Error aplicando record Airtable {record_id}: {error}")
            return WebhookRecordResultDTO(
                record_id=record_id, status=WebhookRecordStatus.ERROR.value, error=error
            )

    async def _resolve_mentor_id(self, record_id: str) -> Optional[str]:
        mentor = await self.mentors.get_by_airtable_record_id(record_id)
        if mentor is not None:
            return mentor.id
        meta = await self.metadata.get_by_airtable_record_id(EntityType.MENTOR.value, record_id)
        if meta is None:
            return None
        # Metadata de un perfil ya borrado: nunca se recrea desde Airtable
        if await self.mentors.get_by_id(meta.entity_id) is None:
            logger.warning(
                f"Record Airtable {record_id} apunta al mentor {meta.entity_id}, que ya no existe"
            )
            return None
        return meta.entity_id
