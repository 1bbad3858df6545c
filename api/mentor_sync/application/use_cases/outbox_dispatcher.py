"""
Dispatcher del outbox: procesa items pendientes hacia Airtable.

Lo dispara el trigger periodico (cron) o el script run_outbox_dispatch.
Corridas solapadas son seguras: el reclamo de items es atomico.
"""
from datetime import timedelta
from typing import Any, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.application.dto.sync_dto import DispatchErrorDTO, DispatchResultDTO
from mentor_sync.application.interfaces.mentor_metrics import MentorMetricsProvider
from mentor_sync.application.services.mentor_push_service import (
    MentorPushService,
    build_push_service,
)
from mentor_sync.core.config import settings as default_settings
from mentor_sync.domain.entities.outbox_item import OutboxItem
from mentor_sync.infrastructure.external.airtable.airtable_client import AirtableClient
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.shared.constants.sync_constants import EntityType, OutboxAction, OutboxStatus
from mentor_sync.shared.exceptions.base import describe_error
from mentor_sync.shared.exceptions.domain import UnsupportedEntityTypeException


class OutboxDispatcher:
    """Procesa un lote del outbox, aislando fallas por item."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        client: Optional[AirtableClient] = None,
        metrics_provider: Optional[MentorMetricsProvider] = None,
        settings: Any = None,
    ):
        self.db = db
        self.outbox = OutboxRepository(db)
        self._client = client
        self._metrics_provider = metrics_provider
        self._settings = settings or default_settings

    async def dispatch_pending(self, limit: Optional[int] = None) -> DispatchResultDTO:
        """
        Reclama hasta `limit` items pendientes y los procesa en orden.

        El cliente se arma antes de reclamar: sin configuracion de Airtable
        se lanza AirtableConfigError y ningun item cambia de estado.
        Antes de reclamar se recuperan los items huerfanos de runs caidos.
        """
        limit = limit if limit is not None else self._settings.AIRTABLE_SYNC_BATCH_SIZE
        push_service = build_push_service(
            self.db,
            self._settings,
            client=self._client,
            metrics_provider=self._metrics_provider,
        )

        recovered = await self.recover_stale()

        items = await self.outbox.claim_batch(limit)
        await self.db.commit()

        result = DispatchResultDTO(recovered=len(recovered))
        if not items:
            result.message = "Sin items pendientes"
            return result

        logger.info(f"Outbox: {len(items)} items reclamados")
        for item in items:
            result.processed += 1
            error = await self._process_item(push_service, item)
            if error is None:
                result.succeeded += 1
            else:
                result.failed += 1
                result.errors.append(DispatchErrorDTO(item_id=item.id, error=error))

        logger.success(
            f"Outbox: {result.processed} procesados, "
            f"{result.succeeded} ok, {result.failed} fallidos"
        )
        return result

    async def _process_item(self, push_service: MentorPushService, item: OutboxItem) -> Optional[str]:
        """
        Procesa un item en su propia transaccion.
        Retorna None si se completo, o el texto del error.
        """
        try:
            await self._execute(push_service, item)
            await self.outbox.mark_completed(item.id)
            await self.db.commit()
            return None
        except Exception as e:
            await self.db.rollback()
            error = describe_error(e)
            logger.error(f"Outbox item {item.id} ({item.entity_type}:{item.entity_id}) fallo: {error}")
            await self.outbox.mark_failed(item.id, error)
            await self.db.commit()
            return error

    async def _execute(self, push_service: MentorPushService, item: OutboxItem) -> None:
        if item.entity_type != EntityType.MENTOR.value:
            raise UnsupportedEntityTypeException(item.entity_type)

        if item.action is OutboxAction.DELETE:
            await push_service.delete_mentor(item.entity_id, item.payload)
        else:
            await push_service.push_mentor(item.entity_id)

    async def recover_stale(self, older_than: Optional[timedelta] = None) -> List[OutboxItem]:
        """Re-encola items en 'processing' cuyo run no termino."""
        if older_than is None:
            older_than = timedelta(minutes=self._settings.AIRTABLE_OUTBOX_STALE_AFTER_MINUTES)
        released = await self.outbox.release_stale(older_than)
        await self.db.commit()
        if released:
            logger.warning(
                f"Outbox: {len(released)} items huerfanos en processing re-encolados: "
                f"{[item.id for item in released]}"
            )
        return released

    async def replay_failed(self, limit: int = 100) -> int:
        """Re-encola items fallidos (failed -> pending). Retorna cuantos."""
        failed = await self.outbox.list_items(status=OutboxStatus.FAILED, limit=limit)
        for item in failed:
            await self.outbox.replay(item.id)
        await self.db.commit()
        if failed:
            logger.info(f"Outbox: {len(failed)} items fallidos re-encolados")
        return len(failed)
