"""
Repositorio del outbox de sincronizacion con Airtable.

El reclamo de items es un UPDATE condicional (status='pending' ->
'processing') con RETURNING: dos dispatchers solapados nunca obtienen el
mismo item. En PostgreSQL la subconsulta usa FOR UPDATE SKIP LOCKED para
que un run no espere los locks del otro.
"""
from dataclasses import replace
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.domain.entities.outbox_item import OutboxItem
from mentor_sync.infrastructure.database.models import OutboxModel
from mentor_sync.shared.constants.sync_constants import (
    OUTBOX_ERROR_MAX_LENGTH,
    OUTBOX_STALE_CLAIM_ERROR,
    OutboxAction,
    OutboxStatus,
)
from mentor_sync.shared.exceptions.domain import EntityNotFoundException, OutboxStateException
from mentor_sync.shared.utils.datetime_utils import utc_now


def _truncate_error(error: str) -> str:
    return (error or "")[:OUTBOX_ERROR_MAX_LENGTH]


class OutboxRepository:
    """
    Gestiona la tabla airtable_outbox.

    No hace commit: los casos de uso definen los limites de transaccion.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def enqueue(
        self,
        entity_type: str,
        entity_id: str,
        action: OutboxAction = OutboxAction.UPSERT,
        payload: Optional[Dict[str, Any]] = None,
    ) -> OutboxItem:
        """
        Agrega un item pendiente. Puede haber varios items para la misma
        entidad; el dispatcher los tolera.
        """
        row = OutboxModel(
            entity_type=entity_type,
            entity_id=entity_id,
            action=OutboxAction(action).value,
            payload=payload or {},
            status=OutboxStatus.PENDING.value,
            attempts=0,
            created_at=utc_now(),
        )
        self.db.add(row)
        await self.db.flush()
        return OutboxItem.from_model(row)

    async def claim_batch(self, limit: int) -> List[OutboxItem]:
        """
        Reclama hasta `limit` items pendientes, los mas antiguos primero,
        marcandolos 'processing' en un solo statement.
        """
        if limit <= 0:
            return []

        candidates = (
            select(OutboxModel.id)
            .where(OutboxModel.status == OutboxStatus.PENDING.value)
            .order_by(OutboxModel.created_at, OutboxModel.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        return await self._claim(OutboxModel.id.in_(candidates))

    async def claim_one(self, item_id: str) -> Optional[OutboxItem]:
        """Reclama un item especifico si sigue pendiente."""
        claimed = await self._claim(OutboxModel.id == item_id)
        return claimed[0] if claimed else None

    async def _claim(self, criteria) -> List[OutboxItem]:
        result = await self.db.execute(
            update(OutboxModel)
            .where(criteria, OutboxModel.status == OutboxStatus.PENDING.value)
            .values(status=OutboxStatus.PROCESSING.value, updated_at=utc_now())
            .returning(OutboxModel)
            .execution_options(synchronize_session="fetch")
        )
        # El estado se fija explicitamente: el identity map puede traer el valor previo
        items = [
            replace(OutboxItem.from_model(row), status=OutboxStatus.PROCESSING)
            for row in result.scalars().all()
        ]
        # RETURNING no garantiza orden
        items.sort(key=lambda i: (i.created_at is None, i.created_at, i.id))
        return items

    async def mark_completed(self, item_id: str) -> None:
        now = utc_now()
        await self._set(
            item_id,
            status=OutboxStatus.COMPLETED.value,
            last_error=None,
            processed_at=now,
            updated_at=now,
        )

    async def mark_failed(self, item_id: str, error: str) -> None:
        """Falla terminal: queda para replay manual."""
        now = utc_now()
        await self._set(
            item_id,
            status=OutboxStatus.FAILED.value,
            attempts=OutboxModel.attempts + 1,
            last_error=_truncate_error(error),
            processed_at=now,
            updated_at=now,
        )

    async def release(self, item_id: str, error: str) -> None:
        """Devuelve un item reclamado a 'pending' (lo toma el dispatcher)."""
        await self._set(
            item_id,
            status=OutboxStatus.PENDING.value,
            attempts=OutboxModel.attempts + 1,
            last_error=_truncate_error(error),
            updated_at=utc_now(),
        )

    async def release_stale(self, older_than: timedelta) -> List[OutboxItem]:
        """
        Devuelve a 'pending' los items en 'processing' sin avance desde
        hace mas de `older_than` (el run que los reclamo murio).
        Cuenta como intento y deja el motivo en last_error.
        """
        cutoff = utc_now() - older_than
        result = await self.db.execute(
            update(OutboxModel)
            .where(
                OutboxModel.status == OutboxStatus.PROCESSING.value,
                OutboxModel.updated_at < cutoff,
            )
            .values(
                status=OutboxStatus.PENDING.value,
                attempts=OutboxModel.attempts + 1,
                last_error=OUTBOX_STALE_CLAIM_ERROR,
                updated_at=utc_now(),
            )
            .returning(OutboxModel.id)
            .execution_options(synchronize_session=False)
        )
        released_ids = list(result.scalars().all())
        if not released_ids:
            return []

        rows = await self.db.execute(
            select(OutboxModel)
            .where(OutboxModel.id.in_(released_ids))
            .order_by(OutboxModel.created_at, OutboxModel.id)
            .execution_options(populate_existing=True)
        )
        return [OutboxItem.from_model(row) for row in rows.scalars().all()]

    async def replay(self, item_id: str) -> OutboxItem:
        """
        Replay manual: failed -> pending. Mantiene attempts y last_error
        como historial hasta el proximo procesamiento.
        """
        item = await self.get(item_id)
        if item is None:
            raise EntityNotFoundException("OutboxItem", item_id)
        if item.status is not OutboxStatus.FAILED:
            raise OutboxStateException(item_id, item.status.value, OutboxStatus.FAILED.value)

        result = await self.db.execute(
            update(OutboxModel)
            .where(
                OutboxModel.id == item_id,
                OutboxModel.status == OutboxStatus.FAILED.value,
            )
            .values(status=OutboxStatus.PENDING.value, updated_at=utc_now())
            .returning(OutboxModel)
            .execution_options(synchronize_session="fetch")
        )
        row = result.scalars().first()
        if row is None:
            # Otro operador lo re-encolo entre el get y el update
            raise OutboxStateException(item_id, "unknown", OutboxStatus.FAILED.value)
        return replace(OutboxItem.from_model(row), status=OutboxStatus.PENDING)

    async def get(self, item_id: str) -> Optional[OutboxItem]:
        result = await self.db.execute(
            select(OutboxModel)
            .where(OutboxModel.id == item_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalars().first()
        return OutboxItem.from_model(row) if row else None

    async def list_items(
        self,
        status: Optional[OutboxStatus] = None,
        limit: int = 50,
    ) -> List[OutboxItem]:
        query = select(OutboxModel).execution_options(populate_existing=True)
        if status is not None:
            query = query.where(OutboxModel.status == OutboxStatus(status).value)
        query = query.order_by(OutboxModel.created_at.desc()).limit(limit)
        result = await self.db.execute(query)
        return [OutboxItem.from_model(row) for row in result.scalars().all()]

    async def count_by_status(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(OutboxModel.status, func.count(OutboxModel.id)).group_by(OutboxModel.status)
        )
        counts = {s.value: 0 for s in OutboxStatus}
        counts.update({status: total for status, total in result.all()})
        return counts

    async def _set(self, item_id: str, **values: Any) -> None:
        await self.db.execute(
            update(OutboxModel)
            .where(OutboxModel.id == item_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
