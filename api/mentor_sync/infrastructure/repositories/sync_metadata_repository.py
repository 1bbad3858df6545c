"""
Repositorio para la tabla airtable_sync_metadata.

Unica autoridad sobre "que version de cada entidad esta reflejada en
Airtable". Lo usan el dispatcher, el push inmediato y el webhook.
"""
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.infrastructure.database.models import SyncMetadataModel
from mentor_sync.shared.utils.datetime_utils import utc_now


class SyncMetadataRepository:
    """
    Gestiona la tabla airtable_sync_metadata.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, entity_type: str, entity_id: str) -> Optional[SyncMetadataModel]:
        """
        Retorna la fila existente para la entidad, o None.
        La creacion ocurre en upsert().
        """
        result = await self.db.execute(
            select(SyncMetadataModel).where(
                SyncMetadataModel.entity_type == entity_type,
                SyncMetadataModel.entity_id == entity_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_airtable_record_id(
        self, entity_type: str, record_id: str
    ) -> Optional[SyncMetadataModel]:
        result = await self.db.execute(
            select(SyncMetadataModel).where(
                SyncMetadataModel.entity_type == entity_type,
                SyncMetadataModel.airtable_record_id == record_id,
            )
        )
        return result.scalars().first()

    async def upsert(
        self,
        entity_type: str,
        entity_id: str,
        airtable_record_id: Optional[str],
        version: int,
    ) -> SyncMetadataModel:
        """
        Crea o actualiza la fila de la entidad.

        Actualiza last_synced_at y sync_version; el record id solo se
        sobreescribe si viene informado.
        """
        now = utc_now()
        existing = await self.get(entity_type, entity_id)

        if existing:
            if airtable_record_id:
                existing.airtable_record_id = airtable_record_id
            existing.last_synced_at = now
            existing.sync_version = version
            existing.updated_at = now
            row = existing
        else:
            row = SyncMetadataModel(
                entity_type=entity_type,
                entity_id=entity_id,
                airtable_record_id=airtable_record_id,
                last_synced_at=now,
                sync_version=version,
            )
            self.db.add(row)

        await self.db.flush()
        return row

    async def delete(self, entity_type: str, entity_id: str) -> int:
        result = await self.db.execute(
            delete(SyncMetadataModel).where(
                SyncMetadataModel.entity_type == entity_type,
                SyncMetadataModel.entity_id == entity_id,
            )
        )
        return result.rowcount or 0

    async def is_in_sync(self, entity_type: str, entity_id: str, version: int) -> bool:
        """True si la version indicada ya esta reflejada en Airtable."""
        row = await self.get(entity_type, entity_id)
        return bool(row and row.airtable_record_id and row.sync_version >= version)
