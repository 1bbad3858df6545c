"""
Endpoints operativos del sync: inspeccion del outbox, replay manual,
recuperacion de items huerfanos y estado de sincronizacion por mentor.
Usan el mismo bearer que el trigger periodico.
"""
from datetime import timedelta
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.api.v1.dependencies.sync_deps import (
    get_outbox_repository,
    get_settings,
    require_cron_auth,
)
from mentor_sync.application.dto.sync_dto import (
    MentorSyncStatusDTO,
    OutboxItemDTO,
    OutboxStatsDTO,
)
from mentor_sync.infrastructure.database.session import get_db
from mentor_sync.infrastructure.repositories.mentor_repository import MentorRepository
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.infrastructure.repositories.sync_metadata_repository import SyncMetadataRepository
from mentor_sync.shared.constants.sync_constants import EntityType, OutboxStatus
from mentor_sync.shared.exceptions.domain import EntityNotFoundException


router = APIRouter(
    prefix="/sync",
    tags=["Sync"],
    dependencies=[Depends(require_cron_auth)],
)


@router.get("/outbox", response_model=List[OutboxItemDTO])
async def list_outbox_items(
    status: Optional[OutboxStatus] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    repository: OutboxRepository = Depends(get_outbox_repository),
):
    """Lista items del outbox, los mas recientes primero."""
    items = await repository.list_items(status=status, limit=limit)
    return [OutboxItemDTO.from_entity(item) for item in items]


@router.get("/outbox/stats", response_model=OutboxStatsDTO)
async def outbox_stats(repository: OutboxRepository = Depends(get_outbox_repository)):
    """Cantidad de items por estado."""
    return OutboxStatsDTO(**await repository.count_by_status())


@router.post("/outbox/release-stale", response_model=List[OutboxItemDTO])
async def release_stale_outbox_items(
    older_than_minutes: Optional[int] = Query(default=None, ge=1),
    repository: OutboxRepository = Depends(get_outbox_repository),
    app_settings: Any = Depends(get_settings),
):
    """
    Re-encola items trabados en 'processing' (run caido a mitad de lote).
    Por defecto usa AIRTABLE_OUTBOX_STALE_AFTER_MINUTES.
    """
    minutes = older_than_minutes or app_settings.AIRTABLE_OUTBOX_STALE_AFTER_MINUTES
    released = await repository.release_stale(timedelta(minutes=minutes))
    await repository.db.commit()
    if released:
        logger.info(f"Outbox: {len(released)} items huerfanos re-encolados manualmente")
    return [OutboxItemDTO.from_entity(item) for item in released]


@router.post("/outbox/{item_id}/replay", response_model=OutboxItemDTO)
async def replay_outbox_item(
    item_id: str,
    repository: OutboxRepository = Depends(get_outbox_repository),
):
    """Re-encola un item fallido (failed -> pending)."""
    item = await repository.replay(item_id)
    await repository.db.commit()
    logger.info(f"Outbox item {item_id} re-encolado manualmente")
    return OutboxItemDTO.from_entity(item)


@router.get("/mentors/{mentor_id}", response_model=MentorSyncStatusDTO)
async def mentor_sync_status(mentor_id: str, db: AsyncSession = Depends(get_db)):
    """Compara la version local del mentor con la reflejada en Airtable."""
    mentor = await MentorRepository(db).get_by_id(mentor_id)
    if mentor is None:
        raise EntityNotFoundException("Mentor", mentor_id)

    metadata = SyncMetadataRepository(db)
    meta = await metadata.get(EntityType.MENTOR.value, mentor_id)
    return MentorSyncStatusDTO(
        mentor_id=mentor_id,
        sync_version=mentor.sync_version,
        synced_version=meta.sync_version if meta else None,
        airtable_record_id=(meta.airtable_record_id if meta else None) or mentor.airtable_record_id,
        last_synced_at=meta.last_synced_at if meta else None,
        in_sync=await metadata.is_in_sync(EntityType.MENTOR.value, mentor_id, mentor.sync_version),
    )
