"""
Trigger periodico del dispatcher del outbox.
"""
from fastapi import APIRouter, Depends, Query

from mentor_sync.api.v1.dependencies.sync_deps import get_outbox_dispatcher, require_cron_auth
from mentor_sync.application.dto.sync_dto import DispatchResultDTO
from mentor_sync.application.use_cases.outbox_dispatcher import OutboxDispatcher


router = APIRouter(prefix="/cron", tags=["Cron"])


@router.get(
    "/airtable-sync",
    response_model=DispatchResultDTO,
    response_model_exclude_none=True,
    dependencies=[Depends(require_cron_auth)],
)
async def run_airtable_sync(
    limit: int | None = Query(default=None, ge=1, le=500),
    dispatcher: OutboxDispatcher = Depends(get_outbox_dispatcher),
):
    """
    Procesa un lote de items pendientes del outbox.

    Las fallas por item se reportan en `errors`; nunca abortan el lote.
    """
    return await dispatcher.dispatch_pending(limit)
