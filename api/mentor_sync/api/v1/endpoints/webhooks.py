"""
Receptor de webhooks de Airtable.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from mentor_sync.api.v1.dependencies.sync_deps import get_webhook_use_cases
from mentor_sync.application.dto.sync_dto import WebhookResponseDTO
from mentor_sync.application.use_cases.webhook_use_cases import AirtableWebhookUseCases
from mentor_sync.shared.constants.sync_constants import WEBHOOK_SIGNATURE_HEADER


router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/airtable",
    response_model=WebhookResponseDTO,
    response_model_exclude_none=True,
)
async def receive_airtable_webhook(
    request: Request,
    signature: Optional[str] = Header(default=None, alias=WEBHOOK_SIGNATURE_HEADER),
    use_cases: AirtableWebhookUseCases = Depends(get_webhook_use_cases),
):
    """
    Aplica cambios de la tabla de mentores hechos en Airtable.

    La firma se verifica sobre el body crudo antes de parsearlo.
    """
    body = await request.body()
    return await use_cases.handle(body, signature)
