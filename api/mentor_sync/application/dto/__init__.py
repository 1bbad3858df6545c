"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import (
    AirtableHealthDTO,
    AirtableWebhookPayloadDTO,
    DispatchErrorDTO,
    DispatchResultDTO,
    MentorSyncStatusDTO,
    OutboxItemDTO,
    OutboxStatsDTO,
    WebhookRecordResultDTO,
    WebhookResponseDTO,
)
