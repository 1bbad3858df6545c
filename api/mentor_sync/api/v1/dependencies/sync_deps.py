"""
Dependencias para inyeccion de casos de uso del sync.
"""
from typing import Any, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.application.interfaces.mentor_metrics import (
    MentorMetricsProvider,
    NullMentorMetricsProvider,
)
from mentor_sync.application.use_cases.outbox_dispatcher import OutboxDispatcher
from mentor_sync.application.use_cases.webhook_use_cases import AirtableWebhookUseCases
from mentor_sync.core.config import settings
from mentor_sync.infrastructure.database.session import get_db
from mentor_sync.infrastructure.external.airtable.airtable_client import AirtableClient
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.infrastructure.security.webhook_signature import CronSecretVerifier
from mentor_sync.shared.exceptions.auth import UnauthorizedException


def get_settings() -> Any:
    """Settings de la aplicacion (sobreescribible en tests)."""
    return settings


def get_airtable_client() -> Optional[AirtableClient]:
    """
    Cliente de Airtable inyectado.

    None significa "construir desde Settings" dentro del caso de uso, asi
    un error de configuracion se reporta donde corresponde.
    """
    return None


def get_metrics_provider() -> MentorMetricsProvider:
    """Proveedor de metricas del modulo de analytics."""
    return NullMentorMetricsProvider()


async def require_cron_auth(
    authorization: Optional[str] = Header(default=None),
    app_settings: Any = Depends(get_settings),
) -> None:
    """
    Valida el bearer del trigger periodico (y de los endpoints operativos).

    Raises:
        UnauthorizedException: bearer ausente o invalido
    """
    verifier = CronSecretVerifier(
        app_settings.CRON_SECRET,
        allow_unauthenticated=app_settings.is_development,
    )
    if not verifier.verify(authorization):
        raise UnauthorizedException()


def get_outbox_dispatcher(
    db: AsyncSession = Depends(get_db),
    client: Optional[AirtableClient] = Depends(get_airtable_client),
    metrics_provider: MentorMetricsProvider = Depends(get_metrics_provider),
    app_settings: Any = Depends(get_settings),
) -> OutboxDispatcher:
    return OutboxDispatcher(
        db,
        client=client,
        metrics_provider=metrics_provider,
        settings=app_settings,
    )


def get_webhook_use_cases(
    db: AsyncSession = Depends(get_db),
    app_settings: Any = Depends(get_settings),
) -> AirtableWebhookUseCases:
    return AirtableWebhookUseCases(db, settings=app_settings)


def get_outbox_repository(db: AsyncSession = Depends(get_db)) -> OutboxRepository:
    return OutboxRepository(db)
