"""
Chequeo de configuracion y conectividad con Airtable.
"""
import asyncio
from typing import Any, Optional

from fastapi import APIRouter, Depends
from loguru import logger

from mentor_sync.api.v1.dependencies.sync_deps import get_airtable_client, get_settings
from mentor_sync.application.dto.sync_dto import AirtableHealthDTO
from mentor_sync.infrastructure.external.airtable.airtable_client import (
    AirtableClient,
    build_from_settings,
)
from mentor_sync.shared.exceptions.external import AirtableApiError, AirtableConfigError


router = APIRouter(prefix="/health", tags=["Health"])

# Record inexistente: un 404 prueba que token y base son validos
PROBE_RECORD_ID = "recHealthCheck0000"


def _missing_config(app_settings: Any) -> list[str]:
    required = {
        "AIRTABLE_PERSONAL_ACCESS_TOKEN": app_settings.airtable_token,
        "AIRTABLE_BASE_ID": app_settings.AIRTABLE_BASE_ID,
        "AIRTABLE_MENTORS_TABLE_ID": app_settings.AIRTABLE_MENTORS_TABLE_ID,
        "AIRTABLE_WEBHOOK_SECRET": app_settings.AIRTABLE_WEBHOOK_SECRET,
    }
    return [name for name, value in required.items() if not value]


@router.get("/airtable", response_model=AirtableHealthDTO, response_model_exclude_none=True)
async def airtable_health(
    app_settings: Any = Depends(get_settings),
    client: Optional[AirtableClient] = Depends(get_airtable_client),
):
    """Reporta configuracion faltante y prueba la conexion con un lookup."""
    missing = _missing_config(app_settings)
    if missing:
        return AirtableHealthDTO(
            status="not_configured",
            message="Faltan variables de configuracion de Airtable",
            missing=missing,
        )

    try:
        client = client or build_from_settings(app_settings)
        await asyncio.to_thread(
            client.get_record, app_settings.AIRTABLE_MENTORS_TABLE_ID, PROBE_RECORD_ID
        )
    except AirtableConfigError as e:
        return AirtableHealthDTO(status="not_configured", message=e.message)
    except AirtableApiError as e:
        if e.http_status in (401, 403):
            logger.error(f"Airtable rechazo las credenciales: {e.message}")
            return AirtableHealthDTO(
                status="auth_error",
                message="Token de Airtable invalido o sin permisos sobre la base",
                error=e.message,
            )
        return AirtableHealthDTO(
            status="error",
            message="No se pudo conectar con Airtable",
            error=e.message,
        )

    return AirtableHealthDTO(
        status="ok",
        message="Conexion con Airtable operativa",
        config={
            "base_id": app_settings.AIRTABLE_BASE_ID,
            "mentors_table_id": app_settings.AIRTABLE_MENTORS_TABLE_ID,
        },
    )
