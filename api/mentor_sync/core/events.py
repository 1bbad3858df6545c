"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from mentor_sync.core.config import settings
from mentor_sync.infrastructure.database.session import init_db, close_db


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            _validate_config()

            # Crea tablas si no existen
            await init_db()
            logger.info("Base de datos inicializada")

            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicacion iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Advierte sobre configuracion del sync ausente (no aborta el arranque)."""
    warnings = []

    if not settings.airtable_token:
        warnings.append("AIRTABLE_PERSONAL_ACCESS_TOKEN no configurado - el sync saliente fallara")
    if not settings.AIRTABLE_BASE_ID:
        warnings.append("AIRTABLE_BASE_ID no configurado")
    if not settings.AIRTABLE_MENTORS_TABLE_ID:
        warnings.append("AIRTABLE_MENTORS_TABLE_ID no configurado")
    if not settings.AIRTABLE_WEBHOOK_SECRET:
        warnings.append("AIRTABLE_WEBHOOK_SECRET no configurado - todo webhook sera rechazado")
    if not settings.CRON_SECRET:
        if settings.is_development:
            warnings.append("CRON_SECRET no configurado - trigger sin auth (solo development)")
        else:
            warnings.append("CRON_SECRET no configurado - el trigger periodico rechazara toda llamada")

    if settings.is_production and settings.DEBUG:
        warnings.append("DEBUG activo en produccion")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown
