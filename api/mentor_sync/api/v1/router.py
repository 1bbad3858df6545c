"""
Router principal de la API v1.
Agrupa todos los endpoints de la version 1.
"""
from fastapi import APIRouter

from mentor_sync.api.v1.endpoints import cron, health, sync_admin, webhooks


api_router = APIRouter(prefix="/v1")

api_router.include_router(cron.router)
api_router.include_router(webhooks.router)
api_router.include_router(sync_admin.router)
api_router.include_router(health.router)
