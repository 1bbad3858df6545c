"""
Implementación del repositorio de mentores (lado sync).
Maneja las lecturas de perfil y las escrituras versionadas sobre MentorModel.
"""
from typing import Optional
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from loguru import logger

from mentor_sync.domain.entities.mentor_profile import ProfilePatch
from mentor_sync.infrastructure.database.models import ExpertiseModel, MentorModel
from mentor_sync.shared.constants.sync_constants import MutationOrigin
from mentor_sync.shared.utils.datetime_utils import utc_now


class MentorRepository:
    """Repositorio para leer y mutar mentores en la base de datos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, mentor_id: str) -> Optional[MentorModel]:
        """
        Obtiene un mentor con su expertise cargado.
        Siempre refresca desde la base (populate_existing): las escrituras
        de este repositorio van por UPDATE directo.
        """
        result = await self.db.execute(
            select(MentorModel)
            .where(MentorModel.id == mentor_id)
            .options(selectinload(MentorModel.expertise))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_airtable_record_id(self, record_id: str) -> Optional[MentorModel]:
        """Obtiene un mentor por el ID de su record en Airtable."""
        result = await self.db.execute(
            select(MentorModel)
            .where(MentorModel.airtable_record_id == record_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def apply_patch(
        self,
        mentor_id: str,
        patch: ProfilePatch,
        *,
        origin: MutationOrigin,
    ) -> Optional[int]:
        """
        Aplica un parche y suma 1 a sync_version en el mismo UPDATE.

        El incremento se hace en SQL (sync_version = sync_version + 1) para
        no perder versiones con escritores concurrentes.
        Retorna la nueva version, o None si el mentor no existe.
        No hace commit: el caller define la transaccion.
        """
        values = patch.column_values()
        values["sync_version"] = MentorModel.sync_version + 1
        values["updated_at"] = utc_now()

        result = await self.db.execute(
            update(MentorModel)
            .where(MentorModel.id == mentor_id)
            .values(**values)
            .returning(MentorModel.sync_version)
            .execution_options(synchronize_session=False)
        )
        new_version = result.scalar_one_or_none()
        if new_version is None:
            return None

        if patch.expertise is not None:
            await self.db.execute(
                delete(ExpertiseModel).where(ExpertiseModel.mentor_id == mentor_id)
            )
            self.db.add_all([
                ExpertiseModel(
                    mentor_id=mentor_id,
                    area=tag.area,
                    subarea=tag.subarea,
                    position=position,
                )
                for position, tag in enumerate(patch.expertise)
            ])

        await self.db.flush()
        logger.debug(
            f"Mentor {mentor_id} actualizado (origen={origin.value}, "
            f"campos={sorted(patch.as_dict())}, version={new_version})"
        )
        return new_version

    async def set_airtable_record_id_if_missing(self, mentor_id: str, record_id: str) -> bool:
        """
        Asigna airtable_record_id solo si aun no tiene uno.
        No toca sync_version (es metadata del sync, no una mutacion de perfil).
        """
        result = await self.db.execute(
            update(MentorModel)
            .where(MentorModel.id == mentor_id, MentorModel.airtable_record_id.is_(None))
            .values(airtable_record_id=record_id)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0
