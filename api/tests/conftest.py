"""
Configuracion de fixtures para pytest.
"""
import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from mentor_sync.infrastructure.database.session import Base
from mentor_sync.infrastructure.database import models  # noqa: F401


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Base en memoria por test. StaticPool comparte la unica conexion, asi
    varias sesiones ven los mismos datos.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesion de base de datos para tests."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Fixtures del sync
# ---------------------------------------------------------------------------

from mentor_sync.core.config import Settings  # noqa: E402
from mentor_sync.infrastructure.database.models import ExpertiseModel, MentorModel  # noqa: E402
from mentor_sync.infrastructure.external.airtable.rate_limiter import reset_shared_rate_limiter  # noqa: E402
from mentor_sync.shared.exceptions.external import AirtableApiError  # noqa: E402


class FakeAirtableClient:
    """
    Doble en memoria de AirtableClient: PATCH mezcla fields, POST crea.
    `fail_with` hace que el proximo upsert/delete lance ese error.
    """

    def __init__(self) -> None:
        self.records: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None
        self._next_id = 1

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def get_record(self, table_id, record_id):
        self.calls.append(("get", table_id, record_id))
        self._maybe_fail()
        fields = self.records.get(record_id)
        return {"id": record_id, "fields": dict(fields)} if fields is not None else None

    def upsert_record(self, table_id, record_id, fields):
        self.calls.append(("upsert", table_id, record_id, dict(fields)))
        self._maybe_fail()
        if record_id:
            if record_id not in self.records:
                raise AirtableApiError("Record no encontrado", http_status=404)
            self.records[record_id].update(fields)
            return record_id
        new_id = f"rec{self._next_id:014d}"
        self._next_id += 1
        self.records[new_id] = dict(fields)
        return new_id

    def delete_record(self, table_id, record_id):
        self.calls.append(("delete", table_id, record_id))
        self._maybe_fail()
        return self.records.pop(record_id, None) is not None


@pytest.fixture
def sync_settings() -> Settings:
    """Settings completos para el sync, sin leer .env."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="production",
        AIRTABLE_PERSONAL_ACCESS_TOKEN="patTestToken",
        AIRTABLE_BASE_ID="appTestBase",
        AIRTABLE_MENTORS_TABLE_ID="tblMentors",
        AIRTABLE_WEBHOOK_SECRET="webhook-secret",
        CRON_SECRET="cron-secret",
        AIRTABLE_SYNC_BATCH_SIZE=50,
    )


@pytest.fixture
def fake_airtable() -> FakeAirtableClient:
    return FakeAirtableClient()


@pytest.fixture
def create_mentor(db_session):
    """Factory de mentores persistidos (con commit)."""

    async def _create(**overrides) -> MentorModel:
        expertise = overrides.pop("expertise", [("Growth", "SEO")])
        values = {
            "name": "Ana Perez",
            "email": "ana@example.com",
            "headline": "Growth advisor",
            "bio": "10 anios en startups",
            "company": "Acme",
            "title": "VP Growth",
            "industry": "SaaS, Fintech",
            "stage": "Seed",
            "timezone": "America/Santiago",
            "active": True,
            "sync_version": 1,
        }
        values.update(overrides)
        mentor = MentorModel(**values)
        mentor.expertise = [
            ExpertiseModel(area=area, subarea=subarea, position=i)
            for i, (area, subarea) in enumerate(expertise)
        ]
        db_session.add(mentor)
        await db_session.commit()
        return mentor

    return _create


@pytest.fixture(autouse=True)
def _fresh_shared_rate_limiter():
    """Cada test arranca con el gate compartido del proceso vacio."""
    reset_shared_rate_limiter()
    yield
    reset_shared_rate_limiter()


@pytest.fixture
def age_outbox_item(db_session):
    """Atrasa updated_at de un item, como si su run hubiera muerto hace rato."""
    from datetime import timedelta

    from sqlalchemy import update

    from mentor_sync.infrastructure.database.models import OutboxModel
    from mentor_sync.shared.utils.datetime_utils import utc_now

    async def _age(item_id: str, minutes: int = 60) -> None:
        await db_session.execute(
            update(OutboxModel)
            .where(OutboxModel.id == item_id)
            .values(updated_at=utc_now() - timedelta(minutes=minutes))
            .execution_options(synchronize_session=False)
        )
        await db_session.commit()

    return _age
