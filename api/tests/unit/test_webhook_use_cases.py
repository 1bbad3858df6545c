"""
Tests del receptor de webhooks de Airtable.
"""
from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from mentor_sync.application.use_cases.webhook_use_cases import AirtableWebhookUseCases
from mentor_sync.infrastructure.database.models import MentorModel
from mentor_sync.infrastructure.repositories.mentor_repository import MentorRepository
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.infrastructure.repositories.sync_metadata_repository import SyncMetadataRepository
from mentor_sync.infrastructure.security.webhook_signature import compute_webhook_signature
from mentor_sync.shared.exceptions.auth import InvalidSignatureException
from mentor_sync.shared.exceptions.domain import DomainException


def _body(records: dict, table_id: str = "tblMentors") -> bytes:
    payload = {
        "base": {"id": "appTestBase"},
        "webhook": {"id": "achHook"},
        "timestamp": "2026-03-01T12:00:00.000Z",
        "event": {
            "payload": {
                "changedTablesById": {
                    table_id: {
                        "changedRecordsById": {
                            record_id: {"current": {"id": record_id, "fields": fields}}
                            for record_id, fields in records.items()
                        }
                    }
                }
            }
        },
    }
    return json.dumps(payload).encode("utf-8")


@pytest.fixture
def use_cases(db_session, sync_settings) -> AirtableWebhookUseCases:
    return AirtableWebhookUseCases(db_session, settings=sync_settings)


def _sign(body: bytes) -> str:
    return compute_webhook_signature(body, "webhook-secret")


@pytest.mark.asyncio
async def test_invalid_signature_raises_and_writes_nothing(
    db_session, use_cases, create_mentor
) -> None:
    mentor = await create_mentor(airtable_record_id="rec1", sync_version=2)
    mentor_id = mentor.id
    body = _body({"rec1": {"Bio": "hackeado"}})

    with pytest.raises(InvalidSignatureException):
        await use_cases.handle(body, "firma-falsa")
    with pytest.raises(InvalidSignatureException):
        await use_cases.handle(body, None)

    refreshed = await MentorRepository(db_session).get_by_id(mentor_id)
    assert refreshed.bio != "hackeado"
    assert refreshed.sync_version == 2


@pytest.mark.asyncio
async def test_known_record_is_updated_with_version_bump(
    db_session, use_cases, create_mentor
) -> None:
    mentor = await create_mentor(airtable_record_id="rec1", sync_version=2)
    mentor_id = mentor.id
    body = _body({"rec1": {"Bio": "Desde Airtable", "Stage Focus": ["Series A"], "Name": "Otro"}})

    response = await use_cases.handle(body, _sign(body))

    assert response.processed == 1
    assert response.results[0].record_id == "rec1"
    assert response.results[0].status == "updated"

    refreshed = await MentorRepository(db_session).get_by_id(mentor_id)
    assert refreshed.bio == "Desde Airtable"
    assert refreshed.stage == "Series A"
    assert refreshed.name == "Ana Perez"
    assert refreshed.sync_version == 3

    meta = await SyncMetadataRepository(db_session).get("mentor", mentor_id)
    assert (meta.airtable_record_id, meta.sync_version) == ("rec1", 3)
    # Sin eco: el cambio entrante no vuelve a encolarse hacia Airtable
    assert (await OutboxRepository(db_session).count_by_status())["pending"] == 0


@pytest.mark.asyncio
async def test_unknown_record_is_skipped_and_never_created(db_session, use_cases) -> None:
    body = _body({"recNUEVO": {"Bio": "x"}})

    response = await use_cases.handle(body, _sign(body))

    assert response.results[0].status == "skipped"
    total = (await db_session.execute(select(func.count(MentorModel.id)))).scalar_one()
    assert total == 0


@pytest.mark.asyncio
async def test_record_resolved_through_metadata(db_session, use_cases, create_mentor) -> None:
    mentor = await create_mentor(airtable_record_id=None)
    mentor_id = mentor.id
    await SyncMetadataRepository(db_session).upsert("mentor", mentor_id, "recMETA", 1)
    await db_session.commit()
    body = _body({"recMETA": {"Company": "Globex"}})

    response = await use_cases.handle(body, _sign(body))

    assert response.results[0].status == "updated"
    refreshed = await MentorRepository(db_session).get_by_id(mentor_id)
    assert refreshed.company == "Globex"
    assert refreshed.airtable_record_id == "recMETA"


@pytest.mark.asyncio
async def test_other_tables_are_ignored(use_cases) -> None:
    body = _body({"rec1": {"Bio": "x"}}, table_id="tblOtra")

    response = await use_cases.handle(body, _sign(body))

    assert response.success is True
    assert response.processed == 0
    assert response.results == []


@pytest.mark.asyncio
async def test_records_are_isolated(db_session, use_cases, create_mentor) -> None:
    await create_mentor(airtable_record_id="rec1", email="a@example.com")
    body = _body({"recX": {"Bio": "x"}, "rec1": {"Title": "CEO"}})

    response = await use_cases.handle(body, _sign(body))

    statuses = {r.record_id: r.status for r in response.results}
    assert statuses == {"recX": "skipped", "rec1": "updated"}
    assert response.results[0].reason == "mentor_not_found"
    assert response.results[1].reason is None


@pytest.mark.asyncio
async def test_malformed_body_with_valid_signature(use_cases) -> None:
    body = b"no es json"

    with pytest.raises(DomainException):
        await use_cases.handle(body, _sign(body))


@pytest.mark.asyncio
async def test_metadata_of_deleted_mentor_is_skipped(db_session, use_cases) -> None:
    await SyncMetadataRepository(db_session).upsert("mentor", "mentor-borrado", "recGONE", 4)
    await db_session.commit()
    body = _body({"recGONE": {"Bio": "resucitar"}})

    response = await use_cases.handle(body, _sign(body))

    result = response.results[0]
    assert (result.status, result.reason, result.error) == ("skipped", "mentor_not_found", None)
    total = (await db_session.execute(select(func.count(MentorModel.id)))).scalar_one()
    assert total == 0


@pytest.mark.asyncio
async def test_record_without_syncable_fields_reports_reason(use_cases, create_mentor) -> None:
    await create_mentor(airtable_record_id="rec1")
    body = _body({"rec1": {"Name": "Solo campos no sincronizables"}})

    response = await use_cases.handle(body, _sign(body))

    result = response.results[0]
    assert (result.status, result.reason) == ("skipped", "no_syncable_fields")


@pytest.mark.asyncio
async def test_failed_record_is_rolled_back_and_siblings_updated(
    db_session, use_cases, create_mentor
) -> None:
    first = await create_mentor(airtable_record_id="rec1", email="a@example.com", sync_version=1)
    broken = await create_mentor(airtable_record_id="rec2", email="b@example.com", sync_version=1)
    last = await create_mentor(airtable_record_id="rec3", email="c@example.com", sync_version=1)
    first_id, broken_id, last_id = first.id, broken.id, last.id

    apply_change = use_cases.writer.apply_change

    async def _fail_after_write(mentor_id, patch, origin, **kwargs):
        result = await apply_change(mentor_id, patch, origin, **kwargs)
        if mentor_id == broken_id:
            raise RuntimeError("disco lleno")
        return result

    use_cases.writer.apply_change = AsyncMock(side_effect=_fail_after_write)
    body = _body({
        "rec1": {"Title": "CEO"},
        "rec2": {"Title": "CTO"},
        "rec3": {"Title": "CFO"},
    })

    response = await use_cases.handle(body, _sign(body))

    statuses = {r.record_id: (r.status, r.error) for r in response.results}
    assert statuses == {
        "rec1": ("updated", None),
        "rec2": ("error", "disco lleno"),
        "rec3": ("updated", None),
    }
    mentors = MentorRepository(db_session)
    assert (await mentors.get_by_id(first_id)).title == "CEO"
    assert (await mentors.get_by_id(last_id)).title == "CFO"
    untouched = await mentors.get_by_id(broken_id)
    assert (untouched.title, untouched.sync_version) == ("VP Growth", 1)
    metadata = SyncMetadataRepository(db_session)
    assert await metadata.get("mentor", broken_id) is None
    assert (await metadata.get("mentor", last_id)).sync_version == 2
