"""
Tests del push inmediato y del camino de escritura etiquetado por origen.
"""
from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest
import requests

from mentor_sync.application.services.mentor_write_service import MentorWriteService
from mentor_sync.application.use_cases.immediate_sync import ImmediateSync
from mentor_sync.domain.entities.mentor_profile import ExpertiseTag, ProfilePatch
from mentor_sync.infrastructure.repositories.mentor_repository import MentorRepository
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.infrastructure.repositories.sync_metadata_repository import SyncMetadataRepository
from mentor_sync.shared.constants.sync_constants import MutationOrigin, OutboxStatus
from mentor_sync.shared.exceptions.domain import EntityNotFoundException
from mentor_sync.shared.exceptions.external import AirtableApiError


@pytest.fixture
def immediate(db_session, fake_airtable, sync_settings) -> ImmediateSync:
    return ImmediateSync(db_session, client=fake_airtable, settings=sync_settings)


@pytest.fixture
def writer(db_session, immediate) -> MentorWriteService:
    return MentorWriteService(db_session, immediate_sync=immediate)


@pytest.mark.asyncio
async def test_local_change_is_pushed_and_item_completed(
    db_session, writer, fake_airtable, create_mentor
) -> None:
    mentor = await create_mentor(sync_version=1)
    mentor_id = mentor.id

    version = await writer.apply_local_change(mentor_id, ProfilePatch(bio="Nueva bio"))

    assert version == 2
    fields = next(iter(fake_airtable.records.values()))
    assert fields["Bio"] == "Nueva bio"
    counts = await OutboxRepository(db_session).count_by_status()
    assert counts["completed"] == 1
    assert counts["pending"] == 0
    meta = await SyncMetadataRepository(db_session).get("mentor", mentor_id)
    assert meta.sync_version == 2


@pytest.mark.asyncio
async def test_failed_push_releases_item_for_dispatcher(
    db_session, writer, fake_airtable, create_mentor
) -> None:
    mentor = await create_mentor()
    mentor_id = mentor.id
    fake_airtable.fail_with = AirtableApiError("timeout")

    version = await writer.apply_local_change(mentor_id, ProfilePatch(title="CTO"))

    # La edicion del usuario queda confirmada aunque el sync falle
    refreshed = await MentorRepository(db_session).get_by_id(mentor_id)
    assert refreshed.title == "CTO"
    assert refreshed.sync_version == version

    items = await OutboxRepository(db_session).list_items()
    assert len(items) == 1
    assert items[0].status is OutboxStatus.PENDING
    assert items[0].attempts == 1
    assert "timeout" in items[0].last_error


@pytest.mark.asyncio
async def test_push_without_item_enqueues_on_failure(
    db_session, immediate, fake_airtable, create_mentor
) -> None:
    mentor = await create_mentor()
    mentor_id = mentor.id
    fake_airtable.fail_with = AirtableApiError("caido", http_status=500)

    ok = await immediate.push_best_effort(mentor_id)

    assert ok is False
    items = await OutboxRepository(db_session).list_items()
    assert [(i.entity_id, i.status) for i in items] == [(mentor_id, OutboxStatus.PENDING)]


@pytest.mark.asyncio
async def test_push_skips_item_already_claimed(db_session, immediate, fake_airtable) -> None:
    outbox = OutboxRepository(db_session)
    item = await outbox.enqueue("mentor", "m-1")
    await outbox.claim_one(item.id)
    await db_session.commit()

    assert await immediate.push_best_effort("m-1", item.id) is False
    assert fake_airtable.calls == []


@pytest.mark.asyncio
async def test_push_never_raises_on_missing_configuration(
    db_session, sync_settings, create_mentor
) -> None:
    mentor = await create_mentor()
    mentor_id = mentor.id
    settings = sync_settings.model_copy(update={"AIRTABLE_MENTORS_TABLE_ID": ""})

    ok = await ImmediateSync(db_session, settings=settings).push_best_effort(mentor_id)

    assert ok is False
    assert (await OutboxRepository(db_session).count_by_status())["pending"] == 1


@pytest.mark.asyncio
async def test_webhook_origin_does_not_enqueue_or_push(
    db_session, writer, fake_airtable, create_mentor
) -> None:
    mentor = await create_mentor(sync_version=4)
    mentor_id = mentor.id

    version, item = await writer.apply_change(
        mentor_id,
        ProfilePatch(expertise=(ExpertiseTag("Sales"),)),
        MutationOrigin.AIRTABLE_WEBHOOK,
        airtable_record_id="recABC",
    )
    await db_session.commit()

    assert version == 5
    assert item is None
    assert fake_airtable.calls == []
    assert (await OutboxRepository(db_session).count_by_status())["pending"] == 0
    meta = await SyncMetadataRepository(db_session).get("mentor", mentor_id)
    assert (meta.airtable_record_id, meta.sync_version) == ("recABC", 5)
    refreshed = await MentorRepository(db_session).get_by_id(mentor_id)
    assert [(e.area, e.subarea) for e in refreshed.expertise] == [("Sales", None)]


@pytest.mark.asyncio
async def test_local_change_rejects_webhook_origin(writer) -> None:
    with pytest.raises(ValueError):
        await writer.apply_local_change("m-1", ProfilePatch(bio="x"), MutationOrigin.AIRTABLE_WEBHOOK)


@pytest.mark.asyncio
async def test_local_change_on_missing_mentor(writer) -> None:
    with pytest.raises(EntityNotFoundException):
        await writer.apply_local_change("no-existe", ProfilePatch(bio="x"))


@pytest.mark.asyncio
async def test_request_delete_captures_record_id(
    db_session, writer, fake_airtable, create_mentor
) -> None:
    mentor = await create_mentor(airtable_record_id="recOLD")

    item = await writer.request_delete(mentor.id)

    assert item.payload == {"airtable_record_id": "recOLD"}


@pytest.mark.asyncio
async def test_consecutive_pushes_share_rate_gate(
    db_session, sync_settings, create_mentor, monkeypatch
) -> None:
    first = await create_mentor(email="a@example.com")
    second = await create_mentor(email="b@example.com")
    first_id, second_id = first.id, second.id
    settings = sync_settings.model_copy(update={"AIRTABLE_MIN_REQUEST_INTERVAL_MS": 100})
    sent_at: list[float] = []

    def _request(self, method, url, **kwargs):
        sent_at.append(time.monotonic())
        resp = MagicMock()
        resp.status_code = 200
        resp.content = b"{}"
        resp.json.return_value = {"id": f"rec{len(sent_at):014d}"}
        return resp

    monkeypatch.setattr(requests.Session, "request", _request)

    # Cada push arma su propio cliente desde Settings
    assert await ImmediateSync(db_session, settings=settings).push_best_effort(first_id)
    assert await ImmediateSync(db_session, settings=settings).push_best_effort(second_id)

    assert len(sent_at) == 2
    assert sent_at[1] - sent_at[0] >= 0.095
