"""
Tests del mapeo de campos perfil <-> Airtable.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mentor_sync.application.interfaces.mentor_metrics import MentorMetrics
from mentor_sync.domain.entities.mentor_profile import ExpertiseTag, MentorProfile, ProfilePatch
from mentor_sync.infrastructure.external.airtable.field_mapper import (
    inbound_map,
    outbound_map,
    parse_expertise,
    split_industries,
)
from mentor_sync.infrastructure.external.airtable.field_mappings import INBOUND_ALLOWED_FIELDS


SYNCED_AT = datetime(2026, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


def _profile(**overrides) -> MentorProfile:
    values = dict(
        id="m-1",
        name="Ana Perez",
        email="ana@example.com",
        headline="Growth advisor",
        bio="Bio",
        company="Acme",
        title="VP Growth",
        industry="SaaS, Fintech",
        stage="Seed",
        timezone="America/Santiago",
        expertise=(ExpertiseTag("Growth", "SEO"), ExpertiseTag("Fundraising")),
        active=True,
    )
    values.update(overrides)
    return MentorProfile(**values)


def test_outbound_map_full_profile() -> None:
    fields = outbound_map(_profile(), synced_at=SYNCED_AT)

    assert fields["Name"] == "Ana Perez"
    assert fields["Email"] == "ana@example.com"
    assert fields["Headline"] == "Growth advisor"
    assert fields["Is Active"] is True
    assert fields["Select"] == "America/Santiago"
    assert fields["Expertise"] == ["Growth - SEO", "Fundraising"]
    assert fields["Industries"] == ["SaaS", "Fintech"]
    assert fields["Stage Focus"] == ["Seed"]
    assert fields["Last Synced"] == "2026-03-01T12:30:00.000Z"


def test_outbound_map_omits_none_and_empty_collections() -> None:
    profile = _profile(headline=None, bio=None, industry=" , ", stage=None, expertise=())
    fields = outbound_map(profile, synced_at=SYNCED_AT)

    assert "Headline" not in fields
    assert "Bio" not in fields
    assert "Expertise" not in fields
    assert "Industries" not in fields
    assert "Stage Focus" not in fields
    assert "Last Synced" in fields


def test_outbound_map_merges_metrics_when_available() -> None:
    fields = outbound_map(
        _profile(), MentorMetrics(utilization=0.75, avg_feedback=None), synced_at=SYNCED_AT
    )
    assert fields["Utilization"] == 0.75
    assert "Avg Feedback" not in fields


def test_inbound_map_translates_allowed_fields_and_ignores_unknown() -> None:
    patch = inbound_map({
        "Headline": "Nuevo headline",
        "Is Active": 0,
        "Expertise": ["Growth - SEO - Local", "Sales"],
        "Industries": ["SaaS", "Fintech"],
        "Stage Focus": ["Series A", "Seed"],
        "Name": "No se escribe",
        "Campo Nuevo": "x",
    })

    assert patch.headline == "Nuevo headline"
    assert patch.active is False
    assert patch.expertise == (ExpertiseTag("Growth", "SEO - Local"), ExpertiseTag("Sales"))
    assert patch.industry == "SaaS,Fintech"
    assert patch.stage == "Series A"
    assert "name" not in patch.as_dict()


def test_inbound_map_empty_payload_is_empty_patch() -> None:
    assert inbound_map({"Name": "x", "Otro": 1}).is_empty()


def test_parse_expertise_tolerates_non_list_values() -> None:
    assert parse_expertise("Growth - SEO") == (ExpertiseTag("Growth", "SEO"),)
    assert parse_expertise(None) == ()
    assert parse_expertise(42) == ()


def test_split_industries_strips_and_drops_empty() -> None:
    assert split_industries(" SaaS ,, Fintech ,") == ["SaaS", "Fintech"]
    assert split_industries(None) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"expertise": ()},
        {"expertise": (ExpertiseTag("M&A - Legal", "Due Diligence"),)},
        {"expertise": (ExpertiseTag("Fundraising"), ExpertiseTag("Sales"))},
        {"bio": "", "headline": "", "company": "", "industry": ""},
        {"active": False, "stage": None, "timezone": None},
    ],
    ids=["completo", "sin-expertise", "area-con-separador", "solo-areas", "strings-vacios", "inactivo"],
)
def test_outbound_inbound_outbound_is_stable_on_allowed_fields(overrides) -> None:
    profile = _profile(**overrides)
    first = outbound_map(profile, synced_at=SYNCED_AT)

    patch = inbound_map(first)
    second = outbound_map(profile.apply(patch), synced_at=SYNCED_AT)

    for field_name in INBOUND_ALLOWED_FIELDS:
        assert first.get(field_name) == second.get(field_name), field_name


def test_profile_patch_column_values_excludes_expertise() -> None:
    patch = ProfilePatch(bio="x", expertise=(ExpertiseTag("A"),))
    assert patch.column_values() == {"bio": "x"}
    assert set(patch.as_dict()) == {"bio", "expertise"}
