"""
Tests for participant registration: preconditions, ticket issuing,
counter bookkeeping and the confirmation email job.
"""

import re

import pytest
from httpx import AsyncClient
from prometheus_client import REGISTRY
from sqlalchemy import func, select

from eventreg.models.participant import Participant
from conftest import make_event

TICKET_RE = re.compile(r"^TKT-[0-9A-F]{8}$")


def _registration_count(result: str) -> float:
    return REGISTRY.get_sample_value("registration_attempts_total", {"result": result}) or 0.0


def _signup(email: str = "grace@example.com", **extra) -> dict:
    return {"firstName": "Grace", "lastName": "Hopper", "email": email, **extra}


@pytest.mark.asyncio
async def test_register_participant(client: AsyncClient, db_session, test_event, email_jobs):
    """Successful registration returns 201, a ticket and bumps the counter."""
    response = await client.post(
        f"/api/v1/events/{test_event.id}/participants",
        json=_signup(organization="Navy"),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Registration successful"
    participant = data["participant"]
    assert participant["eventId"] == test_event.id
    assert participant["firstName"] == "Grace"
    assert participant["organization"] == "Navy"
    assert participant["status"] == "confirmed"
    assert participant["checkedIn"] is False
    assert participant["checkInMethod"] == "manual"
    assert TICKET_RE.match(participant["ticketNumber"])

    await db_session.refresh(test_event)
    assert test_event.total_registrations == 1


@pytest.mark.asyncio
async def test_register_enqueues_one_confirmation(client: AsyncClient, test_event, email_jobs):
    response = await client.post(f"/api/v1/events/{test_event.id}/participants", json=_signup())
    assert response.status_code == 201
    ticket = response.json()["participant"]["ticketNumber"]

    assert len(email_jobs) == 1
    job = email_jobs[0]
    assert job["to"] == "grace@example.com"
    assert test_event.name in job["subject"]
    assert ticket in job["html"]
    assert "Grace Hopper" in job["html"]
    assert "Main Hall" in job["html"]


@pytest.mark.asyncio
async def test_register_requires_approval_starts_registered(
    client: AsyncClient, approval_event, email_jobs
):
    response = await client.post(f"/api/v1/events/{approval_event.id}/participants", json=_signup())
    assert response.status_code == 201
    assert response.json()["participant"]["status"] == "registered"


@pytest.mark.asyncio
async def test_register_nonexistent_event(client: AsyncClient, email_jobs):
    response = await client.post("/api/v1/events/99999/participants", json=_signup())
    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"
    assert email_jobs == []


@pytest.mark.asyncio
async def test_register_unpublished_event(client: AsyncClient, db_session, draft_event, email_jobs):
    response = await client.post(f"/api/v1/events/{draft_event.id}/participants", json=_signup())
    assert response.status_code == 400
    assert response.json()["detail"] == "Event is not open for registration"

    await db_session.refresh(draft_event)
    assert draft_event.total_registrations == 0


@pytest.mark.asyncio
async def test_register_full_event(client: AsyncClient, db_session, email_jobs):
    """At capacity the attempt fails and the counter is unchanged."""
    event = await make_event(db_session, capacity=5, total_registrations=5)

    response = await client.post(f"/api/v1/events/{event.id}/participants", json=_signup())
    assert response.status_code == 400
    assert response.json()["detail"] == "Event is at full capacity"

    await db_session.refresh(event)
    assert event.total_registrations == 5
    assert email_jobs == []


@pytest.mark.asyncio
async def test_register_unlimited_capacity(client: AsyncClient, db_session, email_jobs):
    event = await make_event(db_session, capacity=None, total_registrations=10_000)

    response = await client.post(f"/api/v1/events/{event.id}/participants", json=_signup())
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, db_session, test_event, email_jobs):
    """Same email on the same event is rejected; only one row exists."""
    first = await client.post(f"/api/v1/events/{test_event.id}/participants", json=_signup())
    assert first.status_code == 201

    second = await client.post(
        f"/api/v1/events/{test_event.id}/participants",
        json=_signup(email="grace@example.com") | {"firstName": "Other"},
    )
    assert second.status_code == 400
    assert second.json()["detail"] == "Already registered for this event"

    count = await db_session.scalar(
        select(func.count()).select_from(Participant).where(
            Participant.event_id == test_event.id,
            Participant.email == "grace@example.com",
        )
    )
    assert count == 1
    await db_session.refresh(test_event)
    assert test_event.total_registrations == 1
    assert len(email_jobs) == 1


@pytest.mark.asyncio
async def test_same_email_on_different_events(client: AsyncClient, db_session, test_event, email_jobs):
    other = await make_event(db_session, name="Another Event")

    r1 = await client.post(f"/api/v1/events/{test_event.id}/participants", json=_signup())
    r2 = await client.post(f"/api/v1/events/{other.id}/participants", json=_signup())
    assert r1.status_code == 201
    assert r2.status_code == 201
    assert r1.json()["participant"]["ticketNumber"] != r2.json()["participant"]["ticketNumber"]


@pytest.mark.asyncio
async def test_register_invalid_body(client: AsyncClient, test_event, email_jobs):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/participants",
        json={"firstName": "Grace", "email": "not-an-email"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_capacity_scenario(client: AsyncClient, db_session, email_jobs):
    """Capacity 1: first sign-up confirmed, second rejected as full."""
    event = await make_event(db_session, capacity=1)

    a = await client.post(f"/api/v1/events/{event.id}/participants", json=_signup("a@x.com"))
    assert a.status_code == 201
    assert a.json()["participant"]["status"] == "confirmed"
    await db_session.refresh(event)
    assert event.total_registrations == 1

    b = await client.post(f"/api/v1/events/{event.id}/participants", json=_signup("b@x.com"))
    assert b.status_code == 400
    assert b.json()["detail"] == "Event is at full capacity"


@pytest.mark.asyncio
async def test_duplicate_checked_after_capacity(client: AsyncClient, db_session, email_jobs):
    """With room left, a repeated email gets the duplicate error instead."""
    event = await make_event(db_session, capacity=2)

    await client.post(f"/api/v1/events/{event.id}/participants", json=_signup("a@x.com"))
    again = await client.post(f"/api/v1/events/{event.id}/participants", json=_signup("a@x.com"))
    assert again.status_code == 400
    assert again.json()["detail"] == "Already registered for this event"


@pytest.mark.asyncio
async def test_register_unexpected_error_is_500(client: AsyncClient, test_event, monkeypatch):
    """Unexpected failures are a 500 and counted under result="error"."""
    errors_before = _registration_count("error")

    async def broken_add_email_job(job):
        raise RuntimeError("boom")

    monkeypatch.setattr(
        "eventreg.services.participant_service.add_email_job", broken_add_email_job
    )
    response = await client.post(f"/api/v1/events/{test_event.id}/participants", json=_signup())
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to register participant"
    assert _registration_count("error") == errors_before + 1
