from datetime import datetime, timezone
from typing import Any, cast

import pytest
from fastapi import HTTPException
from slotbook.domain.errors import DeviceNotFoundError, EventNotFoundError
from slotbook.models import Device, Event
from slotbook.routers import events as router
from slotbook.schemas import EventCreate, EventEnabledUpdate
from sqlalchemy.ext.asyncio import AsyncSession


class DummySession:
    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


def _event(enabled: bool = True) -> Event:
    event = Event(
        id=7,
        title="Expo",
        description="",
        event_dates=["2026-02-03"],
        slot_duration=30,
        available_slots=["09:00", "09:30"],
        enabled=enabled,
        created_at=datetime.now(timezone.utc).replace(tzinfo=None),
    )
    event.devices = [Device(id=1, name="Scanner")]
    return event


def _patch_repos(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(router, "SqlAlchemyEventRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyDeviceRepository", lambda s: s)  # type: ignore[assignment]
    monkeypatch.setattr(router, "SqlAlchemyBookingRepository", lambda s: s)  # type: ignore[assignment]


@pytest.mark.asyncio
async def test_slot_preview_reports_empty_grid() -> None:
    preview = await router.preview_slots(start_time="17:00", end_time="09:00", slot_duration=30)
    assert preview.slots == []
    assert preview.warnings


@pytest.mark.asyncio
async def test_create_event_emits_audit(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(*args: object, **kwargs: object) -> Event:
        return _event()

    calls: list[dict[str, Any]] = []
    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.event_usecase, "create_event", fake_create)  # type: ignore[attr-defined]
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    payload = EventCreate(title="Expo", event_dates=["2026-02-03"], device_ids=[1])
    result = await router.create_event(payload=payload, session=cast(AsyncSession, DummySession()))

    assert result.event_id == 7
    assert result.available_slots == ["09:00", "09:30"]
    assert result.device_ids == [1]
    assert calls == [{"action": "event.created", "initiator": "organizer", "event_id": 7}]


@pytest.mark.asyncio
async def test_create_event_with_unknown_device_is_404(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(*args: object, **kwargs: object) -> Event:
        raise DeviceNotFoundError("device 42 not found")

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.event_usecase, "create_event", fake_create)  # type: ignore[attr-defined]

    payload = EventCreate(title="Expo", event_dates=["2026-02-03"], device_ids=[42])
    with pytest.raises(HTTPException) as excinfo:
        await router.create_event(payload=payload, session=cast(AsyncSession, DummySession()))
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_toggle_records_new_state(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_toggle(*args: object, **kwargs: Any) -> Event:
        return _event(enabled=kwargs["enabled"])

    calls: list[dict[str, Any]] = []
    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.event_usecase, "set_event_enabled", fake_toggle)  # type: ignore[attr-defined]
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    result = await router.set_event_enabled(
        payload=EventEnabledUpdate(enabled=False),
        event_id=7,
        session=cast(AsyncSession, DummySession()),
    )

    assert result.enabled is False
    assert calls[0]["action"] == "event.toggled"
    assert calls[0]["extra"] == {"enabled": False}


@pytest.mark.asyncio
async def test_delete_unknown_event_is_404(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_delete(*args: object, **kwargs: object) -> int:
        raise EventNotFoundError("event 7 not found")

    _patch_repos(monkeypatch)
    monkeypatch.setattr(router.event_usecase, "delete_event", fake_delete)  # type: ignore[attr-defined]

    with pytest.raises(HTTPException) as excinfo:
        await router.delete_event(event_id=7, session=cast(AsyncSession, DummySession()))
    assert excinfo.value.status_code == 404
