from typing import Any, AsyncIterator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient
from slotbook.deps import get_notifier, get_session
from slotbook.main import app
from slotbook.routers import bookings
from sqlalchemy.exc import InterfaceError


class DisconnectedSession:
    async def scalar(self, *args: Any, **kwargs: Any) -> Any:
        raise InterfaceError("SELECT events", {}, Exception("connection already closed"))


@pytest.fixture
def client_app() -> Iterator[Any]:
    async def override_session() -> AsyncIterator[DisconnectedSession]:
        yield DisconnectedSession()

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_notifier] = lambda: None
    yield app
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_overlong_phone_is_unprocessable(client_app: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_submit(*args: object, **kwargs: object) -> None:  # pragma: no cover
        raise AssertionError("should not submit")

    monkeypatch.setattr(bookings.booking_usecase, "submit_reservation", fake_submit)  # type: ignore[attr-defined]

    body = {
        "selections": [{"device_id": 1, "date": "2026-02-03", "slot": "09:00"}],
        "name": "Alice",
        "email": "alice@x.com",
        "phone": "1" * 80,
    }
    async with AsyncClient(transport=ASGITransport(app=client_app), base_url="http://test") as client:
        resp = await client.post("/events/1/reservations", json=body)

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_dropped_connection_on_read_is_503(client_app: Any) -> None:
    async with AsyncClient(transport=ASGITransport(app=client_app), base_url="http://test") as client:
        resp = await client.get("/events/1/availability")

    assert resp.status_code == 503
    assert resp.headers.get("X-Request-ID")
