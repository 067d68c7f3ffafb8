import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Sequence

import pytest
from slotbook.domain.errors import SlotAlreadyBookedError
from slotbook.models import Booking, Device, Event


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InMemoryStore:
    """
    Stand-in for the booking store.

    Every query yields to the event loop once so concurrent submissions
    interleave. ``create`` enforces the (event, device, date, slot) key the way
    the database unique constraint does, and ``begin`` rolls back bookings
    written inside a failed transaction. With ``serialize=True`` transactions
    run one at a time, like the per-event row lock.
    """

    def __init__(self, *, serialize: bool = False) -> None:
        self.events: dict[int, Event] = {}
        self.devices: dict[int, Device] = {}
        self.bookings: dict[int, Booking] = {}
        self.queries: list[str] = []
        self.fail_create_after: Optional[int] = None
        self._next_id = 1
        self._lock = asyncio.Lock() if serialize else None
        self._written: dict[object, list[int]] = {}

    def next_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def add_device(self, name: str) -> Device:
        device = Device(id=self.next_id(), name=name, created_at=_utc_now_naive())
        self.devices[device.id] = device
        return device

    def add_event(
        self,
        *,
        event_dates: Sequence[str],
        available_slots: Sequence[str],
        devices: Sequence[Device],
        enabled: bool = True,
        title: str = "Open house",
    ) -> Event:
        event = Event(
            id=self.next_id(),
            title=title,
            description="",
            event_dates=list(event_dates),
            slot_duration=30,
            available_slots=list(available_slots),
            enabled=enabled,
            created_at=_utc_now_naive(),
        )
        event.devices = list(devices)
        self.events[event.id] = event
        return event

    @asynccontextmanager
    async def begin(self) -> AsyncIterator["InMemoryStore"]:
        if self._lock is not None:
            await self._lock.acquire()
        task = asyncio.current_task()
        written = self._written.setdefault(task, [])
        try:
            yield self
        except BaseException:
            for booking_id in written:
                self.bookings.pop(booking_id, None)
            raise
        finally:
            self._written.pop(task, None)
            if self._lock is not None:
                self._lock.release()

    def record_write(self, booking_id: int) -> None:
        written = self._written.get(asyncio.current_task())
        if written is not None:
            written.append(booking_id)

    async def _touch(self, query: str) -> None:
        self.queries.append(query)
        await asyncio.sleep(0)


class FakeEventRepo:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get(self, event_id: int) -> Event | None:
        await self.store._touch("event.get")
        return self.store.events.get(event_id)

    async def get_for_update(self, event_id: int) -> Event | None:
        await self.store._touch("event.get_for_update")
        return self.store.events.get(event_id)

    async def list_all(self) -> list[Event]:
        return list(self.store.events.values())

    async def create(self, *, devices: Sequence[Device], **fields: object) -> Event:
        event = Event(id=self.store.next_id(), created_at=_utc_now_naive(), **fields)
        event.devices = list(devices)
        self.store.events[event.id] = event
        return event

    async def set_enabled(self, event: Event, enabled: bool) -> Event:
        event.enabled = enabled
        return event

    async def delete(self, event: Event) -> None:
        del self.store.events[event.id]


class FakeDeviceRepo:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get(self, device_id: int) -> Device | None:
        return self.store.devices.get(device_id)

    async def get_many(self, device_ids: Sequence[int]) -> list[Device]:
        return [self.store.devices[i] for i in device_ids if i in self.store.devices]

    async def list_all(self) -> list[Device]:
        return list(self.store.devices.values())

    async def create(self, *, name: str, description: str | None, image_url: str | None, link: str | None) -> Device:
        device = Device(
            id=self.store.next_id(),
            name=name,
            description=description,
            image_url=image_url,
            link=link,
            created_at=_utc_now_naive(),
        )
        self.store.devices[device.id] = device
        return device

    async def update(self, device: Device, **fields: str | None) -> Device:
        for key, value in fields.items():
            setattr(device, key, value)
        return device

    async def delete(self, device_id: int) -> bool:
        return self.store.devices.pop(device_id, None) is not None


class FakeBookingRepo:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def list_by_event(self, event_id: int) -> list[Booking]:
        await self.store._touch("booking.list_by_event")
        rows = [b for b in self.store.bookings.values() if b.event_id == event_id]
        return sorted(rows, key=lambda b: (b.date, b.slot_time, b.device_id))

    async def find_by_slot(self, event_id: int, device_id: int, date: str, slot_time: str) -> Booking | None:
        await self.store._touch("booking.find_by_slot")
        for booking in self.store.bookings.values():
            if (booking.event_id, booking.device_id, booking.date, booking.slot_time) == (
                event_id,
                device_id,
                date,
                slot_time,
            ):
                return booking
        return None

    async def find_by_person_at(
        self,
        event_id: int,
        date: str,
        slot_time: str,
        *,
        email: str,
        phone: str,
    ) -> Booking | None:
        await self.store._touch("booking.find_by_person_at")
        for booking in self.store.bookings.values():
            if (booking.event_id, booking.date, booking.slot_time) != (event_id, date, slot_time):
                continue
            if booking.email == email or booking.phone == phone:
                return booking
        return None

    async def create(
        self,
        *,
        event_id: int,
        device_id: int,
        date: str,
        slot_time: str,
        name: str,
        email: str,
        phone: str,
        note: str | None,
    ) -> Booking:
        await self.store._touch("booking.create")
        if self.store.fail_create_after is not None:
            if self.store.fail_create_after <= 0:
                raise RuntimeError("store write failed")
            self.store.fail_create_after -= 1
        for booking in self.store.bookings.values():
            if (booking.event_id, booking.device_id, booking.date, booking.slot_time) == (
                event_id,
                device_id,
                date,
                slot_time,
            ):
                raise SlotAlreadyBookedError(device_id, date, slot_time)
        booking = Booking(
            id=self.store.next_id(),
            event_id=event_id,
            device_id=device_id,
            date=date,
            slot_time=slot_time,
            name=name,
            email=email,
            phone=phone,
            note=note,
            created_at=_utc_now_naive(),
        )
        self.store.bookings[booking.id] = booking
        self.store.record_write(booking.id)
        return booking

    async def get(self, booking_id: int) -> Booking | None:
        return self.store.bookings.get(booking_id)

    async def delete(self, booking: Booking) -> None:
        self.store.bookings.pop(booking.id, None)

    async def delete_by_event(self, event_id: int) -> int:
        doomed = [i for i, b in self.store.bookings.items() if b.event_id == event_id]
        for booking_id in doomed:
            del self.store.bookings[booking_id]
        return len(doomed)


class RecordingNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list = []

    async def send_confirmation(self, request: object) -> None:
        if self.fail:
            raise ConnectionError("mail relay down")
        self.sent.append(request)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def event_repo(store: InMemoryStore) -> FakeEventRepo:
    return FakeEventRepo(store)


@pytest.fixture
def device_repo(store: InMemoryStore) -> FakeDeviceRepo:
    return FakeDeviceRepo(store)


@pytest.fixture
def booking_repo(store: InMemoryStore) -> FakeBookingRepo:
    return FakeBookingRepo(store)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_store():
    def _make(*, serialize: bool = False) -> tuple[InMemoryStore, FakeEventRepo, FakeBookingRepo]:
        new_store = InMemoryStore(serialize=serialize)
        return new_store, FakeEventRepo(new_store), FakeBookingRepo(new_store)

    return _make


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)
