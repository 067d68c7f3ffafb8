from __future__ import annotations

from typing import Protocol, Sequence

from ..models import Booking, Device, Event


class EventRepository(Protocol):
    async def get(self, event_id: int) -> Event | None: ...

    async def get_for_update(self, event_id: int) -> Event | None: ...

    async def list_all(self) -> list[Event]: ...

    async def create(
        self,
        *,
        title: str,
        description: str,
        event_dates: Sequence[str],
        slot_duration: int,
        available_slots: Sequence[str],
        devices: Sequence[Device],
        enabled: bool,
        company_logo: str | None,
        location: str | None,
    ) -> Event: ...

    async def set_enabled(self, event: Event, enabled: bool) -> Event: ...

    async def delete(self, event: Event) -> None: ...


class DeviceRepository(Protocol):
    async def get(self, device_id: int) -> Device | None: ...

    async def get_many(self, device_ids: Sequence[int]) -> list[Device]: ...

    async def list_all(self) -> list[Device]: ...

    async def create(
        self,
        *,
        name: str,
        description: str | None,
        image_url: str | None,
        link: str | None,
    ) -> Device: ...

    async def update(self, device: Device, **fields: str | None) -> Device: ...

    async def delete(self, device_id: int) -> bool: ...


class BookingRepository(Protocol):
    async def list_by_event(self, event_id: int) -> list[Booking]: ...

    async def find_by_slot(self, event_id: int, device_id: int, date: str, slot_time: str) -> Booking | None: ...

    async def find_by_person_at(
        self,
        event_id: int,
        date: str,
        slot_time: str,
        *,
        email: str,
        phone: str,
    ) -> Booking | None: ...

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
    ) -> Booking: ...

    async def get(self, booking_id: int) -> Booking | None: ...

    async def delete(self, booking: Booking) -> None: ...

    async def delete_by_event(self, event_id: int) -> int: ...
