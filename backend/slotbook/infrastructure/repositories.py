from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import SlotAlreadyBookedError, StoreUnavailableError, ValidationError
from ..domain.repositories import BookingRepository, DeviceRepository, EventRepository
from ..models import Booking, Device, Event
from ..utils.time import utc_now_naive


class SqlAlchemyEventRepository(EventRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, event_id: int) -> Event | None:
        result = await self.session.scalar(select(Event).where(Event.id == event_id))
        return result if isinstance(result, Event) else None

    async def get_for_update(self, event_id: int) -> Event | None:
        # Locks the event row so concurrent reservations for one event commit one at a time.
        result = await self.session.scalar(select(Event).where(Event.id == event_id).with_for_update())
        return result if isinstance(result, Event) else None

    async def list_all(self) -> List[Event]:
        rows = await self.session.scalars(select(Event).order_by(Event.created_at.desc()))
        return list(rows.all())

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
    ) -> Event:
        event = Event(
            title=title,
            description=description,
            event_dates=list(event_dates),
            slot_duration=slot_duration,
            available_slots=list(available_slots),
            enabled=enabled,
            company_logo=company_logo,
            location=location,
            created_at=utc_now_naive(),
        )
        event.devices = list(devices)
        self.session.add(event)
        await self.session.flush()
        return event

    async def set_enabled(self, event: Event, enabled: bool) -> Event:
        event.enabled = enabled
        self.session.add(event)
        await self.session.flush()
        return event

    async def delete(self, event: Event) -> None:
        await self.session.delete(event)
        await self.session.flush()


class SqlAlchemyDeviceRepository(DeviceRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_many(self, device_ids: Sequence[int]) -> List[Device]:
        if not device_ids:
            return []
        rows = await self.session.scalars(select(Device).where(Device.id.in_(list(device_ids))))
        by_id = {device.id: device for device in rows.all()}
        return [by_id[device_id] for device_id in device_ids if device_id in by_id]

    async def list_all(self) -> List[Device]:
        rows = await self.session.scalars(select(Device).order_by(Device.created_at.desc()))
        return list(rows.all())

    async def create(
        self,
        *,
        name: str,
        description: str | None,
        image_url: str | None,
        link: str | None,
    ) -> Device:
        device = Device(
            name=name,
            description=description,
            image_url=image_url,
            link=link,
            created_at=utc_now_naive(),
        )
        self.session.add(device)
        await self.session.flush()
        return device

    async def get(self, device_id: int) -> Optional[Device]:
        return await self.session.get(Device, device_id)

    async def update(self, device: Device, **fields: str | None) -> Device:
        for key, value in fields.items():
            setattr(device, key, value)
        self.session.add(device)
        await self.session.flush()
        return device

    async def delete(self, device_id: int) -> bool:
        result = await self.session.execute(delete(Device).where(Device.id == device_id))
        return bool(result.rowcount)


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_by_event(self, event_id: int) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.event_id == event_id)
            .order_by(Booking.date, Booking.slot_time, Booking.device_id)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def find_by_slot(self, event_id: int, device_id: int, date: str, slot_time: str) -> Optional[Booking]:
        stmt = select(Booking).where(
            Booking.event_id == event_id,
            Booking.device_id == device_id,
            Booking.date == date,
            Booking.slot_time == slot_time,
        )
        return (await self.session.scalars(stmt)).first()

    async def find_by_person_at(
        self,
        event_id: int,
        date: str,
        slot_time: str,
        *,
        email: str,
        phone: str,
    ) -> Optional[Booking]:
        stmt = select(Booking).where(
            Booking.event_id == event_id,
            Booking.date == date,
            Booking.slot_time == slot_time,
            or_(Booking.email == email, Booking.phone == phone),
        )
        return (await self.session.scalars(stmt)).first()

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
        booking = Booking(
            event_id=event_id,
            device_id=device_id,
            date=date,
            slot_time=slot_time,
            name=name,
            email=email,
            phone=phone,
            note=note,
            created_at=utc_now_naive(),
        )
        self.session.add(booking)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # uq_bookings_slot lost to a concurrent writer
            raise SlotAlreadyBookedError(device_id, date, slot_time) from exc
        except DataError as exc:
            raise ValidationError("contact details do not fit the booking record") from exc
        except (OperationalError, InterfaceError) as exc:
            raise StoreUnavailableError("booking store is unavailable") from exc
        return booking

    async def get(self, booking_id: int) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    async def delete(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()

    async def delete_by_event(self, event_id: int) -> int:
        result = await self.session.execute(delete(Booking).where(Booking.event_id == event_id))
        return int(result.rowcount or 0)
