from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .domain.availability import AvailabilityProjector
from .domain.reservation import Contact, ReservationDraft, SlotSelection
from .models import Booking, Device, Event


class DeviceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    link: Optional[str] = None


class DeviceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1024)
    link: Optional[str] = Field(default=None, max_length=1024)


class DeviceRead(BaseModel):
    device_id: int
    name: str
    description: Optional[str]
    image_url: Optional[str]
    link: Optional[str]

    @classmethod
    def from_db(cls, *, device: Device) -> "DeviceRead":
        return cls(
            device_id=device.id,
            name=device.name,
            description=device.description,
            image_url=device.image_url,
            link=device.link,
        )


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    event_dates: list[str] = Field(min_length=1)
    start_time: str = Field(default="09:00", pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(default="17:00", pattern=r"^\d{2}:\d{2}$")
    slot_duration: int = 30
    device_ids: list[int] = Field(min_length=1)
    company_logo: Optional[str] = None
    location: Optional[str] = None


class EventEnabledUpdate(BaseModel):
    enabled: bool


class EventRead(BaseModel):
    event_id: int
    title: str
    description: str
    event_dates: list[str]
    slot_duration: int
    available_slots: list[str]
    device_ids: list[int]
    enabled: bool
    company_logo: Optional[str]
    location: Optional[str]
    created_at: datetime

    @classmethod
    def from_db(cls, *, event: Event) -> "EventRead":
        return cls(
            event_id=event.id,
            title=event.title,
            description=event.description,
            event_dates=list(event.event_dates),
            slot_duration=event.slot_duration,
            available_slots=list(event.available_slots),
            device_ids=event.device_ids,
            enabled=event.enabled,
            company_logo=event.company_logo,
            location=event.location,
            created_at=event.created_at,
        )


class SlotPreview(BaseModel):
    slots: list[str]
    warnings: list[str]


class DeviceAvailability(BaseModel):
    device: DeviceRead
    free_dates: list[str]
    free_slots: dict[str, list[str]]


class AvailabilityRead(BaseModel):
    event: EventRead
    devices: list[DeviceAvailability]
    all_devices_dates: list[str]

    @classmethod
    def from_projection(cls, *, event: Event, projector: AvailabilityProjector) -> "AvailabilityRead":
        summary = projector.summary()
        devices = [
            DeviceAvailability(
                device=DeviceRead.from_db(device=device),
                free_dates=projector.free_dates(device.id),
                free_slots={date: per_device[device.id] for date, per_device in summary.items()},
            )
            for device in event.devices
        ]
        return cls(
            event=EventRead.from_db(event=event),
            devices=devices,
            all_devices_dates=projector.free_dates_for_all_devices(event.device_ids),
        )


class SelectionIn(BaseModel):
    device_id: int
    date: Optional[str] = None
    slot: Optional[str] = None


class ReservationCreate(BaseModel):
    selections: list[SelectionIn] = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    note: Optional[str] = None

    def to_draft(self) -> ReservationDraft:
        draft = ReservationDraft()
        for selection in self.selections:
            draft.selections[selection.device_id] = SlotSelection(date=selection.date, slot=selection.slot)
        return draft

    def to_contact(self) -> Contact:
        return Contact.normalized(name=self.name, email=self.email, phone=self.phone, note=self.note)

    def has_repeated_devices(self) -> bool:
        device_ids = [selection.device_id for selection in self.selections]
        return len(device_ids) != len(set(device_ids))


class BookingRead(BaseModel):
    booking_id: int
    event_id: int
    device_id: int
    date: str
    slot_time: str
    name: str
    email: str
    phone: str
    note: Optional[str]
    created_at: datetime

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingRead":
        return cls(
            booking_id=booking.id,
            event_id=booking.event_id,
            device_id=booking.device_id,
            date=booking.date,
            slot_time=booking.slot_time,
            name=booking.name,
            email=booking.email,
            phone=booking.phone,
            note=booking.note,
            created_at=booking.created_at,
        )


class ReservationRead(BaseModel):
    event_id: int
    event_title: str
    bookings: list[BookingRead]
    notified: bool
