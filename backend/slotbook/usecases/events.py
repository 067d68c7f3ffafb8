from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..domain.errors import DeviceNotFoundError, EventNotFoundError, ValidationError
from ..domain.repositories import BookingRepository, DeviceRepository, EventRepository
from ..domain.slots import generate_slots
from ..models import Event
from ..utils.time import parse_iso_date


@dataclass(frozen=True)
class SlotPlan:
    slots: list[str]
    warnings: list[str] = field(default_factory=list)


def plan_slots(start_time: str, end_time: str, slot_duration: int) -> SlotPlan:
    try:
        grid = generate_slots(start_time, end_time, slot_duration)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    slots = list(grid)
    if not slots:
        return SlotPlan(
            slots=[],
            warnings=["no time slots fit between the start and end time with this duration"],
        )
    return SlotPlan(slots=slots)


def normalize_event_dates(event_dates: Sequence[str]) -> list[str]:
    try:
        parsed = {parse_iso_date(value).isoformat() for value in event_dates}
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return sorted(parsed)


async def create_event(
    event_repo: EventRepository,
    device_repo: DeviceRepository,
    *,
    title: str,
    description: str,
    event_dates: Sequence[str],
    start_time: str,
    end_time: str,
    slot_duration: int,
    device_ids: Sequence[int],
    company_logo: Optional[str] = None,
    location: Optional[str] = None,
) -> Event:
    if not title.strip():
        raise ValidationError("title is required")
    dates = normalize_event_dates(event_dates)
    if not dates:
        raise ValidationError("select at least one date")
    plan = plan_slots(start_time, end_time, slot_duration)
    if plan.warnings:
        raise ValidationError(plan.warnings[0])

    wanted = list(dict.fromkeys(device_ids))
    if not wanted:
        raise ValidationError("select at least one device for this event")
    devices = await device_repo.get_many(wanted)
    if len(devices) != len(wanted):
        found = {device.id for device in devices}
        missing = [device_id for device_id in wanted if device_id not in found]
        raise DeviceNotFoundError(f"device {missing[0]} not found")

    return await event_repo.create(
        title=title.strip(),
        description=description.strip(),
        event_dates=dates,
        slot_duration=slot_duration,
        available_slots=plan.slots,
        devices=devices,
        enabled=True,
        company_logo=company_logo,
        location=location,
    )


async def list_events(event_repo: EventRepository) -> list[Event]:
    return await event_repo.list_all()


async def set_event_enabled(event_repo: EventRepository, *, event_id: int, enabled: bool) -> Event:
    event = await event_repo.get(event_id)
    if event is None:
        raise EventNotFoundError(f"event {event_id} not found")
    if event.enabled == enabled:
        return event
    return await event_repo.set_enabled(event, enabled)


async def delete_event(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
) -> int:
    """Delete an event together with its bookings; returns how many bookings went with it."""
    event = await event_repo.get(event_id)
    if event is None:
        raise EventNotFoundError(f"event {event_id} not found")
    removed = await booking_repo.delete_by_event(event_id)
    await event_repo.delete(event)
    return removed
