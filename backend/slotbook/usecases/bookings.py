from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncContextManager, Callable

from ..domain.availability import AvailabilityProjector
from ..domain.errors import BookingNotFoundError, EventNotFoundError
from ..domain.notifications import ConfirmationItem, ConfirmationRequest, NotificationService
from ..domain.repositories import BookingRepository, EventRepository
from ..domain.reservation import Contact, ReservationDraft
from ..domain.services import EventSnapshot
from ..domain.validator import ConflictValidator, ValidationResult
from ..models import Booking, Event

logger = logging.getLogger(__name__)

Transaction = Callable[[], AsyncContextManager[object]]


@dataclass(frozen=True)
class CommitResult:
    event: Event
    bookings: list[Booking]
    notified: bool


class BookingCommitOrchestrator:
    """
    Writes one booking per accepted triple, then sends a single confirmation.

    The caller runs ``commit`` inside a store transaction so a failed write
    leaves nothing behind; ``notify`` runs after that transaction has
    committed and never fails the reservation.
    """

    def __init__(self, bookings: BookingRepository, notifier: NotificationService) -> None:
        self.bookings = bookings
        self.notifier = notifier

    async def commit(self, result: ValidationResult) -> list[Booking]:
        if not result.accepted:
            result.raise_for_rejection()
            raise ValueError("only accepted reservations can be committed")
        contact = result.contact
        created: list[Booking] = []
        for triple in result.triples:
            booking = await self.bookings.create(
                event_id=result.event_id,
                device_id=triple.device_id,
                date=triple.date,
                slot_time=triple.slot,
                name=contact.name,
                email=contact.email,
                phone=contact.phone,
                note=contact.note,
            )
            created.append(booking)
        return created

    async def notify(self, event: Event, bookings: list[Booking], contact: Contact) -> bool:
        device_names = {device.id: device.name for device in event.devices}
        request = ConfirmationRequest(
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            event_title=event.title,
            note=contact.note,
            bookings=[
                ConfirmationItem(
                    device_id=booking.device_id,
                    device_name=device_names.get(booking.device_id, str(booking.device_id)),
                    date=booking.date,
                    slot=booking.slot_time,
                    booking_id=booking.id,
                )
                for booking in bookings
            ],
        )
        try:
            await self.notifier.send_confirmation(request)
        except Exception:
            logger.exception("confirmation for event %s could not be sent", event.id)
            return False
        return True


async def get_availability(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
) -> tuple[Event, AvailabilityProjector]:
    event = await event_repo.get(event_id)
    if event is None:
        raise EventNotFoundError(f"event {event_id} not found")
    bookings = await booking_repo.list_by_event(event_id)
    projector = AvailabilityProjector.build(
        event_dates=event.event_dates,
        available_slots=event.available_slots,
        device_ids=event.device_ids,
        bookings=bookings,
    )
    return event, projector


async def submit_reservation(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    notifier: NotificationService,
    *,
    transaction: Transaction,
    event_id: int,
    draft: ReservationDraft,
    contact: Contact,
) -> CommitResult:
    orchestrator = BookingCommitOrchestrator(booking_repo, notifier)
    async with transaction():
        event = await event_repo.get_for_update(event_id)
        if event is None:
            raise EventNotFoundError(f"event {event_id} not found")
        result = await ConflictValidator(booking_repo).validate(EventSnapshot.of(event), draft, contact)
        result.raise_for_rejection()
        bookings = await orchestrator.commit(result)

    notified = await orchestrator.notify(event, bookings, result.contact)
    return CommitResult(event=event, bookings=bookings, notified=notified)


async def list_event_bookings(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    *,
    event_id: int,
) -> list[Booking]:
    if await event_repo.get(event_id) is None:
        raise EventNotFoundError(f"event {event_id} not found")
    return await booking_repo.list_by_event(event_id)


async def cancel_booking(booking_repo: BookingRepository, *, booking_id: int) -> Booking:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        raise BookingNotFoundError(f"booking {booking_id} not found")
    await booking_repo.delete(booking)
    return booking
