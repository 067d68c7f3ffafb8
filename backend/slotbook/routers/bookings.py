import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_organizer, get_notifier, get_session
from ..domain.errors import (
    BookingNotFoundError,
    DuplicatePersonAtSlotError,
    EventDisabledError,
    EventNotFoundError,
    SlotAlreadyBookedError,
    ValidationError,
)
from ..domain.notifications import NotificationService
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemyEventRepository
from ..schemas import AvailabilityRead, BookingRead, ReservationCreate, ReservationRead
from ..usecases import bookings as booking_usecase
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["bookings"])


@router.get("/events/{event_id}/availability", response_model=AvailabilityRead)
async def get_availability(
    event_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityRead:
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        event, projector = await booking_usecase.get_availability(event_repo, booking_repo, event_id=event_id)
    except EventNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event not found")
    return AvailabilityRead.from_projection(event=event, projector=projector)


@router.post(
    "/events/{event_id}/reservations",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: ReservationCreate,
    event_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
) -> ReservationRead:
    if payload.has_repeated_devices():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="each device can be selected only once",
        )
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        result = await booking_usecase.submit_reservation(
            event_repo,
            booking_repo,
            notifier,
            transaction=session.begin,
            event_id=event_id,
            draft=payload.to_draft(),
            contact=payload.to_contact(),
        )
    except EventNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event not found")
    except EventDisabledError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="event is not accepting bookings")
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except SlotAlreadyBookedError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "slot_already_booked",
                "device_id": exc.device_id,
                "date": exc.date,
                "slot": exc.slot,
            },
        )
    except DuplicatePersonAtSlotError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "code": "duplicate_person_at_slot",
                "date": exc.date,
                "slot": exc.slot,
                "conflicting_device_id": exc.conflicting_device_id,
            },
        )

    for booking in result.bookings:
        try:
            emit_audit_log(
                action="booking.created",
                initiator="visitor",
                event_id=booking.event_id,
                booking_id=booking.id,
                device_id=booking.device_id,
                date=booking.date,
                slot=booking.slot_time,
            )
        except RuntimeError:
            # Reservation is already committed here.
            logger.exception("audit log for booking %s failed", booking.id)

    return ReservationRead(
        event_id=result.event.id,
        event_title=result.event.title,
        bookings=[BookingRead.from_db(booking=booking) for booking in result.bookings],
        notified=result.notified,
    )


@router.get(
    "/events/{event_id}/bookings",
    response_model=List[BookingRead],
    dependencies=[Depends(get_current_organizer)],
)
async def list_event_bookings(
    event_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> list[BookingRead]:
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        bookings = await booking_usecase.list_event_bookings(event_repo, booking_repo, event_id=event_id)
    except EventNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event not found")
    return [BookingRead.from_db(booking=booking) for booking in bookings]


@router.delete("/bookings/{booking_id}", response_model=BookingRead)
async def cancel_booking(
    booking_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    organizer: str = Depends(get_current_organizer),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        try:
            booking = await booking_usecase.cancel_booking(booking_repo, booking_id=booking_id)
        except BookingNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="booking not found")

    try:
        emit_audit_log(
            action="booking.cancelled",
            initiator="organizer",
            event_id=booking.event_id,
            booking_id=booking.id,
            device_id=booking.device_id,
            date=booking.date,
            slot=booking.slot_time,
            extra={"organizer": organizer},
        )
    except RuntimeError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed")
    return BookingRead.from_db(booking=booking)
