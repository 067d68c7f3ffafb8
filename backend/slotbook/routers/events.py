from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_organizer, get_session
from ..domain.errors import DeviceNotFoundError, EventNotFoundError, ValidationError
from ..infrastructure.repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyDeviceRepository,
    SqlAlchemyEventRepository,
)
from ..schemas import EventCreate, EventEnabledUpdate, EventRead, SlotPreview
from ..usecases import events as event_usecase
from ..utils.audit_log import emit_audit_log

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(get_current_organizer)])


@router.get("/slot-preview", response_model=SlotPreview)
async def preview_slots(
    start_time: str = Query(..., pattern=r"^\d{2}:\d{2}$"),
    end_time: str = Query(..., pattern=r"^\d{2}:\d{2}$"),
    slot_duration: int = Query(...),
) -> SlotPreview:
    try:
        plan = event_usecase.plan_slots(start_time, end_time, slot_duration)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return SlotPreview(slots=plan.slots, warnings=plan.warnings)


@router.get("", response_model=List[EventRead])
async def list_events(session: AsyncSession = Depends(get_session)) -> list[EventRead]:
    events = await event_usecase.list_events(SqlAlchemyEventRepository(session))
    return [EventRead.from_db(event=event) for event in events]


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    session: AsyncSession = Depends(get_session),
) -> EventRead:
    event_repo = SqlAlchemyEventRepository(session)
    device_repo = SqlAlchemyDeviceRepository(session)
    async with session.begin():
        try:
            event = await event_usecase.create_event(
                event_repo,
                device_repo,
                title=payload.title,
                description=payload.description,
                event_dates=payload.event_dates,
                start_time=payload.start_time,
                end_time=payload.end_time,
                slot_duration=payload.slot_duration,
                device_ids=payload.device_ids,
                company_logo=payload.company_logo,
                location=payload.location,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        except DeviceNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    emit_audit_log(action="event.created", initiator="organizer", event_id=event.id)
    return EventRead.from_db(event=event)


@router.patch("/{event_id}/enabled", response_model=EventRead)
async def set_event_enabled(
    payload: EventEnabledUpdate,
    event_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> EventRead:
    event_repo = SqlAlchemyEventRepository(session)
    async with session.begin():
        try:
            event = await event_usecase.set_event_enabled(event_repo, event_id=event_id, enabled=payload.enabled)
        except EventNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event not found")

    emit_audit_log(
        action="event.toggled",
        initiator="organizer",
        event_id=event.id,
        extra={"enabled": event.enabled},
    )
    return EventRead.from_db(event=event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> None:
    event_repo = SqlAlchemyEventRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    async with session.begin():
        try:
            removed = await event_usecase.delete_event(event_repo, booking_repo, event_id=event_id)
        except EventNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event not found")

    emit_audit_log(
        action="event.deleted",
        initiator="organizer",
        event_id=event_id,
        extra={"bookings_removed": removed},
    )
