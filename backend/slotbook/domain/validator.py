from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import (
    DomainError,
    DuplicatePersonAtSlotError,
    EventDisabledError,
    SlotAlreadyBookedError,
    StoreUnavailableError,
    ValidationError,
)
from .repositories import BookingRepository
from .reservation import BookingTriple, Contact, ReservationDraft, ReservationState
from .services import EventSnapshot, ensure_event_enabled, validate_triples

REJECTIONS = (ValidationError, EventDisabledError, SlotAlreadyBookedError, DuplicatePersonAtSlotError)


@dataclass(frozen=True)
class ValidationResult:
    state: ReservationState
    event_id: int
    triples: tuple[BookingTriple, ...]
    contact: Contact
    reason: Optional[DomainError] = None

    @property
    def accepted(self) -> bool:
        return self.state == ReservationState.ACCEPTED

    def raise_for_rejection(self) -> None:
        if self.reason is not None:
            raise self.reason


class ConflictValidator:
    """
    Re-checks a proposed reservation against current store state.

    Order: event gate, completeness of the draft, contact details, structural
    checks, per-triple slot-taken lookups (fail fast), then one same-person
    lookup per distinct date+slot. Nothing is written here.
    """

    def __init__(self, bookings: BookingRepository) -> None:
        self.bookings = bookings

    async def validate(
        self,
        snapshot: EventSnapshot,
        draft: ReservationDraft,
        contact: Contact,
    ) -> ValidationResult:
        triples: Sequence[BookingTriple] = ()
        try:
            ensure_event_enabled(snapshot)
            triples = draft.to_triples()
            draft.state = ReservationState.VALIDATING
            contact.validate()
            validate_triples(snapshot, triples)
            await self._check_slots_free(snapshot.event_id, triples)
            await self._check_person_free(snapshot.event_id, triples, contact)
        except StoreUnavailableError:
            # No verdict was reached; the draft can be submitted again.
            draft.state = ReservationState.COLLECTING
            raise
        except REJECTIONS as exc:
            # An incomplete draft stays editable; anything later is a final verdict.
            if draft.state == ReservationState.VALIDATING:
                draft.state = ReservationState.REJECTED
            return ValidationResult(
                state=ReservationState.REJECTED,
                event_id=snapshot.event_id,
                triples=tuple(triples),
                contact=contact,
                reason=exc,
            )
        draft.state = ReservationState.ACCEPTED
        return ValidationResult(
            state=ReservationState.ACCEPTED,
            event_id=snapshot.event_id,
            triples=tuple(triples),
            contact=contact,
        )

    async def _check_slots_free(self, event_id: int, triples: Sequence[BookingTriple]) -> None:
        for triple in triples:
            existing = await self.bookings.find_by_slot(event_id, triple.device_id, triple.date, triple.slot)
            if existing is not None:
                raise SlotAlreadyBookedError(triple.device_id, triple.date, triple.slot)

    async def _check_person_free(
        self,
        event_id: int,
        triples: Sequence[BookingTriple],
        contact: Contact,
    ) -> None:
        moments = sorted({(triple.date, triple.slot) for triple in triples})
        for date, slot in moments:
            existing = await self.bookings.find_by_person_at(
                event_id,
                date,
                slot,
                email=contact.email,
                phone=contact.phone,
            )
            if existing is not None:
                raise DuplicatePersonAtSlotError(date, slot, existing.device_id)
