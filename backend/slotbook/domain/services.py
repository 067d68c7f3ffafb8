from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from ..models import Event
from .errors import EventDisabledError, ValidationError
from .reservation import BookingTriple


@dataclass(frozen=True)
class EventSnapshot:
    event_id: int
    enabled: bool
    event_dates: frozenset[str]
    available_slots: frozenset[str]
    device_ids: frozenset[int]

    @classmethod
    def of(cls, event: Event) -> "EventSnapshot":
        return cls(
            event_id=event.id,
            enabled=bool(event.enabled),
            event_dates=frozenset(event.event_dates),
            available_slots=frozenset(event.available_slots),
            device_ids=frozenset(event.device_ids),
        )


def ensure_event_enabled(snapshot: EventSnapshot) -> None:
    if not snapshot.enabled:
        raise EventDisabledError(snapshot.event_id)


def validate_triples(snapshot: EventSnapshot, triples: Sequence[BookingTriple]) -> None:
    """
    Pure structural checks on a proposed reservation.
    Every triple must name an attached device, an event date and a grid slot,
    and a device appears at most once. Different devices may share a moment.
    """
    if not triples:
        raise ValidationError("select at least one device")
    for triple in triples:
        if triple.device_id not in snapshot.device_ids:
            raise ValidationError(f"device {triple.device_id} is not part of this event")
        if triple.date not in snapshot.event_dates:
            raise ValidationError(f"{triple.date} is not an event date")
        if triple.slot not in snapshot.available_slots:
            raise ValidationError(f"{triple.slot} is not an available slot")

    device_counts = Counter(triple.device_id for triple in triples)
    repeated = [device_id for device_id, count in device_counts.items() if count > 1]
    if repeated:
        raise ValidationError(f"device {repeated[0]} is selected more than once")
