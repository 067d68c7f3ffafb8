from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Protocol, Sequence

from .reservation import SlotSelection


class BookedCell(Protocol):
    device_id: int
    date: str
    slot_time: str


@dataclass(frozen=True)
class AvailabilityProjector:
    """
    Read model of an event's booking grid.

    Built once from the full booking set of an event; every query is answered
    from the in-memory index ``date -> device -> taken slot labels``.
    """

    event_dates: tuple[str, ...]
    available_slots: tuple[str, ...]
    device_ids: tuple[int, ...]
    taken: Mapping[str, Mapping[int, frozenset[str]]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        *,
        event_dates: Sequence[str],
        available_slots: Sequence[str],
        device_ids: Iterable[int],
        bookings: Iterable[BookedCell],
    ) -> "AvailabilityProjector":
        index: dict[str, dict[int, set[str]]] = defaultdict(lambda: defaultdict(set))
        for booking in bookings:
            index[booking.date][booking.device_id].add(booking.slot_time)
        frozen = {
            date: {device_id: frozenset(slots) for device_id, slots in per_device.items()}
            for date, per_device in index.items()
        }
        return cls(
            event_dates=tuple(event_dates),
            available_slots=tuple(available_slots),
            device_ids=tuple(device_ids),
            taken=frozen,
        )

    def taken_slots(self, date: str, device_id: int) -> frozenset[str]:
        return self.taken.get(date, {}).get(device_id, frozenset())

    def is_taken(self, date: str, slot: str, device_id: int) -> bool:
        return slot in self.taken_slots(date, device_id)

    def free_slots(self, date: str, device_id: int) -> list[str]:
        taken = self.taken_slots(date, device_id)
        return [slot for slot in self.available_slots if slot not in taken]

    def free_dates(self, device_id: int) -> list[str]:
        return [date for date in self.event_dates if self.free_slots(date, device_id)]

    def device_has_availability(self, device_id: int) -> bool:
        return bool(self.free_dates(device_id))

    def free_dates_for_all_devices(self, device_ids: Iterable[int]) -> list[str]:
        # Each device needs some free slot on the date; they need not share one.
        wanted = list(device_ids)
        if not wanted:
            return []
        return [
            date
            for date in self.event_dates
            if all(self.free_slots(date, device_id) for device_id in wanted)
        ]

    def common_free_slots(self, date: str, device_ids: Iterable[int]) -> list[str]:
        wanted = list(device_ids)
        if not wanted:
            return []
        return [
            slot
            for slot in self.available_slots
            if not any(self.is_taken(date, slot, device_id) for device_id in wanted)
        ]

    def free_slots_excluding_cross_device_conflicts(
        self,
        date: str,
        device_id: int,
        other_selections: Mapping[int, SlotSelection],
    ) -> list[str]:
        claimed = {
            selection.slot
            for other_id, selection in other_selections.items()
            if other_id != device_id and selection.date == date and selection.slot
        }
        return [slot for slot in self.free_slots(date, device_id) if slot not in claimed]

    def summary(self) -> dict[str, dict[int, list[str]]]:
        return {
            date: {device_id: self.free_slots(date, device_id) for device_id in self.device_ids}
            for date in self.event_dates
        }
