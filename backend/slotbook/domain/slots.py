from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from ..utils.time import format_time_label, parse_time_label


@dataclass(frozen=True)
class SlotRange:
    """
    Wall-clock slot grid ``start, start+duration, ...`` strictly before ``end``.

    Iterating yields zero-padded ``HH:MM`` labels lazily; every iteration starts
    over from ``start``. A non-positive duration or ``start >= end`` gives an
    empty grid rather than an error.
    """

    start_minutes: int
    end_minutes: int
    duration: int

    @classmethod
    def from_labels(cls, start: str, end: str, duration: int) -> "SlotRange":
        return cls(
            start_minutes=parse_time_label(start),
            end_minutes=parse_time_label(end),
            duration=duration,
        )

    def is_empty(self) -> bool:
        return self.duration <= 0 or self.start_minutes >= self.end_minutes

    def __iter__(self) -> Iterator[str]:
        if self.is_empty():
            return
        minutes = self.start_minutes
        while minutes < self.end_minutes:
            yield format_time_label(minutes)
            minutes += self.duration

    def __len__(self) -> int:
        if self.is_empty():
            return 0
        span = self.end_minutes - self.start_minutes
        return -(-span // self.duration)

    def __contains__(self, label: object) -> bool:
        if not isinstance(label, str) or self.is_empty():
            return False
        try:
            minutes = parse_time_label(label)
        except ValueError:
            return False
        if not self.start_minutes <= minutes < self.end_minutes:
            return False
        return (minutes - self.start_minutes) % self.duration == 0


def generate_slots(start: str, end: str, duration: int) -> SlotRange:
    return SlotRange.from_labels(start, end, duration)
