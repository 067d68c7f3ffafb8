from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from .errors import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[\d\s\-\+\(\)]+$")
MIN_PHONE_DIGITS = 10
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 50


class ReservationState(StrEnum):
    COLLECTING = "collecting"
    VALIDATING = "validating"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


@dataclass(frozen=True, order=True)
class BookingTriple:
    device_id: int
    date: str
    slot: str


@dataclass
class SlotSelection:
    date: Optional[str] = None
    slot: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.date) and bool(self.slot)


@dataclass(frozen=True)
class Contact:
    name: str
    email: str
    phone: str
    note: Optional[str] = None

    @classmethod
    def normalized(cls, *, name: str, email: str, phone: str, note: Optional[str] = None) -> "Contact":
        note_value = note.strip() if note else ""
        return cls(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            note=note_value or None,
        )

    def validate(self) -> None:
        if not self.name or not self.email or not self.phone:
            raise ValidationError("name, email and phone are required")
        if len(self.name) > MAX_NAME_LENGTH or len(self.email) > MAX_EMAIL_LENGTH:
            raise ValidationError("name and email must be at most 255 characters")
        if len(self.phone) > MAX_PHONE_LENGTH:
            raise ValidationError("phone number must be at most 50 characters")
        if not _EMAIL_RE.match(self.email):
            raise ValidationError("email address is not valid")
        digits = re.sub(r"\D", "", self.phone)
        if not _PHONE_RE.match(self.phone) or len(digits) < MIN_PHONE_DIGITS:
            raise ValidationError("phone number is not valid")


@dataclass
class ReservationDraft:
    """
    A visitor's uncommitted selection: one date and slot per chosen device.

    Choosing a date for a device clears its slot. Choosing a slot for a device
    releases the same date+slot from every other selected device, since one
    visitor cannot use two devices at the same moment.
    """

    selections: dict[int, SlotSelection] = field(default_factory=dict)
    state: ReservationState = ReservationState.COLLECTING

    @property
    def device_ids(self) -> list[int]:
        return list(self.selections)

    def toggle_device(self, device_id: int) -> None:
        self._ensure_collecting()
        if device_id in self.selections:
            del self.selections[device_id]
        else:
            self.selections[device_id] = SlotSelection()

    def choose_date(self, device_id: int, date: str) -> None:
        selection = self._selection(device_id)
        selection.date = date
        selection.slot = None

    def choose_slot(self, device_id: int, slot: str) -> None:
        selection = self._selection(device_id)
        if selection.date is None:
            raise ValidationError(f"choose a date for device {device_id} first")
        selection.slot = slot
        for other_id, other in self.selections.items():
            if other_id != device_id and other.date == selection.date and other.slot == slot:
                other.slot = None

    def other_selections(self, device_id: int) -> dict[int, SlotSelection]:
        return {other_id: sel for other_id, sel in self.selections.items() if other_id != device_id}

    def is_complete(self) -> bool:
        return bool(self.selections) and all(sel.is_complete() for sel in self.selections.values())

    def to_triples(self) -> list[BookingTriple]:
        if not self.is_complete():
            raise ValidationError("select a date and time slot for each selected device")
        return [
            BookingTriple(device_id=device_id, date=sel.date or "", slot=sel.slot or "")
            for device_id, sel in self.selections.items()
        ]

    def _selection(self, device_id: int) -> SlotSelection:
        self._ensure_collecting()
        try:
            return self.selections[device_id]
        except KeyError:
            raise ValidationError(f"device {device_id} is not selected") from None

    def _ensure_collecting(self) -> None:
        if self.state != ReservationState.COLLECTING:
            raise ValidationError(f"reservation is {self.state}, selections are locked")
