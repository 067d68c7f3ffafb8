from __future__ import annotations


class DomainError(Exception):
    """Base class for booking engine failures."""


class ValidationError(DomainError):
    """Selection or contact details are incomplete or malformed."""


class EventNotFoundError(DomainError):
    pass


class DeviceNotFoundError(DomainError):
    pass


class BookingNotFoundError(DomainError):
    pass


class EventDisabledError(DomainError):
    def __init__(self, event_id: int) -> None:
        super().__init__(f"event {event_id} is not accepting bookings")
        self.event_id = event_id


class SlotAlreadyBookedError(DomainError):
    def __init__(self, device_id: int | None, date: str | None, slot: str | None) -> None:
        super().__init__(f"device {device_id} is already booked for {date} {slot}")
        self.device_id = device_id
        self.date = date
        self.slot = slot


class DuplicatePersonAtSlotError(DomainError):
    def __init__(self, date: str | None, slot: str | None, conflicting_device_id: int | None) -> None:
        super().__init__(f"submitter already holds a booking at {date} {slot}")
        self.date = date
        self.slot = slot
        self.conflicting_device_id = conflicting_device_id


class StoreUnavailableError(DomainError):
    """Transient failure talking to the store; the caller may retry."""
