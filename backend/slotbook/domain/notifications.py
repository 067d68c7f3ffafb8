from __future__ import annotations

from typing import Optional, Protocol

from pydantic import BaseModel


class ConfirmationItem(BaseModel):
    device_id: int
    device_name: str
    date: str
    slot: str
    booking_id: int


class ConfirmationRequest(BaseModel):
    name: str
    email: str
    phone: str
    event_title: str
    bookings: list[ConfirmationItem]
    note: Optional[str] = None


class NotificationService(Protocol):
    async def send_confirmation(self, request: ConfirmationRequest) -> None: ...
