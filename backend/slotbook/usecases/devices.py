from typing import Optional

from ..domain.errors import DeviceNotFoundError, ValidationError
from ..domain.repositories import DeviceRepository
from ..models import Device


async def create_device(
    device_repo: DeviceRepository,
    *,
    name: str,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    link: Optional[str] = None,
) -> Device:
    if not name.strip():
        raise ValidationError("device name is required")
    return await device_repo.create(
        name=name.strip(),
        description=(description or "").strip() or None,
        image_url=image_url,
        link=link,
    )


async def list_devices(device_repo: DeviceRepository) -> list[Device]:
    return await device_repo.list_all()


async def delete_device(device_repo: DeviceRepository, *, device_id: int) -> None:
    if not await device_repo.delete(device_id):
        raise DeviceNotFoundError(f"device {device_id} not found")


async def update_device(
    device_repo: DeviceRepository,
    *,
    device_id: int,
    changes: dict[str, Optional[str]],
) -> Device:
    """Apply a partial edit; only keys present in ``changes`` are touched."""
    device = await device_repo.get(device_id)
    if device is None:
        raise DeviceNotFoundError(f"device {device_id} not found")
    fields: dict[str, Optional[str]] = {}
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("device name is required")
        fields["name"] = name
    if "description" in changes:
        fields["description"] = (changes["description"] or "").strip() or None
    for key in ("image_url", "link"):
        if key in changes:
            fields[key] = changes[key]
    if not fields:
        return device
    return await device_repo.update(device, **fields)
