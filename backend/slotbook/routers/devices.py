from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_organizer, get_session
from ..domain.errors import DeviceNotFoundError, ValidationError
from ..infrastructure.repositories import SqlAlchemyDeviceRepository
from ..schemas import DeviceCreate, DeviceRead, DeviceUpdate
from ..usecases import devices as device_usecase

router = APIRouter(prefix="/devices", tags=["devices"], dependencies=[Depends(get_current_organizer)])


@router.get("", response_model=List[DeviceRead])
async def list_devices(session: AsyncSession = Depends(get_session)) -> list[DeviceRead]:
    devices = await device_usecase.list_devices(SqlAlchemyDeviceRepository(session))
    return [DeviceRead.from_db(device=device) for device in devices]


@router.post("", response_model=DeviceRead, status_code=status.HTTP_201_CREATED)
async def create_device(
    payload: DeviceCreate,
    session: AsyncSession = Depends(get_session),
) -> DeviceRead:
    device_repo = SqlAlchemyDeviceRepository(session)
    async with session.begin():
        try:
            device = await device_usecase.create_device(
                device_repo,
                name=payload.name,
                description=payload.description,
                image_url=payload.image_url,
                link=payload.link,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return DeviceRead.from_db(device=device)


@router.patch("/{device_id}", response_model=DeviceRead)
async def update_device(
    payload: DeviceUpdate,
    device_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> DeviceRead:
    device_repo = SqlAlchemyDeviceRepository(session)
    async with session.begin():
        try:
            device = await device_usecase.update_device(
                device_repo,
                device_id=device_id,
                changes=payload.model_dump(exclude_unset=True),
            )
        except DeviceNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="device not found")
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return DeviceRead.from_db(device=device)


@router.delete("/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_device(
    device_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> None:
    device_repo = SqlAlchemyDeviceRepository(session)
    try:
        async with session.begin():
            await device_usecase.delete_device(device_repo, device_id=device_id)
    except DeviceNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="device not found")
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="device still has bookings")
