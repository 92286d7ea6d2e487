"""
Room endpoints: listing rooms and adding devices to a room.

Adding a device is restricted to administrators. The device is produced by
the default manufacturer with the registry's configured default wattage
unless the request names one.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from homesphere.src.api.deps import AdminUser, CurrentUser, SystemDep
from homesphere.src.api.devices import device_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["rooms"])


class DeviceCreate(BaseModel):
    """Request body for creating a device in a room."""

    device_id: int
    name: str
    device_type: str
    power_w: float | None = Field(default=None, gt=0)


@router.get("/rooms")
async def list_rooms(system: SystemDep, user: CurrentUser) -> list[dict[str, Any]]:
    return [room.to_dict() for room in system.rooms]


@router.post("/rooms/{room_id}/devices", status_code=201)
async def add_device_to_room(
    room_id: int,
    payload: DeviceCreate,
    system: SystemDep,
    admin: AdminUser,
) -> dict[str, Any]:
    """Create a device and place it in the room.

    Raises:
        HTTPException: 404 if the room does not exist.
        HTTPException: 409 if the device id is already registered.
        HTTPException: 422 if the device type is unknown.
    """
    if system.get_room(room_id) is None:
        raise HTTPException(status_code=404, detail=f"Room {room_id} not found.")
    if system.get_device(payload.device_id) is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Device id {payload.device_id} is already registered.",
        )

    try:
        device = system.create_device(
            payload.device_type,
            payload.device_id,
            payload.name,
            room_id,
            power_w=payload.power_w,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None

    if device is None:
        raise HTTPException(
            status_code=409,
            detail=f"Device id {payload.device_id} could not be added.",
        )

    logger.info(
        "Admin %s added device %d to room %d",
        admin.login_name,
        device.device_id,
        room_id,
    )
    return device_view(device)
