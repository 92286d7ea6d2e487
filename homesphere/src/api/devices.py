"""
Device endpoints: listing, inspection, running logs, actions and power.

Every route requires HTTP Basic credentials. Command validation failures are
not HTTP errors: the ActionOutcome's ``status`` field reports them and the
response is 200, mirroring the non-fatal dispatch contract. Unknown device
ids yield 404.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from homesphere.src.api.deps import CurrentUser, SystemDep
from homesphere.src.devices import Device
from homesphere.src.dispatcher import (
    ActionOutcome,
    DeviceAction,
    supported_commands,
)
from homesphere.src.running_log import RunningLog
from homesphere.src.system import HomeSphere

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["devices"])


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ActionRequest(BaseModel):
    """A command to dispatch to one device."""

    command: str
    parameters: str = ""


class PowerRequest(BaseModel):
    """Target power state."""

    on: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _device_or_404(system: HomeSphere, device_id: int) -> Device:
    device = system.get_device(device_id)
    if device is None:
        raise HTTPException(status_code=404, detail=f"Device {device_id} not found.")
    return device


def device_view(device: Device) -> dict[str, Any]:
    """Serialise a device with the commands it accepts."""
    data = device.to_dict()
    data["supported_commands"] = supported_commands(device)
    return data


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/devices")
async def list_devices(system: SystemDep, user: CurrentUser) -> list[dict[str, Any]]:
    """Return every registered device ordered by id."""
    return [device_view(d) for d in system.devices]


@router.get("/devices/{device_id}")
async def get_device(
    device_id: int, system: SystemDep, user: CurrentUser
) -> dict[str, Any]:
    return device_view(_device_or_404(system, device_id))


@router.get("/devices/{device_id}/logs")
async def device_logs(
    device_id: int, system: SystemDep, user: CurrentUser
) -> list[RunningLog]:
    """Return the device's running logs in chronological order."""
    return list(_device_or_404(system, device_id).running_logs)


@router.post("/devices/{device_id}/actions")
async def submit_action(
    device_id: int,
    payload: ActionRequest,
    system: SystemDep,
    user: CurrentUser,
) -> ActionOutcome:
    """Dispatch one command to the device.

    Returns:
        ActionOutcome: Always returned, including for rejected commands.

    Raises:
        HTTPException: 404 if the device does not exist.
    """
    device = _device_or_404(system, device_id)
    outcome = system.submit(DeviceAction(device, payload.command, payload.parameters))
    logger.info(
        "User %s submitted %s to device %d: %s",
        user.login_name,
        payload.command,
        device_id,
        outcome.status,
    )
    return outcome


@router.post("/devices/{device_id}/power")
async def set_power(
    device_id: int,
    payload: PowerRequest,
    system: SystemDep,
    user: CurrentUser,
) -> ActionOutcome:
    outcome = system.power(device_id, payload.on)
    if outcome is None:
        raise HTTPException(status_code=404, detail=f"Device {device_id} not found.")
    return outcome
