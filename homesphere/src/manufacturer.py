"""
Device manufacturers and the device factory they expose.

A Manufacturer keeps the list of devices it produced for reporting only; it
does not own their lifecycle. ``produce_device`` maps a type tag or one of
its aliases to the matching device variant.

CHANGELOG:
- 2026-10-19: default_manufacturer() factory for per-registry defaults (STORY-016)
- 2026-10-06: Accept DeviceType tags and aliases in produce_device (STORY-006)
- 2026-10-05: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from homesphere.src.devices import Device, DeviceType

logger = logging.getLogger(__name__)

# Alias (lower case) -> DeviceType value.
_TYPE_ALIASES: dict[str, str] = {
    "climate": "CLIMATE",
    "climateunit": "CLIMATE",
    "airconditioner": "CLIMATE",
    "light": "LIGHT",
    "dimmablelight": "LIGHT",
    "lightbulb": "LIGHT",
    "lock": "LOCK",
    "smartlock": "LOCK",
    "scale": "SCALE",
    "bathroomscale": "SCALE",
}


def resolve_device_type(device_type: str) -> DeviceType:
    """Resolve a type tag or alias (case-insensitive) to a DeviceType.

    Raises:
        ValueError: If the name matches no device variant.
    """
    from homesphere.src.devices import DeviceType

    key = device_type.strip().replace("_", "").lower()
    tag = _TYPE_ALIASES.get(key)
    if tag is None:
        raise ValueError(f"Unsupported device type: {device_type!r}")
    return DeviceType(tag)


class Manufacturer:
    """A device producer.

    Args:
        manufacturer_id: Identifier of the manufacturer.
        name: Display name.
        protocols: Supported protocols as free text (e.g. ``"ZigBee"``).
    """

    def __init__(self, manufacturer_id: int, name: str, protocols: str = "") -> None:
        self.manufacturer_id = manufacturer_id
        self.name = name
        self.protocols = protocols
        self._devices: list[Device] = []
        self._lock = threading.Lock()

    @property
    def devices(self) -> list[Device]:
        with self._lock:
            return list(self._devices)

    def add_device(self, device: Device) -> None:
        with self._lock:
            self._devices.append(device)

    def remove_device(self, device: Device) -> bool:
        """Forget *device* (matched by identity); False if never recorded."""
        with self._lock:
            for index, produced in enumerate(self._devices):
                if produced is device:
                    del self._devices[index]
                    return True
            return False

    def produce_device(
        self,
        device_type: str,
        device_id: int,
        name: str,
        *,
        power_w: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> Device:
        """Create a device of *device_type* and record it as produced here.

        Args:
            device_type: A DeviceType or alias such as ``"lightbulb"``.
            device_id: Identifier of the new device.
            name: Display name of the new device.
            power_w: Rated wattage for climate units and lights; the
                variant default when omitted. Ignored for other variants.
            clock: Optional clock injected into the device.

        Raises:
            ValueError: If *device_type* is not a known variant.
        """
        from homesphere.src.devices import (
            ClimateUnit,
            DeviceType,
            DimmableLight,
            Lock,
            Scale,
        )

        resolved = resolve_device_type(str(device_type))
        device: Device
        if resolved is DeviceType.CLIMATE:
            if power_w is None:
                device = ClimateUnit(device_id, name, self, clock=clock)
            else:
                device = ClimateUnit(
                    device_id, name, self, rated_power_w=power_w, clock=clock
                )
        elif resolved is DeviceType.LIGHT:
            if power_w is None:
                device = DimmableLight(device_id, name, self, clock=clock)
            else:
                device = DimmableLight(
                    device_id, name, self, rated_power_w=power_w, clock=clock
                )
        elif resolved is DeviceType.LOCK:
            device = Lock(device_id, name, self, clock=clock)
        else:
            device = Scale(device_id, name, self, clock=clock)

        self.add_device(device)
        logger.info(
            "Manufacturer %s produced %s device %d (%s)",
            self.name,
            resolved,
            device_id,
            name,
        )
        return device

    def production_statistics(self) -> dict[str, int]:
        """Count produced devices per type tag."""
        counts = Counter(str(device.device_type) for device in self.devices)
        return dict(counts)

    def summary(self) -> dict[str, object]:
        return {
            "manufacturer_id": self.manufacturer_id,
            "name": self.name,
            "protocols": self.protocols,
        }

    def __repr__(self) -> str:
        return (
            f"Manufacturer(manufacturer_id={self.manufacturer_id}, "
            f"name={self.name!r}, protocols={self.protocols!r})"
        )


DEFAULT_MANUFACTURER_ID = 0
DEFAULT_MANUFACTURER_NAME = "Generic"


def default_manufacturer() -> Manufacturer:
    """Return a new generic manufacturer, one per registry."""
    return Manufacturer(DEFAULT_MANUFACTURER_ID, DEFAULT_MANUFACTURER_NAME, "Simulated")


# Identity of devices constructed without a manufacturer. Registries produce
# through their own default_manufacturer(), so nothing is recorded here.
DEFAULT_MANUFACTURER = default_manufacturer()
