"""
Device capability model: the abstract device and its four variants.

Every device carries a shared identity (id, name, online flag, power flag,
manufacturer) and an append-only list of RunningLog entries. Variants add
their own attributes and range rules:

- ClimateUnit: target temperature 16.0-32.0 C, rated wattage.
- DimmableLight: brightness 0-100, colour temperature 2700-6500 K.
- Lock: locked flag, battery percentage.
- Scale: last measured mass, battery drained 2 points per measurement.

Variant setters mutate state only when the value is inside the variant's
valid range. Out-of-range values are dropped by the setter without a log
entry; parsing and reporting of user-supplied strings happens one layer up
in the dispatcher. Setters return ``True`` when state changed.

Each device guards its state and its log list with its own re-entrant lock,
so a state transition and its log append form one critical section.

CHANGELOG:
- 2026-10-09: Record last power-on time for lights too (STORY-008)
- 2026-10-06: Add capability protocols for dispatch (STORY-005)
- 2026-10-05: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar, Protocol, runtime_checkable

from homesphere.src import energy
from homesphere.src.manufacturer import DEFAULT_MANUFACTURER, Manufacturer
from homesphere.src.running_log import RunningLog, Severity

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default device clock: timezone-aware UTC wall clock."""
    return datetime.now(tz=UTC)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TARGET_TEMP_RANGE: tuple[float, float] = (16.0, 32.0)
BRIGHTNESS_RANGE: tuple[int, int] = (0, 100)
COLOR_TEMP_RANGE: tuple[int, int] = (2700, 6500)
BATTERY_RANGE: tuple[int, int] = (0, 100)

LOW_BATTERY_PCT: int = 20
"""Scale battery level at or below which every measurement logs a WARN."""

MEASUREMENT_BATTERY_COST: int = 2
"""Battery points drained by one scale measurement."""

DEFAULT_CLIMATE_POWER_W: float = 1500.0
DEFAULT_LIGHT_POWER_W: float = 20.0


class DeviceType(StrEnum):
    """Fixed type tag of each device variant."""

    CLIMATE = "CLIMATE"
    LIGHT = "LIGHT"
    LOCK = "LOCK"
    SCALE = "SCALE"


# ---------------------------------------------------------------------------
# Capabilities, one per command family
# ---------------------------------------------------------------------------


@runtime_checkable
class Dimmable(Protocol):
    def set_brightness(self, brightness: int) -> bool: ...

    def set_color_temp(self, color_temp: int) -> bool: ...


@runtime_checkable
class ThermostatControllable(Protocol):
    def set_target_temp(self, target_temp: float) -> bool: ...


@runtime_checkable
class Lockable(Protocol):
    def lock(self) -> bool: ...

    def unlock(self) -> bool: ...


@runtime_checkable
class WeighScaleCapable(Protocol):
    def measure_weight(self, body_mass: float) -> bool: ...


def _in_range(value: float, bounds: tuple[float, float]) -> bool:
    lo, hi = bounds
    return lo <= value <= hi


# ---------------------------------------------------------------------------
# Base device
# ---------------------------------------------------------------------------


class Device(ABC):
    """Abstract simulated smart-home device.

    Args:
        device_id: Identifier, unique within a registry and immutable.
        name: Display name.
        manufacturer: Producer of the device. Defaults to the shared
            default manufacturer.
        clock: Callable returning the current time, injected so tests can
            control RunningLog timestamps and power-on instants.
    """

    device_type: ClassVar[DeviceType]

    def __init__(
        self,
        device_id: int,
        name: str,
        manufacturer: Manufacturer | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._device_id = device_id
        self._name = name
        self._online = False
        self._powered_on = False
        self._manufacturer = (
            manufacturer if manufacturer is not None else DEFAULT_MANUFACTURER
        )
        self._clock: Clock = clock or utc_now
        self._logs: list[RunningLog] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Identity and state
    # ------------------------------------------------------------------

    @property
    def device_id(self) -> int:
        return self._device_id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        with self._lock:
            self._name = value

    @property
    def online(self) -> bool:
        return self._online

    @property
    def powered_on(self) -> bool:
        return self._powered_on

    @property
    def manufacturer(self) -> Manufacturer:
        return self._manufacturer

    @property
    def running_logs(self) -> tuple[RunningLog, ...]:
        """Chronological snapshot of the audit trail."""
        with self._lock:
            return tuple(self._logs)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def power_on(self) -> bool:
        with self._lock:
            now = self._clock()
            self._powered_on = True
            self._on_powered_on(now)
            self._append_log("power on", Severity.INFO, "Power switched on", now)
        return True

    def power_off(self) -> bool:
        with self._lock:
            self._powered_on = False
            self._append_log("power off", Severity.INFO, "Power switched off")
        return True

    def set_online(self, online: bool) -> bool:
        """Mark the device reachable or unreachable, independent of power."""
        with self._lock:
            self._online = online
            if online:
                self._append_log("online", Severity.INFO, "Device came online")
            else:
                self._append_log("offline", Severity.WARN, "Device went offline")
        return True

    def _on_powered_on(self, now: datetime) -> None:
        """Hook for variants that track the on-transition instant."""

    def _append_log(
        self,
        event: str,
        severity: Severity,
        note: str,
        timestamp: datetime | None = None,
    ) -> None:
        # Callers hold self._lock.
        entry = RunningLog(
            timestamp=timestamp or self._clock(),
            event=event,
            severity=severity,
            note=note,
        )
        self._logs.append(entry)
        logger.debug(
            "Device %d (%s) log: %s [%s] %s",
            self._device_id,
            self._name,
            event,
            severity,
            note,
        )

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible snapshot of identity and state."""
        with self._lock:
            data: dict[str, Any] = {
                "device_id": self._device_id,
                "name": self._name,
                "device_type": str(self.device_type),
                "online": self._online,
                "powered_on": self._powered_on,
                "manufacturer": self._manufacturer.summary(),
            }
            data.update(self._state_dict())
            return data

    @abstractmethod
    def _state_dict(self) -> dict[str, Any]:
        """Variant-specific state fields for to_dict()."""

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(self) is not type(other):
            return NotImplemented
        return self._device_id == other._device_id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._device_id))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(device_id={self._device_id}, "
            f"name={self._name!r}, online={self._online}, "
            f"powered_on={self._powered_on})"
        )


class _MeteredDevice(Device):
    """Device that draws power and implements the EnergyReporting capability.

    Remembers only the most recent on-transition, which is what the energy
    integration is based on.
    """

    def __init__(
        self,
        device_id: int,
        name: str,
        manufacturer: Manufacturer | None = None,
        *,
        rated_power_w: float,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(device_id, name, manufacturer, clock=clock)
        self._rated_power_w = rated_power_w
        self._last_power_on_time: datetime | None = None

    @property
    def rated_power_w(self) -> float:
        return self._rated_power_w

    @property
    def last_power_on_time(self) -> datetime | None:
        return self._last_power_on_time

    def _on_powered_on(self, now: datetime) -> None:
        self._last_power_on_time = now

    def _power_while_on(self) -> float:
        return self._rated_power_w

    def current_power(self) -> float:
        """Instantaneous power draw in watts, 0.0 when off."""
        with self._lock:
            return self._power_while_on() if self._powered_on else 0.0

    def energy_in_window(self, start: datetime, end: datetime) -> float:
        """Energy in kWh consumed during ``[start, end]``."""
        with self._lock:
            return energy.energy_in_window(
                power_w=self._power_while_on(),
                powered_on=self._powered_on,
                on_time=self._last_power_on_time,
                start=start,
                end=end,
            )


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class ClimateUnit(_MeteredDevice):
    """Air conditioner drawing its rated wattage while on."""

    device_type = DeviceType.CLIMATE

    def __init__(
        self,
        device_id: int,
        name: str,
        manufacturer: Manufacturer | None = None,
        *,
        rated_power_w: float = DEFAULT_CLIMATE_POWER_W,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(
            device_id, name, manufacturer, rated_power_w=rated_power_w, clock=clock
        )
        self._current_temp = 25.0
        self._target_temp = 25.0

    @property
    def current_temp(self) -> float:
        return self._current_temp

    @property
    def target_temp(self) -> float:
        return self._target_temp

    def set_target_temp(self, target_temp: float) -> bool:
        if not _in_range(target_temp, TARGET_TEMP_RANGE):
            return False
        with self._lock:
            self._target_temp = target_temp
            self._append_log(
                "set target temperature",
                Severity.INFO,
                f"Target temperature set to {target_temp}C",
            )
        return True

    def set_current_temp(self, current_temp: float) -> bool:
        """Record a room temperature reading."""
        with self._lock:
            self._current_temp = current_temp
            self._append_log(
                "temperature reading",
                Severity.INFO,
                f"Current temperature {current_temp}C",
            )
        return True

    def _state_dict(self) -> dict[str, Any]:
        return {
            "current_temp": self._current_temp,
            "target_temp": self._target_temp,
            "rated_power_w": self._rated_power_w,
            "current_power_w": self._power_while_on() if self._powered_on else 0.0,
        }


class DimmableLight(_MeteredDevice):
    """Light bulb whose power draw scales with brightness."""

    device_type = DeviceType.LIGHT

    def __init__(
        self,
        device_id: int,
        name: str,
        manufacturer: Manufacturer | None = None,
        *,
        rated_power_w: float = DEFAULT_LIGHT_POWER_W,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(
            device_id, name, manufacturer, rated_power_w=rated_power_w, clock=clock
        )
        self._brightness = 50
        self._color_temp = 4000

    @property
    def brightness(self) -> int:
        return self._brightness

    @property
    def color_temp(self) -> int:
        return self._color_temp

    def set_brightness(self, brightness: int) -> bool:
        if not _in_range(brightness, BRIGHTNESS_RANGE):
            return False
        with self._lock:
            self._brightness = brightness
            self._append_log(
                "set brightness", Severity.INFO, f"Brightness set to {brightness}%"
            )
        return True

    def set_color_temp(self, color_temp: int) -> bool:
        if not _in_range(color_temp, COLOR_TEMP_RANGE):
            return False
        with self._lock:
            self._color_temp = color_temp
            self._append_log(
                "set colour temperature",
                Severity.INFO,
                f"Colour temperature set to {color_temp}K",
            )
        return True

    def _power_while_on(self) -> float:
        return self._rated_power_w * (self._brightness / 100.0)

    def _state_dict(self) -> dict[str, Any]:
        return {
            "brightness": self._brightness,
            "color_temp": self._color_temp,
            "rated_power_w": self._rated_power_w,
            "current_power_w": self._power_while_on() if self._powered_on else 0.0,
        }


class Lock(Device):
    """Smart door lock, locked by default."""

    device_type = DeviceType.LOCK

    def __init__(
        self,
        device_id: int,
        name: str,
        manufacturer: Manufacturer | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(device_id, name, manufacturer, clock=clock)
        self._locked = True
        self._battery_level = 0

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def battery_level(self) -> int:
        return self._battery_level

    def lock(self) -> bool:
        with self._lock:
            self._locked = True
            self._append_log("lock", Severity.INFO, "Lock engaged")
        return True

    def unlock(self) -> bool:
        with self._lock:
            self._locked = False
            self._append_log("unlock", Severity.INFO, "Lock released")
        return True

    def set_battery_level(self, battery_level: int) -> bool:
        """Set the battery percentage, clamped to 0-100."""
        lo, hi = BATTERY_RANGE
        with self._lock:
            self._battery_level = max(lo, min(hi, battery_level))
            self._append_log(
                "battery level",
                Severity.INFO,
                f"Battery level {self._battery_level}%",
            )
        return True

    def _state_dict(self) -> dict[str, Any]:
        return {"locked": self._locked, "battery_level": self._battery_level}


class Scale(Device):
    """Bathroom scale; every measurement drains the battery."""

    device_type = DeviceType.SCALE

    def __init__(
        self,
        device_id: int,
        name: str,
        manufacturer: Manufacturer | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(device_id, name, manufacturer, clock=clock)
        self._body_mass = 0.0
        self._battery_level = 100

    @property
    def body_mass(self) -> float:
        return self._body_mass

    @property
    def battery_level(self) -> int:
        return self._battery_level

    def measure_weight(self, body_mass: float) -> bool:
        """Record a measurement in kg and drain the battery.

        Once the battery is at or below LOW_BATTERY_PCT, each measurement
        also appends a WARN entry ahead of the measurement entry.
        """
        if body_mass <= 0:
            return False
        with self._lock:
            self._body_mass = body_mass
            self._battery_level = max(
                BATTERY_RANGE[0], self._battery_level - MEASUREMENT_BATTERY_COST
            )
            if self._battery_level <= LOW_BATTERY_PCT:
                self._append_log(
                    "low battery",
                    Severity.WARN,
                    f"Battery level {self._battery_level}%",
                )
            self._append_log(
                "weight measured", Severity.INFO, f"Measured {body_mass}kg"
            )
        return True

    def set_battery_level(self, battery_level: int) -> bool:
        """Set the battery percentage, clamped to 0-100."""
        lo, hi = BATTERY_RANGE
        with self._lock:
            self._battery_level = max(lo, min(hi, battery_level))
            self._append_log(
                "battery level",
                Severity.INFO,
                f"Battery level {self._battery_level}%",
            )
        return True

    def _state_dict(self) -> dict[str, Any]:
        return {"body_mass": self._body_mass, "battery_level": self._battery_level}
